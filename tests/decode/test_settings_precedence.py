from __future__ import annotations

import logging
from pathlib import Path

from kvdecoder.decode.config import DecoderSettings
from kvdecoder.decode.decoder import Decoder
from kvdecoder.log import PACKAGE_LOGGER, set_debug

_ENV_KEYS = ["KVDECODER_CASE_SENSITIVE", "KVDECODER_TAG", "KVDECODER_DEBUG"]


def _write_toml(tmp: Path, name: str, content: str) -> Path:
    p = tmp / name
    p.write_text(content)
    return p


def test_settings_precedence_env_over_toml(tmp_path: Path, monkeypatch) -> None:
    # Arrange TOML
    _write_toml(
        tmp_path,
        "kvdecoder.toml",
        """
        [decoder]
        case_sensitive = false
        tag = "kv"
        """.strip(),
    )
    # Ensure cwd for DecoderSettings.from_toml() search
    monkeypatch.chdir(tmp_path)
    # Arrange ENV that should override TOML
    monkeypatch.setenv("KVDECODER_CASE_SENSITIVE", "yes")
    monkeypatch.setenv("KVDECODER_TAG", "consul")

    # Act
    s = DecoderSettings.load()

    # Assert precedence: env > TOML
    assert s.case_sensitive is True
    assert s.tag == "consul"
    assert s.debug is False


def test_settings_from_toml_when_no_env(tmp_path: Path, monkeypatch) -> None:
    # Arrange TOML only, top-level keys
    _write_toml(tmp_path, "kvdecoder.toml", 'case_sensitive = true\ntag = "kv"\n')
    monkeypatch.chdir(tmp_path)
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)

    # Act
    s = DecoderSettings.load()

    # Assert values from TOML
    assert s.case_sensitive is True
    assert s.tag == "kv"


def test_settings_from_pyproject_tool_table(tmp_path: Path, monkeypatch) -> None:
    _write_toml(
        tmp_path,
        "pyproject.toml",
        """
        [project]
        name = "demo"

        [tool.kvdecoder]
        tag = "cfg"
        """.strip(),
    )
    monkeypatch.chdir(tmp_path)
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)

    s = DecoderSettings.load()

    assert s.tag == "cfg"
    assert s.case_sensitive is False


def test_settings_defaults_without_files(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)

    s = DecoderSettings.load()

    assert s == DecoderSettings()


def test_malformed_toml_falls_back_to_defaults(tmp_path: Path) -> None:
    p = _write_toml(tmp_path, "broken.toml", "tag = [unterminated")

    assert DecoderSettings.from_toml(p) == DecoderSettings()


def test_blank_tag_is_ignored(monkeypatch) -> None:
    monkeypatch.setenv("KVDECODER_TAG", "   ")

    assert DecoderSettings.from_env().tag == "decoder"


def test_compile_options_follow_settings() -> None:
    def resolver(field_name: str, tag_name: str) -> str:
        return tag_name or field_name

    opts = DecoderSettings(case_sensitive=True, tag="kv", name_resolver=resolver).compile_options

    assert opts.case_sensitive is True
    assert opts.tag == "kv"
    assert opts.name_resolver is resolver


def test_debug_setting_enables_package_logger(monkeypatch) -> None:
    monkeypatch.setenv("KVDECODER_DEBUG", "1")
    try:
        Decoder(DecoderSettings.from_env())

        assert logging.getLogger(PACKAGE_LOGGER).isEnabledFor(logging.DEBUG)
    finally:
        set_debug(False)
    assert logging.getLogger(PACKAGE_LOGGER).level == logging.NOTSET
