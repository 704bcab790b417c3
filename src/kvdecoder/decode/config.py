"""
Configuration for the kvdecoder.decode module.

Defines DecoderSettings, a frozen dataclass carrying the per-decoder options that
shape compilation (tag label, name resolver, case policy) plus the debug toggle.
Defaults are sourced from kvdecoder.core.constants.

Source of truth
- kvdecoder.core.constants.DEFAULT_TAG, ENV_PREFIX
- kvdecoder.core.analyzer.default_name_resolver, CompileOptions

Notes
- Precedence for file/env loading: env > TOML > defaults.
- The name resolver is code-only; it is never read from env or TOML.
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from kvdecoder.core.analyzer import CompileOptions, NameResolver, default_name_resolver
from kvdecoder.core.constants import DEFAULT_TAG, ENV_PREFIX

__all__ = ["DecoderSettings"]

_TRUE_WORDS = frozenset({"1", "true", "t", "yes", "y", "on"})
_ENV_KEYS = ("case_sensitive", "tag", "debug")

# Files searched in the working directory, with the table holding our keys.
# An empty table path means "the [decoder] table if present, else the top level".
_SEARCH: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("kvdecoder.toml", ()),
    ("pyproject.toml", ("tool", "kvdecoder")),
)


def _truthy(raw: Any) -> bool:
    if isinstance(raw, str):
        return raw.strip().lower() in _TRUE_WORDS
    return isinstance(raw, (bool, int, float)) and bool(raw)


def _read_toml(path: Path) -> dict[str, Any] | None:
    try:
        with path.open("rb") as fh:
            return tomllib.load(fh)
    except (OSError, tomllib.TOMLDecodeError):
        return None


def _settings_table(document: Mapping[str, Any], table: tuple[str, ...]) -> Mapping[str, Any] | None:
    if not table:
        nested = document.get("decoder")
        return nested if isinstance(nested, Mapping) else document
    node: Any = document
    for part in table:
        node = node.get(part) if isinstance(node, Mapping) else None
    return node if isinstance(node, Mapping) else None


@dataclass(frozen=True)
class DecoderSettings:
    """
    Runtime settings for a Decoder.

    Attributes:
        case_sensitive (bool): If True, keys must match resolved names exactly;
            otherwise both sides are lower-cased (default False).
        tag (str): Dataclass field metadata key holding the tag string (default "decoder").
        name_resolver (NameResolver): ``(attribute_name, tag_primary) -> key name``;
            return "-" or "" to skip a field.
        debug (bool): Enable debug logging for the kvdecoder package when a
            Decoder is constructed with these settings.

    Examples:
        >>> from kvdecoder.decode.config import DecoderSettings
        >>> DecoderSettings(case_sensitive=True).compile_options.case_sensitive
        True
    """

    case_sensitive: bool = False
    tag: str = DEFAULT_TAG
    name_resolver: NameResolver = default_name_resolver
    debug: bool = False

    @property
    def compile_options(self) -> CompileOptions:
        return CompileOptions(
            tag=self.tag or DEFAULT_TAG,
            name_resolver=self.name_resolver or default_name_resolver,
            case_sensitive=self.case_sensitive,
        )

    def merged(self, values: Mapping[str, Any] | None) -> DecoderSettings:
        """
        Return a copy with recognized keys from ``values`` applied.

        Unknown keys are ignored; a blank ``tag`` keeps the current label.

        Examples:
            >>> DecoderSettings().merged({"case_sensitive": "on", "tag": " kv "}).tag
            'kv'
        """
        if not isinstance(values, Mapping):
            return self
        changes: dict[str, Any] = {}
        if "case_sensitive" in values:
            changes["case_sensitive"] = _truthy(values["case_sensitive"])
        tag = values.get("tag")
        if isinstance(tag, str) and tag.strip():
            changes["tag"] = tag.strip()
        if "debug" in values:
            changes["debug"] = _truthy(values["debug"])
        return replace(self, **changes) if changes else self

    @classmethod
    def from_env(cls, base: DecoderSettings | None = None, prefix: str = ENV_PREFIX) -> DecoderSettings:
        """
        Overlay environment variables on ``base`` (or the defaults).

        Recognized variables (with the default prefix):
            - KVDECODER_CASE_SENSITIVE (1/0/true/false/yes/no/on/off)
            - KVDECODER_TAG
            - KVDECODER_DEBUG

        Empty variables are treated as unset.
        """
        found: dict[str, str] = {}
        for key in _ENV_KEYS:
            raw = os.environ.get(prefix + key.upper())
            if raw:
                found[key] = raw
        return (base or cls()).merged(found)

    @classmethod
    def from_toml(cls, path: str | os.PathLike[str] | None = None) -> DecoderSettings:
        """
        Build DecoderSettings from a TOML file.

        Without ``path``, ``./kvdecoder.toml`` is tried first (a ``[decoder]`` table,
        else top-level keys), then ``[tool.kvdecoder]`` in ``./pyproject.toml``; the
        first non-empty table wins. An explicit ``path`` is read the same way,
        according to its file name.

        Missing or unparsable files yield the defaults.
        """
        if path is not None:
            explicit = Path(path)
            table = dict(_SEARCH).get(explicit.name, ())
            candidates = [(explicit, table)]
        else:
            candidates = [(Path.cwd() / name, table) for name, table in _SEARCH]

        for file_path, table in candidates:
            document = _read_toml(file_path) if file_path.is_file() else None
            values = _settings_table(document, table) if document else None
            if values:
                return cls().merged(values)
        return cls()

    @classmethod
    def load(cls, path: str | os.PathLike[str] | None = None) -> DecoderSettings:
        """
        Load DecoderSettings applying precedence: environment > TOML > defaults.

        Args:
            path: Optional explicit TOML path; see `from_toml` for the default search.
        """
        return cls.from_env(base=cls.from_toml(path))
