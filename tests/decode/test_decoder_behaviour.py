from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import IntEnum, StrEnum

import pytest

from kvdecoder import (
    BlobDecodeError,
    Decoder,
    DecoderSettings,
    InvalidTarget,
    KVPair,
    TypeCache,
    UnsupportedType,
    Uint8,
    ValueParseError,
    unmarshal,
)


@dataclass
class Inner:
    x: int = field(default=0, metadata={"decoder": "x"})


@dataclass
class Outer:
    inner: Inner | None = field(default=None, metadata={"decoder": "inner"})


@dataclass
class Server:
    host: str = ""
    port: int = 0


@dataclass
class App:
    name: str = ""
    port: Uint8 = Uint8(0)
    tags: list[str] = field(default_factory=list)
    labels: dict[str, str] = field(default_factory=dict)
    servers: list[Server] = field(default_factory=list)
    by_name: dict[str, Server | None] = field(default_factory=dict)
    limits: dict[str, int] | None = field(default=None, metadata={"decoder": "limits,json"})
    hosts: list[str] = field(default_factory=list, metadata={"decoder": ",csv"})
    inner: Inner | None = None


@dataclass
class CaseSensitive:
    Name: str = ""


@dataclass
class Holder:
    app: App = field(default_factory=App)


@dataclass
class Required:
    name: str
    count: int


@dataclass
class PathTagged:
    value: str = field(default="", metadata={"decoder": "a/b/c"})
    blob: dict[str, int] = field(default_factory=dict, metadata={"decoder": "blob,json"})
    words: list[str] = field(default_factory=list, metadata={"decoder": "words,ssv"})


@dataclass(frozen=True)
class Frozen:
    name: str = ""


@dataclass
class Bad:
    grid: list[list[int]] = field(default_factory=list)


class Region(str):
    pass


class Port(int):
    pass


class Color(StrEnum):
    RED = "red"
    BLUE = "blue"


class Level(IntEnum):
    LOW = 1
    HIGH = 2


@dataclass
class Typed:
    hosts: dict[Region, str] = field(default_factory=dict)
    port: Port = Port(0)
    color: Color = Color.RED
    level: Level | None = None
    levels: list[Level] = field(default_factory=list, metadata={"decoder": "levels,csv"})


@dataclass
class Item:
    f1: int = 0


@dataclass
class ItemList:
    testarr: list[Item] = field(default_factory=list)


def test_single_nested_field() -> None:
    cfg = Outer()

    Decoder().unmarshal("", [KVPair("inner/x", "42")], cfg)

    assert cfg.inner == Inner(x=42)


def test_module_level_unmarshal_and_tuple_pairs() -> None:
    app = App()

    unmarshal("svc", [("svc/name", "api"), ("svc/port", "80")], app)

    assert (app.name, app.port) == ("api", 80)


def test_tuple_pairs_with_non_text_values_are_rendered() -> None:
    app = App()

    Decoder().unmarshal("", [("name", 3), ("port", 80), ("tags/0", True)], app)

    assert (app.name, app.port, app.tags) == ("3", 80, ["true"])


def test_decode_builds_new_instance_with_zero_values() -> None:
    value = Decoder().decode(Required, "r/", [("r/count", "3")])

    assert value == Required(name="", count=3)


def test_absent_fields_keep_defaults() -> None:
    app = App(name="keep", port=Uint8(9))

    Decoder().unmarshal("svc", [("svc/tags/a", "one")], app)

    assert (app.name, app.port, app.inner, app.limits) == ("keep", 9, None, None)
    assert app.tags == ["one"]


def test_keys_outside_prefix_and_directory_markers_are_ignored() -> None:
    app = App()

    Decoder().unmarshal(
        "svc",
        [("svc/", None), ("svc/name/", None), ("other/name", "nope"), ("svcx/name", "nope"), ("svc/name", "api")],
        app,
    )

    assert app.name == "api"


def test_nested_path_tag_matches_exact_key_only() -> None:
    cfg = PathTagged()

    Decoder().unmarshal(
        "p",
        [
            ("p/a/b/c", "X"),
            ("p/a/b/c/d", "Y"),
            ("p/blob/extra", "{}"),
            ("p/words/0", "nope"),
            ("p/words", "1 2  3"),
        ],
        cfg,
    )

    assert cfg.value == "X"
    assert cfg.blob == {}
    assert cfg.words == ["1", "2", "3"]


def test_empty_prefix_matches_everything() -> None:
    app = App()

    Decoder().unmarshal("", [("name", "api"), ("inner/x", "1")], app)

    assert app.name == "api"
    assert app.inner == Inner(1)


def test_unknown_keys_are_logged_at_debug(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="kvdecoder")

    Decoder().unmarshal("svc", [("svc/unknown/leaf", "x")], App())

    assert any("no field for key 'svc/unknown/leaf'" in r.getMessage() for r in caplog.records)


def test_case_insensitive_matching_by_default() -> None:
    cfg = CaseSensitive()

    Decoder().unmarshal("SVC", [("svc/NAME", "upper")], cfg)

    assert cfg.Name == "upper"


def test_case_sensitive_matching_requires_exact_names() -> None:
    decoder = Decoder(DecoderSettings(case_sensitive=True))

    cfg = CaseSensitive()
    decoder.unmarshal("svc", [("svc/NAME", "upper"), ("svc/name", "lower")], cfg)
    assert cfg.Name == ""

    decoder.unmarshal("svc", [("svc/Name", "exact")], cfg)
    assert cfg.Name == "exact"

    # Prefix matching follows the same policy.
    decoder.unmarshal("SVC", [("svc/Name", "ignored")], cfg)
    assert cfg.Name == "exact"


def test_sequence_elements_follow_input_order() -> None:
    app = App()

    Decoder().unmarshal(
        "svc",
        [("svc/tags/2", "second"), ("svc/tags/1", "first"), ("svc/tags/0", "zeroth")],
        app,
    )

    assert app.tags == ["second", "first", "zeroth"]


def test_mapping_keys_keep_original_case() -> None:
    app = App()

    Decoder().unmarshal("svc", [("svc/Labels/Team", "core"), ("svc/labels/env", "prod")], app)

    assert app.labels == {"Team": "core", "env": "prod"}


def test_record_elements_group_contiguous_pairs() -> None:
    app = App()

    Decoder().unmarshal(
        "svc",
        [
            ("svc/servers/a/host", "h1"),
            ("svc/servers/a/port", "1"),
            ("svc/servers/b/host", "h2"),
            ("svc/servers/a/port", "3"),
        ],
        app,
    )

    # A run interrupted by another element starts a new element.
    assert app.servers == [Server("h1", 1), Server("h2", 0), Server("", 3)]


def test_record_elements_follow_arrival_order_not_key_order() -> None:
    cfg = ItemList()

    Decoder().unmarshal("", [("testarr/2/f1", "2"), ("testarr/1/f1", "1")], cfg)

    assert [item.f1 for item in cfg.testarr] == [2, 1]


def test_mapping_of_optional_records() -> None:
    app = App()

    Decoder().unmarshal(
        "svc",
        [("svc/by_name/Web/host", "web.local"), ("svc/by_name/Web/port", "80"), ("svc/by_name/db/host", "db")],
        app,
    )

    assert app.by_name == {"Web": Server("web.local", 80), "db": Server("db", 0)}


def test_str_subclass_map_keys_and_enum_fields() -> None:
    cfg = Typed()

    Decoder().unmarshal(
        "",
        [("hosts/eu", "a"), ("port", "8080"), ("color", "blue"), ("level", "2"), ("levels", "1,2")],
        cfg,
    )

    assert cfg.hosts == {"eu": "a"}
    assert all(type(key) is Region for key in cfg.hosts)
    assert type(cfg.port) is Port and cfg.port == 8080
    assert cfg.color is Color.BLUE
    assert cfg.level is Level.HIGH
    assert cfg.levels == [Level.LOW, Level.HIGH]


def test_enum_values_outside_the_members_name_the_key() -> None:
    with pytest.raises(ValueParseError) as exc_info:
        Decoder().unmarshal("svc", [("svc/color", "green")], Typed())

    assert exc_info.value.key == "svc/color"


def test_container_key_without_child_is_ignored() -> None:
    app = App()

    Decoder().unmarshal("svc", [("svc/tags", "lonely"), ("svc/servers", "x")], app)

    assert app.tags == []
    assert app.servers == []


def test_containers_inside_flattened_records_use_full_path() -> None:
    holder = Holder()

    Decoder().unmarshal(
        "root",
        [("root/app/servers/0/host", "h0"), ("root/app/servers/0/port", "10"), ("root/app/labels/k", "v")],
        holder,
    )

    assert holder.app.servers == [Server("h0", 10)]
    assert holder.app.labels == {"k": "v"}


def test_json_and_csv_fields() -> None:
    app = App()

    Decoder().unmarshal(
        "svc",
        [("svc/limits", '{"cpu": 2, "mem": "512"}'), ("svc/hosts", 'a,"b,c"'), ("svc/hosts", "d")],
        app,
    )

    assert app.limits == {"cpu": 2, "mem": 512}
    # Repeated delimited keys extend the existing list.
    assert app.hosts == ["a", "b,c", "d"]


def test_json_null_into_optional_blob() -> None:
    app = App(limits={"cpu": 1})

    Decoder().unmarshal("", [("limits", "null")], app)

    assert app.limits is None


def test_parse_errors_name_the_key_and_keep_earlier_assignments() -> None:
    app = App()

    with pytest.raises(ValueParseError) as exc_info:
        Decoder().unmarshal("svc", [("svc/name", "api"), ("svc/port", "300"), ("svc/tags/a", "x")], app)

    assert exc_info.value.key == "svc/port"
    assert "out of range" in str(exc_info.value)
    assert app.name == "api"
    assert app.tags == []


def test_errors_inside_container_records_name_the_inner_key() -> None:
    with pytest.raises(ValueParseError) as exc_info:
        Decoder().unmarshal("svc", [("svc/servers/a/port", "eighty")], App())

    assert exc_info.value.key == "svc/servers/a/port"


def test_blob_errors() -> None:
    with pytest.raises(BlobDecodeError) as exc_info:
        Decoder().unmarshal("", [("limits", "{broken")], App())

    assert exc_info.value.key == "limits"


@pytest.mark.parametrize("target", [None, App, {"name": "x"}, Frozen()])
def test_invalid_targets(target: object) -> None:
    with pytest.raises(InvalidTarget):
        Decoder().unmarshal("", [("name", "x")], target)


def test_decode_rejects_non_dataclass_types() -> None:
    with pytest.raises(InvalidTarget):
        Decoder().decode(dict, "", [])


def test_unsupported_record_types_raise_before_decoding() -> None:
    with pytest.raises(UnsupportedType):
        Decoder().unmarshal("", [("grid/0", "1")], Bad())


def test_no_pairs_is_a_no_op() -> None:
    app = App()

    Decoder().unmarshal("svc", None, app)
    Decoder().unmarshal("svc", [], app)

    assert app == App()


def test_decoders_share_a_cache_per_settings() -> None:
    cache = TypeCache()
    folded = Decoder(cache=cache)
    exact = Decoder(DecoderSettings(case_sensitive=True), cache=cache)

    assert folded.meta_for(CaseSensitive) is Decoder(cache=cache).meta_for(CaseSensitive)
    assert list(folded.meta_for(CaseSensitive)) == ["name"]
    assert list(exact.meta_for(CaseSensitive)) == ["Name"]
