"""
Type analyzer: compiles a dataclass into a flat key → FieldMeta table.

Responsibilities
- Read each field's tag (``field(metadata={"decoder": "name,modifier"})``) and
  resolve its key name through the configured name resolver.
- Peel Optional layers, sequence and mapping layers, classifying the terminal
  type into a FieldKind.
- Flatten nested records so ``outer/inner/leaf`` resolves without touching
  intermediate instances at match time.
- Reject shapes the decoder cannot populate (nested containers, non-str mapping
  keys, misplaced csv/ssv modifiers, cycles).

Notes
- Fields whose names start with ``_`` are private and never decoded.
- Unrecognized field types are excluded from the table and logged at debug level.
- Two fields resolving to the same key: the later field wins and a warning is logged.

Examples
--------
>>> from dataclasses import dataclass, field
>>> from kvdecoder.core.analyzer import compile_record
>>> @dataclass
... class Service:
...     name: str = ""
...     port: int = field(default=0, metadata={"decoder": "listen_port"})
...     secret: str = field(default="", metadata={"decoder": "-"})
>>> sorted(compile_record(Service))
['listen_port', 'name']
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta
from ipaddress import IPv4Address, IPv6Address
from typing import Any

from .constants import DEFAULT_TAG, MAX_INDIRECTION, SKIP_NAME, TAG_CSV, TAG_JSON, TAG_SSV
from .errors import CounterOverflow, UnsupportedType
from .meta import SCALAR_KINDS, FieldKind, FieldLocator, FieldMeta, TypeMeta, ValueStyle
from .records import (
    is_record_type,
    is_text_decodable,
    mapping_types,
    record_hints,
    sequence_element,
    supertype,
    unwrap_annotated,
    unwrap_optional,
)
from .typing import IPAddress, IPMask, UNSIGNED_TYPES, Duration

__all__ = [
    "NameResolver",
    "CompileOptions",
    "default_name_resolver",
    "parse_tag",
    "compile_record",
]

_log = logging.getLogger(__name__)

NameResolver = Callable[[str, str], str]

_IP_ADDRESS_TYPES = (IPv4Address, IPv6Address, IPAddress)


def default_name_resolver(field_name: str, tag_name: str) -> str:
    """
    Use the tag's primary value when present, else the attribute name.

    Examples:
        >>> default_name_resolver("port", "listen_port")
        'listen_port'
        >>> default_name_resolver("port", "")
        'port'
    """
    return tag_name or field_name


@dataclass(frozen=True)
class CompileOptions:
    """
    Settings that change how a record compiles; part of the cache key.

    Attributes:
        tag (str): Metadata key holding the tag string.
        name_resolver (NameResolver): Maps (attribute name, tag primary value) to a key name.
        case_sensitive (bool): When False, resolved names are lower-cased.
    """

    tag: str = DEFAULT_TAG
    name_resolver: NameResolver = default_name_resolver
    case_sensitive: bool = False


def parse_tag(tag_value: str) -> tuple[str, bool, ValueStyle]:
    """
    Split a tag string into its primary value, json flag and list style.

    Unknown modifiers are ignored; when both csv and ssv appear the last one wins.

    Raises:
        UnsupportedType: If ``json`` is combined with ``csv`` or ``ssv``.

    Examples:
        >>> parse_tag("hosts,csv")
        ('hosts', False, <ValueStyle.CSV: 'csv'>)
        >>> parse_tag(",json")
        ('', True, <ValueStyle.JSON: 'json'>)
    """
    primary, *modifiers = tag_value.split(",")
    is_json = False
    style = ValueStyle.PLAIN
    for modifier in modifiers:
        if modifier == TAG_JSON:
            is_json = True
        elif modifier == TAG_CSV:
            style = ValueStyle.CSV
        elif modifier == TAG_SSV:
            style = ValueStyle.SSV
    if is_json and style.is_delimited:
        raise UnsupportedType(f"tag {tag_value!r} combines json with {style.value}")
    return primary, is_json, (ValueStyle.JSON if is_json else style)


class _FieldWalk:
    """Mutable state while peeling one field's annotation."""

    def __init__(self, index: int, name: str, resolved: str, style: ValueStyle) -> None:
        self.index = index
        self.name = name
        self.resolved = resolved
        self.style = style
        self.pointer_depth = 0
        self.container_pointer_depth = 0
        self.is_sequence = False
        self.is_mapping = False
        self.text_decodable = False
        self.key_type: Any = str

    @property
    def is_json(self) -> bool:
        return self.style is ValueStyle.JSON

    @property
    def in_container(self) -> bool:
        return self.is_sequence or self.is_mapping

    def count_optional(self) -> None:
        if self.in_container:
            self.container_pointer_depth += 1
            if self.container_pointer_depth > MAX_INDIRECTION:
                raise CounterOverflow(f"collection pointer count overflow detected on {self.name}")
        else:
            self.pointer_depth += 1
            if self.pointer_depth > MAX_INDIRECTION:
                raise CounterOverflow(f"pointer depth overflow detected on {self.name}")

    def locator(self, element_type: Any, *, blob: bool = False) -> FieldLocator:
        return FieldLocator(
            index=self.index,
            name=self.name,
            pointer_depth=self.pointer_depth,
            container_pointer_depth=self.container_pointer_depth,
            is_sequence=self.is_sequence and not blob,
            is_mapping=self.is_mapping and not blob,
            is_blob=blob,
            element_type=element_type,
            text_decodable=self.text_decodable and not blob,
            key_type=self.key_type,
        )

    def blob(self, element_type: Any, kind: FieldKind = FieldKind.NESTED_RECORD) -> FieldMeta:
        return FieldMeta(
            self.resolved, (self.locator(element_type, blob=True),), kind, ValueStyle.JSON
        )

    def terminal(self, element_type: Any, kind: FieldKind) -> FieldMeta:
        if self.style.is_delimited:
            allowed = SCALAR_KINDS | {FieldKind.TEXT_DECODABLE}
            if not self.is_sequence or kind not in allowed:
                raise UnsupportedType(
                    f"{self.name}: {self.style.value} requires a sequence of strings, ints, "
                    "uints, floats or bools"
                )
        return FieldMeta(self.resolved, (self.locator(element_type),), kind, self.style)


def _scalar_kind(tp: Any) -> FieldKind | None:
    if tp is IPMask:
        return FieldKind.IP_MASK
    if tp in _IP_ADDRESS_TYPES:
        return FieldKind.IP_ADDRESS
    if tp is Duration:
        return FieldKind.DURATION
    if tp in UNSIGNED_TYPES:
        return FieldKind.UNSIGNED_INTEGER
    # Subclasses (IntEnum, StrEnum, class Port(int)) classify by their base.
    base = supertype(tp)
    if not isinstance(base, type):
        return None
    if issubclass(base, (bytes, bytearray)):
        return FieldKind.BYTE_SEQUENCE
    if issubclass(base, timedelta):
        return FieldKind.DURATION
    if issubclass(base, bool):
        return FieldKind.BOOLEAN
    if issubclass(base, int):
        return FieldKind.SIGNED_INTEGER
    if issubclass(base, float):
        return FieldKind.FLOAT
    if issubclass(base, str):
        return FieldKind.STRING
    return None


def _is_str_key(key_type: Any) -> bool:
    base = supertype(unwrap_annotated(key_type))
    return isinstance(base, type) and issubclass(base, str)


def _compile_field(
    walk: _FieldWalk,
    annotation: Any,
    resolve_nested: Callable[[type], TypeMeta],
) -> list[FieldMeta]:
    tp = annotation
    while True:
        tp = unwrap_annotated(tp)
        if is_text_decodable(tp):
            walk.text_decodable = True

        optional, inner = unwrap_optional(tp)
        if optional:
            walk.count_optional()
            tp = inner
            continue

        kind = _scalar_kind(tp)
        if kind is not None:
            if walk.is_json:
                return [walk.blob(tp, kind)]
            if walk.text_decodable:
                kind = FieldKind.TEXT_DECODABLE
            return [walk.terminal(tp, kind)]

        is_seq, element = sequence_element(tp)
        if is_seq:
            if walk.is_json:
                return [walk.blob(tp)]
            if walk.is_sequence:
                raise UnsupportedType(
                    f"{walk.name}: sequences of sequences not supported, except of bytes"
                )
            if walk.is_mapping:
                raise UnsupportedType(f"{walk.name}: sequences inside mappings not supported")
            walk.is_sequence = True
            tp = element
            continue

        is_map, key_type, value_type = mapping_types(tp)
        if is_map:
            if walk.is_json:
                return [walk.blob(tp)]
            if walk.is_mapping:
                raise UnsupportedType(f"{walk.name}: maps to maps not supported")
            if walk.is_sequence:
                raise UnsupportedType(f"{walk.name}: mappings inside sequences not supported")
            if not _is_str_key(key_type):
                raise UnsupportedType(
                    f"invalid map key type {key_type!r} for {walk.resolved}: "
                    "only str map keys supported"
                )
            walk.is_mapping = True
            walk.key_type = unwrap_annotated(key_type)
            tp = value_type
            continue

        if is_record_type(tp):
            if walk.style.is_delimited:
                raise UnsupportedType(
                    f"{walk.name}: cannot use a record type with {walk.style.value}"
                )
            if walk.is_json:
                return [walk.blob(tp)]
            if walk.text_decodable:
                return [walk.terminal(tp, FieldKind.TEXT_DECODABLE)]
            if tp.__dataclass_params__.frozen:
                raise UnsupportedType(
                    f"{walk.name}: frozen record {tp.__qualname__} can only be decoded with json"
                )
            if walk.in_container:
                return [walk.terminal(tp, FieldKind.NESTED_RECORD)]
            nested = resolve_nested(tp)
            parent = walk.locator(tp)
            return [meta.nested_under(walk.resolved, parent) for meta in nested.fields.values()]

        if walk.is_json:
            return [walk.blob(tp)]
        if walk.text_decodable:
            return [walk.terminal(tp, FieldKind.TEXT_DECODABLE)]
        _log.debug("skipping %s: unsupported type %r", walk.name, tp)
        return []


def compile_record(
    record_type: Any,
    options: CompileOptions | None = None,
    *,
    resolve_nested: Callable[[type], TypeMeta] | None = None,
) -> TypeMeta:
    """
    Compile a dataclass into its TypeMeta.

    Args:
        record_type (type): Dataclass to analyze.
        options (CompileOptions | None): Tag label, name resolver and case policy.
        resolve_nested (Callable | None): Returns the TypeMeta of a nested record;
            the TypeCache passes its own lookup here so nested types are shared.
            Defaults to direct recursive compilation with cycle detection.

    Returns:
        TypeMeta: Immutable key → FieldMeta table.

    Raises:
        UnsupportedType: If ``record_type`` is not a dataclass or uses an unsupported shape.
        CounterOverflow: If Optional nesting exceeds the indirection counter.
    """
    if not is_record_type(record_type):
        raise UnsupportedType(f"type is not a dataclass: {record_type!r}")
    opts = options or CompileOptions()

    if resolve_nested is None:
        active: set[type] = {record_type}

        def resolve_nested(nested_type: type) -> TypeMeta:
            if nested_type in active:
                raise UnsupportedType(f"cyclic record type: {nested_type.__qualname__}")
            active.add(nested_type)
            try:
                return compile_record(nested_type, opts, resolve_nested=resolve_nested)
            finally:
                active.discard(nested_type)

    hints = record_hints(record_type)
    table: dict[str, FieldMeta] = {}
    for index, f in enumerate(dataclasses.fields(record_type)):
        if f.name.startswith("_"):
            continue
        tag_value = f.metadata.get(opts.tag, "")
        if not isinstance(tag_value, str):
            raise UnsupportedType(f"{f.name}: tag {opts.tag!r} must be a string")
        primary, _, style = parse_tag(tag_value)
        resolved = opts.name_resolver(f.name, primary)
        if not resolved or resolved == SKIP_NAME:
            _log.debug("skipping %s.%s", record_type.__qualname__, f.name)
            continue
        if not opts.case_sensitive:
            resolved = resolved.lower()

        walk = _FieldWalk(index, f.name, resolved, style)
        for meta in _compile_field(walk, hints.get(f.name, f.type), resolve_nested):
            if meta.resolved_name in table:
                _log.warning(
                    "duplicate key %r in %s; %s overrides the earlier field",
                    meta.resolved_name,
                    record_type.__qualname__,
                    f.name,
                )
            table[meta.resolved_name] = meta

    _log.debug("compiled %s: %s", record_type.__qualname__, sorted(table))
    return TypeMeta(record_type, table)
