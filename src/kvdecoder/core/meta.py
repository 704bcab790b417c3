"""
Compiled record metadata: field kinds, value styles, locators and type tables.

Defines the immutable structures the analyzer produces and the decoder consumes.

Responsibilities
- Enumerate the semantic kinds a decodable field can have (FieldKind).
- Enumerate how a raw value populates its field (ValueStyle).
- Describe one hop from a record to a field (FieldLocator).
- Describe one resolved, decodable key (FieldMeta) and a compiled record (TypeMeta).

Design principles
-----------------
1) Resolve once:
   - Every reflective decision (Optional depth, container shape, text
     decodability) is taken at compile time and frozen into a FieldLocator.
2) Flatten nested records:
   - A key like ``outer/inner/leaf`` maps to one FieldMeta whose locator chain
     steps through ``outer`` and ``inner`` records before reaching ``leaf``.
3) Immutable after publication:
   - TypeMeta exposes a read-only mapping; cached instances are shared by threads.

Examples
--------
>>> from kvdecoder.core.meta import FieldKind, ValueStyle
>>> FieldKind("duration") is FieldKind.DURATION
True
>>> ValueStyle.CSV.is_delimited
True
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from .keys import join_key

__all__ = [
    "FieldKind",
    "ValueStyle",
    "FieldLocator",
    "FieldMeta",
    "TypeMeta",
    "SCALAR_KINDS",
]


class FieldKind(Enum):
    """
    Semantic kind of a decodable field, distilled from its annotation.

    Notes:
        - NESTED_RECORD only appears on terminal locators (blob fields and record
          elements of sequences/mappings); plain nested records are flattened.
        - TEXT_DECODABLE overrides every other classification.
    """

    SIGNED_INTEGER = "signed_integer"
    UNSIGNED_INTEGER = "unsigned_integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    STRING = "string"
    BYTE_SEQUENCE = "byte_sequence"
    DURATION = "duration"
    IP_ADDRESS = "ip_address"
    IP_MASK = "ip_mask"
    NESTED_RECORD = "nested_record"
    TEXT_DECODABLE = "text_decodable"


# Kinds that csv/ssv tokens may be parsed into.
SCALAR_KINDS: frozenset[FieldKind] = frozenset(
    {
        FieldKind.SIGNED_INTEGER,
        FieldKind.UNSIGNED_INTEGER,
        FieldKind.FLOAT,
        FieldKind.BOOLEAN,
        FieldKind.STRING,
        FieldKind.BYTE_SEQUENCE,
        FieldKind.DURATION,
        FieldKind.IP_ADDRESS,
        FieldKind.IP_MASK,
    }
)


class ValueStyle(Enum):
    """How one raw value populates its field."""

    PLAIN = "plain"
    JSON = "json"
    CSV = "csv"
    SSV = "ssv"

    @property
    def is_delimited(self) -> bool:
        return self in (ValueStyle.CSV, ValueStyle.SSV)


@dataclass(frozen=True, slots=True)
class FieldLocator:
    """
    One hop from a record instance to one of its fields.

    Attributes:
        index (int): Position of the field in ``dataclasses.fields(record)``.
        name (str): Attribute name on the record.
        pointer_depth (int): Optional layers wrapping the field's own type.
        container_pointer_depth (int): Optional layers on the element type of a
            sequence or mapping.
        is_sequence (bool): The field is a list populated element by element.
        is_mapping (bool): The field is a str-keyed dict populated entry by entry.
        is_blob (bool): The raw value is decoded wholesale as JSON.
        element_type (Any): Type reached after stripping Optional and container layers
            (for blobs, the type at which classification stopped).
        text_decodable (bool): ``element_type`` exposes ``from_text``.
        key_type (Any): Key annotation of a mapping (``str`` or a subclass/NewType of it).
    """

    index: int
    name: str
    pointer_depth: int = 0
    container_pointer_depth: int = 0
    is_sequence: bool = False
    is_mapping: bool = False
    is_blob: bool = False
    element_type: Any = None
    text_decodable: bool = False
    key_type: Any = str

    @property
    def is_container(self) -> bool:
        return self.is_sequence or self.is_mapping


@dataclass(frozen=True, slots=True)
class FieldMeta:
    """
    One resolved key of a compiled record.

    Attributes:
        resolved_name (str): Key path relative to the record (folded unless case-sensitive).
        locators (tuple[FieldLocator, ...]): Chain from the root record to the terminal field.
        kind (FieldKind): Semantic kind of the terminal value (or container element).
        style (ValueStyle): How the raw value populates the field.
    """

    resolved_name: str
    locators: tuple[FieldLocator, ...]
    kind: FieldKind
    style: ValueStyle = ValueStyle.PLAIN

    def __post_init__(self) -> None:
        if not self.locators:
            raise ValueError(f"FieldMeta {self.resolved_name!r} requires at least one locator")

    @property
    def terminal(self) -> FieldLocator:
        return self.locators[-1]

    def nested_under(self, name: str, locator: FieldLocator) -> FieldMeta:
        """Re-root this entry beneath a parent record field."""
        return FieldMeta(
            resolved_name=join_key(name, self.resolved_name),
            locators=(locator, *self.locators),
            kind=self.kind,
            style=self.style,
        )


@dataclass(frozen=True)
class TypeMeta:
    """
    Compiled schema for one record type.

    Attributes:
        record_type (type): The dataclass this table was compiled from.
        fields (Mapping[str, FieldMeta]): Read-only mapping of resolved name to metadata.

    Examples:
        >>> from kvdecoder.core.meta import TypeMeta
        >>> meta = TypeMeta(object, {})
        >>> len(meta), "x" in meta
        (0, False)
    """

    record_type: Any
    fields: Mapping[str, FieldMeta] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    def __contains__(self, name: object) -> bool:
        return name in self.fields

    def __len__(self) -> int:
        return len(self.fields)

    def __iter__(self) -> Iterator[str]:
        return iter(self.fields)

    def get(self, name: str) -> FieldMeta | None:
        return self.fields.get(name)
