"""
Core package for kvdecoder (tag grammar, type analysis, metadata, scalar parsing).

## Contracts (single source of truth)
- Constants: default tag label, modifiers, skip sentinel, separator.
- Meta: FieldKind/ValueStyle enums and the FieldLocator/FieldMeta/TypeMeta structures.
- Analyzer: compiles a dataclass into a flat key → FieldMeta table.
- Cache: thread-safe memoization of compiled tables.
- Scalars/Serde: raw bytes to typed values (intrinsic kinds and JSON blobs).
- Typing: width NewTypes, Duration, IPAddress/IPMask, TextDecodable.

## Notes
- Zero-IO policy: stdlib + pydantic only.
- Record types are dataclasses; tags live in ``field(metadata={"decoder": ...})``.

## Downstream usage
- kvdecoder.decode: walks key/value pairs against a TypeMeta and populates instances.

## Examples
```python
from dataclasses import dataclass, field
from kvdecoder.core.analyzer import CompileOptions
from kvdecoder.core.cache import TypeCache

@dataclass
class Inner:
    x: int = field(default=0, metadata={"decoder": "x"})

@dataclass
class Outer:
    inner: Inner | None = field(default=None, metadata={"decoder": "inner"})

meta = TypeCache().get_or_compile(Outer, CompileOptions())
list(meta)  # ['inner/x']
```
"""

from __future__ import annotations

from .analyzer import CompileOptions, compile_record, default_name_resolver
from .cache import TypeCache
from .errors import (
    BlobDecodeError,
    CounterOverflow,
    DecodeError,
    InvalidTarget,
    UnsupportedType,
    ValueParseError,
)
from .meta import FieldKind, FieldLocator, FieldMeta, TypeMeta, ValueStyle

__all__ = [
    "CompileOptions",
    "compile_record",
    "default_name_resolver",
    "TypeCache",
    "DecodeError",
    "InvalidTarget",
    "UnsupportedType",
    "ValueParseError",
    "BlobDecodeError",
    "CounterOverflow",
    "FieldKind",
    "FieldLocator",
    "FieldMeta",
    "TypeMeta",
    "ValueStyle",
]
