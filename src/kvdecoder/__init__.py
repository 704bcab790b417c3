"""
kvdecoder: decode path-keyed configuration stores into typed dataclasses.

Keys such as ``service/db/port`` map onto nested dataclass fields the way a JSON
or YAML unmarshaler maps nested documents. Record types are compiled once into
a flat key table (kvdecoder.core) and then populated from ordered key/value
pairs (kvdecoder.decode).

## Supported field types
- int (and Int8…Int64, Uint…Uint64), float, bool, str, bytes/bytearray
- Duration (nanoseconds) and datetime.timedelta, parsed from literals like ``1h30m``
- IPv4Address/IPv6Address/IPAddress and IPMask
- nested dataclasses (a store folder of the same name)
- list[T] (a folder whose values are appended in key order, or one csv/ssv value)
- dict[str, T] (a folder whose child names become keys)
- any annotation pydantic can validate, with the ``json`` modifier
- any class with a ``from_text`` classmethod

## Struct tags
```python
@dataclass
class Foo:
    # populate from key "whatever"
    field1: str = field(default="", metadata={"decoder": "whatever"})
    # never populated
    field2: str = field(default="", metadata={"decoder": "-"})
    # folder "field3"; child keys become dict keys
    field3: dict[str, str] = field(default_factory=dict)
    # folder "field4"; values appended in input order
    field4: list[str] = field(default_factory=list)
    # value decoded as JSON
    field5: Bar | None = field(default=None, metadata={"decoder": "field5,json"})
    # folder "field6" holding Bar's keys
    field6: Bar | None = field(default=None, metadata={"decoder": "field6"})
```

Names match case-insensitively unless DecoderSettings(case_sensitive=True).
"""

from __future__ import annotations

from .core.analyzer import default_name_resolver
from .core.cache import TypeCache
from .core.errors import (
    BlobDecodeError,
    CounterOverflow,
    DecodeError,
    InvalidTarget,
    UnsupportedType,
    ValueParseError,
)
from .core.typing import (
    Duration,
    Int8,
    Int16,
    Int32,
    Int64,
    IPAddress,
    IPMask,
    TextDecodable,
    Uint,
    Uint8,
    Uint16,
    Uint32,
    Uint64,
)
from .decode import (
    Decoder,
    DecoderSettings,
    KVPair,
    default_decoder,
    pairs_from_consul,
    pairs_from_mapping,
    unmarshal,
)
from .log import set_debug

__all__ = [
    "Decoder",
    "DecoderSettings",
    "KVPair",
    "TypeCache",
    "default_decoder",
    "default_name_resolver",
    "unmarshal",
    "pairs_from_consul",
    "pairs_from_mapping",
    "set_debug",
    "DecodeError",
    "InvalidTarget",
    "UnsupportedType",
    "ValueParseError",
    "BlobDecodeError",
    "CounterOverflow",
    "Duration",
    "IPAddress",
    "IPMask",
    "TextDecodable",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "Uint",
    "Uint8",
    "Uint16",
    "Uint32",
    "Uint64",
]
