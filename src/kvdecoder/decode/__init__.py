"""
kvdecoder.decode: populate dataclasses from hierarchical key/value pairs.

## Responsibilities
- Walk ordered key/value pairs, match each key (or an ancestor) to a compiled field
  and assign typed values into a caller-owned dataclass instance.
- Recurse into sequences and mappings of records, grouping contiguous pairs per element.
- Carry per-decoder configuration (case policy, tag label, name resolver).

## Public API
- DecoderSettings: configuration (defaults from kvdecoder.core.constants; env/TOML loaders).
- Decoder: engine bound to settings and a TypeCache.
- KVPair, pairs_from_consul, pairs_from_mapping: pair model and adapters.
- unmarshal: decode with the shared default decoder.

## Import DAG discipline
- Depends only on stdlib, kvdecoder.core.* and kvdecoder.log.

## Examples
```python
from dataclasses import dataclass, field
from kvdecoder.decode import Decoder, DecoderSettings, pairs_from_mapping

@dataclass
class Database:
    host: str = ""
    port: int = 5432
    replicas: list[str] = field(default_factory=list, metadata={"decoder": ",csv"})

db = Database()
Decoder(DecoderSettings.load()).unmarshal(
    "service/db",
    pairs_from_mapping({"host": "db1", "replicas": "db2,db3"}, prefix="service/db"),
    db,
)
```
"""

from __future__ import annotations

from .config import DecoderSettings
from .decoder import Decoder, default_decoder, unmarshal
from .pairs import KVPair, pairs_from_consul, pairs_from_mapping

__all__ = [
    "DecoderSettings",
    "Decoder",
    "default_decoder",
    "unmarshal",
    "KVPair",
    "pairs_from_consul",
    "pairs_from_mapping",
]
