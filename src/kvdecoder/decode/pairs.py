"""
Key/value pair model and adapters from common store payloads.

Purpose
- Provide the in-memory pair type the decoder consumes (KVPair).
- Adapt Consul KV listings (HTTP JSON with base64 values, or client-library
  dicts with bytes values) and plain mappings into ordered pair lists.

Notes
- Fetching from a store is the caller's concern; nothing here performs IO.
- Order is preserved: it determines element order for sequence fields.
"""

from __future__ import annotations

import base64
import binascii
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from kvdecoder.core.errors import ValueParseError
from kvdecoder.core.keys import join_key

__all__ = [
    "KVPair",
    "pairs_from_consul",
    "pairs_from_mapping",
]


def _render(value: Any) -> bytes | str | None:
    # Non-text scalars are stored as their text form.
    if value is None or isinstance(value, (bytes, bytearray, str)):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass(frozen=True)
class KVPair:
    """
    One store entry.

    Attributes:
        key (str): Full ``/``-separated key.
        value (bytes | str | None): Stored value; str is encoded as UTF-8 and None
            (a key with no value) reads as empty bytes. Any other object is
            rendered with ``str()``, booleans as ``"true"``/``"false"``.

    Examples:
        >>> KVPair("app/port", "8080").raw
        b'8080'
        >>> KVPair("app/port", 8080).raw
        b'8080'
        >>> KVPair("app/", None).raw
        b''
    """

    key: str
    value: Any = None

    @property
    def raw(self) -> bytes:
        value = _render(self.value)
        if value is None:
            return b""
        if isinstance(value, str):
            return value.encode("utf-8")
        return bytes(value)


def _consul_value(item: Mapping[str, Any]) -> bytes | None:
    value = item.get("Value")
    if value is None or isinstance(value, (bytes, bytearray)):
        return value
    if isinstance(value, str):
        try:
            return base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueParseError(f"invalid base64 value for {item.get('Key')!r}") from exc
    raise ValueParseError(f"unsupported value type {type(value).__name__} for {item.get('Key')!r}")


def pairs_from_consul(items: Iterable[Mapping[str, Any]] | None) -> list[KVPair]:
    """
    Convert a Consul KV listing into KVPairs, preserving order.

    Accepts both the raw HTTP API shape (``GET /v1/kv/<prefix>?recurse``: ``Value``
    is base64 text) and client-library dicts where ``Value`` is already bytes.

    Args:
        items: Iterable of mappings with ``Key`` and ``Value``; None (no keys) yields [].

    Returns:
        list[KVPair]

    Raises:
        ValueParseError: If a ``Value`` is neither bytes, base64 text nor null.

    Examples:
        >>> pairs_from_consul([{"Key": "app/port", "Value": "ODA4MA=="}])
        [KVPair(key='app/port', value=b'8080')]
    """
    if items is None:
        return []
    return [KVPair(str(item["Key"]), _consul_value(item)) for item in items]


def pairs_from_mapping(mapping: Mapping[str, Any], prefix: str = "") -> list[KVPair]:
    """
    Build KVPairs from a flat mapping of relative keys to values.

    Non-bytes, non-str values are rendered with ``str()``; booleans become
    ``"true"``/``"false"``.

    Examples:
        >>> pairs_from_mapping({"port": 8080, "debug": True}, prefix="app")
        [KVPair(key='app/port', value='8080'), KVPair(key='app/debug', value='true')]
    """
    pairs: list[KVPair] = []
    for key, value in mapping.items():
        full = join_key(prefix, key) if prefix else key
        pairs.append(KVPair(full, _render(value)))
    return pairs
