"""
Typing aliases recognized by the analyzer as dedicated scalar kinds.

Provides NewTypes for fixed-width integers, durations and IP masks, an alias for
IP addresses, and the TextDecodable protocol for types that parse themselves
from raw bytes. This module contains no runtime logic and is zero-IO.

Notes:
    - Plain ``int`` is signed and unbounded; use the width NewTypes to get range checks.
    - ``Duration`` holds integer nanoseconds; ``datetime.timedelta`` fields are also accepted.
    - ``IPMask`` holds the packed bytes of a dotted/colon address such as ``255.255.255.0``.

Examples:
    Use aliases in record annotations.

    >>> from dataclasses import dataclass
    >>> from kvdecoder.core.typing import Duration, Uint16
    >>> @dataclass
    ... class Listener:
    ...     port: Uint16 = Uint16(0)
    ...     timeout: Duration = Duration(0)
    >>> Listener().port
    0
"""

from __future__ import annotations

from ipaddress import IPv4Address, IPv6Address
from typing import Any, NewType, Protocol, Union, runtime_checkable

__all__ = [
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "Uint",
    "Uint8",
    "Uint16",
    "Uint32",
    "Uint64",
    "Duration",
    "IPAddress",
    "IPMask",
    "TextDecodable",
    "INT_RANGES",
    "UNSIGNED_TYPES",
]

Int8 = NewType("Int8", int)
Int16 = NewType("Int16", int)
Int32 = NewType("Int32", int)
Int64 = NewType("Int64", int)
Uint = NewType("Uint", int)
Uint8 = NewType("Uint8", int)
Uint16 = NewType("Uint16", int)
Uint32 = NewType("Uint32", int)
Uint64 = NewType("Uint64", int)

# Count of nanoseconds, parsed from literals like "1h30m" or "250ms".
Duration = NewType("Duration", int)

IPAddress = Union[IPv4Address, IPv6Address]
IPMask = NewType("IPMask", bytes)

# Inclusive bounds per width NewType; plain int is unbounded.
INT_RANGES: dict[Any, tuple[int, int]] = {
    Int8: (-(2**7), 2**7 - 1),
    Int16: (-(2**15), 2**15 - 1),
    Int32: (-(2**31), 2**31 - 1),
    Int64: (-(2**63), 2**63 - 1),
    Uint: (0, 2**64 - 1),
    Uint8: (0, 2**8 - 1),
    Uint16: (0, 2**16 - 1),
    Uint32: (0, 2**32 - 1),
    Uint64: (0, 2**64 - 1),
}

UNSIGNED_TYPES: frozenset[Any] = frozenset({Uint, Uint8, Uint16, Uint32, Uint64})


@runtime_checkable
class TextDecodable(Protocol):
    """
    Capability of a type to build itself from a raw store value.

    A type exposing a ``from_text`` classmethod is decoded by calling it with the
    raw bytes, taking priority over intrinsic scalar and record handling. The
    analyzer detects the capability with ``issubclass(tp, TextDecodable)``.

    Examples:
        >>> class Pair:
        ...     def __init__(self, left: str = "", right: str = "") -> None:
        ...         self.left, self.right = left, right
        ...     @classmethod
        ...     def from_text(cls, data: bytes) -> "Pair":
        ...         left, right = data.decode().split(":")
        ...         return cls(left, right)
        >>> issubclass(Pair, TextDecodable)
        True
        >>> Pair.from_text(b"a:b").right
        'b'
    """

    @classmethod
    def from_text(cls, data: bytes) -> Any: ...
