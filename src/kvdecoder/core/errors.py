"""
Exception types raised while compiling record metadata and decoding pairs.

Provides typed exceptions for decoder failures:
- InvalidTarget when the decode target is not a dataclass instance.
- UnsupportedType for schema shapes the analyzer cannot compile.
- ValueParseError when a raw value does not parse as its field kind.
- BlobDecodeError when an embedded JSON value fails to decode.
- CounterOverflow for pathological Optional nesting.

Notes:
    - All errors derive from DecodeError (a ValueError) so callers can catch one type.
    - Parse errors keep the originating exception as ``__cause__`` and record the key.

Examples:
    Catch any decoder failure.

    >>> from kvdecoder.core.errors import DecodeError, ValueParseError
    >>> try:
    ...     raise ValueParseError("not an integer: 'x'", key="app/port")
    ... except DecodeError as e:
    ...     e.key
    'app/port'
"""

from __future__ import annotations

__all__ = [
    "DecodeError",
    "InvalidTarget",
    "UnsupportedType",
    "ValueParseError",
    "BlobDecodeError",
    "CounterOverflow",
]


class DecodeError(ValueError):
    """Base class for every failure raised by kvdecoder."""


class InvalidTarget(DecodeError, TypeError):
    """The decode target is not a dataclass instance."""

    def __init__(self, message: str = "invalid value passed: must be a dataclass instance") -> None:
        super().__init__(message)


class UnsupportedType(DecodeError, TypeError):
    """A record type uses a shape the analyzer cannot compile.

    Examples:
        - list[list[int]] or dict[str, dict[str, int]]
        - dict[int, str] (only str keys are supported)
        - a csv/ssv modifier on a non-sequence field or on a record
    """


class ValueParseError(DecodeError):
    """A raw value failed to parse as its field kind.

    Attributes:
        key (str | None): Store key whose value failed, when known.
    """

    def __init__(self, message: str, *, key: str | None = None) -> None:
        super().__init__(message if key is None else f"{key}: {message}")
        self.key = key
        self.detail = message

    def with_key(self, key: str) -> ValueParseError:
        """Return a copy of this error bound to the store key being decoded."""
        return type(self)(self.detail, key=key)


class BlobDecodeError(ValueParseError):
    """An embedded JSON value failed to decode into its field type."""


class CounterOverflow(UnsupportedType):
    """Optional nesting exceeded the 8-bit indirection counter."""
