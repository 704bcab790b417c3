"""
Intrinsic value parsing: raw store bytes to typed scalars.

Provides the pure conversion used for every non-record, non-blob field and for
each token of a csv/ssv list.

Parsing rules
- Integers: strict base-10 (``[+-]?[0-9]+``; no sign for unsigned), range-checked
  against the width NewTypes in kvdecoder.core.typing.
- Floats: decimal literals plus ``inf``/``nan``; out-of-range literals fail.
- Booleans: ``1 t T TRUE true True`` and ``0 f F FALSE false False``.
- Strings: UTF-8; bytes: verbatim.
- Subclasses of str/int/float/bytes (including StrEnum/IntEnum) are built
  through their own class; a rejected value is a parse error.
- Durations: ``[-+]?(<number><unit>)+`` with units ns, us, µs, μs, ms, s, m, h,
  or a bare ``0``.
- IP addresses/masks: dotted or colon notation; empty input yields None.

Notes:
    - All failures raise kvdecoder.core.errors.ValueParseError chained to the cause.
    - Zero-IO; stdlib only.
"""

from __future__ import annotations

import csv
import io
import ipaddress
import math
import re
from datetime import timedelta
from typing import Any, Final

from .errors import ValueParseError
from .meta import FieldKind
from .records import supertype, zero_value
from .typing import INT_RANGES, IPMask

__all__ = [
    "parse_scalar",
    "parse_duration",
    "split_csv",
    "split_ssv",
]

_SIGNED_RE = re.compile(r"[+-]?[0-9]+")
_UNSIGNED_RE = re.compile(r"[0-9]+")
_TRUE_LITERALS: Final[frozenset[str]] = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_LITERALS: Final[frozenset[str]] = frozenset({"0", "f", "F", "FALSE", "false", "False"})

_NANOSECOND: Final[int] = 1
_MICROSECOND: Final[int] = 1_000 * _NANOSECOND
_MILLISECOND: Final[int] = 1_000 * _MICROSECOND
_SECOND: Final[int] = 1_000 * _MILLISECOND
_MINUTE: Final[int] = 60 * _SECOND
_HOUR: Final[int] = 60 * _MINUTE

_DURATION_UNITS: Final[dict[str, int]] = {
    "ns": _NANOSECOND,
    "us": _MICROSECOND,
    "µs": _MICROSECOND,  # micro sign
    "μs": _MICROSECOND,  # greek mu
    "ms": _MILLISECOND,
    "s": _SECOND,
    "m": _MINUTE,
    "h": _HOUR,
}
_DURATION_PART_RE = re.compile(r"([0-9]*)(?:\.([0-9]*))?([^0-9.]*)")
_MAX_DURATION: Final[int] = 2**63 - 1


def _text(raw: bytes) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ValueParseError(f"value is not valid UTF-8: {raw!r}") from exc


def _parse_int(text: str, target_type: Any, *, unsigned: bool) -> int:
    pattern = _UNSIGNED_RE if unsigned else _SIGNED_RE
    if not pattern.fullmatch(text):
        label = "unsigned integer" if unsigned else "integer"
        raise ValueParseError(f"invalid {label} syntax: {text!r}")
    value = int(text)
    bounds = INT_RANGES.get(target_type)
    if bounds is not None and not bounds[0] <= value <= bounds[1]:
        raise ValueParseError(
            f"value {value} out of range [{bounds[0]}, {bounds[1]}] for {target_type.__name__}"
        )
    return value


def _parse_float(text: str) -> float:
    if not text or text != text.strip() or "_" in text:
        raise ValueParseError(f"invalid float syntax: {text!r}")
    try:
        value = float(text)
    except ValueError as exc:
        raise ValueParseError(f"invalid float syntax: {text!r}") from exc
    if math.isinf(value) and "inf" not in text.lower():
        raise ValueParseError(f"float value out of range: {text!r}")
    return value


def _parse_bool(text: str) -> bool:
    if text in _TRUE_LITERALS:
        return True
    if text in _FALSE_LITERALS:
        return False
    raise ValueParseError(f"invalid boolean syntax: {text!r}")


def parse_duration(text: str) -> int:
    """
    Parse a duration literal into integer nanoseconds.

    Args:
        text (str): Literal such as ``"30s"``, ``"1h15m"``, ``"-1.5ms"`` or ``"0"``.

    Returns:
        int: Signed nanosecond count.

    Raises:
        ValueParseError: On syntax errors, unknown units or values beyond the 64-bit range.

    Examples:
        >>> parse_duration("30s")
        30000000000
        >>> parse_duration("1h1m")
        3660000000000
        >>> parse_duration("-1.5us")
        -1500
    """
    original = text
    sign = 1
    if text[:1] in ("-", "+"):
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    if text == "0":
        return 0
    if not text:
        raise ValueParseError(f"invalid duration: {original!r}")

    total = 0
    pos = 0
    while pos < len(text):
        match = _DURATION_PART_RE.match(text, pos)
        whole, frac, unit = match.group(1), match.group(2), match.group(3)
        if not whole and not frac:
            raise ValueParseError(f"invalid duration: {original!r}")
        if not unit:
            raise ValueParseError(f"missing unit in duration: {original!r}")
        scale = _DURATION_UNITS.get(unit)
        if scale is None:
            raise ValueParseError(f"unknown unit {unit!r} in duration: {original!r}")
        part = int(whole or "0") * scale
        if frac:
            part += int(frac) * scale // 10 ** len(frac)
        total += part
        pos = match.end()

    if total > _MAX_DURATION:
        raise ValueParseError(f"invalid duration: {original!r}")
    return sign * total


def _parse_ip(text: str, target_type: Any) -> Any:
    if not text:
        return None
    try:
        address = ipaddress.ip_address(text)
    except ValueError as exc:
        raise ValueParseError(f"invalid address: {text}") from exc
    if target_type is IPMask:
        return IPMask(address.packed)
    if isinstance(target_type, type) and not isinstance(address, target_type):
        raise ValueParseError(f"address {text} is not an {target_type.__name__}")
    return address


_BUILTIN_SCALARS: Final[tuple[type, ...]] = (str, int, float, bool, bytes, bytearray)


def _through_subclass(value: Any, target_type: Any) -> Any:
    # Subclasses (StrEnum, IntEnum, class Port(int)) get an instance of their own class.
    base = supertype(target_type)
    if not isinstance(base, type) or base in _BUILTIN_SCALARS or isinstance(value, base):
        return value
    try:
        return base(value)
    except (ValueError, TypeError) as exc:
        raise ValueParseError(f"invalid {base.__name__} value: {value!r}") from exc


def parse_scalar(raw: bytes, kind: FieldKind, target_type: Any) -> Any:
    """
    Convert raw store bytes into a value of ``kind``.

    Args:
        raw (bytes): Value as stored.
        kind (FieldKind): Semantic kind compiled for the field (or element).
        target_type (Any): Peeled annotation; selects width bounds, bytes vs
            bytearray, Duration vs timedelta and the text-decodable class.

    Returns:
        Any: The parsed value. Kinds without a raw conversion yield the zero value.

    Raises:
        ValueParseError: If ``raw`` does not parse as ``kind``.

    Examples:
        >>> from kvdecoder.core.meta import FieldKind
        >>> parse_scalar(b"-42", FieldKind.SIGNED_INTEGER, int)
        -42
        >>> parse_scalar(b"True", FieldKind.BOOLEAN, bool)
        True
    """
    base = supertype(target_type)
    if kind is FieldKind.BYTE_SEQUENCE:
        data = bytearray(raw) if isinstance(base, type) and issubclass(base, bytearray) else bytes(raw)
        return _through_subclass(data, target_type)
    if kind is FieldKind.TEXT_DECODABLE:
        try:
            return target_type.from_text(bytes(raw))
        except ValueParseError:
            raise
        except (ValueError, TypeError) as exc:
            raise ValueParseError(
                f"{getattr(target_type, '__name__', target_type)}.from_text failed: {exc}"
            ) from exc

    text = _text(raw)
    if kind is FieldKind.STRING:
        return _through_subclass(text, target_type)
    if kind is FieldKind.SIGNED_INTEGER:
        return _through_subclass(_parse_int(text, target_type, unsigned=False), target_type)
    if kind is FieldKind.UNSIGNED_INTEGER:
        return _parse_int(text, target_type, unsigned=True)
    if kind is FieldKind.FLOAT:
        return _through_subclass(_parse_float(text), target_type)
    if kind is FieldKind.BOOLEAN:
        return _parse_bool(text)
    if kind is FieldKind.DURATION:
        nanos = parse_duration(text)
        if isinstance(base, type) and issubclass(base, timedelta):
            return timedelta(microseconds=nanos / _MICROSECOND)
        return nanos
    if kind in (FieldKind.IP_ADDRESS, FieldKind.IP_MASK):
        return _parse_ip(text, target_type)
    return zero_value(target_type)


def split_csv(raw: bytes) -> list[str]:
    """
    Split one comma-separated record, honoring double-quote escaping.

    Examples:
        >>> split_csv(b'"x, y",z')
        ['x, y', 'z']
        >>> split_csv(b"")
        []
    """
    try:
        return next(csv.reader(io.StringIO(_text(raw)), strict=True), [])
    except csv.Error as exc:
        raise ValueParseError(f"invalid comma-separated value: {exc}") from exc


def split_ssv(raw: bytes) -> list[str]:
    """
    Split on runs of whitespace.

    Examples:
        >>> split_ssv(b"1 2  3")
        ['1', '2', '3']
    """
    return _text(raw).split()
