"""
Reflection helpers for dataclass records and their annotations.

Provides resolved type hints, Optional/Annotated unwrapping, container shape
detection and zero-value construction for the analyzer and the decoder.

Notes:
    - Record types are classes decorated with ``@dataclass``.
    - Annotations are resolved with ``typing.get_type_hints`` so modules using
      ``from __future__ import annotations`` work unchanged.
    - Zero values mirror what a field holds before any key populates it.
"""

from __future__ import annotations

import collections.abc
import dataclasses
import types
from datetime import timedelta
from functools import lru_cache
from typing import Annotated, Any, Union, get_args, get_origin, get_type_hints

from .errors import UnsupportedType
from .typing import TextDecodable

__all__ = [
    "is_record_type",
    "record_hints",
    "unwrap_annotated",
    "unwrap_optional",
    "sequence_element",
    "mapping_types",
    "supertype",
    "is_text_decodable",
    "new_record",
    "zero_value",
]

_SEQUENCE_ORIGINS = {
    list,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
}
_MAPPING_ORIGINS = {
    dict,
    collections.abc.Mapping,
    collections.abc.MutableMapping,
}


def is_record_type(tp: Any) -> bool:
    return isinstance(tp, type) and dataclasses.is_dataclass(tp)


@lru_cache(maxsize=None)
def record_hints(record_type: type) -> dict[str, Any]:
    """
    Resolve the annotations of a dataclass, including ``Annotated`` extras.

    Raises:
        UnsupportedType: If an annotation cannot be resolved (e.g., an undefined forward reference).
    """
    try:
        return get_type_hints(record_type, include_extras=True)
    except (NameError, TypeError) as exc:
        raise UnsupportedType(
            f"cannot resolve annotations of {record_type.__qualname__}: {exc}"
        ) from exc


def unwrap_annotated(tp: Any) -> Any:
    # typing.Annotated[T, ...] -> T
    while get_origin(tp) is Annotated:
        tp = get_args(tp)[0]
    return tp


def unwrap_optional(tp: Any) -> tuple[bool, Any]:
    """
    Peel one ``Optional`` layer.

    Returns:
        tuple[bool, Any]: ``(True, inner)`` when ``tp`` admits None, else ``(False, tp)``.
        A union of several non-None members keeps them together as ``Union[...]``.

    Examples:
        >>> unwrap_optional(int | None)
        (True, <class 'int'>)
        >>> unwrap_optional(int)
        (False, <class 'int'>)
    """
    tp = unwrap_annotated(tp)
    if get_origin(tp) not in (Union, types.UnionType):
        return False, tp
    args = get_args(tp)
    non_none = tuple(a for a in args if a is not type(None))  # noqa: E721
    if len(non_none) == len(args):
        return False, tp
    if len(non_none) == 1:
        return True, non_none[0]
    return True, Union[non_none]


def sequence_element(tp: Any) -> tuple[bool, Any]:
    """Return ``(True, element_type)`` for list-like annotations."""
    origin = get_origin(tp)
    if origin in _SEQUENCE_ORIGINS:
        args = get_args(tp)
        return True, (args[0] if args else Any)
    if tp is list:
        return True, Any
    return False, None


def mapping_types(tp: Any) -> tuple[bool, Any, Any]:
    """Return ``(True, key_type, value_type)`` for dict-like annotations."""
    origin = get_origin(tp)
    if origin in _MAPPING_ORIGINS:
        args = get_args(tp)
        if len(args) == 2:
            return True, args[0], args[1]
        return True, Any, Any
    if tp is dict:
        return True, Any, Any
    return False, None, None


def supertype(tp: Any) -> Any:
    """Follow ``NewType`` chains down to the runtime class."""
    while hasattr(tp, "__supertype__"):
        tp = tp.__supertype__
    return tp


def is_text_decodable(tp: Any) -> bool:
    return isinstance(tp, type) and issubclass(tp, TextDecodable)


def new_record(record_type: type) -> Any:
    """
    Instantiate a record with every field at its default or zero value.

    Fields with defaults or default factories keep them; required fields get the
    zero value of their annotation so ``__post_init__`` still runs.

    Examples:
        >>> from dataclasses import dataclass
        >>> @dataclass
        ... class Endpoint:
        ...     host: str
        ...     port: int = 80
        >>> new_record(Endpoint)
        Endpoint(host='', port=80)
    """
    hints = record_hints(record_type)
    kwargs: dict[str, Any] = {}
    for f in dataclasses.fields(record_type):
        if not f.init:
            continue
        if f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
            kwargs[f.name] = zero_value(hints.get(f.name, f.type))
    return record_type(**kwargs)


def zero_value(tp: Any) -> Any:
    """
    Zero value for an annotation: None for Optional, empty containers, 0, "" and so on.

    Examples:
        >>> zero_value(list[int]), zero_value(int | None), zero_value(str)
        ([], None, '')
    """
    optional, tp = unwrap_optional(tp)
    if optional:
        return None
    if sequence_element(tp)[0]:
        return []
    if mapping_types(tp)[0]:
        return {}
    if is_record_type(tp):
        return new_record(tp)
    base = supertype(tp)
    if not isinstance(base, type):
        return None
    if issubclass(base, timedelta):
        return timedelta(0)
    if issubclass(base, (bool, int, float, str, bytes, bytearray)):
        try:
            return base()
        except (TypeError, ValueError):
            # Enums have no empty member.
            return None
    return None
