"""
Assignment engine: populate dataclass instances from key/value pairs.

Provides Decoder, bound to DecoderSettings and a TypeCache, and the module-level
`unmarshal` that uses a shared default decoder.

Source of truth
- Compiled tables: kvdecoder.core.cache.TypeCache / kvdecoder.core.analyzer
- Value conversion: kvdecoder.core.scalars (intrinsic kinds, csv/ssv) and
  kvdecoder.core.serde (JSON blobs)
- Errors: kvdecoder.core.errors

Decode algorithm
- Pairs are consumed in order; directory markers and keys outside the prefix are skipped.
- Each remaining key must name a compiled field exactly, or have an ancestor naming a
  list or dict populated element by element; other keys are ignored.
- Containers of records group the *contiguous* run of pairs under one child
  segment and decode it recursively into a fresh element.

Notes
- Decoding is not transactional: on error, fields set so far stay set.
- Fields absent from the input keep their defaults.
"""

from __future__ import annotations

import dataclasses
import logging
from collections import deque
from collections.abc import Iterable
from typing import Any, Optional, TypeVar

from kvdecoder.core.cache import TypeCache
from kvdecoder.core.errors import InvalidTarget, ValueParseError
from kvdecoder.core.keys import ancestors, child_segment, is_directory_marker, normalize_prefix
from kvdecoder.core.meta import FieldKind, FieldLocator, FieldMeta, TypeMeta, ValueStyle
from kvdecoder.core.records import is_record_type, new_record
from kvdecoder.core.scalars import parse_scalar, split_csv, split_ssv
from kvdecoder.core.serde import decode_json
from kvdecoder.log import set_debug

from .config import DecoderSettings
from .pairs import KVPair

__all__ = [
    "Decoder",
    "default_decoder",
    "unmarshal",
]

_log = logging.getLogger(__name__)

T = TypeVar("T")

PairLike = KVPair | tuple[str, Any]


def _coerce_pairs(pairs: Iterable[PairLike] | None) -> deque[KVPair]:
    out: deque[KVPair] = deque()
    for item in pairs or ():
        out.append(item if isinstance(item, KVPair) else KVPair(*item))
    return out


def _match(meta: TypeMeta, key: str) -> FieldMeta | None:
    # Deeper keys only reach a field through a list or dict populated per element.
    for candidate in ancestors(key):
        field_meta = meta.get(candidate)
        if field_meta is None:
            continue
        if candidate == key:
            return field_meta
        loc = field_meta.terminal
        if loc.is_container and not loc.is_blob and not field_meta.style.is_delimited:
            return field_meta
        return None
    return None


class Decoder:
    """
    Decoder bound to specific settings and a TypeCache.

    Notes:
        - Settings are fixed for the lifetime of the decoder; compiled tables in the
          cache depend on them.
        - The cache may be shared between decoders; entries are keyed by settings.

    Examples:
        >>> from dataclasses import dataclass, field
        >>> from kvdecoder.decode import Decoder, KVPair
        >>> @dataclass
        ... class Inner:
        ...     x: int = field(default=0, metadata={"decoder": "x"})
        >>> @dataclass
        ... class Outer:
        ...     inner: Inner | None = field(default=None, metadata={"decoder": "inner"})
        >>> cfg = Outer()
        >>> Decoder().unmarshal("", [KVPair("inner/x", "42")], cfg)
        >>> cfg.inner.x
        42
    """

    def __init__(self, settings: DecoderSettings | None = None, *, cache: TypeCache | None = None) -> None:
        """
        Initialize a decoder.

        Args:
            settings (DecoderSettings | None): Case policy, tag label and name resolver.
            cache (TypeCache | None): Shared compiled-table cache; a private one is
                created when omitted.
        """
        self.settings = settings or DecoderSettings()
        self.cache = cache if cache is not None else TypeCache()
        self._options = self.settings.compile_options
        if self.settings.debug:
            set_debug(True)

    def _fold(self, s: str) -> str:
        return s if self.settings.case_sensitive else s.lower()

    def meta_for(self, record_type: type) -> TypeMeta:
        """Return the compiled table for ``record_type`` (compiling it on first use)."""
        return self.cache.get_or_compile(record_type, self._options)

    # ---------------------------------------------------------------------
    # Entry points
    # ---------------------------------------------------------------------
    def unmarshal(self, prefix: str, pairs: Iterable[PairLike] | None, target: Any) -> None:
        """
        Decode ``pairs`` found under ``prefix`` into ``target`` in place.

        Args:
            prefix (str): Key prefix the record lives under ("" for the root).
            pairs (Iterable[KVPair | tuple[str, Any]]): Ordered store entries.
            target (Any): Dataclass instance to populate.

        Raises:
            InvalidTarget: If ``target`` is not a mutable dataclass instance.
            UnsupportedType: If the target's type cannot be compiled.
            ValueParseError: If a value fails to parse (``.key`` names the entry).
            BlobDecodeError: If an embedded JSON value fails to decode.
        """
        if target is None or isinstance(target, type) or not dataclasses.is_dataclass(target):
            raise InvalidTarget()
        if type(target).__dataclass_params__.frozen:
            raise InvalidTarget(f"cannot decode into frozen dataclass {type(target).__qualname__}")

        meta = self.meta_for(type(target))
        prefix = self._fold(normalize_prefix(prefix))
        rest = _coerce_pairs(pairs)

        while rest:
            pair = rest.popleft()
            if is_directory_marker(pair.key):
                continue
            key = self._fold(pair.key)
            if not key.startswith(prefix):
                continue
            field_meta = _match(meta, key[len(prefix):])
            if field_meta is None:
                _log.debug("no field for key %r in %s", pair.key, type(target).__qualname__)
                continue
            self._assign(field_meta, pair, rest, target, prefix)

    def decode(self, record_type: type[T], prefix: str, pairs: Iterable[PairLike] | None) -> T:
        """
        Build a fresh ``record_type`` instance and decode ``pairs`` into it.

        Examples:
            >>> from dataclasses import dataclass
            >>> from kvdecoder.decode import Decoder
            >>> @dataclass
            ... class App:
            ...     name: str
            >>> Decoder().decode(App, "svc", [("svc/NAME", "api")])
            App(name='api')
        """
        if not is_record_type(record_type):
            raise InvalidTarget(f"not a dataclass type: {record_type!r}")
        target = new_record(record_type)
        self.unmarshal(prefix, pairs, target)
        return target

    # ---------------------------------------------------------------------
    # Field assignment
    # ---------------------------------------------------------------------
    def _assign(
        self,
        meta: FieldMeta,
        pair: KVPair,
        rest: deque[KVPair],
        record: Any,
        prefix: str,
    ) -> None:
        target = record
        # Intermediate records are created only when a leaf below them is set.
        for loc in meta.locators[:-1]:
            child = getattr(target, loc.name)
            if child is None:
                child = new_record(loc.element_type)
                setattr(target, loc.name, child)
            target = child

        loc = meta.terminal
        try:
            if loc.is_blob:
                blob_type = Optional[loc.element_type] if loc.pointer_depth else loc.element_type
                setattr(target, loc.name, decode_json(pair.raw, blob_type))
            elif meta.style.is_delimited:
                self._assign_delimited(meta, loc, pair, target)
            elif loc.is_container:
                self._assign_element(meta, loc, pair, rest, target, prefix)
            else:
                setattr(target, loc.name, parse_scalar(pair.raw, meta.kind, loc.element_type))
        except ValueParseError as exc:
            if exc.key is not None:
                raise
            raise exc.with_key(pair.key) from exc

    def _container(self, target: Any, loc: FieldLocator) -> Any:
        current = getattr(target, loc.name)
        if loc.is_mapping:
            if not isinstance(current, dict):
                current = {} if current is None else dict(current)
                setattr(target, loc.name, current)
        elif not isinstance(current, list):
            current = [] if current is None else list(current)
            setattr(target, loc.name, current)
        return current

    def _assign_delimited(self, meta: FieldMeta, loc: FieldLocator, pair: KVPair, target: Any) -> None:
        tokens = split_csv(pair.raw) if meta.style is ValueStyle.CSV else split_ssv(pair.raw)
        values = [parse_scalar(token.encode("utf-8"), meta.kind, loc.element_type) for token in tokens]
        self._container(target, loc).extend(values)

    def _assign_element(
        self,
        meta: FieldMeta,
        loc: FieldLocator,
        pair: KVPair,
        rest: deque[KVPair],
        target: Any,
        prefix: str,
    ) -> None:
        sub_prefix = prefix + meta.resolved_name + "/"
        child = child_segment(pair.key, sub_prefix)
        if child is None:
            _log.debug("key %r names container %s without an element", pair.key, loc.name)
            return

        if meta.kind is FieldKind.NESTED_RECORD:
            group_prefix = sub_prefix + self._fold(child) + "/"
            group = [pair]
            while rest and self._fold(rest[0].key).startswith(group_prefix):
                group.append(rest.popleft())
            value = new_record(loc.element_type)
            self.unmarshal(group_prefix, group, value)
        else:
            value = parse_scalar(pair.raw, meta.kind, loc.element_type)

        container = self._container(target, loc)
        if loc.is_mapping:
            container[parse_scalar(child.encode("utf-8"), FieldKind.STRING, loc.key_type)] = value
        else:
            container.append(value)


default_decoder = Decoder()


def unmarshal(prefix: str, pairs: Iterable[PairLike] | None, target: Any) -> None:
    """
    Decode ``pairs`` under ``prefix`` into ``target`` using the default decoder.

    Examples:
        >>> from dataclasses import dataclass
        >>> from kvdecoder.decode import unmarshal
        >>> @dataclass
        ... class App:
        ...     replicas: int = 1
        >>> app = App()
        >>> unmarshal("svc", [("svc/replicas", "3")], app)
        >>> app.replicas
        3
    """
    default_decoder.unmarshal(prefix, pairs, target)
