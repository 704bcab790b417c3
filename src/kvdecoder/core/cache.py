"""
Memoized TypeMeta storage shared by decoders.

Concurrency contract
- Published entries are immutable and read without locking.
- A miss takes the cache lock, re-checks, compiles the record (nested records
  included, under the same lock acquisition) and publishes the results.
- Entries are never evicted.

Notes
- Entries are keyed by (record type, CompileOptions); two decoders with different
  tags or name resolvers can share a cache without seeing each other's tables.
- Each Decoder owns a cache unless one is injected; tests instantiate isolated caches.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from .analyzer import CompileOptions, compile_record
from .errors import UnsupportedType
from .meta import TypeMeta

__all__ = ["TypeCache"]

_log = logging.getLogger(__name__)

_CacheKey = tuple[Any, CompileOptions]


class TypeCache:
    """
    Thread-safe, grow-only mapping from record type to compiled TypeMeta.

    Examples:
        >>> from dataclasses import dataclass
        >>> from kvdecoder.core.analyzer import CompileOptions
        >>> from kvdecoder.core.cache import TypeCache
        >>> @dataclass
        ... class App:
        ...     name: str = ""
        >>> cache = TypeCache()
        >>> opts = CompileOptions()
        >>> cache.get_or_compile(App, opts) is cache.get_or_compile(App, opts)
        True
    """

    def __init__(self) -> None:
        self._entries: dict[_CacheKey, TypeMeta] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, record_type: Any, options: CompileOptions) -> TypeMeta | None:
        return self._entries.get((record_type, options))

    def get_or_compile(self, record_type: Any, options: CompileOptions) -> TypeMeta:
        """
        Return the cached TypeMeta for ``record_type``, compiling it on first use.

        Raises:
            UnsupportedType: If the record (or a nested record) cannot be compiled.
        """
        meta = self._entries.get((record_type, options))
        if meta is not None:
            return meta
        with self._lock:
            return self._compile_locked(record_type, options, set())

    def _compile_locked(
        self, record_type: Any, options: CompileOptions, active: set[Any]
    ) -> TypeMeta:
        # Caller holds self._lock; nested records recurse here without re-locking.
        key = (record_type, options)
        meta = self._entries.get(key)
        if meta is not None:
            return meta
        if record_type in active:
            raise UnsupportedType(f"cyclic record type: {record_type.__qualname__}")
        active.add(record_type)
        try:
            meta = compile_record(
                record_type,
                options,
                resolve_nested=lambda nested: self._compile_locked(nested, options, active),
            )
        finally:
            active.discard(record_type)
        self._entries[key] = meta
        _log.debug("cached %s (%d keys)", getattr(record_type, "__qualname__", record_type), len(meta))
        return meta
