"""Tests for `kvdecoder.core.cache.TypeCache`."""

import threading
from dataclasses import dataclass, field

import pytest

from kvdecoder.core.analyzer import CompileOptions
from kvdecoder.core.cache import TypeCache
from kvdecoder.core.errors import UnsupportedType


@dataclass
class Inner:
    x: int = field(default=0, metadata={"decoder": "x"})


@dataclass
class Outer:
    inner: Inner | None = field(default=None, metadata={"decoder": "inner"})
    other: Inner = field(default_factory=Inner)


@dataclass
class Loop:
    again: "Loop | None" = None


def test_same_type_returns_same_table() -> None:
    cache = TypeCache()
    opts = CompileOptions()

    first = cache.get_or_compile(Outer, opts)
    second = cache.get_or_compile(Outer, opts)

    assert first is second
    assert sorted(first) == ["inner/x", "other/x"]


def test_nested_records_are_cached_too() -> None:
    cache = TypeCache()
    opts = CompileOptions()

    cache.get_or_compile(Outer, opts)

    assert len(cache) == 2
    assert cache.get(Inner, opts) is not None
    assert cache.get_or_compile(Inner, opts) is cache.get(Inner, opts)


def test_entries_are_keyed_by_options() -> None:
    cache = TypeCache()

    folded = cache.get_or_compile(Inner, CompileOptions())
    tagged = cache.get_or_compile(Inner, CompileOptions(tag="other"))

    assert folded is not tagged
    assert len(cache) == 2


def test_cycles_fail_and_leave_no_entry() -> None:
    cache = TypeCache()

    with pytest.raises(UnsupportedType, match="cyclic record type"):
        cache.get_or_compile(Loop, CompileOptions())

    assert cache.get(Loop, CompileOptions()) is None


def test_concurrent_first_use_publishes_one_table() -> None:
    cache = TypeCache()
    opts = CompileOptions()
    barrier = threading.Barrier(8)
    results = []

    def worker() -> None:
        barrier.wait()
        results.append(cache.get_or_compile(Outer, opts))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(results) == 8
    assert all(meta is results[0] for meta in results)
