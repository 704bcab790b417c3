"""
Key path helpers shared by the analyzer and the decoder.

Overview
- Keys are ``/``-separated paths such as ``service/db/port``.
- A prefix always ends with ``/`` (or is empty, matching every key).
- Directory markers are keys ending in ``/`` with no leaf.

Notes
- This module focuses solely on string manipulation of key paths; zero-IO.
"""

from __future__ import annotations

import posixpath
from collections.abc import Iterator

from .constants import SEPARATOR

__all__ = [
    "join_key",
    "normalize_prefix",
    "is_directory_marker",
    "ancestors",
    "child_segment",
]


def join_key(parent: str, child: str) -> str:
    """
    Join two key fragments into a clean path.

    Args:
        parent (str): Leading fragment (e.g., a field name).
        child (str): Trailing fragment (e.g., a nested field name).

    Returns:
        str: Joined path with duplicate separators and ``.`` segments removed.

    Examples:
        >>> join_key("outer", "inner/leaf")
        'outer/inner/leaf'
        >>> join_key("a/", "/b")
        'a/b'
    """
    joined = posixpath.normpath(posixpath.join(parent, child.lstrip(SEPARATOR)))
    return "" if joined == "." else joined


def normalize_prefix(prefix: str) -> str:
    """
    Ensure a non-empty prefix ends with the separator.

    Examples:
        >>> normalize_prefix("app")
        'app/'
        >>> normalize_prefix("app/")
        'app/'
        >>> normalize_prefix("")
        ''
    """
    if prefix and not prefix.endswith(SEPARATOR):
        return prefix + SEPARATOR
    return prefix


def is_directory_marker(key: str) -> bool:
    return key.endswith(SEPARATOR)


def ancestors(key: str) -> Iterator[str]:
    """
    Yield ``key`` and then each ancestor directory, longest first.

    Examples:
        >>> list(ancestors("a/b/c"))
        ['a/b/c', 'a/b', 'a']
    """
    while key:
        yield key
        key, _, _ = key.rpartition(SEPARATOR)


def child_segment(key: str, prefix: str) -> str | None:
    """
    Return the first path segment of ``key`` below ``prefix``.

    The prefix is counted in segments so the segment keeps the original case of
    ``key`` even when the prefix was folded.

    Args:
        key (str): Full store key.
        prefix (str): Separator-terminated prefix already known to match ``key``.

    Returns:
        str | None: The child segment, or None if ``key`` has nothing below ``prefix``.

    Examples:
        >>> child_segment("app/Servers/Web1/port", "app/servers/")
        'Web1'
        >>> child_segment("app/servers", "app/servers/") is None
        True
    """
    depth = prefix.count(SEPARATOR)
    parts = key.split(SEPARATOR)
    if len(parts) <= depth or not parts[depth]:
        return None
    return parts[depth]
