"""
Tag grammar and key-path defaults shared by the analyzer and the decoder.

Defines the default struct-tag label, the recognized tag modifiers, the skip
sentinel and the key path separator. This module is zero-IO and uses only the
Python standard library.

Notes:
    - Tag strings live in ``dataclasses.field(metadata={DEFAULT_TAG: "..."})`` and
      follow ``"<name>[,<modifier>...]"``.
    - ``MAX_INDIRECTION`` mirrors an 8-bit counter; deeper Optional nesting is a
      compile-time fault.
"""

from __future__ import annotations

from typing import Final

__all__ = [
    "DEFAULT_TAG",
    "TAG_JSON",
    "TAG_CSV",
    "TAG_SSV",
    "SKIP_NAME",
    "SEPARATOR",
    "MAX_INDIRECTION",
    "ENV_PREFIX",
]

# Metadata key read from dataclass fields unless a decoder overrides it.
DEFAULT_TAG: Final[str] = "decoder"

# Tag modifiers following the primary name.
TAG_JSON: Final[str] = "json"
TAG_CSV: Final[str] = "csv"
TAG_SSV: Final[str] = "ssv"

# A resolved name equal to this (or empty) removes the field from the schema.
SKIP_NAME: Final[str] = "-"

# Key path separator used by the store.
SEPARATOR: Final[str] = "/"

# Indirection counters are 8-bit wide.
MAX_INDIRECTION: Final[int] = 255

# Environment variable prefix consumed by DecoderSettings.from_env().
ENV_PREFIX: Final[str] = "KVDECODER_"
