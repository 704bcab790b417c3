"""
JSON decoding for blob fields (``,json`` tag modifier).

Provides `decode_json`, which validates a raw JSON document straight into the
field's annotation (dataclasses, pydantic models, lists, dicts, scalars) using a
pydantic ``TypeAdapter``. Adapters are built once per annotation and reused.

Notes:
    - Validation runs in pydantic's lax mode, so ``"5"`` decodes into an ``int`` field
      the way JSON-shaped config usually expects.
    - Failures raise BlobDecodeError chained to the pydantic ValidationError.
    - Zero-IO.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from pydantic import PydanticSchemaGenerationError, TypeAdapter, ValidationError

from .errors import BlobDecodeError, UnsupportedType

__all__ = [
    "json_adapter",
    "decode_json",
]


@lru_cache(maxsize=None)
def json_adapter(target_type: Any) -> TypeAdapter[Any]:
    """
    Return the cached TypeAdapter for an annotation.

    Raises:
        UnsupportedType: If pydantic cannot build a schema for the annotation.
    """
    try:
        return TypeAdapter(target_type)
    except PydanticSchemaGenerationError as exc:
        raise UnsupportedType(f"cannot decode JSON into {target_type!r}: {exc}") from exc


def decode_json(raw: bytes, target_type: Any) -> Any:
    """
    Decode a raw JSON document into ``target_type``.

    Args:
        raw (bytes): JSON text as stored.
        target_type (Any): Annotation of the blob field (Optional layers already stripped).

    Returns:
        Any: A fully constructed value of ``target_type``.

    Raises:
        BlobDecodeError: If the document is malformed or does not fit the type.

    Examples:
        >>> decode_json(b'["a", "b"]', list[str])
        ['a', 'b']
    """
    try:
        return json_adapter(target_type).validate_json(raw)
    except ValidationError as exc:
        raise BlobDecodeError(f"invalid JSON for {target_type!r}: {exc}") from exc
