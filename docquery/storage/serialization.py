"""
Document serialization for docquery storage.

Documents are stored as msgpack maps. numpy scalars are converted to plain
Python objects before packing.
"""

from __future__ import annotations

from typing import Any, Dict

import msgpack

from ..core.exceptions import SerializationError
from ..core.values import to_plain


def encode_document(doc: Dict[str, Any]) -> bytes:
    """
    Serialize a document.

    Raises:
        SerializationError: If the document holds an unencodable value
    """
    if not isinstance(doc, dict):
        raise SerializationError(f"document must be a dict, got {type(doc).__name__}")
    try:
        return msgpack.packb(to_plain(doc), use_bin_type=True)
    except (TypeError, ValueError, OverflowError) as e:
        raise SerializationError(f"cannot encode document: {e}") from e


def decode_document(data: bytes) -> Dict[str, Any]:
    """Deserialize a document."""
    if not data:
        return {}
    try:
        doc = msgpack.unpackb(data, raw=False)
    except (ValueError, msgpack.UnpackException) as e:
        raise SerializationError(f"cannot decode document: {e}") from e
    if not isinstance(doc, dict):
        raise SerializationError(f"encoded value is not a document: {type(doc).__name__}")
    return doc
