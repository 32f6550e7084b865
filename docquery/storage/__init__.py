"""
Storage backends for docquery.

Available Backends:
    - MemoryStore: Key/attribute store with local and global indexes
    - StreamStore: Query service answering with a stream of batches

Example:
    >>> from docquery.storage import MemoryStore
    >>>
    >>> store = MemoryStore(catalog)
    >>> store.put({"Game": "Zork", "Player": "ann", "Score": 10})
    >>> store.get("Zork", "ann")
"""

from .base import (
    BaseStore,
    Page,
    PageSource,
)

from .memory import MemoryStore, MemoryStoreConfig, MemoryPageSource
from .stream import StreamStore, StreamConfig, StreamPageSource
from .serialization import encode_document, decode_document

__all__ = [
    # Base
    "BaseStore",
    "Page",
    "PageSource",
    # Implementations
    "MemoryStore",
    "MemoryStoreConfig",
    "MemoryPageSource",
    "StreamStore",
    "StreamConfig",
    "StreamPageSource",
    # Serialization
    "encode_document",
    "decode_document",
]
