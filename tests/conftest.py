"""
Pytest fixtures for docquery tests.
"""

import logging

import pytest
from typing import Any, Dict, List

from docquery.query.catalog import IndexCatalog, IndexDescription, Projection, SecondaryIndex
from docquery.storage.memory import MemoryStore, MemoryStoreConfig
from docquery.storage.stream import StreamConfig, StreamStore


@pytest.fixture
def games_catalog() -> IndexCatalog:
    """High-score table keyed on (Game, Player) with one index of each kind."""
    return IndexCatalog(
        IndexDescription("Game", "Player"),
        [
            SecondaryIndex.local("by-score", "Game", "Score"),
            SecondaryIndex.global_("by-player", "Player", "Time"),
            SecondaryIndex.global_("by-time", "Time", projection=Projection.keys_only()),
        ],
    )


@pytest.fixture
def game_docs() -> List[Dict[str, Any]]:
    """Sample high-score documents."""
    return [
        {"Game": "Zork", "Player": "ann", "Score": 120, "Time": "2024-01-03", "DocstoreRevision": 1},
        {"Game": "Zork", "Player": "bob", "Score": 80, "Time": "2024-01-01", "DocstoreRevision": 1},
        {"Game": "Zork", "Player": "cat", "Score": 100, "Time": "2024-01-02", "DocstoreRevision": 2},
        {"Game": "Dune", "Player": "ann", "Score": 50, "Time": "2024-01-04", "DocstoreRevision": 1},
        {"Game": "Dune", "Player": "dan", "Score": 200, "Time": "2024-01-05", "DocstoreRevision": 3},
    ]


@pytest.fixture
def memory_store(games_catalog: IndexCatalog, game_docs) -> MemoryStore:
    """Populated in-memory store with small pages."""
    store = MemoryStore(games_catalog, MemoryStoreConfig(page_size=2))
    store.put_many(game_docs)
    return store


@pytest.fixture
def stream_docs() -> List[Dict[str, Any]]:
    return [
        {"name": f"doc{i}", "a": i, "b": 10 - i, "info": {"level": i % 3}}
        for i in range(10)
    ]


@pytest.fixture
def stream_store(stream_docs) -> StreamStore:
    """Populated streaming store with small batches."""
    store = StreamStore(StreamConfig(batch_size=3))
    store.add_many(stream_docs)
    return store


@pytest.fixture
def package_logger():
    """The docquery logger, restored to its prior state afterwards."""
    logger = logging.getLogger("docquery")
    level, handlers = logger.level, list(logger.handlers)
    yield logger
    for handler in logger.handlers:
        if handler not in handlers:
            handler.close()
    logger.handlers[:] = handlers
    logger.setLevel(level)
