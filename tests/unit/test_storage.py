"""
Unit tests for storage backends.
"""

import msgpack
import numpy as np
import pytest

from docquery.core.context import CancellationToken
from docquery.core.exceptions import (
    CatalogError,
    QueryError,
    SerializationError,
    StorageError,
    ValidationError,
)
from docquery.query.filters import Filter, Query
from docquery.query.planner import NativeQuery, PlanKind, plan_query
from docquery.storage.memory import MemoryStore, MemoryStoreConfig
from docquery.storage.serialization import decode_document, encode_document
from docquery.storage.stream import StreamConfig, StreamStore


def fetch_all(source):
    """Drain a page source, returning the page sizes and the documents."""
    token = CancellationToken()
    sizes, docs = [], []
    page = source.fetch_page(None, token)
    while True:
        sizes.append(len(page))
        docs.extend(page.documents)
        if page.is_last:
            break
        page = source.fetch_page(page.next_token, token)
    source.close()
    return sizes, docs


class TestSerialization:
    """Test msgpack document encoding."""

    def test_round_trip(self):
        doc = {"a": 1, "b": "x", "c": [1.5, None, True], "d": {"e": b"\x00"}}
        assert decode_document(encode_document(doc)) == doc

    def test_numpy_scalars(self):
        data = encode_document({"a": np.int64(3), "b": np.float32(0.5), "c": (1, 2)})
        assert msgpack.unpackb(data, raw=False) == {"a": 3, "b": 0.5, "c": [1, 2]}

    def test_unencodable(self):
        with pytest.raises(SerializationError):
            encode_document({"a": object()})
        with pytest.raises(SerializationError):
            encode_document(["not", "a", "document"])

    def test_bad_data(self):
        with pytest.raises(SerializationError):
            decode_document(b"\xc1")
        with pytest.raises(SerializationError):
            decode_document(msgpack.packb([1, 2]))

    def test_empty(self):
        assert decode_document(b"") == {}


class TestMemoryStore:
    """Test document access on the in-memory store."""

    def test_put_get_delete(self, games_catalog):
        store = MemoryStore(games_catalog)
        key = store.put({"Game": "Zork", "Player": "ann", "Score": np.int32(3)})
        assert key == ("Zork", "ann")
        assert store.get("Zork", "ann") == {"Game": "Zork", "Player": "ann", "Score": 3}
        assert len(store) == 1
        assert store.delete("Zork", "ann")
        assert not store.delete("Zork", "ann")
        assert store.get("Zork", "ann") is None

    def test_put_replaces(self, games_catalog):
        store = MemoryStore(games_catalog)
        store.put({"Game": "Zork", "Player": "ann", "Score": 1})
        store.put({"Game": "Zork", "Player": "ann", "Score": 2})
        assert len(store) == 1
        assert store.get("Zork", "ann")["Score"] == 2

    def test_stored_copy_is_independent(self, games_catalog):
        store = MemoryStore(games_catalog)
        doc = {"Game": "Zork", "Player": "ann", "tags": ["a"]}
        store.put(doc)
        doc["tags"].append("b")
        assert store.get("Zork", "ann")["tags"] == ["a"]

    def test_missing_key(self, games_catalog):
        store = MemoryStore(games_catalog)
        with pytest.raises(ValidationError):
            store.put({"Game": "Zork"})

    def test_delete_keys_and_clear(self, memory_store):
        assert memory_store.delete_keys([("Zork", "ann"), ("Zork", "zed")]) == 1
        assert len(memory_store) == 4
        assert memory_store.clear() == 4
        assert list(memory_store.iter_documents()) == []

    @pytest.mark.parametrize("page_size", [0, -1, 10 ** 6, 2.5])
    def test_bad_config(self, page_size):
        with pytest.raises(ValidationError):
            MemoryStoreConfig(page_size=page_size)


class TestMemoryPaging:
    """Test paged query execution on the in-memory store."""

    def test_scan_pages(self, memory_store):
        nq = NativeQuery(kind=PlanKind.FULL_SCAN)
        sizes, docs = fetch_all(memory_store.open_pages(nq))
        assert sizes == [2, 2, 1]
        assert len(docs) == 5

    def test_table_query_in_sort_order(self, memory_store, games_catalog):
        plan = plan_query(Query(filters=(Filter.of("Game", "=", "Zork"),)), games_catalog)
        _, docs = fetch_all(memory_store.open_pages(plan.native_query))
        assert [d["Player"] for d in docs] == ["ann", "bob", "cat"]

    def test_filter_expressions_can_empty_pages(self, games_catalog, game_docs):
        store = MemoryStore(games_catalog, MemoryStoreConfig(page_size=1))
        store.put_many(game_docs)
        query = Query(filters=(Filter.of("Game", "=", "Zork"), Filter.of("Time", ">", "2024-01-02")))
        plan = plan_query(query, games_catalog)
        assert plan.describe() == "Table"
        source = store.open_pages(plan.native_query)
        sizes, docs = fetch_all(source)
        assert sizes == [1, 0, 0]
        assert [d["Player"] for d in docs] == ["ann"]
        assert source.round_trips == 3

    def test_native_limit(self, memory_store, games_catalog):
        query = Query(filters=(Filter.of("Game", "=", "Zork"),), limit=2)
        plan = plan_query(query, games_catalog)
        _, docs = fetch_all(memory_store.open_pages(plan.native_query))
        assert [d["Player"] for d in docs] == ["ann", "bob"]

    def test_projection(self, memory_store, games_catalog):
        query = Query(field_paths=("Score",), filters=(Filter.of("Game", "=", "Dune"),))
        plan = plan_query(query, games_catalog)
        _, docs = fetch_all(memory_store.open_pages(plan.native_query))
        assert docs == [
            {"Score": 50, "DocstoreRevision": 1},
            {"Score": 200, "DocstoreRevision": 3},
        ]

    def test_keys_only_global_index(self, memory_store):
        nq = NativeQuery(
            kind=PlanKind.INDEX_QUERY,
            index_name="by-time",
            key_conditions=[Filter.of("Time", "=", "2024-01-01")],
        )
        _, docs = fetch_all(memory_store.open_pages(nq))
        assert docs == [{"Game": "Zork", "Player": "bob", "Time": "2024-01-01"}]

    def test_index_is_sparse(self, memory_store, games_catalog):
        memory_store.put({"Game": "Zork", "Player": "eve", "Score": 1})
        nq = NativeQuery(
            kind=PlanKind.INDEX_QUERY,
            index_name="by-player",
            key_conditions=[Filter.of("Player", "=", "eve")],
        )
        _, docs = fetch_all(memory_store.open_pages(nq))
        assert docs == []

    def test_unknown_index(self, memory_store):
        nq = NativeQuery(kind=PlanKind.INDEX_QUERY, index_name="nope")
        with pytest.raises(CatalogError):
            memory_store.open_pages(nq)

    def test_bad_key_condition(self, memory_store):
        nq = NativeQuery(kind=PlanKind.PRIMARY_QUERY, key_conditions=[Filter.of("Game", ">", "A")])
        source = memory_store.open_pages(nq)
        with pytest.raises(StorageError):
            source.fetch_page(None, CancellationToken())

    def test_snapshot_at_first_fetch(self, memory_store):
        source = memory_store.open_pages(NativeQuery(kind=PlanKind.FULL_SCAN))
        token = CancellationToken()
        page = source.fetch_page(None, token)
        memory_store.clear()
        rest = source.fetch_page(page.next_token, token)
        assert len(rest) == 2


class TestStreamStore:
    """Test the streaming backend."""

    def test_batches(self, stream_store):
        nq = NativeQuery(kind=PlanKind.FULL_SCAN, filter_expressions=[Filter.of("a", ">=", 2)])
        sizes, docs = fetch_all(stream_store.open_pages(nq))
        assert sizes == [3, 3, 2, 0]
        assert sorted(d["a"] for d in docs) == list(range(2, 10))
        assert stream_store.open_streams == 0

    def test_close_cancels_stream(self, stream_store):
        source = stream_store.open_pages(NativeQuery(kind=PlanKind.FULL_SCAN))
        source.fetch_page(None, CancellationToken())
        assert stream_store.open_streams == 1
        source.close()
        assert stream_store.open_streams == 0

    def test_close_before_fetch(self, stream_store):
        source = stream_store.open_pages(NativeQuery(kind=PlanKind.FULL_SCAN))
        source.close()
        assert stream_store.open_streams == 0

    def test_rejects_two_inequality_fields(self, stream_store):
        nq = NativeQuery(
            kind=PlanKind.FULL_SCAN,
            filter_expressions=[Filter.of("a", ">", 1), Filter.of("b", "<", 3)],
        )
        with pytest.raises(QueryError):
            stream_store.open_pages(nq)

    def test_limit_and_projection(self, stream_store):
        nq = NativeQuery(kind=PlanKind.FULL_SCAN, projection=[("a",)], limit=4)
        _, docs = fetch_all(stream_store.open_pages(nq))
        assert len(docs) == 4
        assert all(list(d) == ["a"] for d in docs)

    def test_add_requires_key(self):
        store = StreamStore(StreamConfig(key_field="id"))
        with pytest.raises(ValidationError):
            store.add({"name": "x"})

    def test_planner_config(self, stream_store):
        assert stream_store.planner_config.single_inequality_field
        assert stream_store.describe_indexes().partition_key == "name"
