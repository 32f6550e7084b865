"""
Unit tests for the index catalog.
"""

import pytest

from docquery.core.exceptions import CatalogError
from docquery.query.catalog import (
    IndexCatalog,
    IndexDescription,
    IndexKind,
    Projection,
    ProjectionType,
    SecondaryIndex,
)


def key_schema(pkey, skey=None):
    schema = [{"AttributeName": pkey, "KeyType": "HASH"}]
    if skey:
        schema.append({"AttributeName": skey, "KeyType": "RANGE"})
    return schema


class TestIndexCatalog:
    """Test catalog construction and lookup."""

    def test_accessors(self, games_catalog):
        assert games_catalog.partition_key == "Game"
        assert games_catalog.sort_key == "Player"
        assert [i.name for i in games_catalog.local_indexes] == ["by-score"]
        assert [i.name for i in games_catalog.global_indexes] == ["by-player", "by-time"]
        assert games_catalog.index("by-time").projection.type == ProjectionType.KEYS_ONLY
        assert games_catalog.description_for(None).key_fields == ("Game", "Player")
        assert games_catalog.description_for("by-time").key_fields == ("Time",)

    def test_unknown_index(self, games_catalog):
        with pytest.raises(CatalogError):
            games_catalog.index("nope")

    def test_declaration_order_kept(self):
        cat = IndexCatalog(
            IndexDescription("p"),
            [SecondaryIndex.global_(n, "g" + n) for n in ("z", "a", "m")],
        )
        assert [i.name for i in cat.indexes] == ["z", "a", "m"]

    def test_local_index_must_share_partition_key(self):
        with pytest.raises(CatalogError):
            IndexCatalog(IndexDescription("p", "s"), [SecondaryIndex.local("l", "other", "x")])

    def test_local_index_needs_sort_key(self):
        bad = SecondaryIndex("l", IndexKind.LOCAL, IndexDescription("p"))
        with pytest.raises(CatalogError):
            IndexCatalog(IndexDescription("p", "s"), [bad])

    def test_duplicate_names(self):
        with pytest.raises(CatalogError):
            IndexCatalog(
                IndexDescription("p"),
                [SecondaryIndex.global_("g", "a"), SecondaryIndex.global_("g", "b")],
            )

    @pytest.mark.parametrize(
        "desc",
        [
            IndexDescription(""),
            IndexDescription("p", "p"),
            IndexDescription("p", projection=Projection.keys_only()),
        ],
    )
    def test_bad_table(self, desc):
        with pytest.raises(CatalogError):
            IndexCatalog(desc)

    def test_empty_include_projection(self):
        with pytest.raises(CatalogError):
            IndexCatalog(
                IndexDescription("p"),
                [SecondaryIndex.global_("g", "a", projection=Projection.include([]))],
            )


class TestFromDescription:
    """Test building catalogs from table metadata."""

    def test_full_description(self):
        desc = {
            "KeySchema": key_schema("Game", "Player"),
            "LocalSecondaryIndexes": [
                {
                    "IndexName": "by-score",
                    "KeySchema": key_schema("Game", "Score"),
                    "Projection": {"ProjectionType": "KEYS_ONLY"},
                },
            ],
            "GlobalSecondaryIndexes": [
                {
                    "IndexName": "by-time",
                    "KeySchema": key_schema("Time"),
                    "Projection": {"ProjectionType": "INCLUDE", "NonKeyAttributes": ["Score"]},
                },
            ],
        }
        cat = IndexCatalog.from_description(desc)
        assert cat.table.key_fields == ("Game", "Player")
        local = cat.index("by-score")
        assert local.kind == IndexKind.LOCAL
        assert local.projection == Projection.keys_only()
        glob = cat.index("by-time")
        assert glob.kind == IndexKind.GLOBAL
        assert glob.sort_key is None
        assert glob.projection == Projection.include(["Score"])
        assert cat.to_dict() == desc

    def test_empty_range_key_is_ignored(self):
        desc = {
            "KeySchema": [
                {"AttributeName": "p", "KeyType": "HASH"},
                {"AttributeName": "", "KeyType": "RANGE"},
            ],
        }
        assert IndexCatalog.from_description(desc).sort_key is None

    def test_missing_projection_means_all(self):
        desc = {
            "KeySchema": key_schema("p"),
            "GlobalSecondaryIndexes": [{"IndexName": "g", "KeySchema": key_schema("q")}],
        }
        assert IndexCatalog.from_description(desc).index("g").projection.is_all

    @pytest.mark.parametrize(
        "desc",
        [
            {},
            {"KeySchema": []},
            {"KeySchema": [{"AttributeName": "p", "KeyType": "BOGUS"}]},
            {"KeySchema": key_schema("p"), "GlobalSecondaryIndexes": [{"KeySchema": key_schema("q")}]},
            {
                "KeySchema": key_schema("p"),
                "GlobalSecondaryIndexes": [
                    {
                        "IndexName": "g",
                        "KeySchema": key_schema("q"),
                        "Projection": {"ProjectionType": "SOME"},
                    },
                ],
            },
        ],
    )
    def test_malformed(self, desc):
        with pytest.raises(CatalogError):
            IndexCatalog.from_description(desc)

    def test_undefined_key_attribute(self):
        desc = {
            "KeySchema": key_schema("p"),
            "AttributeDefinitions": [{"AttributeName": "p", "AttributeType": "S"}],
            "GlobalSecondaryIndexes": [{"IndexName": "g", "KeySchema": key_schema("q")}],
        }
        with pytest.raises(CatalogError, match="'q'"):
            IndexCatalog.from_description(desc)
