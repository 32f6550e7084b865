"""
Index catalog: the key topology of one collection.

A collection has one table-level key schema (partition key plus optional
sort key) and any number of secondary indexes. A local index shares the
table's partition key; a global index has its own. Each index stores a
projection of the document fields.

Example:
    >>> catalog = IndexCatalog(
    ...     table=IndexDescription("Game", "Player"),
    ...     indexes=[
    ...         SecondaryIndex.local("by-score", "Game", "Score"),
    ...         SecondaryIndex.global_("by-time", "Player", "Time",
    ...                                projection=Projection.keys_only()),
    ...     ],
    ... )
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from ..core.exceptions import CatalogError, ValidationError
from ..utils.validation import validate_field_name


class ProjectionType(str, Enum):
    """Which document fields an index stores."""

    ALL = "ALL"
    KEYS_ONLY = "KEYS_ONLY"
    INCLUDE = "INCLUDE"


class IndexKind(str, Enum):
    """Secondary index kinds."""

    LOCAL = "local"
    GLOBAL = "global"


@dataclass(frozen=True)
class Projection:
    """An index projection."""

    type: ProjectionType = ProjectionType.ALL
    fields: FrozenSet[str] = frozenset()

    @classmethod
    def all(cls) -> "Projection":
        return cls(ProjectionType.ALL)

    @classmethod
    def keys_only(cls) -> "Projection":
        return cls(ProjectionType.KEYS_ONLY)

    @classmethod
    def include(cls, fields: Iterable[str]) -> "Projection":
        return cls(ProjectionType.INCLUDE, frozenset(fields))

    @property
    def is_all(self) -> bool:
        return self.type == ProjectionType.ALL


@dataclass(frozen=True)
class IndexDescription:
    """Key schema and projection of the table or of one index."""

    partition_key: str
    sort_key: Optional[str] = None
    projection: Projection = field(default_factory=Projection.all)

    @property
    def key_fields(self) -> Tuple[str, ...]:
        if self.sort_key:
            return (self.partition_key, self.sort_key)
        return (self.partition_key,)


@dataclass(frozen=True)
class SecondaryIndex:
    """A named secondary index."""

    name: str
    kind: IndexKind
    description: IndexDescription

    @classmethod
    def local(
        cls,
        name: str,
        partition_key: str,
        sort_key: str,
        projection: Optional[Projection] = None,
    ) -> "SecondaryIndex":
        return cls(
            name,
            IndexKind.LOCAL,
            IndexDescription(partition_key, sort_key, projection or Projection.all()),
        )

    @classmethod
    def global_(
        cls,
        name: str,
        partition_key: str,
        sort_key: Optional[str] = None,
        projection: Optional[Projection] = None,
    ) -> "SecondaryIndex":
        return cls(
            name,
            IndexKind.GLOBAL,
            IndexDescription(partition_key, sort_key, projection or Projection.all()),
        )

    @property
    def partition_key(self) -> str:
        return self.description.partition_key

    @property
    def sort_key(self) -> Optional[str]:
        return self.description.sort_key

    @property
    def projection(self) -> Projection:
        return self.description.projection


class IndexCatalog:
    """
    Read-only description of a collection's table key and indexes.

    The catalog is validated once, at construction; a malformed catalog
    raises CatalogError. Indexes keep their declaration order.
    """

    def __init__(
        self,
        table: IndexDescription,
        indexes: Sequence[SecondaryIndex] = (),
    ):
        self._table = table
        self._indexes: Tuple[SecondaryIndex, ...] = tuple(indexes)
        self._by_name: Dict[str, SecondaryIndex] = {}
        self._validate()

    @property
    def table(self) -> IndexDescription:
        return self._table

    @property
    def partition_key(self) -> str:
        return self._table.partition_key

    @property
    def sort_key(self) -> Optional[str]:
        return self._table.sort_key

    @property
    def indexes(self) -> Tuple[SecondaryIndex, ...]:
        return self._indexes

    @property
    def local_indexes(self) -> List[SecondaryIndex]:
        return [i for i in self._indexes if i.kind == IndexKind.LOCAL]

    @property
    def global_indexes(self) -> List[SecondaryIndex]:
        return [i for i in self._indexes if i.kind == IndexKind.GLOBAL]

    def index(self, name: str) -> SecondaryIndex:
        try:
            return self._by_name[name]
        except KeyError:
            raise CatalogError(f"no index named {name!r}") from None

    def description_for(self, index_name: Optional[str]) -> IndexDescription:
        """Key schema of the table (None) or of a named index."""
        if index_name is None:
            return self._table
        return self.index(index_name).description

    # =========================================================================
    # VALIDATION
    # =========================================================================

    def _validate(self) -> None:
        self._check_description("table", self._table)
        if self._table.projection.type != ProjectionType.ALL:
            raise CatalogError("table projection must be ALL")

        for idx in self._indexes:
            try:
                validate_field_name(idx.name, "index name")
            except ValidationError as e:
                raise CatalogError(str(e)) from None
            if idx.name in self._by_name:
                raise CatalogError(f"duplicate index name {idx.name!r}")
            self._check_description(f"index {idx.name!r}", idx.description)
            if idx.kind == IndexKind.LOCAL:
                if idx.partition_key != self.partition_key:
                    raise CatalogError(
                        f"local index {idx.name!r} has partition key "
                        f"{idx.partition_key!r}, table has {self.partition_key!r}"
                    )
                if not idx.sort_key:
                    raise CatalogError(f"local index {idx.name!r} has no sort key")
            self._by_name[idx.name] = idx

    @staticmethod
    def _check_description(what: str, d: IndexDescription) -> None:
        try:
            validate_field_name(d.partition_key, f"{what} partition key")
            if d.sort_key is not None:
                validate_field_name(d.sort_key, f"{what} sort key")
        except ValidationError as e:
            raise CatalogError(str(e)) from None
        if d.sort_key == d.partition_key:
            raise CatalogError(f"{what}: sort key and partition key are both {d.sort_key!r}")
        if d.projection.type == ProjectionType.INCLUDE and not d.projection.fields:
            raise CatalogError(f"{what}: INCLUDE projection names no fields")

    # =========================================================================
    # CONSTRUCTION FROM BACKEND METADATA
    # =========================================================================

    @classmethod
    def from_description(cls, desc: Dict[str, Any]) -> "IndexCatalog":
        """
        Build a catalog from table metadata.

        Args:
            desc: Mapping with "KeySchema", and optionally
                "LocalSecondaryIndexes" and "GlobalSecondaryIndexes", each
                index carrying "IndexName", "KeySchema" and "Projection".

        Raises:
            CatalogError: If the metadata is malformed
        """
        try:
            pkey, skey = _key_attributes(desc["KeySchema"])
        except KeyError as e:
            raise CatalogError(f"table description missing {e}") from None

        indexes: List[SecondaryIndex] = []
        for kind, key in (
            (IndexKind.LOCAL, "LocalSecondaryIndexes"),
            (IndexKind.GLOBAL, "GlobalSecondaryIndexes"),
        ):
            for idx in desc.get(key) or ():
                try:
                    ipk, isk = _key_attributes(idx["KeySchema"])
                    name = idx["IndexName"]
                except KeyError as e:
                    raise CatalogError(f"index description missing {e}") from None
                indexes.append(
                    SecondaryIndex(
                        name, kind, IndexDescription(ipk, isk, _projection(idx.get("Projection")))
                    )
                )

        defined = desc.get("AttributeDefinitions")
        if defined is not None:
            names = {a["AttributeName"] for a in defined}
            keys = [(None, pkey, skey)] + [(i.name, i.partition_key, i.sort_key) for i in indexes]
            for index_name, *attrs in keys:
                for attr in attrs:
                    if attr and attr not in names:
                        where = f"index {index_name!r}" if index_name else "table"
                        raise CatalogError(f"{where} key {attr!r} is not a defined attribute")

        return cls(IndexDescription(pkey, skey), indexes)

    def to_dict(self) -> Dict[str, Any]:
        """Inverse of from_description."""
        out: Dict[str, Any] = {"KeySchema": _key_schema(self._table)}
        for kind, key in (
            (IndexKind.LOCAL, "LocalSecondaryIndexes"),
            (IndexKind.GLOBAL, "GlobalSecondaryIndexes"),
        ):
            entries = [
                {
                    "IndexName": i.name,
                    "KeySchema": _key_schema(i.description),
                    "Projection": _projection_dict(i.projection),
                }
                for i in self._indexes
                if i.kind == kind
            ]
            if entries:
                out[key] = entries
        return out

    def __repr__(self) -> str:
        names = ", ".join(f"{i.kind.value}:{i.name}" for i in self._indexes)
        return f"IndexCatalog(table={self._table.key_fields}, indexes=[{names}])"


def _key_attributes(schema: Sequence[Dict[str, str]]) -> Tuple[str, Optional[str]]:
    pkey: Optional[str] = None
    skey: Optional[str] = None
    for elem in schema:
        key_type = elem.get("KeyType")
        name = elem.get("AttributeName")
        if key_type == "HASH":
            pkey = name
        elif key_type == "RANGE":
            skey = name or None
        else:
            raise CatalogError(f"bad key type {key_type!r}")
    if not pkey:
        raise CatalogError("key schema has no HASH key")
    return pkey, skey


def _projection(p: Optional[Dict[str, Any]]) -> Projection:
    if not p:
        return Projection.all()
    try:
        ptype = ProjectionType(p.get("ProjectionType", "ALL"))
    except ValueError:
        raise CatalogError(f"bad projection type {p.get('ProjectionType')!r}") from None
    if ptype == ProjectionType.INCLUDE:
        return Projection.include(p.get("NonKeyAttributes") or ())
    return Projection(ptype)


def _key_schema(d: IndexDescription) -> List[Dict[str, str]]:
    schema = [{"AttributeName": d.partition_key, "KeyType": "HASH"}]
    if d.sort_key:
        schema.append({"AttributeName": d.sort_key, "KeyType": "RANGE"})
    return schema


def _projection_dict(p: Projection) -> Dict[str, Any]:
    out: Dict[str, Any] = {"ProjectionType": p.type.value}
    if p.type == ProjectionType.INCLUDE:
        out["NonKeyAttributes"] = sorted(p.fields)
    return out
