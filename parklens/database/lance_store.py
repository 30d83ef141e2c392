"""LanceDB-backed local vector store.

Each embedding model gets its own table so vectors of different dimensions
never share a column. Within a table, rows are keyed by entity id and
upserted with ``merge_insert`` (one row per id, last write wins).
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import re
import threading
from functools import partial
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

import pyarrow as pa

from parklens.exceptions import InvalidInputError, VectorEngineError

from .sql_escaping import WhereCondition, build_equality_clause, build_where_clause
from .vector_store import EmbeddingRecord, EmbeddingStats, VectorHit

logger = logging.getLogger(__name__)

T = TypeVar("T")

TABLE_PREFIX = "embeddings_"

_SLUG_RE = re.compile(r"[^a-z0-9]+")


def table_name_for_model(model: str) -> str:
    """Return the LanceDB table name holding embeddings for ``model``."""
    slug = _SLUG_RE.sub("_", model.lower()).strip("_")[:48]
    digest = hashlib.sha1(model.encode("utf-8")).hexdigest()[:8]
    return f"{TABLE_PREFIX}{slug}_{digest}"


def embedding_schema(dimension: int) -> pa.Schema:
    return pa.schema(
        [
            pa.field("id", pa.string(), nullable=False),
            pa.field("model", pa.string(), nullable=False),
            pa.field("vector", pa.list_(pa.float32(), dimension)),
            pa.field("text_hash", pa.string()),
            pa.field("entity_type", pa.string()),
            pa.field("destination_id", pa.string()),
            pa.field("name", pa.string()),
            pa.field("created_at", pa.string()),
        ]
    )


def _row_to_record(row: dict[str, Any]) -> EmbeddingRecord:
    return EmbeddingRecord(
        id=str(row["id"]),
        model=str(row["model"]),
        vector=[float(v) for v in row.get("vector") or []],
        text_hash=str(row.get("text_hash") or ""),
        entity_type=str(row.get("entity_type") or ""),
        destination_id=str(row.get("destination_id") or ""),
        name=str(row.get("name") or ""),
        created_at=str(row.get("created_at") or ""),
    )


class LanceVectorStore:
    """Persistent local LanceDB vector store.

    The connection is opened on first use and reused for every call;
    ``close()`` releases it. LanceDB calls block, so they run in the default
    executor.
    """

    def __init__(self, store_path: Path) -> None:
        self._store_path = Path(store_path)
        self._db: Any = None
        self._connect_lock = threading.Lock()

    # ---- connection ----

    def _connect(self) -> Any:
        if self._db is not None:
            return self._db
        with self._connect_lock:
            if self._db is None:
                import lancedb

                self._store_path.mkdir(parents=True, exist_ok=True)
                logger.info("Connecting to LanceDB at %s", self._store_path)
                self._db = lancedb.connect(str(self._store_path))
        return self._db

    async def close(self) -> None:
        """Release the connection handle."""
        if self._db is not None:
            self._db = None
            logger.info("LanceDB connection closed")

    async def _run(self, fn: Callable[..., T], *args: Any) -> T:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, partial(fn, *args))
        except (InvalidInputError, VectorEngineError):
            raise
        except Exception as e:
            raise VectorEngineError(f"LanceDB operation failed: {type(e).__name__}: {e}") from e

    # ---- table helpers (run in executor) ----

    def _table_names(self) -> set[str]:
        db = self._connect()
        names: set[str] = set()
        page_token: Optional[str] = None
        while True:
            response = db.list_tables(page_token=page_token)
            names.update(response.tables)
            page_token = response.page_token
            if not page_token:
                return names

    def _embedding_tables(self) -> list[str]:
        return sorted(n for n in self._table_names() if n.startswith(TABLE_PREFIX))

    def _open_table(self, model: str) -> Any | None:
        db = self._connect()
        name = table_name_for_model(model)
        if name not in self._table_names():
            return None
        return db.open_table(name)

    def _open_or_create_table(self, model: str, dimension: int) -> Any:
        table = self._open_table(model)
        if table is None:
            name = table_name_for_model(model)
            logger.info("Creating embeddings table %s (model=%s, dim=%d)", name, model, dimension)
            table = self._connect().create_table(
                name, schema=embedding_schema(dimension), exist_ok=True
            )
        return table

    @staticmethod
    def _table_dimension(table: Any) -> int:
        return int(table.schema.field("vector").type.list_size)

    def _check_dimension(self, table: Any, dimension: int) -> None:
        expected = self._table_dimension(table)
        if dimension != expected:
            raise InvalidInputError(
                f"Vector dimension mismatch: got {dimension}, table expects {expected}"
            )

    def _upsert(self, model: str, records: list[EmbeddingRecord]) -> None:
        # merge_insert needs unique source keys; keep the last record per id
        records = list({r.id: r for r in records}.values())
        dimension = len(records[0].vector)
        if any(len(r.vector) != dimension for r in records):
            raise InvalidInputError("Vector dimension mismatch within batch")
        table = self._open_or_create_table(model, dimension)
        self._check_dimension(table, dimension)
        data = pa.Table.from_pylist([r.to_row() for r in records], schema=table.schema)
        (
            table.merge_insert("id")
            .when_matched_update_all()
            .when_not_matched_insert_all()
            .execute(data)
        )

    def _get(self, entity_id: str, model: str) -> Optional[EmbeddingRecord]:
        table = self._open_table(model)
        if table is None:
            return None
        where = build_equality_clause({"id": entity_id, "model": model})
        rows = table.search().where(where).limit(1).to_list()
        return _row_to_record(rows[0]) if rows else None

    def _search(
        self,
        vector: list[float],
        model: str,
        limit: int,
        where: str,
    ) -> list[dict[str, Any]]:
        table = self._open_table(model)
        if table is None:
            return []
        self._check_dimension(table, len(vector))
        return (
            table.search(vector, vector_column_name="vector")
            .where(where, prefilter=True)
            .limit(limit)
            .to_list()
        )

    def _delete(self, where: str, models: Optional[list[str]] = None) -> int:
        if models is None:
            names = self._embedding_tables()
        else:
            names = [table_name_for_model(m) for m in models]
            existing = self._table_names()
            names = [n for n in names if n in existing]
        deleted = 0
        for name in names:
            table = self._connect().open_table(name)
            count = int(table.count_rows(where))
            if count:
                table.delete(where)
                deleted += count
        return deleted

    def _stats(self) -> EmbeddingStats:
        stats = EmbeddingStats()
        for name in self._embedding_tables():
            table = self._connect().open_table(name)
            count = int(table.count_rows())
            if not count:
                continue
            first = table.search().select(["model"]).limit(1).to_list()
            model = str(first[0]["model"]) if first else name
            stats.by_model[model] = stats.by_model.get(model, 0) + count
            stats.total += count
        return stats

    # ---- public API ----

    async def save_embedding(self, record: EmbeddingRecord) -> None:
        """Upsert one embedding (keyed by entity id within its model)."""
        await self.save_embeddings_batch([record])
        logger.debug("Saved embedding id=%s model=%s", record.id, record.model)

    async def save_embeddings_batch(self, records: list[EmbeddingRecord]) -> None:
        """Upsert many embeddings; one merge per model."""
        if not records:
            return
        by_model: dict[str, list[EmbeddingRecord]] = {}
        for record in records:
            by_model.setdefault(record.model, []).append(record)
        for model, group in by_model.items():
            await self._run(self._upsert, model, group)
        logger.info("Saved embeddings batch: count=%d", len(records))

    async def get_embedding(self, entity_id: str, model: str) -> Optional[EmbeddingRecord]:
        return await self._run(self._get, entity_id, model)

    async def is_embedding_stale(self, entity_id: str, model: str, text_hash: str) -> bool:
        """True unless a record exists for this model with the same text hash."""
        existing = await self.get_embedding(entity_id, model)
        if existing is None:
            return True
        return existing.text_hash != text_hash

    async def vector_search(
        self,
        vector: list[float],
        model: str,
        *,
        limit: int = 10,
        entity_type: Optional[str] = None,
        destination_id: Optional[str] = None,
    ) -> list[VectorHit]:
        """Nearest neighbours for ``vector`` under optional scalar filters."""
        if limit < 1:
            raise InvalidInputError("limit must be at least 1")
        conditions = [WhereCondition("model", "=", model)]
        if entity_type:
            conditions.append(WhereCondition("entity_type", "=", entity_type))
        if destination_id:
            conditions.append(WhereCondition("destination_id", "=", destination_id))
        where = build_where_clause(conditions)

        rows = await self._run(self._search, vector, model, limit, where)
        return [
            VectorHit(
                id=str(row["id"]),
                model=str(row["model"]),
                entity_type=str(row.get("entity_type") or ""),
                destination_id=str(row.get("destination_id") or ""),
                name=str(row.get("name") or ""),
                distance=float(row["_distance"]),
            )
            for row in rows
        ]

    async def delete_embedding(self, entity_id: str, model: Optional[str] = None) -> int:
        """Delete an entity's embeddings (for one model, or all models)."""
        fields: dict[str, str] = {"id": entity_id}
        if model:
            fields["model"] = model
        where = build_equality_clause(fields)
        return await self._run(self._delete, where, [model] if model else None)

    async def delete_by_destination(self, destination_id: str) -> int:
        """Delete every embedding scoped to ``destination_id``, across models."""
        where = build_equality_clause({"destination_id": destination_id})
        deleted = await self._run(self._delete, where, None)
        logger.info("Deleted %d embeddings for destination %s", deleted, destination_id)
        return deleted

    async def get_stats(self) -> EmbeddingStats:
        return await self._run(self._stats)
