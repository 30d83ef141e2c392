"""SQLite entity store. Entities are stored whole as JSON."""

from __future__ import annotations

import asyncio
import json
import logging
import sqlite3
from datetime import datetime, timezone
from functools import partial
from pathlib import Path
from typing import Any, Callable, Optional, Sequence, TypeVar

from parklens.events import EntityBatchSaved, EntityDeleted, EntityEventBus, EntitySaved
from parklens.models import Entity, parse_entity

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _row_to_entity(row: sqlite3.Row) -> Entity:
    return parse_entity(json.loads(row["payload"]))


class EntityDB:
    """SQLite wrapper for the entities table. All I/O stays in this module.

    When an event bus is given, saves and deletes are published after the
    write commits.
    """

    def __init__(self, db_path: Path, bus: Optional[EntityEventBus] = None) -> None:
        self._path = Path(db_path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._bus = bus

    def init_db(self) -> None:
        """Create entities table and indexes if they do not exist."""
        with sqlite3.connect(self._path) as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS entities (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    entity_type TEXT NOT NULL,
                    destination_id TEXT NOT NULL,
                    park_id TEXT,
                    payload TEXT NOT NULL,
                    updated_at DATETIME NOT NULL
                )
            """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_entities_destination_type "
                "ON entities(destination_id, entity_type)"
            )
            conn.commit()

    async def _run(self, fn: Callable[..., T], *args: Any) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(fn, *args))

    def _upsert(self, entities: Sequence[Entity]) -> None:
        now = datetime.now(timezone.utc).isoformat()
        with sqlite3.connect(self._path) as conn:
            conn.executemany(
                """
                INSERT INTO entities (id, name, entity_type, destination_id, park_id,
                                      payload, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name=excluded.name,
                    entity_type=excluded.entity_type,
                    destination_id=excluded.destination_id,
                    park_id=excluded.park_id,
                    payload=excluded.payload,
                    updated_at=excluded.updated_at
                """,
                [
                    (
                        e.id,
                        e.name,
                        e.entity_type,
                        e.destination_id,
                        e.park_id,
                        e.model_dump_json(),
                        now,
                    )
                    for e in entities
                ],
            )
            conn.commit()

    def _get(self, entity_id: str) -> Optional[Entity]:
        with sqlite3.connect(self._path) as conn:
            conn.row_factory = sqlite3.Row
            row = conn.execute(
                "SELECT payload FROM entities WHERE id = ?", (entity_id,)
            ).fetchone()
        return _row_to_entity(row) if row else None

    def _list(self, destination_id: Optional[str], entity_type: Optional[str]) -> list[Entity]:
        query = "SELECT payload FROM entities"
        clauses: list[str] = []
        params: list[str] = []
        if destination_id is not None:
            clauses.append("destination_id = ?")
            params.append(destination_id)
        if entity_type is not None:
            clauses.append("entity_type = ?")
            params.append(entity_type)
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY name ASC"
        with sqlite3.connect(self._path) as conn:
            conn.row_factory = sqlite3.Row
            rows = conn.execute(query, params).fetchall()
        return [_row_to_entity(r) for r in rows]

    def _delete_destination(self, destination_id: str) -> int:
        with sqlite3.connect(self._path) as conn:
            cursor = conn.execute(
                "DELETE FROM entities WHERE destination_id = ?", (destination_id,)
            )
            conn.commit()
            return cursor.rowcount

    async def save_entity(self, entity: Entity) -> None:
        """Insert or replace one entity."""
        await self._run(self._upsert, [entity])
        if self._bus is not None:
            await self._bus.publish(EntitySaved(entity=entity))

    async def save_entities(self, entities: Sequence[Entity]) -> int:
        """Insert or replace many entities in one transaction."""
        items = list(entities)
        if not items:
            return 0
        await self._run(self._upsert, items)
        logger.info("Saved %d entities", len(items))
        if self._bus is not None:
            await self._bus.publish(EntityBatchSaved(entities=items))
        return len(items)

    async def get_entity(self, entity_id: str) -> Optional[Entity]:
        """Return one entity by id or None."""
        return await self._run(self._get, entity_id)

    async def list_entities(
        self,
        destination_id: Optional[str] = None,
        entity_type: Optional[str] = None,
    ) -> list[Entity]:
        return await self._run(self._list, destination_id, entity_type)

    async def delete_by_destination(self, destination_id: str) -> int:
        """Delete every entity of a destination. Returns the number removed."""
        count = await self._run(self._delete_destination, destination_id)
        logger.info("Deleted %d entities for destination %s", count, destination_id)
        if self._bus is not None:
            await self._bus.publish(EntityDeleted(destination_id=destination_id, count=count))
        return count
