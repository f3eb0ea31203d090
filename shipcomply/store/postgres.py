"""
PostgreSQL-backed rule store.

All entity kinds share one table of JSONB documents keyed by (kind, id). Index
lookups use JSONB containment, served by a GIN index, so new indexed
attributes need no schema change.
"""

from typing import Any

from psycopg import Error as PsycopgError
from psycopg.types.json import Jsonb
from psycopg_pool import PoolTimeout
from pydantic import BaseModel

from shipcomply.exceptions import StoreUnavailable
from shipcomply.observability.logger import get_logger

from .base import MODEL_BY_KIND, EntityKind, RuleStore, check_entity, index_attribute
from .connection import DatabaseConnectionPool

logger = get_logger(__name__)

SCHEMA_DDL = """
    CREATE TABLE IF NOT EXISTS compliance_entity (
        seq BIGSERIAL,
        kind TEXT NOT NULL,
        id TEXT NOT NULL,
        data JSONB NOT NULL,
        stored_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        PRIMARY KEY (kind, id)
    );
    CREATE INDEX IF NOT EXISTS compliance_entity_data_idx
        ON compliance_entity USING GIN (data jsonb_path_ops);
"""

UPSERT_SQL = """
    INSERT INTO compliance_entity (kind, id, data)
    VALUES (%s, %s, %s)
    ON CONFLICT (kind, id) DO UPDATE SET
        data = EXCLUDED.data,
        stored_at = NOW()
"""


class PostgresRuleStore(RuleStore):
    """
    RuleStore over a psycopg connection pool.

    Every psycopg or pool failure is re-raised as StoreUnavailable.
    """

    def __init__(self, pool: DatabaseConnectionPool, ensure_schema: bool = True):
        """
        Args:
            pool: Connection pool; opened here if it is not open yet
            ensure_schema: Create the table and index if missing
        """
        self.pool = pool
        try:
            if not self.pool.is_open:
                self.pool.open()
            if ensure_schema:
                self._execute(SCHEMA_DDL, None, "ensure_schema")
        except (PsycopgError, PoolTimeout) as e:
            raise StoreUnavailable("open", cause=e) from e

    def _execute(self, query: str, params: tuple | None, operation: str, kind: EntityKind | None = None):
        try:
            with self.pool.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(query, params)
                    rows = cur.fetchall() if cur.description else []
                conn.commit()
                return rows
        except (PsycopgError, PoolTimeout) as e:
            logger.error(
                f"Store operation {operation} failed: {e}",
                extra={"operation": operation, "kind": kind.value if kind else None},
            )
            raise StoreUnavailable(operation, kind.value if kind else None, e) from e

    @staticmethod
    def _load(kind: EntityKind, rows: list[dict]) -> list[Any]:
        model = MODEL_BY_KIND[kind]
        return [model.model_validate(row["data"]) for row in rows]

    def get_all(self, kind: EntityKind) -> list[Any]:
        rows = self._execute(
            "SELECT data FROM compliance_entity WHERE kind = %s ORDER BY seq",
            (kind.value,), "get_all", kind,
        )
        return self._load(kind, rows)

    def get_by_id(self, kind: EntityKind, entity_id: str) -> Any | None:
        rows = self._execute(
            "SELECT data FROM compliance_entity WHERE kind = %s AND id = %s",
            (kind.value, entity_id), "get_by_id", kind,
        )
        loaded = self._load(kind, rows)
        return loaded[0] if loaded else None

    def get_by_index(self, kind: EntityKind, index_name: str, value: Any) -> list[Any]:
        attribute = index_attribute(kind, index_name)
        rows = self._execute(
            "SELECT data FROM compliance_entity WHERE kind = %s AND data @> %s ORDER BY seq",
            (kind.value, Jsonb({attribute: value})), "get_by_index", kind,
        )
        return self._load(kind, rows)

    def put(self, kind: EntityKind, entity: BaseModel) -> None:
        check_entity(kind, entity)
        self._execute(
            UPSERT_SQL,
            (kind.value, entity.id, Jsonb(entity.model_dump(mode="json"))),
            "put", kind,
        )

    def put_many(self, kind: EntityKind, entities: list[BaseModel]) -> None:
        for entity in entities:
            check_entity(kind, entity)
        if not entities:
            return

        params = [
            (kind.value, entity.id, Jsonb(entity.model_dump(mode="json")))
            for entity in entities
        ]
        try:
            # One transaction: the whole batch lands or none of it does
            with self.pool.get_connection() as conn:
                with conn.transaction():
                    with conn.cursor() as cur:
                        cur.executemany(UPSERT_SQL, params)
        except (PsycopgError, PoolTimeout) as e:
            logger.error(
                f"Batch write failed for {kind.value}: {e}",
                extra={"operation": "put_many", "kind": kind.value, "batch_size": len(entities)},
            )
            raise StoreUnavailable("put_many", kind.value, e) from e

    def delete(self, kind: EntityKind, entity_id: str) -> None:
        self._execute(
            "DELETE FROM compliance_entity WHERE kind = %s AND id = %s",
            (kind.value, entity_id), "delete", kind,
        )

    def clear_all(self) -> None:
        self._execute("TRUNCATE TABLE compliance_entity", None, "clear_all")

    def close(self) -> None:
        self.pool.close()
