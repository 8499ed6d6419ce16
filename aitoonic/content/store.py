"""DuckDB-backed content store for tools, categories and agents."""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping, Sequence, TypeVar

import duckdb
import pyarrow as pa

from ..errors import AitoonicError
from .models import (
    Agent,
    AgentFilter,
    CatalogSnapshot,
    Category,
    Tool,
    ToolFilter,
    dump_json,
)

logger = logging.getLogger(__name__)

_T = TypeVar("_T")

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS categories (
        id VARCHAR PRIMARY KEY,
        name VARCHAR NOT NULL,
        description VARCHAR,
        seo_title VARCHAR,
        seo_description VARCHAR,
        image_url VARCHAR,
        image_alt VARCHAR,
        created_at TIMESTAMP NOT NULL,
        updated_at TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS tools (
        id VARCHAR PRIMARY KEY,
        name VARCHAR NOT NULL,
        description VARCHAR,
        url VARCHAR,
        category_id VARCHAR,
        image_url VARCHAR,
        image_alt VARCHAR,
        favicon_url VARCHAR,
        rating DOUBLE,
        seo_title VARCHAR,
        seo_description VARCHAR,
        how_to_use VARCHAR,
        features VARCHAR,
        use_cases VARCHAR,
        pricing VARCHAR,
        created_at TIMESTAMP NOT NULL,
        updated_at TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS agents (
        id VARCHAR PRIMARY KEY,
        name VARCHAR NOT NULL,
        description VARCHAR,
        capabilities VARCHAR,
        agent_features VARCHAR,
        api_endpoint VARCHAR,
        pricing_type VARCHAR,
        status VARCHAR,
        image_url VARCHAR,
        image_alt VARCHAR,
        seo_title VARCHAR,
        seo_description VARCHAR,
        is_available_24_7 BOOLEAN,
        user_count INTEGER,
        has_fast_response BOOLEAN,
        is_secure BOOLEAN,
        is_featured BOOLEAN,
        is_verified BOOLEAN,
        created_at TIMESTAMP NOT NULL,
        updated_at TIMESTAMP
    )
    """,
)

_CATEGORY_COLUMNS = (
    "name",
    "description",
    "seo_title",
    "seo_description",
    "image_url",
    "image_alt",
)
_TOOL_COLUMNS = (
    "name",
    "description",
    "url",
    "category_id",
    "image_url",
    "image_alt",
    "favicon_url",
    "rating",
    "seo_title",
    "seo_description",
    "how_to_use",
    "features",
    "use_cases",
    "pricing",
)
_AGENT_COLUMNS = (
    "name",
    "description",
    "capabilities",
    "agent_features",
    "api_endpoint",
    "pricing_type",
    "status",
    "image_url",
    "image_alt",
    "seo_title",
    "seo_description",
    "is_available_24_7",
    "user_count",
    "has_fast_response",
    "is_secure",
    "is_featured",
    "is_verified",
)
_JSON_COLUMNS = frozenset({"features", "use_cases", "pricing", "capabilities", "agent_features"})


class StoreError(AitoonicError):
    """Raised when the database cannot be reached or a query fails."""


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _naive_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


def _ensure_arrow_table(result: Any) -> pa.Table:
    if isinstance(result, pa.Table):
        return result
    if isinstance(result, pa.RecordBatchReader):
        return result.read_all()
    if hasattr(result, "arrow"):
        return _ensure_arrow_table(result.arrow())
    raise TypeError("Query must produce a pyarrow.Table or DuckDB result")


def _require(value: _T | None, table: str, item_id: str) -> _T:
    if value is None:
        raise StoreError(f"{table} row {item_id} vanished after write")
    return value


def _storage_value(column: str, value: Any) -> Any:
    if column in _JSON_COLUMNS:
        return dump_json(value or ())
    return value


@dataclass(frozen=True)
class _Query:
    sql: str
    parameters: tuple[Any, ...] = ()


def _tool_query(options: ToolFilter) -> _Query:
    clauses: list[str] = []
    parameters: list[Any] = []
    if options.category_id is not None:
        clauses.append("category_id = ?")
        parameters.append(options.category_id)
    if options.exclude_id is not None:
        clauses.append("id <> ?")
        parameters.append(options.exclude_id)
    sql = "SELECT * FROM tools"
    if clauses:
        sql += " WHERE " + " AND ".join(clauses)
    sql += " ORDER BY created_at DESC" if options.newest_first else " ORDER BY name"
    if options.limit is not None:
        sql += f" LIMIT {int(options.limit)}"
    return _Query(sql, tuple(parameters))


def _agent_query(options: AgentFilter) -> _Query:
    clauses: list[str] = []
    parameters: list[Any] = []
    if options.status is not None:
        clauses.append("status = ?")
        parameters.append(options.status)
    if options.exclude_id is not None:
        clauses.append("id <> ?")
        parameters.append(options.exclude_id)
    sql = "SELECT * FROM agents"
    if clauses:
        sql += " WHERE " + " AND ".join(clauses)
    sql += " ORDER BY created_at DESC"
    if options.limit is not None:
        sql += f" LIMIT {int(options.limit)}"
    return _Query(sql, tuple(parameters))


class ContentStore:
    """Read/write access to the catalogue held in a DuckDB database.

    A single connection is shared and guarded by a lock; DuckDB connections
    must not be used from several threads at once.
    """

    def __init__(
        self,
        database: str | Path = ":memory:",
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._database = str(database)
        self._clock = clock or _utc_now
        self._lock = threading.Lock()
        try:
            self._connection = duckdb.connect(database=self._database)
        except duckdb.Error as exc:
            raise StoreError(f"Unable to open database {self._database!r}: {exc}") from exc
        self._run_schema()

    def close(self) -> None:
        with self._lock:
            self._connection.close()

    def _run_schema(self) -> None:
        for statement in SCHEMA:
            self._execute(_Query(statement))

    def _execute(self, query: _Query) -> None:
        with self._lock:
            try:
                self._connection.execute(query.sql, list(query.parameters))
            except duckdb.Error as exc:
                raise StoreError(str(exc)) from exc

    def _fetch(self, query: _Query) -> list[dict[str, Any]]:
        with self._lock:
            try:
                result = self._connection.execute(query.sql, list(query.parameters))
                table = _ensure_arrow_table(result)
            except duckdb.Error as exc:
                raise StoreError(str(exc)) from exc
        return table.to_pylist()

    def _fetch_one(self, query: _Query) -> dict[str, Any] | None:
        rows = self._fetch(query)
        return rows[0] if rows else None

    # Reads -----------------------------------------------------------------

    def list_tools(self, options: ToolFilter | None = None) -> list[Tool]:
        rows = self._fetch(_tool_query(options or ToolFilter()))
        return [Tool.from_record(row) for row in rows]

    def get_tool_by_name(self, name: str) -> Tool | None:
        row = self._fetch_one(
            _Query("SELECT * FROM tools WHERE lower(name) = lower(?) LIMIT 1", (name,))
        )
        return None if row is None else Tool.from_record(row)

    def get_tool(self, tool_id: str) -> Tool | None:
        row = self._fetch_one(_Query("SELECT * FROM tools WHERE id = ?", (tool_id,)))
        return None if row is None else Tool.from_record(row)

    def count_tools_by_category(self) -> dict[str, int]:
        rows = self._fetch(
            _Query(
                "SELECT category_id, count(*) AS tool_count FROM tools "
                "WHERE category_id IS NOT NULL GROUP BY category_id"
            )
        )
        return {str(row["category_id"]): int(row["tool_count"]) for row in rows}

    def list_categories(self, *, limit: int | None = None) -> list[Category]:
        counts = self.count_tools_by_category()
        query = _Query("SELECT * FROM categories ORDER BY name")
        if limit is not None:
            query = _Query(f"{query.sql} LIMIT {int(limit)}")
        return [
            Category.from_record(row, tool_count=counts.get(str(row["id"]), 0))
            for row in self._fetch(query)
        ]

    def get_category_by_name(self, name: str) -> Category | None:
        row = self._fetch_one(
            _Query("SELECT * FROM categories WHERE lower(name) = lower(?) LIMIT 1", (name,))
        )
        if row is None:
            return None
        return Category.from_record(
            row, tool_count=self.count_tools_by_category().get(str(row["id"]), 0)
        )

    def get_category(self, category_id: str) -> Category | None:
        row = self._fetch_one(_Query("SELECT * FROM categories WHERE id = ?", (category_id,)))
        return None if row is None else Category.from_record(row)

    def list_agents(self, options: AgentFilter | None = None) -> list[Agent]:
        rows = self._fetch(_agent_query(options or AgentFilter()))
        return [Agent.from_record(row) for row in rows]

    def get_agent_by_name(self, name: str) -> Agent | None:
        row = self._fetch_one(
            _Query("SELECT * FROM agents WHERE lower(name) = lower(?) LIMIT 1", (name,))
        )
        return None if row is None else Agent.from_record(row)

    def snapshot(self) -> CatalogSnapshot:
        """Return every tool, category and active agent."""

        return CatalogSnapshot(
            tools=tuple(self.list_tools(ToolFilter(newest_first=False))),
            categories=tuple(self.list_categories()),
            agents=tuple(self.list_agents(AgentFilter(status="active"))),
        )

    # Writes ----------------------------------------------------------------

    def upsert_category(self, values: Mapping[str, Any]) -> Category:
        item_id = self._upsert("categories", _CATEGORY_COLUMNS, values)
        return _require(self.get_category(item_id), "categories", item_id)

    def upsert_tool(self, values: Mapping[str, Any]) -> Tool:
        item_id = self._upsert("tools", _TOOL_COLUMNS, values)
        return _require(self.get_tool(item_id), "tools", item_id)

    def upsert_agent(self, values: Mapping[str, Any]) -> Agent:
        item_id = self._upsert("agents", _AGENT_COLUMNS, values)
        row = self._fetch_one(_Query("SELECT * FROM agents WHERE id = ?", (item_id,)))
        return Agent.from_record(_require(row, "agents", item_id))

    def _upsert(
        self, table: str, columns: Sequence[str], values: Mapping[str, Any]
    ) -> str:
        now = _naive_utc(self._clock())
        present = [column for column in columns if column in values]
        item_id = values.get("id")
        if item_id and self._exists(table, str(item_id)):
            assignments = ", ".join(f"{column} = ?" for column in present)
            parameters = [_storage_value(column, values[column]) for column in present]
            sql = f"UPDATE {table} SET {assignments + ', ' if assignments else ''}updated_at = ? WHERE id = ?"
            self._execute(_Query(sql, (*parameters, now, str(item_id))))
            logger.info("Updated %s row %s", table, item_id)
            return str(item_id)

        new_id = str(item_id or uuid.uuid4())
        created_at = values.get("created_at")
        created = _naive_utc(created_at) if isinstance(created_at, datetime) else now
        insert_columns = ["id", *present, "created_at", "updated_at"]
        parameters = [
            new_id,
            *(_storage_value(column, values[column]) for column in present),
            created,
            created,
        ]
        placeholders = ", ".join("?" for _ in insert_columns)
        sql = f"INSERT INTO {table} ({', '.join(insert_columns)}) VALUES ({placeholders})"
        self._execute(_Query(sql, tuple(parameters)))
        logger.info("Inserted %s row %s", table, new_id)
        return new_id

    def _exists(self, table: str, item_id: str) -> bool:
        return self._fetch_one(_Query(f"SELECT id FROM {table} WHERE id = ?", (item_id,))) is not None


class FailSoftContentStore:
    """Read-only view that degrades store failures to empty results.

    Pages stay available when the database is unreachable; the failure is
    logged and kept on :attr:`last_error` so callers can still tell an empty
    catalogue from an outage.
    """

    def __init__(self, store: ContentStore) -> None:
        self._store = store
        self.last_error: StoreError | None = None

    def _guard(self, operation: str, call: Callable[[], _T], fallback: _T) -> _T:
        try:
            result = call()
        except StoreError as exc:
            self.last_error = exc
            logger.warning("Content store %s failed: %s", operation, exc)
            return fallback
        return result

    def list_tools(self, options: ToolFilter | None = None) -> list[Tool]:
        return self._guard("list_tools", lambda: self._store.list_tools(options), [])

    def get_tool_by_name(self, name: str) -> Tool | None:
        return self._guard("get_tool_by_name", lambda: self._store.get_tool_by_name(name), None)

    def list_categories(self, *, limit: int | None = None) -> list[Category]:
        return self._guard(
            "list_categories", lambda: self._store.list_categories(limit=limit), []
        )

    def get_category(self, category_id: str) -> Category | None:
        return self._guard("get_category", lambda: self._store.get_category(category_id), None)

    def get_category_by_name(self, name: str) -> Category | None:
        return self._guard(
            "get_category_by_name", lambda: self._store.get_category_by_name(name), None
        )

    def list_agents(self, options: AgentFilter | None = None) -> list[Agent]:
        return self._guard("list_agents", lambda: self._store.list_agents(options), [])

    def get_agent_by_name(self, name: str) -> Agent | None:
        return self._guard("get_agent_by_name", lambda: self._store.get_agent_by_name(name), None)

    def snapshot(self) -> CatalogSnapshot:
        return CatalogSnapshot(
            tools=tuple(self.list_tools(ToolFilter(newest_first=False))),
            categories=tuple(self.list_categories()),
            agents=tuple(self.list_agents(AgentFilter(status="active"))),
        )


def seed(store: ContentStore, records: Mapping[str, Iterable[Mapping[str, Any]]]) -> None:
    """Insert fixture rows keyed by kind (``categories``, ``tools``, ``agents``)."""

    for values in records.get("categories", ()):
        store.upsert_category(values)
    for values in records.get("tools", ()):
        store.upsert_tool(values)
    for values in records.get("agents", ()):
        store.upsert_agent(values)


__all__ = ["ContentStore", "FailSoftContentStore", "StoreError", "seed"]
