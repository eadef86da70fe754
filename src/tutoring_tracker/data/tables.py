from __future__ import annotations

import json
import sqlite3
import uuid
from typing import Any, Mapping, Protocol, Sequence

import requests

from tutoring_tracker.data.database import Database

PROGRESS_ENTRIES = "progress_entries"
KID_PROFILES = "kid_profiles"

TABLE_COLUMNS: dict[str, tuple[str, ...]] = {
    PROGRESS_ENTRIES: (
        "id",
        "date",
        "day",
        "volunteer_name",
        "kids_taught",
        "class",
        "topic_taught",
        "homework",
        "created_at",
        "updated_at",
    ),
    KID_PROFILES: ("id", "name", "classname", "school", "phone", "created_at", "updated_at"),
}

JSON_COLUMNS: dict[str, tuple[str, ...]] = {
    PROGRESS_ENTRIES: ("kids_taught",),
}

OrderBy = Sequence[tuple[str, bool]]


class TableError(RuntimeError):
    """Raised when the storage backend rejects or cannot complete a call."""


class Table(Protocol):
    """Row-oriented view of one remote table.

    Rows are plain dicts keyed by the persisted (snake_case) column names.
    ``order_by`` is a sequence of ``(column, descending)`` pairs.
    """

    name: str

    def select(self, *, order_by: OrderBy = (), limit: int | None = None) -> list[dict]:
        ...

    def insert(self, row: Mapping[str, Any]) -> dict:
        ...

    def update(self, row_id: str, values: Mapping[str, Any]) -> dict | None:
        ...

    def delete(self, row_id: str) -> None:
        ...

    def delete_before(self, column: str, value: str) -> int:
        ...


class SqliteTable:
    """:class:`Table` over a local sqlite database."""

    def __init__(self, database: Database, name: str) -> None:
        if name not in TABLE_COLUMNS:
            raise ValueError(f"Unknown table: {name}")
        self._database = database
        self.name = name
        self._columns = TABLE_COLUMNS[name]
        self._json_columns = JSON_COLUMNS.get(name, ())

    def select(self, *, order_by: OrderBy = (), limit: int | None = None) -> list[dict]:
        query_parts = [f'SELECT * FROM "{self.name}"']
        params: list[Any] = []

        if order_by:
            terms = [f'"{self._column(column)}" {"DESC" if descending else "ASC"}' for column, descending in order_by]
            # Rows created within the same timestamp tick keep insertion order.
            terms.append(f"rowid {'DESC' if order_by[-1][1] else 'ASC'}")
            query_parts.append("ORDER BY " + ", ".join(terms))

        if limit is not None:
            query_parts.append("LIMIT ?")
            params.append(int(limit))

        sql = "\n".join(query_parts)

        try:
            with self._database.connect() as connection:
                rows = connection.execute(sql, tuple(params)).fetchall()
        except sqlite3.Error as exc:
            raise TableError(f"Failed to read {self.name}: {exc}") from exc

        return [self._decode(row) for row in rows]

    def insert(self, row: Mapping[str, Any]) -> dict:
        payload = self._encode(row)
        payload.setdefault("id", uuid.uuid4().hex)
        columns = list(payload)
        placeholders = ", ".join(["?"] * len(columns))
        column_sql = ", ".join(f'"{column}"' for column in columns)

        try:
            with self._database.connect() as connection:
                connection.execute(
                    f'INSERT INTO "{self.name}" ({column_sql}) VALUES ({placeholders})',
                    tuple(payload[column] for column in columns),
                )
                stored = self._fetch_one(connection, payload["id"])
        except sqlite3.Error as exc:
            raise TableError(f"Failed to insert into {self.name}: {exc}") from exc

        if stored is None:
            raise TableError(f"Inserted row missing from {self.name}")
        return stored

    def update(self, row_id: str, values: Mapping[str, Any]) -> dict | None:
        payload = self._encode(values)
        payload.pop("id", None)
        assignments = [f'"{column}" = ?' for column in payload]
        assignments.append("\"updated_at\" = strftime('%Y-%m-%dT%H:%M:%fZ', 'now')")

        try:
            with self._database.connect() as connection:
                cursor = connection.execute(
                    f'UPDATE "{self.name}" SET {", ".join(assignments)} WHERE id = ?',
                    (*payload.values(), row_id),
                )
                if cursor.rowcount == 0:
                    return None
                return self._fetch_one(connection, row_id)
        except sqlite3.Error as exc:
            raise TableError(f"Failed to update {self.name} row {row_id}: {exc}") from exc

    def delete(self, row_id: str) -> None:
        try:
            with self._database.connect() as connection:
                connection.execute(f'DELETE FROM "{self.name}" WHERE id = ?', (row_id,))
        except sqlite3.Error as exc:
            raise TableError(f"Failed to delete {self.name} row {row_id}: {exc}") from exc

    def delete_before(self, column: str, value: str) -> int:
        column = self._column(column)
        try:
            with self._database.connect() as connection:
                cursor = connection.execute(
                    f'DELETE FROM "{self.name}" WHERE "{column}" < ?',
                    (value,),
                )
                return int(cursor.rowcount)
        except sqlite3.Error as exc:
            raise TableError(f"Failed to delete from {self.name}: {exc}") from exc

    def _column(self, column: str) -> str:
        if column not in self._columns:
            raise TableError(f"Unknown column {column!r} for {self.name}")
        return column

    def _fetch_one(self, connection: sqlite3.Connection, row_id: str) -> dict | None:
        row = connection.execute(f'SELECT * FROM "{self.name}" WHERE id = ?', (row_id,)).fetchone()
        return self._decode(row) if row else None

    def _encode(self, row: Mapping[str, Any]) -> dict:
        payload: dict[str, Any] = {}
        for column, value in row.items():
            self._column(column)
            if column in self._json_columns:
                value = json.dumps(list(value or []))
            payload[column] = value
        return payload

    def _decode(self, row: sqlite3.Row) -> dict:
        data = dict(row)
        for column in self._json_columns:
            raw = data.get(column)
            data[column] = json.loads(raw) if raw else []
        return data


class RestTable:
    """:class:`Table` over a PostgREST endpoint such as a hosted Supabase project."""

    def __init__(
        self,
        base_url: str,
        name: str,
        api_key: str,
        *,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self.name = name
        self._endpoint = f"{base_url.rstrip('/')}/rest/v1/{name}"
        self._timeout = timeout
        self._session = session or requests.Session()
        self._headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    def select(self, *, order_by: OrderBy = (), limit: int | None = None) -> list[dict]:
        params: dict[str, Any] = {"select": "*"}
        if order_by:
            params["order"] = ",".join(
                f"{column}.{'desc' if descending else 'asc'}" for column, descending in order_by
            )
        if limit is not None:
            params["limit"] = int(limit)
        return self._request("GET", params=params)

    def insert(self, row: Mapping[str, Any]) -> dict:
        rows = self._request("POST", json=[dict(row)], returning=True)
        if not rows:
            raise TableError(f"Insert into {self.name} returned no row")
        return rows[0]

    def update(self, row_id: str, values: Mapping[str, Any]) -> dict | None:
        rows = self._request("PATCH", params={"id": f"eq.{row_id}"}, json=dict(values), returning=True)
        return rows[0] if rows else None

    def delete(self, row_id: str) -> None:
        self._request("DELETE", params={"id": f"eq.{row_id}"})

    def delete_before(self, column: str, value: str) -> int:
        rows = self._request("DELETE", params={column: f"lt.{value}"}, returning=True)
        return len(rows)

    def _request(
        self,
        method: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        returning: bool = False,
    ) -> list[dict]:
        headers = dict(self._headers)
        if returning:
            headers["Prefer"] = "return=representation"

        try:
            response = self._session.request(
                method,
                self._endpoint,
                params=params,
                json=json,
                headers=headers,
                timeout=self._timeout,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            raise TableError(f"{method} {self.name} failed: {exc}") from exc

        if not response.content:
            return []

        try:
            payload = response.json()
        except ValueError as exc:
            raise TableError(f"{method} {self.name} returned invalid JSON") from exc

        if isinstance(payload, dict):
            return [payload]
        return list(payload)


def create_table(config: Any, name: str, *, database: Database | None = None) -> Table:
    """Build the table backend selected by ``config.storage_backend``."""

    if config.storage_backend == "rest":
        if not config.remote_url or not config.remote_api_key:
            raise TableError("REMOTE_URL and REMOTE_API_KEY are required for the rest backend.")
        return RestTable(config.remote_url, name, config.remote_api_key, timeout=config.remote_timeout)

    if config.storage_backend != "sqlite":
        raise TableError(f"Unsupported storage backend: {config.storage_backend}")

    if database is None:
        database = Database(config.database_path)
        database.initialize()
    return SqliteTable(database, name)
