"""In-memory driver for testing and offline use.

Stores records per namespace/database in plain dicts and understands a very
small statement subset:

- ``SELECT * FROM <reference>``
- ``DELETE <reference>``
- ``RELATE <reference>-><relation>-><reference>``

References in statements may be literal (``item:1``) or ``$variables``
bound to reference strings. Any other statement reports ``status="ERR"``,
as the server does for a failing statement.
"""

from __future__ import annotations

import copy
import re
import time
from typing import Any
import uuid

from surreal_access.references import parse_reference

_SELECT_RE = re.compile(r"^SELECT\s+\*\s+FROM\s+(\S+)$", re.IGNORECASE)
_DELETE_RE = re.compile(r"^DELETE\s+(?:FROM\s+)?(\S+)$", re.IGNORECASE)
_RELATE_RE = re.compile(r"^RELATE\s+(\S+?)\s*->\s*(\w+)\s*->\s*(\S+)$", re.IGNORECASE)

Table = dict[str, dict[str, Any]]


def _format_duration(seconds: float) -> str:
    micros = seconds * 1_000_000
    if micros < 1000:
        return f"{micros:.1f}µs"
    return f"{micros / 1000:.3f}ms"


class MemoryDriver:
    """Driver that keeps everything in process memory.

    Args:
        credentials: Accepted ``{user: password}`` pairs. When omitted, any
            credentials are accepted.
    """

    def __init__(self, credentials: dict[str, str] | None = None) -> None:
        """Create an empty, unconnected store."""
        self._credentials = credentials
        self._connected = False
        self._signed_in = False
        self._selection: tuple[str, str] | None = None
        self._data: dict[tuple[str, str], dict[str, Table]] = {}

    # --- session -----------------------------------------------------------

    async def connect(self, address: str) -> None:  # noqa: ARG002
        """Mark the store as connected."""
        self._connected = True

    async def signin(self, user: str, password: str) -> str:
        """Check *user*/*password* against the configured credentials."""
        self._require_connection()
        if self._credentials is not None and self._credentials.get(user) != password:
            raise PermissionError("There was a problem with authentication")
        self._signed_in = True
        return f"mock-token-{user or 'anonymous'}"

    async def use(self, namespace: str, database: str) -> None:
        """Select the namespace/database pair used by later calls."""
        self._require_connection()
        if not namespace or not database:
            raise ValueError("Specify a namespace and database to use")
        self._selection = (namespace, database)

    async def close(self) -> None:
        """Disconnect. Data is kept so a new connection can see it."""
        self._connected = False

    def _require_connection(self) -> None:
        if not self._connected:
            raise ConnectionError("MemoryDriver is not connected")

    def _tables(self) -> dict[str, Table]:
        self._require_connection()
        if self._selection is None:
            raise RuntimeError("Specify a namespace and database to use")
        return self._data.setdefault(self._selection, {})

    # --- records -----------------------------------------------------------

    async def create(self, reference: str, payload: dict[str, Any]) -> list[Any]:
        """Create one record; a bare table gets a generated id."""
        table, record_id = parse_reference(reference)
        rows = self._tables().setdefault(table, {})
        key = str(record_id) if record_id is not None else uuid.uuid4().hex[:20]
        if key in rows:
            raise RuntimeError(f"Database record `{table}:{key}` already exists")
        record = {**copy.deepcopy(payload), "id": f"{table}:{key}"}
        rows[key] = record
        return [copy.deepcopy(record)]

    async def select(self, reference: str) -> list[Any]:
        """Return the record, or every record of the table in insertion order."""
        table, record_id = parse_reference(reference)
        rows = self._tables().get(table, {})
        if record_id is None:
            return [copy.deepcopy(r) for r in rows.values()]
        record = rows.get(str(record_id))
        return [copy.deepcopy(record)] if record is not None else []

    async def update(self, reference: str, payload: dict[str, Any]) -> list[Any]:
        """Replace content of existing records; missing records stay missing."""
        table, record_id = parse_reference(reference)
        rows = self._tables().get(table, {})
        keys = list(rows) if record_id is None else [str(record_id)]
        updated: list[Any] = []
        for key in keys:
            if key not in rows:
                continue
            rows[key] = {**copy.deepcopy(payload), "id": f"{table}:{key}"}
            updated.append(copy.deepcopy(rows[key]))
        return updated

    async def delete(self, reference: str) -> list[Any]:
        """Remove records and return what was removed."""
        table, record_id = parse_reference(reference)
        rows = self._tables().get(table, {})
        if record_id is None:
            removed = list(rows.values())
            rows.clear()
            return removed
        record = rows.pop(str(record_id), None)
        return [record] if record is not None else []

    # --- statements --------------------------------------------------------

    async def query(self, query: str, variables: dict[str, Any]) -> list[Any]:
        """Run each ``;``-separated statement and report per-statement results."""
        self._tables()
        results: list[Any] = []
        for statement in (s.strip() for s in query.split(";")):
            if not statement:
                continue
            start = time.perf_counter()
            try:
                items = await self._run_statement(statement, variables)
            except Exception as e:  # noqa: BLE001 - statement errors are reported, not raised
                results.append(
                    {
                        "time": _format_duration(time.perf_counter() - start),
                        "status": "ERR",
                        "result": str(e),
                    }
                )
                continue
            results.append(
                {
                    "time": _format_duration(time.perf_counter() - start),
                    "status": "OK",
                    "result": items,
                }
            )
        return results

    @staticmethod
    def _resolve(token: str, variables: dict[str, Any]) -> str:
        if not token.startswith("$"):
            return token
        name = token[1:]
        if name not in variables:
            raise ValueError(f"Unbound variable ${name}")
        return str(variables[name])

    async def _run_statement(self, statement: str, variables: dict[str, Any]) -> list[Any]:
        m = _SELECT_RE.match(statement)
        if m:
            return await self.select(self._resolve(m.group(1), variables))

        m = _DELETE_RE.match(statement)
        if m:
            await self.delete(self._resolve(m.group(1), variables))
            return []

        m = _RELATE_RE.match(statement)
        if m:
            source = self._resolve(m.group(1), variables)
            relation = m.group(2)
            target = self._resolve(m.group(3), variables)
            for ref in (source, target):
                if parse_reference(ref)[1] is None:
                    raise ValueError(f"Can not relate a whole table: {ref}")
            return await self.create(relation, {"in": source, "out": target})

        raise ValueError(f"Unsupported statement for MemoryDriver: {statement}")
