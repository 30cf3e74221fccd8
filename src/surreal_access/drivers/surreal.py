"""SurrealDB driver backed by the official ``surrealdb`` SDK."""

from __future__ import annotations

from typing import Any

from surreal_access.errors import ConnectionFailedError, DriverError, InternalError
from surreal_access.references import parse_reference


def _as_list(value: Any) -> list[Any]:
    """Coerce the SDK's ``None | dict | list`` returns into a list."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


class SurrealDriver:
    """Driver over ``surrealdb.AsyncSurreal``.

    Supports every URL scheme the SDK does (``ws://``, ``wss://``,
    ``http://``, ``https://``, ``mem://``).
    """

    def __init__(self) -> None:
        """Create an unconnected driver."""
        self._db: Any = None

    def _client(self) -> Any:
        if self._db is None:
            raise InternalError(
                "SurrealDriver used before connect()",
                hint="Construct clients with SurrealClient.connect(config).",
            )
        return self._db

    @staticmethod
    def _thing(reference: str) -> Any:
        """Map a reference string onto the SDK's RecordID / Table types."""
        from surrealdb import RecordID, Table

        table, record_id = parse_reference(reference)
        if record_id is None:
            return Table(table)
        return RecordID(table, record_id)

    async def connect(self, address: str) -> None:
        """Open the connection to *address*."""
        try:
            from surrealdb import AsyncSurreal
        except ImportError as e:
            raise ConnectionFailedError(
                "surrealdb package not installed",
                hint="pip install surrealdb",
            ) from e

        db = AsyncSurreal(address)
        # Websocket connections need an explicit connect; HTTP ones are lazy.
        connect = getattr(db, "connect", None)
        if callable(connect):
            await connect()
        self._db = db

    async def signin(self, user: str, password: str) -> Any:
        """Sign in as a root/namespace/database user."""
        return await self._client().signin({"username": user, "password": password})

    async def use(self, namespace: str, database: str) -> None:
        """Select the namespace and database."""
        await self._client().use(namespace, database)

    async def create(self, reference: str, payload: dict[str, Any]) -> list[Any]:
        """Create a record."""
        return _as_list(await self._client().create(self._thing(reference), payload))

    async def select(self, reference: str) -> list[Any]:
        """Select a record or a table."""
        return _as_list(await self._client().select(self._thing(reference)))

    async def update(self, reference: str, payload: dict[str, Any]) -> list[Any]:
        """Replace a record's content."""
        return _as_list(await self._client().update(self._thing(reference), payload))

    async def delete(self, reference: str) -> list[Any]:
        """Delete a record or a table's records."""
        return _as_list(await self._client().delete(self._thing(reference)))

    async def query(self, query: str, variables: dict[str, Any]) -> list[Any]:
        """Run *query* and return every statement's time/status/result."""
        response = await self._client().query_raw(query, variables)
        if not isinstance(response, dict):
            return _as_list(response)
        error = response.get("error")
        if error is not None:
            message = error.get("message", error) if isinstance(error, dict) else error
            raise DriverError(f"query rejected: {message}")
        return _as_list(response.get("result"))

    async def close(self) -> None:
        """Close the connection. Idempotent."""
        db, self._db = self._db, None
        if db is not None:
            await db.close()
