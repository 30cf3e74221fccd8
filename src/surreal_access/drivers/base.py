"""Driver protocol: the minimal surface the client delegates to."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Driver(Protocol):
    """Minimal database driver protocol.

    Every data call returns a list: empty when nothing matched, one element
    for a single record, many for a table. ``query`` returns one entry per
    statement, each shaped like ``{"time": ..., "status": ..., "result": ...}``.
    Failures are raised, never returned.
    """

    async def connect(self, address: str) -> None:
        """Open the connection."""
        ...

    async def signin(self, user: str, password: str) -> Any:
        """Authenticate and return the session token, if any."""
        ...

    async def use(self, namespace: str, database: str) -> None:
        """Select the namespace and database for subsequent calls."""
        ...

    async def create(self, reference: str, payload: dict[str, Any]) -> list[Any]:
        """Create a record (or a record with a generated id for a table)."""
        ...

    async def select(self, reference: str) -> list[Any]:
        """Read a record or every record of a table."""
        ...

    async def update(self, reference: str, payload: dict[str, Any]) -> list[Any]:
        """Replace a record's content (or every record of a table)."""
        ...

    async def delete(self, reference: str) -> list[Any]:
        """Delete a record (or every record of a table)."""
        ...

    async def query(self, query: str, variables: dict[str, Any]) -> list[Any]:
        """Run a free-form query and return per-statement results."""
        ...

    async def close(self) -> None:
        """Close the connection."""
        ...
