"""Test helpers (small, reusable doubles).

Keep this file tiny and purpose-built: it exists to prevent test suites from
growing lots of one-off driver subclasses as coverage expands.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

from tests.conftest import FakeDriver


@dataclass
class GateDriver(FakeDriver):
    """FakeDriver whose data calls block until ``release`` is set.

    ``started`` is set as soon as a blocked call begins, and ``finished``
    once it has produced its answer (or raised).
    """

    started: asyncio.Event = field(default_factory=asyncio.Event)
    release: asyncio.Event = field(default_factory=asyncio.Event)
    finished: asyncio.Event = field(default_factory=asyncio.Event)

    async def _gated(self, method: str, *args: Any) -> Any:
        self.started.set()
        try:
            await self.release.wait()
            return self._answer(method, *args)
        finally:
            self.finished.set()

    async def create(self, reference: str, payload: dict[str, Any]) -> list[Any]:
        return await self._gated("create", reference, payload)

    async def select(self, reference: str) -> list[Any]:
        return await self._gated("select", reference)

    async def update(self, reference: str, payload: dict[str, Any]) -> list[Any]:
        return await self._gated("update", reference, payload)

    async def delete(self, reference: str) -> list[Any]:
        return await self._gated("delete", reference)

    async def query(self, query: str, variables: dict[str, Any]) -> list[Any]:
        return await self._gated("query", query, variables)


@dataclass
class SelectionGateDriver(FakeDriver):
    """FakeDriver whose ``use`` calls block until ``release`` is set.

    ``entered`` records each selection as its driver call begins and
    ``max_active`` the most ``use`` calls ever in flight at once.
    """

    release: asyncio.Event = field(default_factory=asyncio.Event)
    entered: list[tuple[str, str]] = field(default_factory=list)
    active: int = 0
    max_active: int = 0

    async def use(self, namespace: str, database: str) -> None:
        self.entered.append((namespace, database))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await self.release.wait()
            self._answer("use", namespace, database)
        finally:
            self.active -= 1


def statement(result: Any, *, status: str = "OK", time: str = "1.0µs") -> dict[str, Any]:
    """Build one per-statement query response."""
    return {"time": time, "status": status, "result": result}
