"""Structured result of a free-form query statement."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, TypeVar

from surreal_access.normalize import decode_many

T = TypeVar("T")


@dataclass(frozen=True)
class QueryResult:
    """One statement's outcome as reported by the database.

    ``result`` holds the raw items untouched; use ``decode_items`` to shape
    them into caller types.
    """

    #: Execution duration as reported by the server (e.g. ``"1.2ms"``).
    time: str = ""
    #: ``"OK"`` or ``"ERR"``.
    status: str = ""
    result: list[Any] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """Whether the statement succeeded."""
        return self.status.upper() == "OK"

    def decode_items(self, item_type: type[T] | Any = dict) -> list[T]:
        """Decode every raw item into *item_type*."""
        return decode_many(self.result, item_type)

    def __len__(self) -> int:
        return len(self.result)


def coerce_statement(statement: Any) -> Any:
    """Give a statement's ``result`` the list form QueryResult expects.

    ``RETURN 1`` reports a bare scalar and some statements report null; both
    become lists so every successful statement decodes the same way. Error
    statements are left untouched for the caller to report.
    """
    if not isinstance(statement, dict):
        return statement
    if str(statement.get("status", "OK")).upper() != "OK":
        return statement
    result = statement.get("result")
    if result is None:
        return {**statement, "result": []}
    if not isinstance(result, (list, tuple)):
        return {**statement, "result": [result]}
    return statement
