"""Record reference helpers.

A reference is a plain string: ``"table"`` addresses a whole table and
``"table:id"`` a single record. Whether the caller wants one record or many
is decided by the decode target, never by the reference.
"""

from __future__ import annotations

import re

from surreal_access.errors import ConfigurationError

_IDENT = r"[A-Za-z_][A-Za-z0-9_]*"
# Record ids: bare word characters, or an escaped id in ⟨...⟩ / `...`.
_RECORD_ID = r"(?:[A-Za-z0-9_]+|⟨[^⟩]+⟩|`[^`]+`)"

_TABLE_RE = re.compile(rf"^{_IDENT}$")
_RECORD_RE = re.compile(rf"^({_IDENT}):({_RECORD_ID})$")


def parse_reference(reference: str) -> tuple[str, str | int | None]:
    """Split *reference* into ``(table, id)``; ``id`` is None for a table.

    Purely numeric ids become ``int`` so ``item:1`` names the same record the
    query language does. Escaped ids have their brackets stripped.

    Raises:
        ConfigurationError: If the reference is not a table or record id.
    """
    if _TABLE_RE.match(reference):
        return reference, None

    m = _RECORD_RE.match(reference)
    if m is None:
        raise ConfigurationError(
            f"Invalid record reference: {reference!r}",
            hint="Use 'table' for a whole table or 'table:id' for one record.",
        )
    table, raw_id = m.group(1), m.group(2)
    if raw_id[0] in "⟨`":
        return table, raw_id[1:-1]
    if raw_id.isdigit():
        return table, int(raw_id)
    return table, raw_id


def is_record(reference: str) -> bool:
    """Return True when *reference* names a single record (``table:id``)."""
    return parse_reference(reference)[1] is not None


def validate_relation(relation: str) -> str:
    """Return *relation* if it is a bare identifier usable as an edge table."""
    if not _TABLE_RE.match(relation):
        raise ConfigurationError(
            f"Invalid relation name: {relation!r}",
            hint="Relation names must be identifiers such as 'likes' or 'wrote'.",
        )
    return relation
