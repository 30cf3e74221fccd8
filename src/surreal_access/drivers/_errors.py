"""Shared driver-side error helpers.

Drivers raise whatever their SDK raises; these helpers map those exceptions
into the library taxonomy without callers having to inspect SDK types.
"""

from __future__ import annotations

import asyncio
import re

from surreal_access.errors import (
    AuthenticationError,
    DriverError,
    _walk_exception_chain,
)

_NOT_FOUND_RE = re.compile(
    r"\b(record|table|namespace|database)\b.*\b(not\s+found|does\s+not\s+exist)",
    re.IGNORECASE,
)
_AUTH_RE = re.compile(
    r"(authenticat|invalid\s+credentials|not\s+allowed|permission|signin|unauthori[sz]ed)",
    re.IGNORECASE,
)


def is_not_found(exc: BaseException) -> bool:
    """Walk the exception chain looking for a not-found report."""
    for e in _walk_exception_chain(exc):
        if isinstance(e, DriverError) and e.not_found:
            return True
        if _NOT_FOUND_RE.search(str(e)):
            return True
    return False


def is_auth_failure(exc: BaseException) -> bool:
    """Walk the exception chain looking for a rejected-credentials report."""
    for e in _walk_exception_chain(exc):
        if isinstance(e, (AuthenticationError, PermissionError)):
            return True
        if _AUTH_RE.search(str(e)):
            return True
    return False


def wrap_driver_error(
    exc: BaseException,
    *,
    operation: str,
    reference: str | None = None,
    message: str | None = None,
    hint: str | None = None,
) -> DriverError:
    """Map a driver exception into DriverError with operation metadata."""
    if isinstance(exc, asyncio.CancelledError):
        raise exc

    # Already wrapped: fill in missing context only.
    if isinstance(exc, DriverError):
        if exc.operation is None:
            exc.operation = operation
        if exc.reference is None:
            exc.reference = reference
        if hint is not None and exc.hint is None:
            exc.hint = hint
        return exc

    not_found = is_not_found(exc)
    derived_hint = hint
    if derived_hint is None and is_auth_failure(exc):
        derived_hint = "Check the session's permissions for this namespace and database."

    target = f" on {reference!r}" if reference else ""
    msg = message or f"{operation}{target} failed"
    cause = str(exc) or type(exc).__name__
    return DriverError(
        f"{msg}: {cause}",
        hint=derived_hint,
        operation=operation,
        reference=reference,
        not_found=not_found,
    )
