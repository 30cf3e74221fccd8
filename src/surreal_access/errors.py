"""Exception hierarchy for surreal-access."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator


class SurrealAccessError(Exception):
    """Base exception for all surreal-access errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ConfigurationError(SurrealAccessError):
    """Configuration validation or resolution failed."""


class InternalError(SurrealAccessError):
    """A surreal-access internal error (bug) or invariant violation."""


class ConnectionFailedError(SurrealAccessError):
    """The driver could not open a connection to the database."""


class AuthenticationError(SurrealAccessError):
    """Signing in with the configured credentials failed."""


class SelectionError(SurrealAccessError):
    """Selecting the namespace and database failed."""


class OperationError(SurrealAccessError):
    """A bounded per-request operation failed.

    Carries the operation name and the record reference (when one applies)
    so callers can log or branch without parsing messages.
    """

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        operation: str | None = None,
        reference: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.operation = operation
        self.reference = reference


class OperationCancelledError(OperationError):
    """The caller's context was cancelled before the operation finished."""


class OperationTimeoutError(OperationCancelledError):
    """The caller's deadline passed before the operation finished."""


class DriverError(OperationError):
    """The underlying driver call itself failed.

    ``not_found`` is set when the driver reported a missing record or table,
    which lets health checks and callers tell absence apart from failure.
    """

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        operation: str | None = None,
        reference: str | None = None,
        status: str | None = None,
        not_found: bool = False,
    ) -> None:
        super().__init__(message, hint=hint, operation=operation, reference=reference)
        self.status = status
        self.not_found = not_found


class DecodeError(OperationError):
    """A driver response could not be decoded into the requested shape."""

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        operation: str | None = None,
        reference: str | None = None,
        target: str | None = None,
        error_count: int = 0,
    ) -> None:
        super().__init__(message, hint=hint, operation=operation, reference=reference)
        self.target = target
        self.error_count = error_count


class InvalidResponseError(DecodeError):
    """The driver returned something other than a sequence of items."""


def _walk_exception_chain(exc: BaseException) -> Iterator[BaseException]:
    """Yield *exc* and its ``__cause__``/``__context__`` chain, with cycle protection."""
    seen: set[int] = set()
    stack: list[BaseException] = [exc]
    while stack:
        cur = stack.pop()
        if id(cur) in seen:
            continue
        seen.add(id(cur))
        yield cur

        cause = cur.__cause__
        if isinstance(cause, BaseException):
            stack.append(cause)
        context = cur.__context__
        if isinstance(context, BaseException):
            stack.append(context)
