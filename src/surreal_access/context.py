"""Per-invocation cancellation signal.

An OperationContext bounds how long a caller is willing to wait for one
operation. It fires either when its deadline passes or when ``cancel()`` is
called, whichever happens first. Deadlines use ``time.monotonic()``, the same
clock the default asyncio event loop uses.
"""

from __future__ import annotations

import asyncio
import math
import time
from typing import Literal

FireReason = Literal["cancelled", "timeout"]


class OperationContext:
    """Deadline and/or explicit cancellation for a single operation.

    Example:
        ctx = OperationContext.with_timeout(2.0)
        item = await client.read_one("item:1", Item, ctx=ctx)
    """

    __slots__ = ("_cancelled", "_deadline", "_event")

    def __init__(self, *, deadline: float | None = None) -> None:
        """Create a context that expires at monotonic time *deadline*, if given."""
        if deadline is not None and math.isnan(deadline):
            raise ValueError("OperationContext deadline must not be NaN")
        self._deadline = deadline
        self._cancelled = False
        self._event = asyncio.Event()

    @classmethod
    def background(cls) -> OperationContext:
        """Return a context with no deadline; only ``cancel()`` fires it."""
        return cls()

    @classmethod
    def with_timeout(cls, timeout_s: float) -> OperationContext:
        """Return a context that expires *timeout_s* seconds from now."""
        if timeout_s < 0 or math.isnan(timeout_s):
            raise ValueError(f"timeout_s must be >= 0, got {timeout_s}")
        return cls(deadline=time.monotonic() + timeout_s)

    @property
    def deadline(self) -> float | None:
        """Absolute monotonic deadline, or None."""
        return self._deadline

    def remaining(self) -> float | None:
        """Seconds left before the deadline (never negative), or None."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def cancel(self) -> None:
        """Fire the context explicitly. Idempotent."""
        if self.reason() is None:
            self._cancelled = True
        self._event.set()

    def reason(self) -> FireReason | None:
        """Why the context fired, or None while it is still live.

        An explicit cancel recorded before the deadline takes precedence.
        """
        if self._cancelled:
            return "cancelled"
        if self._deadline is not None and time.monotonic() >= self._deadline:
            return "timeout"
        return None

    @property
    def done(self) -> bool:
        """Whether the context has fired."""
        return self.reason() is not None

    async def wait(self) -> FireReason:
        """Suspend until the context fires and return why."""
        reason = self.reason()
        if reason is not None:
            return reason
        remaining = self.remaining()
        try:
            await asyncio.wait_for(self._event.wait(), timeout=remaining)
        except TimeoutError:
            pass
        # Deadline reached or cancel() called.
        return self.reason() or "timeout"

    def __repr__(self) -> str:
        return f"OperationContext(deadline={self._deadline!r}, reason={self.reason()!r})"
