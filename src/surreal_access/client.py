"""SurrealClient: cancellation-bounded, shape-normalized access to SurrealDB."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Self, TypeVar

from surreal_access.context import OperationContext
from surreal_access.drivers._errors import is_auth_failure, is_not_found
from surreal_access.envelope import run_cancellable
from surreal_access.errors import (
    AuthenticationError,
    ConfigurationError,
    ConnectionFailedError,
    DecodeError,
    DriverError,
    SelectionError,
    SurrealAccessError,
)
from surreal_access.normalize import decode, decode_many, decode_one, to_entry
from surreal_access.references import parse_reference, validate_relation
from surreal_access.result import QueryResult, coerce_statement

if TYPE_CHECKING:
    from collections.abc import Generator
    from types import TracebackType

    from surreal_access.config import Config
    from surreal_access.drivers.base import Driver

T = TypeVar("T")

logger = logging.getLogger(__name__)

#: Deliberately absent record read by health_check().
HEALTH_PROBE_REFERENCE = "__health__:probe"
HEALTH_TIMEOUT_S = 3.0
CLOSE_GRACE_S = 5.0


def _make_driver(config: Config) -> Driver:
    """Get the appropriate driver based on configuration."""
    if config.use_mock:
        from surreal_access.drivers.memory import MemoryDriver

        return MemoryDriver()

    from surreal_access.drivers.surreal import SurrealDriver

    return SurrealDriver()


class _Connecting:
    """Awaitable / async context manager returned by SurrealClient.connect()."""

    def __init__(self, config: Config, driver: Driver | None) -> None:
        self._config = config
        self._driver = driver
        self._client: SurrealClient | None = None

    def __await__(self) -> Generator[Any, None, SurrealClient]:
        return SurrealClient._open(self._config, self._driver).__await__()

    async def __aenter__(self) -> SurrealClient:
        self._client = await SurrealClient._open(self._config, self._driver)
        return self._client

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._client is not None:
            await self._client.close()


class SurrealClient:
    """Access layer over a database driver.

    Every data operation runs through the cancellable envelope: it is bounded
    by an optional ``ctx`` (OperationContext) and fails with a distinct error
    class for cancellation, timeout, driver failure or decode failure.

    Example:
        async with SurrealClient.connect(config) as client:
            await client.create("item:1", {"name": "a", "count": 1})
            item = await client.read_one("item:1", Item, ctx=OperationContext.with_timeout(2))
    """

    def __init__(self, driver: Driver, config: Config) -> None:
        """Wrap an already connected and signed-in *driver*.

        Prefer ``SurrealClient.connect(config)``, which performs the handshake.
        """
        self._driver = driver
        self._config = config
        self._namespace = ""
        self._database = ""
        self._selection_lock = asyncio.Lock()
        self._background: set[asyncio.Task[Any]] = set()
        self._closed = False

    # --- construction ------------------------------------------------------

    @classmethod
    def connect(cls, config: Config, *, driver: Driver | None = None) -> _Connecting:
        """Connect, sign in and (when configured) select namespace/database.

        Usable both as ``client = await SurrealClient.connect(cfg)`` and as
        ``async with SurrealClient.connect(cfg) as client``.

        Raises:
            ConnectionFailedError: The address could not be reached.
            AuthenticationError: The credentials were rejected.
            SelectionError: The namespace/database could not be selected.
        """
        return _Connecting(config, driver)

    @classmethod
    async def _open(cls, config: Config, driver: Driver | None) -> SurrealClient:
        drv = driver if driver is not None else _make_driver(config)
        address = config.address or "memory://"

        try:
            await drv.connect(address)
        except asyncio.CancelledError:
            raise
        except SurrealAccessError:
            raise
        except Exception as e:
            raise ConnectionFailedError(
                f"Could not connect to {address}: {e}",
                hint="Check that the server is running and the address scheme is "
                "ws://, wss://, http:// or https://.",
            ) from e

        client = cls(drv, config)
        try:
            try:
                await drv.signin(config.user, config.password)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                if is_auth_failure(e):
                    raise AuthenticationError(
                        f"Sign in as {config.user!r} failed: {e}",
                        hint="Set SURREAL_USER/SURREAL_PASSWORD or pass "
                        "Config(user=..., password=...).",
                    ) from e
                raise ConnectionFailedError(
                    f"Connection to {address} failed during sign in: {e}"
                ) from e

            if config.has_selection:
                await client.use(config.namespace, config.database)
        except BaseException:
            await client._close_driver()
            raise

        logger.info(
            "Connected to %s as %r (namespace=%r, database=%r)",
            address,
            config.user,
            client.namespace,
            client.database,
        )
        return client

    # --- connection context ------------------------------------------------

    @property
    def namespace(self) -> str:
        """Currently selected namespace (``""`` when unset)."""
        return self._namespace

    @property
    def database(self) -> str:
        """Currently selected database (``""`` when unset)."""
        return self._database

    @property
    def config(self) -> Config:
        """The configuration this client was built from."""
        return self._config

    @property
    def pending_background(self) -> int:
        """Abandoned driver calls that are still running."""
        return len(self._background)

    async def use(self, namespace: str, database: str) -> None:
        """Select *namespace* and *database* for subsequent operations.

        Concurrent ``use()`` calls are serialized; the recorded pair changes
        only after the driver acknowledges. Operations already in flight are
        not fenced and may run under either selection.

        Raises:
            ConfigurationError: Only one of the two names was given.
            SelectionError: The driver rejected the selection.
        """
        if not namespace or not database:
            raise ConfigurationError(
                "namespace and database must both be non-empty",
                hint="Pass both names, e.g. client.use('n', 'd').",
            )
        self._ensure_open()
        async with self._selection_lock:
            try:
                await self._driver.use(namespace, database)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                raise SelectionError(
                    f"Could not select namespace={namespace!r} database={database!r}: {e}",
                    hint="Check that the user may access this namespace and database.",
                ) from e
            self._namespace, self._database = namespace, database
        logger.info("Selected namespace=%r database=%r", namespace, database)

    async def health_check(self) -> None:
        """Read a deliberately absent record within a short deadline.

        An empty or not-found answer means the database is healthy.

        Raises:
            OperationTimeoutError: The database did not answer in time.
            DriverError: The database answered with a real failure.
        """
        ctx = OperationContext.with_timeout(HEALTH_TIMEOUT_S)
        try:
            await self._call(
                ctx,
                "health_check",
                HEALTH_PROBE_REFERENCE,
                self._driver.select,
                HEALTH_PROBE_REFERENCE,
            )
        except DriverError as e:
            if not e.not_found:
                raise
            logger.debug("Health probe reported not found; treating as healthy")

    # --- operations --------------------------------------------------------

    def _ensure_open(self) -> None:
        if self._closed:
            raise ConnectionFailedError(
                "SurrealClient is closed",
                hint="Open a new client with SurrealClient.connect(config).",
            )

    async def _call(
        self,
        ctx: OperationContext | None,
        operation: str,
        reference: str | None,
        fn: Any,
        *args: Any,
    ) -> Any:
        self._ensure_open()
        if ctx is None:
            ctx = OperationContext.background()
        return await run_cancellable(
            ctx,
            lambda: fn(*args),
            operation=operation,
            reference=reference,
            tasks=self._background,
        )

    @staticmethod
    def _shape(raw: Any, fn: Any, target: Any, *, operation: str, reference: str) -> Any:
        try:
            return fn(raw, target)
        except DecodeError as e:
            e.operation = operation
            e.reference = reference
            raise

    async def create(
        self,
        reference: str,
        payload: Any,
        *,
        ctx: OperationContext | None = None,
    ) -> dict[str, Any] | None:
        """Create a record and return it as stored (including its ``id``)."""
        parse_reference(reference)
        entry = to_entry(payload)
        raw = await self._call(ctx, "create", reference, self._driver.create, reference, entry)
        return self._shape(raw, decode_one, dict, operation="create", reference=reference)

    async def read(
        self,
        reference: str,
        into: type[T] | Any,
        *,
        ctx: OperationContext | None = None,
    ) -> Any:
        """Read *reference* and decode into *into*.

        The shape follows *into*: ``list[Item]`` yields a list, ``Item`` yields
        the first record or ``None``.
        """
        parse_reference(reference)
        raw = await self._call(ctx, "read", reference, self._driver.select, reference)
        return self._shape(raw, decode, into, operation="read", reference=reference)

    async def read_one(
        self,
        reference: str,
        item_type: type[T] | Any = dict,
        *,
        ctx: OperationContext | None = None,
    ) -> T | None:
        """Read a single record; ``None`` when nothing matched."""
        parse_reference(reference)
        raw = await self._call(ctx, "read_one", reference, self._driver.select, reference)
        return self._shape(raw, decode_one, item_type, operation="read_one", reference=reference)

    async def read_many(
        self,
        reference: str,
        item_type: type[T] | Any = dict,
        *,
        ctx: OperationContext | None = None,
    ) -> list[T]:
        """Read every record *reference* addresses, in driver order."""
        parse_reference(reference)
        raw = await self._call(ctx, "read_many", reference, self._driver.select, reference)
        return self._shape(raw, decode_many, item_type, operation="read_many", reference=reference)

    async def update(
        self,
        reference: str,
        payload: Any,
        *,
        ctx: OperationContext | None = None,
    ) -> dict[str, Any] | None:
        """Replace a record's content; ``None`` when the record does not exist."""
        parse_reference(reference)
        entry = to_entry(payload)
        raw = await self._call(ctx, "update", reference, self._driver.update, reference, entry)
        return self._shape(raw, decode_one, dict, operation="update", reference=reference)

    async def delete(self, reference: str, *, ctx: OperationContext | None = None) -> None:
        """Delete a record or a table's records.

        Deleting something that does not exist is a successful no-op.
        """
        parse_reference(reference)
        try:
            await self._call(ctx, "delete", reference, self._driver.delete, reference)
        except DriverError as e:
            if not e.not_found:
                raise
            logger.debug("Delete of absent %r treated as no-op", reference)

    async def relate(
        self,
        ref1: str,
        ref2: str,
        relation: str,
        *,
        ctx: OperationContext | None = None,
    ) -> Any:
        """Create a ``relation`` edge from *ref1* to *ref2* and return the raw result."""
        for ref in (ref1, ref2):
            if parse_reference(ref)[1] is None:
                raise ConfigurationError(
                    f"relate() needs record references, got table {ref!r}",
                    hint="Use 'table:id' references on both ends of a relation.",
                )
        validate_relation(relation)
        statement = f"RELATE {ref1}->{relation}->{ref2}"
        raw = await self._call(ctx, "relate", ref1, self._driver.query, statement, {})
        results = self._statements(raw, operation="relate", reference=ref1)
        return results[0].result if results else []

    async def query(
        self,
        query: str,
        variables: dict[str, Any] | None = None,
        *,
        ctx: OperationContext | None = None,
    ) -> QueryResult:
        """Run a free-form query and return the first statement's result."""
        results = await self.query_all(query, variables, ctx=ctx)
        if not results:
            return QueryResult()
        return results[0]

    async def query_all(
        self,
        query: str,
        variables: dict[str, Any] | None = None,
        *,
        ctx: OperationContext | None = None,
    ) -> list[QueryResult]:
        """Run a free-form query and return every statement's result."""
        raw = await self._call(ctx, "query", None, self._driver.query, query, dict(variables or {}))
        return self._statements(raw, operation="query", reference=None)

    def _statements(
        self, raw: Any, *, operation: str, reference: str | None
    ) -> list[QueryResult]:
        """Check statement statuses, then shape them into QueryResults."""
        if isinstance(raw, (list, tuple)):
            raw = [coerce_statement(s) for s in raw]
            for stmt in raw:
                if isinstance(stmt, dict) and str(stmt.get("status", "OK")).upper() != "OK":
                    message = str(stmt.get("result") or "statement failed")
                    raise DriverError(
                        f"{operation} statement failed: {message}",
                        operation=operation,
                        reference=reference,
                        status=str(stmt.get("status")),
                        not_found=is_not_found(Exception(message)),
                    )
        try:
            return decode_many(raw, QueryResult)
        except DecodeError as e:
            e.operation = operation
            e.reference = reference
            raise

    # --- lifecycle ---------------------------------------------------------

    async def _close_driver(self) -> None:
        try:
            await self._driver.close()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            # Cleanup should never mask the primary failure.
            logger.warning("Driver close failed: %s", exc)

    async def close(self, *, grace_s: float = CLOSE_GRACE_S) -> None:
        """Wait briefly for abandoned calls, then close the driver. Idempotent."""
        if self._closed:
            return
        self._closed = True
        if self._background:
            _, pending = await asyncio.wait(set(self._background), timeout=grace_s)
            if pending:
                logger.warning(
                    "Closing with %d background operation(s) still running", len(pending)
                )
        await self._close_driver()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()
