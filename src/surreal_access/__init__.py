"""surreal-access: cancellation-bounded, shape-normalized SurrealDB access.

Public API:
    - SurrealClient: connect, select, CRUD, relate and query
    - OperationContext: per-call deadline / cancellation
    - Config: connection settings
    - decode / decode_one / decode_many: response normalization
    - QueryResult: per-statement query outcome
"""

from __future__ import annotations

import logging

from surreal_access.client import SurrealClient
from surreal_access.config import Config
from surreal_access.context import OperationContext
from surreal_access.errors import (
    AuthenticationError,
    ConfigurationError,
    ConnectionFailedError,
    DecodeError,
    DriverError,
    InternalError,
    InvalidResponseError,
    OperationCancelledError,
    OperationError,
    OperationTimeoutError,
    SelectionError,
    SurrealAccessError,
)
from surreal_access.normalize import decode, decode_many, decode_one, to_entry
from surreal_access.result import QueryResult

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("surreal-access")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("surreal_access").addHandler(logging.NullHandler())

__all__ = [
    "AuthenticationError",
    "Config",
    "ConfigurationError",
    "ConnectionFailedError",
    "DecodeError",
    "DriverError",
    "InternalError",
    "InvalidResponseError",
    "OperationCancelledError",
    "OperationContext",
    "OperationError",
    "OperationTimeoutError",
    "QueryResult",
    "SelectionError",
    "SurrealAccessError",
    "SurrealClient",
    "decode",
    "decode_many",
    "decode_one",
    "to_entry",
]
