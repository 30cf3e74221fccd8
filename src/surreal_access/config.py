"""Configuration: frozen Config with environment fallbacks."""

from __future__ import annotations

from dataclasses import dataclass
import os

from dotenv import load_dotenv

from surreal_access.errors import ConfigurationError

load_dotenv()

# Field name -> environment variable consulted when the field is left empty.
_ENV_VARS: dict[str, str] = {
    "address": "SURREAL_ADDRESS",
    "user": "SURREAL_USER",
    "password": "SURREAL_PASSWORD",
    "namespace": "SURREAL_NAMESPACE",
    "database": "SURREAL_DATABASE",
}


@dataclass(frozen=True)
class Config:
    """Immutable connection settings for a SurrealClient.

    Every field is a plain string where ``""`` means unset. Unset fields are
    auto-resolved from ``SURREAL_*`` environment variables; explicit values
    always win.

    Example:
        config = Config(address="ws://localhost:8000/rpc", user="root",
                        password="root", namespace="n", database="d")
    """

    address: str = ""
    user: str = ""
    password: str = ""
    #: Namespace and database are selected together; set both or neither.
    namespace: str = ""
    database: str = ""
    #: Use the in-process MemoryDriver instead of a real server.
    use_mock: bool = False

    def __post_init__(self) -> None:
        """Auto-resolve empty fields from the environment and validate."""
        for name, env_var in _ENV_VARS.items():
            if getattr(self, name):
                continue
            resolved = os.environ.get(env_var, "")
            object.__setattr__(self, name, resolved)

        if not self.use_mock and not self.address:
            raise ConfigurationError(
                "address required for a real connection",
                hint="Set SURREAL_ADDRESS or pass Config(address=...), "
                "or use Config(use_mock=True) for the in-memory driver.",
            )

        if bool(self.namespace) != bool(self.database):
            raise ConfigurationError(
                f"namespace and database must be set together "
                f"(namespace={self.namespace!r}, database={self.database!r})",
                hint="Pass both namespace=... and database=..., or neither.",
            )

    @property
    def has_selection(self) -> bool:
        """Whether a namespace/database pair should be selected on connect."""
        return bool(self.namespace and self.database)

    def __str__(self) -> str:
        """Return a redacted, developer-friendly representation."""
        return (
            f"Config(address={self.address!r}, user={self.user!r}, "
            f"password={'[REDACTED]' if self.password else None}, "
            f"namespace={self.namespace!r}, database={self.database!r}, "
            f"use_mock={self.use_mock})"
        )

    __repr__ = __str__
