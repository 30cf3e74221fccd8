"""Driver implementations."""

from .base import Driver
from .memory import MemoryDriver
from .surreal import SurrealDriver

__all__ = [
    "Driver",
    "MemoryDriver",
    "SurrealDriver",
]
