"""Pytest configuration and fixtures.

Provides environment isolation, logging configuration, marker handling,
automatic live-test skipping and the FakeDriver test double. All fixtures
here are autouse unless noted.
"""

from __future__ import annotations

from contextlib import suppress
from dataclasses import dataclass, field
import logging
import os
from typing import Any

import pytest

from surreal_access.config import Config

# =============================================================================
# Test Doubles
# =============================================================================


@dataclass
class FakeDriver:
    """Driver test double for envelope and client behavior verification.

    Records every call and answers from ``responses`` (keyed by method name).
    A response that is an exception instance is raised instead of returned.
    """

    responses: dict[str, Any] = field(default_factory=dict)
    calls: list[tuple[str, tuple[Any, ...]]] = field(default_factory=list)
    closed: bool = False

    def _answer(self, method: str, *args: Any) -> Any:
        self.calls.append((method, args))
        value = self.responses.get(method, [])
        if isinstance(value, BaseException):
            raise value
        return value

    def called(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)

    async def connect(self, address: str) -> None:
        self._answer("connect", address)

    async def signin(self, user: str, password: str) -> Any:
        return self._answer("signin", user, password)

    async def use(self, namespace: str, database: str) -> None:
        self._answer("use", namespace, database)

    async def create(self, reference: str, payload: dict[str, Any]) -> list[Any]:
        return self._answer("create", reference, payload)

    async def select(self, reference: str) -> list[Any]:
        return self._answer("select", reference)

    async def update(self, reference: str, payload: dict[str, Any]) -> list[Any]:
        return self._answer("update", reference, payload)

    async def delete(self, reference: str) -> list[Any]:
        return self._answer("delete", reference)

    async def query(self, query: str, variables: dict[str, Any]) -> list[Any]:
        return self._answer("query", query, variables)

    async def close(self) -> None:
        self.calls.append(("close", ()))
        self.closed = True


# =============================================================================
# Environment Isolation (Autouse)
# =============================================================================


@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Opt-out: @pytest.mark.allow_dotenv
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    with suppress(Exception):
        monkeypatch.setattr(
            "dotenv.load_dotenv", lambda *_args, **_kwargs: False, raising=False
        )


@pytest.fixture(autouse=True)
def isolate_surreal_env(request, monkeypatch):
    """Ensure a clean SURREAL_* environment for each test.

    Opt-out: @pytest.mark.allow_env_pollution or @pytest.mark.live
    """
    if request.node.get_closest_marker("allow_env_pollution") or (
        "live" in request.node.keywords
    ):
        return

    for key in list(os.environ.keys()):
        if key.startswith("SURREAL_"):
            monkeypatch.delenv(key, raising=False)


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    """Suppress noisy third-party loggers."""
    logging.getLogger("websockets").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


# =============================================================================
# Pytest Hooks
# =============================================================================

LIVE_TESTS_REASON = "Live tests require ENABLE_LIVE_TESTS=1"


def _live_tests_enabled() -> bool:
    return bool(os.getenv("ENABLE_LIVE_TESTS"))


def pytest_collection_modifyitems(items):
    """Automatically skip live tests when not explicitly enabled."""
    if _live_tests_enabled():
        return
    skip_live = pytest.mark.skip(reason=LIVE_TESTS_REASON)
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


# =============================================================================
# Shared Fixtures (opt-in)
# =============================================================================


@pytest.fixture
def mock_config() -> Config:
    """Config for the in-memory driver with namespace "n" and database "d"."""
    return Config(use_mock=True, user="root", password="root", namespace="n", database="d")


@pytest.fixture
def fake_driver() -> FakeDriver:
    """A fresh FakeDriver."""
    return FakeDriver()


@pytest.fixture
def live_config() -> Config:
    """Return a Config for a real server or skip when none is configured."""
    address = os.getenv("SURREAL_ADDRESS")
    if not address:
        pytest.skip("SURREAL_ADDRESS not set")
    return Config(
        address=address,
        user=os.getenv("SURREAL_USER", "root"),
        password=os.getenv("SURREAL_PASSWORD", "root"),
        namespace=os.getenv("SURREAL_NAMESPACE", "test"),
        database=os.getenv("SURREAL_DATABASE", "test"),
    )
