from __future__ import annotations

import os
from collections.abc import Generator
from pathlib import Path

import pytest


TESTS_DIR = Path(__file__).resolve().parent
TEST_DATA = TESTS_DIR / "data" / "destinations.json"


@pytest.fixture(scope="session", autouse=True)
def _init_store_from_test_fixtures() -> None:
    """Initialize the destination store from `tests/data` and forbid the fallback dataset.

    This keeps tests hermetic and prevents coupling to the repo's real dataset.
    """

    os.environ["GLOBETROTTER_STRICT_DATA"] = "1"
    os.environ["GLOBETROTTER_DATA_PATH"] = str(TEST_DATA)

    from globetrotter.api.deps import get_settings
    from globetrotter.destinations.singleton import init_store, reset_store_for_tests

    get_settings.cache_clear()
    reset_store_for_tests()
    init_store(path=TEST_DATA, strict=True)


@pytest.fixture(autouse=True)
def _fresh_sessions() -> Generator[None, None, None]:
    from globetrotter.session_store import reset_sessions_for_tests

    reset_sessions_for_tests()
    yield
    reset_sessions_for_tests()


@pytest.fixture()
def client():
    """FastAPI TestClient with a fresh in-memory username registry per test."""

    from fastapi.testclient import TestClient

    from globetrotter.api.deps import get_username_registry
    from globetrotter.main import app
    from globetrotter.usernames import InMemoryUsernameRegistry

    registry = InMemoryUsernameRegistry()
    app.dependency_overrides[get_username_registry] = lambda: registry
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def city_from_clues(clues: list[str]) -> str:
    """Test dataset clues are '<City> clue N'."""
    return clues[0].rsplit(" clue", 1)[0]
