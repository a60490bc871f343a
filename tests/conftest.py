# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

"""
Shared fixtures for Watch Party tests.

Every test starts from an empty party store and connection registry. The
``client`` fixture enters the TestClient context so that HTTP calls and all
WebSocket sessions of one test share the same event loop.
"""

from __future__ import annotations

from typing import Any, Iterator

import pytest
from starlette.testclient import TestClient

from Core import kekik_FastAPI
from Public.WebSocket.Libs import connection_manager, watch_party_manager
from Public.WebSocket.Libs import user_service


@pytest.fixture
def anyio_backend() -> str:
    """Configure anyio to use asyncio backend."""
    return "asyncio"


@pytest.fixture(autouse=True)
def clean_state() -> Iterator[None]:
    """Reset the singletons before and after each test."""
    watch_party_manager.reset()
    connection_manager.reset()
    user_service._user_cache.clear()
    yield
    watch_party_manager.reset()
    connection_manager.reset()
    user_service._user_cache.clear()


@pytest.fixture
def client() -> Iterator[TestClient]:
    with TestClient(kekik_FastAPI) as test_client:
        yield test_client


@pytest.fixture
def create_party(client: TestClient):
    """Create a party over REST and return its JSON body."""

    def _create(creator_id: int = 1, anime_id: int = 10, episode_id: int = 2, **extra: Any) -> dict[str, Any]:
        resp = client.post(
            "/api/watch-party",
            json={"creatorId": creator_id, "animeId": anime_id, "episodeId": episode_id, **extra},
        )
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _create
