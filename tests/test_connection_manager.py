# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

"""
Tests for per-connection outboxes and party-scoped fan-out.
"""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from Public.WebSocket.Libs import ConnectionManager

pytestmark = pytest.mark.anyio


def _websocket() -> MagicMock:
    ws = MagicMock()
    ws.accept    = AsyncMock()
    ws.send_text = AsyncMock()
    ws.close     = AsyncMock()
    return ws


def _sent(ws: MagicMock) -> list[dict]:
    return [json.loads(call.args[0]) for call in ws.send_text.await_args_list]


@pytest.fixture
def manager() -> ConnectionManager:
    return ConnectionManager(send_timeout=0.5)


class TestOpenClose:
    """Tests for connection lifecycle."""

    async def test_open_accepts_and_registers(self, manager: ConnectionManager) -> None:
        ws   = _websocket()
        conn = await manager.open(ws)

        ws.accept.assert_awaited_once()
        assert conn in manager.connections
        assert conn.joined is False
        assert manager.connection_count() == 1

        await manager.close(conn)

    async def test_close_flushes_outbox(self, manager: ConnectionManager) -> None:
        ws   = _websocket()
        conn = await manager.open(ws)

        manager.send(conn, {"type": "pong"})
        manager.send(conn, {"type": "pong", "n": 2})
        await manager.close(conn)

        assert _sent(ws) == [{"type": "pong"}, {"type": "pong", "n": 2}]
        assert conn.writer.done()
        assert conn.closed is True
        ws.close.assert_awaited_once()
        assert manager.connection_count() == 0

    async def test_close_detaches(self, manager: ConnectionManager) -> None:
        conn = await manager.open(_websocket())
        manager.attach(conn, 1)

        await manager.close(conn)

        assert manager.has_connections(1) is False
        assert conn.party_id is None

    async def test_send_after_close_is_refused(self, manager: ConnectionManager) -> None:
        conn = await manager.open(_websocket())
        await manager.close(conn)
        assert manager.send(conn, {"type": "pong"}) is False


class TestBroadcast:
    """Tests for fan-out scoping and ordering."""

    async def test_broadcast_reaches_only_party(self, manager: ConnectionManager) -> None:
        ws_a, ws_b, ws_c = _websocket(), _websocket(), _websocket()
        a = await manager.open(ws_a)
        b = await manager.open(ws_b)
        c = await manager.open(ws_c)
        manager.attach(a, 1)
        manager.attach(b, 1)
        manager.attach(c, 2)

        assert manager.broadcast(1, {"type": "sync_update", "partyId": 1}) == 2

        for conn in (a, b, c):
            await manager.close(conn)

        assert _sent(ws_a) == [{"type": "sync_update", "partyId": 1}]
        assert _sent(ws_b) == [{"type": "sync_update", "partyId": 1}]
        assert _sent(ws_c) == []

    async def test_broadcast_preserves_order(self, manager: ConnectionManager) -> None:
        ws   = _websocket()
        conn = await manager.open(ws)
        manager.attach(conn, 1)

        for i in range(20):
            manager.broadcast(1, {"type": "sync_update", "currentTime": float(i)})
        await manager.close(conn)

        assert [msg["currentTime"] for msg in _sent(ws)] == [float(i) for i in range(20)]

    async def test_broadcast_to_empty_party(self, manager: ConnectionManager) -> None:
        assert manager.broadcast(99, {"type": "party_ended"}) == 0

    async def test_unicode_is_sent_verbatim(self, manager: ConnectionManager) -> None:
        ws   = _websocket()
        conn = await manager.open(ws)
        manager.send(conn, {"username": "Kullanıcı 1"})
        await manager.close(conn)

        assert "Kullanıcı 1" in ws.send_text.await_args.args[0]


class TestMembership:
    """Tests for party index bookkeeping."""

    async def test_detach_returns_previous_party(self, manager: ConnectionManager) -> None:
        conn = await manager.open(_websocket())
        manager.attach(conn, 4)

        assert manager.detach(conn) == 4
        assert manager.detach(conn) is None
        assert manager.has_connections(4) is False

        await manager.close(conn)

    async def test_user_connected_excludes_self(self, manager: ConnectionManager) -> None:
        first  = await manager.open(_websocket())
        second = await manager.open(_websocket())
        for conn in (first, second):
            conn.user_id = 7
            manager.attach(conn, 1)

        assert manager.user_connected(1, 7, exclude=first) is True
        manager.detach(second)
        assert manager.user_connected(1, 7, exclude=first) is False
        assert manager.user_connected(1, 7) is True

        for conn in (first, second):
            await manager.close(conn)

    async def test_release_party(self, manager: ConnectionManager) -> None:
        conn = await manager.open(_websocket())
        conn.user_id, conn.username = 3, "Kullanıcı 3"
        manager.attach(conn, 1)

        released = manager.release_party(1)

        assert released == [conn]
        assert conn.party_id is None
        assert conn.user_id is None
        assert manager.has_connections(1) is False
        assert manager.connection_count(1) == 0

        await manager.close(conn)


class TestTransportFailure:
    """Tests for failing or slow clients."""

    async def test_send_error_closes_connection(self, manager: ConnectionManager) -> None:
        ws = _websocket()
        ws.send_text.side_effect = RuntimeError("broken pipe")
        conn = await manager.open(ws)
        manager.attach(conn, 1)

        manager.broadcast(1, {"type": "sync_update"})
        await asyncio.wait({conn.writer}, timeout=1)

        assert conn.closed is True
        ws.close.assert_awaited_once_with(code=1011)

        # Membership is left to the reader teardown; the dead socket gets nothing more
        assert conn.party_id == 1
        assert manager.broadcast(1, {"type": "sync_update"}) == 0

        await manager.close(conn)
        ws.close.assert_awaited_once()
        assert manager.has_connections(1) is False

    async def test_full_outbox_closes_connection(self, manager: ConnectionManager) -> None:
        ws      = _websocket()
        blocker = asyncio.Event()

        async def _stuck(_raw: str) -> None:
            await blocker.wait()

        ws.send_text.side_effect = _stuck
        conn = await manager.open(ws)
        manager.attach(conn, 1)

        capacity = conn.outbox.maxsize
        results  = [manager.send(conn, {"n": i}) for i in range(capacity + 1)]

        assert all(results[:capacity])
        assert results[capacity] is False

        for _ in range(3):
            await asyncio.sleep(0)

        assert conn.closed is True
        assert conn.party_id == 1
        ws.close.assert_awaited_once_with(code=1011)

        await manager.close(conn)
        assert manager.has_connections(1) is False

    async def test_closed_tab_does_not_count_as_connected(self, manager: ConnectionManager) -> None:
        ws = _websocket()
        ws.send_text.side_effect = RuntimeError("broken pipe")
        dead  = await manager.open(ws)
        alive = await manager.open(_websocket())
        for conn in (dead, alive):
            conn.user_id = 7
            manager.attach(conn, 1)

        manager.send(dead, {"type": "pong"})
        await asyncio.wait({dead.writer}, timeout=1)

        assert manager.user_connected(1, 7, exclude=alive) is False
        assert manager.user_connected(1, 7, exclude=dead) is True

        for conn in (dead, alive):
            await manager.close(conn)
