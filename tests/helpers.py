# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

"""
Helper utilities for WebSocket flow tests.
"""

from __future__ import annotations

from typing import Any


def join(ws: Any, party_id: int, user_id: int) -> dict[str, Any]:
    """Send a join and consume the joiner's own party_state + participant_joined."""
    ws.send_json({"type": "join", "partyId": party_id, "userId": user_id})

    state = ws.receive_json()
    assert state["type"] == "party_state", state

    joined = ws.receive_json()
    assert joined == {
        "type": "participant_joined",
        "partyId": party_id,
        "userId": user_id,
        "username": f"Kullanıcı {user_id}",
    }
    return state


def assert_quiet(ws: Any) -> None:
    """
    Assert nothing is pending for this connection.

    A ping is answered through the same ordered outbox, so the pong must be
    the very next message if no broadcast was queued before it.
    """
    ws.send_json({"type": "ping"})
    assert ws.receive_json() == {"type": "pong"}
