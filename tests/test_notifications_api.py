"""HTTP tests for the notification inbox."""
from __future__ import annotations

import pytest


def _auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


async def _open_request(client, token_for, seeded) -> str:
    response = await client.post(
        "/requests",
        json={"skillId": seeded.skill, "message": "Could we swap guitar for Spanish lessons?"},
        headers=_auth(token_for(seeded.alice)),
    )
    assert response.status_code == 201
    return response.json()["id"]


@pytest.mark.asyncio
async def test_provider_is_notified_of_new_request(client, seeded, token_for) -> None:
    request_id = await _open_request(client, token_for, seeded)

    inbox = await client.get("/notifications", headers=_auth(token_for(seeded.bob)))
    unread = await client.get("/notifications/unread-count", headers=_auth(token_for(seeded.bob)))
    requester_inbox = await client.get("/notifications", headers=_auth(token_for(seeded.alice)))

    [notification] = inbox.json()
    assert notification["title"] == "New exchange request"
    assert notification["requestId"] == request_id
    assert notification["isRead"] is False
    assert unread.json() == {"count": 1}
    assert requester_inbox.json() == []


@pytest.mark.asyncio
async def test_mark_read_is_scoped_to_owner(client, seeded, token_for) -> None:
    await _open_request(client, token_for, seeded)
    notification_id = (await client.get("/notifications", headers=_auth(token_for(seeded.bob)))).json()[0]["id"]

    foreign = await client.patch(f"/notifications/{notification_id}/read", headers=_auth(token_for(seeded.alice)))
    own = await client.patch(f"/notifications/{notification_id}/read", headers=_auth(token_for(seeded.bob)))
    unread = await client.get("/notifications/unread-count", headers=_auth(token_for(seeded.bob)))

    assert foreign.status_code == 404
    assert own.status_code == 200
    assert own.json() == {"success": True}
    assert unread.json() == {"count": 0}


@pytest.mark.asyncio
async def test_mark_all_read(client, seeded, token_for) -> None:
    request_id = await _open_request(client, token_for, seeded)
    await client.patch(
        f"/requests/{request_id}/status", json={"status": "cancelled"}, headers=_auth(token_for(seeded.alice))
    )

    before = await client.get("/notifications/unread-count", headers=_auth(token_for(seeded.bob)))
    response = await client.patch("/notifications/read-all", headers=_auth(token_for(seeded.bob)))
    after = await client.get("/notifications/unread-count", headers=_auth(token_for(seeded.bob)))

    assert before.json() == {"count": 2}
    assert response.json() == {"success": True}
    assert after.json() == {"count": 0}
