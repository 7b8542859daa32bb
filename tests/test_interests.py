from datetime import datetime, timedelta, timezone
from uuid import UUID

import pytest
from httpx import AsyncClient
from sqlalchemy import select, update

from app.config import settings
from app.core.exceptions import InvalidTransitionError
from app.core.rate_limit import InMemoryRateLimiter
from app.main import app
from app.models.activity import Activity
from app.models.interest import Interest
from app.models.notification import Notification
from app.schemas.interest import InterestDecision, InterestRespond
from app.services import interest_service, notification_service
from conftest import create_member


async def send_interest(
    client: AsyncClient, headers: dict, to_user_id: str, message: str | None = None
):
    payload = {"to_user_id": to_user_id}
    if message is not None:
        payload["message"] = message
    return await client.post("/api/v1/interests/", json=payload, headers=headers)


# ==================== Create ====================


@pytest.mark.asyncio
async def test_send_interest_success(client: AsyncClient, alice, bob):
    """A sends interest to B: pending, unread, expires in about 30 days."""
    headers_a, alice_id = alice
    _, bob_id = bob

    response = await send_interest(client, headers_a, bob_id, "Hello!")

    assert response.status_code == 201
    data = response.json()
    assert data["from_user_id"] == alice_id
    assert data["to_user_id"] == bob_id
    assert data["message"] == "Hello!"
    assert data["status"] == "pending"
    assert data["is_read"] is False
    assert data["responded_at"] is None
    assert data["is_expired"] is False

    expires_at = datetime.fromisoformat(data["expires_at"])
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    expected = datetime.now(timezone.utc) + timedelta(days=30)
    assert abs((expires_at - expected).total_seconds()) < 60


@pytest.mark.asyncio
async def test_send_interest_twice_fails(client: AsyncClient, alice, bob):
    headers_a, _ = alice
    _, bob_id = bob

    await send_interest(client, headers_a, bob_id)
    response = await send_interest(client, headers_a, bob_id)

    assert response.status_code == 409
    data = response.json()
    assert data["code"] == "INTEREST_ALREADY_EXISTS"
    assert data["metadata"]["status"] == "pending"


@pytest.mark.asyncio
async def test_reverse_direction_is_duplicate(client: AsyncClient, alice, bob):
    """Uniqueness is per unordered pair."""
    headers_a, alice_id = alice
    headers_b, bob_id = bob

    await send_interest(client, headers_a, bob_id)
    response = await send_interest(client, headers_b, alice_id)

    assert response.status_code == 409
    assert response.json()["code"] == "INTEREST_ALREADY_EXISTS"


@pytest.mark.asyncio
@pytest.mark.parametrize("terminal", ["rejected", "withdrawn"])
async def test_pair_stays_taken_after_terminal_state(
    client: AsyncClient, alice, bob, terminal
):
    """A rejected or withdrawn interest still blocks a new one, both ways."""
    headers_a, alice_id = alice
    headers_b, bob_id = bob

    interest_id = (await send_interest(client, headers_a, bob_id)).json()["id"]
    if terminal == "rejected":
        await client.put(
            f"/api/v1/interests/{interest_id}/respond",
            json={"status": "rejected"},
            headers=headers_b,
        )
    else:
        await client.put(f"/api/v1/interests/{interest_id}/withdraw", headers=headers_a)

    again = await send_interest(client, headers_a, bob_id)
    reverse = await send_interest(client, headers_b, alice_id)

    assert again.status_code == 409
    assert again.json()["metadata"]["status"] == terminal
    assert reverse.status_code == 409


@pytest.mark.asyncio
async def test_send_interest_to_self_fails(client: AsyncClient, alice):
    headers_a, alice_id = alice

    response = await send_interest(client, headers_a, alice_id)

    assert response.status_code == 400
    assert response.json()["code"] == "INTEREST_TARGET_NOT_ELIGIBLE"
    assert "yourself" in response.json()["detail"].lower()


@pytest.mark.asyncio
async def test_send_interest_to_unapproved_profile_fails(
    client: AsyncClient, db_session, alice
):
    headers_a, _ = alice
    _, dave_id = await create_member(
        client, db_session, "dave@example.com", "Dave", gender="male", approved=False
    )

    response = await send_interest(client, headers_a, dave_id)

    assert response.status_code == 400
    assert response.json()["code"] == "INTEREST_TARGET_NOT_ELIGIBLE"


@pytest.mark.asyncio
async def test_send_interest_to_incomplete_profile_fails(
    client: AsyncClient, db_session, alice
):
    headers_a, _ = alice
    _, erin_id = await create_member(
        client,
        db_session,
        "erin@example.com",
        "Erin",
        photos=[],
        highest_qualification=None,
        profession=None,
        income=None,
    )

    response = await send_interest(client, headers_a, erin_id)

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_send_interest_to_user_without_profile_fails(client: AsyncClient, alice):
    headers_a, _ = alice
    register = await client.post(
        "/api/v1/auth/register",
        json={"email": "noprofile@example.com", "password": "password123"},
    )

    response = await send_interest(client, headers_a, register.json()["id"])

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_send_interest_to_hidden_profile_fails(client: AsyncClient, alice, bob):
    headers_a, _ = alice
    headers_b, bob_id = bob
    await client.put(
        "/api/v1/profiles/me/privacy", json={"is_hidden": True}, headers=headers_b
    )

    response = await send_interest(client, headers_a, bob_id)

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_block_prevents_interest_both_ways(client: AsyncClient, alice, bob):
    headers_a, alice_id = alice
    headers_b, bob_id = bob
    await client.post(f"/api/v1/profiles/block/{alice_id}", headers=headers_b)

    blocked_sender = await send_interest(client, headers_a, bob_id)
    blocker_sender = await send_interest(client, headers_b, alice_id)

    assert blocked_sender.status_code == 400
    assert blocker_sender.status_code == 400


@pytest.mark.asyncio
async def test_message_too_long_rejected(client: AsyncClient, alice, bob):
    headers_a, _ = alice
    _, bob_id = bob
    limit = settings.INTEREST_MESSAGE_MAX_LENGTH

    too_long = await send_interest(client, headers_a, bob_id, "x" * (limit + 1))
    at_limit = await send_interest(client, headers_a, bob_id, "x" * limit)

    assert too_long.status_code == 422
    assert at_limit.status_code == 201


@pytest.mark.asyncio
async def test_send_interest_requires_auth(client: AsyncClient, bob):
    _, bob_id = bob

    response = await client.post("/api/v1/interests/", json={"to_user_id": bob_id})

    assert response.status_code == 401


# ==================== Respond ====================


@pytest.mark.asyncio
async def test_accept_interest(client: AsyncClient, alice, bob):
    headers_a, _ = alice
    headers_b, bob_id = bob
    interest_id = (await send_interest(client, headers_a, bob_id)).json()["id"]

    response = await client.put(
        f"/api/v1/interests/{interest_id}/respond",
        json={"status": "accepted"},
        headers=headers_b,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "accepted"
    assert data["responded_at"] is not None
    assert data["is_read"] is True


@pytest.mark.asyncio
async def test_second_response_fails(client: AsyncClient, alice, bob):
    headers_a, _ = alice
    headers_b, bob_id = bob
    interest_id = (await send_interest(client, headers_a, bob_id)).json()["id"]

    await client.put(
        f"/api/v1/interests/{interest_id}/respond",
        json={"status": "accepted"},
        headers=headers_b,
    )
    response = await client.put(
        f"/api/v1/interests/{interest_id}/respond",
        json={"status": "rejected"},
        headers=headers_b,
    )

    assert response.status_code == 409
    assert response.json()["code"] == "INTEREST_INVALID_TRANSITION"
    assert response.json()["metadata"]["status"] == "accepted"


@pytest.mark.asyncio
async def test_sender_cannot_respond(client: AsyncClient, alice, bob):
    headers_a, _ = alice
    _, bob_id = bob
    interest_id = (await send_interest(client, headers_a, bob_id)).json()["id"]

    response = await client.put(
        f"/api/v1/interests/{interest_id}/respond",
        json={"status": "accepted"},
        headers=headers_a,
    )

    assert response.status_code == 403
    assert response.json()["code"] == "AUTHZ_FORBIDDEN"


@pytest.mark.asyncio
async def test_third_party_cannot_respond(client: AsyncClient, alice, bob, carol):
    headers_a, _ = alice
    _, bob_id = bob
    headers_c, _ = carol
    interest_id = (await send_interest(client, headers_a, bob_id)).json()["id"]

    response = await client.put(
        f"/api/v1/interests/{interest_id}/respond",
        json={"status": "rejected"},
        headers=headers_c,
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_respond_rejects_pending_as_decision(client: AsyncClient, alice, bob):
    headers_a, _ = alice
    headers_b, bob_id = bob
    interest_id = (await send_interest(client, headers_a, bob_id)).json()["id"]

    response = await client.put(
        f"/api/v1/interests/{interest_id}/respond",
        json={"status": "pending"},
        headers=headers_b,
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_respond_unknown_interest(client: AsyncClient, alice):
    headers_a, _ = alice

    response = await client.put(
        "/api/v1/interests/00000000-0000-0000-0000-000000000000/respond",
        json={"status": "accepted"},
        headers=headers_a,
    )

    assert response.status_code == 404
    assert response.json()["code"] == "RESOURCE_NOT_FOUND"


# ==================== Withdraw ====================


@pytest.mark.asyncio
async def test_withdraw_then_withdraw_again(client: AsyncClient, alice, bob):
    headers_a, _ = alice
    _, bob_id = bob
    interest_id = (await send_interest(client, headers_a, bob_id)).json()["id"]

    first = await client.put(f"/api/v1/interests/{interest_id}/withdraw", headers=headers_a)
    second = await client.put(f"/api/v1/interests/{interest_id}/withdraw", headers=headers_a)

    assert first.status_code == 200
    assert first.json()["status"] == "withdrawn"
    assert first.json()["responded_at"] is None
    assert second.status_code == 409
    assert second.json()["code"] == "INTEREST_INVALID_TRANSITION"


@pytest.mark.asyncio
async def test_recipient_cannot_withdraw(client: AsyncClient, alice, bob):
    headers_a, _ = alice
    headers_b, bob_id = bob
    interest_id = (await send_interest(client, headers_a, bob_id)).json()["id"]

    response = await client.put(
        f"/api/v1/interests/{interest_id}/withdraw", headers=headers_b
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_cannot_respond_after_withdraw(client: AsyncClient, alice, bob):
    headers_a, _ = alice
    headers_b, bob_id = bob
    interest_id = (await send_interest(client, headers_a, bob_id)).json()["id"]
    await client.put(f"/api/v1/interests/{interest_id}/withdraw", headers=headers_a)

    response = await client.put(
        f"/api/v1/interests/{interest_id}/respond",
        json={"status": "accepted"},
        headers=headers_b,
    )

    assert response.status_code == 409
    assert response.json()["metadata"]["status"] == "withdrawn"


@pytest.mark.asyncio
async def test_cannot_withdraw_after_accept(client: AsyncClient, alice, bob):
    headers_a, _ = alice
    headers_b, bob_id = bob
    interest_id = (await send_interest(client, headers_a, bob_id)).json()["id"]
    await client.put(
        f"/api/v1/interests/{interest_id}/respond",
        json={"status": "accepted"},
        headers=headers_b,
    )

    response = await client.put(
        f"/api/v1/interests/{interest_id}/withdraw", headers=headers_a
    )

    assert response.status_code == 409


async def load_then_change_status(db_session, interest_id: UUID, status: str) -> Interest:
    """Load a pending interest, then move it on behind the loaded object's back."""
    interest = await interest_service.get_interest_by_id(db_session, interest_id)
    assert interest.status == "pending"
    await db_session.execute(
        update(Interest)
        .where(Interest.id == interest_id)
        .values(status=status)
        .execution_options(synchronize_session=False)
    )
    await db_session.commit()
    # The loaded object still believes it is pending
    assert interest.status == "pending"
    return interest


@pytest.mark.asyncio
async def test_respond_loses_race_to_concurrent_withdraw(
    client: AsyncClient, db_session, alice, bob
):
    headers_a, _ = alice
    _, bob_id = bob
    interest_id = UUID((await send_interest(client, headers_a, bob_id)).json()["id"])
    await load_then_change_status(db_session, interest_id, "withdrawn")

    with pytest.raises(InvalidTransitionError) as exc_info:
        await interest_service.respond_to_interest(
            db_session,
            interest_id,
            UUID(bob_id),
            InterestRespond(status=InterestDecision.accepted),
        )

    assert exc_info.value.metadata == {"status": "withdrawn"}
    stored = await interest_service.get_interest_by_id(db_session, interest_id)
    assert stored.status == "withdrawn"
    assert stored.responded_at is None


@pytest.mark.asyncio
async def test_withdraw_loses_race_to_concurrent_accept(
    client: AsyncClient, db_session, alice, bob
):
    headers_a, alice_id = alice
    _, bob_id = bob
    interest_id = UUID((await send_interest(client, headers_a, bob_id)).json()["id"])
    await load_then_change_status(db_session, interest_id, "accepted")

    with pytest.raises(InvalidTransitionError) as exc_info:
        await interest_service.withdraw_interest(db_session, interest_id, UUID(alice_id))

    assert exc_info.value.metadata == {"status": "accepted"}


# ==================== Read ====================


@pytest.mark.asyncio
async def test_mark_read_is_idempotent(client: AsyncClient, alice, bob):
    headers_a, _ = alice
    headers_b, bob_id = bob
    interest_id = (await send_interest(client, headers_a, bob_id)).json()["id"]

    first = await client.put(f"/api/v1/interests/{interest_id}/read", headers=headers_b)
    second = await client.put(f"/api/v1/interests/{interest_id}/read", headers=headers_b)

    assert first.status_code == 200
    assert first.json()["is_read"] is True
    assert first.json()["status"] == "pending"
    assert second.status_code == 200


@pytest.mark.asyncio
async def test_sender_cannot_mark_read(client: AsyncClient, alice, bob):
    headers_a, _ = alice
    _, bob_id = bob
    interest_id = (await send_interest(client, headers_a, bob_id)).json()["id"]

    response = await client.put(f"/api/v1/interests/{interest_id}/read", headers=headers_a)

    assert response.status_code == 403


# ==================== Listings ====================


@pytest.mark.asyncio
async def test_received_and_sent_listings(client: AsyncClient, alice, bob, carol):
    headers_a, alice_id = alice
    headers_b, bob_id = bob
    headers_c, _ = carol

    await send_interest(client, headers_a, bob_id)
    await send_interest(client, headers_c, bob_id)

    received = await client.get("/api/v1/interests/received", headers=headers_b)
    sent = await client.get("/api/v1/interests/sent", headers=headers_a)

    assert received.status_code == 200
    assert received.json()["total"] == 2
    assert sent.json()["total"] == 1
    assert sent.json()["interests"][0]["from_user_id"] == alice_id
    # Newest first
    assert received.json()["interests"][0]["from_user_id"] != alice_id


@pytest.mark.asyncio
async def test_listing_status_filter(client: AsyncClient, alice, bob, carol):
    headers_a, _ = alice
    headers_b, bob_id = bob
    headers_c, _ = carol

    first_id = (await send_interest(client, headers_a, bob_id)).json()["id"]
    await send_interest(client, headers_c, bob_id)
    await client.put(
        f"/api/v1/interests/{first_id}/respond",
        json={"status": "accepted"},
        headers=headers_b,
    )

    response = await client.get(
        "/api/v1/interests/received",
        params={"status": "accepted"},
        headers=headers_b,
    )

    assert response.json()["total"] == 1
    assert response.json()["interests"][0]["id"] == first_id


@pytest.mark.asyncio
async def test_listing_rejects_unknown_status(client: AsyncClient, alice):
    headers_a, _ = alice

    response = await client.get(
        "/api/v1/interests/received",
        params={"status": "declined"},
        headers=headers_a,
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_listing_counterpart_profile_is_redacted(client: AsyncClient, alice, bob):
    """Contact details stay hidden until the owner opts in."""
    headers_a, _ = alice
    headers_b, bob_id = bob
    await client.put(
        "/api/v1/profiles/me/privacy", json={"show_income": False}, headers=headers_b
    )
    await send_interest(client, headers_a, bob_id)

    response = await client.get("/api/v1/interests/sent", headers=headers_a)

    other = response.json()["interests"][0]["other_user_profile"]
    assert other["user_id"] == bob_id
    assert other["income"] is None
    assert other["user"]["phone"] is None
    assert other["user"]["email"] is None
    assert len(other["photos"]) == 1
    assert "blocked_users" not in other


@pytest.mark.asyncio
async def test_listing_hides_counterpart_who_blocked_viewer(
    client: AsyncClient, alice, bob
):
    headers_a, alice_id = alice
    headers_b, bob_id = bob
    await send_interest(client, headers_a, bob_id)
    await client.post(f"/api/v1/profiles/block/{alice_id}", headers=headers_b)

    response = await client.get("/api/v1/interests/sent", headers=headers_a)

    assert response.json()["total"] == 1
    assert response.json()["interests"][0]["other_user_profile"] is None


@pytest.mark.asyncio
async def test_hidden_counterpart_visible_once_accepted(client: AsyncClient, alice, bob):
    headers_a, _ = alice
    headers_b, bob_id = bob
    interest_id = (await send_interest(client, headers_a, bob_id)).json()["id"]
    await client.put(
        "/api/v1/profiles/me/privacy", json={"is_hidden": True}, headers=headers_b
    )

    pending = await client.get("/api/v1/interests/sent", headers=headers_a)
    assert pending.json()["interests"][0]["other_user_profile"] is None

    await client.put(
        f"/api/v1/interests/{interest_id}/respond",
        json={"status": "accepted"},
        headers=headers_b,
    )
    accepted = await client.get("/api/v1/interests/sent", headers=headers_a)
    assert accepted.json()["interests"][0]["other_user_profile"]["user_id"] == bob_id


@pytest.mark.asyncio
async def test_include_expired_filter(client: AsyncClient, db_session, alice, bob):
    """Expiry is a read-side filter; the status itself never changes."""
    headers_a, _ = alice
    headers_b, bob_id = bob
    interest_id = (await send_interest(client, headers_a, bob_id)).json()["id"]

    await db_session.execute(
        update(Interest)
        .where(Interest.id == UUID(interest_id))
        .values(expires_at=datetime.now(timezone.utc) - timedelta(days=1))
    )
    await db_session.commit()

    default = await client.get("/api/v1/interests/received", headers=headers_b)
    without_expired = await client.get(
        "/api/v1/interests/received",
        params={"include_expired": "false"},
        headers=headers_b,
    )

    assert default.json()["total"] == 1
    assert default.json()["interests"][0]["status"] == "pending"
    assert default.json()["interests"][0]["is_expired"] is True
    assert without_expired.json()["total"] == 0


# ==================== Stats ====================


@pytest.mark.asyncio
async def test_interest_stats(client: AsyncClient, alice, bob, carol):
    headers_a, alice_id = alice
    headers_b, bob_id = bob
    headers_c, _ = carol

    from_alice = (await send_interest(client, headers_a, bob_id)).json()["id"]
    await send_interest(client, headers_c, bob_id)
    await client.put(
        f"/api/v1/interests/{from_alice}/respond",
        json={"status": "rejected"},
        headers=headers_b,
    )

    bob_stats = (await client.get("/api/v1/interests/stats", headers=headers_b)).json()
    alice_stats = (await client.get("/api/v1/interests/stats", headers=headers_a)).json()

    assert bob_stats["received"] == {
        "pending": 1,
        "accepted": 0,
        "rejected": 1,
        "withdrawn": 0,
    }
    assert bob_stats["unread_count"] == 1
    assert alice_stats["sent"]["rejected"] == 1
    assert alice_stats["received"]["pending"] == 0


# ==================== Side effects ====================


@pytest.mark.asyncio
async def test_send_interest_notifies_recipient(client: AsyncClient, db_session, alice, bob):
    headers_a, alice_id = alice
    headers_b, bob_id = bob
    await send_interest(client, headers_a, bob_id)

    notifications = await client.get("/api/v1/notifications/", headers=headers_b)

    assert notifications.status_code == 200
    assert len(notifications.json()) == 1
    assert notifications.json()[0]["type"] == "interest_received"
    assert "Alice S." in notifications.json()[0]["content"]

    result = await db_session.execute(
        select(Activity.type).where(Activity.user_id == UUID(alice_id))
    )
    assert "interest_sent" in result.scalars().all()


@pytest.mark.asyncio
async def test_notification_failure_keeps_interest(
    client: AsyncClient, db_session, monkeypatch, alice, bob
):
    """A failing notifier is logged and the interest is still created."""
    headers_a, _ = alice
    headers_b, bob_id = bob

    async def broken_notify(db, interest):
        raise RuntimeError("notification backend down")

    monkeypatch.setattr(notification_service, "notify_interest_received", broken_notify)

    response = await send_interest(client, headers_a, bob_id)

    assert response.status_code == 201
    stored = await db_session.execute(select(Interest))
    assert len(stored.scalars().all()) == 1
    notifications = await db_session.execute(select(Notification))
    assert notifications.scalars().all() == []


@pytest.mark.asyncio
async def test_respond_notifies_sender(client: AsyncClient, alice, bob):
    headers_a, _ = alice
    headers_b, bob_id = bob
    interest_id = (await send_interest(client, headers_a, bob_id)).json()["id"]
    await client.put(
        f"/api/v1/interests/{interest_id}/respond",
        json={"status": "accepted"},
        headers=headers_b,
    )

    notifications = await client.get("/api/v1/notifications/", headers=headers_a)

    assert [n["type"] for n in notifications.json()] == ["interest_responded"]
    assert notifications.json()[0]["title"] == "Your interest was accepted"


@pytest.mark.asyncio
async def test_recent_activities(client: AsyncClient, alice, bob):
    headers_a, _ = alice
    _, bob_id = bob
    interest_id = (await send_interest(client, headers_a, bob_id)).json()["id"]
    await client.put(f"/api/v1/interests/{interest_id}/withdraw", headers=headers_a)

    response = await client.get("/api/v1/activities/recent", headers=headers_a)

    types = [a["type"] for a in response.json()]
    assert "interest_sent" in types
    assert "interest_withdrawn" in types


# ==================== Rate limiting ====================


@pytest.mark.asyncio
async def test_send_rate_limit(client: AsyncClient, alice, bob, carol):
    headers_a, _ = alice
    _, bob_id = bob
    _, carol_id = carol
    app.state.interest_rate_limiter = InMemoryRateLimiter(limit=1, window_seconds=3600)

    first = await send_interest(client, headers_a, bob_id)
    second = await send_interest(client, headers_a, carol_id)

    assert first.status_code == 201
    assert second.status_code == 429
    assert second.json()["code"] == "RATE_LIMIT_EXCEEDED"
    assert int(second.headers["Retry-After"]) > 0
