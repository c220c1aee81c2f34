"""HTTP tests for /v1/relationships."""
import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt

from factories import add_session
from rapport.domain.common.types import generate_id
from rapport.infra.db.session import get_db
from rapport.main import app
from rapport.settings import settings

BASE = f"{settings.api_v1_prefix}/relationships"


def auth_headers(user_id: str, token_type: str = "access") -> dict[str, str]:
    token = jwt.encode(
        {"sub": user_id, "type": token_type}, settings.secret_key, algorithm=settings.algorithm
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def client(db_session):
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def headers(users):
    return {name: auth_headers(user_id) for name, user_id in users.items()}


async def create_pair(client, headers) -> dict:
    created = await client.post(BASE, json={"type": "ROMANTIC_COUPLE"}, headers=headers["alice"])
    assert created.status_code == 201
    body = created.json()
    joined = await client.post(
        f"{BASE}/join", json={"invite_code": body["invite_code"]}, headers=headers["bob"]
    )
    assert joined.status_code == 200
    return joined.json()


async def test_requires_token(client, users):
    response = await client.get(BASE)
    assert response.status_code == 401


async def test_rejects_bad_tokens(client, users):
    bad = await client.get(BASE, headers={"Authorization": "Bearer not-a-jwt"})
    assert bad.status_code == 401

    refresh = await client.get(BASE, headers=auth_headers(users["alice"], token_type="refresh"))
    assert refresh.status_code == 401

    unknown = await client.get(BASE, headers=auth_headers(generate_id()))
    assert unknown.status_code == 401


async def test_create_and_get(client, headers, users):
    response = await client.post(
        BASE, json={"type": "FRIENDSHIP_GROUP", "name": "Climbing"}, headers=headers["alice"]
    )
    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "ACTIVE"
    assert body["type"] == "FRIENDSHIP_GROUP"
    assert body["members"][0]["user_id"] == users["alice"]

    fetched = await client.get(f"{BASE}/{body['id']}", headers=headers["alice"])
    assert fetched.status_code == 200
    assert fetched.json()["invite_code"] == body["invite_code"]


async def test_create_rejects_unknown_type(client, headers):
    response = await client.post(BASE, json={"type": "PEN_PALS"}, headers=headers["alice"])
    assert response.status_code == 422


async def test_join_flow(client, headers, users):
    rel = await create_pair(client, headers)
    assert [m["user_id"] for m in rel["members"]] == [users["alice"], users["bob"]]

    again = await client.post(
        f"{BASE}/join", json={"invite_code": rel["invite_code"]}, headers=headers["bob"]
    )
    assert again.status_code == 409

    missing = await client.post(f"{BASE}/join", json={"invite_code": "ZZZZZZZZZZ"}, headers=headers["carol"])
    assert missing.status_code == 404

    empty = await client.post(f"{BASE}/join", json={"invite_code": ""}, headers=headers["carol"])
    assert empty.status_code == 422


async def test_outsider_gets_404(client, headers):
    rel = await create_pair(client, headers)
    for path in ("", "/members", "/sessions", "/insights", "/health", "/events"):
        response = await client.get(f"{BASE}/{rel['id']}{path}", headers=headers["carol"])
        assert response.status_code == 404, path


async def test_status_transitions(client, headers):
    rel = await create_pair(client, headers)
    url = f"{BASE}/{rel['id']}/status"

    paused = await client.patch(url, json={"status": "PAUSED"}, headers=headers["alice"])
    assert paused.status_code == 200
    assert paused.json()["status"] == "PAUSED"

    join = await client.post(
        f"{BASE}/join", json={"invite_code": rel["invite_code"]}, headers=headers["carol"]
    )
    assert join.status_code == 400
    assert join.json()["current_status"] == "PAUSED"

    bad = await client.patch(url, json={"status": "ARCHIVED"}, headers=headers["alice"])
    assert bad.status_code == 400
    assert bad.json() == {
        "detail": "Cannot transition from PAUSED to ARCHIVED",
        "current_status": "PAUSED",
        "requested_status": "ARCHIVED",
    }

    ended = await client.patch(
        url, json={"status": "ENDED_MUTUAL", "reason": "amicable"}, headers=headers["bob"]
    )
    assert ended.status_code == 200
    assert ended.json()["status"] == "ENDED_MUTUAL"
    assert ended.json()["end_reason"] == "amicable"
    assert ended.json()["members"] == []

    gone = await client.get(f"{BASE}/{rel['id']}", headers=headers["alice"])
    assert gone.status_code == 404


async def test_list_and_couple(client, headers, users):
    empty = await client.get(f"{BASE}/couple", headers=headers["carol"])
    assert empty.status_code == 200
    assert empty.json() is None

    rel = await create_pair(client, headers)
    listed = await client.get(BASE, headers=headers["bob"])
    assert [r["id"] for r in listed.json()] == [rel["id"]]

    couple = await client.get(f"{BASE}/couple", headers=headers["bob"])
    assert couple.status_code == 200
    assert couple.json()["partner1_id"] == users["alice"]
    assert couple.json()["partner2_id"] == users["bob"]

    await client.patch(f"{BASE}/{rel['id']}/status", json={"status": "PAUSED"}, headers=headers["bob"])
    assert (await client.get(BASE, headers=headers["bob"])).json() == []
    with_paused = await client.get(BASE, params={"include_ended": "true"}, headers=headers["bob"])
    assert [r["status"] for r in with_paused.json()] == ["PAUSED"]


async def test_leave(client, headers, users):
    rel = await create_pair(client, headers)

    response = await client.request(
        "DELETE", f"{BASE}/{rel['id']}/leave", json={"reason": "busy"}, headers=headers["bob"]
    )
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Successfully left the relationship"}

    members = await client.get(f"{BASE}/{rel['id']}/members", headers=headers["alice"])
    assert [m["user_id"] for m in members.json()] == [users["alice"]]

    again = await client.delete(f"{BASE}/{rel['id']}/leave", headers=headers["bob"])
    assert again.status_code == 404

    events = await client.get(f"{BASE}/{rel['id']}/events", headers=headers["alice"])
    assert [e["event_type"] for e in events.json()] == ["CREATED", "MEMBER_JOINED", "MEMBER_LEFT"]
    assert events.json()[-1]["reason"] == "busy"


async def test_leave_without_body(client, headers):
    rel = await create_pair(client, headers)
    response = await client.delete(f"{BASE}/{rel['id']}/leave", headers=headers["bob"])
    assert response.status_code == 200


async def test_read_side(client, headers, db_session):
    rel = await create_pair(client, headers)
    await add_session(db_session, rel["id"], 70, days_ago=2, green=1, red=1)
    await add_session(db_session, rel["id"], 80, days_ago=1, green=1)

    sessions = await client.get(f"{BASE}/{rel['id']}/sessions", headers=headers["alice"])
    assert sessions.status_code == 200
    assert [s["analysis"]["overall_score"] for s in sessions.json()] == [80, 70]

    health = await client.get(f"{BASE}/{rel['id']}/health", headers=headers["alice"])
    assert health.status_code == 200
    assert health.json()["health_score"] == 75
    assert health.json()["trend"] is None
    assert health.json()["green_card_ratio"] == 67
    assert health.json()["total_session_count"] == 2

    insights = await client.get(f"{BASE}/{rel['id']}/insights", headers=headers["alice"])
    assert insights.status_code == 200
    assert insights.json()["has_enough_data"] is False


async def test_health_endpoint(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
