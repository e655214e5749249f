from unittest.mock import AsyncMock, MagicMock
import pytest
from fastapi.testclient import TestClient

from slipshare.core.auth import get_current_user
from slipshare.core.database import get_db
from slipshare.main import app


def make_db(existing):
    db = MagicMock()
    result = MagicMock()
    result.scalar_one_or_none.return_value = existing
    db.execute = AsyncMock(return_value=result)
    db.commit = AsyncMock()
    return db


@pytest.fixture
def client():
    yield TestClient(app)
    app.dependency_overrides.clear()


def use_db(db):
    async def override_db():
        yield db

    app.dependency_overrides[get_db] = override_db


def test_callback_creates_missing_user(client, owner_id):
    db = make_db(None)
    use_db(db)

    resp = client.post("/api/auth/callback", json={
        "id": str(owner_id), "email": "owner@example.com", "display_name": "Owner",
    })

    assert resp.status_code == 200
    created = db.add.call_args.args[0]
    assert created.id == owner_id
    assert created.email == "owner@example.com"
    db.commit.assert_awaited_once()


def test_second_callback_keeps_stored_email(client, owner):
    db = make_db(owner)
    use_db(db)

    resp = client.post("/api/auth/callback", json={
        "id": str(owner.id), "email": "attacker@example.com", "display_name": "Someone Else",
    })

    assert resp.status_code == 200
    assert owner.email == "owner@example.com"
    assert owner.display_name == "Owner"
    db.add.assert_not_called()
    db.commit.assert_not_awaited()


def test_callback_rejects_bad_id(client):
    use_db(make_db(None))
    resp = client.post("/api/auth/callback", json={"id": "nope", "email": "a@example.com", "display_name": "A"})
    assert resp.status_code == 400
    assert resp.json()["code"] == "INVALID_REQUEST_DATA"


def test_me(client, friend):
    app.dependency_overrides[get_current_user] = lambda: friend
    resp = client.get("/api/auth/me")
    assert resp.json() == {"id": str(friend.id), "email": "friend@example.com", "display_name": "Friend"}
