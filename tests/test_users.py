import pytest
from datetime import timedelta
from sqlalchemy import select
from conftest import login, register
from videotube.core.config import get_settings
from videotube.core.security import TokenService
from videotube.models.subscription import Subscription
from videotube.models.user import User
from videotube.models.video import Video, WatchHistoryEntry

pytestmark = pytest.mark.asyncio


async def _signed_in(client, **kwargs):
    await register(client, **kwargs)
    username = kwargs.get("username", "alice")
    password = kwargs.get("password", "p1")
    response = await login(client, username=username, password=password)
    return response.json()["data"]


async def _user(db_session, username) -> User:
    return (await db_session.execute(select(User).where(User.username == username))).scalar_one()


# ──────────────────────────────────────────────
# Request authentication
# ──────────────────────────────────────────────

async def test_get_user_with_cookie(client):
    await _signed_in(client)
    response = await client.get("/api/v1/users/get-user")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["username"] == "alice"
    assert "refreshToken" not in data


async def test_get_user_with_bearer_header(client):
    token = (await _signed_in(client))["accessToken"]
    client.cookies.clear()
    response = await client.get("/api/v1/users/get-user", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200


async def test_get_user_unauthenticated(client):
    response = await client.get("/api/v1/users/get-user")
    assert response.status_code == 401
    assert response.json() == {"status": 401, "message": "Unauthorized", "success": False}


async def test_get_user_with_garbage_token(client):
    response = await client.get("/api/v1/users/get-user", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401
    assert response.json()["message"] == "Unauthorized"


async def test_get_user_with_expired_token(client, db_session):
    await _signed_in(client)
    client.cookies.clear()
    user = await _user(db_session, "alice")
    expired_settings = get_settings().model_copy(update={"ACCESS_TOKEN_EXPIRE_MINUTES": -5})
    token = TokenService(expired_settings).issue_access_token(user)
    response = await client.get("/api/v1/users/get-user", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json()["message"] == "Unauthorized"


async def test_get_user_rejects_refresh_token(client):
    refresh = (await _signed_in(client))["refreshToken"]
    client.cookies.clear()
    response = await client.get("/api/v1/users/get-user", headers={"Authorization": f"Bearer {refresh}"})
    assert response.status_code == 401


async def test_get_user_for_deleted_user(client, db_session):
    token = (await _signed_in(client))["accessToken"]
    client.cookies.clear()
    await db_session.delete(await _user(db_session, "alice"))
    await db_session.flush()
    response = await client.get("/api/v1/users/get-user", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


# ──────────────────────────────────────────────
# Account details
# ──────────────────────────────────────────────

async def test_update_user(client):
    await _signed_in(client)
    response = await client.patch("/api/v1/users/update-user", json={
        "fullName": "Alice B",
        "email": "New@X.com",
    })
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["fullName"] == "Alice B"
    assert data["email"] == "new@x.com"


async def test_update_user_requires_all_fields(client):
    await _signed_in(client)
    response = await client.patch("/api/v1/users/update-user", json={"fullName": " ", "email": "a@x.com"})
    assert response.status_code == 400
    assert response.json()["message"] == "All fields are required"


async def test_update_user_email_taken(client):
    await register(client, username="bob", email="b@x.com")
    await _signed_in(client)
    response = await client.patch("/api/v1/users/update-user", json={"fullName": "Alice", "email": "b@x.com"})
    assert response.status_code == 409


# ──────────────────────────────────────────────
# Avatar and cover image
# ──────────────────────────────────────────────

async def test_update_avatar_replaces_previous(client, media_host, db_session):
    await _signed_in(client)
    previous = (await _user(db_session, "alice")).avatar_public_id

    response = await client.patch("/api/v1/users/update-avatar", files={
        "avatar": ("new.png", b"new-avatar", "image/png"),
    })
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Avatar updated successfully"
    assert media_host.deleted == [previous]
    assert body["data"]["avatar"] == "https://media.test/image/upload/media-2.png"
    assert not media_host.uploads[-1].exists()


async def test_update_avatar_reports_failed_deletion(client, media_host):
    await _signed_in(client)
    media_host.fail_deletes = True
    response = await client.patch("/api/v1/users/update-avatar", files={
        "avatar": ("new.png", b"new-avatar", "image/png"),
    })
    assert response.status_code == 200
    assert "previous image could not be removed" in response.json()["message"]
    assert response.json()["data"]["avatar"].endswith("media-2.png")


async def test_update_avatar_requires_file(client):
    await _signed_in(client)
    response = await client.patch("/api/v1/users/update-avatar")
    assert response.status_code == 400
    assert response.json()["message"] == "Avatar file is required"


async def test_update_avatar_upload_failure(client, media_host):
    await _signed_in(client)
    media_host.fail_suffixes.add(".gif")
    response = await client.patch("/api/v1/users/update-avatar", files={
        "avatar": ("new.gif", b"gif", "image/gif"),
    })
    assert response.status_code == 400
    assert response.json()["message"] == "Error while uploading avatar"


async def test_update_cover_image_without_previous(client, media_host):
    await _signed_in(client)
    response = await client.patch("/api/v1/users/update-coverimage", files={
        "coverImage": ("cover.jpg", b"cover", "image/jpeg"),
    })
    assert response.status_code == 200
    assert response.json()["message"] == "Cover image updated successfully"
    assert response.json()["data"]["coverImage"].endswith(".jpg")
    assert media_host.deleted == []


async def test_update_cover_image_replaces_previous(client, media_host):
    await _signed_in(client, cover_image=True)
    response = await client.patch("/api/v1/users/update-coverimage", files={
        "coverImage": ("cover2.jpg", b"cover2", "image/jpeg"),
    })
    assert response.status_code == 200
    assert media_host.deleted == ["media-2"]


# ──────────────────────────────────────────────
# Channel profile
# ──────────────────────────────────────────────

async def test_channel_profile(client, db_session):
    await register(client, username="bob", email="b@x.com", full_name="Bob B")
    await register(client, username="carol", email="c@x.com", full_name="Carol C")
    await _signed_in(client)
    alice, bob, carol = [await _user(db_session, name) for name in ("alice", "bob", "carol")]
    db_session.add_all([
        Subscription(subscriber_id=alice.id, channel_id=bob.id),
        Subscription(subscriber_id=carol.id, channel_id=bob.id),
        Subscription(subscriber_id=bob.id, channel_id=carol.id),
    ])
    await db_session.flush()

    response = await client.get("/api/v1/users/channel/BOB")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["username"] == "bob"
    assert data["fullName"] == "Bob B"
    assert data["subscribersCount"] == 2
    assert data["channelsSubscribedToCount"] == 1
    assert data["isSubscribed"] is True

    response = await client.get("/api/v1/users/channel/carol")
    data = response.json()["data"]
    assert data["subscribersCount"] == 1
    assert data["channelsSubscribedToCount"] == 1
    assert data["isSubscribed"] is False


async def test_channel_profile_unknown(client):
    await _signed_in(client)
    response = await client.get("/api/v1/users/channel/nobody")
    assert response.status_code == 404
    assert response.json()["message"] == "Channel does not exist"


async def test_channel_profile_requires_authentication(client):
    response = await client.get("/api/v1/users/channel/alice")
    assert response.status_code == 401


# ──────────────────────────────────────────────
# Watch history
# ──────────────────────────────────────────────

async def test_watch_history_empty(client):
    await _signed_in(client)
    response = await client.get("/api/v1/users/history")
    assert response.status_code == 200
    assert response.json()["data"] == []


async def test_watch_history_keeps_order_and_duplicates(client, db_session):
    await register(client, username="bob", email="b@x.com", full_name="Bob B")
    await _signed_in(client)
    alice, bob = await _user(db_session, "alice"), await _user(db_session, "bob")
    first = Video(owner_id=bob.id, video_file="v1.mp4", thumbnail="t1.png", title="First", duration=12.5)
    second = Video(owner_id=alice.id, video_file="v2.mp4", thumbnail="t2.png", title="Second", duration=3)
    db_session.add_all([first, second])
    await db_session.flush()
    await db_session.refresh(first)
    await db_session.refresh(second)
    for video in (second, first, second):
        db_session.add(WatchHistoryEntry(user_id=alice.id, video_id=video.id))
        await db_session.flush()

    response = await client.get("/api/v1/users/history")
    assert response.status_code == 200
    history = response.json()["data"]
    assert [item["title"] for item in history] == ["Second", "First", "Second"]
    assert history[1]["owner"] == {
        "fullName": "Bob B",
        "username": "bob",
        "avatar": bob.avatar,
    }
    assert "email" not in history[1]["owner"]
