import os
import tempfile
from pathlib import Path

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ACCESS_TOKEN_SECRET", "test-access-secret")
os.environ.setdefault("REFRESH_TOKEN_SECRET", "test-refresh-secret")
os.environ.setdefault("UPLOAD_TEMP_DIR", tempfile.mkdtemp(prefix="videotube-uploads-"))

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.pool import StaticPool
from videotube.core.database import Base, get_db
from videotube.core.media import MediaAsset
from videotube.core.rate_limit import limiter
from videotube.api.deps import get_media_host
from videotube.main import app

# In-memory SQLite for tests
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class FakeMediaHost:
    """In-memory media host that records calls and fails on demand."""

    def __init__(self):
        self.uploads: list[Path] = []
        self.uploaded_contents: list[bytes] = []
        self.deleted: list[str] = []
        self.fail_suffixes: set[str] = set()
        self.fail_deletes = False

    async def upload(self, local_path: Path) -> MediaAsset | None:
        self.uploads.append(local_path)
        self.uploaded_contents.append(local_path.read_bytes())
        if local_path.suffix in self.fail_suffixes:
            return None
        n = len(self.uploads)
        return MediaAsset(url=f"https://media.test/image/upload/media-{n}{local_path.suffix}", public_id=f"media-{n}")

    async def delete(self, public_id: str | None) -> bool:
        if not public_id:
            return True
        if self.fail_deletes:
            return False
        self.deleted.append(public_id)
        return True


# Fresh database per test; StaticPool keeps every connection on the same in-memory db
@pytest.fixture(scope="function")
async def db_engine():
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture(scope="function")
async def db_session(db_engine):
    session = AsyncSession(bind=db_engine, expire_on_commit=False)
    yield session
    await session.close()


@pytest.fixture(scope="function")
def media_host():
    return FakeMediaHost()


@pytest.fixture(scope="function", autouse=True)
def setup_app_dependencies(db_session, media_host):

    # Override get_db dependency so that it uses the test database session
    async def override_get_db():
        yield db_session
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_media_host] = lambda: media_host

    # Disable rate limiting for tests to avoid interference
    original_limiter_state = limiter.enabled
    limiter.enabled = False

    yield

    # Cleanup after test
    app.dependency_overrides.clear()
    limiter.enabled = original_limiter_state


@pytest.fixture(scope="function")
def rate_limited(setup_app_dependencies):
    # Turn the shared limiter back on with empty counters for tests that exercise it
    limiter.enabled = True
    limiter.reset()
    yield limiter
    limiter.reset()


@pytest.fixture(scope="function")
async def client(setup_app_dependencies):
    # https so the secure session cookies round-trip
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="https://test") as ac:
        yield ac


async def register(client, username="alice", email="a@x.com", password="p1", full_name="Alice A",
                   avatar=True, cover_image=False):
    files = {}
    if avatar:
        files["avatar"] = ("avatar.png", b"avatar-bytes", "image/png")
    if cover_image:
        files["coverImage"] = ("cover.jpg", b"cover-bytes", "image/jpeg")
    data = {"fullName": full_name, "email": email, "username": username, "password": password}
    return await client.post("/api/v1/users/register", data=data, files=files or None)


async def login(client, password="p1", **identifier):
    if not identifier:
        identifier = {"username": "alice"}
    return await client.post("/api/v1/users/login", json={**identifier, "password": password})
