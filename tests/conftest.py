import os
import tempfile
from pathlib import Path
from typing import AsyncGenerator
from uuid import UUID

_TEST_DB_PATH = Path(tempfile.gettempdir()) / "matrimony_test.db"
TEST_DATABASE_URL = os.environ.get(
    "TEST_DATABASE_URL", f"sqlite+aiosqlite:///{_TEST_DB_PATH}"
)

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", TEST_DATABASE_URL)
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.config import settings
from app.core.rate_limit import InMemoryRateLimiter
from app.database import Base, get_db
from app.main import app
from app.services import profile_service


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
    session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with session_maker() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    # ASGITransport does not run the lifespan, which normally builds this
    app.state.interest_rate_limiter = InMemoryRateLimiter(
        settings.INTEREST_SEND_LIMIT, settings.INTEREST_SEND_WINDOW_SECONDS
    )

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


COMPLETE_PROFILE = {
    "last_name": "Sharma",
    "date_of_birth": "1995-04-12",
    "marital_status": "never_married",
    "height_cm": 170,
    "religion": "Hindu",
    "mother_tongue": "Hindi",
    "highest_qualification": "B.Tech",
    "profession": "Engineer",
    "income": "10_15_lakhs",
    "country": "India",
    "state": "Maharashtra",
    "city": "Pune",
    "address": "12 MG Road",
    "photos": [{"url": "https://cdn.example.com/p1.jpg", "is_primary": True}],
    "about": "Hello there",
}


async def register_and_login(
    client: AsyncClient,
    email: str,
    password: str = "password123",
    phone: str | None = None,
) -> tuple[dict, str]:
    """Register a user and log in. Returns (auth headers, user_id)."""
    payload = {"email": email, "password": password}
    if phone:
        payload["phone"] = phone
    await client.post("/api/v1/auth/register", json=payload)

    login_response = await client.post(
        "/api/v1/auth/login",
        data={"username": email, "password": password},
    )
    headers = {"Authorization": f"Bearer {login_response.json()['access_token']}"}

    me_response = await client.get("/api/v1/auth/me", headers=headers)
    return headers, me_response.json()["id"]


async def create_member(
    client: AsyncClient,
    db_session: AsyncSession,
    email: str,
    first_name: str,
    gender: str = "female",
    approved: bool = True,
    phone: str | None = None,
    **profile_overrides,
) -> tuple[dict, str]:
    """User with a complete profile, approved unless asked otherwise."""
    headers, user_id = await register_and_login(client, email, phone=phone)

    profile_data = {**COMPLETE_PROFILE, "first_name": first_name, "gender": gender}
    profile_data.update(profile_overrides)
    response = await client.post("/api/v1/profiles/", json=profile_data, headers=headers)
    assert response.status_code == 201, response.text

    if approved:
        profile = await profile_service.get_profile_by_id(
            db_session, UUID(response.json()["id"])
        )
        await profile_service.set_profile_approval(db_session, profile, True)

    return headers, user_id


@pytest_asyncio.fixture
async def alice(client: AsyncClient, db_session: AsyncSession) -> tuple[dict, str]:
    return await create_member(
        client, db_session, "alice@example.com", "Alice", phone="+919800000001"
    )


@pytest_asyncio.fixture
async def bob(client: AsyncClient, db_session: AsyncSession) -> tuple[dict, str]:
    return await create_member(
        client, db_session, "bob@example.com", "Bob", gender="male", phone="+919800000002"
    )


@pytest_asyncio.fixture
async def carol(client: AsyncClient, db_session: AsyncSession) -> tuple[dict, str]:
    return await create_member(client, db_session, "carol@example.com", "Carol")


@pytest_asyncio.fixture
async def registered_user(client: AsyncClient) -> dict:
    user_data = {
        "email": "test@example.com",
        "password": "testpassword123",
        "phone": "+919812345678",
    }
    response = await client.post("/api/v1/auth/register", json=user_data)
    return {**user_data, "response": response.json()}


@pytest_asyncio.fixture
async def auth_token(client: AsyncClient, registered_user: dict) -> str:
    response = await client.post(
        "/api/v1/auth/login",
        data={
            "username": registered_user["email"],
            "password": registered_user["password"],
        },
    )
    return response.json()["access_token"]
