# tests/conftest.py
import logging
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from asgi_lifespan import LifespanManager
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport
from mongomock_motor import AsyncMongoMockClient
from pytest_mock import MockerFixture
from unittest.mock import AsyncMock

from users_api.api.deps import get_user_service
from users_api.core.config import settings
from users_api.db.user_store import UserStore
from users_api.services.user_service import UserService

logger = logging.getLogger(__name__)


@pytest.fixture
def mock_db():
    """In-memory Motor-compatible database, fresh per test."""
    return AsyncMongoMockClient()["users_test"]


@pytest.fixture
def users_collection(mock_db):
    return mock_db[settings.USERS_COLLECTION]


@pytest_asyncio.fixture
async def user_store(users_collection) -> UserStore:
    store = UserStore(users_collection)
    await store.ensure_indexes()
    return store


@pytest.fixture
def user_service(user_store: UserStore) -> UserService:
    return UserService(user_store)


@pytest_asyncio.fixture
async def app(mocker: MockerFixture, mock_db) -> AsyncGenerator[FastAPI, None]:
    """The real app with its startup wired to the in-memory database."""
    mocker.patch("users_api.main.connect_to_mongo", new_callable=AsyncMock, return_value=True)
    mocker.patch("users_api.main.close_mongo_connection", new_callable=AsyncMock, return_value=None)
    mocker.patch("users_api.main.get_database", return_value=mock_db)

    from users_api.main import app as fastapi_app

    async with LifespanManager(fastapi_app, startup_timeout=15, shutdown_timeout=15):
        yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as test_client:
        yield test_client


@pytest.fixture
def mock_service(app: FastAPI, mocker: MockerFixture):
    """Replaces the user service behind the endpoints with an AsyncMock."""
    service = mocker.AsyncMock(spec=UserService)
    app.dependency_overrides[get_user_service] = lambda: service
    yield service
    app.dependency_overrides.pop(get_user_service, None)
