import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from src.adapter.services.memory_cache_service import InMemoryCacheService
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.depends import get_cache_service, get_uow_factory
from tests.fixtures.json_loader import TestDataLoader
from tests.fixtures.users import build_user


@pytest_asyncio.fixture
def test_data():
    return TestDataLoader()


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite:///./test.db")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def users(session_factory):
    """Seed users from test_data.json, keyed like the JSON entries"""
    seeded = {key: build_user(key) for key in ("active", "second", "disabled")}
    async with session_factory() as session:
        session.add_all(seeded.values())
        await session.commit()
    return seeded


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
def cache():
    return InMemoryCacheService()


@pytest_asyncio.fixture
async def client(session_factory, users, cache):
    from src.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)

    def override_get_uow_factory():
        return lambda: SqlAlchemyUnitOfWork(session_factory)

    app.dependency_overrides[get_uow_factory] = override_get_uow_factory
    app.dependency_overrides[get_cache_service] = lambda: cache

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
