"""Shared fixtures: in-memory SQLite per test, seeded users, HTTP client."""
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.pool import StaticPool

from app.db.base import Base
from app.db.session import build_engine, build_session_maker, get_db
from app.main import app
from tests.factories import make_user


@pytest.fixture
async def engine():
    engine = build_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return build_session_maker(engine)


@pytest.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
async def client(session_maker):
    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def accounts(session_maker):
    """Committed users for HTTP tests: name -> id."""
    async with session_maker() as session:
        users = [await make_user(session, name) for name in ("alice", "bob", "carol")]
        await session.commit()
        return {u.username: u.id for u in users}


@pytest.fixture
async def alice(db):
    return await make_user(db, "alice")


@pytest.fixture
async def bob(db):
    return await make_user(db, "bob")
