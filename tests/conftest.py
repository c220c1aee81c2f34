"""Pytest configuration and shared fixtures."""
from datetime import datetime

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from rapport.domain.common.types import generate_id
from rapport.domain.relationships.services import RelationshipLifecycleService
from rapport.infra.db.base import Base
from rapport.infra.db.models import UserModel
from rapport.infra.db.repositories.relationship_repo import (
    RelationshipRepositoryImpl,
    SessionReadRepositoryImpl,
)


def pytest_configure(config):
    """Register markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests that need a real DB (deselect with '-m \"not integration\"')"
    )


@pytest.fixture
async def db_session():
    """In-memory SQLite database with the full schema."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, expire_on_commit=False, autoflush=False)
    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def users(db_session: AsyncSession) -> dict[str, str]:
    """Three users: alice, bob and carol. Returns name -> id."""
    now = datetime.utcnow()
    ids = {}
    for name in ("alice", "bob", "carol"):
        user_id = generate_id()
        db_session.add(
            UserModel(
                id=user_id,
                email=f"{name}@example.com",
                name=name.title(),
                created_at=now,
                updated_at=now,
            )
        )
        ids[name] = user_id
    await db_session.commit()
    return ids


@pytest.fixture
def relationship_repo(db_session: AsyncSession) -> RelationshipRepositoryImpl:
    return RelationshipRepositoryImpl(db_session)


@pytest.fixture
def service(db_session: AsyncSession, relationship_repo) -> RelationshipLifecycleService:
    return RelationshipLifecycleService(relationship_repo, SessionReadRepositoryImpl(db_session))
