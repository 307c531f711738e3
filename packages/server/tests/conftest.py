"""
Shared fixtures: a fresh in-memory SQLite database per test, plus helpers
for building graphs in the in-memory edge store.
"""

from __future__ import annotations

import asyncio
import uuid

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import depgraph.models  # noqa: F401
from depgraph.models.dependency import TaskDependency
from depgraph.models.task import Task
from depgraph.services.edge_store import InMemoryEdgeStore, SqlEdgeStore
from depgraph.services.registry import SqlTaskRegistry


@pytest.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
def store(session) -> SqlEdgeStore:
    return SqlEdgeStore(session, lock=asyncio.Lock())


@pytest.fixture
def registry(session) -> SqlTaskRegistry:
    return SqlTaskRegistry(session)


@pytest.fixture
def make_tasks(session):
    """Insert ``n`` tasks titled T1..Tn and return their ids in order."""

    async def _make(n: int) -> list[uuid.UUID]:
        tasks = [Task(title=f"T{i + 1}") for i in range(n)]
        session.add_all(tasks)
        await session.commit()
        return [t.id for t in tasks]

    return _make


# ---------------------------------------------------------------------------
# In-memory graphs
# ---------------------------------------------------------------------------


class Names(dict):
    """Lazily assigns a uuid to each node name: ids["A"]."""

    def __missing__(self, key: str) -> uuid.UUID:
        self[key] = uuid.uuid4()
        return self[key]

    def name_of(self, task_id: uuid.UUID) -> str:
        return next(k for k, v in self.items() if v == task_id)


@pytest.fixture
def ids() -> Names:
    return Names()


@pytest.fixture
def graph(ids):
    """Build an InMemoryEdgeStore from "A>B" strings (A depends on B)."""

    def _build(*edges: str) -> InMemoryEdgeStore:
        rows = []
        for pair in edges:
            src, dst = pair.split(">")
            rows.append(TaskDependency(task_id=ids[src], dependent_task_id=ids[dst]))
        return InMemoryEdgeStore(rows)

    return _build
