"""
Edge store: persistence of the task_dependencies relation.

No graph rules live here. A store only enforces uniqueness of the ordered
pair and provides ``serialized()``, the scope inside which the mutation API
runs its read-validate-write sequence for a single insert.

Two implementations:
- SqlEdgeStore: async SQLAlchemy session (PostgreSQL in production, SQLite in tests)
- InMemoryEdgeStore: process-local list of edges, used by unit tests and tooling
"""

from __future__ import annotations

import asyncio
import uuid
from contextlib import asynccontextmanager
from typing import AsyncContextManager, AsyncIterator, Optional, Protocol

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from depgraph.models.dependency import TaskDependency
from depgraph.models.task import Task
from depgraph.services.errors import DependencyError, DuplicateDependency, TaskNotFound

# SQLSTATE foreign_key_violation
FOREIGN_KEY_VIOLATION = "23503"

# pg_advisory_xact_lock key shared by every dependency insert
INSERT_LOCK_KEY = 0x7461736B64657073  # "taskdeps"


class EdgeStore(Protocol):
    async def find_edge(
        self, task_id: uuid.UUID, dependent_task_id: uuid.UUID
    ) -> Optional[TaskDependency]: ...

    async def list_outgoing(self, task_id: uuid.UUID) -> list[TaskDependency]: ...

    async def list_incoming(self, task_id: uuid.UUID) -> list[TaskDependency]: ...

    async def list_all(self) -> list[TaskDependency]: ...

    async def insert(self, edge: TaskDependency) -> TaskDependency: ...

    async def delete(self, task_id: uuid.UUID, dependent_task_id: uuid.UUID) -> bool: ...

    def serialized(
        self, task_id: uuid.UUID, dependent_task_id: uuid.UUID
    ) -> AsyncContextManager[None]: ...


def _is_foreign_key_violation(exc: IntegrityError) -> bool:
    if getattr(exc.orig, "sqlstate", None) == FOREIGN_KEY_VIOLATION:
        return True
    return "foreign key" in str(exc.orig).lower()


# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------


class SqlEdgeStore:
    """Edge store backed by an AsyncSession.

    Listings are ordered by creation time (ties broken by the other endpoint's
    id) so traversals over the same data always walk neighbours in the same order.

    ``lock`` should be one asyncio.Lock shared by every store in the process.
    On PostgreSQL inserts are additionally serialized across processes with a
    transaction-scoped advisory lock.
    """

    def __init__(self, session: AsyncSession, lock: Optional[asyncio.Lock] = None):
        self._session = session
        self._lock = lock

    async def find_edge(
        self, task_id: uuid.UUID, dependent_task_id: uuid.UUID
    ) -> Optional[TaskDependency]:
        result = await self._session.execute(
            select(TaskDependency).where(
                TaskDependency.task_id == task_id,
                TaskDependency.dependent_task_id == dependent_task_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_outgoing(self, task_id: uuid.UUID) -> list[TaskDependency]:
        result = await self._session.execute(
            select(TaskDependency)
            .where(TaskDependency.task_id == task_id)
            .order_by(TaskDependency.created_at, TaskDependency.dependent_task_id)
        )
        return list(result.scalars().all())

    async def list_incoming(self, task_id: uuid.UUID) -> list[TaskDependency]:
        result = await self._session.execute(
            select(TaskDependency)
            .where(TaskDependency.dependent_task_id == task_id)
            .order_by(TaskDependency.created_at, TaskDependency.task_id)
        )
        return list(result.scalars().all())

    async def list_all(self) -> list[TaskDependency]:
        result = await self._session.execute(
            select(TaskDependency).order_by(
                TaskDependency.created_at,
                TaskDependency.task_id,
                TaskDependency.dependent_task_id,
            )
        )
        return list(result.scalars().all())

    async def insert(self, edge: TaskDependency) -> TaskDependency:
        self._session.add(edge)
        try:
            await self._session.flush()
        except IntegrityError as exc:
            await self._session.rollback()
            if _is_foreign_key_violation(exc):
                # An endpoint was deleted after the existence check.
                raise TaskNotFound(await self._missing_endpoint(edge))
            # Lost a race against a concurrent insert of the same pair.
            raise DuplicateDependency(edge.task_id, edge.dependent_task_id)
        return edge

    async def _missing_endpoint(self, edge: TaskDependency) -> uuid.UUID:
        for task_id in (edge.task_id, edge.dependent_task_id):
            if await self._session.get(Task, task_id) is None:
                return task_id
        return edge.dependent_task_id

    async def delete(self, task_id: uuid.UUID, dependent_task_id: uuid.UUID) -> bool:
        edge = await self.find_edge(task_id, dependent_task_id)
        if edge is None:
            return False
        await self._session.delete(edge)
        await self._session.flush()
        return True

    @asynccontextmanager
    async def serialized(
        self, task_id: uuid.UUID, dependent_task_id: uuid.UUID
    ) -> AsyncIterator[None]:
        """Run the enclosed block as one serialized transaction.

        Commits on success. A DependencyError means nothing was written and is
        re-raised untouched; any other failure rolls the transaction back.
        """
        if self._lock is not None:
            await self._lock.acquire()
        try:
            if self._session.bind.dialect.name == "postgresql":
                await self._session.execute(
                    text("SELECT pg_advisory_xact_lock(:key)"), {"key": INSERT_LOCK_KEY}
                )
            try:
                yield
            except DependencyError:
                raise
            except Exception:
                await self._session.rollback()
                raise
            await self._session.commit()
        finally:
            if self._lock is not None:
                self._lock.release()


# ---------------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------------


class InMemoryEdgeStore:
    """Edge store over a plain list, kept in insertion order.

    Every read yields to the event loop, like a real I/O call would, so
    concurrent callers interleave the same way they would against a database.
    """

    def __init__(self, edges: Optional[list[TaskDependency]] = None):
        self._edges: list[TaskDependency] = list(edges or [])
        self._lock = asyncio.Lock()

    async def find_edge(
        self, task_id: uuid.UUID, dependent_task_id: uuid.UUID
    ) -> Optional[TaskDependency]:
        await asyncio.sleep(0)
        for edge in self._edges:
            if edge.task_id == task_id and edge.dependent_task_id == dependent_task_id:
                return edge
        return None

    async def list_outgoing(self, task_id: uuid.UUID) -> list[TaskDependency]:
        await asyncio.sleep(0)
        return [e for e in self._edges if e.task_id == task_id]

    async def list_incoming(self, task_id: uuid.UUID) -> list[TaskDependency]:
        await asyncio.sleep(0)
        return [e for e in self._edges if e.dependent_task_id == task_id]

    async def list_all(self) -> list[TaskDependency]:
        await asyncio.sleep(0)
        return list(self._edges)

    async def insert(self, edge: TaskDependency) -> TaskDependency:
        if await self.find_edge(edge.task_id, edge.dependent_task_id) is not None:
            raise DuplicateDependency(edge.task_id, edge.dependent_task_id)
        self._edges.append(edge)
        return edge

    async def delete(self, task_id: uuid.UUID, dependent_task_id: uuid.UUID) -> bool:
        edge = await self.find_edge(task_id, dependent_task_id)
        if edge is None:
            return False
        self._edges = [e for e in self._edges if e is not edge]
        return True

    @asynccontextmanager
    async def serialized(
        self, task_id: uuid.UUID, dependent_task_id: uuid.UUID
    ) -> AsyncIterator[None]:
        async with self._lock:
            yield

    def __len__(self) -> int:
        return len(self._edges)
