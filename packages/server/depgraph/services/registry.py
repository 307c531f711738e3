"""
Task registry: the engine's read-only view of tasks.

The engine never creates or deletes tasks. It asks whether an id exists
before writing an edge, and loads task rows to present edge endpoints.
"""

from __future__ import annotations

import uuid
from typing import Iterable, Protocol

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from depgraph.models.task import Task


class TaskRegistry(Protocol):
    async def task_exists(self, task_id: uuid.UUID) -> bool: ...

    async def get_tasks(self, task_ids: Iterable[uuid.UUID]) -> list[Task]: ...


class SqlTaskRegistry:
    def __init__(self, session: AsyncSession):
        self._session = session

    async def task_exists(self, task_id: uuid.UUID) -> bool:
        result = await self._session.execute(
            select(func.count()).select_from(Task).where(Task.id == task_id)
        )
        return result.scalar_one() > 0

    async def get_tasks(self, task_ids: Iterable[uuid.UUID]) -> list[Task]:
        """Load tasks in the order of ``task_ids``; unknown ids are skipped."""
        ids = list(dict.fromkeys(task_ids))
        if not ids:
            return []
        result = await self._session.execute(select(Task).where(Task.id.in_(ids)))
        by_id = {t.id: t for t in result.scalars().all()}
        return [by_id[i] for i in ids if i in by_id]
