"""Task model. Owned by the task registry; the dependency engine only reads it."""

from typing import Optional

from sqlmodel import Field, SQLModel

from depgraph_shared.schemas.common import TaskPriority, TaskStatus

from .base import TimestampMixin, UUIDMixin


class Task(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "tasks"

    title: str = Field(nullable=False)
    description: Optional[str] = None
    status: str = Field(nullable=False, default=TaskStatus.TODO.value)
    priority: str = Field(nullable=False, default=TaskPriority.MEDIUM.value)
