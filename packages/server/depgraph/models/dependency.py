"""Task dependency edge model.

A row (task_id, dependent_task_id) means task_id depends on dependent_task_id:
the dependent task must complete first. The composite primary key is the
uniqueness constraint on the ordered pair. Acyclicity is not expressible in
the schema and is enforced by services.validator.
"""

from datetime import datetime
import uuid

import sqlalchemy as sa
from sqlalchemy import CheckConstraint
from sqlmodel import Field, SQLModel

from depgraph_shared.schemas.common import DependencyType

from .base import _utcnow


class TaskDependency(SQLModel, table=True):
    __tablename__ = "task_dependencies"
    __table_args__ = (
        CheckConstraint("task_id != dependent_task_id", name="no_self_dependency"),
    )

    task_id: uuid.UUID = Field(foreign_key="tasks.id", primary_key=True)
    dependent_task_id: uuid.UUID = Field(foreign_key="tasks.id", primary_key=True, index=True)
    dependency_type: str = Field(nullable=False, default=DependencyType.BLOCKS.value)
    created_at: datetime = Field(
        default_factory=_utcnow,
        nullable=False,
        sa_type=sa.DateTime(timezone=True),
    )
