"""Dependency-related Pydantic schemas for shared use across server and API clients."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import UUID4

from .common import DependencyType


# ---------------------------------------------------------------------------
# Tasks (read-only projection of the task registry)
# ---------------------------------------------------------------------------

class TaskSummary(BaseModel):
    """Display fields of a task referenced by a dependency edge."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID4
    title: str
    description: Optional[str] = None
    status: str
    priority: str
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

class DependencyAdd(BaseModel):
    """Request body for POST /tasks/{taskId}/dependencies."""
    dependent_task_id: UUID4


class DependencyRead(BaseModel):
    """An edge: task_id depends on dependent_task_id."""
    task_id: UUID4
    dependent_task_id: UUID4
    # Open set; unknown tags are passed through as stored.
    dependency_type: str = DependencyType.BLOCKS.value
    created_at: datetime
    task: Optional[TaskSummary] = None
    dependent_task: Optional[TaskSummary] = None


class DependencyChainRead(BaseModel):
    """Response for GET /tasks/{taskId}/dependency-chain."""
    task_id: UUID4
    chain: List[UUID4] = Field(default_factory=list)


class IntegrityReport(BaseModel):
    acyclic: bool
    cycle: List[UUID4] = Field(default_factory=list)
