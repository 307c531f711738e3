"""
Dependency endpoints: add/remove edges, direct listings, chain, integrity.

- Edge (task_id, dependent_task_id): task_id depends on dependent_task_id.
- Circular dependency detection on add.
- Engine errors are translated to HTTP responses by the app-level handler.
"""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from depgraph.core.config import get_settings
from depgraph.core.database import get_session
from depgraph.services.dependencies import (
    add_dependency,
    check_integrity,
    get_blocked_tasks,
    get_blocking_tasks,
    get_dependency_chain,
    get_dependent_tasks,
    get_task_dependencies,
    remove_dependency,
)
from depgraph.services.edge_store import SqlEdgeStore
from depgraph.services.registry import SqlTaskRegistry
from depgraph_shared.schemas.dependencies import (
    DependencyAdd,
    DependencyChainRead,
    DependencyRead,
    IntegrityReport,
    TaskSummary,
)

router = APIRouter()


def get_edge_store(
    request: Request, session: AsyncSession = Depends(get_session)
) -> SqlEdgeStore:
    return SqlEdgeStore(session, lock=request.app.state.dependency_insert_lock)


def get_registry(session: AsyncSession = Depends(get_session)) -> SqlTaskRegistry:
    return SqlTaskRegistry(session)


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


@router.post("/tasks/{task_id}/dependencies", response_model=DependencyRead, status_code=201)
async def add_dependency_endpoint(
    task_id: uuid.UUID,
    body: DependencyAdd,
    store: SqlEdgeStore = Depends(get_edge_store),
    registry: SqlTaskRegistry = Depends(get_registry),
):
    """Add a dependency (task depends on dependent_task_id). Detects circular deps."""
    return await add_dependency(store, registry, task_id, body.dependent_task_id)


@router.delete("/tasks/{task_id}/dependencies/{dependent_task_id}")
async def remove_dependency_endpoint(
    task_id: uuid.UUID,
    dependent_task_id: uuid.UUID,
    store: SqlEdgeStore = Depends(get_edge_store),
    session: AsyncSession = Depends(get_session),
):
    """Remove a dependency."""
    await remove_dependency(store, task_id, dependent_task_id)
    await session.commit()
    return {"ok": True}


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


@router.get("/tasks/{task_id}/dependencies", response_model=List[DependencyRead])
async def list_dependencies_endpoint(
    task_id: uuid.UUID,
    store: SqlEdgeStore = Depends(get_edge_store),
    registry: SqlTaskRegistry = Depends(get_registry),
):
    """Tasks this task depends on, newest edge first."""
    return await get_task_dependencies(store, registry, task_id)


@router.get("/tasks/{task_id}/dependents", response_model=List[DependencyRead])
async def list_dependents_endpoint(
    task_id: uuid.UUID,
    store: SqlEdgeStore = Depends(get_edge_store),
    registry: SqlTaskRegistry = Depends(get_registry),
):
    """Tasks that depend on this task, newest edge first."""
    return await get_dependent_tasks(store, registry, task_id)


@router.get("/tasks/{task_id}/blocking", response_model=List[TaskSummary])
async def blocking_tasks_endpoint(
    task_id: uuid.UUID,
    store: SqlEdgeStore = Depends(get_edge_store),
    registry: SqlTaskRegistry = Depends(get_registry),
):
    return await get_blocking_tasks(store, registry, task_id)


@router.get("/tasks/{task_id}/blocked", response_model=List[TaskSummary])
async def blocked_tasks_endpoint(
    task_id: uuid.UUID,
    store: SqlEdgeStore = Depends(get_edge_store),
    registry: SqlTaskRegistry = Depends(get_registry),
):
    return await get_blocked_tasks(store, registry, task_id)


@router.get("/tasks/{task_id}/dependency-chain", response_model=DependencyChainRead)
async def dependency_chain_endpoint(
    task_id: uuid.UUID,
    store: SqlEdgeStore = Depends(get_edge_store),
):
    """Everything this task transitively depends on, in DFS pre-order."""
    chain = await get_dependency_chain(store, task_id, get_settings().max_chain_depth)
    return DependencyChainRead(task_id=task_id, chain=chain)


@router.get("/dependencies/integrity", response_model=IntegrityReport)
async def integrity_endpoint(store: SqlEdgeStore = Depends(get_edge_store)):
    """Scan the stored graph for cycles that bypassed validation."""
    return await check_integrity(store)
