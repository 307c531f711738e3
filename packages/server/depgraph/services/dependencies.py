"""
Dependency service layer: the only way edges get written or removed.

Handles:
- Adding an edge after existence checks and cycle-safe validation
- Removing an edge by its (task_id, dependent_task_id) pair
- Direct (one hop) listings in both directions
- Transitive dependency chain and integrity audit
- Enrichment of edges with task summaries for API responses

Convention: edge (A, B) means "A depends on B", B must complete before A.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog

from depgraph.models.dependency import TaskDependency
from depgraph.services import traversal
from depgraph.services.edge_store import EdgeStore
from depgraph.services.errors import (
    CircularDependency,
    DependencyNotFound,
    DuplicateDependency,
    SelfDependency,
    TaskNotFound,
)
from depgraph.services.registry import TaskRegistry
from depgraph.services.validator import InsertVerdict, can_insert
from depgraph_shared.schemas.common import DependencyType
from depgraph_shared.schemas.dependencies import (
    DependencyRead,
    IntegrityReport,
    TaskSummary,
)

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _to_read(edge: TaskDependency) -> DependencyRead:
    return DependencyRead(
        task_id=edge.task_id,
        dependent_task_id=edge.dependent_task_id,
        dependency_type=edge.dependency_type,
        created_at=edge.created_at,
    )


async def _summaries(
    registry: TaskRegistry, task_ids: list[uuid.UUID]
) -> dict[uuid.UUID, TaskSummary]:
    tasks = await registry.get_tasks(task_ids)
    return {t.id: TaskSummary.model_validate(t) for t in tasks}


def _raise_for_verdict(
    verdict: InsertVerdict, task_id: uuid.UUID, dependent_task_id: uuid.UUID
) -> None:
    if verdict == InsertVerdict.SELF_LOOP:
        raise SelfDependency(task_id)
    if verdict == InsertVerdict.DUPLICATE:
        raise DuplicateDependency(task_id, dependent_task_id)
    if verdict == InsertVerdict.WOULD_CREATE_CYCLE:
        raise CircularDependency(task_id, dependent_task_id)


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


async def add_dependency(
    store: EdgeStore,
    registry: TaskRegistry,
    task_id: uuid.UUID,
    dependent_task_id: uuid.UUID,
) -> DependencyRead:
    """Record that ``task_id`` depends on ``dependent_task_id``.

    Raises TaskNotFound, SelfDependency, DuplicateDependency or
    CircularDependency; on any of them the store is left untouched.
    """
    for tid in (task_id, dependent_task_id):
        if not await registry.task_exists(tid):
            raise TaskNotFound(tid)

    # Validation and write share one serialized scope so two concurrent
    # inserts cannot each pass the reachability check and jointly close a cycle.
    async with store.serialized(task_id, dependent_task_id):
        verdict = await can_insert(store, task_id, dependent_task_id)
        if verdict != InsertVerdict.OK:
            log.info(
                "dependency.rejected",
                task_id=str(task_id),
                dependent_task_id=str(dependent_task_id),
                reason=verdict.value,
            )
            _raise_for_verdict(verdict, task_id, dependent_task_id)

        edge = await store.insert(
            TaskDependency(
                task_id=task_id,
                dependent_task_id=dependent_task_id,
                dependency_type=DependencyType.BLOCKS.value,
            )
        )
        created = _to_read(edge)

    log.info(
        "dependency.added",
        task_id=str(task_id),
        dependent_task_id=str(dependent_task_id),
    )

    tasks = await _summaries(registry, [task_id, dependent_task_id])
    created.task = tasks.get(task_id)
    created.dependent_task = tasks.get(dependent_task_id)
    return created


async def remove_dependency(
    store: EdgeStore,
    task_id: uuid.UUID,
    dependent_task_id: uuid.UUID,
) -> None:
    if not await store.delete(task_id, dependent_task_id):
        raise DependencyNotFound(task_id, dependent_task_id)
    log.info(
        "dependency.removed",
        task_id=str(task_id),
        dependent_task_id=str(dependent_task_id),
    )


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def get_task_dependencies(
    store: EdgeStore, registry: TaskRegistry, task_id: uuid.UUID
) -> list[DependencyRead]:
    """Edges where ``task_id`` is the dependent side, newest first."""
    edges = list(reversed(await store.list_outgoing(task_id)))
    tasks = await _summaries(registry, [e.dependent_task_id for e in edges])
    reads = []
    for edge in edges:
        read = _to_read(edge)
        read.dependent_task = tasks.get(edge.dependent_task_id)
        reads.append(read)
    return reads


async def get_dependent_tasks(
    store: EdgeStore, registry: TaskRegistry, task_id: uuid.UUID
) -> list[DependencyRead]:
    """Edges of tasks that depend on ``task_id``, newest first."""
    edges = list(reversed(await store.list_incoming(task_id)))
    tasks = await _summaries(registry, [e.task_id for e in edges])
    reads = []
    for edge in edges:
        read = _to_read(edge)
        read.task = tasks.get(edge.task_id)
        reads.append(read)
    return reads


async def get_blocking_tasks(
    store: EdgeStore, registry: TaskRegistry, task_id: uuid.UUID
) -> list[TaskSummary]:
    tasks = await traversal.blocking_tasks(store, registry, task_id)
    return [TaskSummary.model_validate(t) for t in tasks]


async def get_blocked_tasks(
    store: EdgeStore, registry: TaskRegistry, task_id: uuid.UUID
) -> list[TaskSummary]:
    tasks = await traversal.blocked_tasks(store, registry, task_id)
    return [TaskSummary.model_validate(t) for t in tasks]


async def get_dependency_chain(
    store: EdgeStore,
    task_id: uuid.UUID,
    max_depth: Optional[int] = None,
) -> list[uuid.UUID]:
    return await traversal.dependency_chain(
        store, task_id, traversal.DEFAULT_MAX_DEPTH if max_depth is None else max_depth
    )


async def check_integrity(store: EdgeStore) -> IntegrityReport:
    cycle = await traversal.find_cycle(store)
    return IntegrityReport(acyclic=cycle is None, cycle=cycle or [])
