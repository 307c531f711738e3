"""
Cycle-safe insertion validator.

Adding edge (A, B), "A depends on B", keeps the graph acyclic iff B cannot
already reach A by following existing edges forward. Checks run cheapest
first and stop at the first failure:

    self-loop -> duplicate -> reachability
"""

from __future__ import annotations

import uuid
from enum import Enum

import structlog

from depgraph.services.edge_store import EdgeStore

log = structlog.get_logger()


class InsertVerdict(str, Enum):
    OK = "ok"
    SELF_LOOP = "self_loop"
    DUPLICATE = "duplicate"
    WOULD_CREATE_CYCLE = "would_create_cycle"


async def has_path(store: EdgeStore, from_id: uuid.UUID, to_id: uuid.UUID) -> bool:
    """Iterative DFS: can ``from_id`` reach ``to_id`` over zero or more edges?

    The visited set keeps this terminating on graphs that are already cyclic.
    There is no depth limit; the answer must be exact.
    """
    visited: set[uuid.UUID] = set()
    stack = [from_id]
    while stack:
        current = stack.pop()
        if current == to_id:
            return True
        if current in visited:
            continue
        visited.add(current)
        edges = await store.list_outgoing(current)
        stack.extend(
            e.dependent_task_id for e in reversed(edges) if e.dependent_task_id not in visited
        )
    return False


async def can_insert(
    store: EdgeStore, task_id: uuid.UUID, dependent_task_id: uuid.UUID
) -> InsertVerdict:
    if task_id == dependent_task_id:
        return InsertVerdict.SELF_LOOP

    if await store.find_edge(task_id, dependent_task_id) is not None:
        return InsertVerdict.DUPLICATE

    if await has_path(store, dependent_task_id, task_id):
        log.info(
            "dependency.cycle_rejected",
            task_id=str(task_id),
            dependent_task_id=str(dependent_task_id),
        )
        return InsertVerdict.WOULD_CREATE_CYCLE

    return InsertVerdict.OK
