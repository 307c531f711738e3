"""
Read-only graph queries over the edge store.

Nothing here assumes the stored graph is acyclic: rows written before the
validator existed may already contain cycles. Every walk keeps a visited set,
and the chain walk also enforces a hard depth ceiling and reports hitting it
as ChainTooDeep instead of returning a truncated chain.

Walks are iterative with an explicit stack, so deep graphs cannot hit the
interpreter's recursion limit.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog

from depgraph.models.task import Task
from depgraph.services.edge_store import EdgeStore
from depgraph.services.errors import ChainTooDeep
from depgraph.services.registry import TaskRegistry

log = structlog.get_logger()

DEFAULT_MAX_DEPTH = 100


async def dependency_chain(
    store: EdgeStore,
    task_id: uuid.UUID,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> list[uuid.UUID]:
    """Every task ``task_id`` transitively depends on, in DFS pre-order.

    Each task appears once, at its first visit; the start task is excluded.
    Neighbours are walked in the store's listing order, so the result is
    stable for a fixed graph. The start task is depth 0; reaching depth
    ``max_depth`` raises ChainTooDeep.
    """
    visited: set[uuid.UUID] = set()
    chain: list[uuid.UUID] = []
    stack: list[tuple[uuid.UUID, int]] = [(task_id, 0)]

    while stack:
        current, depth = stack.pop()
        if current in visited:
            continue
        if depth >= max_depth:
            log.warning(
                "dependency.chain_too_deep",
                task_id=str(task_id),
                at_task_id=str(current),
                max_depth=max_depth,
            )
            raise ChainTooDeep(task_id, max_depth)

        visited.add(current)
        if current != task_id:
            chain.append(current)

        edges = await store.list_outgoing(current)
        # Reversed so the first listed neighbour is popped first.
        for edge in reversed(edges):
            if edge.dependent_task_id not in visited:
                stack.append((edge.dependent_task_id, depth + 1))

    return chain


async def blocking_tasks(
    store: EdgeStore, registry: TaskRegistry, task_id: uuid.UUID
) -> list[Task]:
    """Tasks ``task_id`` directly depends on (one hop)."""
    edges = await store.list_outgoing(task_id)
    return await registry.get_tasks(e.dependent_task_id for e in edges)


async def blocked_tasks(
    store: EdgeStore, registry: TaskRegistry, task_id: uuid.UUID
) -> list[Task]:
    """Tasks that directly depend on ``task_id`` (one hop)."""
    edges = await store.list_incoming(task_id)
    return await registry.get_tasks(e.task_id for e in edges)


# ---------------------------------------------------------------------------
# Integrity audit
# ---------------------------------------------------------------------------

_IN_PROGRESS = 1
_DONE = 2


async def find_cycle(store: EdgeStore) -> Optional[list[uuid.UUID]]:
    """Return one directed cycle in the stored graph, or None if it is a DAG.

    The cycle is reported as a closed path, e.g. ``[a, b, c, a]``. Nodes are
    explored in order of first appearance in the edge listing.
    """
    adj: dict[uuid.UUID, list[uuid.UUID]] = {}
    for edge in await store.list_all():
        adj.setdefault(edge.task_id, []).append(edge.dependent_task_id)
        adj.setdefault(edge.dependent_task_id, [])

    state: dict[uuid.UUID, int] = {}
    for root in adj:
        if root in state:
            continue
        state[root] = _IN_PROGRESS
        path = [root]
        iters = [iter(adj[root])]
        while iters:
            nxt = next(iters[-1], None)
            if nxt is None:
                state[path.pop()] = _DONE
                iters.pop()
                continue
            seen = state.get(nxt)
            if seen == _IN_PROGRESS:
                cycle = path[path.index(nxt):] + [nxt]
                log.warning("dependency.cycle_detected", cycle=[str(t) for t in cycle])
                return cycle
            if seen is None:
                state[nxt] = _IN_PROGRESS
                path.append(nxt)
                iters.append(iter(adj[nxt]))
    return None
