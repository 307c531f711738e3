"""
Error taxonomy for the dependency engine.

Services raise these; the API layer maps ``status_code``/``detail`` onto the
HTTP response. None of them are retried.
"""

from __future__ import annotations

import uuid


class DependencyError(Exception):
    status_code: int = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class TaskNotFound(DependencyError):
    status_code = 404

    def __init__(self, task_id: uuid.UUID):
        super().__init__(f"Task with ID {task_id} not found")
        self.task_id = task_id


class SelfDependency(DependencyError):
    status_code = 409

    def __init__(self, task_id: uuid.UUID):
        super().__init__("A task cannot depend on itself")
        self.task_id = task_id


class DuplicateDependency(DependencyError):
    status_code = 409

    def __init__(self, task_id: uuid.UUID, dependent_task_id: uuid.UUID):
        super().__init__("Dependency already exists")
        self.task_id = task_id
        self.dependent_task_id = dependent_task_id


class CircularDependency(DependencyError):
    status_code = 409

    def __init__(self, task_id: uuid.UUID, dependent_task_id: uuid.UUID):
        super().__init__("Adding this dependency would create a circular dependency")
        self.task_id = task_id
        self.dependent_task_id = dependent_task_id


class DependencyNotFound(DependencyError):
    status_code = 404

    def __init__(self, task_id: uuid.UUID, dependent_task_id: uuid.UUID):
        super().__init__("Dependency not found")
        self.task_id = task_id
        self.dependent_task_id = dependent_task_id


class ChainTooDeep(DependencyError):
    """Traversal hit the depth ceiling; the stored graph is probably corrupt."""

    status_code = 422

    def __init__(self, task_id: uuid.UUID, max_depth: int):
        super().__init__(
            f"Dependency chain of task {task_id} exceeds {max_depth} levels "
            "- possible circular dependency"
        )
        self.task_id = task_id
        self.max_depth = max_depth
