"""Ordering and dependency helpers shared by the runner and the orchestrator."""

from __future__ import annotations

import logging
from collections import deque
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

from ..config import ConfigError
from .base import Task, TaskStatus

logger = logging.getLogger(__name__)


class DependencyCycleError(ConfigError):
    """Raised when task dependencies form a cycle and could never be satisfied."""

    def __init__(self, cycle: Sequence[str]) -> None:
        self.cycle = list(cycle)
        super().__init__(f"Dependency cycle detected: {' -> '.join(self.cycle)}")


def sort_by_priority(tasks: Iterable[Task]) -> List[Task]:
    # sorted() is stable, so equal priorities keep declaration order
    return sorted(tasks, key=lambda task: task.priority.rank)


def partition_by_dependencies(tasks: Iterable[Task]) -> Tuple[List[Task], List[Task]]:
    """Split tasks into (independent, dependent), each in declaration order."""
    independent: List[Task] = []
    dependent: List[Task] = []
    for task in tasks:
        (dependent if task.dependencies else independent).append(task)
    return independent, dependent


def chunk(tasks: Sequence[Task], size: int) -> List[List[Task]]:
    if size < 1:
        raise ValueError("batch size must be at least 1")
    return [list(tasks[i : i + size]) for i in range(0, len(tasks), size)]


def unmet_dependencies(task: Task, lookup: Mapping[str, Task]) -> List[str]:
    """Return the dependency ids of ``task`` that are not completed."""
    unmet: List[str] = []
    for dep_id in task.dependencies:
        dep = lookup.get(dep_id)
        if dep is None:
            logger.warning("Task %s depends on unknown task %s", task.id, dep_id)
            unmet.append(dep_id)
        elif dep.status is not TaskStatus.COMPLETED:
            unmet.append(dep_id)
    return unmet


def find_cycle(tasks: Sequence[Task]) -> List[str]:
    """Return one dependency cycle as a list of ids, or an empty list.

    Kahn's algorithm peels off every task whose known dependencies are
    resolvable; whatever remains sits on (or behind) a cycle, which is then
    walked to report a concrete loop. Unknown dependency ids are ignored here.
    """
    ids = {task.id for task in tasks}
    edges: Dict[str, List[str]] = {task.id: [d for d in task.dependencies if d in ids] for task in tasks}
    indegree = {task_id: len(deps) for task_id, deps in edges.items()}
    dependents: Dict[str, List[str]] = {task_id: [] for task_id in edges}
    for task_id, deps in edges.items():
        for dep in deps:
            dependents[dep].append(task_id)

    ready = deque(task_id for task_id, degree in indegree.items() if degree == 0)
    while ready:
        current = ready.popleft()
        for follower in dependents[current]:
            indegree[follower] -= 1
            if indegree[follower] == 0:
                ready.append(follower)

    remaining = [task.id for task in tasks if indegree[task.id] > 0]
    if not remaining:
        return []

    # Every remaining node has a dependency that is also remaining.
    seen: Dict[str, int] = {}
    path: List[str] = []
    current = remaining[0]
    while current not in seen:
        seen[current] = len(path)
        path.append(current)
        current = next(dep for dep in edges[current] if indegree[dep] > 0)
    return path[seen[current] :] + [current]


def validate_dependencies(tasks: Sequence[Task]) -> None:
    cycle = find_cycle(tasks)
    if cycle:
        raise DependencyCycleError(cycle)

