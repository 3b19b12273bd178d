"""Task dataclasses used by the runner and the orchestrator."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (62.5 -> 63)."""
    return math.floor(value + 0.5)


class InvalidTransitionError(RuntimeError):
    """Raised when a task is moved to a status its lifecycle does not allow."""


class Priority(str, Enum):
    """Task priority; lower rank runs first."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    Priority.CRITICAL: 0,
    Priority.HIGH: 1,
    Priority.MEDIUM: 2,
    Priority.LOW: 3,
}


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.FAILED, TaskStatus.SKIPPED)


_ALLOWED_TRANSITIONS = {
    TaskStatus.PENDING: {TaskStatus.IN_PROGRESS, TaskStatus.SKIPPED},
    TaskStatus.IN_PROGRESS: {TaskStatus.COMPLETED, TaskStatus.FAILED, TaskStatus.SKIPPED},
}


@dataclass(frozen=True)
class TaskResult:
    """Outcome produced once per task by its executor."""

    success: bool
    message: str = ""
    files_modified: Tuple[str, ...] = ()
    issues_found: int = 0
    issues_fixed: int = 0
    details: Mapping[str, Any] = field(default_factory=dict)
    task_id: Optional[str] = None

    def __post_init__(self) -> None:
        if self.issues_found < 0 or self.issues_fixed < 0:
            raise ValueError("issue counts must be non-negative")
        # files_modified is always stored as a tuple
        object.__setattr__(self, "files_modified", tuple(self.files_modified))

    @property
    def confidence(self) -> int:
        """Percentage of found issues that were fixed (100 when nothing was found)."""
        if self.issues_found == 0:
            return 100
        return round_half_up(100 * self.issues_fixed / self.issues_found)

    @classmethod
    def failure(cls, message: str, *, task_id: Optional[str] = None) -> "TaskResult":
        return cls(success=False, message=message, task_id=task_id)

    @classmethod
    def skipped(cls, message: str, *, task_id: Optional[str] = None) -> "TaskResult":
        return cls(success=False, message=message, task_id=task_id, details={"skipped": True})

    def with_task_id(self, task_id: str) -> "TaskResult":
        if self.task_id == task_id:
            return self
        return TaskResult(
            success=self.success,
            message=self.message,
            files_modified=self.files_modified,
            issues_found=self.issues_found,
            issues_fixed=self.issues_fixed,
            details=self.details,
            task_id=task_id,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task_id": self.task_id,
            "success": self.success,
            "message": self.message,
            "files_modified": list(self.files_modified),
            "issues_found": self.issues_found,
            "issues_fixed": self.issues_fixed,
            "details": dict(self.details),
        }


@dataclass(eq=False)
class Task:
    """A single unit of work owned by an agent or an orchestrator task list.

    ``kind`` selects the handler that performs the work; it defaults to the
    task id so one-off tasks need no extra wiring.
    """

    id: str
    name: str
    priority: Priority = Priority.MEDIUM
    dependencies: Tuple[str, ...] = ()
    kind: Optional[str] = None
    description: str = ""
    target_files: Tuple[str, ...] = ()
    estimated_minutes: int = 0
    status: TaskStatus = field(default=TaskStatus.PENDING, init=False)
    result: Optional[TaskResult] = field(default=None, init=False)

    def __post_init__(self) -> None:
        self.priority = Priority(self.priority)
        self.dependencies = tuple(self.dependencies)
        self.target_files = tuple(self.target_files)
        if self.kind is None:
            self.kind = self.id

    def __repr__(self) -> str:
        return f"Task(id={self.id!r}, priority={self.priority.value}, status={self.status.value})"

    def transition(self, status: TaskStatus) -> None:
        status = TaskStatus(status)
        if status not in _ALLOWED_TRANSITIONS.get(self.status, set()):
            raise InvalidTransitionError(
                f"Task '{self.id}' cannot move from {self.status.value} to {status.value}"
            )
        self.status = status

    def start(self) -> None:
        self.transition(TaskStatus.IN_PROGRESS)

    def finish(self, result: TaskResult) -> None:
        """Record the executor's result and settle on completed/failed."""
        self.transition(TaskStatus.COMPLETED if result.success else TaskStatus.FAILED)
        self.result = result.with_task_id(self.id)

    def skip(self, reason: str) -> TaskResult:
        self.transition(TaskStatus.SKIPPED)
        self.result = TaskResult.skipped(reason, task_id=self.id)
        return self.result

    def reset(self) -> None:
        self.status = TaskStatus.PENDING
        self.result = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal
