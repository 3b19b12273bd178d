"""Task primitives."""

from .base import InvalidTransitionError, Priority, Task, TaskResult, TaskStatus
from .batch import BatchFailedError, BatchPolicy, run_batch
from .graph import DependencyCycleError
from .runner import AgentExecutionResult, Executor, Runner, execute_task

__all__ = [
    "AgentExecutionResult",
    "BatchFailedError",
    "BatchPolicy",
    "DependencyCycleError",
    "Executor",
    "InvalidTransitionError",
    "Priority",
    "Runner",
    "Task",
    "TaskResult",
    "TaskStatus",
    "execute_task",
    "run_batch",
]
