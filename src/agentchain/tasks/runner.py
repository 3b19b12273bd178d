"""Task runner utilities."""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Optional, Union

from .base import Task, TaskResult, TaskStatus
from .graph import sort_by_priority, unmet_dependencies, validate_dependencies

if TYPE_CHECKING:  # pragma: no cover
    from ..agents.base import Agent

logger = logging.getLogger(__name__)

Executor = Callable[[Task], Union[TaskResult, Awaitable[TaskResult]]]


def is_async_executor(executor: Any) -> bool:
    if inspect.iscoroutinefunction(executor):
        return True
    return inspect.iscoroutinefunction(getattr(executor, "__call__", None))


async def execute_task(executor: Executor, task: Task, *, in_thread: bool = False) -> TaskResult:
    """Invoke ``executor`` for ``task`` and always come back with a TaskResult.

    Exceptions and malformed return values are turned into failed results.
    With ``in_thread`` a synchronous executor runs in a worker thread so that
    it can overlap with other executors on the event loop.
    """
    try:
        if in_thread and not is_async_executor(executor):
            outcome = await asyncio.to_thread(executor, task)
        else:
            outcome = executor(task)
        if inspect.isawaitable(outcome):
            outcome = await outcome
    except Exception as exc:  # executor failures never abort the run
        logger.warning("Executor for task %s raised: %s", task.id, exc, exc_info=True)
        return TaskResult.failure(str(exc) or exc.__class__.__name__, task_id=task.id)
    if not isinstance(outcome, TaskResult):
        return TaskResult.failure(
            f"Executor returned {type(outcome).__name__} instead of TaskResult", task_id=task.id
        )
    return outcome.with_task_id(task.id)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class AgentExecutionResult:
    """Aggregate produced once per runner invocation."""

    agent_id: str
    start_time: datetime
    end_time: datetime
    total_tasks: int = 0
    completed_tasks: int = 0
    failed_tasks: int = 0
    skipped_tasks: int = 0
    task_results: List[TaskResult] = field(default_factory=list)
    summary: str = ""
    error: Optional[str] = None

    @property
    def duration(self) -> timedelta:
        return self.end_time - self.start_time

    @property
    def issues_found(self) -> int:
        return sum(result.issues_found for result in self.task_results)

    @property
    def issues_fixed(self) -> int:
        return sum(result.issues_fixed for result in self.task_results)

    @property
    def files_modified(self) -> List[str]:
        seen: Dict[str, None] = {}
        for result in self.task_results:
            for path in result.files_modified:
                seen.setdefault(path, None)
        return list(seen)

    @classmethod
    def for_failed_agent(cls, agent: "Agent", error: BaseException) -> "AgentExecutionResult":
        now = _now()
        total = len(agent.tasks)
        return cls(
            agent_id=agent.id,
            start_time=now,
            end_time=now,
            total_tasks=total,
            failed_tasks=total,
            summary=f"Agent {agent.id} failed before completing its tasks: {error}",
            error=str(error) or error.__class__.__name__,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "agent_id": self.agent_id,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "duration_ms": round(self.duration.total_seconds() * 1000),
            "total_tasks": self.total_tasks,
            "completed_tasks": self.completed_tasks,
            "failed_tasks": self.failed_tasks,
            "skipped_tasks": self.skipped_tasks,
            "summary": self.summary,
            "error": self.error,
            "task_results": [result.to_dict() for result in self.task_results],
        }


class Runner:
    """Executes one agent's tasks in priority order with dependency gating."""

    def __init__(self) -> None:
        self._results: Dict[str, AgentExecutionResult] = {}

    async def run(self, agent: "Agent") -> AgentExecutionResult:
        tasks = list(agent.tasks)
        for task in tasks:
            task.reset()
        validate_dependencies(tasks)

        lookup = {task.id: task for task in tasks}
        result = AgentExecutionResult(agent_id=agent.id, start_time=_now(), end_time=_now())
        logger.info("Running agent %s (%d tasks)", agent.id, len(tasks))

        for task in sort_by_priority(tasks):
            result.total_tasks += 1
            unmet = unmet_dependencies(task, lookup)
            if unmet:
                logger.info("Skipping %s: unmet dependencies %s", task.id, ", ".join(unmet))
                result.task_results.append(task.skip(f"Unmet dependencies: {', '.join(unmet)}"))
                result.skipped_tasks += 1
                continue

            task.start()
            task.finish(await execute_task(agent.execute, task))
            result.task_results.append(task.result)
            if task.status is TaskStatus.COMPLETED:
                result.completed_tasks += 1
            else:
                result.failed_tasks += 1

        result.end_time = _now()
        result.summary = (
            f"{agent.id}: {result.completed_tasks}/{result.total_tasks} tasks completed, "
            f"{result.failed_tasks} failed, {result.skipped_tasks} skipped"
        )
        logger.info(result.summary)
        self._results[agent.id] = result
        return result

    def results(self) -> Dict[str, AgentExecutionResult]:
        return dict(self._results)
