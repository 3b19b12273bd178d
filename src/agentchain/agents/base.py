"""Agent model: a named, ordered bundle of tasks plus the handlers that run them."""

from __future__ import annotations

from enum import Enum
from typing import Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Union

from ..config import ConfigError
from ..tasks.base import Task, TaskResult
from ..tasks.runner import Executor

ExecutorMap = Mapping[str, Executor]


class AgentCategory(str, Enum):
    CONSOLE_FIX = "console-fix"
    UXUI_IMPROVEMENT = "uxui-improvement"
    PERFORMANCE = "performance"
    ACCESSIBILITY = "accessibility"


class Agent:
    """Owns an ordered task list and dispatches each task to its handler.

    ``executor`` is either a single callable used for every task or a mapping
    from task kind to handler. The mapping is resolved per task once, here, so
    a task without a handler is a construction error rather than a failure
    discovered mid-run.
    """

    def __init__(
        self,
        id: str,
        category: Union[AgentCategory, str],
        tasks: Iterable[Task],
        executor: Union[Executor, ExecutorMap],
        *,
        name: Optional[str] = None,
        description: str = "",
        emoji: str = "",
    ) -> None:
        self.id = id
        self.name = name or id
        self.description = description
        self.emoji = emoji
        try:
            self.category = AgentCategory(category)
        except ValueError as exc:
            raise ConfigError(f"Agent '{id}' has unknown category '{category}'") from exc
        self.tasks: List[Task] = list(tasks)
        self._handlers: Dict[str, Executor] = self._resolve_handlers(executor)

    def _resolve_handlers(self, executor: Union[Executor, ExecutorMap]) -> Dict[str, Executor]:
        seen = set()
        for task in self.tasks:
            if task.id in seen:
                raise ConfigError(f"Agent '{self.id}' declares task '{task.id}' twice")
            seen.add(task.id)

        if isinstance(executor, Mapping):
            missing = sorted({task.kind for task in self.tasks if task.kind not in executor})
            if missing:
                raise ConfigError(f"Agent '{self.id}' has no handler for task kinds: {', '.join(missing)}")
            return {task.id: executor[task.kind] for task in self.tasks}
        if not callable(executor):
            raise ConfigError(f"Agent '{self.id}' executor must be callable or a mapping of handlers")
        return {task.id: executor for task in self.tasks}

    def handler_for(self, task: Task) -> Callable[[Task], object]:
        try:
            return self._handlers[task.id]
        except KeyError as exc:
            raise KeyError(f"Task '{task.id}' does not belong to agent '{self.id}'") from exc

    def execute(self, task: Task) -> Union[TaskResult, Awaitable[TaskResult]]:
        return self.handler_for(task)(task)

    def __repr__(self) -> str:
        return f"Agent(id={self.id!r}, category={self.category.value}, tasks={len(self.tasks)})"
