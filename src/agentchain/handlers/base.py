"""Base classes for task handlers."""

from __future__ import annotations

from typing import Any

from ..tasks.base import Task, TaskResult


class Handler:
    """Base handler class.

    A handler performs the real work of a task and reports it as a
    ``TaskResult``. Instances are callable so they can be used directly as
    executors; subclasses may implement ``run`` as a coroutine.
    """

    name: str
    description: str

    def __init__(self, name: str, description: str | None = None, **kwargs: Any) -> None:
        self.name = name
        self.description = description or self.__class__.__doc__ or ""
        self.config = kwargs

    def run(self, task: Task) -> TaskResult:  # pragma: no cover - abstract
        raise NotImplementedError

    def __call__(self, task: Task) -> Any:
        return self.run(task)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"
