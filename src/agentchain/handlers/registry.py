"""Named handlers and the routing of task kinds to them."""

from __future__ import annotations

import functools
import inspect
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union

from ..config import ConfigError, HandlerSpec, instantiate_from_path
from ..tasks.base import Task
from .base import Handler

HandlerBuilder = Callable[[], Handler]


class HandlerRegistry:
    """Handlers by name, built on first use and checked as they are built.

    A handler is added either ready-made or as a zero-argument builder.
    Config specs become builders, so a project can declare handlers that no
    task ends up using. ``route`` turns an agent's tasks into the
    kind -> handler map that ``Agent`` dispatches on.
    """

    def __init__(self) -> None:
        self._builders: Dict[str, HandlerBuilder] = {}
        self._built: Dict[str, Handler] = {}

    def add(self, name: str, source: Union[Handler, HandlerBuilder], *, replace: bool = False) -> None:
        if name in self._builders and not replace:
            raise ValueError(f"Handler '{name}' is already registered")
        if isinstance(source, Handler):
            self._builders[name] = functools.partial(_ready, source)
        elif callable(source):
            self._builders[name] = source
        else:
            raise TypeError(f"Handler '{name}' must be a Handler or a callable building one")
        self._built.pop(name, None)

    def declare(self, specs: Iterable[HandlerSpec]) -> None:
        """Add config-declared handlers; they shadow same-named built-ins."""
        for spec in specs:
            builder = functools.partial(instantiate_from_path, spec.type, name=spec.name, **spec.args)
            self.add(spec.name, builder, replace=True)

    def resolve(self, name: str) -> Handler:
        handler = self._built.get(name)
        if handler is None:
            try:
                builder = self._builders[name]
            except KeyError as exc:
                raise ConfigError(f"Unknown handler '{name}'") from exc
            handler = _checked(name, builder())
            self._built[name] = handler
        return handler

    def route(
        self, owner: str, assignments: Iterable[Tuple[Task, Optional[str]]], default: Optional[str] = None
    ) -> Dict[str, Handler]:
        """Map each task kind of ``owner`` to its handler.

        ``assignments`` pairs every task with the handler named for it, or
        ``None`` to fall back to ``default``. A kind may map to one handler
        only.
        """
        routes: Dict[str, Handler] = {}
        for task, name in assignments:
            name = name or default
            if not name:
                raise ConfigError(f"Task '{task.id}' of agent '{owner}' has no handler")
            handler = self.resolve(name)
            if routes.setdefault(task.kind, handler) is not handler:
                raise ConfigError(f"Agent '{owner}' maps task kind '{task.kind}' to more than one handler")
        return routes

    def names(self) -> List[str]:
        return sorted(self._builders)

    def __contains__(self, name: object) -> bool:
        return name in self._builders


def _ready(handler: Handler) -> Handler:
    return handler


def _checked(name: str, handler: object) -> Handler:
    if not isinstance(handler, Handler):
        raise ConfigError(f"Handler '{name}' must inherit Handler, got {type(handler).__name__}")
    try:
        inspect.signature(handler.run).bind(None)
    except TypeError as exc:
        raise ConfigError(f"Handler '{name}' must define run(task)") from exc
    return handler
