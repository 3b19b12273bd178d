"""Built-in handlers for demos, dry configurations and read-only scans."""

from __future__ import annotations

import functools
import logging
import pathlib
import re
import threading
from collections import Counter
from typing import Dict, List

from ..tasks.base import Task, TaskResult
from .base import Handler
from .registry import HandlerRegistry

logger = logging.getLogger(__name__)


class NoopHandler(Handler):
    """Completes every task without doing anything."""

    def run(self, task: Task) -> TaskResult:
        return TaskResult(success=True, message=f"{task.name}: nothing to do")


class StaticResultHandler(Handler):
    """Returns a configured outcome, optionally failing the first attempts.

    ``succeed_after`` counts attempts per task id, which makes it handy for
    exercising retry loops: with ``succeed_after: 2`` a task fails twice and
    then reports the configured result.
    """

    def __init__(self, name: str, description: str | None = None, **kwargs: object) -> None:
        super().__init__(name, description, **kwargs)
        self._attempts: Counter[str] = Counter()
        self._lock = threading.Lock()

    def run(self, task: Task) -> TaskResult:
        # parallel batches call sync handlers from worker threads
        with self._lock:
            self._attempts[task.id] += 1
            attempt = self._attempts[task.id]
        succeed_after = int(self.config.get("succeed_after", 0))
        if attempt <= succeed_after:
            return TaskResult(
                success=False,
                message=f"{task.name}: attempt {attempt} of {succeed_after + 1} failed",
                issues_found=int(self.config.get("issues_found", 0)),
            )
        return TaskResult(
            success=bool(self.config.get("success", True)),
            message=str(self.config.get("message", f"{task.name}: done")),
            files_modified=[str(path) for path in self.config.get("files_modified", [])],
            issues_found=int(self.config.get("issues_found", 0)),
            issues_fixed=int(self.config.get("issues_fixed", 0)),
        )


class PatternScanHandler(Handler):
    """Counts regex matches in the task's target files without modifying them."""

    def _patterns(self) -> List[re.Pattern[str]]:
        raw = self.config.get("patterns") or []
        if isinstance(raw, str):
            raw = [raw]
        return [re.compile(pattern) for pattern in raw]

    def run(self, task: Task) -> TaskResult:
        root = pathlib.Path(str(self.config.get("work_dir", ".")))
        patterns = self._patterns()
        if not patterns:
            raise ValueError(f"Handler '{self.name}' needs at least one pattern")

        hits: Dict[str, int] = {}
        for glob in task.target_files:
            for path in sorted(root.glob(glob)):
                if not path.is_file():
                    continue
                try:
                    text = path.read_text(encoding="utf-8", errors="replace")
                except OSError as exc:
                    logger.warning("Cannot read %s: %s", path, exc)
                    continue
                count = sum(len(pattern.findall(text)) for pattern in patterns)
                if count:
                    hits[str(path.relative_to(root))] = count

        found = sum(hits.values())
        max_issues = int(self.config.get("max_issues", 0))
        return TaskResult(
            success=found <= max_issues,
            message=f"{task.name}: {found} matches in {len(hits)} files",
            issues_found=found,
            details={"matches": hits},
        )


def register_builtin_handlers(registry: HandlerRegistry) -> None:
    """Register the built-in handlers under their default names."""

    registry.add("noop", functools.partial(NoopHandler, name="noop"), replace=True)
    registry.add("static", functools.partial(StaticResultHandler, name="static"), replace=True)
