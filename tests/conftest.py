import asyncio
from typing import Dict, List

import pytest

from agentchain.tasks.base import Task, TaskResult


class RecordingExecutor:
    """Async executor that records call order and returns configured results."""

    def __init__(self, results: Dict[str, TaskResult] = None, delay: float = 0.0) -> None:
        self.results = results or {}
        self.delay = delay
        self.calls: List[str] = []

    async def __call__(self, task: Task) -> TaskResult:
        self.calls.append(task.id)
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.results.get(task.id, TaskResult(success=True, message=f"{task.id} done"))


@pytest.fixture
def recording_executor():
    return RecordingExecutor
