"""Configuration and result types for the orchestrator."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from ..config import ConfigError
from ..reasoning.scoring import ThinkingPhase
from ..tasks.base import Task, TaskStatus, round_half_up
from ..tasks.batch import BatchPolicy


class ExecutionMode(str, Enum):
    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"
    ULTRATHINK = "ultrathink"


@dataclass
class OrchestratorConfig:
    """Runtime parameters; the mode is fixed for the lifetime of an orchestrator."""

    mode: ExecutionMode = ExecutionMode.SEQUENTIAL
    max_iterations: int = 10
    target_confidence: int = 95
    parallel_limit: int = 4
    batch_policy: BatchPolicy = BatchPolicy.COLLECT_ALL
    dry_run: bool = False

    def __post_init__(self) -> None:
        try:
            self.mode = ExecutionMode(self.mode)
            self.batch_policy = BatchPolicy(self.batch_policy)
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc
        if self.max_iterations < 1:
            raise ConfigError("max_iterations must be at least 1")
        if self.parallel_limit < 1:
            raise ConfigError("parallel_limit must be at least 1")
        if not 1 <= self.target_confidence <= 100:
            raise ConfigError("target_confidence must be between 1 and 100")


@dataclass
class ChainStep:
    """One entry of the orchestrator's reasoning log."""

    step: ThinkingPhase
    content: str
    confidence: int
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    duration_ms: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step": self.step.label,
            "content": self.content,
            "confidence": self.confidence,
            "timestamp": self.timestamp.isoformat(),
            "duration_ms": self.duration_ms,
        }


@dataclass
class AgentResult:
    """Per-task outcome as seen by the orchestrator."""

    task_id: str
    success: bool
    status: TaskStatus
    issues_found: int = 0
    issues_fixed: int = 0
    files_modified: List[str] = field(default_factory=list)
    reasoning: List[ChainStep] = field(default_factory=list)
    duration_ms: float = 0.0
    confidence: int = 0
    message: str = ""

    @classmethod
    def from_task(cls, task: Task, *, duration_ms: float = 0.0, reasoning: Optional[List[ChainStep]] = None) -> "AgentResult":
        result = task.result
        if result is None:
            raise ValueError(f"Task '{task.id}' has not produced a result")
        return cls(
            task_id=task.id,
            success=task.status is TaskStatus.COMPLETED,
            status=task.status,
            issues_found=result.issues_found,
            issues_fixed=result.issues_fixed,
            files_modified=list(result.files_modified),
            reasoning=list(reasoning or []),
            duration_ms=duration_ms,
            # a skipped task measured nothing
            confidence=0 if task.status is TaskStatus.SKIPPED else result.confidence,
            message=result.message,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task_id": self.task_id,
            "success": self.success,
            "status": self.status.value,
            "issues_found": self.issues_found,
            "issues_fixed": self.issues_fixed,
            "files_modified": list(self.files_modified),
            "reasoning": [step.to_dict() for step in self.reasoning],
            "duration_ms": self.duration_ms,
            "confidence": self.confidence,
            "message": self.message,
        }


@dataclass
class OrchestrationSummary:
    total_tasks: int
    completed: int
    issues_found: int
    issues_fixed: int
    files_modified: int
    overall_confidence: int
    duration: float
    mode: ExecutionMode
    iterations: int = 1
    converged: Optional[bool] = None

    @classmethod
    def from_results(
        cls,
        results: List[AgentResult],
        *,
        duration: float,
        mode: ExecutionMode,
        iterations: int = 1,
        converged: Optional[bool] = None,
    ) -> "OrchestrationSummary":
        files = {path for result in results for path in result.files_modified}
        confidence = round_half_up(sum(r.confidence for r in results) / len(results)) if results else 0
        return cls(
            total_tasks=len(results),
            completed=sum(1 for r in results if r.success),
            issues_found=sum(r.issues_found for r in results),
            issues_fixed=sum(r.issues_fixed for r in results),
            files_modified=len(files),
            overall_confidence=confidence,
            duration=duration,
            mode=mode,
            iterations=iterations,
            converged=converged,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_tasks": self.total_tasks,
            "completed": self.completed,
            "issues_found": self.issues_found,
            "issues_fixed": self.issues_fixed,
            "files_modified": self.files_modified,
            "overall_confidence": self.overall_confidence,
            "duration": self.duration,
            "mode": self.mode.value,
            "iterations": self.iterations,
            "converged": self.converged,
        }


@dataclass
class OrchestrationReport:
    results: List[AgentResult]
    reasoning: List[ChainStep]
    summary: OrchestrationSummary

    @property
    def succeeded(self) -> bool:
        if self.summary.converged is False:
            return False
        return all(result.success for result in self.results)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "results": [result.to_dict() for result in self.results],
            "reasoning": [step.to_dict() for step in self.reasoning],
            "summary": self.summary.to_dict(),
        }
