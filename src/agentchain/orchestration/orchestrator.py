"""Multi-mode orchestration over a flat task list."""

from __future__ import annotations

import logging
import time
from typing import Iterable, List, Optional, Sequence, Tuple

from ..config import ConfigError
from ..reasoning.scoring import ORCHESTRATOR_BASELINE, PhaseTableScorer, Scorer, ThinkingPhase, resolve_score
from ..tasks.base import Task, round_half_up
from ..tasks.batch import BatchFailedError, run_batch
from ..tasks.graph import chunk, partition_by_dependencies, sort_by_priority, unmet_dependencies, validate_dependencies
from ..tasks.runner import Executor, execute_task
from .base import (
    AgentResult,
    ChainStep,
    ExecutionMode,
    OrchestrationReport,
    OrchestrationSummary,
    OrchestratorConfig,
)

logger = logging.getLogger(__name__)


class Orchestrator:
    """Runs a flat task list in sequential, parallel-batched or ultrathink mode.

    Sequential runs tasks one at a time in priority order. Parallel runs the
    dependency-free tasks in join-barrier batches of ``parallel_limit`` and
    then the dependent tasks one by one in declaration order. Ultrathink
    repeats the run, narrowing each new iteration to the tasks that did not
    succeed, until ``target_confidence`` or ``max_iterations`` is reached.

    Every mode gates on dependencies: a task whose dependencies are not
    completed when its turn comes is skipped and its executor never called.
    """

    def __init__(
        self,
        tasks: Iterable[Task],
        executor: Executor,
        config: Optional[OrchestratorConfig] = None,
        *,
        scorer: Optional[Scorer] = None,
    ) -> None:
        self.tasks: List[Task] = list(tasks)
        self.executor = executor
        self.config = config or OrchestratorConfig()
        self.scorer: Scorer = scorer or PhaseTableScorer(ORCHESTRATOR_BASELINE, blend_history=False)
        self.reasoning: List[ChainStep] = []
        self.results: List[AgentResult] = []
        self._lookup = {task.id: task for task in self.tasks}
        if len(self._lookup) != len(self.tasks):
            raise ConfigError("Orchestrator task ids must be unique")
        validate_dependencies(self.tasks)

    @property
    def mode(self) -> ExecutionMode:
        return self.config.mode

    def plan(self) -> List[List[str]]:
        """Execution stages of the first pass; tasks inside a stage run together."""
        if self.mode is ExecutionMode.PARALLEL:
            independent, dependent = partition_by_dependencies(self.tasks)
            stages = [[task.id for task in batch] for batch in chunk(independent, self.config.parallel_limit)]
            return stages + [[task.id] for task in dependent]
        return [[task.id] for task in sort_by_priority(self.tasks)]

    async def run(self) -> OrchestrationReport:
        started = time.perf_counter()
        self.reasoning = []
        for task in self.tasks:
            task.reset()
        logger.info("Orchestrating %d tasks (mode=%s)", len(self.tasks), self.mode.value)
        await self._record(
            ThinkingPhase.OBSERVATION,
            f"{len(self.tasks)} tasks discovered; mode {self.mode.value}, "
            f"target confidence {self.config.target_confidence}%",
        )

        iterations = 1
        converged: Optional[bool] = None
        if self.config.dry_run:
            results = await self._dry_run()
        elif self.mode is ExecutionMode.PARALLEL:
            results = await self._run_parallel()
        elif self.mode is ExecutionMode.ULTRATHINK:
            results, iterations, converged = await self._run_ultrathink()
        else:
            results = await self._run_sequential()

        self.results = results
        summary = OrchestrationSummary.from_results(
            results,
            duration=round((time.perf_counter() - started) * 1000, 3),
            mode=self.mode,
            iterations=iterations,
            converged=converged,
        )
        await self._record(
            ThinkingPhase.CONCLUSION,
            f"Run finished: {summary.completed}/{summary.total_tasks} tasks, "
            f"{summary.issues_fixed}/{summary.issues_found} issues fixed, "
            f"{summary.files_modified} files modified, confidence {summary.overall_confidence}%",
            measured=summary.overall_confidence,
        )
        return OrchestrationReport(results=results, reasoning=list(self.reasoning), summary=summary)

    async def _run_sequential(self) -> List[AgentResult]:
        await self._record(ThinkingPhase.PLANNING, "Sequential mode: tasks run one at a time by priority")
        return [await self._execute(task) for task in sort_by_priority(self.tasks)]

    async def _run_parallel(self) -> List[AgentResult]:
        limit = self.config.parallel_limit
        await self._record(ThinkingPhase.PLANNING, f"Parallel mode: up to {limit} independent tasks per batch")
        independent, dependent = partition_by_dependencies(self.tasks)
        batches = chunk(independent, limit)
        results: List[AgentResult] = []

        for index, batch in enumerate(batches, start=1):
            logger.info("Batch %d/%d: %s", index, len(batches), ", ".join(task.id for task in batch))
            try:
                outcomes = await run_batch(
                    [self._execute(task, in_thread=True) for task in batch],
                    policy=self.config.batch_policy,
                    is_failure=lambda outcome: not outcome.success,
                )
            except BatchFailedError as exc:
                results.extend(self._settled(exc.outcomes))
                halted = batch[exc.failed_index].id
                remaining = [task for later in batches[index:] for task in later] + dependent
                logger.warning("Task %s failed; %d remaining tasks not started", halted, len(remaining))
                await self._record(
                    ThinkingPhase.REFINEMENT,
                    f"Fail-fast: {halted} failed in batch {index}; {len(remaining)} tasks not started",
                )
                for task in remaining:
                    task.skip(f"Not started: batch {index} failed")
                    results.append(AgentResult.from_task(task))
                return results
            results.extend(self._settled(outcomes))

        for task in dependent:
            results.append(await self._execute(task))
        return results

    async def _run_ultrathink(self) -> Tuple[List[AgentResult], int, bool]:
        await self._record(ThinkingPhase.PLANNING, "Ultrathink mode: iterate and retry failures until confident")
        target = self.config.target_confidence
        current = sort_by_priority(self.tasks)
        iteration = 0
        overall = 0
        results: List[AgentResult] = []

        while current and iteration < self.config.max_iterations and overall < target:
            iteration += 1
            logger.info("Ultrathink iteration %d/%d (%d tasks)", iteration, self.config.max_iterations, len(current))
            for task in current:
                task.reset()
            results = [await self._execute(task) for task in current]

            success_rate = sum(1 for r in results if r.success) / len(results)
            avg_confidence = sum(r.confidence for r in results) / len(results)
            overall = round_half_up(avg_confidence * success_rate)
            await self._record(
                ThinkingPhase.EVALUATION,
                f"Iteration {iteration}: success rate {success_rate * 100:.1f}%, confidence {overall}%",
                measured=overall,
            )

            if overall < target:
                current = [task for task, result in zip(current, results) if not result.success]
                await self._record(ThinkingPhase.REFINEMENT, f"{len(current)} tasks queued for retry")

        converged = overall >= target if iteration else True
        if not converged:
            logger.warning("Ultrathink stopped at %d%% confidence (target %d%%)", overall, target)
        return results, iteration, converged

    async def _dry_run(self) -> List[AgentResult]:
        stages = self.plan()
        await self._record(
            ThinkingPhase.PLANNING,
            "Dry run, executors not invoked. Stages: " + " | ".join(", ".join(stage) for stage in stages),
        )
        results = []
        for stage in stages:
            for task_id in stage:
                task = self._lookup[task_id]
                task.skip("Dry run: executor not invoked")
                results.append(AgentResult.from_task(task))
        return results

    async def _execute(self, task: Task, *, in_thread: bool = False) -> AgentResult:
        unmet = unmet_dependencies(task, self._lookup)
        if unmet:
            task.skip(f"Unmet dependencies: {', '.join(unmet)}")
            logger.info("Skipping %s: unmet dependencies %s", task.id, ", ".join(unmet))
            return AgentResult.from_task(task)

        started = time.perf_counter()
        opening = ChainStep(
            step=ThinkingPhase.OBSERVATION,
            content=f"Starting {task.name}; targets: {', '.join(task.target_files) or 'none'}",
            confidence=await self._confidence(ThinkingPhase.OBSERVATION),
        )
        task.start()
        task.finish(await execute_task(self.executor, task, in_thread=in_thread))
        result = task.result
        closing = ChainStep(
            step=ThinkingPhase.CONCLUSION,
            content=f"{result.message or task.status.value}: {result.issues_found} issues found, "
            f"{result.issues_fixed} fixed",
            confidence=result.confidence,
        )
        return AgentResult.from_task(
            task, duration_ms=(time.perf_counter() - started) * 1000, reasoning=[opening, closing]
        )

    @staticmethod
    def _settled(outcomes: Sequence[object]) -> List[AgentResult]:
        for outcome in outcomes:
            # _execute converts executor errors itself; anything else is a bug
            if isinstance(outcome, BaseException):
                raise outcome
        return list(outcomes)  # type: ignore[arg-type]

    async def _confidence(self, phase: ThinkingPhase, measured: Optional[int] = None) -> int:
        previous = [step.confidence / 100 for step in self.reasoning]
        context = {} if measured is None else {"confidence": measured / 100}
        return round_half_up(100 * await resolve_score(self.scorer, phase, previous, context))

    async def _record(self, phase: ThinkingPhase, content: str, *, measured: Optional[int] = None) -> ChainStep:
        step = ChainStep(step=phase, content=content, confidence=await self._confidence(phase, measured))
        self.reasoning.append(step)
        logger.info("[%s] (%d%%) %s", phase.label, step.confidence, content)
        return step
