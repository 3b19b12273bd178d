"""Chain-of-thought style reasoning loop with confidence convergence."""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from .scoring import PhaseTableScorer, Scorer, ThinkingPhase, resolve_score

logger = logging.getLogger(__name__)


class ThinkingDepth(str, Enum):
    QUICK = "quick"
    STANDARD = "standard"
    DEEP = "deep"
    ULTRATHINK = "ultrathink"


class ChainOutcome(str, Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass(frozen=True)
class ThinkingConfig:
    depth: ThinkingDepth
    max_iterations: int
    confidence_threshold: float
    enable_self_reflection: bool
    timeout_ms: int

    @classmethod
    def preset(cls, depth: Union[ThinkingDepth, str]) -> "ThinkingConfig":
        return THINKING_PRESETS[ThinkingDepth(depth)]


THINKING_PRESETS: Dict[ThinkingDepth, ThinkingConfig] = {
    ThinkingDepth.QUICK: ThinkingConfig(ThinkingDepth.QUICK, 1, 0.7, False, 5000),
    ThinkingDepth.STANDARD: ThinkingConfig(ThinkingDepth.STANDARD, 3, 0.8, True, 15000),
    ThinkingDepth.DEEP: ThinkingConfig(ThinkingDepth.DEEP, 5, 0.85, True, 30000),
    ThinkingDepth.ULTRATHINK: ThinkingConfig(ThinkingDepth.ULTRATHINK, 10, 0.95, True, 60000),
}

_THOUGHTS = {
    ThinkingPhase.OBSERVATION: "Observing the current state of the goal and its context",
    ThinkingPhase.ANALYSIS: "Analysing patterns and likely root causes",
    ThinkingPhase.HYPOTHESIS: "Formulating improvement hypotheses from the analysis",
    ThinkingPhase.PLANNING: "Drafting a prioritised execution plan",
    ThinkingPhase.EXECUTION: "Executing the planned improvements",
    ThinkingPhase.EVALUATION: "Evaluating the plan against the success criteria",
    ThinkingPhase.REFINEMENT: "Refining the approach from the evaluation feedback",
    ThinkingPhase.CONCLUSION: "Synthesising findings and recommendations",
}


@dataclass
class ThinkingStep:
    phase: ThinkingPhase
    thought: str
    confidence: float
    duration_ms: float
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    artifacts: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class ReasoningChain:
    goal: str
    steps: List[ThinkingStep]
    final_confidence: float
    iterations: int
    outcome: ChainOutcome
    total_duration_ms: float
    id: str = field(default_factory=lambda: f"chain_{uuid.uuid4().hex[:12]}")

    @property
    def confidences(self) -> List[float]:
        return [step.confidence for step in self.steps]


class PhaseTimeoutError(RuntimeError):
    def __init__(self, phase: ThinkingPhase, timeout_ms: int) -> None:
        self.phase = phase
        super().__init__(f"Phase {phase.value} exceeded {timeout_ms}ms")


class ReasoningEngine:
    """Runs observation → analysis → hypothesis → planning rounds until confident.

    With self-reflection each round ends in an evaluation (and a refinement
    when still below threshold) whose confidence decides convergence;
    otherwise the planning confidence does. A conclusion step closes the
    chain. Only scorer calls are bounded by ``timeout_ms``; a timed-out phase
    ends the chain with a ``failed`` outcome.
    """

    def __init__(
        self,
        config: Union[ThinkingConfig, ThinkingDepth, str] = ThinkingDepth.DEEP,
        scorer: Optional[Scorer] = None,
    ) -> None:
        self.config = config if isinstance(config, ThinkingConfig) else ThinkingConfig.preset(config)
        self.scorer: Scorer = scorer or PhaseTableScorer()
        self.chains: Dict[str, ReasoningChain] = {}

    async def execute_chain(self, goal: str, context: Optional[Mapping[str, Any]] = None) -> ReasoningChain:
        context = dict(context or {})
        steps: List[ThinkingStep] = []
        started = time.perf_counter()
        iteration = 0
        confidence = 0.0
        outcome: Optional[ChainOutcome] = None
        threshold = self.config.confidence_threshold
        logger.info("Reasoning about %r (depth=%s)", goal, self.config.depth.value)

        try:
            while iteration < self.config.max_iterations and confidence < threshold:
                iteration += 1
                for phase in (
                    ThinkingPhase.OBSERVATION,
                    ThinkingPhase.ANALYSIS,
                    ThinkingPhase.HYPOTHESIS,
                    ThinkingPhase.PLANNING,
                ):
                    step = await self._phase(phase, steps, goal, context)
                confidence = step.confidence
                if self.config.enable_self_reflection:
                    confidence = (await self._phase(ThinkingPhase.EVALUATION, steps, goal, context)).confidence
                    if confidence < threshold:
                        confidence = (await self._phase(ThinkingPhase.REFINEMENT, steps, goal, context)).confidence
                logger.debug("Iteration %d confidence %.3f", iteration, confidence)
            await self._phase(ThinkingPhase.CONCLUSION, steps, goal, context)
        except PhaseTimeoutError as exc:
            logger.warning("Reasoning chain stopped: %s", exc)
            steps.append(
                ThinkingStep(
                    phase=exc.phase,
                    thought=str(exc),
                    confidence=0.0,
                    duration_ms=float(self.config.timeout_ms),
                )
            )
            outcome = ChainOutcome.FAILED

        if outcome is None:
            outcome = ChainOutcome.SUCCESS if confidence >= threshold else ChainOutcome.PARTIAL
        chain = ReasoningChain(
            goal=goal,
            steps=steps,
            final_confidence=confidence,
            iterations=iteration,
            outcome=outcome,
            total_duration_ms=(time.perf_counter() - started) * 1000,
        )
        self.chains[chain.id] = chain
        return chain

    async def _phase(
        self, phase: ThinkingPhase, steps: List[ThinkingStep], goal: str, context: Dict[str, Any]
    ) -> ThinkingStep:
        started = time.perf_counter()
        previous = [step.confidence for step in steps]
        phase_context = {**context, "goal": goal}
        try:
            confidence = await resolve_score(
                self.scorer, phase, previous, phase_context, timeout=self.config.timeout_ms / 1000
            )
        except asyncio.TimeoutError as exc:
            raise PhaseTimeoutError(phase, self.config.timeout_ms) from exc
        step = ThinkingStep(
            phase=phase,
            thought=_THOUGHTS[phase],
            confidence=confidence,
            duration_ms=(time.perf_counter() - started) * 1000,
        )
        if phase is ThinkingPhase.PLANNING:
            step.artifacts.append({"type": "recommendation", "content": f"Improvement plan for: {goal}"})
        steps.append(step)
        return step
