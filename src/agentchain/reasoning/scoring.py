"""Pluggable confidence scoring for reasoning phases."""

from __future__ import annotations

import asyncio
import inspect
from enum import Enum
from typing import Any, Awaitable, Dict, Mapping, Optional, Protocol, Sequence, Union


class ThinkingPhase(str, Enum):
    OBSERVATION = "observation"
    ANALYSIS = "analysis"
    HYPOTHESIS = "hypothesis"
    PLANNING = "planning"
    EXECUTION = "execution"
    EVALUATION = "evaluation"
    REFINEMENT = "refinement"
    CONCLUSION = "conclusion"

    @property
    def label(self) -> str:
        return self.name


class Scorer(Protocol):
    """Interface for phase confidence scoring.

    ``previous`` holds the confidences already produced in the chain, oldest
    first. ``context`` carries whatever the caller measured; a ``confidence``
    key in [0, 1] is a measurement the scorer should prefer. Implementations
    return a value in [0, 1] and may be coroutines.
    """

    def score(
        self, phase: ThinkingPhase, previous: Sequence[float], context: Mapping[str, Any]
    ) -> Union[float, Awaitable[float]]:  # pragma: no cover - interface
        ...


CHAIN_BASELINE: Dict[ThinkingPhase, float] = {
    ThinkingPhase.OBSERVATION: 0.6,
    ThinkingPhase.ANALYSIS: 0.65,
    ThinkingPhase.HYPOTHESIS: 0.7,
    ThinkingPhase.PLANNING: 0.75,
    ThinkingPhase.EXECUTION: 0.8,
    ThinkingPhase.EVALUATION: 0.85,
    ThinkingPhase.REFINEMENT: 0.9,
    ThinkingPhase.CONCLUSION: 0.95,
}

ORCHESTRATOR_BASELINE: Dict[ThinkingPhase, float] = {
    ThinkingPhase.OBSERVATION: 0.9,
    ThinkingPhase.ANALYSIS: 0.85,
    ThinkingPhase.PLANNING: 0.88,
    ThinkingPhase.REFINEMENT: 0.75,
}


class PhaseTableScorer:
    """Scores each phase from a fixed table.

    With ``blend_history`` the table value is averaged with the mean of the
    confidences produced so far, which is how the reasoning chain converges.
    A measured ``confidence`` in the context always wins over the table.
    """

    def __init__(
        self,
        table: Optional[Mapping[ThinkingPhase, float]] = None,
        *,
        blend_history: bool = True,
        default: float = 0.5,
    ) -> None:
        self.table = dict(CHAIN_BASELINE if table is None else table)
        self.blend_history = blend_history
        self.default = default

    def score(self, phase: ThinkingPhase, previous: Sequence[float], context: Mapping[str, Any]) -> float:
        measured = context.get("confidence")
        if measured is not None:
            return clamp(float(measured))
        base = self.table.get(phase, self.default)
        if self.blend_history and previous:
            return clamp((base + sum(previous) / len(previous)) / 2)
        return clamp(base)


def clamp(value: float) -> float:
    return min(1.0, max(0.0, value))


async def resolve_score(
    scorer: Scorer,
    phase: ThinkingPhase,
    previous: Sequence[float],
    context: Mapping[str, Any],
    *,
    timeout: Optional[float] = None,
) -> float:
    """Call ``scorer`` and await it if needed; ``timeout`` bounds async scorers only."""
    outcome = scorer.score(phase, previous, context)
    if inspect.isawaitable(outcome):
        outcome = await asyncio.wait_for(outcome, timeout) if timeout else await outcome
    return clamp(float(outcome))
