"""Evaluator-optimizer loop: score an input/output pair and propose improvements.

The loop is independent of tasks and agents. Each criterion measures the
pair and is compared against its target; the weighted sum is the score and
every missed target yields an improvement suggestion. Repeated calls on the
same optimizer track the score trend.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from ..config import ConfigError

logger = logging.getLogger(__name__)

Measure = Callable[[str, str], float]
Metric = Callable[[str, str, str], float]

DEFAULT_TARGET = 80.0
DEFAULT_PASS_SCORE = 80.0
CRITICAL_RATIO = 0.6


@dataclass(frozen=True)
class Criterion:
    """A named measurement of an (input, output) pair."""

    name: str
    measure: Optional[Measure] = None
    target: float = DEFAULT_TARGET
    weight: Optional[float] = None


@dataclass(frozen=True)
class EvaluationMetric:
    name: str
    value: float
    target: float
    weight: float
    passed: bool


@dataclass(frozen=True)
class ImprovementSuggestion:
    priority: str
    area: str
    suggestion: str
    expected_impact: float


@dataclass
class Evaluation:
    score: float
    metrics: List[EvaluationMetric]
    feedback: List[str]
    improvements: List[ImprovementSuggestion]
    pass_threshold: bool


@dataclass
class OptimizationLoop:
    iteration: int
    input: str
    output: str
    evaluation: Evaluation
    applied_improvements: List[str] = field(default_factory=list)
    delta_score: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class EvaluatorOptimizer:
    """Scores outputs against weighted criteria and keeps the iteration history.

    ``metric`` measures criteria given only by name; criteria carrying their
    own ``measure`` ignore it.
    """

    def __init__(self, metric: Optional[Metric] = None, *, pass_score: float = DEFAULT_PASS_SCORE) -> None:
        self.metric = metric
        self.pass_score = pass_score
        self.history: List[OptimizationLoop] = []

    def reset(self) -> None:
        self.history.clear()

    def evaluate_and_optimize(
        self, input: str, output: str, criteria: Sequence[Union[Criterion, str]]
    ) -> OptimizationLoop:
        iteration = len(self.history) + 1
        evaluation = self.evaluate(input, output, criteria)

        applied: List[str] = []
        if not evaluation.pass_threshold:
            applied = [
                item.suggestion for item in evaluation.improvements if item.priority in ("critical", "high")
            ]

        previous = self.history[-1].evaluation.score if self.history else None
        loop = OptimizationLoop(
            iteration=iteration,
            input=input,
            output=output,
            evaluation=evaluation,
            applied_improvements=applied,
            delta_score=0.0 if previous is None else evaluation.score - previous,
        )
        self.history.append(loop)
        logger.info(
            "Optimization iteration %d: score %.1f (%s, delta %+.1f)",
            iteration,
            evaluation.score,
            "pass" if evaluation.pass_threshold else "fail",
            loop.delta_score,
        )
        return loop

    def evaluate(self, input: str, output: str, criteria: Sequence[Union[Criterion, str]]) -> Evaluation:
        resolved = [item if isinstance(item, Criterion) else Criterion(name=str(item)) for item in criteria]
        weights = _weights(resolved)
        metrics: List[EvaluationMetric] = []
        for criterion, weight in zip(resolved, weights):
            value = float(self._measure(criterion, input, output))
            metrics.append(
                EvaluationMetric(
                    name=criterion.name,
                    value=value,
                    target=criterion.target,
                    weight=weight,
                    passed=value >= criterion.target,
                )
            )
        score = sum(metric.value * metric.weight for metric in metrics)
        failed = [metric for metric in metrics if not metric.passed]
        return Evaluation(
            score=score,
            metrics=metrics,
            feedback=[f"{m.name}: {m.value:.1f}/{m.target:g} (needs improvement)" for m in failed],
            improvements=[_suggest(metric) for metric in failed],
            pass_threshold=score >= self.pass_score,
        )

    def _measure(self, criterion: Criterion, input: str, output: str) -> float:
        if criterion.measure is not None:
            return criterion.measure(input, output)
        if self.metric is None:
            raise ConfigError(f"Criterion '{criterion.name}' has no measure and no default metric is set")
        return self.metric(criterion.name, input, output)


def _weights(criteria: Sequence[Criterion]) -> List[float]:
    """Weights for ``criteria``, normalised to sum to 1.

    Unset weights share whatever the explicit ones leave over. When every
    weight is explicit they are taken as relative, so 0.4/0.4 counts as an
    even split.
    """
    if not criteria:
        return []
    if any(c.weight is not None and c.weight < 0 for c in criteria):
        raise ConfigError("Criterion weights must not be negative")
    explicit = sum(c.weight for c in criteria if c.weight is not None)
    unset = [c for c in criteria if c.weight is None]
    if explicit > 1.0 + 1e-9 and unset:
        raise ConfigError("Explicit criterion weights exceed 1.0; cannot spread the remainder")
    share = max(0.0, 1.0 - explicit) / len(unset) if unset else 0.0
    weights = [c.weight if c.weight is not None else share for c in criteria]
    total = sum(weights)
    if total <= 0:
        raise ConfigError("Criterion weights sum to zero")
    return [weight / total for weight in weights]


def _suggest(metric: EvaluationMetric) -> ImprovementSuggestion:
    priority = "critical" if metric.value < metric.target * CRITICAL_RATIO else "high"
    return ImprovementSuggestion(
        priority=priority,
        area=metric.name,
        suggestion=f"Improve {metric.name} from {metric.value:.1f} to {metric.target:g}",
        expected_impact=metric.target - metric.value,
    )

