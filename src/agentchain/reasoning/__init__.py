"""Reasoning chains, confidence scoring and the evaluator-optimizer loop."""

from .chain import (
    THINKING_PRESETS,
    ChainOutcome,
    ReasoningChain,
    ReasoningEngine,
    ThinkingConfig,
    ThinkingDepth,
    ThinkingStep,
)
from .evaluator import (
    Criterion,
    Evaluation,
    EvaluationMetric,
    EvaluatorOptimizer,
    ImprovementSuggestion,
    OptimizationLoop,
)
from .scoring import PhaseTableScorer, Scorer, ThinkingPhase

__all__ = [
    "THINKING_PRESETS",
    "ChainOutcome",
    "Criterion",
    "Evaluation",
    "EvaluationMetric",
    "EvaluatorOptimizer",
    "ImprovementSuggestion",
    "OptimizationLoop",
    "PhaseTableScorer",
    "ReasoningChain",
    "ReasoningEngine",
    "Scorer",
    "ThinkingConfig",
    "ThinkingDepth",
    "ThinkingPhase",
    "ThinkingStep",
]
