import asyncio

import pytest

from agentchain.reasoning import (
    THINKING_PRESETS,
    ChainOutcome,
    PhaseTableScorer,
    ReasoningEngine,
    ThinkingConfig,
    ThinkingDepth,
    ThinkingPhase,
)
from agentchain.reasoning.scoring import resolve_score


class RisingScorer:
    """Confidence grows by 0.05 with every step already taken."""

    def score(self, phase, previous, context):
        return 0.5 + 0.05 * len(previous)


def test_presets():
    assert THINKING_PRESETS[ThinkingDepth.QUICK] == ThinkingConfig(ThinkingDepth.QUICK, 1, 0.7, False, 5000)
    assert THINKING_PRESETS[ThinkingDepth.STANDARD] == ThinkingConfig(ThinkingDepth.STANDARD, 3, 0.8, True, 15000)
    assert THINKING_PRESETS[ThinkingDepth.DEEP] == ThinkingConfig(ThinkingDepth.DEEP, 5, 0.85, True, 30000)
    assert THINKING_PRESETS[ThinkingDepth.ULTRATHINK] == ThinkingConfig(ThinkingDepth.ULTRATHINK, 10, 0.95, True, 60000)
    assert ThinkingConfig.preset("deep") is THINKING_PRESETS[ThinkingDepth.DEEP]


def test_phase_table_scorer_blends_history():
    scorer = PhaseTableScorer()

    assert scorer.score(ThinkingPhase.OBSERVATION, [], {}) == pytest.approx(0.6)
    assert scorer.score(ThinkingPhase.ANALYSIS, [0.6], {}) == pytest.approx(0.625)
    assert scorer.score(ThinkingPhase.PLANNING, [0.2, 0.4], {"confidence": 0.33}) == pytest.approx(0.33)
    assert scorer.score(ThinkingPhase.PLANNING, [], {"confidence": 4}) == 1.0


def test_phase_table_scorer_without_blending_uses_table_and_default():
    scorer = PhaseTableScorer({ThinkingPhase.PLANNING: 0.88}, blend_history=False, default=0.4)

    assert scorer.score(ThinkingPhase.PLANNING, [0.1, 0.1], {}) == pytest.approx(0.88)
    assert scorer.score(ThinkingPhase.HYPOTHESIS, [], {}) == pytest.approx(0.4)


@pytest.mark.asyncio
async def test_quick_chain_with_default_scorer_is_partial():
    engine = ReasoningEngine("quick")

    chain = await engine.execute_chain("Remove stray console calls")

    assert chain.iterations == 1
    assert [step.phase for step in chain.steps] == [
        ThinkingPhase.OBSERVATION,
        ThinkingPhase.ANALYSIS,
        ThinkingPhase.HYPOTHESIS,
        ThinkingPhase.PLANNING,
        ThinkingPhase.CONCLUSION,
    ]
    assert chain.final_confidence == pytest.approx(chain.steps[3].confidence)
    assert chain.final_confidence < 0.7
    assert chain.outcome is ChainOutcome.PARTIAL
    assert engine.chains[chain.id] is chain


@pytest.mark.asyncio
async def test_self_reflection_converges_on_rising_confidence():
    engine = ReasoningEngine(ThinkingDepth.STANDARD, scorer=RisingScorer())

    chain = await engine.execute_chain("Speed up page load")

    assert chain.iterations == 2
    assert chain.outcome is ChainOutcome.SUCCESS
    assert chain.final_confidence == pytest.approx(1.0)
    phases = [step.phase for step in chain.steps]
    assert phases[:6] == [
        ThinkingPhase.OBSERVATION,
        ThinkingPhase.ANALYSIS,
        ThinkingPhase.HYPOTHESIS,
        ThinkingPhase.PLANNING,
        ThinkingPhase.EVALUATION,
        ThinkingPhase.REFINEMENT,
    ]
    assert phases[6:] == [
        ThinkingPhase.OBSERVATION,
        ThinkingPhase.ANALYSIS,
        ThinkingPhase.HYPOTHESIS,
        ThinkingPhase.PLANNING,
        ThinkingPhase.EVALUATION,
        ThinkingPhase.CONCLUSION,
    ]


@pytest.mark.asyncio
async def test_planning_step_carries_recommendation():
    chain = await ReasoningEngine("quick").execute_chain("Fix focus order")

    planning = next(step for step in chain.steps if step.phase is ThinkingPhase.PLANNING)
    assert planning.artifacts == [{"type": "recommendation", "content": "Improvement plan for: Fix focus order"}]


@pytest.mark.asyncio
async def test_stops_at_max_iterations_without_convergence():
    class FlatScorer:
        def score(self, phase, previous, context):
            return 0.5

    chain = await ReasoningEngine("deep", scorer=FlatScorer()).execute_chain("Unreachable goal")

    assert chain.iterations == 5
    assert chain.outcome is ChainOutcome.PARTIAL
    assert chain.final_confidence == pytest.approx(0.5)


@pytest.mark.asyncio
async def test_slow_async_scorer_fails_the_chain():
    class SlowAnalysis:
        async def score(self, phase, previous, context):
            if phase is ThinkingPhase.ANALYSIS:
                await asyncio.sleep(1)
            return 0.6

    config = ThinkingConfig(ThinkingDepth.QUICK, 1, 0.7, False, timeout_ms=10)
    chain = await ReasoningEngine(config, scorer=SlowAnalysis()).execute_chain("Slow goal")

    assert chain.outcome is ChainOutcome.FAILED
    assert [step.phase for step in chain.steps] == [ThinkingPhase.OBSERVATION, ThinkingPhase.ANALYSIS]
    assert chain.steps[-1].confidence == 0.0


@pytest.mark.asyncio
async def test_context_is_passed_to_scorer():
    seen = []

    class ContextScorer:
        def score(self, phase, previous, context):
            seen.append(dict(context))
            return 0.99

    await ReasoningEngine("quick", scorer=ContextScorer()).execute_chain("Goal", {"files": 3})

    assert seen[0] == {"files": 3, "goal": "Goal"}


@pytest.mark.asyncio
async def test_resolve_score_clamps_and_awaits():
    class Async:
        async def score(self, phase, previous, context):
            return 1.7

    assert await resolve_score(Async(), ThinkingPhase.EVALUATION, [], {}) == 1.0
    assert await resolve_score(RisingScorer(), ThinkingPhase.EVALUATION, [0.1] * 30, {}) == 1.0
