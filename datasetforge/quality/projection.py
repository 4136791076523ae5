"""
Exponential Quality Projection
==============================
Estimates how often the generator gets to learn from feedback, and what that
does to output quality, for a given batch size.

Smaller batches mean more validation points and therefore more feedback
cycles for the same amount of data:

    cycles  = floor(batch_number / max(1, batch_size / 10))
    quality = min(0.6 * 1.15^cycles + min(0.05 * ln(cycles + 1), 0.30), 0.95)

The constants are product heuristics and are kept exactly as shipped.
Everything here is pure: no I/O, no state.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

BASE_QUALITY = 0.6
IMPROVEMENT_PER_CYCLE = 0.15
COMPOUNDING_RATE = 0.05
COMPOUNDING_CAP = 0.30
QUALITY_CEILING = 0.95
DEFAULT_TARGET_QUALITY = 0.85


@dataclass(frozen=True)
class QualityMetrics:
    """Quality numbers for one batch size at one point of a run."""
    average_score: float           # quality at the current batch
    improvement_rate: float        # average gain per feedback cycle so far
    feedback_cycles: int           # cycles completed at the current batch
    compounding_factor: float
    projected_final_quality: float  # quality after the last batch


@dataclass(frozen=True)
class BatchSizeAnalysis:
    """Projection for one candidate batch size."""
    batch_size: int
    total_batches: int
    quality_metrics: QualityMetrics
    total_quality_value: float
    efficiency_score: float


@dataclass
class Recommendation:
    """Chosen analysis plus a human-readable rationale."""
    recommended: BatchSizeAnalysis
    reasoning: List[str] = field(default_factory=list)
    tradeoffs: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class CurvePoint:
    batch: int
    quality: float
    improvement: float


def feedback_cycles(batch_number: int, batch_size: int) -> int:
    """Feedback cycles completed after `batch_number` batches."""
    return math.floor(batch_number / max(1, batch_size / 10))


def compounding_factor(cycles: int) -> float:
    """Extra quality from accumulated learning, with diminishing returns."""
    return min(COMPOUNDING_RATE * math.log(cycles + 1), COMPOUNDING_CAP)


def quality_at_batch(batch_number: int, batch_size: int) -> float:
    """Projected quality of the batch generated after `batch_number` batches."""
    cycles = feedback_cycles(batch_number, batch_size)
    # Past the ceiling the power is irrelevant; also keeps huge runs from overflowing
    if cycles > 64:
        return QUALITY_CEILING
    growth = BASE_QUALITY * math.pow(1 + IMPROVEMENT_PER_CYCLE, cycles)
    return min(growth + compounding_factor(cycles), QUALITY_CEILING)


def quality_metrics(current_batch: int, batch_size: int, total_batches: int) -> QualityMetrics:
    cycles = feedback_cycles(current_batch, batch_size)
    current_quality = quality_at_batch(current_batch, batch_size)
    improvement_rate = (current_quality - BASE_QUALITY) / cycles if cycles > 0 else 0.0
    return QualityMetrics(
        average_score=current_quality,
        improvement_rate=improvement_rate,
        feedback_cycles=cycles,
        compounding_factor=compounding_factor(cycles),
        projected_final_quality=quality_at_batch(total_batches, batch_size),
    )


def total_quality_value(total_batches: int, batch_size: int) -> float:
    """Sum of quality * quantity over every batch of the run."""
    return sum(quality_at_batch(batch, batch_size) * batch_size for batch in range(total_batches))


def efficiency_score(batch_size: int, metrics: QualityMetrics) -> float:
    size_efficiency = 1 / math.log(batch_size + 1)
    feedback_efficiency = metrics.feedback_cycles * 0.1
    return (size_efficiency + feedback_efficiency + metrics.projected_final_quality) / 3


def analyze_batch_sizes(
    total_entries: int,
    current_batch: int,
    candidate_sizes: Sequence[int],
) -> List[BatchSizeAnalysis]:
    """
    Project quality for each candidate batch size.

    Args:
        total_entries: Size of the dataset to generate.
        current_batch: Batches already generated (0 before the run starts).
        candidate_sizes: Batch sizes to compare, in display order.

    Returns:
        One BatchSizeAnalysis per candidate, same order as the input.
    """
    if total_entries < 1:
        raise ValueError("total_entries must be >= 1")

    analyses = []
    for batch_size in candidate_sizes:
        if batch_size < 1:
            raise ValueError(f"batch size must be >= 1, got {batch_size}")
        total_batches = math.ceil(total_entries / batch_size)
        metrics = quality_metrics(current_batch, batch_size, total_batches)
        analyses.append(BatchSizeAnalysis(
            batch_size=batch_size,
            total_batches=total_batches,
            quality_metrics=metrics,
            total_quality_value=total_quality_value(total_batches, batch_size),
            efficiency_score=efficiency_score(batch_size, metrics),
        ))
    return analyses


def recommend(
    analyses: Sequence[BatchSizeAnalysis],
    target_quality: float = DEFAULT_TARGET_QUALITY,
) -> Recommendation:
    """
    Pick a batch size.

    Among candidates reaching `target_quality`, the most efficient one wins.
    If none reaches it, the one with the best projected final quality wins.
    Ties go to the earliest candidate.
    """
    if not analyses:
        raise ValueError("recommend() needs at least one analysis")

    viable = [a for a in analyses if a.quality_metrics.projected_final_quality >= target_quality]
    if viable:
        best = max(viable, key=lambda a: a.efficiency_score)
    else:
        best = max(analyses, key=lambda a: a.quality_metrics.projected_final_quality)

    metrics = best.quality_metrics
    reasoning = [
        f"Achieves {metrics.projected_final_quality * 100:.1f}% final quality",
        f"Generates {metrics.feedback_cycles} feedback cycles",
        f"{'High' if best.efficiency_score > 0.7 else 'Moderate'} efficiency score",
        f"Exponential improvement rate: {metrics.improvement_rate * 100:.1f}% per cycle",
    ]
    if not viable:
        reasoning.append(
            f"No candidate reaches the {target_quality * 100:.0f}% target; "
            f"picked the highest projected quality"
        )
    tradeoffs = [
        f"Requires {best.total_batches} total batches",
        "Processing time increases with more batches",
        "Higher computational cost for validation",
        "More intermediate storage needed",
    ]
    return Recommendation(recommended=best, reasoning=reasoning, tradeoffs=tradeoffs)


def simulate_quality_growth(batch_size: int, max_batches: int) -> List[CurvePoint]:
    """Quality curve for batches 0..max_batches (inclusive)."""
    curve = []
    previous = BASE_QUALITY
    for batch in range(max_batches + 1):
        quality = quality_at_batch(batch, batch_size)
        curve.append(CurvePoint(batch=batch, quality=quality, improvement=quality - previous))
        previous = quality
    return curve


def explain() -> Dict[str, object]:
    """Plain-language description of the projection model."""
    return {
        "title": "Exponential Quality Improvement Theory",
        "formula": "Q(n) = Base x (1 + ImprovementRate)^FeedbackCycles + CompoundingFactor",
        "factors": [
            {
                "name": "Feedback Cycles",
                "description": "Smaller batches = more validation points = more learning opportunities",
                "impact": "Linear increase in feedback frequency",
            },
            {
                "name": "Improvement Rate",
                "description": "Each feedback cycle improves prompts by ~15%",
                "impact": "Multiplicative effect on quality",
            },
            {
                "name": "Compounding Factor",
                "description": "Learning accumulates and builds upon itself",
                "impact": "Exponential growth acceleration",
            },
            {
                "name": "Prompt Evolution",
                "description": "Each batch generates 'avoid X, focus on Y' improvements",
                "impact": "Continuous refinement of generation strategy",
            },
        ],
        "example": (
            "Example with 1000 entries:\n"
            "- 10 batches of 100: 1 feedback cycle\n"
            "- 20 batches of 50: 4 feedback cycles\n"
            "- 50 batches of 20: 25 feedback cycles\n"
            "Smaller batches reach the quality ceiling sooner."
        ),
    }
