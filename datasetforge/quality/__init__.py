# Quality projection and prompt feedback (pure, no backend calls)
from .projection import (
    QualityMetrics,
    BatchSizeAnalysis,
    Recommendation,
    CurvePoint,
    feedback_cycles,
    quality_at_batch,
    analyze_batch_sizes,
    recommend,
    simulate_quality_growth,
    explain,
)
from .feedback import (
    ValidationFeedback,
    apply_improvements_to_prompt,
    format_feedback_for_display,
    requires_prompt_adjustment,
    feedback_priority,
)

__all__ = [
    "QualityMetrics",
    "BatchSizeAnalysis",
    "Recommendation",
    "CurvePoint",
    "feedback_cycles",
    "quality_at_batch",
    "analyze_batch_sizes",
    "recommend",
    "simulate_quality_growth",
    "explain",
    "ValidationFeedback",
    "apply_improvements_to_prompt",
    "format_feedback_for_display",
    "requires_prompt_adjustment",
    "feedback_priority",
]
