"""Helpers for folding batch validation feedback back into the generation prompt."""

from dataclasses import dataclass, field
from typing import List


@dataclass
class ValidationFeedback:
    """What the validator learned from one batch."""
    common_issues: List[str] = field(default_factory=list)
    improvement_suggestions: List[str] = field(default_factory=list)
    quality_patterns: List[str] = field(default_factory=list)
    avoid_patterns: List[str] = field(default_factory=list)
    batch_summary: str = ""


def apply_improvements_to_prompt(base_prompt: str, improvements: str) -> str:
    """
    Insert improvements after the prompt's first paragraph (the context),
    before the main instruction. Single-paragraph prompts get them appended.
    """
    if not improvements.strip():
        return base_prompt

    sections = base_prompt.split("\n\n")
    if len(sections) > 1:
        return "\n\n".join([sections[0], improvements] + sections[1:])
    return f"{base_prompt}\n\n{improvements}"


def _bullets(items: List[str]) -> str:
    return "\n".join(f"  - {item}" for item in items)


def format_feedback_for_display(feedback: ValidationFeedback) -> str:
    sections = []
    if feedback.batch_summary:
        sections.append(f"Batch Summary: {feedback.batch_summary}")
    if feedback.common_issues:
        sections.append(f"Common Issues Found:\n{_bullets(feedback.common_issues)}")
    if feedback.avoid_patterns:
        sections.append(f"Patterns to Avoid:\n{_bullets(feedback.avoid_patterns)}")
    if feedback.improvement_suggestions:
        sections.append(f"Focus More On:\n{_bullets(feedback.improvement_suggestions)}")
    if feedback.quality_patterns:
        sections.append(f"Successful Patterns:\n{_bullets(feedback.quality_patterns)}")

    return "\n\n".join(sections) or "No specific feedback available for this batch."


def requires_prompt_adjustment(feedback: ValidationFeedback) -> bool:
    """True when the feedback is strong enough to rewrite the prompt."""
    return (
        len(feedback.common_issues) > 2
        or len(feedback.avoid_patterns) > 1
        or len(feedback.improvement_suggestions) > 0
    )


def feedback_priority(feedback: ValidationFeedback) -> float:
    """Urgency of applying the feedback, 0.0 - 1.0."""
    score = 0.0
    score += min(len(feedback.common_issues) * 0.2, 0.6)
    score += min(len(feedback.avoid_patterns) * 0.3, 0.5)
    score += min(len(feedback.improvement_suggestions) * 0.1, 0.3)
    return min(score, 1.0)
