"""Proximity scoring engine for ordering questions.

Each item earns partial credit from how far its submitted position is from
its correct position:

  - distance 0: 100% of the item's points
  - distance 1:  75%
  - distance 2:  50%
  - distance 3:  25%
  - distance 4+:  0%

Every item is worth the same 10 points. Item points are rounded half-up to
two decimals *per item* and then summed, so a question total always equals
the sum of its stored item records. Summing exact fractions and rounding once
would differ for some inputs; the per-item order is what the audit records
reflect and is kept on purpose.

Everything here is pure and uses ``Decimal`` arithmetic.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence
from decimal import ROUND_HALF_UP, Decimal

from ordering_quiz.core.domain import GradingResult, ItemScore, QuestionItem, ScoreSummary
from ordering_quiz.core.errors import ValidationError

POINTS_PER_ITEM = Decimal("10")

DISTANCE_MULTIPLIERS: dict[int, Decimal] = {
    0: Decimal("1.00"),
    1: Decimal("0.75"),
    2: Decimal("0.50"),
    3: Decimal("0.25"),
}

_CENTS = Decimal("0.01")
_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


def round_points(value: Decimal) -> Decimal:
    """Round half-up to two decimal places."""
    return value.quantize(_CENTS, rounding=ROUND_HALF_UP)


def percentage_of(earned: Decimal, maximum: Decimal) -> Decimal:
    """Return ``earned / maximum`` as a 0–100 percentage with two decimals (0 when max is 0)."""
    if maximum <= 0:
        return round_points(_ZERO)
    return round_points(earned / maximum * _HUNDRED)


def points_for_distance(distance: int, max_points: Decimal = POINTS_PER_ITEM) -> Decimal:
    multiplier = DISTANCE_MULTIPLIERS.get(distance, _ZERO)
    return round_points(max_points * multiplier)


# ── Feedback ──────────────────────────────────────────────────────────────────


def feedback_for(submitted: int, correct: int, item_text: str) -> str:
    """Human-friendly feedback for one item, tiered by distance."""
    distance = abs(submitted - correct)
    if distance == 0:
        return f'Perfect! "{item_text}" is in the correct position (#{correct}).'
    if distance == 1:
        return (
            f'Almost! "{item_text}" should be #{correct}, you put it at #{submitted}. '
            "Just one spot off!"
        )
    if distance == 2:
        return f'Close! "{item_text}" belongs at #{correct}, but you placed it at #{submitted}.'
    if distance == 3:
        return f'"{item_text}" should be at position #{correct}. You put it at #{submitted}.'
    return f'"{item_text}" is at position #{submitted}, but it should be at #{correct}.'


# ── Grading ───────────────────────────────────────────────────────────────────


def calculate_item_score(
    submitted_position: int,
    correct_position: int,
    item_text: str,
    item_id: uuid.UUID,
) -> ItemScore:
    """Score a single item placed at *submitted_position* (both positions 1-indexed)."""
    distance = abs(submitted_position - correct_position)
    return ItemScore(
        item_id=item_id,
        item_text=item_text,
        submitted_position=submitted_position,
        correct_position=correct_position,
        distance=distance,
        points_earned=points_for_distance(distance),
        max_points=POINTS_PER_ITEM,
        feedback=feedback_for(submitted_position, correct_position, item_text),
    )


def validate_submission(items: Sequence[QuestionItem], submitted_order: Sequence[uuid.UUID]) -> None:
    """Raise :class:`ValidationError` unless *submitted_order* is a permutation of the item ids."""
    if not submitted_order:
        raise ValidationError("submitted_order must be a non-empty list of item ids")

    if len(submitted_order) != len(items):
        raise ValidationError(
            f"Expected {len(items)} item ids, got {len(submitted_order)}",
            details={"expected": len(items), "received": len(submitted_order)},
        )

    known = {item.id for item in items}
    unknown = [str(item_id) for item_id in submitted_order if item_id not in known]
    if unknown:
        raise ValidationError(
            f"Invalid item ids: {', '.join(unknown)}", details={"invalid_ids": unknown}
        )

    seen: set[uuid.UUID] = set()
    duplicates = []
    for item_id in submitted_order:
        if item_id in seen:
            duplicates.append(str(item_id))
        seen.add(item_id)
    if duplicates:
        raise ValidationError(
            f"Duplicate item ids: {', '.join(duplicates)}", details={"duplicate_ids": duplicates}
        )


def grade_submission(
    items: Sequence[QuestionItem], submitted_order: Sequence[uuid.UUID]
) -> GradingResult:
    """Grade a complete ordering of one question's items.

    Args:
        items: Every item of the question with its correct position. The order
            of this sequence does not matter.
        submitted_order: Item ids in the order the student placed them.

    Returns:
        The per-item scores in submitted order plus the question totals.

    Raises:
        ValidationError: If *submitted_order* is not a permutation of the item ids.
    """
    validate_submission(items, submitted_order)

    item_map = {item.id: item for item in items}
    item_results = tuple(
        calculate_item_score(position, item_map[item_id].correct_position, item_map[item_id].text, item_id)
        for position, item_id in enumerate(submitted_order, start=1)
    )
    return summarise(item_results)


def summarise(item_results: Iterable[ItemScore]) -> GradingResult:
    """Build a :class:`GradingResult` from already-rounded item scores."""
    item_results = tuple(item_results)
    total = sum((r.points_earned for r in item_results), _ZERO)
    maximum = sum((r.max_points for r in item_results), _ZERO)
    return GradingResult(
        item_results=item_results,
        total_score=round_points(total),
        max_possible_score=round_points(maximum),
        percentage=percentage_of(total, maximum),
    )


# ── Summary bands ─────────────────────────────────────────────────────────────

_SUMMARY_BANDS: list[tuple[Decimal, ScoreSummary]] = [
    (
        Decimal("80"),
        ScoreSummary(
            tier="excellent",
            message="Excellent!",
            encouragement="Great job! You have a strong understanding of the material.",
        ),
    ),
    (
        Decimal("60"),
        ScoreSummary(
            tier="good",
            message="Good Work!",
            encouragement="You're on the right track. Review the items you missed.",
        ),
    ),
    (
        Decimal("40"),
        ScoreSummary(
            tier="keep_learning",
            message="Keep Learning!",
            encouragement="You're making progress. Focus on the order relationships.",
        ),
    ),
]

_PERFECT = ScoreSummary(
    tier="perfect",
    message="Perfect Score!",
    encouragement="Outstanding! You got everything in the exact right order!",
)

_PRACTICE_MORE = ScoreSummary(
    tier="practice_more",
    message="Practice More",
    encouragement="Don't give up! Review the material and try again.",
)


def score_summary(percentage: Decimal | float) -> ScoreSummary:
    """Bucket an aggregate percentage; bands are checked top-down, first match wins."""
    value = Decimal(str(percentage))
    if value == _HUNDRED:
        return _PERFECT
    for threshold, summary in _SUMMARY_BANDS:
        if value >= threshold:
            return summary
    return _PRACTICE_MORE
