from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from music_readiness.modules.quiz.recommender import recommend_instruments
from music_readiness.modules.quiz.rubric import QuizVariant, owned_home_instruments


Band = Literal['emerging', 'ready-with-support', 'ready-to-thrive']

SCORE_MIN = 0
SCORE_MAX = 100
READY_WITH_SUPPORT_THRESHOLD = 50
READY_TO_THRIVE_THRESHOLD = 75

BAND_LABELS: dict[str, str] = {
    'emerging': 'Emerging Readiness',
    'ready-with-support': 'Ready With Support',
    'ready-to-thrive': 'Ready to Thrive',
}

BAND_DESCRIPTIONS: dict[str, str] = {
    'emerging': (
        "Your child is curious about music, and that's a great start. With the right low-pressure "
        "environment and some playful exposure, they can grow into lessons at their own pace. "
        "Here's what to focus on next week."
    ),
    'ready-with-support': (
        'Your child is ready to start lessons, as long as we keep things fun, encouraging, and matched '
        'to their personality. With the right teacher and routine, they can make solid progress quickly.'
    ),
    'ready-to-thrive': (
        'Your child is an excellent candidate for music lessons. With the right teacher and instrument '
        "match, they're likely to thrive and move fast."
    ),
}


class ScoringResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    score: int = Field(ge=SCORE_MIN, le=SCORE_MAX)
    band: Band
    band_label: str
    band_description: str
    primary_instrument: str
    secondary_instruments: list[str] = Field(max_length=2)


def band_for_score(score: int) -> Band:
    if score < READY_WITH_SUPPORT_THRESHOLD:
        return 'emerging'
    if score < READY_TO_THRIVE_THRESHOLD:
        return 'ready-with-support'
    return 'ready-to-thrive'


def raw_score(answers: Mapping[str, Any], variant: QuizVariant) -> int:
    """Base score plus every per-question delta, before clamping."""
    score = variant.base_score
    for question in variant.scored_questions:
        score += question.delta(answers.get(question.key))
    if owned_home_instruments(variant, answers):
        score += variant.home_bonus
    return score


def calculate_readiness_score(answers: Mapping[str, Any], variant: QuizVariant) -> ScoringResult:
    score = max(SCORE_MIN, min(SCORE_MAX, raw_score(answers, variant)))
    band = band_for_score(score)
    recommendation = recommend_instruments(answers, variant)
    return ScoringResult(
        score=score,
        band=band,
        band_label=BAND_LABELS[band],
        band_description=BAND_DESCRIPTIONS[band],
        primary_instrument=recommendation.primary_instrument,
        secondary_instruments=list(recommendation.secondary_instruments),
    )


@dataclass(frozen=True)
class ScoredAnswers:
    """An answer set together with the result derived from it, for downstream generators."""

    variant: QuizVariant
    answers: Mapping[str, Any]
    result: ScoringResult


def score_answers(answers: Mapping[str, Any], variant: QuizVariant) -> ScoredAnswers:
    return ScoredAnswers(variant=variant, answers=dict(answers), result=calculate_readiness_score(answers, variant))
