from __future__ import annotations

from pydantic import BaseModel, Field

from music_readiness.modules.quiz.action_plan import name_in_sentence
from music_readiness.modules.quiz.rubric import owned_home_instruments
from music_readiness.modules.quiz.scoring import ScoredAnswers


TRAIT_KEYS: tuple[str, ...] = (
    'pitch',
    'rhythm',
    'memory',
    'emotional_response',
    'humming_singing',
    'rhythm_play',
    'dancing',
    'drawn_to_instruments',
    'performer_style',
    'focus_duration',
    'wants_to_learn',
)


class EnrichmentContext(BaseModel):
    """What leaves the service when asking for generated content. Nothing else does."""

    child_name: str = Field(max_length=50)
    score: int
    band: str
    band_label: str
    primary_instrument: str
    secondary_instruments: list[str] = Field(max_length=2)
    traits: dict[str, str] = Field(default_factory=dict)
    trait_labels: dict[str, str] = Field(default_factory=dict)
    home_instruments: list[str] = Field(default_factory=list, max_length=5)


def build_enrichment_context(scored: ScoredAnswers) -> EnrichmentContext:
    variant = scored.variant
    traits: dict[str, str] = {}
    trait_labels: dict[str, str] = {}
    for key in TRAIT_KEYS:
        question = variant.question(key)
        value = scored.answers.get(key)
        if question is None or not isinstance(value, str) or value not in question.options:
            continue
        traits[key] = value
        trait_labels[key] = question.label(value)

    home_question = variant.question(variant.home_question) if variant.home_question else None
    home_instruments = (
        [home_question.label(token) for token in owned_home_instruments(variant, scored.answers)]
        if home_question
        else []
    )

    return EnrichmentContext(
        child_name=name_in_sentence(scored.answers),
        score=scored.result.score,
        band=scored.result.band,
        band_label=scored.result.band_label,
        primary_instrument=scored.result.primary_instrument,
        secondary_instruments=list(scored.result.secondary_instruments),
        traits=traits,
        trait_labels=trait_labels,
        home_instruments=home_instruments,
    )
