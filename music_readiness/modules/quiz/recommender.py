from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from music_readiness.modules.quiz.rubric import (
    INSTRUMENT_LABELS,
    INSTRUMENT_TIE_BREAK_ORDER,
    QuizVariant,
    owned_home_instruments,
)


@dataclass(frozen=True)
class InstrumentRecommendation:
    primary_instrument: str
    secondary_instruments: tuple[str, str]


def instrument_scores(answers: Mapping[str, Any], variant: QuizVariant) -> dict[str, int]:
    scores = {instrument: variant.instrument_baseline.get(instrument, 0) for instrument in INSTRUMENT_TIE_BREAK_ORDER}

    for rule in variant.instrument_rules:
        if answers.get(rule.question) in rule.tokens:
            for instrument, boost in rule.boosts.items():
                scores[instrument] += boost

    for owned in owned_home_instruments(variant, answers):
        for instrument, boost in variant.home_instrument_boosts.get(owned, {}).items():
            scores[instrument] += boost

    return scores


def rank_instruments(scores: Mapping[str, int]) -> list[str]:
    # sorted() is stable, so equal totals keep INSTRUMENT_TIE_BREAK_ORDER.
    return sorted(INSTRUMENT_TIE_BREAK_ORDER, key=lambda instrument: -scores.get(instrument, 0))


def recommend_instruments(answers: Mapping[str, Any], variant: QuizVariant) -> InstrumentRecommendation:
    ranked = [INSTRUMENT_LABELS[instrument] for instrument in rank_instruments(instrument_scores(answers, variant))]
    return InstrumentRecommendation(primary_instrument=ranked[0], secondary_instruments=(ranked[1], ranked[2]))
