from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from music_readiness.modules.quiz.rubric import owned_home_instruments
from music_readiness.modules.quiz.scoring import ScoredAnswers
from music_readiness.utils.validation import clean_text


MAX_PLAN_ITEMS = 6
CHILD_NAME_LIMIT = 50

BAND_ACTIONS: dict[str, tuple[str, ...]] = {
    'emerging': (
        'Focus on fun over structure. Dance parties, singing in the car, or tapping on pots all count.',
        "Ask {name} to 'teach' you a song they know, even if it's made up!",
    ),
    'ready-with-support': (
        'Talk about what kind of teacher personality might click with {name} (silly? calm? energetic?).',
        "Set a small goal together: 'By next month, let's learn one simple song.'",
    ),
    'ready-to-thrive': (
        'Research local options and book a trial lesson to see how {name} responds to real instruction.',
        "Ask {name} what they'd like to learn to play. Ownership boosts motivation.",
    ),
}


def child_name(answers: Mapping[str, Any]) -> str | None:
    value = answers.get('child_name')
    if not isinstance(value, str):
        return None
    return clean_text(value, CHILD_NAME_LIMIT) or None


def name_in_sentence(answers: Mapping[str, Any]) -> str:
    return child_name(answers) or 'your child'


def name_at_start(answers: Mapping[str, Any]) -> str:
    return child_name(answers) or 'Your child'


def _exploration_target(primary_instrument: str) -> str:
    if primary_instrument.lower() == 'voice':
        return 'singing'
    return f'the {primary_instrument.lower()}'


def generate_action_plan(scored: ScoredAnswers) -> list[str]:
    """
    Deterministic first-week plan: opener, home-instrument branch, band
    template, then answer-specific extras, capped at six items.
    """
    answers = scored.answers
    result = scored.result
    name = name_in_sentence(answers)
    plan: list[str] = []

    plan.append(f'Pick one performance video on YouTube and watch it together with {name}. Ask what they liked about it.')

    if owned_home_instruments(scored.variant, answers):
        plan.append(
            f'Let {name} explore {_exploration_target(result.primary_instrument)} with no pressure. '
            'Ask them to show you their favorite sound.'
        )
    else:
        plan.append('Use a simple rhythm game: clap or tap along to a favorite song together.')
        plan.append("Look up 'beginner keyboard app' or 'rhythm games for kids'. Free apps can spark interest.")

    for template in BAND_ACTIONS[result.band]:
        plan.append(template.format(name=name))

    if answers.get('focus_duration') == 'under-5':
        plan.append('Keep any music activity under 5 minutes this week. Short wins build momentum.')
    if answers.get('wants_to_learn') == 'yes':
        plan.append("Since they've expressed interest, ask what instrument or song sparked that curiosity.")
    if answers.get('performer_style') == 'nervous':
        plan.append('Create a safe space for musical play: no audience, no pressure, just exploration.')
    if answers.get('drawn_to_instruments') == 'yes':
        plan.append(f'Next time you see an instrument in public, let {name} explore it for a few minutes.')

    return plan[:MAX_PLAN_ITEMS]
