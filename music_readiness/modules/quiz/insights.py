from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from music_readiness.modules.quiz.action_plan import name_at_start
from music_readiness.modules.quiz.scoring import ScoredAnswers


class Insights(BaseModel):
    profile_type: str = Field(min_length=1, max_length=600)
    strengths: list[str] = Field(min_length=2, max_length=3)
    learning_style: str = Field(min_length=1, max_length=600)
    performer_type: str = Field(min_length=1, max_length=600)
    instrument_reasoning: str = Field(min_length=1, max_length=900)
    superpower: str = Field(min_length=1, max_length=60)

    @field_validator('strengths')
    @classmethod
    def validate_strengths(cls, value: list[str]) -> list[str]:
        cleaned = [item.strip() for item in value]
        if any(not item for item in cleaned):
            raise ValueError('strengths must be non-empty sentences')
        return cleaned


def build_default_insights(scored: ScoredAnswers) -> Insights:
    answers = scored.answers
    name = name_at_start(answers)
    primary = scored.result.primary_instrument

    strengths: list[str] = []
    if answers.get('pitch') == 'yes-on-tune':
        strengths.append(f'{name} has a natural ear for melody and pitch.')
    if answers.get('rhythm') == 'yes':
        strengths.append(f'{name} has strong rhythmic awareness.')
    if answers.get('memory') == 'yes':
        strengths.append(f'{name} has excellent musical memory.')
    if answers.get('humming_singing') == 'all-the-time':
        strengths.append(f'{name} naturally expresses through song.')
    if answers.get('rhythm_play') == 'constantly':
        strengths.append(f'{name} is always making beats and rhythms.')
    if len(strengths) < 2:
        strengths.append(f'{name} shows curiosity and openness to musical exploration.')
        strengths.append(f'{name} has untapped potential waiting to be discovered.')

    performer_style = answers.get('performer_style')
    if performer_style == 'loves-showing':
        performer_type = f'{name} is a natural showstopper who thrives in the spotlight.'
    elif performer_style == 'shy-but-tries':
        performer_type = f'{name} is a courageous performer who pushes past comfort zones.'
    else:
        performer_type = f'{name} is a thoughtful performer who prefers to observe before joining in.'

    if answers.get('humming_singing') == 'all-the-time' and answers.get('pitch') == 'yes-on-tune':
        superpower = 'Melody Maker'
    elif answers.get('rhythm_play') == 'constantly' and answers.get('dancing') == 'yes':
        superpower = 'Beat Master'
    elif answers.get('memory') == 'yes':
        superpower = 'Tune Keeper'
    else:
        superpower = 'Sound Explorer'

    return Insights(
        profile_type=f'{name} is a curious musical spirit with a unique way of connecting with sound and rhythm.',
        strengths=strengths[:3],
        learning_style=(
            f'{name} learns best through hands-on exploration and playful experimentation, '
            'building confidence through discovery.'
        ),
        performer_type=performer_type,
        instrument_reasoning=(
            f'{primary} is a great fit because it matches their natural tendencies and interests. '
            'It lets them express themselves while building foundational skills.'
        ),
        superpower=superpower,
    )
