"""
Versioned quiz rubrics.

Each variant owns its question set, per-token score deltas, base score and
instrument-recommendation increments. Weight tables are product decisions;
nothing here reconciles one variant against another.
"""

from __future__ import annotations

from music_readiness.modules.quiz.rubric import InstrumentRule, QuestionSpec, QuizVariant, UnknownVariantError


def _choice(key: str, step: int, prompt: str, options: list[tuple[str, str, int]]) -> QuestionSpec:
    return QuestionSpec(
        key=key,
        kind='choice',
        step=step,
        prompt=prompt,
        options={token: label for token, label, _ in options},
        weights={token: delta for token, _, delta in options},
    )


def _text(key: str, step: int, prompt: str, *, required: bool = True, kind: str = 'text') -> QuestionSpec:
    return QuestionSpec(key=key, kind=kind, step=step, prompt=prompt, required=required)


def _child_age(step: int) -> QuestionSpec:
    return QuestionSpec(
        key='child_age',
        kind='integer',
        step=step,
        prompt="How old is your child?",
        required=False,
        min_value=2,
        max_value=18,
    )


def _instruments_at_home(step: int) -> QuestionSpec:
    return QuestionSpec(
        key='instruments_at_home',
        kind='multi',
        step=step,
        prompt='Do you have any instruments at home?',
        options={
            'keyboard-piano': 'Keyboard or piano',
            'guitar-ukulele': 'Guitar or ukulele',
            'drums': 'Drums / electronic kit',
            'other': 'Other',
            'not-yet': 'Not yet',
        },
        sentinel='not-yet',
    )


PITCH_PROMPT = 'When your child sings, do they usually stay close to the melody?'
RHYTHM_PROMPT = 'Can your child keep a steady beat for about 10 seconds?'
MEMORY_PROMPT = 'Does your child remember songs easily after hearing them a few times?'
EMOTION_PROMPT = 'Does your child react emotionally when they hear music?'
HUMMING_PROMPT = 'Does your child hum, sing, or make up little tunes during the day?'
RHYTHM_PLAY_PROMPT = 'Does your child tap on tables, beatbox, or create rhythms with objects?'
DANCING_PROMPT = 'Does your child start dancing when music comes on?'
DRAWN_PROMPT = 'When your child sees musical instruments in public places, do they want to touch or explore them?'
CORRECTION_PROMPT = 'How does your child handle trying something new?'
PERFORMER_PROMPT = 'How does your child feel about performing or showing what they learned?'
FOCUS_PROMPT = 'How long can your child focus on something they enjoy?'
WANTS_PROMPT = 'Has your child ever said they want to learn an instrument?'
FAVORITE_PROMPT = 'Does your child ask you to replay songs they love?'

PITCH_LABELS = ('Yes, mostly on tune', 'Sometimes', 'Not really, but they love singing')
FOCUS_LABELS = ('20+ minutes', '10–20 minutes', '5–10 minutes', 'Under 5 minutes')

HOME_INSTRUMENT_BOOSTS: dict[str, dict[str, int]] = {
    'keyboard-piano': {'piano': 15},
    # One household artifact, two candidate instruments.
    'guitar-ukulele': {'guitar': 15, 'ukulele': 15},
    'drums': {'drums': 15},
}

SHORT_FOCUS_RULE = InstrumentRule(
    question='focus_duration', tokens=['under-5', '5-10'], boosts={'drums': 10, 'piano': 5, 'ukulele': 8}
)
PITCH_RULE = InstrumentRule(question='pitch', tokens=['yes-on-tune'], boosts={'voice': 20, 'piano': 10})
EMOTION_RULE = InstrumentRule(question='emotional_response', tokens=['yes'], boosts={'voice': 10, 'piano': 5})
RHYTHM_PLAY_RULE = InstrumentRule(question='rhythm_play', tokens=['constantly'], boosts={'drums': 20, 'guitar': 8})
DANCING_RULE = InstrumentRule(question='dancing', tokens=['yes'], boosts={'drums': 15})
HUMMING_RULE = InstrumentRule(question='humming_singing', tokens=['all-the-time'], boosts={'voice': 15})
DRAWN_RULE = InstrumentRule(question='drawn_to_instruments', tokens=['yes'], boosts={'piano': 10, 'guitar': 8})
WANTS_RULE = InstrumentRule(question='wants_to_learn', tokens=['yes'], boosts={'piano': 8})
PERFORMER_RULE = InstrumentRule(question='performer_style', tokens=['loves-showing'], boosts={'voice': 10, 'guitar': 5})


# Original 17-step table. Every delta is positive, so all-minimum answers land at 68
# (ready-with-support), not at the 0 / emerging floor that CORE guarantees.
FULL = QuizVariant(
    key='full',
    label='Music Readiness Quiz (17 steps)',
    total_steps=17,
    base_score=50,
    contact_capture_step=6,
    questions=[
        _text('parent_name', 1, "What's your name?"),
        _choice('pitch', 2, PITCH_PROMPT, [
            ('yes-on-tune', PITCH_LABELS[0], 12), ('sometimes', PITCH_LABELS[1], 6), ('not-really', PITCH_LABELS[2], 3),
        ]),
        _choice('rhythm', 3, RHYTHM_PROMPT, [('yes', 'Yes', 12), ('sometimes', 'Sometimes', 6), ('not-yet', 'Not yet', 2)]),
        _choice('memory', 4, MEMORY_PROMPT, [('yes', 'Yes', 10), ('sometimes', 'Sometimes', 5), ('not-really', 'Not really', 2)]),
        _choice('emotional_response', 5, EMOTION_PROMPT, [
            ('yes', 'Yes', 8), ('sometimes', 'Sometimes', 4), ('not-noticed', "Not that I've noticed", 1),
        ]),
        _text('email', 6, 'Enter your email so we can send you the final Music Readiness Score.', kind='email'),
        _choice('humming_singing', 7, HUMMING_PROMPT, [
            ('all-the-time', 'All the time', 8), ('sometimes', 'Sometimes', 4), ('rarely', 'Rarely', 1),
        ]),
        _choice('rhythm_play', 8, RHYTHM_PLAY_PROMPT, [
            ('constantly', 'Constantly', 8), ('sometimes', 'Sometimes', 4), ('rarely', 'Rarely', 1),
        ]),
        _choice('dancing', 9, DANCING_PROMPT, [('yes', 'Yes', 6), ('sometimes', 'Sometimes', 3), ('no', 'No', 1)]),
        _choice('drawn_to_instruments', 10, DRAWN_PROMPT, [
            ('yes', 'Yes', 6), ('sometimes', 'Sometimes', 3), ('not-really', 'Not really', 1),
        ]),
        _choice('handles_correction', 11, CORRECTION_PROMPT, [
            ('jumps-in', 'Jumps right in and experiments', 8),
            ('needs-encouragement', 'Tries but needs encouragement', 5),
            ('frustrated', 'Gets frustrated easily', 2),
        ]),
        _choice('performer_style', 12, PERFORMER_PROMPT, [
            ('loves-showing', 'Loves showing off', 6),
            ('shy-but-tries', 'A little shy but still tries', 4),
            ('nervous', 'Very nervous / prefers privacy', 2),
        ]),
        _choice('focus_duration', 13, FOCUS_PROMPT, [
            ('20-plus', FOCUS_LABELS[0], 10), ('10-20', FOCUS_LABELS[1], 6), ('5-10', FOCUS_LABELS[2], 3), ('under-5', FOCUS_LABELS[3], 0),
        ]),
        _choice('wants_to_learn', 14, WANTS_PROMPT, [('yes', 'Yes', 5), ('not-yet', 'Not yet', 2), ('no', 'No', 0)]),
        _choice('favorite_song_behavior', 15, FAVORITE_PROMPT, [
            ('yes', 'Yes', 4), ('sometimes', 'Sometimes', 2), ('rarely', 'Rarely', 0),
        ]),
        _instruments_at_home(16),
        _text('child_name', 17, "What's your child's name?"),
        _text('phone', 17, 'Your phone number (optional)', required=False),
        _child_age(17),
    ],
    home_question='instruments_at_home',
    home_bonus=3,
    instrument_baseline={'piano': 10},
    instrument_rules=[
        PITCH_RULE,
        EMOTION_RULE,
        RHYTHM_PLAY_RULE,
        DANCING_RULE,
        HUMMING_RULE,
        DRAWN_RULE,
        WANTS_RULE,
        SHORT_FOCUS_RULE,
        PERFORMER_RULE,
    ],
    home_instrument_boosts=HOME_INSTRUMENT_BOOSTS,
)


# Lowest tokens carry negative deltas: an all-minimum answer set floors at 0
# and an all-maximum one clamps at 100.
CORE = QuizVariant(
    key='core',
    label='Music Readiness Quiz (15 steps)',
    total_steps=15,
    base_score=30,
    contact_capture_step=6,
    questions=[
        _text('parent_name', 1, "What's your name?"),
        _choice('pitch', 2, PITCH_PROMPT, [
            ('yes-on-tune', PITCH_LABELS[0], 10), ('sometimes', PITCH_LABELS[1], 4), ('not-really', PITCH_LABELS[2], -4),
        ]),
        _choice('rhythm', 3, RHYTHM_PROMPT, [('yes', 'Yes', 10), ('sometimes', 'Sometimes', 4), ('not-yet', 'Not yet', -4)]),
        _choice('memory', 4, MEMORY_PROMPT, [('yes', 'Yes', 8), ('sometimes', 'Sometimes', 3), ('not-really', 'Not really', -3)]),
        _choice('emotional_response', 5, EMOTION_PROMPT, [
            ('yes', 'Yes', 6), ('sometimes', 'Sometimes', 2), ('not-noticed', "Not that I've noticed", -3),
        ]),
        _text('email', 6, 'Enter your email so we can send you the final Music Readiness Score.', kind='email'),
        _choice('humming_singing', 7, HUMMING_PROMPT, [
            ('all-the-time', 'All the time', 6), ('sometimes', 'Sometimes', 2), ('rarely', 'Rarely', -2),
        ]),
        _choice('rhythm_play', 8, RHYTHM_PLAY_PROMPT, [
            ('constantly', 'Constantly', 6), ('sometimes', 'Sometimes', 2), ('rarely', 'Rarely', -2),
        ]),
        _choice('dancing', 9, DANCING_PROMPT, [('yes', 'Yes', 4), ('sometimes', 'Sometimes', 1), ('no', 'No', -2)]),
        _choice('handles_correction', 10, CORRECTION_PROMPT, [
            ('jumps-in', 'Jumps right in and experiments', 6),
            ('needs-encouragement', 'Tries but needs encouragement', 2),
            ('frustrated', 'Gets frustrated easily', -3),
        ]),
        _choice('performer_style', 11, PERFORMER_PROMPT, [
            ('loves-showing', 'Loves showing off', 4),
            ('shy-but-tries', 'A little shy but still tries', 2),
            ('nervous', 'Very nervous / prefers privacy', -2),
        ]),
        _choice('focus_duration', 12, FOCUS_PROMPT, [
            ('20-plus', FOCUS_LABELS[0], 8), ('10-20', FOCUS_LABELS[1], 4), ('5-10', FOCUS_LABELS[2], 0), ('under-5', FOCUS_LABELS[3], -4),
        ]),
        _choice('wants_to_learn', 13, WANTS_PROMPT, [('yes', 'Yes', 6), ('not-yet', 'Not yet', 0), ('no', 'No', -4)]),
        _instruments_at_home(14),
        _text('child_name', 15, "What's your child's name?"),
        _text('phone', 15, 'Your phone number (optional)', required=False),
        _child_age(15),
    ],
    home_question='instruments_at_home',
    home_bonus=4,
    instrument_baseline={'piano': 10},
    instrument_rules=[
        PITCH_RULE,
        EMOTION_RULE,
        RHYTHM_PLAY_RULE,
        DANCING_RULE,
        HUMMING_RULE,
        WANTS_RULE,
        SHORT_FOCUS_RULE,
        PERFORMER_RULE,
    ],
    home_instrument_boosts=HOME_INSTRUMENT_BOOSTS,
)


# Short form. All-minimum answers land at 26 (emerging) rather than flooring at 0.
EXPRESS = QuizVariant(
    key='express',
    label='Music Readiness Express (6 steps)',
    total_steps=6,
    base_score=50,
    contact_capture_step=1,
    questions=[
        _text('parent_name', 1, "What's your name?"),
        _text('email', 1, 'Where should we send the results?', kind='email'),
        _choice('pitch', 2, PITCH_PROMPT, [
            ('yes-on-tune', PITCH_LABELS[0], 12), ('sometimes', PITCH_LABELS[1], 6), ('not-really', PITCH_LABELS[2], -6),
        ]),
        _choice('rhythm', 3, RHYTHM_PROMPT, [('yes', 'Yes', 12), ('sometimes', 'Sometimes', 6), ('not-yet', 'Not yet', -6)]),
        _choice('rhythm_play', 4, RHYTHM_PLAY_PROMPT, [
            ('constantly', 'Constantly', 10), ('sometimes', 'Sometimes', 4), ('rarely', 'Rarely', -4),
        ]),
        _choice('performer_style', 5, PERFORMER_PROMPT, [
            ('loves-showing', 'Loves showing off', 6),
            ('shy-but-tries', 'A little shy but still tries', 3),
            ('nervous', 'Very nervous / prefers privacy', -3),
        ]),
        _choice('focus_duration', 6, FOCUS_PROMPT, [
            ('20-plus', FOCUS_LABELS[0], 10), ('10-20', FOCUS_LABELS[1], 5), ('5-10', FOCUS_LABELS[2], 0), ('under-5', FOCUS_LABELS[3], -5),
        ]),
        _text('child_name', 6, "What's your child's first name? (optional)", required=False),
    ],
    instrument_baseline={'piano': 10},
    instrument_rules=[PITCH_RULE, RHYTHM_PLAY_RULE, SHORT_FOCUS_RULE, PERFORMER_RULE],
)


VARIANTS: dict[str, QuizVariant] = {variant.key: variant for variant in (CORE, FULL, EXPRESS)}


def get_variant(key: str) -> QuizVariant:
    variant = VARIANTS.get(key)
    if variant is None:
        raise UnknownVariantError(f'Unknown quiz variant: {key}')
    return variant
