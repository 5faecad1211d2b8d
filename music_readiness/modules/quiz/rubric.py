from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

from music_readiness.utils.validation import clean_text, validate_email_loose


# Ranking ties resolve to the earliest instrument in this tuple.
INSTRUMENT_TIE_BREAK_ORDER: tuple[str, ...] = ('piano', 'guitar', 'drums', 'voice', 'ukulele')

INSTRUMENT_LABELS: dict[str, str] = {
    'piano': 'Piano',
    'guitar': 'Guitar',
    'drums': 'Drums',
    'voice': 'Voice',
    'ukulele': 'Ukulele',
}

QuestionKind = Literal['choice', 'multi', 'text', 'email', 'integer']

TEXT_MAX_LENGTH = 200


class AnswerValidationError(ValueError):
    def __init__(self, errors: dict[str, str]):
        self.errors = errors
        super().__init__('; '.join(f'{key}: {message}' for key, message in errors.items()))


class UnknownVariantError(LookupError):
    pass


class QuestionSpec(BaseModel):
    key: str = Field(min_length=1)
    kind: QuestionKind
    step: int = Field(ge=1)
    prompt: str
    required: bool = True
    # Ordered from strongest to weakest signal.
    options: dict[str, str] = Field(default_factory=dict)
    weights: dict[str, int] = Field(default_factory=dict)
    sentinel: str | None = None
    min_value: int | None = None
    max_value: int | None = None

    @model_validator(mode='after')
    def validate_shape(self) -> 'QuestionSpec':
        if self.kind in ('choice', 'multi') and not self.options:
            raise ValueError(f'{self.key}: choice questions need options')
        unknown = set(self.weights) - set(self.options)
        if unknown:
            raise ValueError(f'{self.key}: weights reference unknown tokens {sorted(unknown)}')
        if self.kind == 'choice' and self.weights:
            deltas = [self.weights.get(token, 0) for token in self.options]
            if any(later > earlier for earlier, later in zip(deltas, deltas[1:])):
                raise ValueError(f'{self.key}: deltas must not increase from strongest to weakest option')
        if self.sentinel is not None and self.sentinel not in self.options:
            raise ValueError(f'{self.key}: sentinel must be one of the options')
        return self

    @property
    def is_scored(self) -> bool:
        return self.kind == 'choice' and bool(self.weights)

    def delta(self, value: Any) -> int:
        if not isinstance(value, str):
            return 0
        return self.weights.get(value, 0)

    def label(self, token: str) -> str:
        return self.options.get(token, token)


class InstrumentRule(BaseModel):
    question: str
    tokens: list[str] = Field(min_length=1)
    boosts: dict[str, int] = Field(min_length=1)


class QuizVariant(BaseModel):
    key: str
    label: str
    total_steps: int = Field(ge=1)
    base_score: int
    contact_capture_step: int = Field(ge=1)
    questions: list[QuestionSpec]
    home_question: str | None = None
    home_bonus: int = 0
    instrument_baseline: dict[str, int] = Field(default_factory=dict)
    instrument_rules: list[InstrumentRule] = Field(default_factory=list)
    home_instrument_boosts: dict[str, dict[str, int]] = Field(default_factory=dict)

    @model_validator(mode='after')
    def validate_references(self) -> 'QuizVariant':
        keys = [question.key for question in self.questions]
        if len(keys) != len(set(keys)):
            raise ValueError(f'{self.key}: duplicate question keys')
        by_key = {question.key: question for question in self.questions}

        for question in self.questions:
            if question.step > self.total_steps:
                raise ValueError(f'{self.key}: {question.key} is past the last step')
        if self.home_question is not None:
            home = by_key.get(self.home_question)
            if home is None or home.kind != 'multi':
                raise ValueError(f'{self.key}: home_question must be a multi-select question')

        instruments: set[str] = set(self.instrument_baseline)
        for rule in self.instrument_rules:
            question = by_key.get(rule.question)
            if question is None:
                raise ValueError(f'{self.key}: rule references unknown question {rule.question}')
            if set(rule.tokens) - set(question.options):
                raise ValueError(f'{self.key}: rule on {rule.question} references unknown tokens')
            instruments.update(rule.boosts)
        for boosts in self.home_instrument_boosts.values():
            instruments.update(boosts)
        if instruments - set(INSTRUMENT_TIE_BREAK_ORDER):
            raise ValueError(f'{self.key}: unknown instruments {sorted(instruments - set(INSTRUMENT_TIE_BREAK_ORDER))}')
        return self

    def question(self, key: str) -> QuestionSpec | None:
        for question in self.questions:
            if question.key == key:
                return question
        return None

    @property
    def scored_questions(self) -> list[QuestionSpec]:
        return [question for question in self.questions if question.is_scored]

    @property
    def required_keys(self) -> list[str]:
        return [question.key for question in self.questions if question.required]

    @property
    def contact_keys(self) -> list[str]:
        return [
            question.key
            for question in self.questions
            if question.kind in ('text', 'email') and question.step <= self.contact_capture_step
        ]

    def missing_required(self, answers: Mapping[str, Any]) -> list[str]:
        return [key for key in self.required_keys if _is_blank(answers.get(key))]

    def validate_answers(self, answers: Mapping[str, Any], *, partial: bool = False) -> dict[str, Any]:
        """
        Normalize an answer set against this variant and reject anything the
        rubric does not recognise. Partial answer sets skip the completion rule.
        """
        errors: dict[str, str] = {}
        cleaned: dict[str, Any] = {}

        for key, value in answers.items():
            question = self.question(key)
            if question is None:
                errors[key] = 'Unknown question for this quiz'
                continue
            if _is_blank(value):
                continue
            try:
                cleaned[key] = _normalize_value(question, value)
            except (TypeError, ValueError) as exc:
                errors[key] = str(exc)

        if not partial:
            for key in self.missing_required(cleaned):
                errors.setdefault(key, 'This question is required')

        if errors:
            raise AnswerValidationError(errors)
        return cleaned


def owned_home_instruments(variant: QuizVariant, answers: Mapping[str, Any]) -> list[str]:
    """Home instruments the family actually owns, with the sentinel dropped."""
    if variant.home_question is None:
        return []
    question = variant.question(variant.home_question)
    raw = answers.get(variant.home_question) or []
    if isinstance(raw, str):
        raw = [raw]
    owned = [
        token
        for token in raw
        if isinstance(token, str) and token in question.options and token != question.sentinel
    ]
    return list(dict.fromkeys(owned))


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, frozenset)):
        return len(value) == 0
    return False


def _normalize_value(question: QuestionSpec, value: Any) -> Any:
    if question.kind == 'choice':
        if not isinstance(value, str) or value not in question.options:
            raise ValueError(f'Choose one of: {", ".join(question.options)}')
        return value

    if question.kind == 'multi':
        if isinstance(value, str) or not isinstance(value, (list, tuple, set, frozenset)):
            raise TypeError('Expected a list of options')
        selected: list[str] = []
        for token in value:
            if not isinstance(token, str) or token not in question.options:
                raise ValueError(f'Choose from: {", ".join(question.options)}')
            if token not in selected:
                selected.append(token)
        return selected

    if question.kind == 'integer':
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError('Expected a whole number')
        if question.min_value is not None and value < question.min_value:
            raise ValueError(f'Must be at least {question.min_value}')
        if question.max_value is not None and value > question.max_value:
            raise ValueError(f'Must be at most {question.max_value}')
        return value

    if not isinstance(value, str):
        raise TypeError('Expected text')
    if question.kind == 'email':
        return validate_email_loose(value)
    return clean_text(value, TEXT_MAX_LENGTH)
