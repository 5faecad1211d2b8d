from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from music_readiness.modules.quiz.rubric import QuizVariant
from music_readiness.modules.quiz.scoring import ScoringResult
from music_readiness.schemas.common import BaseSchema


class QuestionOptionOut(BaseModel):
    token: str
    label: str


class QuestionOut(BaseSchema):
    key: str
    kind: str
    step: int
    prompt: str
    required: bool
    options: list[QuestionOptionOut] = Field(default_factory=list)
    min_value: int | None = None
    max_value: int | None = None


class VariantSummary(BaseSchema):
    key: str
    label: str
    total_steps: int
    contact_capture_step: int


class VariantOut(VariantSummary):
    required_keys: list[str]
    contact_keys: list[str]
    questions: list[QuestionOut]

    @classmethod
    def from_variant(cls, variant: QuizVariant) -> 'VariantOut':
        return cls(
            key=variant.key,
            label=variant.label,
            total_steps=variant.total_steps,
            contact_capture_step=variant.contact_capture_step,
            required_keys=variant.required_keys,
            contact_keys=variant.contact_keys,
            questions=[
                QuestionOut(
                    key=question.key,
                    kind=question.kind,
                    step=question.step,
                    prompt=question.prompt,
                    required=question.required,
                    options=[QuestionOptionOut(token=token, label=label) for token, label in question.options.items()],
                    min_value=question.min_value,
                    max_value=question.max_value,
                )
                for question in sorted(variant.questions, key=lambda item: item.step)
            ],
        )


class VariantListResponse(BaseModel):
    default_variant: str
    items: list[VariantSummary]


class ScorePreviewRequest(BaseModel):
    variant: str | None = None
    answers: dict[str, Any] = Field(default_factory=dict)


class ScorePreviewResponse(ScoringResult):
    variant: str
