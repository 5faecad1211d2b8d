from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from music_readiness.modules.quiz.insights import Insights
from music_readiness.schemas.common import BaseSchema


SubmissionStatus = Literal['partial', 'complete']
ActionPlanSource = Literal['fallback', 'generated']


class SubmissionRecord(BaseSchema):
    """Store-agnostic view of a submissions row, passed between the lifecycle manager and any store."""

    id: str
    variant: str
    status: SubmissionStatus
    source: str
    parent_name: str | None = None
    child_name: str | None = None
    email: str | None = None
    phone: str | None = None
    child_age: int | None = None
    last_step: int = 1
    answers: dict[str, Any] = Field(default_factory=dict)

    score: int | None = None
    band: str | None = None
    band_label: str | None = None
    band_description: str | None = None
    primary_instrument: str | None = None
    secondary_instruments: list[str] | None = None
    action_plan: list[str] | None = None
    action_plan_source: ActionPlanSource | None = None
    insights: dict[str, Any] | None = None

    completed_at: datetime | None = None
    digest_sent_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PartialCaptureCreate(BaseModel):
    variant: str | None = None
    answers: dict[str, Any] = Field(default_factory=dict)
    last_step: int | None = Field(default=None, ge=1)


class PartialCaptureResponse(BaseModel):
    id: str
    status: SubmissionStatus
    last_step: int


class ProgressUpdate(BaseModel):
    last_step: int = Field(ge=1)


class SubmissionCreate(BaseModel):
    variant: str | None = None
    answers: dict[str, Any] = Field(default_factory=dict)
    partial_id: str | None = None
    enrich: bool = True


class SubmissionOut(BaseSchema):
    id: str
    variant: str
    status: SubmissionStatus
    source: str
    parent_name: str | None = None
    child_name: str | None = None
    last_step: int
    score: int | None = None
    band: str | None = None
    band_label: str | None = None
    band_description: str | None = None
    primary_instrument: str | None = None
    secondary_instruments: list[str] = Field(default_factory=list)
    action_plan: list[str] = Field(default_factory=list)
    action_plan_source: ActionPlanSource | None = None
    insights: Insights | None = None
    fallback_insights: Insights | None = None
    created_at: datetime | None = None
    completed_at: datetime | None = None

    @classmethod
    def from_record(cls, record: SubmissionRecord) -> 'SubmissionOut':
        payload = record.model_dump()
        payload['secondary_instruments'] = payload.get('secondary_instruments') or []
        payload['action_plan'] = payload.get('action_plan') or []
        return cls.model_validate(payload)
