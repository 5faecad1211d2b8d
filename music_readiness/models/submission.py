from datetime import datetime
from typing import Any

from sqlalchemy import JSON, CheckConstraint, DateTime, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from music_readiness.db.base_class import Base
from music_readiness.models.constants import ACTION_PLAN_SOURCE_VALUES, SUBMISSION_STATUS_VALUES
from music_readiness.models.mixins import StringPrimaryKeyMixin, TimestampMixin


JSONType = JSON().with_variant(JSONB(), 'postgresql')


def _in_values(column: str, values: list[str]) -> str:
    quoted = ', '.join(f"'{value}'" for value in values)
    return f'{column} in ({quoted})'


class Submission(StringPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = 'submissions'
    __table_args__ = (
        CheckConstraint(_in_values('status', SUBMISSION_STATUS_VALUES), name='ck_submissions_status'),
        CheckConstraint(
            f"action_plan_source is null or {_in_values('action_plan_source', ACTION_PLAN_SOURCE_VALUES)}",
            name='ck_submissions_action_plan_source',
        ),
    )

    variant: Mapped[str] = mapped_column(String(32), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default='partial')
    source: Mapped[str] = mapped_column(String(120), nullable=False)

    parent_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    child_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    child_age: Mapped[int | None] = mapped_column(Integer, nullable=True)

    last_step: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    answers: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)

    score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    band: Mapped[str | None] = mapped_column(String(32), nullable=True)
    band_label: Mapped[str | None] = mapped_column(String(64), nullable=True)
    band_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    primary_instrument: Mapped[str | None] = mapped_column(String(32), nullable=True)
    secondary_instruments: Mapped[list[str] | None] = mapped_column(JSONType, nullable=True)

    action_plan: Mapped[list[str] | None] = mapped_column(JSONType, nullable=True)
    action_plan_source: Mapped[str | None] = mapped_column(String(16), nullable=True)
    insights: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)

    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    digest_sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


Index('ix_submissions_status_created_at', Submission.status, Submission.created_at)
