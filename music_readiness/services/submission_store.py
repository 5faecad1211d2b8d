from __future__ import annotations

import logging
from datetime import datetime
from typing import Protocol

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from music_readiness.models.submission import Submission
from music_readiness.schemas.submission import SubmissionRecord

logger = logging.getLogger(__name__)


class SubmissionStoreError(RuntimeError):
    pass


class SubmissionStore(Protocol):
    """
    Passive record keeper for submissions. Status rules live in the
    lifecycle manager; stores only read and write rows.
    """

    def insert_partial(self, record: SubmissionRecord) -> str:
        ...

    def update_progress(self, submission_id: str, last_step: int) -> SubmissionRecord | None:
        ...

    def update_to_complete(self, submission_id: str, record: SubmissionRecord) -> bool:
        ...

    def insert_complete(self, record: SubmissionRecord) -> None:
        ...

    def fetch_by_id(self, submission_id: str) -> SubmissionRecord | None:
        ...

    def list_undigested_partials(self, *, created_before: datetime, limit: int = 200) -> list[SubmissionRecord]:
        ...

    def mark_digest_sent(self, submission_ids: list[str], sent_at: datetime) -> int:
        ...


_COMPLETION_FIELDS = (
    'variant',
    'status',
    'source',
    'parent_name',
    'child_name',
    'email',
    'phone',
    'child_age',
    'last_step',
    'answers',
    'score',
    'band',
    'band_label',
    'band_description',
    'primary_instrument',
    'secondary_instruments',
    'action_plan',
    'action_plan_source',
    'insights',
    'completed_at',
)


class SqlSubmissionStore:
    def __init__(self, db: Session):
        self.db = db

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error('submission store %s failed: %s', action, exc)
            raise SubmissionStoreError(f'Could not {action} submission') from exc

    def insert_partial(self, record: SubmissionRecord) -> str:
        row = Submission(**record.model_dump(exclude={'updated_at'}, exclude_none=True))
        self.db.add(row)
        self._commit('insert partial')
        return row.id

    def update_progress(self, submission_id: str, last_step: int) -> SubmissionRecord | None:
        row = self._get(submission_id)
        if row is None:
            return None
        row.last_step = max(row.last_step, last_step)
        self._commit('update progress of')
        return SubmissionRecord.model_validate(row)

    def update_to_complete(self, submission_id: str, record: SubmissionRecord) -> bool:
        row = self._get(submission_id)
        if row is None:
            return False
        for field in _COMPLETION_FIELDS:
            setattr(row, field, getattr(record, field))
        self._commit('complete')
        return True

    def insert_complete(self, record: SubmissionRecord) -> None:
        self.db.add(Submission(**record.model_dump(exclude={'updated_at'}, exclude_none=True)))
        self._commit('insert complete')

    def fetch_by_id(self, submission_id: str) -> SubmissionRecord | None:
        row = self._get(submission_id)
        return SubmissionRecord.model_validate(row) if row is not None else None

    def list_undigested_partials(self, *, created_before: datetime, limit: int = 200) -> list[SubmissionRecord]:
        try:
            rows = self.db.scalars(
                select(Submission)
                .where(
                    Submission.status == 'partial',
                    Submission.digest_sent_at.is_(None),
                    Submission.created_at < created_before,
                )
                .order_by(Submission.created_at.asc())
                .limit(limit)
            ).all()
        except SQLAlchemyError as exc:
            raise SubmissionStoreError('Could not list partial submissions') from exc
        return [SubmissionRecord.model_validate(row) for row in rows]

    def mark_digest_sent(self, submission_ids: list[str], sent_at: datetime) -> int:
        if not submission_ids:
            return 0
        try:
            result = self.db.execute(
                update(Submission)
                .where(Submission.id.in_(submission_ids), Submission.digest_sent_at.is_(None))
                .values(digest_sent_at=sent_at)
            )
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise SubmissionStoreError('Could not stamp digest time') from exc
        self._commit('stamp digest on')
        return result.rowcount or 0

    def _get(self, submission_id: str) -> Submission | None:
        try:
            return self.db.get(Submission, submission_id)
        except SQLAlchemyError as exc:
            raise SubmissionStoreError('Could not load submission') from exc
