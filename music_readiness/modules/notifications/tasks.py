from __future__ import annotations

import logging
from typing import Any

from music_readiness.db.session import SessionLocal
from music_readiness.modules.notifications import digest
from music_readiness.modules.notifications.celery_app import celery_app
from music_readiness.modules.notifications.emails import build_lead_email, build_parent_email
from music_readiness.modules.notifications.resend_client import EmailDeliveryError, ResendEmailClient
from music_readiness.schemas.submission import SubmissionRecord
from music_readiness.services.submission_store import SqlSubmissionStore

logger = logging.getLogger(__name__)


@celery_app.task(name='music_readiness.modules.notifications.tasks.send_submission_emails')
def send_submission_emails(payload: dict[str, Any]) -> int:
    record = SubmissionRecord.model_validate(payload)
    client = ResendEmailClient()
    sent = 0
    for message in (build_lead_email(record), build_parent_email(record)):
        if not message.to:
            logger.warning('skipping %r for submission %s: no recipient', message.subject, record.id)
            continue
        try:
            client.send(message)
            sent += 1
        except EmailDeliveryError as exc:
            logger.error('email %r for submission %s failed: %s', message.subject, record.id, exc)
    return sent


@celery_app.task(name='music_readiness.modules.notifications.tasks.send_partial_digest')
def send_partial_digest() -> int:
    db = SessionLocal()
    try:
        return digest.send_partial_digest(SqlSubmissionStore(db), ResendEmailClient())
    finally:
        db.close()


class CeleryNotifier:
    """Hands a finalized submission to the worker queue; delivery happens off the request path."""

    def notify(self, submission: SubmissionRecord) -> None:
        send_submission_emails.delay(submission.model_dump(mode='json'))
