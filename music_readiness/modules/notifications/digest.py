from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Protocol

from music_readiness.core.config import settings
from music_readiness.modules.notifications.emails import build_digest_email
from music_readiness.modules.notifications.resend_client import EmailMessage
from music_readiness.services.submission_store import SubmissionStore, SubmissionStoreError

logger = logging.getLogger(__name__)


class EmailSender(Protocol):
    def send(self, message: EmailMessage) -> str | None:
        ...


def send_partial_digest(store: SubmissionStore, sender: EmailSender, *, now: datetime | None = None) -> int:
    """
    Email the team every partial lead that is old enough and was never
    reported, then stamp those rows. Returns the number of leads reported.
    Delivery errors propagate so the next run retries the same rows.
    """
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(minutes=settings.PARTIAL_DIGEST_MIN_AGE_MINUTES)
    partials = store.list_undigested_partials(created_before=cutoff)
    if not partials:
        logger.info('no partial submissions to report')
        return 0

    sender.send(build_digest_email(partials))

    ids = [record.id for record in partials]
    try:
        stamped = store.mark_digest_sent(ids, now)
        logger.info('partial digest sent for %s submissions (%s stamped)', len(ids), stamped)
    except SubmissionStoreError as exc:
        logger.error('digest sent but digest_sent_at was not stamped for %s: %s', ids, exc)
    return len(partials)
