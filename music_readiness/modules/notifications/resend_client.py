from __future__ import annotations

import logging
from dataclasses import dataclass, field

import httpx

from music_readiness.core.config import settings

logger = logging.getLogger(__name__)


class EmailDeliveryError(RuntimeError):
    pass


@dataclass(frozen=True)
class EmailMessage:
    to: list[str]
    subject: str
    text: str
    reply_to: list[str] = field(default_factory=list)


class ResendEmailClient:
    """Thin client for the Resend HTTP API. Plain-text bodies only."""

    def __init__(
        self,
        api_key: str | None = None,
        *,
        api_base: str | None = None,
        sender: str | None = None,
        transport: httpx.BaseTransport | None = None,
        timeout_seconds: float = 15.0,
    ):
        self.api_key = api_key if api_key is not None else settings.RESEND_API_KEY
        self.api_base = (api_base or settings.RESEND_API_BASE).rstrip('/')
        self.sender = sender or settings.EMAIL_FROM
        self.transport = transport
        self.timeout = httpx.Timeout(timeout_seconds)

    def send(self, message: EmailMessage) -> str | None:
        if not self.api_key:
            raise EmailDeliveryError('RESEND_API_KEY is not configured')

        body: dict[str, object] = {
            'from': self.sender,
            'to': message.to,
            'subject': message.subject,
            'text': message.text,
        }
        if message.reply_to:
            body['reply_to'] = message.reply_to

        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                resp = client.post(
                    f'{self.api_base}/emails',
                    headers={'Authorization': f'Bearer {self.api_key}', 'Content-Type': 'application/json'},
                    json=body,
                )
        except httpx.HTTPError as exc:
            raise EmailDeliveryError(f'Resend request failed: {exc}') from exc

        if not resp.is_success:
            raise EmailDeliveryError(f'Resend error {resp.status_code}: {resp.text[:500]}')

        email_id = resp.json().get('id') if resp.content else None
        logger.info('sent email %r to %s (id=%s)', message.subject, ', '.join(message.to), email_id)
        return email_id
