from music_readiness.modules.notifications.emails import build_digest_email, build_lead_email, build_parent_email
from music_readiness.modules.notifications.resend_client import EmailDeliveryError, EmailMessage, ResendEmailClient

__all__ = [
    'EmailDeliveryError',
    'EmailMessage',
    'ResendEmailClient',
    'build_digest_email',
    'build_lead_email',
    'build_parent_email',
]
