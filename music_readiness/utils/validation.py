from __future__ import annotations

import re

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x1f\x7f]")


def validate_email_loose(value: str) -> str:
    """
    Parents type their address on a phone keyboard mid-quiz, so we only
    enforce a reasonable email shape and normalize casing/whitespace.
    Deliverability is the email provider's problem.
    """

    if not isinstance(value, str):
        raise TypeError("Email must be a string")

    email = value.strip().lower()
    if len(email) < 3 or len(email) > 255:
        raise ValueError("Enter a valid email address")
    if not _EMAIL_RE.match(email):
        raise ValueError("Enter a valid email address")

    return email


def clean_text(value: str, limit: int) -> str:
    cleaned = _CONTROL_CHARS_RE.sub(" ", value or "")
    cleaned = re.sub(r"\s+", " ", cleaned).strip()
    return cleaned[:limit]
