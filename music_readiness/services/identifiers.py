from __future__ import annotations

import re
import secrets
import time
import uuid

_UUID4_RE = re.compile(r'[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}', re.IGNORECASE)
_LOCAL_ID_RE = re.compile(r'mrs_[0-9]{10,16}_[0-9a-z]{7}')
_BASE36 = '0123456789abcdefghijklmnopqrstuvwxyz'


def new_partial_id() -> str:
    return str(uuid.uuid4())


def new_local_id(now_ms: int | None = None) -> str:
    """Time-seeded id for submissions finalized without a tracked partial."""
    millis = int(time.time() * 1000) if now_ms is None else now_ms
    suffix = ''.join(secrets.choice(_BASE36) for _ in range(7))
    return f'mrs_{millis}_{suffix}'


def is_uuid4(value: str) -> bool:
    return isinstance(value, str) and _UUID4_RE.fullmatch(value) is not None


def is_valid_submission_id(value: str | None) -> bool:
    if not isinstance(value, str):
        return False
    return _UUID4_RE.fullmatch(value) is not None or _LOCAL_ID_RE.fullmatch(value) is not None
