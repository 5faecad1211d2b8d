from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from music_readiness.core.config import settings
from music_readiness.db.session import get_db
from music_readiness.modules.notifications.tasks import CeleryNotifier
from music_readiness.services.content_generation_service import ContentGenerator, OpenAIContentGenerator
from music_readiness.services.results_cache import ResultsCache
from music_readiness.services.submission_service import Notifier
from music_readiness.services.submission_store import SqlSubmissionStore, SubmissionStore
from music_readiness.utils.rate_limit import SimpleRateLimiter


results_cache = ResultsCache(max_size=settings.RESULTS_CACHE_SIZE)
public_write_limiter = SimpleRateLimiter(
    max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
    window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
)


def get_submission_store(db: Session = Depends(get_db)) -> SubmissionStore:
    return SqlSubmissionStore(db)


def get_content_generator() -> ContentGenerator | None:
    if not settings.ENRICHMENT_ENABLED or not settings.OPENAI_API_KEY:
        return None
    return OpenAIContentGenerator()


def get_notifier() -> Notifier:
    return CeleryNotifier()


def get_results_cache() -> ResultsCache:
    return results_cache


def enforce_rate_limit(request: Request) -> None:
    client_ip = request.client.host if request.client else 'unknown'
    if not public_write_limiter.hit(client_ip):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail='Too many requests. Try again later.',
        )
