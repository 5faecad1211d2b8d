import os
from collections.abc import Generator
from datetime import datetime, timezone
from typing import Any

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

TEST_DATABASE_URL = os.getenv('TEST_DATABASE_URL', 'sqlite://')

os.environ.setdefault('DATABASE_URL', TEST_DATABASE_URL)
os.environ.setdefault('APP_ENV', 'test')
os.environ.setdefault('CORS_ORIGINS', 'http://localhost:3000')
os.environ.setdefault('OPENAI_API_KEY', 'sk-test-key')
os.environ.setdefault('RESEND_API_KEY', 're_test_key')
os.environ.setdefault('TEAM_EMAIL', 'leads@example.com')
os.environ.setdefault('APP_BASE_URL', 'https://quiz.example.com')
os.environ.setdefault('BOOKING_URL', 'https://quiz.example.com/book')
os.environ.setdefault('CELERY_TASK_ALWAYS_EAGER', 'true')

from music_readiness.api import deps
from music_readiness.db.base import Base
from music_readiness.db.session import get_db
from music_readiness.main import app
from music_readiness.modules.quiz.insights import Insights
from music_readiness.modules.quiz.context import EnrichmentContext
from music_readiness.schemas.submission import SubmissionRecord
from music_readiness.services.openai_responses_service import ContentGenerationError
from music_readiness.services.submission_store import SubmissionStoreError


if TEST_DATABASE_URL.startswith('sqlite'):
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
else:
    engine = create_engine(TEST_DATABASE_URL, pool_pre_ping=True)
TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


@pytest.fixture(autouse=True)
def setup_database() -> Generator[None, None, None]:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    deps.results_cache.clear()
    deps.public_write_limiter.reset()

    yield

    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def content_generator() -> 'StubContentGenerator':
    return StubContentGenerator()


@pytest.fixture()
def notifier() -> 'RecordingNotifier':
    return RecordingNotifier()


@pytest.fixture()
def client(
    db_session: Session,
    content_generator: 'StubContentGenerator',
    notifier: 'RecordingNotifier',
) -> Generator[TestClient, None, None]:
    def _override_db() -> Generator[Session, None, None]:
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = _override_db
    app.dependency_overrides[deps.get_content_generator] = lambda: content_generator
    app.dependency_overrides[deps.get_notifier] = lambda: notifier

    with TestClient(app) as api_client:
        yield api_client

    app.dependency_overrides.clear()


class FakeSubmissionStore:
    """Dict-backed store. Flip fail_writes to simulate an unavailable database."""

    def __init__(self, events: list[str] | None = None):
        self.records: dict[str, SubmissionRecord] = {}
        self.fail_writes = False
        self.events = events if events is not None else []

    def _check(self) -> None:
        if self.fail_writes:
            raise SubmissionStoreError('database unavailable')

    def insert_partial(self, record: SubmissionRecord) -> str:
        self._check()
        self.records[record.id] = record
        self.events.append('insert_partial')
        return record.id

    def update_progress(self, submission_id: str, last_step: int) -> SubmissionRecord | None:
        self._check()
        existing = self.records.get(submission_id)
        if existing is None:
            return None
        updated = existing.model_copy(update={'last_step': max(existing.last_step, last_step)})
        self.records[submission_id] = updated
        return updated

    def update_to_complete(self, submission_id: str, record: SubmissionRecord) -> bool:
        self._check()
        if submission_id not in self.records:
            return False
        self.records[submission_id] = record
        self.events.append('update_to_complete')
        return True

    def insert_complete(self, record: SubmissionRecord) -> None:
        self._check()
        self.records[record.id] = record
        self.events.append('insert_complete')

    def fetch_by_id(self, submission_id: str) -> SubmissionRecord | None:
        return self.records.get(submission_id)

    def list_undigested_partials(self, *, created_before: datetime, limit: int = 200) -> list[SubmissionRecord]:
        rows = [
            record
            for record in self.records.values()
            if record.status == 'partial'
            and record.digest_sent_at is None
            and record.created_at is not None
            and record.created_at < created_before
        ]
        return sorted(rows, key=lambda record: record.created_at)[:limit]

    def mark_digest_sent(self, submission_ids: list[str], sent_at: datetime) -> int:
        self._check()
        for submission_id in submission_ids:
            self.records[submission_id] = self.records[submission_id].model_copy(update={'digest_sent_at': sent_at})
        return len(submission_ids)


GENERATED_PLAN = [
    'Tonight, play one of Maya\'s favorite songs and have her clap to the beat.',
    'Try a Melody Echo Game: sing a tiny 3-note pattern and have Maya echo it.',
    'Show quick clips of a drummer, guitarist, pianist and singer and ask which one she wants to be.',
    'Host a tiny living-room concert and let her pick the song.',
    'Sign Maya up for a trial lesson with an experienced instructor.',
]

GENERATED_INSIGHTS = Insights(
    profile_type='Maya is a melodic storyteller who feels every song.',
    strengths=['Maya sings on pitch.', 'Maya remembers melodies quickly.'],
    learning_style='Maya learns by ear and by playing along.',
    performer_type='Maya lights up in front of an audience.',
    instrument_reasoning='Voice lets Maya use the ear she already has.',
    superpower='Melody Maker',
)


class StubContentGenerator:
    def __init__(self) -> None:
        self.plan: list[str] = list(GENERATED_PLAN)
        self.insights: Insights = GENERATED_INSIGHTS
        self.plan_error: Exception | None = None
        self.insights_error: Exception | None = None
        self.contexts: list[EnrichmentContext] = []

    def generate_action_plan(self, context: EnrichmentContext) -> list[str]:
        self.contexts.append(context)
        if self.plan_error is not None:
            raise self.plan_error
        return self.plan

    def generate_insights(self, context: EnrichmentContext) -> Insights:
        self.contexts.append(context)
        if self.insights_error is not None:
            raise self.insights_error
        return self.insights

    def fail_all(self) -> None:
        self.plan_error = ContentGenerationError('Rate limits exceeded', status_code=429)
        self.insights_error = ContentGenerationError('Payment required', status_code=402)


class RecordingNotifier:
    def __init__(self) -> None:
        self.sent: list[SubmissionRecord] = []

    def notify(self, submission: SubmissionRecord) -> None:
        self.sent.append(submission)


def core_answers(**overrides: Any) -> dict[str, Any]:
    """Strongest token on every core question, every home instrument owned."""
    answers: dict[str, Any] = {
        'parent_name': 'Dana',
        'email': 'dana@example.com',
        'pitch': 'yes-on-tune',
        'rhythm': 'yes',
        'memory': 'yes',
        'emotional_response': 'yes',
        'humming_singing': 'all-the-time',
        'rhythm_play': 'constantly',
        'dancing': 'yes',
        'handles_correction': 'jumps-in',
        'performer_style': 'loves-showing',
        'focus_duration': '20-plus',
        'wants_to_learn': 'yes',
        'instruments_at_home': ['keyboard-piano', 'guitar-ukulele', 'drums', 'other'],
        'child_name': 'Maya',
    }
    answers.update(overrides)
    return answers


def min_core_answers(**overrides: Any) -> dict[str, Any]:
    """Weakest token on every core question, nothing owned at home."""
    answers = core_answers(
        pitch='not-really',
        rhythm='not-yet',
        memory='not-really',
        emotional_response='not-noticed',
        humming_singing='rarely',
        rhythm_play='rarely',
        dancing='no',
        handles_correction='frustrated',
        performer_style='nervous',
        focus_duration='under-5',
        wants_to_learn='no',
        instruments_at_home=['not-yet'],
    )
    answers.update(overrides)
    return answers


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)
