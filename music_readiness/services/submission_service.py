from __future__ import annotations

import logging
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Protocol

from music_readiness.core.config import settings
from music_readiness.modules.quiz.action_plan import child_name, generate_action_plan
from music_readiness.modules.quiz.context import build_enrichment_context
from music_readiness.modules.quiz.insights import Insights, build_default_insights
from music_readiness.modules.quiz.rubric import AnswerValidationError, QuizVariant
from music_readiness.modules.quiz.scoring import ScoredAnswers, score_answers
from music_readiness.modules.quiz.variants import get_variant
from music_readiness.schemas.submission import SubmissionOut, SubmissionRecord
from music_readiness.services.content_generation_service import ContentGenerator
from music_readiness.services.identifiers import new_local_id, new_partial_id
from music_readiness.services.results_cache import ResultsCache
from music_readiness.services.submission_store import SubmissionStore, SubmissionStoreError

logger = logging.getLogger(__name__)


class SubmissionStateError(RuntimeError):
    pass


class SubmissionNotFoundError(LookupError):
    pass


class Notifier(Protocol):
    def notify(self, submission: SubmissionRecord) -> None:
        ...


def _now() -> datetime:
    return datetime.now(timezone.utc)


def resolve_variant(variant_key: str | None) -> QuizVariant:
    return get_variant(variant_key or settings.QUIZ_DEFAULT_VARIANT)


def capture_partial(
    store: SubmissionStore,
    answers: Mapping[str, Any],
    *,
    variant_key: str | None = None,
    last_step: int | None = None,
) -> SubmissionRecord:
    """
    Persist a lead as soon as contact details exist. Only name, email and the
    progress marker are stored; answers arrive with the final submission.
    """
    variant = resolve_variant(variant_key)
    cleaned = variant.validate_answers(answers, partial=True)

    required_contact = [key for key in variant.contact_keys if variant.question(key).required]
    missing = {key: 'This question is required' for key in required_contact if key not in cleaned}
    if missing:
        raise AnswerValidationError(missing)

    step = last_step or variant.contact_capture_step
    if step > variant.total_steps:
        raise AnswerValidationError({'last_step': f'Must be at most {variant.total_steps}'})

    record = SubmissionRecord(
        id=new_partial_id(),
        variant=variant.key,
        status='partial',
        source=settings.SUBMISSION_SOURCE,
        parent_name=cleaned.get('parent_name'),
        email=cleaned.get('email'),
        last_step=step,
        created_at=_now(),
    )
    store.insert_partial(record)
    logger.info('captured partial submission %s (variant=%s step=%s)', record.id, variant.key, step)
    return record


def record_progress(store: SubmissionStore, submission_id: str, last_step: int) -> SubmissionRecord:
    existing = store.fetch_by_id(submission_id)
    if existing is None:
        raise SubmissionNotFoundError('Submission not found')
    if existing.status == 'complete':
        raise SubmissionStateError('Submission is already complete')

    variant = resolve_variant(existing.variant)
    if last_step > variant.total_steps:
        raise AnswerValidationError({'last_step': f'Must be at most {variant.total_steps}'})

    updated = store.update_progress(submission_id, last_step)
    if updated is None:
        raise SubmissionNotFoundError('Submission not found')
    return updated


def _enrich(generator: ContentGenerator, scored: ScoredAnswers) -> tuple[list[str] | None, Insights | None]:
    """Run both generators side by side; each failure is independent and only logged."""
    context = build_enrichment_context(scored)
    plan: list[str] | None = None
    insights: Insights | None = None

    with ThreadPoolExecutor(max_workers=2, thread_name_prefix='enrichment') as pool:
        plan_future = pool.submit(generator.generate_action_plan, context)
        insights_future = pool.submit(generator.generate_insights, context)

        try:
            plan = plan_future.result()
        except Exception as exc:  # noqa: BLE001
            logger.warning('action plan generation failed, keeping fallback plan: %s', exc)
        try:
            insights = insights_future.result()
        except Exception as exc:  # noqa: BLE001
            logger.warning('insights generation failed, leaving insights empty: %s', exc)

    return plan, insights


def _fetch_quietly(store: SubmissionStore, submission_id: str) -> SubmissionRecord | None:
    try:
        return store.fetch_by_id(submission_id)
    except SubmissionStoreError as exc:
        logger.error('could not load submission %s before finalizing: %s', submission_id, exc)
        return None


def finalize_submission(
    store: SubmissionStore,
    answers: Mapping[str, Any],
    *,
    variant_key: str | None = None,
    partial_id: str | None = None,
    generator: ContentGenerator | None = None,
    enrich: bool = True,
    cache: ResultsCache | None = None,
) -> SubmissionRecord:
    existing: SubmissionRecord | None = None
    if partial_id is not None:
        existing = _fetch_quietly(store, partial_id)
        if existing is not None and existing.status == 'complete':
            raise SubmissionStateError('Submission is already complete')

    if existing is not None and variant_key is None:
        variant_key = existing.variant
    variant = resolve_variant(variant_key)
    if existing is not None and existing.variant != variant.key:
        raise SubmissionStateError(
            f'Submission was started on the {existing.variant!r} quiz, not {variant.key!r}'
        )
    cleaned = variant.validate_answers(answers)
    scored = score_answers(cleaned, variant)
    submission_id = partial_id or new_local_id()

    action_plan = generate_action_plan(scored)
    action_plan_source = 'fallback'
    insights: Insights | None = None
    if enrich and generator is not None and settings.ENRICHMENT_ENABLED:
        generated_plan, insights = _enrich(generator, scored)
        if generated_plan:
            action_plan = generated_plan
            action_plan_source = 'generated'

    result = scored.result
    now = _now()
    record = SubmissionRecord(
        id=submission_id,
        variant=variant.key,
        status='complete',
        source=settings.SUBMISSION_SOURCE,
        parent_name=cleaned.get('parent_name'),
        child_name=child_name(cleaned),
        email=cleaned.get('email'),
        phone=cleaned.get('phone'),
        child_age=cleaned.get('child_age'),
        last_step=variant.total_steps,
        answers=cleaned,
        score=result.score,
        band=result.band,
        band_label=result.band_label,
        band_description=result.band_description,
        primary_instrument=result.primary_instrument,
        secondary_instruments=list(result.secondary_instruments),
        action_plan=action_plan,
        action_plan_source=action_plan_source,
        insights=insights.model_dump() if insights is not None else None,
        completed_at=now,
        created_at=existing.created_at if existing is not None and existing.created_at else now,
    )

    try:
        if existing is None or not store.update_to_complete(submission_id, record):
            store.insert_complete(record)
    except SubmissionStoreError as exc:
        logger.error('could not persist submission %s, serving it from the results cache: %s', submission_id, exc)

    if cache is not None:
        cache.put(record)
    logger.info(
        'finalized submission %s (variant=%s score=%s band=%s plan=%s)',
        submission_id,
        variant.key,
        result.score,
        result.band,
        action_plan_source,
    )
    return record


def notify(notifier: Notifier | None, submission: SubmissionRecord) -> None:
    if notifier is None:
        return
    try:
        notifier.notify(submission)
    except Exception as exc:  # noqa: BLE001
        logger.warning('notification dispatch failed for submission %s: %s', submission.id, exc)


def get_submission(store: SubmissionStore, submission_id: str, cache: ResultsCache | None = None) -> SubmissionRecord:
    record: SubmissionRecord | None = None
    try:
        record = store.fetch_by_id(submission_id)
    except SubmissionStoreError as exc:
        logger.error('store lookup failed for %s, trying the results cache: %s', submission_id, exc)

    # a failed promotion leaves the stored row partial while the cache holds the finished copy
    if (record is None or record.status != 'complete') and cache is not None:
        cached = cache.get(submission_id)
        if cached is not None and cached.status == 'complete':
            record = cached
    if record is None or record.status != 'complete':
        raise SubmissionNotFoundError('Results not found')
    return record


def present_submission(record: SubmissionRecord) -> SubmissionOut:
    out = SubmissionOut.from_record(record)
    if record.status == 'complete' and record.insights is None:
        variant = resolve_variant(record.variant)
        out.fallback_insights = build_default_insights(score_answers(record.answers, variant))
    return out


@dataclass
class QuizSession:
    """One respondent's pass through the quiz. Holds the partial id so contact capture happens once."""

    store: SubmissionStore
    variant_key: str | None = None
    partial_id: str | None = None

    def capture_contact(self, answers: Mapping[str, Any], *, last_step: int | None = None) -> str:
        if self.partial_id is None:
            self.partial_id = capture_partial(
                self.store,
                answers,
                variant_key=self.variant_key,
                last_step=last_step,
            ).id
        return self.partial_id

    def finish(
        self,
        answers: Mapping[str, Any],
        *,
        generator: ContentGenerator | None = None,
        cache: ResultsCache | None = None,
    ) -> SubmissionRecord:
        return finalize_submission(
            self.store,
            answers,
            variant_key=self.variant_key,
            partial_id=self.partial_id,
            generator=generator,
            cache=cache,
        )
