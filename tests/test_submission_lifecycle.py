import threading

import pytest

from music_readiness.modules.quiz.action_plan import generate_action_plan
from music_readiness.modules.quiz.rubric import AnswerValidationError
from music_readiness.modules.quiz.scoring import score_answers
from music_readiness.modules.quiz.variants import get_variant
from music_readiness.services import submission_service
from music_readiness.services.identifiers import is_uuid4, is_valid_submission_id
from music_readiness.services.openai_responses_service import ContentGenerationError
from music_readiness.services.results_cache import ResultsCache
from music_readiness.services.submission_service import (
    QuizSession,
    SubmissionNotFoundError,
    SubmissionStateError,
)

from tests.conftest import (
    GENERATED_INSIGHTS,
    GENERATED_PLAN,
    FakeSubmissionStore,
    RecordingNotifier,
    StubContentGenerator,
    core_answers,
)


def test_capture_then_finalize_keeps_one_record() -> None:
    store = FakeSubmissionStore()
    session = QuizSession(store=store, variant_key='core')

    partial_id = session.capture_contact({'parent_name': 'Dana', 'email': 'dana@example.com'})
    assert session.capture_contact({'parent_name': 'Dana', 'email': 'dana@example.com'}) == partial_id
    assert is_uuid4(partial_id)
    assert store.records[partial_id].status == 'partial'
    assert store.records[partial_id].last_step == 6
    assert store.records[partial_id].answers == {}

    record = session.finish(core_answers())

    assert record.id == partial_id
    assert list(store.records) == [partial_id]
    assert store.records[partial_id].status == 'complete'
    assert store.events == ['insert_partial', 'update_to_complete']


def test_finalize_without_partial_uses_local_id() -> None:
    store = FakeSubmissionStore()

    record = submission_service.finalize_submission(store, core_answers(), variant_key='core')

    assert record.id.startswith('mrs_')
    assert is_valid_submission_id(record.id)
    assert store.events == ['insert_complete']


def test_finalize_fills_every_result_field() -> None:
    store = FakeSubmissionStore()

    record = submission_service.finalize_submission(store, core_answers(child_age=8, phone='555-0100'))

    assert record.variant == 'core'
    assert record.status == 'complete'
    assert record.source == 'Music Readiness Score'
    assert record.score == 100
    assert record.band == 'ready-to-thrive'
    assert record.primary_instrument == 'Voice'
    assert record.secondary_instruments == ['Drums', 'Piano']
    assert record.child_name == 'Maya'
    assert record.child_age == 8
    assert record.phone == '555-0100'
    assert record.last_step == 15
    assert record.completed_at is not None
    assert record.action_plan_source == 'fallback'
    assert record.insights is None


def test_enrichment_failure_keeps_fallback_plan() -> None:
    store = FakeSubmissionStore()
    generator = StubContentGenerator()
    generator.fail_all()
    answers = core_answers()

    record = submission_service.finalize_submission(store, answers, generator=generator)

    expected = generate_action_plan(score_answers(get_variant('core').validate_answers(answers), get_variant('core')))
    assert record.status == 'complete'
    assert record.action_plan == expected
    assert record.action_plan
    assert record.action_plan_source == 'fallback'
    assert record.insights is None
    assert store.records[record.id].status == 'complete'


def test_enrichment_success_overrides_fallback() -> None:
    store = FakeSubmissionStore()
    generator = StubContentGenerator()

    record = submission_service.finalize_submission(store, core_answers(), generator=generator)

    assert record.action_plan == GENERATED_PLAN
    assert record.action_plan_source == 'generated'
    assert record.insights == GENERATED_INSIGHTS.model_dump()
    assert generator.contexts[0].child_name == 'Maya'


def test_enrichment_calls_fail_independently() -> None:
    generator = StubContentGenerator()
    generator.insights_error = ContentGenerationError('upstream timeout')

    record = submission_service.finalize_submission(FakeSubmissionStore(), core_answers(), generator=generator)

    assert record.action_plan == GENERATED_PLAN
    assert record.insights is None


def test_enrichment_runs_in_parallel_before_persisting() -> None:
    events: list[str] = []
    barrier = threading.Barrier(2, timeout=5)

    class BarrierGenerator(StubContentGenerator):
        def generate_action_plan(self, context):
            barrier.wait()
            events.append('plan')
            return super().generate_action_plan(context)

        def generate_insights(self, context):
            barrier.wait()
            events.append('insights')
            return super().generate_insights(context)

    store = FakeSubmissionStore(events=events)

    record = submission_service.finalize_submission(store, core_answers(), generator=BarrierGenerator())

    assert record.action_plan_source == 'generated'
    assert record.insights is not None
    assert sorted(events[:2]) == ['insights', 'plan']
    assert events[-1] == 'insert_complete'


def test_enrich_flag_skips_generator() -> None:
    generator = StubContentGenerator()

    record = submission_service.finalize_submission(
        FakeSubmissionStore(), core_answers(), generator=generator, enrich=False
    )

    assert generator.contexts == []
    assert record.action_plan_source == 'fallback'


def test_persistence_failure_still_returns_cached_results() -> None:
    store = FakeSubmissionStore()
    store.fail_writes = True
    cache = ResultsCache(max_size=10)

    record = submission_service.finalize_submission(store, core_answers(), cache=cache)

    assert record.status == 'complete'
    assert store.records == {}
    assert submission_service.get_submission(store, record.id, cache) == record


def test_complete_submission_cannot_be_completed_again() -> None:
    store = FakeSubmissionStore()
    session = QuizSession(store=store)
    session.capture_contact({'parent_name': 'Dana', 'email': 'dana@example.com'})
    session.finish(core_answers())

    with pytest.raises(SubmissionStateError):
        session.finish(core_answers())


def test_missing_partial_is_recreated_under_same_id() -> None:
    store = FakeSubmissionStore()
    partial_id = '0b6c3f3e-8d7c-4f43-9a4e-2f3f8f6f9c11'

    record = submission_service.finalize_submission(store, core_answers(), partial_id=partial_id)

    assert record.id == partial_id
    assert store.events == ['insert_complete']


def test_record_progress_rules() -> None:
    store = FakeSubmissionStore()
    partial = submission_service.capture_partial(store, {'parent_name': 'Dana', 'email': 'dana@example.com'})

    assert submission_service.record_progress(store, partial.id, 9).last_step == 9
    assert submission_service.record_progress(store, partial.id, 7).last_step == 9

    with pytest.raises(AnswerValidationError):
        submission_service.record_progress(store, partial.id, 16)
    with pytest.raises(SubmissionNotFoundError):
        submission_service.record_progress(store, '0b6c3f3e-8d7c-4f43-9a4e-2f3f8f6f9c11', 3)

    submission_service.finalize_submission(store, core_answers(), partial_id=partial.id)
    with pytest.raises(SubmissionStateError):
        submission_service.record_progress(store, partial.id, 15)


def test_capture_partial_requires_contact_fields() -> None:
    store = FakeSubmissionStore()

    with pytest.raises(AnswerValidationError) as exc_info:
        submission_service.capture_partial(store, {'parent_name': 'Dana'})

    assert set(exc_info.value.errors) == {'email'}
    assert store.records == {}


def test_express_partial_starts_at_step_one() -> None:
    store = FakeSubmissionStore()

    partial = submission_service.capture_partial(
        store,
        {'parent_name': 'Dana', 'email': 'dana@example.com'},
        variant_key='express',
    )

    assert partial.last_step == 1
    assert partial.variant == 'express'


def test_finalize_rejects_incomplete_answers() -> None:
    answers = core_answers()
    del answers['pitch']

    with pytest.raises(AnswerValidationError):
        submission_service.finalize_submission(FakeSubmissionStore(), answers)


def test_notify_swallows_failures() -> None:
    class BrokenNotifier:
        def notify(self, submission):
            raise RuntimeError('broker down')

    record = submission_service.finalize_submission(FakeSubmissionStore(), core_answers())

    submission_service.notify(BrokenNotifier(), record)
    submission_service.notify(None, record)

    notifier = RecordingNotifier()
    submission_service.notify(notifier, record)
    assert notifier.sent == [record]


def test_lookup_misses_raise_not_found() -> None:
    with pytest.raises(SubmissionNotFoundError):
        submission_service.get_submission(FakeSubmissionStore(), 'mrs_1760000000000_abc1234', ResultsCache())


def test_present_submission_adds_default_insights_when_missing() -> None:
    record = submission_service.finalize_submission(FakeSubmissionStore(), core_answers())

    out = submission_service.present_submission(record)

    assert out.insights is None
    assert out.fallback_insights is not None
    assert out.fallback_insights.superpower == 'Melody Maker'


def test_failed_promotion_serves_cached_results_over_stale_partial() -> None:
    store = FakeSubmissionStore()
    cache = ResultsCache(max_size=10)
    session = QuizSession(store=store, variant_key='core')
    partial_id = session.capture_contact({'parent_name': 'Dana', 'email': 'dana@example.com'})

    store.fail_writes = True
    session.finish(core_answers(), cache=cache)

    assert store.records[partial_id].status == 'partial'
    served = submission_service.get_submission(store, partial_id, cache)
    assert served.status == 'complete'
    assert served.score == 100


def test_partial_lead_is_not_served_as_results() -> None:
    store = FakeSubmissionStore()
    partial = submission_service.capture_partial(store, {'parent_name': 'Dana', 'email': 'dana@example.com'})

    with pytest.raises(SubmissionNotFoundError):
        submission_service.get_submission(store, partial.id, ResultsCache())
    with pytest.raises(SubmissionNotFoundError):
        submission_service.get_submission(store, partial.id)


def test_finalize_keeps_the_variant_the_partial_started_on() -> None:
    store = FakeSubmissionStore()
    partial = submission_service.capture_partial(
        store,
        {'parent_name': 'Dana', 'email': 'dana@example.com'},
        variant_key='express',
    )
    express_answers = {
        'parent_name': 'Dana',
        'email': 'dana@example.com',
        'pitch': 'yes-on-tune',
        'rhythm': 'yes',
        'rhythm_play': 'constantly',
        'performer_style': 'loves-showing',
        'focus_duration': '20-plus',
    }

    with pytest.raises(SubmissionStateError):
        submission_service.finalize_submission(store, core_answers(), variant_key='core', partial_id=partial.id)
    assert store.records[partial.id].status == 'partial'

    record = submission_service.finalize_submission(store, express_answers, partial_id=partial.id)
    assert record.variant == 'express'
    assert record.score == 100


def test_identifiers_reject_trailing_newline() -> None:
    assert is_uuid4('0b6c3f3e-8d7c-4f43-9a4e-2f3f8f6f9c11')
    assert not is_uuid4('0b6c3f3e-8d7c-4f43-9a4e-2f3f8f6f9c11\n')
    assert is_valid_submission_id('mrs_1760000000000_abc1234')
    assert not is_valid_submission_id('mrs_1760000000000_abc1234\n')
    assert not is_valid_submission_id('0b6c3f3e-8d7c-4f43-9a4e-2f3f8f6f9c11\n')
