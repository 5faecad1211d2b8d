import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.orm import Session

from music_readiness.api import deps
from music_readiness.models.submission import Submission

from tests.conftest import GENERATED_PLAN, RecordingNotifier, StubContentGenerator, core_answers


def test_health(client: TestClient) -> None:
    response = client.get('/api/v1/health')

    assert response.status_code == 200
    assert response.json() == {'status': 'ok', 'environment': 'test'}


def test_variant_catalogue(client: TestClient) -> None:
    listing = client.get('/api/v1/quiz/variants')
    assert listing.status_code == 200, listing.text
    payload = listing.json()
    assert payload['default_variant'] == 'core'
    assert {item['key'] for item in payload['items']} == {'core', 'full', 'express'}

    detail = client.get('/api/v1/quiz/variants/express')
    assert detail.status_code == 200, detail.text
    questions = detail.json()['questions']
    assert [question['key'] for question in questions][:2] == ['parent_name', 'email']
    pitch = next(question for question in questions if question['key'] == 'pitch')
    assert pitch['options'][0] == {'token': 'yes-on-tune', 'label': 'Yes, mostly on tune'}

    assert client.get('/api/v1/quiz/variants/legacy').status_code == 404


def test_score_preview(client: TestClient) -> None:
    response = client.post('/api/v1/quiz/score', json={'variant': 'core', 'answers': core_answers()})

    assert response.status_code == 200, response.text
    body = response.json()
    assert body['variant'] == 'core'
    assert body['score'] == 100
    assert body['band'] == 'ready-to-thrive'
    assert body['primary_instrument'] == 'Voice'

    invalid = client.post('/api/v1/quiz/score', json={'answers': {'pitch': 'loud'}})
    assert invalid.status_code == 422
    assert 'pitch' in invalid.json()['detail']


def test_full_quiz_flow_keeps_one_row(
    client: TestClient,
    db_session: Session,
    notifier: RecordingNotifier,
) -> None:
    partial = client.post(
        '/api/v1/submissions/partial',
        json={'variant': 'core', 'answers': {'parent_name': 'Dana', 'email': 'Dana@Example.com'}},
    )
    assert partial.status_code == 201, partial.text
    partial_id = partial.json()['id']
    assert partial.json()['last_step'] == 6

    progress = client.patch(f'/api/v1/submissions/{partial_id}/progress', json={'last_step': 11})
    assert progress.status_code == 200, progress.text
    assert progress.json()['last_step'] == 11

    final = client.post(
        '/api/v1/submissions',
        json={'variant': 'core', 'answers': core_answers(), 'partial_id': partial_id},
    )
    assert final.status_code == 201, final.text
    body = final.json()
    assert body['id'] == partial_id
    assert body['status'] == 'complete'
    assert body['score'] == 100
    assert body['action_plan'] == GENERATED_PLAN
    assert body['action_plan_source'] == 'generated'
    assert body['insights']['superpower'] == 'Melody Maker'
    assert body['fallback_insights'] is None
    assert 'email' not in body

    rows = db_session.scalars(select(Submission)).all()
    assert len(rows) == 1
    assert rows[0].email == 'dana@example.com'
    assert rows[0].status == 'complete'

    assert [record.id for record in notifier.sent] == [partial_id]

    lookup = client.get(f'/api/v1/submissions/{partial_id}')
    assert lookup.status_code == 200, lookup.text
    assert lookup.json()['score'] == 100

    again = client.post(
        '/api/v1/submissions',
        json={'variant': 'core', 'answers': core_answers(), 'partial_id': partial_id},
    )
    assert again.status_code == 409

    late_progress = client.patch(f'/api/v1/submissions/{partial_id}/progress', json={'last_step': 12})
    assert late_progress.status_code == 409


def test_enrichment_failure_serves_fallbacks(
    client: TestClient,
    content_generator: StubContentGenerator,
) -> None:
    content_generator.fail_all()

    response = client.post('/api/v1/submissions', json={'answers': core_answers()})

    assert response.status_code == 201, response.text
    body = response.json()
    assert body['id'].startswith('mrs_')
    assert body['action_plan_source'] == 'fallback'
    assert 2 <= len(body['action_plan']) <= 6
    assert body['insights'] is None
    assert body['fallback_insights']['superpower'] == 'Melody Maker'

    lookup = client.get(f"/api/v1/submissions/{body['id']}")
    assert lookup.status_code == 200
    assert lookup.json()['fallback_insights'] is not None


def test_invalid_submission_payloads(client: TestClient) -> None:
    answers = core_answers()
    del answers['email']

    missing = client.post('/api/v1/submissions', json={'answers': answers})
    assert missing.status_code == 422
    assert 'email' in missing.json()['detail']

    unknown_variant = client.post('/api/v1/submissions', json={'variant': 'v9', 'answers': core_answers()})
    assert unknown_variant.status_code == 404

    bad_partial = client.post('/api/v1/submissions', json={'answers': core_answers(), 'partial_id': '../etc'})
    assert bad_partial.status_code == 400

    no_contact = client.post('/api/v1/submissions/partial', json={'answers': {'parent_name': 'Dana'}})
    assert no_contact.status_code == 422


def test_results_lookup_validates_ids(client: TestClient) -> None:
    assert client.get('/api/v1/submissions/not-a-real-id').status_code == 400
    assert client.get('/api/v1/submissions/mrs_123_abc').status_code == 400

    missing = client.get('/api/v1/submissions/0b6c3f3e-8d7c-4f43-9a4e-2f3f8f6f9c11')
    assert missing.status_code == 404
    assert missing.json()['detail'] == 'Results not found'

    local_missing = client.get('/api/v1/submissions/mrs_1760000000000_abc1234')
    assert local_missing.status_code == 404

    progress = client.patch('/api/v1/submissions/mrs_1760000000000_abc1234/progress', json={'last_step': 3})
    assert progress.status_code == 400


def test_public_writes_are_rate_limited(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(deps.public_write_limiter, 'max_requests', 1)
    payload = {'answers': {'parent_name': 'Dana', 'email': 'dana@example.com'}}

    assert client.post('/api/v1/submissions/partial', json=payload).status_code == 201
    limited = client.post('/api/v1/submissions/partial', json=payload)
    assert limited.status_code == 429


def test_partial_lead_lookup_is_not_found(client: TestClient) -> None:
    partial = client.post(
        '/api/v1/submissions/partial',
        json={'answers': {'parent_name': 'Dana', 'email': 'dana@example.com'}},
    )
    assert partial.status_code == 201, partial.text

    lookup = client.get(f"/api/v1/submissions/{partial.json()['id']}")
    assert lookup.status_code == 404
    assert lookup.json()['detail'] == 'Results not found'


def test_finalize_on_another_variant_conflicts(client: TestClient) -> None:
    partial = client.post(
        '/api/v1/submissions/partial',
        json={'variant': 'express', 'answers': {'parent_name': 'Dana', 'email': 'dana@example.com'}},
    )
    assert partial.status_code == 201, partial.text

    final = client.post(
        '/api/v1/submissions',
        json={'variant': 'core', 'answers': core_answers(), 'partial_id': partial.json()['id']},
    )
    assert final.status_code == 409
