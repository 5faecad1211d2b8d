from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status

from music_readiness.api.deps import (
    enforce_rate_limit,
    get_content_generator,
    get_notifier,
    get_results_cache,
    get_submission_store,
)
from music_readiness.modules.quiz.rubric import AnswerValidationError, UnknownVariantError
from music_readiness.schemas.submission import (
    PartialCaptureCreate,
    PartialCaptureResponse,
    ProgressUpdate,
    SubmissionCreate,
    SubmissionOut,
)
from music_readiness.services import submission_service
from music_readiness.services.content_generation_service import ContentGenerator
from music_readiness.services.identifiers import is_uuid4, is_valid_submission_id
from music_readiness.services.results_cache import ResultsCache
from music_readiness.services.submission_service import (
    Notifier,
    SubmissionNotFoundError,
    SubmissionStateError,
)
from music_readiness.services.submission_store import SubmissionStore, SubmissionStoreError


router = APIRouter(prefix='/submissions', tags=['submissions'])


def _to_http(exc: Exception) -> HTTPException:
    if isinstance(exc, AnswerValidationError):
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=exc.errors)
    if isinstance(exc, UnknownVariantError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, SubmissionNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, SubmissionStateError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail='Submission store unavailable')


def _require_partial_id(submission_id: str) -> None:
    if not is_uuid4(submission_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Invalid submission id')


@router.post(
    '/partial',
    response_model=PartialCaptureResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(enforce_rate_limit)],
)
def capture_partial(
    payload: PartialCaptureCreate,
    store: SubmissionStore = Depends(get_submission_store),
) -> PartialCaptureResponse:
    try:
        record = submission_service.capture_partial(
            store,
            payload.answers,
            variant_key=payload.variant,
            last_step=payload.last_step,
        )
    except (AnswerValidationError, UnknownVariantError, SubmissionStoreError) as exc:
        raise _to_http(exc) from exc
    return PartialCaptureResponse(id=record.id, status=record.status, last_step=record.last_step)


@router.patch(
    '/{submission_id}/progress',
    response_model=PartialCaptureResponse,
    dependencies=[Depends(enforce_rate_limit)],
)
def update_progress(
    submission_id: str,
    payload: ProgressUpdate,
    store: SubmissionStore = Depends(get_submission_store),
) -> PartialCaptureResponse:
    _require_partial_id(submission_id)
    try:
        record = submission_service.record_progress(store, submission_id, payload.last_step)
    except (
        AnswerValidationError,
        SubmissionNotFoundError,
        SubmissionStateError,
        SubmissionStoreError,
    ) as exc:
        raise _to_http(exc) from exc
    return PartialCaptureResponse(id=record.id, status=record.status, last_step=record.last_step)


@router.post(
    '',
    response_model=SubmissionOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(enforce_rate_limit)],
)
def finalize_submission(
    payload: SubmissionCreate,
    background_tasks: BackgroundTasks,
    store: SubmissionStore = Depends(get_submission_store),
    generator: ContentGenerator | None = Depends(get_content_generator),
    notifier: Notifier = Depends(get_notifier),
    cache: ResultsCache = Depends(get_results_cache),
) -> SubmissionOut:
    if payload.partial_id is not None:
        _require_partial_id(payload.partial_id)
    try:
        record = submission_service.finalize_submission(
            store,
            payload.answers,
            variant_key=payload.variant,
            partial_id=payload.partial_id,
            generator=generator,
            enrich=payload.enrich,
            cache=cache,
        )
    except (AnswerValidationError, UnknownVariantError, SubmissionStateError) as exc:
        raise _to_http(exc) from exc

    background_tasks.add_task(submission_service.notify, notifier, record)
    return submission_service.present_submission(record)


@router.get('/{submission_id}', response_model=SubmissionOut)
def get_submission(
    submission_id: str,
    store: SubmissionStore = Depends(get_submission_store),
    cache: ResultsCache = Depends(get_results_cache),
) -> SubmissionOut:
    if not is_valid_submission_id(submission_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Invalid submission id')
    try:
        record = submission_service.get_submission(store, submission_id, cache)
    except SubmissionNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Results not found') from exc
    return submission_service.present_submission(record)
