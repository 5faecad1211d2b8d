from fastapi import APIRouter, HTTPException, status

from music_readiness.core.config import settings
from music_readiness.modules.quiz.rubric import AnswerValidationError, UnknownVariantError
from music_readiness.modules.quiz.scoring import calculate_readiness_score
from music_readiness.modules.quiz.variants import VARIANTS, get_variant
from music_readiness.schemas.quiz import (
    ScorePreviewRequest,
    ScorePreviewResponse,
    VariantListResponse,
    VariantOut,
    VariantSummary,
)


router = APIRouter(prefix='/quiz', tags=['quiz'])


@router.get('/variants', response_model=VariantListResponse)
def list_variants() -> VariantListResponse:
    return VariantListResponse(
        default_variant=settings.QUIZ_DEFAULT_VARIANT,
        items=[
            VariantSummary(
                key=variant.key,
                label=variant.label,
                total_steps=variant.total_steps,
                contact_capture_step=variant.contact_capture_step,
            )
            for variant in VARIANTS.values()
        ],
    )


@router.get('/variants/{variant_key}', response_model=VariantOut)
def get_variant_detail(variant_key: str) -> VariantOut:
    try:
        variant = get_variant(variant_key)
    except UnknownVariantError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return VariantOut.from_variant(variant)


@router.post('/score', response_model=ScorePreviewResponse)
def score_preview(payload: ScorePreviewRequest) -> ScorePreviewResponse:
    try:
        variant = get_variant(payload.variant or settings.QUIZ_DEFAULT_VARIANT)
        answers = variant.validate_answers(payload.answers, partial=True)
    except UnknownVariantError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except AnswerValidationError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=exc.errors) from exc

    result = calculate_readiness_score(answers, variant)
    return ScorePreviewResponse(variant=variant.key, **result.model_dump())
