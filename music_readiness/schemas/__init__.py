from music_readiness.schemas.quiz import (
    ScorePreviewRequest,
    ScorePreviewResponse,
    VariantListResponse,
    VariantOut,
    VariantSummary,
)
from music_readiness.schemas.submission import (
    PartialCaptureCreate,
    PartialCaptureResponse,
    ProgressUpdate,
    SubmissionCreate,
    SubmissionOut,
    SubmissionRecord,
)
