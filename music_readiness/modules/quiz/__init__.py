from music_readiness.modules.quiz.action_plan import generate_action_plan
from music_readiness.modules.quiz.context import EnrichmentContext, build_enrichment_context
from music_readiness.modules.quiz.insights import Insights, build_default_insights
from music_readiness.modules.quiz.recommender import InstrumentRecommendation, recommend_instruments
from music_readiness.modules.quiz.rubric import (
    AnswerValidationError,
    InstrumentRule,
    QuestionSpec,
    QuizVariant,
    UnknownVariantError,
)
from music_readiness.modules.quiz.scoring import ScoredAnswers, ScoringResult, calculate_readiness_score, score_answers
from music_readiness.modules.quiz.variants import VARIANTS, get_variant

__all__ = [
    'AnswerValidationError',
    'EnrichmentContext',
    'Insights',
    'InstrumentRecommendation',
    'InstrumentRule',
    'QuestionSpec',
    'QuizVariant',
    'ScoredAnswers',
    'ScoringResult',
    'UnknownVariantError',
    'VARIANTS',
    'build_default_insights',
    'build_enrichment_context',
    'calculate_readiness_score',
    'generate_action_plan',
    'get_variant',
    'recommend_instruments',
    'score_answers',
]
