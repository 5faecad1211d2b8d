from fastapi import APIRouter

from music_readiness.api.v1.endpoints import health, quiz, submissions


api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(quiz.router)
api_router.include_router(submissions.router)
