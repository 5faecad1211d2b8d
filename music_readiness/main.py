import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from music_readiness.api.v1.router import api_router
from music_readiness.core.config import settings


logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)


app = FastAPI(
    title='Music Readiness Score API',
    version='0.1.0',
    openapi_url='/api/v1/openapi.json',
    docs_url='/api/v1/docs',
    redoc_url='/api/v1/redoc',
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

app.include_router(api_router, prefix='/api/v1')


@app.get('/')
def root() -> dict[str, str]:
    return {'service': 'music-readiness-api', 'status': 'running'}
