"""
Study Tracker API

Start with: uvicorn study_tracker.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from study_tracker.config import settings
from study_tracker.db.base import init_db
from study_tracker.middleware.error_handling import setup_error_handling
from study_tracker.routers import analytics, health, sessions

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else settings.LOG_LEVEL.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create missing tables on startup."""
    await init_db()
    logger.info(f"{settings.APP_NAME} started")
    yield


app = FastAPI(
    title=f"{settings.APP_NAME} API",
    description="Study session tracking and productivity analytics",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_error_handling(app, debug=settings.DEBUG)

app.include_router(health.router)
app.include_router(sessions.router)
app.include_router(analytics.router)


@app.get("/")
async def root():
    return {"app": settings.APP_NAME, "docs": "/docs"}
