# assessment_engine/main.py
import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from assessment_engine.api.v1.endpoints import health, homework, notifications, quizzes, reviews
from assessment_engine.core.config import settings
from assessment_engine.core.logging_config import setup_logging
from assessment_engine.core.rate_limit import RateLimiter, RateLimitMiddleware
from assessment_engine.db.init_db import init_db
from assessment_engine.services.errors import (
    AssessmentError,
    ConflictError,
    NotAuthorized,
    NotFoundError,
    PreconditionFailed,
)

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.PROJECT_NAME)

origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

rate_limiter = RateLimiter(
    rate=settings.RATE_LIMIT_REQUESTS,
    window=settings.RATE_LIMIT_WINDOW_SECONDS,
)
if settings.RATE_LIMIT_ENABLED:
    app.add_middleware(RateLimitMiddleware, limiter=rate_limiter)


_STATUS_BY_KIND = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (NotAuthorized, status.HTTP_403_FORBIDDEN),
    (ConflictError, status.HTTP_409_CONFLICT),
    (PreconditionFailed, status.HTTP_409_CONFLICT),
)


@app.exception_handler(AssessmentError)
def assessment_error_handler(request: Request, exc: AssessmentError):
    status_code = status.HTTP_400_BAD_REQUEST
    for kind, code in _STATUS_BY_KIND:
        if isinstance(exc, kind):
            status_code = code
            break
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "code": exc.code},
    )


@app.exception_handler(SQLAlchemyError)
def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Unhandled database error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error", "code": "INTERNAL"},
    )


@app.on_event("startup")
def on_startup():
    init_db()
    if settings.RATE_LIMIT_ENABLED:
        rate_limiter.start_sweeper(settings.RATE_LIMIT_SWEEP_SECONDS)
    logger.info(f"{settings.PROJECT_NAME} started")


@app.on_event("shutdown")
def on_shutdown():
    rate_limiter.stop_sweeper()


app.include_router(health.router, prefix="/api/v1")
app.include_router(homework.router, prefix="/api/v1")
app.include_router(quizzes.router, prefix="/api/v1")
app.include_router(reviews.router, prefix="/api/v1")
app.include_router(notifications.router, prefix="/api/v1")
