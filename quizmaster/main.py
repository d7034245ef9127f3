"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from quizmaster.api import (
    attempts_router,
    health_router,
    leaderboard_router,
    questions_router,
    quizzes_router,
    users_router,
)
from quizmaster.config import settings
from quizmaster.core.errors import QuizMasterError
from quizmaster.schemas.common import ErrorResponse

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s  %(name)-25s  %(levelname)-8s  %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("QuizMaster API starting (env=%s)", settings.ENV)
    yield
    logger.info("QuizMaster API shut down")


app = FastAPI(
    title="QuizMaster API",
    description="AI-generated quizzes, one-attempt grading and leaderboards",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Middleware ─────────────────────────────────────────────────────────────────

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.ALLOWED_HOSTS)

# ── Error envelope: {"error": ..., "details"?: ...} ───────────────────────────


@app.exception_handler(QuizMasterError)
async def quizmaster_error_handler(request: Request, exc: QuizMasterError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    where = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    details = f"{where}: {first.get('msg')}" if where else first.get("msg")
    return JSONResponse(
        status_code=400, content={"error": "Invalid request", "details": details}
    )


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error("Unhandled storage error on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"error": "Storage error"})


# ── Routers ───────────────────────────────────────────────────────────────────

_ERRORS = {code: {"model": ErrorResponse} for code in (400, 401, 403, 404, 409, 500)}

app.include_router(health_router, tags=["Health"])
app.include_router(users_router, prefix="/api/users", tags=["Users"], responses=_ERRORS)
app.include_router(quizzes_router, prefix="/api/quizzes", tags=["Quizzes"], responses=_ERRORS)
app.include_router(leaderboard_router, prefix="/api/quizzes", tags=["Leaderboard"], responses=_ERRORS)
app.include_router(questions_router, prefix="/api/questions", tags=["Questions"], responses=_ERRORS)
app.include_router(attempts_router, prefix="/api", tags=["Attempts"], responses=_ERRORS)


@app.get("/")
async def root():
    return {
        "name": "QuizMaster API",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/health",
    }
