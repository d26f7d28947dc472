from contextlib import asynccontextmanager
from pathlib import Path

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from app.api.privileged import router as privileged_router
from app.api.v1.api import api_router
from app.core.config import settings
from app.core.database import engine, init_db
from app.core.errors import AppError
from app.core.logging import configure_logging

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    await init_db()
    logger.info("Application started", project=settings.PROJECT_NAME)
    yield
    await engine.dispose()
    logger.info("Application stopped")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="Personal notes with an admin dashboard",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """Render application errors as {"error": message}."""
    if exc.status_code >= 500:
        logger.error(
            "Request failed",
            path=request.url.path,
            code=exc.code,
            error=exc.message,
            details=str(exc.details) if exc.details else None,
        )
    else:
        logger.info(
            "Request rejected",
            path=request.url.path,
            code=exc.code,
            status_code=exc.status_code,
        )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


FIELD_LABELS = {"userId": "User ID", "body": "Request body"}


def _validation_message(exc: RequestValidationError) -> str:
    error = exc.errors()[0]
    field = str(error["loc"][-1]) if error.get("loc") else "body"
    label = FIELD_LABELS.get(field, field)
    # An empty id counts as a missing one
    if error.get("type") == "missing" or (
        field == "userId" and error.get("type") == "string_too_short"
    ):
        return f"{label} is required"
    return f"Invalid {label}"


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Render malformed request bodies as 400 {"error": message}."""
    message = _validation_message(exc)
    logger.info(
        "Request rejected",
        path=request.url.path,
        code="VALIDATION_ERROR",
        error=message,
    )
    return JSONResponse(status_code=400, content={"error": message})


@app.get("/health", tags=["health"])
async def health_check():
    """Basic service health check."""
    return {"status": "healthy"}


app.include_router(api_router, prefix=settings.API_V1_STR)

# Server-only routes holding the service credential
app.include_router(privileged_router, prefix="/api", tags=["privileged"])

# Public URLs for stored avatar objects
Path(settings.UPLOAD_PATH).mkdir(parents=True, exist_ok=True)
app.mount("/storage", StaticFiles(directory=settings.UPLOAD_PATH), name="storage")
