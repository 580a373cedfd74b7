# hairscan/main.py
import logging
from typing import Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from .config import Settings, settings as default_settings
from .directory import DirectoryStore
from .errors import InvalidInput
from .gateway import AnalysisGateway
from .models import (
    AnalysisResult,
    AnalyzeRequest,
    DoctorQuery,
    DoctorsResponse,
    ErrorResponse,
    HealthStatus,
)
from .tips import TipProvider

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_class=PlainTextResponse)
async def root():
    """Liveness check"""
    return "Backend Running"


@router.get("/health", response_model=HealthStatus)
async def health_check(request: Request):
    directory: DirectoryStore = request.app.state.directory
    app_settings: Settings = request.app.state.settings
    return HealthStatus(
        status="degraded" if directory.is_fallback else "healthy",
        doctors_loaded=len(directory),
        dataset_fallback=directory.is_fallback,
        model=app_settings.gemini_model,
    )


@router.post("/api/analyze", response_model=AnalysisResult, responses={400: {"model": ErrorResponse}})
async def analyze(payload: AnalyzeRequest, request: Request):
    """
    Grade hair loss in a scalp photo.

    Provider failures come back as a degraded result with grade "Error" and
    HTTP 200; malformed input is a 400 with an error body.
    """
    if not payload.base64Image or not payload.mimeType:
        raise InvalidInput("Missing image data")

    gateway: AnalysisGateway = request.app.state.gateway
    return await gateway.analyze_or_degrade(payload.base64Image, payload.mimeType)


@router.post("/api/doctors", response_model=DoctorsResponse, responses={400: {"model": ErrorResponse}})
async def find_doctors(query: DoctorQuery, request: Request):
    # specialty is only a client hint; the directory is dermatology-only already
    directory: DirectoryStore = request.app.state.directory
    return DoctorsResponse(doctors=directory.find(query.location))


async def invalid_input_handler(request: Request, exc: InvalidInput):
    return JSONResponse({"error": str(exc)}, status_code=400)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.info(f"Rejected malformed body on {request.url.path}: {exc.errors()}")
    return JSONResponse({"error": "Invalid request body"}, status_code=400)


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.url.path}")
    return JSONResponse({"error": "Internal server error"}, status_code=500)


def create_app(
    settings: Optional[Settings] = None,
    directory: Optional[DirectoryStore] = None,
    gateway: Optional[AnalysisGateway] = None,
) -> FastAPI:
    """
    Build the API. The practitioner directory is loaded before the app is
    returned, so every request sees the complete dataset or its fallback.
    """
    settings = settings or default_settings
    if directory is None:
        directory = DirectoryStore.load(settings.doctors_csv)
    if gateway is None:
        gateway = AnalysisGateway(settings, TipProvider())

    app = FastAPI(
        title="Hair Loss Analyzer API",
        description="Scalp photo hair-loss grading with Gemini and a dermatologist directory",
        version="1.0.0",
    )
    app.state.settings = settings
    app.state.directory = directory
    app.state.gateway = gateway

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.add_exception_handler(InvalidInput, invalid_input_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(router)
    return app
