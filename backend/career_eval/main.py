import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Callable

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from career_eval.api.dependencies import resolve_session_id
from career_eval.api.evaluate import router as evaluate_router
from career_eval.api.sessions import router as sessions_router
from career_eval.config import DEVELOPMENT_ORIGIN_REGEX, Settings, load_settings
from career_eval.models.session import HealthResponse
from career_eval.services.evaluation_service import EvaluationService, ProviderFactory, default_provider_factory
from career_eval.services.session_store import SessionRegistry
from career_eval.services.session_sweeper import run_session_sweeper

LOGGER = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


def create_app(
    settings: Settings | None = None,
    registry: SessionRegistry | None = None,
    provider_factory: ProviderFactory = default_provider_factory,
    settings_loader: Callable[[], Settings] = load_settings,
) -> FastAPI:
    settings = settings or settings_loader()
    configure_logging(settings.log_level)
    registry = registry or SessionRegistry()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        LOGGER.info(
            "Server started (host=%s, port=%s, env=%s, apiKeyStatus=%s)",
            settings.host,
            settings.port,
            settings.app_env,
            "Configured" if settings.api_key_configured else "Missing",
        )
        sweeper = asyncio.create_task(
            run_session_sweeper(
                registry,
                interval_seconds=settings.session_sweep_interval_seconds,
                retention_seconds=settings.session_retention_seconds,
            )
        )
        try:
            yield
        finally:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper
            await app.state.evaluation_service.aclose()

    app = FastAPI(title="Career Risk Evaluator API", lifespan=lifespan)
    app.state.settings = settings
    app.state.session_registry = registry
    app.state.evaluation_service = EvaluationService(
        registry,
        provider_factory=provider_factory,
        settings_loader=settings_loader,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.allowed_origins),
        allow_origin_regex=DEVELOPMENT_ORIGIN_REGEX if settings.is_development else None,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "Authorization", "X-Session-ID"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request.state.session_id = resolve_session_id(request.headers.get("X-Session-ID"))
        LOGGER.debug(
            "Incoming %s request to %s (session=%s, activeSessions=%d)",
            request.method,
            request.url.path,
            request.state.session_id,
            registry.count(),
        )
        return await call_next(request)

    @app.exception_handler(RequestValidationError)
    async def handle_invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        LOGGER.warning("Rejected malformed request to %s: %s", request.url.path, exc.errors())
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": "Invalid request body",
                "details": _summarize_validation_errors(exc),
                "sessionId": _session_id_of(request),
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        LOGGER.exception("Unhandled error (session=%s)", _session_id_of(request))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "Internal server error",
                "details": str(exc),
                "sessionId": _session_id_of(request),
            },
        )

    @app.get("/", response_model=HealthResponse)
    def health_check() -> HealthResponse:
        return HealthResponse(
            message="Career Evaluator is running!",
            status="healthy",
            timestamp=datetime.now(timezone.utc).isoformat(),
            activeSessions=registry.count(),
        )

    app.include_router(evaluate_router)
    app.include_router(sessions_router)
    return app


def _session_id_of(request: Request) -> str:
    return getattr(request.state, "session_id", None) or resolve_session_id(request.headers.get("X-Session-ID"))


def _summarize_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()) if item != "body")
        message = str(error.get("msg", "invalid value"))
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts) or "Request body could not be parsed"


app = create_app()
