"""ScholarSync API - Main Application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from scholarsync.certificates.router import router as certificates_router
from scholarsync.certificates.service import CertificateService
from scholarsync.chat.router import router as chat_router
from scholarsync.chat.service import ChatService
from scholarsync.config import get_settings
from scholarsync.core.context import get_request_id
from scholarsync.core.database import init_async_cassandra, shutdown_async_cassandra
from scholarsync.core.logging import configure_structlog, get_logger
from scholarsync.core.middleware import RequestContextMiddleware
from scholarsync.core.redis import init_redis, shutdown_redis
from scholarsync.courses.router import router as courses_router
from scholarsync.courses.service import CourseService
from scholarsync.discussions.router import router as discussions_router
from scholarsync.discussions.service import DiscussionService
from scholarsync.health import router as health_router
from scholarsync.notifications.router import router as notifications_router
from scholarsync.notifications.service import NotificationService
from scholarsync.progress.router import router as progress_router
from scholarsync.progress.service import ProgressService
from scholarsync.quizzes.router import router as quizzes_router
from scholarsync.quizzes.router import sessions_router as quiz_sessions_router
from scholarsync.quizzes.service import QuizService


# Configure logging early (before creating logger)
settings = get_settings()
configure_structlog(settings, log_dir=Path(settings.log_dir))

logger = get_logger(__name__)


# Application state for dependency injection
class AppState:
    """Application state container."""

    cassandra_session: Any = None
    course_service: CourseService | None = None
    notification_service: NotificationService | None = None
    certificate_service: CertificateService | None = None
    quiz_service: QuizService | None = None
    progress_service: ProgressService | None = None
    discussion_service: DiscussionService | None = None
    chat_service: ChatService | None = None


app_state = AppState()


def _publish_services(app: FastAPI) -> None:
    """Expose the services on app.state for request-scoped dependencies."""
    for name in (
        "course_service",
        "notification_service",
        "certificate_service",
        "quiz_service",
        "progress_service",
        "discussion_service",
        "chat_service",
    ):
        setattr(app.state, name, getattr(app_state, name))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = get_settings()
    logger.info(
        "starting_application",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    # Initialize Redis (non-critical - app works without it)
    redis_client = None
    try:
        redis_client = await init_redis()
        logger.info("redis_initialized")
    except Exception as e:
        logger.warning(
            "redis_init_skipped",
            error=str(e),
            message="Running without Redis - real-time delivery disabled",
        )

    # Initialize Cassandra (async)
    try:
        session = await init_async_cassandra()
        keyspace = settings.cassandra_keyspace
        app_state.cassandra_session = session

        app_state.course_service = CourseService(session=session, keyspace=keyspace)
        app_state.notification_service = NotificationService(
            session=session,
            keyspace=keyspace,
            redis=redis_client,
        )
        logger.info(
            "notification_service_initialized", redis_enabled=redis_client is not None
        )

        app_state.certificate_service = CertificateService(
            session=session, keyspace=keyspace
        )
        app_state.quiz_service = QuizService(
            session=session,
            keyspace=keyspace,
            notifications=app_state.notification_service,
            certificates=app_state.certificate_service,
            course_service=app_state.course_service,
        )
        app_state.progress_service = ProgressService(
            session=session,
            keyspace=keyspace,
            course_service=app_state.course_service,
            notifications=app_state.notification_service,
        )
        app_state.discussion_service = DiscussionService(
            session=session,
            keyspace=keyspace,
            notifications=app_state.notification_service,
        )
        app_state.chat_service = ChatService(
            session=session,
            keyspace=keyspace,
            redis=redis_client,
            history_limit=settings.chat_history_limit,
        )
        _publish_services(app)
        logger.info("services_initialized")
    except Exception as e:
        logger.warning(
            "database_init_skipped",
            error=str(e),
            message="Running without database connection",
        )

    yield

    # Shutdown
    logger.info("shutting_down_application")
    if app_state.quiz_service is not None:
        await app_state.quiz_service.shutdown()
    if app_state.progress_service is not None:
        app_state.progress_service.shutdown()
    await shutdown_redis()
    await shutdown_async_cassandra()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    # Starlette debug stays off so tracebacks never reach a response body;
    # the handlers below log the details instead.
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="ScholarSync learning platform API",
        debug=False,
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
    )

    # Request context middleware (must be added first - outermost)
    app.add_middleware(
        RequestContextMiddleware,
        log_requests=settings.log_requests,
        exclude_paths=settings.log_exclude_paths,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        max_age=settings.cors_max_age,
    )

    def _get_request_id_safe(request: Request) -> str | None:
        """Get request_id from request state or context."""
        if hasattr(request.state, "request_id"):
            return request.state.request_id
        return get_request_id()

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> ORJSONResponse:
        """Handle HTTP exceptions with safe error messages."""
        request_id = _get_request_id_safe(request)

        logger.warning(
            "http_exception",
            status_code=exc.status_code,
            detail=str(exc.detail),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=exc.status_code,
            content={
                "error": True,
                "message": str(exc.detail)
                if exc.status_code < status.HTTP_500_INTERNAL_SERVER_ERROR
                else "Internal server error",
                "status_code": exc.status_code,
                "request_id": request_id,
            },
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        """Handle validation errors with field-level details."""
        request_id = _get_request_id_safe(request)

        logger.warning(
            "validation_error",
            errors=exc.errors(),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": True,
                "message": "Validation error",
                "status_code": 422,
                "request_id": request_id,
                "details": [
                    {
                        "field": ".".join(str(loc) for loc in err.get("loc", [])),
                        "message": err.get("msg", "Invalid value"),
                    }
                    for err in exc.errors()
                ],
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> ORJSONResponse:
        """Catch-all handler for unhandled exceptions.

        Details are logged with the stack trace; the response stays generic.
        """
        request_id = _get_request_id_safe(request)

        logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            error_message=str(exc),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": True,
                "message": "An unexpected error occurred. Please try again later.",
                "status_code": 500,
                "request_id": request_id,
            },
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(courses_router)
    app.include_router(quizzes_router)
    app.include_router(quiz_sessions_router)
    app.include_router(progress_router)
    app.include_router(certificates_router)
    app.include_router(notifications_router)
    app.include_router(discussions_router)
    app.include_router(chat_router)

    @app.get("/", include_in_schema=False)
    async def root(request: Request) -> dict[str, str]:
        """Root endpoint."""
        return {
            "message": "ScholarSync API",
            "version": settings.app_version,
            "docs": f"{request.url}docs",
        }

    return app


app = create_app()
