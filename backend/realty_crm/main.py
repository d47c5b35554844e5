from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import get_settings, load_environment
from .logging_config import get_logger, setup_logging
from .middleware.logging_middleware import LoggingMiddleware
from .routers import activities as activities_router
from .routers import commands as commands_router
from .routers import health as health_router
from .routers import listings as listings_router
from .routers import tasks as tasks_router
from .services.errors import ApiError

logger = get_logger(__name__)


def create_app() -> FastAPI:
    # Prefer a repo-root .env, with backend/.env allowed to override
    load_environment()
    get_settings.cache_clear()
    settings = get_settings()
    setup_logging(settings.log_level)

    app = FastAPI(title="Realty CRM Command Router", version="1.0.0")

    allowed_origins = [
        settings.frontend_url,
        "http://localhost:5173",  # Vite dev server
        "http://localhost:3000",  # Alternative dev port
    ]
    if settings.cloud_run_frontend_url:
        allowed_origins.append(settings.cloud_run_frontend_url)

    # In development, allow all origins. In production, use specific origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins if settings.is_production else ["*"],
        allow_credentials=settings.is_production,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)

    # Routers
    app.include_router(health_router.router)
    app.include_router(commands_router.router)
    app.include_router(listings_router.router)
    app.include_router(activities_router.router)
    app.include_router(tasks_router.router)

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        body = dict(exc.body)
        if settings.is_production and exc.status_code >= 500:
            body.pop("details", None)
        return JSONResponse(status_code=exc.status_code, content=body)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        fields = [".".join(str(part) for part in err["loc"] if part != "body") for err in exc.errors()]
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid input", "details": ", ".join(f for f in fields if f) or "Malformed request body"},
        )

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled error: {exc}",
            extra={"action": "unhandled_error", "extra_data": {"path": request.url.path}},
            exc_info=exc,
        )

        # Only return detailed errors in development
        if settings.is_production:
            return JSONResponse(
                status_code=500,
                content={"error": "An error occurred while processing your request"},
            )
        return JSONResponse(
            status_code=500,
            content={
                "error": "An error occurred while processing your request",
                "details": str(exc),
                "type": type(exc).__name__,
            },
        )

    return app


app = create_app()
