import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import settings
from .db import init_db
from .errors import CampusConnectError
from .logging_config import setup_logging
from .routers import (
    activities,
    admin,
    auth,
    certificates,
    enrollments,
    hours,
    notifications,
    sessions,
    students,
    users,
)
from .services.rate_limit import RateLimitExceeded, rate_limit_response

log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


def _validation_details(exc: RequestValidationError):
    details = []
    for error in exc.errors():
        # Drop the "body"/"query" prefix so clients see the field name only
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        details.append({"field": ".".join(loc) or "request", "message": error.get("msg", "Invalid value")})
    return details


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        if isinstance(exc.detail, dict):
            content = dict(exc.detail)
        else:
            content = {"error": exc.detail}
        return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": "Validation failed", "details": _validation_details(exc)},
        )

    @app.exception_handler(CampusConnectError)
    async def domain_error(request: Request, exc: CampusConnectError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message, **exc.extra})

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_error(request: Request, exc: RateLimitExceeded):
        log.warning("Rate limit exceeded on %s", request.url.path)
        return rate_limit_response(exc)

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        log.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app() -> FastAPI:
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(students.router)
    app.include_router(admin.router)
    app.include_router(activities.router)
    app.include_router(enrollments.router)
    app.include_router(hours.router)
    app.include_router(sessions.router)
    app.include_router(certificates.router)
    app.include_router(notifications.router)

    register_error_handlers(app)

    @app.get("/api/health", tags=["health"])
    def health():
        return {"status": "ok", "name": settings.APP_NAME, "version": settings.APP_VERSION}

    return app


app = create_app()
