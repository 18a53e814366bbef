"""Main FastAPI application."""
import asyncio
import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from pitchnet.settings import settings
from pitchnet.api.connections import router as connections_router
from pitchnet.api.notifications import router as notifications_router
from pitchnet.api.pitch import router as pitch_router
from pitchnet.api.users import router as users_router
from pitchnet.domain.common.errors import (
    AuthorizationError,
    DuplicateRequestError,
    IllegalStateError,
    InvalidDecisionError,
    NotFoundError,
    TemplateError,
    ValidationError,
)
from pitchnet.domain.notifications.templates import get_template_resolver
from pitchnet.infra.db.base import Base, engine
from pitchnet.infra.push.sender import wait_for_pending
# Import all models to ensure they're registered with Base
from pitchnet.infra.db.models import (  # noqa: F401
    UserModel,
    DeviceModel,
    PitchModel,
    PitchReviewModel,
    NotificationModel,
    UserConnectionModel,
)

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except Exception as e:
        # Database might not be ready yet; migrations own the schema in production
        logger.warning("Could not connect to database during startup: %s", e)

    # Templates are configuration: a broken table must stop the service
    get_template_resolver()

    yield

    # Shutdown (CancelledError here is normal on Ctrl+C)
    try:
        await wait_for_pending(timeout=5.0)
        await engine.dispose()
    except asyncio.CancelledError:
        logger.info("Lifespan shutdown cancelled (e.g. Ctrl+C); cleanup attempted.")
        raise


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"],
    allow_headers=["*"],
    max_age=3600,
)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log all requests and responses."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        logger.info("[REQUEST] %s %s", request.method, request.url.path)
        logger.debug("   Query params: %s", dict(request.query_params))
        if request.headers:
            # Don't log authorization header fully
            headers = dict(request.headers)
            if 'authorization' in headers:
                auth_header = headers['authorization']
                if auth_header.startswith('Bearer '):
                    token = auth_header[7:]
                    headers['authorization'] = f'Bearer {token[:20]}...' if len(token) > 20 else 'Bearer ***'
            logger.debug("   Headers: %s", headers)

        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info(
            "[RESPONSE] %s %s - %s (%.3fs)",
            request.method, request.url.path, response.status_code, process_time,
        )
        return response


# Add logging middleware AFTER CORS (CORS must be first)
app.add_middleware(LoggingMiddleware)


def _errors(status_code: int, code: str, message: str, **extra) -> JSONResponse:
    """Failure envelope: {"errors": [{"code", "message", ...}]}."""
    error = {"code": code, "message": message}
    error.update(extra)
    return JSONResponse(status_code=status_code, content={"errors": [error]})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors with detailed logging."""
    errors = exc.errors()
    logger.warning(
        "[VALIDATION ERROR] %s %s: %d error(s)", request.method, request.url.path, len(errors)
    )
    for i, error in enumerate(errors, 1):
        logger.debug("   Error %d: %s", i, error)
    return JSONResponse(
        status_code=422,
        content={
            "errors": [
                {
                    "code": "invalid_request",
                    "message": error.get("msg", "Invalid value"),
                    "field": ".".join(str(p) for p in error.get("loc", ())),
                }
                for error in errors
            ]
        },
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Wrap framework HTTP errors (401, 404 route, 405) in the failure envelope."""
    response = _errors(exc.status_code, "http_error", str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


# Domain error handlers: map domain exceptions to correct HTTP status
@app.exception_handler(NotFoundError)
async def domain_not_found_handler(request: Request, exc: NotFoundError):
    """Return 404 when a resource is not found."""
    return _errors(404, "not_found", exc.message)


@app.exception_handler(AuthorizationError)
async def domain_authorization_handler(request: Request, exc: AuthorizationError):
    """Return 403 when the user is not authorized."""
    return _errors(403, "forbidden", exc.message)


@app.exception_handler(ValidationError)
async def domain_validation_handler(request: Request, exc: ValidationError):
    """Return 422 for domain validation errors (includes unmet accept preconditions)."""
    return _errors(422, "unprocessable", exc.message)


@app.exception_handler(DuplicateRequestError)
async def domain_duplicate_handler(request: Request, exc: DuplicateRequestError):
    """Return 422 when an equivalent request is already pending."""
    return _errors(422, "duplicate_request", exc.message)


@app.exception_handler(IllegalStateError)
async def domain_illegal_state_handler(request: Request, exc: IllegalStateError):
    """Return 406 when the record no longer accepts the operation."""
    return _errors(406, "illegal_state", exc.message)


@app.exception_handler(InvalidDecisionError)
async def domain_invalid_decision_handler(request: Request, exc: InvalidDecisionError):
    """Return 422 for a decision other than accepted/rejected."""
    return _errors(422, "invalid_decision", exc.message)


@app.exception_handler(TemplateError)
async def template_error_handler(request: Request, exc: TemplateError):
    logger.error("Template error on %s %s: %s", request.method, request.url.path, exc.message)
    return _errors(500, "internal_error", "Internal server error")


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return _errors(500, "internal_error", "Internal server error")


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _errors(500, "internal_error", "Internal server error")


# Health check (root and under the API prefix so GET /v1/health works behind a proxy)
@app.get("/health")
@app.get(f"{settings.api_prefix}/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "version": settings.app_version}


app.include_router(connections_router, prefix=settings.api_prefix)
app.include_router(notifications_router, prefix=settings.api_prefix)
app.include_router(pitch_router, prefix=settings.api_prefix)
app.include_router(users_router, prefix=settings.api_prefix)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("pitchnet.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
