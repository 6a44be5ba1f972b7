"""
api/main.py -- FastAPI application entry point for the SPADE API.

Exposes the authentication core and community profiles over HTTP.

Run with:  uvicorn api.main:app --reload

Middleware stack (outermost to innermost):
  1. log_requests          -- one log line per request, including rejected ones
  2. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  3. CORSMiddleware        -- credentialed CORS for the configured web origins
  4. SlowAPIMiddleware     -- application-wide limits only; the per-route
                              login/register limit is the @limiter.limit
                              decorator in api/routes/v1/auth.py

Lifespan opens both stores (auth + community), builds the TokenManager from
settings, and wires them into one AuthService on app.state. Shutdown closes
both stores symmetrically.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.auth import router as auth_router
from api.routes.v1.profiles import router as profiles_router
from auth.errors import AuthError
from auth.service import AuthService
from auth.store import CredentialStore
from auth.tokens import TokenManager
from community.store import ProfileStore
from core.config import get_settings

__version__ = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("spade.api")

_settings = get_settings()

# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open both stores and build the auth service; close the stores on shutdown.

    Token secrets were validated when get_settings() first ran at import, so
    a misconfigured production process never reaches this point.
    """
    logger.info("SPADE API starting up")
    app.state.credential_store = CredentialStore(_settings.auth_db_url)
    app.state.profile_store = ProfileStore(_settings.community_db_url)
    app.state.auth_service = AuthService(
        credentials=app.state.credential_store,
        profiles=app.state.profile_store,
        tokens=TokenManager.from_settings(_settings),
    )
    logger.info("Auth and community stores initialized")

    yield

    app.state.credential_store.close()
    app.state.profile_store.close()
    logger.info("SPADE API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="SPADE API",
    description="Account, session and community profile service.",
    version=__version__,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# Starlette wraps each add_middleware() call around the stack built so far, so
# the LAST one registered sees the request FIRST. Registered innermost-first
# to get TrustedHost -> CORS -> SlowAPI on the way in. log_requests below is
# registered after all three and therefore wraps them.
# ---------------------------------------------------------------------------

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    # Session cookies must travel on cross-origin calls from the web client.
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.add_middleware(TrustedHostMiddleware, allowed_hosts=_settings.allowed_hosts)

# ---------------------------------------------------------------------------
# Request logging middleware
#
# One line per request with latency. Never logs cookies, headers or bodies --
# they carry tokens and passwords.
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])
app.include_router(profiles_router, prefix="/api/v1", tags=["Profiles"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Render the fixed code/message of an AuthError and nothing else.

    The chained cause (driver error, JOSE error, Argon2 error) stays in the
    server log; it never reaches the response body.
    """
    response = JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=ErrorDetail(code=exc.code, message=exc.message)).model_dump(),
    )
    response.headers["Cache-Control"] = "no-store"
    return response


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a structured error when a rate limit is exceeded."""
    retry_after = int(getattr(exc, "retry_after", 60))
    response = JSONResponse(
        status_code=429,
        content=ErrorResponse(
            error=ErrorDetail(
                code="rate_limited",
                message="Too many requests.",
                detail=str(exc),
            )
        ).model_dump(),
    )
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 when a request body is not the expected JSON shape.

    Only field locations are echoed back. The submitted values are not --
    they may contain a password.
    """
    fields = [".".join(str(part) for part in err.get("loc", ())) for err in exc.errors()]
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(
            error=ErrorDetail(
                code="validation_error",
                message="Request validation failed.",
                detail=", ".join(fields),
            )
        ).model_dump(),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Return a structured error for all FastAPI/Starlette HTTP exceptions.

    When detail is already a structured dict, use it directly as the error
    field rather than stringifying it.
    """
    if isinstance(exc.detail, dict):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(
                code=f"http_{exc.status_code}",
                message=str(exc.detail),
            )
        ).model_dump(),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is written to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(
                code="internal_error",
                message="An unexpected error occurred.",
            )
        ).model_dump(),
    )


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py so it is always reachable regardless of router
# registration state. No rate limit applied.
# ---------------------------------------------------------------------------


def _component_status(store) -> str:
    try:
        return "ok" if store.ping() else "error"
    except Exception:
        logger.exception("Health check failed for %s", type(store).__name__)
        return "error"


@app.get("/api/v1/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return liveness, version, and the reachability of both stores."""
    components = {
        "app": "ok",
        "auth_db": _component_status(request.app.state.credential_store),
        "community_db": _component_status(request.app.state.profile_store),
    }
    status = "healthy" if all(v == "ok" for v in components.values()) else "degraded"
    return HealthResponse(status=status, version=__version__, components=components)
