"""Kuvaajat Backend API - FastAPI application."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .auth import IdentityResolver, JWTIdentityResolver
from .config import Settings, get_settings
from .database import RecordStore, create_record_store
from .errors import KuvaajatError, StorageError
from .logging_config import configure_logging, get_logger
from .rate_limit import limiter
from .routes import auth_router, bids_router, jobs_router, profiles_router

logger = get_logger("kuvaajat.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info(f"Starting Kuvaajat Backend API (store={type(app.state.record_store).__name__})")
    yield
    logger.info("Shutting down Kuvaajat Backend API")


# =============================================================================
# Error Mapping
# =============================================================================


async def handle_kuvaajat_error(request: Request, exc: KuvaajatError) -> JSONResponse:
    if isinstance(exc, StorageError):
        # Details stay in the server log
        logger.error(f"Storage error | {request.method} {request.url.path} | {exc.__cause__ or exc}")
        return JSONResponse(status_code=exc.status_code, content={"error": StorageError.default_message})
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else first.get("msg")
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error | {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# =============================================================================
# Application
# =============================================================================


def create_app(
    settings: Settings | None = None,
    store: RecordStore | None = None,
    identity_resolver: IdentityResolver | None = None,
) -> FastAPI:
    """Build the API with its record store and identity resolver wired in."""
    settings = settings or get_settings()
    configure_logging(settings.debug)

    app = FastAPI(
        title="Kuvaajat Backend API",
        description="Job postings and bidding for photography and videography work",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.record_store = store if store is not None else create_record_store(settings)
    app.state.identity_resolver = identity_resolver or JWTIdentityResolver(settings)

    # Rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.add_exception_handler(KuvaajatError, handle_kuvaajat_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_unexpected)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth_router)
    app.include_router(jobs_router)
    app.include_router(bids_router)
    app.include_router(profiles_router)

    @app.get("/")
    async def root():
        """Liveness endpoint."""
        return {
            "service": "kuvaajat-backend",
            "version": __version__,
            "status": "ok",
        }

    @app.get("/health")
    async def health(request: Request):
        """Health check with an actual record store round trip."""
        db_status = "disconnected"
        try:
            await request.app.state.record_store.get("__health__")
            db_status = "connected"
        except Exception as e:
            db_status = f"error: {str(e)[:50]}"

        return {
            "status": "healthy" if db_status == "connected" else "degraded",
            "database": db_status,
        }

    return app


app = create_app()
