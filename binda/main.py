import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

# Import models so every table is registered with Base before create_all
from . import models  # noqa: F401
from .config import APP_DOMAIN
from .database import Base, engine
from .domain.appointments.router import router as appointments_router
from .domain.catalog.router import public_router as public_catalog_router
from .domain.catalog.router import router as catalog_router
from .domain.customers.router import router as customers_router
from .domain.payments.router import router as payments_router
from .domain.scheduling.router import router as scheduling_router
from .domain.tenants.router import router as tenants_router
from .routes.dashboard import router as dashboard_router
from .security_middleware import SecurityHeadersMiddleware
from .tenancy import is_app_host, rewrite_app_path

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

SECURITY_HEADERS_ENABLED = os.getenv("SECURITY_HEADERS_ENABLED", "true").lower() == "true"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except SQLAlchemyError as e:
        # Ignore "already exists" errors from race conditions between workers
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Binda API", version="1.0.0", lifespan=lifespan)


# ============================================================================
# ERROR HANDLING - every error body is {"error": message}
# ============================================================================


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Report validation failures as 400, except problems with the Authorization
    header, which are authentication errors (401)
    """
    errors = exc.errors()
    for error in errors:
        if error.get("loc") and "authorization" in str(error.get("loc")).lower():
            logger.warning(
                f"Authentication failed for {request.url.path}: Missing or invalid Authorization header"
            )
            return JSONResponse(status_code=401, content={"error": "Not authenticated"})

    logger.warning(f"Validation error for {request.url.path}: {errors}")
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "Invalid request").removeprefix("Value error, ")
    return JSONResponse(
        status_code=400,
        content={"error": f"{field}: {message}" if field else message},
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"❌ Database error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"❌ Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# ============================================================================
# MIDDLEWARE
# ============================================================================


@app.middleware("http")
async def app_subdomain_router(request: Request, call_next):
    """
    Serve the dashboard host ``app.<APP_DOMAIN>`` from the /app/* path tree.

    ``/`` on that host redirects to the dashboard; other hosts pass through.
    """
    host = request.headers.get("host", "")
    if not is_app_host(host, APP_DOMAIN):
        return await call_next(request)

    rewritten = rewrite_app_path(request.url.path)
    if rewritten is None:
        return RedirectResponse(url="/app/dashboard", status_code=307)

    if rewritten != request.url.path:
        request.scope["path"] = rewritten
        request.scope["raw_path"] = rewritten.encode()
    return await call_next(request)


if SECURITY_HEADERS_ENABLED:
    app.add_middleware(SecurityHeadersMiddleware)
    logger.info("Security headers enabled")
else:
    logger.warning("Security headers DISABLED - only use in development!")


# CORS Configuration
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    f"https://{APP_DOMAIN},https://app.{APP_DOMAIN},http://localhost:3000,http://app.localhost:3000",
).split(",")

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Routes
app.include_router(tenants_router)
app.include_router(public_catalog_router)
app.include_router(catalog_router)
app.include_router(customers_router)
app.include_router(scheduling_router)
app.include_router(appointments_router)
app.include_router(payments_router)
app.include_router(dashboard_router)


@app.get("/health")
def health():
    return {"status": "healthy"}
