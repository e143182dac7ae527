import logging
import os
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from . import models  # noqa: F401 - registers every table on Base
from .config import ALLOWED_ORIGINS
from .database import Base, SessionLocal, engine
from .domain.auth.router import router as auth_router
from .domain.batches.router import router as batches_router
from .domain.billing.router import router as billing_router
from .domain.churches.router import router as settings_router
from .domain.dashboard.router import router as dashboard_router
from .domain.donations.router import router as donations_router
from .domain.email_templates.router import router as email_templates_router
from .domain.global_admin.router import router as global_admin_router
from .domain.global_admin.service import bootstrap_global_admin
from .domain.members.router import router as members_router
from .domain.planning_center.router import router as planning_center_router
from .domain.report_recipients.router import router as report_recipients_router
from .domain.service_options.router import router as service_options_router
from .domain.users.router import profile_router
from .domain.users.router import router as users_router
from .security_headers import SecurityHeadersMiddleware

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("stripe").setLevel(logging.WARNING)

SECURITY_HEADERS_ENABLED = os.getenv("SECURITY_HEADERS_ENABLED", "true").lower() == "true"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except SQLAlchemyError as e:
        # Another worker may have created the tables first
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")

    db = SessionLocal()
    try:
        bootstrap_global_admin(db)
    except SQLAlchemyError as e:
        logger.error(f"Failed to bootstrap global admin: {e}")
    finally:
        db.close()

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="PlateSync API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Convert 422 validation errors from HTTPBearer to 401 authentication errors
    when the issue is with the Authorization header
    """
    for error in exc.errors():
        if error.get("loc") and "authorization" in str(error.get("loc")).lower():
            logger.warning(
                f"Authentication failed for {request.url.path}: Missing or invalid Authorization header"
            )
            return JSONResponse(
                status_code=401,
                content={"detail": "Not authenticated. Please provide a valid Bearer token."},
            )

    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=422, content={"detail": exc.errors()})


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise

    elapsed_ms = (time.perf_counter() - start) * 1000
    if response.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} - {response.status_code} ({elapsed_ms:.0f}ms)")
    return response


if SECURITY_HEADERS_ENABLED:
    app.add_middleware(
        SecurityHeadersMiddleware, exclude_paths=["/health", "/docs", "/openapi.json"]
    )
    logger.info("Security headers enabled")
else:
    logger.warning("Security headers DISABLED - only use in development!")

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Routes
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(profile_router)
app.include_router(settings_router)
app.include_router(service_options_router)
app.include_router(members_router)
app.include_router(batches_router)
app.include_router(donations_router)
app.include_router(report_recipients_router)
app.include_router(email_templates_router)
app.include_router(dashboard_router)
app.include_router(billing_router)
app.include_router(global_admin_router)
app.include_router(planning_center_router)


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
