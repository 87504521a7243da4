import logging
import os
from contextlib import asynccontextmanager

import socketio
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

# Import all models to ensure they're registered with SQLAlchemy Base
from . import config, models  # noqa: F401
from .database import Base, engine
from .domain.appointments.router import router as appointments_router
from .domain.auth.router import router as auth_router
from .domain.calls.router import router as calls_router
from .domain.chatbot.router import router as chatbot_router
from .domain.collaboration.router import router as collaboration_router
from .domain.conversations.router import router as conversations_router
from .domain.records.router import public_router as public_records_router
from .domain.records.router import router as records_router
from .realtime import sio
from .routes.agora import router as agora_router
from .routes.docs import router as docs_router
from .routes.doctors import router as doctors_router
from .routes.notifications import router as notifications_router
from .routes.onboarding import router as onboarding_router
from .routes.patients import router as patients_router
from .routes.profile import router as profile_router
from .routes.ratings import router as ratings_router
from .routes.stats import router as stats_router
from .security_headers import SecurityHeadersMiddleware
from .services.agora_service import AgoraNotConfigured
from .services.mistral_service import MistralError
from .services.supabase_service import SupabaseError

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
    except Exception as e:
        # Ignore "already exists" errors from race conditions between workers
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")
            raise

    yield
    logger.info("Application shutting down...")


app = FastAPI(
    title="Ukuqala Medical Doctors API",
    version="1.0.0",
    lifespan=lifespan,
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)


def error_response(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message, **extra})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    response = error_response(exc.status_code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [{"loc": list(e.get("loc", [])), "msg": e.get("msg"), "type": e.get("type")} for e in exc.errors()]
    logger.warning(f"Validation error for {request.url.path}: {errors}")
    return error_response(422, "Validation failed", errors=errors)


@app.exception_handler(SupabaseError)
async def supabase_exception_handler(request: Request, exc: SupabaseError):
    logger.error(f"Supabase error for {request.url.path}: {exc.message}")
    return error_response(exc.status_code, exc.message)


@app.exception_handler(AgoraNotConfigured)
async def agora_exception_handler(request: Request, exc: AgoraNotConfigured):
    return error_response(500, "Agora is not configured")


@app.exception_handler(MistralError)
async def mistral_exception_handler(request: Request, exc: MistralError):
    return error_response(502, str(exc))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"{request.method} {request.url.path} - Error: {exc}", exc_info=exc)
    return error_response(500, "Internal server error")


if SECURITY_HEADERS_ENABLED:
    app.add_middleware(SecurityHeadersMiddleware, exclude_paths=["/health", "/docs", "/openapi.json"])
    logger.info("Security headers enabled")
else:
    logger.warning("Security headers DISABLED - only use in development!")

# CORS Configuration
ALLOWED_ORIGINS = [origin.strip() for origin in config.CORS_ORIGIN.split(",") if origin.strip()]
logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials="*" not in ALLOWED_ORIGINS,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

os.makedirs(config.UPLOAD_DIR, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=config.UPLOAD_DIR), name="uploads")

# Routes
app.include_router(docs_router)
app.include_router(auth_router)
app.include_router(onboarding_router)
app.include_router(doctors_router)
app.include_router(profile_router)
app.include_router(patients_router)
app.include_router(appointments_router)
app.include_router(conversations_router)
app.include_router(ratings_router)
app.include_router(stats_router)
app.include_router(records_router)
app.include_router(public_records_router)
app.include_router(notifications_router)
app.include_router(chatbot_router)
app.include_router(collaboration_router)
app.include_router(calls_router)
app.include_router(agora_router)


@app.get("/health")
def health():
    return {"status": "ok"}


# Socket.IO signaling lives at /socket.io; everything else goes to FastAPI
asgi_app = socketio.ASGIApp(sio, other_asgi_app=app)
