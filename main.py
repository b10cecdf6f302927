"""Main FastAPI application"""
import os
import logging
import logging.config
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from motor.motor_asyncio import AsyncIOMotorClient
from starlette.exceptions import HTTPException as StarletteHTTPException

# --- Add slowapi imports ---
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

import config
from models.errors import InvalidFilterError, PersistenceError, ValidationError
from routes import router as api_router
from services.transaction_store import TransactionStore


def build_logging_config(level: str, log_dir: str) -> dict:
    """Rich console output plus optional error.log / combined.log files."""
    handlers = {
        "default": {
            "class": "rich.logging.RichHandler",
            "formatter": "default",
            "level": "DEBUG",
            "rich_tracebacks": True,
            "show_time": True,
            "show_path": False,
            "log_time_format": "%Y-%m-%d %H:%M:%S",
            "markup": False,
        },
    }
    if log_dir:
        handlers["error_file"] = {
            "class": "logging.FileHandler",
            "formatter": "file",
            "level": "ERROR",
            "filename": os.path.join(log_dir, "error.log"),
        }
        handlers["combined_file"] = {
            "class": "logging.FileHandler",
            "formatter": "file",
            "level": "DEBUG",
            "filename": os.path.join(log_dir, "combined.log"),
        }
    handler_names = list(handlers)

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                # RichHandler adds time and level itself
                "format": "%(name)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "file": {
                "format": "%(asctime)s %(levelname)s %(name)s - %(message)s",
                "datefmt": "%Y-%m-%dT%H:%M:%S%z",
            },
        },
        "handlers": handlers,
        "loggers": {
            "uvicorn": {"handlers": handler_names, "level": "INFO", "propagate": False},
            "uvicorn.error": {"handlers": handler_names, "level": "INFO", "propagate": False},
            "uvicorn.access": {"handlers": handler_names, "level": "INFO", "propagate": False},
            "": {"handlers": handler_names, "level": level, "propagate": False},
        },
    }


if config.LOG_DIR:
    os.makedirs(config.LOG_DIR, exist_ok=True)
logging.config.dictConfig(build_logging_config(config.LOG_LEVEL, config.LOG_DIR))

logger = logging.getLogger(__name__)

# --- Rate Limiter Setup ---
# In-memory storage, keyed by client address
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[config.RATE_LIMIT],
    enabled=config.RATE_LIMIT_ENABLED,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: the client is created once and shared by every request
    logger.info(f"Connecting to MongoDB database '{config.DB_NAME}'...")
    client = AsyncIOMotorClient(config.MONGODB_URI, tz_aware=True)
    try:
        await client.admin.command('ping')
    except Exception:
        logger.exception("Database connection failed")
        client.close()
        raise
    logger.info("MongoDB ping successful.")

    collection = client[config.DB_NAME].get_collection(config.COLLECTION_NAME)
    store = TransactionStore(collection)
    await store.ensure_indexes()
    app.state.db_client = client
    app.state.transaction_store = store

    yield # Application runs here

    # Shutdown: Close MongoDB connection
    logger.info("Closing MongoDB connection...")
    client.close()
    app.state.transaction_store = None
    logger.info("MongoDB connection closed.")


app = FastAPI(
    title="Transaction API",
    description="API for recording, searching, summarizing and exporting income and expense transactions.",
    version="1.0.0",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# --- Middleware ---
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=config.CORS_ORIGINS != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api", tags=["transactions"])


# --- Error handlers: every error body is {"message": ...} ---
@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    logger.warning(f"Invalid transaction on {request.url.path}: {exc}")
    return JSONResponse(status_code=400, content={"message": exc.message, "field": exc.field})


@app.exception_handler(InvalidFilterError)
async def invalid_filter_handler(request: Request, exc: InvalidFilterError):
    logger.warning(f"Invalid filter on {request.url.path}: {exc}")
    return JSONResponse(status_code=400, content={"message": exc.message, "param": exc.param})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Malformed request on {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=400, content={"message": "Malformed request"})


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError):
    logger.error(f"Storage failure on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"message": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        logger.warning(f"404 - Route not found: {request.method} {request.url.path}")
        return JSONResponse(status_code=404, content={"message": "Route not found"})
    return JSONResponse(status_code=exc.status_code, content={"message": str(exc.detail)}, headers=exc.headers)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"message": "Something went wrong!"})


@app.get("/health", tags=["health"])
@limiter.exempt
async def health_check():
    logger.info("Health check endpoint called")
    return {"status": "OK", "message": "Server is running"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=config.PORT,
    )
