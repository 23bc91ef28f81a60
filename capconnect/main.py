import logging
import json
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import HTTPException as FastAPIHTTPException

# Database imports
from capconnect.database.database import init_db

# Router import
from capconnect.api.router import auth_router, router as api_router

# Configure basic logging for structured output
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s"
)
logger = logging.getLogger(__name__)

if os.getenv("ENABLE_CLOUD_LOGGING", "false").lower() == "true":
    import google.cloud.logging

    # Ship records to Google Cloud Logging alongside stdout
    client = google.cloud.logging.Client()
    default_handler = client.get_default_handler()
    default_handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(name)s %(message)s'))
    logging.getLogger().addHandler(default_handler)
    client.setup_logging()

# Read environment variables
MAX_UPLOAD_SIZE_MB = os.getenv("MAX_UPLOAD_SIZE_MB", "25")
DOCUMENTS_BUCKET_NAME = os.getenv("DOCUMENTS_BUCKET_NAME", "documents")
CORS_ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ALLOWED_ORIGINS", "*").split(",")
    if origin.strip()
]

app = FastAPI(title="CapConnect API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info(json.dumps({
        "event": "request_received",
        "method": request.method,
        "url": str(request.url)
    }))
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(json.dumps({
            "event": "request_error",
            "error": str(e)
        }), exc_info=True)
        raise e
    logger.info(json.dumps({
        "event": "request_completed",
        "status_code": response.status_code,
        "url": str(request.url)
    }))
    return response


app.include_router(api_router, prefix="/api")
app.include_router(auth_router, tags=["Auth"])


@app.get("/health")
def health_check():
    logger.info("Health check endpoint accessed")
    return {"status": "ok"}

# ------------------------------------------------------------------
# Exception Handlers
# ------------------------------------------------------------------


@app.exception_handler(FastAPIHTTPException)
async def http_exception_handler(request: Request, exc: FastAPIHTTPException):
    if exc.status_code == 404:
        logger.warning("HTTP 404 for %s: %s", request.url, exc.detail)
    else:
        logger.error("HTTPException for %s: %s", request.url, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled exception for %s: %s", request.url, str(exc), exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal Server Error"}
    )


@app.on_event("startup")
async def startup_event():
    # Create any missing tables
    init_db()
    logger.info("Database initialized.")

    logger.info(f"MAX_UPLOAD_SIZE_MB is set to {MAX_UPLOAD_SIZE_MB}")
    logger.info(f"DOCUMENTS_BUCKET_NAME is set to {DOCUMENTS_BUCKET_NAME}")

    logger.info("Application startup complete.")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Application shutdown complete.")
