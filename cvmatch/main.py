from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cvmatch.routers import analysis, documents, matching
from cvmatch.utils.logging_config import configure_for_environment, get_logger
from cvmatch.middleware.error_handlers import (
    ExceptionHandlerMiddleware,
    RequestLoggingMiddleware,
    PerformanceMiddleware,
)

VERSION = "1.0.0"

# Configure logging first
configure_for_environment()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager"""
    logger.info("CV Match API starting up...")

    from cvmatch.models.settings import load_settings, load_vocabulary
    settings = load_settings()
    vocabulary = load_vocabulary(settings)
    logger.info(f"Using vocabulary '{vocabulary.name}' v{vocabulary.version} ({len(vocabulary.terms)} terms)")
    if not settings.analysis.api_key:
        logger.warning("OPENAI_API_KEY is not set - analysis endpoints will be unavailable")

    yield

    logger.info("CV Match API shutdown completed")


app = FastAPI(title="CV Match API", version=VERSION, lifespan=lifespan)

app.add_middleware(PerformanceMiddleware, slow_request_threshold=2.0)
app.add_middleware(RequestLoggingMiddleware)
# Added after the logging middleware so it wraps them
app.add_middleware(ExceptionHandlerMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
@app.head("/")
async def root():
    """Root endpoint - handles both GET and HEAD requests for health checks"""
    return {"message": "Welcome to the CV Match API", "version": VERSION, "status": "ok"}


@app.get("/health")
@app.head("/health")
async def health_check():
    """Health check endpoint - handles both GET and HEAD requests"""
    return {"status": "healthy", "timestamp": datetime.utcnow().isoformat() + "Z"}


app.include_router(matching.router, prefix="/api/match", tags=["matching"])
app.include_router(documents.router, prefix="/api/documents", tags=["documents"])
app.include_router(analysis.router, prefix="/api")  # analysis has prefix="/analysis"

logger.info("CV Match API initialized successfully")
