"""
Life Insurance Death Claim Adjudication Service

FastAPI application entry point.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lifeclaim.api import router as claims_router
from lifeclaim.config import get_settings
from lifeclaim.dependencies import build_container

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle management."""
    logger.info(f"Starting {settings.app_name}")
    services = build_container(settings)
    await services.start()
    app.state.services = services
    yield
    logger.info(f"Shutting down {settings.app_name}")
    await services.stop()


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    description="""
    Adjudicates life-insurance death claims.

    ## Workflow

    1. Submit a claim with `POST /api/claim/submit` (multipart form with the claim form,
       death certificate, doctor report and police report)
    2. The policy is looked up, repeat rejections are escalated to manual review and
       the documents are stored and read
    3. Identifiers typed on the form must appear in the documents, otherwise the claim
       is rejected as potential forgery
    4. A fraud-analysis model decides APPROVED, REJECTED or MANUAL_REVIEW
    5. Read the stored record back with `GET /api/claims/{reference}`
    """,
    version=settings.app_version,
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(claims_router)


@app.get("/", tags=["root"])
async def root():
    """Root endpoint with system info."""
    return {
        "system": settings.app_name,
        "version": settings.app_version,
        "status": "operational",
        "docs": "/docs"
    }


@app.get("/health", tags=["health"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
