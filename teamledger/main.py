"""
Team Ledger Backend - FastAPI Application
Main entry point with all routes configured.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from teamledger import __version__
from teamledger.config import settings
from teamledger.database import init_db
from teamledger.core.exceptions import TeamLedgerException
from teamledger.schemas.common import HealthResponse

# Import all API routers
from teamledger.api import businesses, cashbooks, invites, roles

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Startup
    await init_db()
    logger.info("Team Ledger API started")
    yield
    # Shutdown


app = FastAPI(
    title="Team Ledger API",
    description="Business and cashbook membership, roles and invitations",
    version=__version__,
    lifespan=lifespan
)

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL] if not settings.DEV_MODE else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(TeamLedgerException)
async def team_ledger_exception_handler(request: Request, exc: TeamLedgerException):
    """Typed failures become {"detail", "code"} with their own status."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Include all routers
app.include_router(businesses.router)
app.include_router(cashbooks.router)
app.include_router(invites.router)
app.include_router(roles.router)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "message": "Team Ledger API is running",
        "version": __version__,
        "docs": "/docs"
    }


@app.get("/health", response_model=HealthResponse)
async def health():
    """Detailed health check."""
    return HealthResponse(status="healthy", version=__version__)
