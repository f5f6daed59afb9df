"""
Main FastAPI application for the contractor agent router

This module creates and configures the FastAPI application with:
- CORS middleware for frontend integration
- API routes (chat routing, execution sessions)
- Health check endpoint
- Auto-generated API documentation
"""

import asyncio

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from loguru import logger

import src.utils.logger  # noqa: F401  configures loguru sinks
from src.api.dependencies import AppServices
from src.api.routes import chat, executions
from src.api.schemas import HealthResponse
from src.config.settings import settings


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan events

    Startup builds the shared services and starts pruning idle execution
    managers. Shutdown stops every execution manager, which drains queued
    start requests.
    """
    logger.info("🚀 FastAPI application starting...")
    logger.info(f"📚 API docs available at http://localhost:{settings.api_port}/docs")
    logger.info(
        f"⚙️  Execution slots per user: {settings.max_concurrent_executions}, "
        f"timeout {settings.execution_timeout_seconds:.0f}s"
    )

    app.state.services = AppServices()

    async def periodic_prune():
        """Periodically stop execution managers of users with nothing running"""
        while True:
            try:
                await asyncio.sleep(settings.execution_manager_prune_interval_seconds)
                await app.state.services.executions.prune_idle()
            except asyncio.CancelledError:
                logger.info("Prune task cancelled")
                break
            except Exception as e:
                logger.error(f"Periodic prune failed: {e}")

    prune_task = asyncio.create_task(periodic_prune())

    yield

    logger.info("🛑 FastAPI application shutting down...")
    prune_task.cancel()
    try:
        await prune_task
    except asyncio.CancelledError:
        pass
    logger.info("✅ Prune task stopped")

    try:
        await app.state.services.executions.close()
        logger.info("✅ Execution managers stopped")
    except Exception as e:
        logger.warning(f"Error stopping execution managers: {e}")


app = FastAPI(
    title="Contractor Agent Router API",
    description="""
    Message routing for the contractor marketplace assistants.

    ## Agents

    * **lexi** - onboarding, profile and general help
    * **alex** - bids, estimates and project costing
    * **rex** - lead generation and market research (scale tier)

    ## Usage

    Send a message to `/api/chat/route`. An `@lexi`, `@alex` or `@rex`
    mention routes explicitly; otherwise the message is routed by intent,
    by conversation context or to lexi.

    ## Example

    ```bash
    curl -X POST http://localhost:8000/api/chat/route \\
         -H "Content-Type: application/json" \\
         -H "X-User-Id: contractor-42" \\
         -H "X-Contractor-Tier: scale" \\
         -d '{"message": "Hi, can you find me some leads in Oakland?"}'
    ```
    """,
    version=settings.service_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(chat.router)
app.include_router(executions.router)


@app.get("/", tags=["root"])
async def root():
    """
    Root endpoint - API information
    """
    return {
        "service": settings.service_name,
        "version": settings.service_version,
        "status": "running",
        "docs": "/docs",
        "endpoints": {
            "health": "/health",
            "chat_route": "/api/chat/route",
            "threads": "/api/chat/threads",
            "executions": "/api/executions",
        }
    }


@app.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check():
    """
    Health check endpoint

    Returns:
        HealthResponse with service status
    """
    return HealthResponse(
        status="healthy",
        service=settings.service_name,
        version=settings.service_version
    )
