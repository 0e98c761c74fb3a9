from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import balances, chains, health, quote, sessions
from .config import settings
from .engine import get_engine
from .logging_config import setup_logging
from .middleware import RequestLoggingMiddleware

setup_logging()


@asynccontextmanager
async def lifespan(_: FastAPI):
    # Build (and validate) the engine at startup rather than on the first request.
    engine = get_engine()
    yield
    await engine.orchestrator.drain()


# Create FastAPI app
app = FastAPI(
    title="Swap Engine API",
    description="Cross-chain swap orchestration over the LI.FI routing service",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(chains.router, tags=["Chains"])
app.include_router(quote.router, tags=["Quote"])
app.include_router(balances.router, tags=["Balances"])
app.include_router(sessions.router, tags=["Sessions"])


@app.get("/")
async def root():
    """Root endpoint with basic info"""
    return {
        "name": "Swap Engine API",
        "version": "0.1.0",
        "description": "Cross-chain swap orchestration over the LI.FI routing service",
        "docs": "/docs",
        "health": "/healthz"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "swap_engine.main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
        log_level=settings.log_level.lower()
    )
