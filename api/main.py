import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes.health import router as health_router
from api.routes.search import router as search_router
from api.config import (
    GEMINI_API_KEY,
    GEMINI_MODEL,
    GEMINI_TIMEOUT,
    TMDB_API_KEY,
    TMDB_MAX_RETRIES,
    TMDB_RATE_PER_SEC,
    TMDB_TIMEOUT,
)
from clients.gemini_client import GeminiClient
from clients.tmdb_client import TMDBClient

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
# Set specific loggers
logging.getLogger("api.core.prompt_parser").setLevel(logging.DEBUG)
# Reduce noise from other modules; request URLs carry the API keys.
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.INFO)


@asynccontextmanager
async def app_lifespan(app: FastAPI):
    _initialise_application(app)
    if app.state.tmdb_client is None and TMDB_API_KEY:
        app.state.tmdb_client = TMDBClient(
            TMDB_API_KEY,
            timeout=TMDB_TIMEOUT,
            rate_per_sec=TMDB_RATE_PER_SEC,
            max_retries=TMDB_MAX_RETRIES,
        )
    if app.state.gemini_client is None and GEMINI_API_KEY:
        app.state.gemini_client = GeminiClient(
            GEMINI_API_KEY, model=GEMINI_MODEL, timeout=GEMINI_TIMEOUT
        )
    yield
    for name in ("tmdb_client", "gemini_client"):
        client = getattr(app.state, name, None)
        if client is not None and hasattr(client, "aclose"):
            await client.aclose()
        setattr(app.state, name, None)


app = FastAPI(title="Cineforge Planner", version="0.1.0", lifespan=app_lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routes
app.include_router(health_router, prefix="")
app.include_router(search_router)


def _initialise_application(app: FastAPI) -> None:
    # Tests may install fake clients on app.state before startup.
    for name in ("tmdb_client", "gemini_client"):
        if not hasattr(app.state, name):
            setattr(app.state, name, None)
