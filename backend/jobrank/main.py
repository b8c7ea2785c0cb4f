"""
Job Enrichment API - Main Application Entry Point

Thin dispatch surface in front of the Celery workers that run the
enrichment pipeline.

Architecture:
    FastAPI App
    ├── Lifespan Management (logging setup)
    ├── Prometheus Middleware + /metrics
    └── API Router
        ├── POST /runs/enrichment - Enqueue an enrichment run
        └── POST /profiles/scrape - Enqueue a profile scrape
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from jobrank.api import api_router
from jobrank.config import get_settings
from jobrank.logging_config import configure_logging
from jobrank.middleware import setup_metrics


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(get_settings().log_level)
    yield


app = FastAPI(
    title="Job Enrichment API",
    description="Embedding, shortlisting, enrichment and ranking of job postings",
    version="0.1.0",
    lifespan=lifespan,
)

setup_metrics(app)
app.include_router(api_router)


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
