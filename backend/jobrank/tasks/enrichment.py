"""
Background Tasks for Job Enrichment

Celery tasks for:
- Running the enrichment pipeline for one agent run
- Scraping a LinkedIn profile into a structured record

Retry Policy:
    enrich_jobs: 2 attempts total, exponential countdown 5s → 60s.
    The pipeline records its own failures on the agent run and returns
    normally, so retries only happen for errors outside that boundary
    (e.g. the execution budget expiring). Configuration and input errors
    are never retried.

Execution Budget:
    600s, enforced by asyncio.wait_for around the pipeline so cancellation
    reaches the in-flight request and the run is marked failed. Celery's
    soft (630s) and hard (660s) limits are backstops only.
"""

import asyncio
import logging
import time
from typing import Any, Coroutine, TypeVar

from prometheus_client import Counter, Histogram
from pydantic import ValidationError

from jobrank.celery import celery_app
from jobrank.config import (
    get_settings,
    require_brightdata_key,
    require_gateway_config,
    require_openai_key,
)
from jobrank.exceptions import ConfigurationError
from jobrank.schemas import EnrichmentRunRequest
from jobrank.services.completions import StructuredCompletionClient
from jobrank.services.embeddings import OpenAIEmbeddings
from jobrank.services.gateway import SupabaseGateway
from jobrank.services.pipeline import EnrichmentPipeline, RunContext
from jobrank.services.scrapers import BrightDataProfileScraper

logger = logging.getLogger(__name__)

settings = get_settings()

T = TypeVar("T")

ENRICH_MAX_RETRIES = 1  # 2 attempts
SCRAPE_MAX_RETRIES = 2  # 3 attempts

# Celery limits trail the asyncio budget so wait_for fires first and the
# pipeline can mark the run failed before the worker interrupts the loop
CELERY_LIMIT_GRACE_SECONDS = 30

# ==================== Prometheus Metrics ====================

TASK_DURATION = Histogram(
    "celery_task_duration_seconds",
    "Time spent executing Celery tasks",
    ["task_name"]
)

TASK_FAILURES = Counter(
    "celery_task_failures_total",
    "Number of Celery task failures",
    ["task_name"]
)


# ==================== Helper Functions ====================

def retry_countdown(retries: int, base: int = 5, maximum: int = 60) -> int:
    """Exponential backoff: base * 2^retries, capped at maximum."""
    return min(base * (2 ** retries), maximum)


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine to completion on a fresh event loop."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


async def run_enrichment(team_id: str, user_id: str, agent_run_id: str) -> RunContext:
    """
    Build the clients and execute one pipeline run within the time budget.

    Raises:
        ConfigurationError: Before any work if credentials are missing
        asyncio.TimeoutError: If the run exceeds the execution budget
    """
    url, service_key = require_gateway_config(settings)
    api_key = require_openai_key(settings)

    embedder = OpenAIEmbeddings(api_key=api_key, model=settings.embedding_model)
    completer = StructuredCompletionClient(api_key=api_key, model=settings.chat_model)

    try:
        async with SupabaseGateway(url, service_key, timeout=settings.http_timeout_seconds) as gateway:
            pipeline = EnrichmentPipeline(gateway=gateway, embedder=embedder, completer=completer)
            return await asyncio.wait_for(
                pipeline.run(team_id, user_id, agent_run_id),
                timeout=settings.pipeline_timeout_seconds,
            )
    finally:
        await embedder.aclose()
        await completer.aclose()


async def run_scrape(url: str) -> dict:
    api_key = require_brightdata_key(settings)
    scraper = BrightDataProfileScraper(
        api_key=api_key, dataset_id=settings.brightdata_dataset_id
    )
    try:
        result = await scraper.scrape(url)
    finally:
        await scraper.aclose()
    return result.model_dump()


# ==================== Celery Tasks ====================

@celery_app.task(
    bind=True,
    max_retries=ENRICH_MAX_RETRIES,
    soft_time_limit=settings.pipeline_timeout_seconds + CELERY_LIMIT_GRACE_SECONDS,
    time_limit=settings.pipeline_timeout_seconds + 2 * CELERY_LIMIT_GRACE_SECONDS,
)
def enrich_jobs(self, team_id: str, user_id: str, agent_run_id: str) -> dict:
    """
    Run the enrichment pipeline for one agent run.

    Args:
        team_id: Team UUID owning the job pool
        user_id: Freelancer UUID
        agent_run_id: Pre-created agent_runs row UUID

    Returns:
        Dict with final state, metrics and error text (if failed)
    """
    start_time = time.time()

    try:
        request = EnrichmentRunRequest(
            team_id=team_id, user_id=user_id, agent_run_id=agent_run_id
        )
        ctx = run_async(run_enrichment(
            str(request.team_id), str(request.user_id), str(request.agent_run_id)
        ))
        return {
            "state": ctx.state.value,
            "metrics": ctx.metrics.model_dump(),
            "error": ctx.error,
        }

    except (ConfigurationError, ValidationError) as exc:
        TASK_FAILURES.labels(task_name="enrich_jobs").inc()
        logger.error(f"Enrichment run {agent_run_id} rejected: {exc}")
        raise

    except Exception as exc:
        TASK_FAILURES.labels(task_name="enrich_jobs").inc()
        logger.error(f"Enrichment task failed for run {agent_run_id}: {exc!r}")
        raise self.retry(exc=exc, countdown=retry_countdown(self.request.retries))

    finally:
        duration = time.time() - start_time
        TASK_DURATION.labels(task_name="enrich_jobs").observe(duration)


@celery_app.task(bind=True, max_retries=SCRAPE_MAX_RETRIES)
def scrape_profile(self, url: str) -> dict:
    """
    Scrape a LinkedIn profile.

    Returns:
        ScrapeResult as a dict; provider errors are reported in it, not raised
    """
    start_time = time.time()

    try:
        return run_async(run_scrape(url))

    except ConfigurationError:
        TASK_FAILURES.labels(task_name="scrape_profile").inc()
        raise

    except Exception as exc:
        TASK_FAILURES.labels(task_name="scrape_profile").inc()
        raise self.retry(exc=exc, countdown=retry_countdown(self.request.retries, base=2, maximum=30))

    finally:
        duration = time.time() - start_time
        TASK_DURATION.labels(task_name="scrape_profile").observe(duration)
