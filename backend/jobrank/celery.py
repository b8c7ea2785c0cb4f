"""
Celery Application Configuration

Configures Celery for enrichment runs and profile scrapes with:
- Redis as message broker and result backend
- Task autodiscovery from jobrank.tasks module
- A 600s execution budget per enrichment run

Usage:
    # Start worker:
    celery -A jobrank.celery worker --loglevel=info

    # Enqueue a run:
    from jobrank.tasks.enrichment import enrich_jobs
    enrich_jobs.delay(team_id, user_id, agent_run_id)
"""

from celery import Celery
from celery.signals import setup_logging

from jobrank.config import get_settings
from jobrank.logging_config import configure_logging

settings = get_settings()

# Create Celery app
celery_app = Celery(
    "job_enrichment",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["jobrank.tasks.enrichment"],
)

# Configure Celery
celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    # Worker settings
    worker_prefetch_multiplier=1,  # One long run per worker slot
    worker_concurrency=4,

    # Result settings
    result_expires=3600,
    task_track_started=True,

    # Retry settings
    task_acks_late=True,  # Acknowledge after completion
    task_reject_on_worker_lost=True,

    task_routes={
        "jobrank.tasks.enrichment.enrich_jobs": {"queue": "enrichment"},
        "jobrank.tasks.enrichment.scrape_profile": {"queue": "scraping"},
    },

    task_default_queue="default",
)


@setup_logging.connect
def _configure_worker_logging(**kwargs):
    configure_logging(settings.log_level)
