"""
Celery Task Modules

Background tasks:
- enrichment.py: Enrichment pipeline runs and profile scrapes
"""

from jobrank.tasks.enrichment import (
    enrich_jobs,
    scrape_profile,
)

__all__ = [
    "enrich_jobs",
    "scrape_profile",
]
