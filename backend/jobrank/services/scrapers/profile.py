"""
Profile Scraper - LinkedIn profiles via the BrightData datasets API

Async job model:
    1. trigger()         POST the profile URLs, receive a snapshot id
    2. check_progress()  running | ready | failed
    3. fetch_snapshot()  raw records once ready (HTTP 202 while still building)
    4. distill_profile() raw record → ScrapedProfile

Polling backs off progressively: most scrapes finish in 1-2 minutes, so
early checks are frequent and later checks are spaced out.

    attempts 1-5   → every 2s
    attempts 6-15  → every 5s
    attempts 16+   → every 10s
"""

import asyncio
import logging
import re
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

import httpx

from jobrank.exceptions import ScraperError
from jobrank.schemas.scrape import (
    ScrapedActivity,
    ScrapedCertification,
    ScrapedEducation,
    ScrapedExperience,
    ScrapedProfile,
    ScrapedSkill,
    ScrapeResult,
)
from jobrank.services.scrapers.base import BaseScraper

logger = logging.getLogger(__name__)

BRIGHTDATA_API_BASE = "https://api.brightdata.com/datasets/v3"
MAX_POLL_ATTEMPTS = 60
MAX_RECENT_ACTIVITY = 5

# Response keys that may carry the snapshot id, in priority order
SNAPSHOT_ID_KEYS = ("snapshot_id", "snapshotId", "id", "snapshot")

# Title patterns checked most senior first
EXPERIENCE_LEVEL_PATTERNS = [
    ("director", re.compile(r"\b(ceo|cto|cfo|coo|chief|director|vp|vice president)\b")),
    ("lead", re.compile(r"\b(lead|head|principal|staff|architect)\b")),
    ("senior", re.compile(r"\b(senior|sr\.?|iii)\b")),
    ("entry", re.compile(r"\b(junior|jr\.?|associate|ii)\b")),
    ("intern_new_grad", re.compile(r"\b(intern|trainee|apprentice|graduate)\b")),
]


def poll_interval(attempt: int) -> int:
    """Seconds to wait after the given 1-based poll attempt."""
    if attempt <= 5:
        return 2
    if attempt <= 15:
        return 5
    return 10


def extract_snapshot_id(data: Dict[str, Any]) -> str:
    """
    Read the snapshot id from a trigger response.

    Raises:
        ScraperError: If none of SNAPSHOT_ID_KEYS holds a non-empty string
    """
    for key in SNAPSHOT_ID_KEYS:
        value = data.get(key)
        if isinstance(value, str) and value:
            return value
    raise ScraperError(f"Unexpected trigger response format: {data}")


def infer_experience_level(experiences: Optional[List[Dict[str, Any]]]) -> Optional[str]:
    if not experiences:
        return None

    titles = [(e.get("title") or "").lower() for e in experiences]
    for level, pattern in EXPERIENCE_LEVEL_PATTERNS:
        if any(pattern.search(t) for t in titles):
            return level

    if len(experiences) >= 5:
        return "senior"
    if len(experiences) >= 3:
        return "mid"
    return "entry"


def distill_profile(raw: Dict[str, Any]) -> ScrapedProfile:
    """Convert one raw provider record into a ScrapedProfile."""
    name = (
        raw.get("name")
        or " ".join(p for p in (raw.get("first_name"), raw.get("last_name")) if p)
        or "Unknown"
    )
    location = raw.get("location") or raw.get("city")
    current_company = raw.get("current_company_name") or (raw.get("current_company") or {}).get("name")
    raw_experience = raw.get("experience") or []

    skills = [
        ScrapedSkill(name=s["title"])
        for s in raw.get("skills") or []
        if s.get("title")
    ]

    experiences = [
        ScrapedExperience(
            title=e.get("title") or "Unknown Role",
            company=e.get("company"),
            start_date=e.get("start_date"),
            end_date=e.get("end_date"),
            highlights=e.get("description"),
            location=e.get("location"),
            duration=e.get("duration"),
        )
        for e in raw_experience
    ]
    if not experiences and current_company:
        experiences.append(ScrapedExperience(
            title=raw.get("headline") or "Current Role",
            company=current_company,
            location=location,
        ))

    educations = [
        ScrapedEducation(
            school=e.get("title") or "Unknown School",
            degree=e.get("degree"),
            field_of_study=e.get("field_of_study"),
            start_year=e.get("start_year"),
            end_year=e.get("end_year"),
        )
        for e in raw.get("education") or []
    ]

    certifications = [
        ScrapedCertification(
            title=c.get("title") or "Unknown",
            issuer=c.get("subtitle"),
            date=c.get("date"),
        )
        for c in raw.get("certifications") or []
    ]

    activity = [
        ScrapedActivity(
            title=a.get("title") or "",
            link=a.get("link"),
            interaction=a.get("interaction"),
        )
        for a in (raw.get("activity") or [])[:MAX_RECENT_ACTIVITY]
    ]

    return ScrapedProfile(
        name=name,
        first_name=raw.get("first_name"),
        last_name=raw.get("last_name"),
        headline=raw.get("headline"),
        about=raw.get("about"),
        avatar_url=raw.get("avatar"),
        location=location,
        city=raw.get("city"),
        country_code=raw.get("country_code"),
        current_company=current_company,
        current_title=raw_experience[0].get("title") if raw_experience else None,
        experience_level=infer_experience_level(raw_experience),
        skills=skills,
        experiences=experiences,
        educations=educations,
        certifications=certifications,
        followers=raw.get("followers"),
        connections=raw.get("connections"),
        recommendations_count=raw.get("recommendations_count"),
        languages=[l["title"] for l in raw.get("languages") or [] if l.get("title")],
        recent_activity=activity,
        linkedin_url=raw.get("url") or raw.get("input_url") or "",
        linkedin_id=raw.get("linkedin_id") or raw.get("linkedin_num_id"),
        scraped_at=datetime.now(timezone.utc).isoformat(),
    )


class BrightDataProfileScraper(BaseScraper):
    """
    LinkedIn profile scraper backed by a BrightData dataset.

    Attributes:
        api_key: BrightData API token
        dataset_id: Dataset to trigger
        max_attempts: Poll attempts before giving up
    """

    source = "brightdata"

    def __init__(
        self,
        api_key: str,
        dataset_id: str,
        max_attempts: int = MAX_POLL_ATTEMPTS,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.api_key = api_key
        self.dataset_id = dataset_id
        self.max_attempts = max_attempts
        self._sleep = sleep
        self._client = httpx.AsyncClient(
            base_url=BRIGHTDATA_API_BASE,
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def trigger(self, urls: Sequence[str]) -> str:
        response = await self._client.post(
            "/trigger",
            params={"dataset_id": self.dataset_id, "include_errors": "true"},
            json=[{"url": url} for url in urls],
        )
        if response.is_error:
            raise ScraperError(f"Trigger failed: {response.status_code} - {response.text}")

        data = response.json()
        logger.info(f"Trigger response: {data}")
        return extract_snapshot_id(data)

    async def _progress(self, snapshot_id: str) -> Dict[str, Any]:
        response = await self._client.get(f"/progress/{snapshot_id}")
        if response.is_error:
            # Treat as still running; the snapshot fetch will surface real errors
            logger.warning(f"Progress check failed: {response.status_code}")
            return {"status": "running"}
        return response.json()

    @staticmethod
    def _status(progress: Dict[str, Any]) -> str:
        status = progress.get("status")
        if status in ("ready", "completed"):
            return "ready"
        if status in ("failed", "error"):
            return "failed"
        return "running"

    async def check_progress(self, snapshot_id: str) -> str:
        """Return "running", "ready" or "failed"."""
        return self._status(await self._progress(snapshot_id))

    async def fetch_snapshot(self, snapshot_id: str) -> Optional[List[Dict[str, Any]]]:
        """
        Return raw records once ready, or None while the snapshot is still building.

        Raises:
            ScraperError: If the provider reports the snapshot failed
        """
        progress = await self._progress(snapshot_id)
        status = self._status(progress)
        if status == "failed":
            raise ScraperError(f"Scrape failed: {progress.get('error') or 'Unknown error'}")
        if status == "running":
            return None

        response = await self._client.get(f"/snapshot/{snapshot_id}", params={"format": "json"})
        if response.status_code == 202:
            return None
        if response.is_error:
            raise ScraperError(
                f"Snapshot fetch failed: {response.status_code} - {response.text}"
            )

        data = response.json()
        logger.info(f"Snapshot fetched with {len(data)} profile(s)")
        return data

    async def scrape(self, url: str, additional_urls: Sequence[str] = ()) -> ScrapeResult:
        """
        Scrape one or more profiles. Errors are reported in the result, never raised.

        Returns:
            ScrapeResult with the primary profile, all profiles, and the snapshot id
        """
        urls = [url, *additional_urls]
        logger.info(f"Scraping {len(urls)} LinkedIn profile(s)")
        snapshot_id = None

        try:
            snapshot_id = await self.trigger(urls)
            logger.info(f"Snapshot created: {snapshot_id}")

            records: List[Dict[str, Any]] = []
            for attempt in range(1, self.max_attempts + 1):
                data = await self.fetch_snapshot(snapshot_id)
                if data:
                    records = data
                    logger.info(f"Received {len(records)} profile(s) after {attempt} attempts")
                    break
                await self._sleep(poll_interval(attempt))

            if not records:
                return ScrapeResult(
                    success=False,
                    error="Scraping timed out or returned no data",
                    snapshot_id=snapshot_id,
                )

            profiles = [distill_profile(r) for r in records]
            return ScrapeResult(
                success=True,
                profile=profiles[0],
                profiles=profiles,
                snapshot_id=snapshot_id,
            )

        except (ScraperError, httpx.HTTPError) as e:
            logger.error(f"Scraping failed: {e}")
            return ScrapeResult(success=False, error=str(e), snapshot_id=snapshot_id)
