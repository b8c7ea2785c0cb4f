from abc import ABC, abstractmethod
from typing import Sequence
from jobrank.schemas.scrape import ScrapeResult


class BaseScraper(ABC):
    """Base class for profile scrapers"""

    source: str = "unknown"

    @abstractmethod
    async def scrape(self, url: str, additional_urls: Sequence[str] = ()) -> ScrapeResult:
        """Scrape a profile URL into a structured record or a failure result"""
        pass
