from jobrank.services.scrapers.base import BaseScraper
from jobrank.services.scrapers.profile import BrightDataProfileScraper

__all__ = ["BaseScraper", "BrightDataProfileScraper"]
