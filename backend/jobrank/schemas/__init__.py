from jobrank.schemas.job import (
    JOB_COLUMNS,
    JobRow,
    ShortlistMatch,
    EnrichedJob,
    EnrichmentResult,
)
from jobrank.schemas.profile import ProfileRow, SkillRow, ExperienceRow, PreferencesRow
from jobrank.schemas.ranking import ScoreBreakdown, RankedJob, RankingResult, RankingRecord
from jobrank.schemas.run import EnrichmentRunRequest, RunMetrics, ScrapeRequest, TaskAccepted
from jobrank.schemas.scrape import ScrapedProfile, ScrapeResult

__all__ = [
    "JOB_COLUMNS",
    "JobRow",
    "ShortlistMatch",
    "EnrichedJob",
    "EnrichmentResult",
    "ProfileRow",
    "SkillRow",
    "ExperienceRow",
    "PreferencesRow",
    "ScoreBreakdown",
    "RankedJob",
    "RankingResult",
    "RankingRecord",
    "EnrichmentRunRequest",
    "RunMetrics",
    "ScrapeRequest",
    "TaskAccepted",
    "ScrapedProfile",
    "ScrapeResult",
]
