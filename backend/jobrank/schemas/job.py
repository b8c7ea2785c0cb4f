from pydantic import BaseModel, field_validator
from typing import Literal, Optional


JOB_COLUMNS = (
    "id,title,description,skills,seniority,budget_type,hourly_min,hourly_max,"
    "fixed_budget_min,fixed_budget_max,client_rating,client_hires,"
    "client_payment_verified,ai_summary,enriched_at"
)


class JobRow(BaseModel):
    """A scraped job posting as read from the jobs table."""

    id: str
    title: str
    description: str = ""
    skills: list[str] = []
    seniority: Optional[str] = None
    budget_type: Optional[str] = None
    hourly_min: Optional[float] = None
    hourly_max: Optional[float] = None
    fixed_budget_min: Optional[float] = None
    fixed_budget_max: Optional[float] = None
    client_rating: Optional[float] = None
    client_hires: Optional[int] = None
    client_payment_verified: Optional[bool] = None
    ai_summary: Optional[str] = None
    enriched_at: Optional[str] = None

    @field_validator("description", mode="before")
    @classmethod
    def _null_description(cls, value):
        return "" if value is None else value

    @field_validator("skills", mode="before")
    @classmethod
    def _null_skills(cls, value):
        return [] if value is None else value

    @property
    def is_enriched(self) -> bool:
        return self.ai_summary is not None

    def embedding_text(self, limit: int = 2000) -> str:
        return f"{self.title}\n{self.description[:limit]}"


class ShortlistMatch(BaseModel):
    """One row returned by the similarity search procedure."""

    job_id: str
    similarity: float


class EnrichedJob(BaseModel):
    id: str
    ai_seniority: Literal["junior", "mid", "senior"]
    ai_summary: str
    description_md: str


class EnrichmentResult(BaseModel):
    jobs: list[EnrichedJob]
