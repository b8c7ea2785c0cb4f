from pydantic import BaseModel, Field, field_validator


class ScoreBreakdown(BaseModel):
    """Five sub-scores, each 0-100. All five are required."""

    skill_match: float
    budget_fit: float
    client_quality: float
    scope_fit: float
    win_probability: float

    @field_validator("*")
    @classmethod
    def _clamp(cls, value: float) -> float:
        return max(0.0, min(100.0, float(value)))


class RankedJob(BaseModel):
    id: str
    score: float
    breakdown: ScoreBreakdown
    reasoning: str


class RankingResult(BaseModel):
    jobs: list[RankedJob]


class RankingRecord(BaseModel):
    """Row appended to job_rankings. Never updated after insert."""

    team_id: str
    job_id: str
    agent_run_id: str
    score: int = Field(ge=0, le=100)
    breakdown: ScoreBreakdown
    reasoning: str
    tightness: int
