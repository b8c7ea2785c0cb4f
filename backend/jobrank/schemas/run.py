from pydantic import BaseModel
from uuid import UUID


class EnrichmentRunRequest(BaseModel):
    """Invocation payload for one enrichment run."""

    team_id: UUID
    user_id: UUID
    agent_run_id: UUID


class RunMetrics(BaseModel):
    """Aggregate counts written to agent_runs.outputs."""

    jobs_embedded: int = 0
    jobs_shortlisted: int = 0
    jobs_enriched: int = 0
    jobs_ranked: int = 0


class ScrapeRequest(BaseModel):
    url: str


class TaskAccepted(BaseModel):
    task_id: str
