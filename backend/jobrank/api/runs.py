from fastapi import APIRouter, HTTPException, status

from jobrank.schemas import EnrichmentRunRequest, ScrapeRequest, TaskAccepted
from jobrank.tasks.enrichment import enrich_jobs, scrape_profile

router = APIRouter()


@router.post("/runs/enrichment", response_model=TaskAccepted, status_code=status.HTTP_202_ACCEPTED)
async def start_enrichment_run(request: EnrichmentRunRequest):
    result = enrich_jobs.delay(
        str(request.team_id), str(request.user_id), str(request.agent_run_id)
    )
    return TaskAccepted(task_id=result.id)


@router.post("/profiles/scrape", response_model=TaskAccepted, status_code=status.HTTP_202_ACCEPTED)
async def start_profile_scrape(request: ScrapeRequest):
    if "linkedin.com/in/" not in request.url:
        raise HTTPException(
            status_code=422,
            detail="Must be a valid LinkedIn profile URL (e.g., https://linkedin.com/in/username)",
        )
    result = scrape_profile.delay(request.url)
    return TaskAccepted(task_id=result.id)
