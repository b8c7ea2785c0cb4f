"""
Enrichment Pipeline - Embed, Shortlist, Enrich, Rank

The core batch job behind every enrichment run. Given a team's job pool
and a freelancer's profile it:

    1. Builds the profile context string
    2. Embeds the profile (always refreshed)
    3. Embeds every job in the pool that has no embedding yet
    4. Shortlists the closest jobs via the similarity search procedure
    5. Enriches shortlisted jobs with seniority, summary and markdown
    6. Ranks shortlisted jobs and appends ranking records
    7. Finalizes the agent run with aggregate counts

State Flow:
    QUEUED → CONTEXT_BUILT → PROFILE_EMBEDDED → JOBS_EMBEDDED → SHORTLISTED
           → ENRICHED → RANKED → FINALIZED
    Any uncaught exception → FAILED (recorded on the run, not re-raised)

Failure Policy:
    - Gateway reads, RPC and embedding batches are fatal to the run
    - PATCH failures are logged by the gateway and the run continues
    - Enrichment and ranking batches are isolated: a failing batch is
      logged and skipped, the remaining batches still run
    - An empty shortlist is a successful run with zero downstream counts

Counting:
    jobs_embedded counts jobs dispatched for embedding, including any whose
    PATCH later failed. jobs_enriched and jobs_ranked count per-job writes
    issued from successful completions.

Batching:
    All I/O is awaited sequentially. Batch sizes are independent:
    100 texts per embedding call, 5 jobs per enrichment or ranking call.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from prometheus_client import Counter

from jobrank.exceptions import PipelineCancelled
from jobrank.schemas import (
    JOB_COLUMNS,
    EnrichmentResult,
    ExperienceRow,
    JobRow,
    PreferencesRow,
    ProfileRow,
    RankingRecord,
    RankingResult,
    RunMetrics,
    ShortlistMatch,
    SkillRow,
)
from jobrank.services.completions import CompletionProvider
from jobrank.services.embeddings import EmbeddingProvider
from jobrank.services.gateway import SupabaseGateway, eq, in_list
from jobrank.services.matcher import reconcile_score
from jobrank.services.profile_context import build_profile_context
from jobrank.services.prompts import (
    ENRICH_JSON_SCHEMA,
    ENRICH_SYSTEM_PROMPT,
    RANK_JSON_SCHEMA,
    RANK_SYSTEM_PROMPT,
    build_enrichment_prompt,
    build_ranking_prompt,
)
from jobrank.services.run_tracker import RunTracker, utc_now

logger = logging.getLogger(__name__)

EMBED_BATCH_SIZE = 100
ENRICH_BATCH_SIZE = 5
RANK_BATCH_SIZE = 5
JOB_POOL_LIMIT = 500
EMBED_TEXT_LIMIT = 2000
MATCH_COUNT = 50
MATCH_THRESHOLD = 0.2
DEFAULT_TIGHTNESS = 3
MATCH_RPC = "match_jobs_by_embedding"

# ==================== Prometheus Metrics ====================

EMBEDDINGS_GENERATED = Counter(
    "embeddings_generated_total",
    "Number of embeddings generated",
    ["kind"]  # profile, job
)

BATCH_FAILURES = Counter(
    "pipeline_batch_failures_total",
    "Enrichment/ranking batches skipped after a failure",
    ["stage"]
)

PIPELINE_RUNS = Counter(
    "pipeline_runs_total",
    "Enrichment runs by terminal status",
    ["status"]
)


class PipelineState(str, Enum):
    QUEUED = "queued"
    CONTEXT_BUILT = "context_built"
    PROFILE_EMBEDDED = "profile_embedded"
    JOBS_EMBEDDED = "jobs_embedded"
    SHORTLISTED = "shortlisted"
    ENRICHED = "enriched"
    RANKED = "ranked"
    FINALIZED = "finalized"
    FAILED = "failed"


@dataclass
class RunContext:
    """Mutable state threaded through the phases of one run."""

    team_id: str
    user_id: str
    agent_run_id: str
    state: PipelineState = PipelineState.QUEUED
    profile_context: str = ""
    profile_embedding: List[float] = field(default_factory=list)
    tightness: int = DEFAULT_TIGHTNESS
    shortlisted_jobs: List[JobRow] = field(default_factory=list)
    metrics: RunMetrics = field(default_factory=RunMetrics)
    error: Optional[str] = None


def to_vector_literal(vector: Sequence[float]) -> str:
    """Serialize a vector the way the store's vector column accepts it."""
    return json.dumps(list(vector))


def chunked(items: Sequence[Any], size: int) -> List[Sequence[Any]]:
    return [items[i:i + size] for i in range(0, len(items), size)]


class EnrichmentPipeline:
    """
    Orchestrates one enrichment run over a team's job pool.

    Attributes:
        gateway: Data store access
        embedder: Embedding provider (order-preserving)
        completer: Structured completion provider
        cancel_event: Optional signal checked between phases and batches
    """

    def __init__(
        self,
        gateway: SupabaseGateway,
        embedder: EmbeddingProvider,
        completer: CompletionProvider,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> None:
        self.gateway = gateway
        self.embedder = embedder
        self.completer = completer
        self.cancel_event = cancel_event

    # ==================== Entry Point ====================

    async def run(self, team_id: str, user_id: str, agent_run_id: str) -> RunContext:
        """
        Execute the full pipeline. Never raises for ordinary failures.

        Args:
            team_id: Team owning the job pool
            user_id: Freelancer whose profile drives matching
            agent_run_id: Pre-created agent_runs row to update

        Returns:
            The final RunContext (state is FINALIZED or FAILED)

        Raises:
            asyncio.CancelledError: Re-raised after the run is marked failed
        """
        ctx = RunContext(team_id=team_id, user_id=user_id, agent_run_id=agent_run_id)
        tracker = RunTracker(self.gateway, agent_run_id)

        try:
            await tracker.mark_running()

            await self._build_context(ctx)
            await self._embed_profile(ctx)
            await self._embed_jobs(ctx)

            if await self._shortlist(ctx):
                await self._enrich(ctx)
                await self._rank(ctx)

            await tracker.mark_succeeded(ctx.metrics)
            self._advance(ctx, PipelineState.FINALIZED)
            PIPELINE_RUNS.labels(status="succeeded").inc()
            logger.info(f"Enrichment complete for run {agent_run_id}: {ctx.metrics.model_dump()}")

        except asyncio.CancelledError:
            ctx.error = "Run cancelled"
            ctx.state = PipelineState.FAILED
            PIPELINE_RUNS.labels(status="failed").inc()
            logger.error(f"Enrichment run {agent_run_id} cancelled")
            await tracker.mark_failed(ctx.error)
            raise

        except Exception as e:
            ctx.error = str(e) or type(e).__name__
            ctx.state = PipelineState.FAILED
            PIPELINE_RUNS.labels(status="failed").inc()
            logger.exception(f"Enrichment run {agent_run_id} failed: {ctx.error}")
            await tracker.mark_failed(ctx.error)

        return ctx

    # ==================== Helpers ====================

    def _advance(self, ctx: RunContext, state: PipelineState) -> None:
        logger.info(f"Run {ctx.agent_run_id}: {ctx.state.value} → {state.value}")
        ctx.state = state

    def _checkpoint(self) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise PipelineCancelled("Run cancelled")

    async def _fetch_jobs(self, params: Dict[str, Any]) -> List[JobRow]:
        rows = await self.gateway.get("jobs", {"select": JOB_COLUMNS, **params})
        return [JobRow.model_validate(row) for row in rows]

    # ==================== Phases ====================

    async def _build_context(self, ctx: RunContext) -> None:
        logger.info("Step 1: Fetching user profile for context")
        user = eq(ctx.user_id)

        profiles = await self.gateway.get("profiles", {
            "user_id": user,
            "select": "display_name,headline,about,location,country_code",
            "limit": 1,
        })
        skills = await self.gateway.get("user_skills", {
            "user_id": user,
            "select": "name,level,years",
        })
        experiences = await self.gateway.get("user_experiences", {
            "user_id": user,
            "select": "title,company,start_date,end_date,highlights",
        })
        preferences = await self.gateway.get("user_preferences", {
            "user_id": user,
            "select": "hourly_min,hourly_max,currency,tightness,platforms,project_types",
            "limit": 1,
        })

        profile = ProfileRow.model_validate(profiles[0]) if profiles else None
        prefs = PreferencesRow.model_validate(preferences[0]) if preferences else None

        ctx.profile_context = build_profile_context(
            profile,
            [SkillRow.model_validate(s) for s in skills],
            [ExperienceRow.model_validate(e) for e in experiences],
            prefs,
        )
        if prefs is not None:
            ctx.tightness = prefs.tightness

        self._advance(ctx, PipelineState.CONTEXT_BUILT)

    async def _embed_profile(self, ctx: RunContext) -> None:
        logger.info("Step 2: Embedding user profile")
        self._checkpoint()

        [ctx.profile_embedding] = await self.embedder.embed([ctx.profile_context])
        EMBEDDINGS_GENERATED.labels(kind="profile").inc()

        await self.gateway.patch("profiles", {"user_id": eq(ctx.user_id)}, {
            "embedding": to_vector_literal(ctx.profile_embedding),
            "embedding_updated_at": utc_now(),
        })

        self._advance(ctx, PipelineState.PROFILE_EMBEDDED)

    async def _embed_jobs(self, ctx: RunContext) -> None:
        logger.info("Step 3: Fetching and embedding unembedded jobs")

        pending = await self._fetch_jobs({
            "team_id": eq(ctx.team_id),
            "embedding": "is.null",
            "limit": JOB_POOL_LIMIT,
        })
        logger.info(f"Found {len(pending)} unembedded jobs")

        for batch in chunked(pending, EMBED_BATCH_SIZE):
            self._checkpoint()
            texts = [job.embedding_text(EMBED_TEXT_LIMIT) for job in batch]

            # All-or-nothing: an EmbeddingError here fails the run
            vectors = await self.embedder.embed(texts)

            for job, vector in zip(batch, vectors):
                # Best effort; the count below still includes this job
                await self.gateway.patch("jobs", {"id": eq(job.id)}, {
                    "embedding": to_vector_literal(vector),
                })

            ctx.metrics.jobs_embedded += len(batch)
            EMBEDDINGS_GENERATED.labels(kind="job").inc(len(batch))
            logger.info(f"Embedded {ctx.metrics.jobs_embedded}/{len(pending)} jobs")

        self._advance(ctx, PipelineState.JOBS_EMBEDDED)

    async def _shortlist(self, ctx: RunContext) -> bool:
        """Returns False when nothing matched and downstream phases should be skipped."""
        logger.info(f"Step 4: Shortlisting top {MATCH_COUNT} jobs by embedding similarity")
        self._checkpoint()

        raw = await self.gateway.rpc(MATCH_RPC, {
            "p_team_id": ctx.team_id,
            "p_embedding": to_vector_literal(ctx.profile_embedding),
            "p_match_count": MATCH_COUNT,
            "p_match_threshold": MATCH_THRESHOLD,
        })
        matches = [ShortlistMatch.model_validate(m) for m in raw or []]
        ctx.metrics.jobs_shortlisted = len(matches)
        logger.info(f"Shortlisted {len(matches)} jobs")

        if not matches:
            self._advance(ctx, PipelineState.SHORTLISTED)
            return False

        match_ids = [m.job_id for m in matches]
        rows = await self._fetch_jobs({"id": in_list(match_ids)})

        # Keep similarity order
        by_id = {job.id: job for job in rows}
        ctx.shortlisted_jobs = [by_id[job_id] for job_id in match_ids if job_id in by_id]
        if len(ctx.shortlisted_jobs) < len(match_ids):
            logger.warning(
                f"{len(match_ids) - len(ctx.shortlisted_jobs)} shortlisted jobs "
                f"were not returned by the jobs query"
            )

        self._advance(ctx, PipelineState.SHORTLISTED)
        return True

    async def _enrich(self, ctx: RunContext) -> None:
        to_enrich = [job for job in ctx.shortlisted_jobs if not job.is_enriched]
        logger.info(
            f"Step 5: AI enriching {len(to_enrich)} shortlisted jobs "
            f"({len(ctx.shortlisted_jobs) - len(to_enrich)} already enriched)"
        )

        for batch in chunked(to_enrich, ENRICH_BATCH_SIZE):
            self._checkpoint()
            batch_ids = {job.id for job in batch}

            try:
                data = await self.completer.complete(
                    ENRICH_SYSTEM_PROMPT,
                    build_enrichment_prompt(batch),
                    ENRICH_JSON_SCHEMA,
                )
                result = EnrichmentResult.model_validate(data)

                for enriched in result.jobs:
                    if enriched.id not in batch_ids:
                        logger.warning(f"Ignoring enrichment for unknown job id {enriched.id}")
                        continue
                    batch_ids.discard(enriched.id)
                    await self.gateway.patch("jobs", {"id": eq(enriched.id)}, {
                        "ai_seniority": enriched.ai_seniority,
                        "ai_summary": enriched.ai_summary,
                        "description_md": enriched.description_md,
                        "enriched_at": utc_now(),
                    })
                    ctx.metrics.jobs_enriched += 1

                logger.info(f"Enriched {ctx.metrics.jobs_enriched}/{len(to_enrich)} jobs")

            except Exception as e:
                BATCH_FAILURES.labels(stage="enrich").inc()
                logger.error(f"Enrich batch failed: {e}")

        self._advance(ctx, PipelineState.ENRICHED)

    async def _rank(self, ctx: RunContext) -> None:
        logger.info(f"Step 6: AI ranking {len(ctx.shortlisted_jobs)} shortlisted jobs")
        ranked_ids = set()

        for batch in chunked(ctx.shortlisted_jobs, RANK_BATCH_SIZE):
            self._checkpoint()
            batch_ids = {job.id for job in batch}

            try:
                data = await self.completer.complete(
                    RANK_SYSTEM_PROMPT,
                    build_ranking_prompt(ctx.profile_context, ctx.tightness, batch),
                    RANK_JSON_SCHEMA,
                )
                result = RankingResult.model_validate(data)

                for ranked in result.jobs:
                    if ranked.id not in batch_ids or ranked.id in ranked_ids:
                        logger.warning(f"Ignoring ranking for job id {ranked.id}")
                        continue

                    record = RankingRecord(
                        team_id=ctx.team_id,
                        job_id=ranked.id,
                        agent_run_id=ctx.agent_run_id,
                        score=reconcile_score(ranked.id, ranked.score, ranked.breakdown),
                        breakdown=ranked.breakdown,
                        reasoning=ranked.reasoning,
                        tightness=ctx.tightness,
                    )
                    await self.gateway.post("job_rankings", record.model_dump())
                    ranked_ids.add(ranked.id)
                    ctx.metrics.jobs_ranked += 1

                logger.info(f"Ranked {ctx.metrics.jobs_ranked}/{len(ctx.shortlisted_jobs)} jobs")

            except Exception as e:
                BATCH_FAILURES.labels(stage="rank").inc()
                logger.error(f"Rank batch failed: {e}")

        self._advance(ctx, PipelineState.RANKED)
