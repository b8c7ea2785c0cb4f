"""
Prompts and output schemas for the enrichment and ranking completions.
"""

from typing import Sequence

from jobrank.schemas import JobRow
from jobrank.services.profile_context import format_number

RANK_DESCRIPTION_LIMIT = 1500

ENRICH_JSON_SCHEMA = {
    "type": "object",
    "properties": {
        "jobs": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "id": {"type": "string"},
                    "ai_seniority": {"type": "string", "enum": ["junior", "mid", "senior"]},
                    "ai_summary": {"type": "string"},
                    "description_md": {"type": "string"},
                },
                "required": ["id", "ai_seniority", "ai_summary", "description_md"],
                "additionalProperties": False,
            },
        },
    },
    "required": ["jobs"],
    "additionalProperties": False,
}

RANK_JSON_SCHEMA = {
    "type": "object",
    "properties": {
        "jobs": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "id": {"type": "string"},
                    "score": {"type": "number"},
                    "breakdown": {
                        "type": "object",
                        "properties": {
                            "skill_match": {"type": "number"},
                            "budget_fit": {"type": "number"},
                            "client_quality": {"type": "number"},
                            "scope_fit": {"type": "number"},
                            "win_probability": {"type": "number"},
                        },
                        "required": [
                            "skill_match",
                            "budget_fit",
                            "client_quality",
                            "scope_fit",
                            "win_probability",
                        ],
                        "additionalProperties": False,
                    },
                    "reasoning": {"type": "string"},
                },
                "required": ["id", "score", "breakdown", "reasoning"],
                "additionalProperties": False,
            },
        },
    },
    "required": ["jobs"],
    "additionalProperties": False,
}

ENRICH_SYSTEM_PROMPT = """You are a job posting enrichment assistant. For each job, you must:

1. **ai_seniority**: Classify as "junior", "mid", or "senior" based on:
   - Years of experience required (0-2 = junior, 3-5 = mid, 6+ = senior)
   - Skill complexity and leadership expectations
   - Budget/rate (higher rates suggest senior)
   - If unclear, default to "mid"

2. **ai_summary**: Write 2-3 concise sentences covering:
   - What the role does day-to-day
   - Key technologies or skills required
   - Any standout details (remote, equity, growth potential)

3. **description_md**: Rewrite the raw description as clean Markdown:
   - Use ## headings: "Role", "Responsibilities", "Requirements", "Nice to Have", "About the Company"
   - Use bullet lists for items
   - Remove duplicate info, fix formatting, preserve all meaningful content
   - If a section has no content, omit it entirely

Always return the same job IDs you received."""

RANK_SYSTEM_PROMPT = """You are a job-candidate match scorer. For each job, evaluate how well it matches the freelancer's profile.

## Scoring Weights
- **skill_match (30%)**: How well do the job's required skills overlap with the freelancer's skills?
- **budget_fit (25%)**: Does the job's budget/rate align with the freelancer's rate expectations?
- **client_quality (15%)**: Client rating, hire count, payment verification, company reputation
- **scope_fit (15%)**: Does the project scope/type match the freelancer's preferred work style?
- **win_probability (15%)**: Given competition level and the freelancer's experience, how likely are they to win?

## Overall Score
The overall score is a weighted average: skill_match*0.30 + budget_fit*0.25 + client_quality*0.15 + scope_fit*0.15 + win_probability*0.15

## Match Tightness
Tightness runs from 1 (broad: reward adjacent skills and stretch roles) to 5 (strict: only close matches score well).

## Rules
- Each sub-score is 0-100
- The reasoning should be 1-2 sentences explaining the main factors
- Be honest, a poor match should score low
- Always return the same job IDs you received"""


def format_budget(job: JobRow) -> str:
    if job.budget_type == "hourly":
        return f"${format_number(job.hourly_min)}–{format_number(job.hourly_max)}/hr"
    if job.budget_type == "fixed":
        return f"Fixed ${format_number(job.fixed_budget_min)}–{format_number(job.fixed_budget_max)}"
    return "Not specified"


def format_client(job: JobRow) -> str:
    rating = job.client_rating if job.client_rating is not None else "N/A"
    hires = job.client_hires or 0
    payment = "verified" if job.client_payment_verified else "unverified"
    return f"Rating {rating}, {hires} hires, Payment {payment}"


def build_enrichment_prompt(batch: Sequence[JobRow]) -> str:
    sections = [
        f"### Job {idx} (id: {job.id})\n"
        f"**Title:** {job.title}\n"
        f"**Description:**\n{job.description}"
        for idx, job in enumerate(batch, start=1)
    ]
    return f"Enrich the following {len(batch)} job(s):\n\n" + "\n\n---\n\n".join(sections)


def build_ranking_prompt(profile_context: str, tightness: int, batch: Sequence[JobRow]) -> str:
    sections = [
        f"### Job {idx} (id: {job.id})\n"
        f"**Title:** {job.title}\n"
        f"**Skills:** {', '.join(job.skills)}\n"
        f"**Budget:** {format_budget(job)}\n"
        f"**Client:** {format_client(job)}\n"
        f"**Description:**\n{job.description[:RANK_DESCRIPTION_LIMIT]}"
        for idx, job in enumerate(batch, start=1)
    ]
    return (
        f"## Freelancer Profile\n{profile_context}\n\n"
        f"## Match Tightness\n{tightness}\n\n"
        f"## Jobs to Score\n\n" + "\n\n---\n\n".join(sections)
    )
