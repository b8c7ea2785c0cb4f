"""
Shared fakes for pipeline tests.

- FakeGateway: in-memory tables understanding the PostgREST filters the
  pipeline uses (eq., is.null, in.(...), select, limit)
- StubEmbedder: returns unit vectors, records every call
- StubCompleter: answers enrichment/ranking prompts for the job ids it sees
"""

import asyncio
import re
from typing import Any, Callable, Dict, List, Optional

import pytest

from jobrank.exceptions import CompletionError
from jobrank.services.prompts import ENRICH_JSON_SCHEMA, RANK_JSON_SCHEMA

TEAM_ID = "11111111-1111-1111-1111-111111111111"
USER_ID = "22222222-2222-2222-2222-222222222222"
RUN_ID = "33333333-3333-3333-3333-333333333333"

JOB_ID_PATTERN = re.compile(r"\(id: ([^)]+)\)")


def make_job(index: int, embedding: Optional[str] = None, **fields: Any) -> Dict[str, Any]:
    job = {
        "id": f"job-{index:03d}",
        "team_id": TEAM_ID,
        "title": f"Python Developer {index}",
        "description": f"Build APIs with FastAPI. Posting number {index}.",
        "skills": ["python", "fastapi"],
        "seniority": None,
        "budget_type": "hourly",
        "hourly_min": 40,
        "hourly_max": 80,
        "fixed_budget_min": None,
        "fixed_budget_max": None,
        "client_rating": 4.8,
        "client_hires": 12,
        "client_payment_verified": True,
        "embedding": embedding,
        "ai_summary": None,
        "enriched_at": None,
    }
    job.update(fields)
    return job


class FakeGateway:
    def __init__(self, tables: Optional[Dict[str, List[Dict[str, Any]]]] = None) -> None:
        self.tables = tables or {}
        self.rpc_result: Any = []
        self.failing_patch_ids: set = set()
        self.get_error: Optional[Exception] = None
        self.post_errors: Dict[str, Exception] = {}
        self.closed = False
        self.gets: List[tuple] = []
        self.patches: List[tuple] = []
        self.posts: List[tuple] = []
        self.rpc_calls: List[tuple] = []

    @staticmethod
    def _matches(row: Dict[str, Any], filters: Dict[str, Any]) -> bool:
        for key, value in filters.items():
            if key in ("select", "limit", "order"):
                continue
            value = str(value)
            if value == "is.null":
                if row.get(key) is not None:
                    return False
            elif value.startswith("eq."):
                if str(row.get(key)) != value[3:]:
                    return False
            elif value.startswith("in.("):
                if str(row.get(key)) not in value[4:-1].split(","):
                    return False
        return True

    async def get(self, table: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        params = dict(params or {})
        self.gets.append((table, params))
        if self.get_error is not None:
            raise self.get_error

        rows = [r for r in self.tables.get(table, []) if self._matches(r, params)]
        if "limit" in params:
            rows = rows[:int(params["limit"])]
        if "select" in params:
            columns = params["select"].split(",")
            rows = [{c: r.get(c) for c in columns} for r in rows]
        return rows

    async def patch(self, table: str, filters: Dict[str, Any], row: Dict[str, Any]) -> bool:
        self.patches.append((table, dict(filters), dict(row)))
        target = str(filters.get("id", ""))[3:]
        if target in self.failing_patch_ids:
            return False
        for existing in self.tables.get(table, []):
            if self._matches(existing, filters):
                existing.update(row)
        return True

    async def post(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        self.posts.append((table, dict(row)))
        if table in self.post_errors:
            raise self.post_errors[table]
        self.tables.setdefault(table, []).append(dict(row))
        return dict(row)

    async def rpc(self, name: str, args: Dict[str, Any]) -> Any:
        self.rpc_calls.append((name, dict(args)))
        return self.rpc_result

    async def __aenter__(self) -> "FakeGateway":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.closed = True

    def patches_for(self, table: str, column: str) -> List[tuple]:
        return [p for p in self.patches if p[0] == table and column in p[2]]

    def run_row(self) -> Dict[str, Any]:
        return self.tables["agent_runs"][0]


class StubEmbedder:
    def __init__(self, dimensions: int = 3) -> None:
        self.dimensions = dimensions
        self.calls: List[List[str]] = []
        self.error: Optional[BaseException] = None
        self.fail_on_call: Optional[int] = None
        self.delay: float = 0
        self.closed = False

    async def embed(self, texts):
        self.calls.append(list(texts))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None and (
            self.fail_on_call is None or self.fail_on_call == len(self.calls)
        ):
            raise self.error
        return [[1.0] + [0.0] * (self.dimensions - 1) for _ in texts]

    async def aclose(self) -> None:
        self.closed = True


DEFAULT_BREAKDOWN = {
    "skill_match": 80,
    "budget_fit": 60,
    "client_quality": 100,
    "scope_fit": 50,
    "win_probability": 40,
}


class StubCompleter:
    """
    Answers each prompt for the job ids it contains.

    fail_enrich_calls / fail_rank_calls hold 1-based call numbers that raise.
    """

    def __init__(self) -> None:
        self.enrich_calls: List[List[str]] = []
        self.rank_calls: List[List[str]] = []
        self.user_prompts: List[str] = []
        self.fail_enrich_calls: set = set()
        self.fail_rank_calls: set = set()
        self.breakdown: Dict[str, float] = dict(DEFAULT_BREAKDOWN)
        self.reported_score: float = 68
        self.extra_ids: List[str] = []
        self.transform: Optional[Callable[[Dict[str, Any]], Dict[str, Any]]] = None
        self.closed = False

    @property
    def calls(self) -> int:
        return len(self.enrich_calls) + len(self.rank_calls)

    async def complete(self, system_prompt, user_prompt, schema, name="output"):
        ids = JOB_ID_PATTERN.findall(user_prompt) + self.extra_ids
        self.user_prompts.append(user_prompt)

        if schema is ENRICH_JSON_SCHEMA:
            self.enrich_calls.append(ids)
            if len(self.enrich_calls) in self.fail_enrich_calls:
                raise CompletionError("OpenAI chat failed: 500 - boom", status_code=500)
            data = {"jobs": [
                {
                    "id": job_id,
                    "ai_seniority": "mid",
                    "ai_summary": f"Summary for {job_id}.",
                    "description_md": f"## Role\n- {job_id}",
                }
                for job_id in ids
            ]}
        elif schema is RANK_JSON_SCHEMA:
            self.rank_calls.append(ids)
            if len(self.rank_calls) in self.fail_rank_calls:
                raise CompletionError("OpenAI chat failed: 500 - boom", status_code=500)
            data = {"jobs": [
                {
                    "id": job_id,
                    "score": self.reported_score,
                    "breakdown": dict(self.breakdown),
                    "reasoning": "Strong skill overlap.",
                }
                for job_id in ids
            ]}
        else:
            raise AssertionError("unexpected schema")

        if self.transform is not None:
            data = self.transform(data)
        return data

    async def aclose(self) -> None:
        self.closed = True


def make_tables(jobs: List[Dict[str, Any]], tightness: int = 4) -> Dict[str, List[Dict[str, Any]]]:
    return {
        "agent_runs": [{"id": RUN_ID, "status": "queued"}],
        "profiles": [{
            "user_id": USER_ID,
            "display_name": "Ada Lovelace",
            "headline": "Backend engineer",
            "about": "I build data APIs.",
            "location": "London",
            "country_code": "GB",
            "embedding": None,
        }],
        "user_skills": [
            {"user_id": USER_ID, "name": "Python", "level": 5, "years": 8},
            {"user_id": USER_ID, "name": "FastAPI", "level": 4, "years": None},
        ],
        "user_experiences": [
            {"user_id": USER_ID, "title": "Staff Engineer", "company": "Acme",
             "start_date": None, "end_date": None, "highlights": None},
        ],
        "user_preferences": [
            {"user_id": USER_ID, "hourly_min": 60, "hourly_max": 90, "currency": "USD",
             "tightness": tightness, "platforms": ["upwork"], "project_types": ["api"]},
        ],
        "jobs": jobs,
        "job_rankings": [],
    }


@pytest.fixture
def embedder() -> StubEmbedder:
    return StubEmbedder()


@pytest.fixture
def completer() -> StubCompleter:
    return StubCompleter()
