"""
Tests for prompt construction.
"""
from jobrank.schemas import JobRow
from jobrank.services.prompts import (
    RANK_DESCRIPTION_LIMIT,
    build_enrichment_prompt,
    build_ranking_prompt,
    format_budget,
    format_client,
)


def job(**fields):
    values = {"id": "job-1", "title": "Data Engineer", "description": "Build pipelines."}
    values.update(fields)
    return JobRow(**values)


class TestFormatBudget:
    def test_hourly(self):
        assert format_budget(job(budget_type="hourly", hourly_min=40, hourly_max=80.0)) == "$40–80/hr"

    def test_fixed(self):
        assert format_budget(job(
            budget_type="fixed", fixed_budget_min=500, fixed_budget_max=None
        )) == "Fixed $500–?"

    def test_unspecified(self):
        assert format_budget(job()) == "Not specified"


class TestFormatClient:
    def test_full(self):
        text = format_client(job(client_rating=4.9, client_hires=7, client_payment_verified=True))
        assert text == "Rating 4.9, 7 hires, Payment verified"

    def test_missing(self):
        assert format_client(job()) == "Rating N/A, 0 hires, Payment unverified"


class TestJobRow:
    def test_null_description_and_skills(self):
        row = JobRow.model_validate({"id": "j", "title": "T", "description": None, "skills": None})
        assert row.description == ""
        assert row.skills == []
        assert row.embedding_text() == "T\n"

    def test_embedding_text_truncates(self):
        row = job(description="x" * 3000)
        assert len(row.embedding_text(2000)) == len("Data Engineer\n") + 2000


class TestPromptBuilders:
    def test_enrichment_prompt_lists_ids(self):
        prompt = build_enrichment_prompt([job(id="a"), job(id="b")])

        assert prompt.startswith("Enrich the following 2 job(s):")
        assert "### Job 1 (id: a)" in prompt
        assert "### Job 2 (id: b)" in prompt

    def test_ranking_prompt_sections(self):
        prompt = build_ranking_prompt(
            "Name: Ada", 5, [job(skills=["sql", "dbt"], description="y" * 2000)]
        )

        assert prompt.startswith("## Freelancer Profile\nName: Ada")
        assert "## Match Tightness\n5" in prompt
        assert "**Skills:** sql, dbt" in prompt
        assert "y" * RANK_DESCRIPTION_LIMIT in prompt
        assert "y" * (RANK_DESCRIPTION_LIMIT + 1) not in prompt
