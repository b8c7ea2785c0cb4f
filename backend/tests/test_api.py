"""
Tests for the dispatch API.

Celery is never contacted: task .delay() calls are patched.
"""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import MagicMock, patch

from jobrank.main import app

TEAM_ID = "11111111-1111-1111-1111-111111111111"
USER_ID = "22222222-2222-2222-2222-222222222222"
RUN_ID = "33333333-3333-3333-3333-333333333333"


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_metrics_endpoint(self, client):
        """Prometheus endpoint exposes pipeline and HTTP metrics."""
        client.get("/health")
        response = client.get("/metrics")

        assert response.status_code == 200
        assert "http_requests_total" in response.text
        assert "pipeline_runs_total" in response.text


class TestEnrichmentRuns:
    @patch("jobrank.api.runs.enrich_jobs")
    def test_enqueue_run(self, mock_task, client):
        """POST /runs/enrichment should enqueue the task and return its id."""
        mock_task.delay.return_value = MagicMock(id="task-123")

        response = client.post("/runs/enrichment", json={
            "team_id": TEAM_ID,
            "user_id": USER_ID,
            "agent_run_id": RUN_ID,
        })

        assert response.status_code == 202
        assert response.json() == {"task_id": "task-123"}
        mock_task.delay.assert_called_once_with(TEAM_ID, USER_ID, RUN_ID)

    @patch("jobrank.api.runs.enrich_jobs")
    def test_invalid_payload(self, mock_task, client):
        response = client.post("/runs/enrichment", json={"team_id": "nope"})

        assert response.status_code == 422
        mock_task.delay.assert_not_called()


class TestProfileScrape:
    @patch("jobrank.api.runs.scrape_profile")
    def test_enqueue_scrape(self, mock_task, client):
        mock_task.delay.return_value = MagicMock(id="task-456")

        response = client.post("/profiles/scrape", json={"url": "https://www.linkedin.com/in/ada"})

        assert response.status_code == 202
        assert response.json() == {"task_id": "task-456"}
        mock_task.delay.assert_called_once_with("https://www.linkedin.com/in/ada")

    @patch("jobrank.api.runs.scrape_profile")
    def test_rejects_non_profile_url(self, mock_task, client):
        response = client.post("/profiles/scrape", json={"url": "https://example.com/ada"})

        assert response.status_code == 422
        assert "LinkedIn" in response.json()["detail"]
        mock_task.delay.assert_not_called()
