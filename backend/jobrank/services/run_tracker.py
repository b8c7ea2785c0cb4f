"""
Run Status Tracker - agent_runs lifecycle bookkeeping

Status Flow:
    queued → running → succeeded | failed

Each transition is a single best-effort PATCH keyed by run id. A failed
write is logged by the gateway and never raised.
"""

import logging
from datetime import datetime, timezone

from jobrank.schemas import RunMetrics
from jobrank.services.gateway import SupabaseGateway, eq

logger = logging.getLogger(__name__)

AGENT_RUNS_TABLE = "agent_runs"


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class RunTracker:
    def __init__(self, gateway: SupabaseGateway, agent_run_id: str) -> None:
        self.gateway = gateway
        self.agent_run_id = agent_run_id

    async def _update(self, fields: dict) -> bool:
        return await self.gateway.patch(
            AGENT_RUNS_TABLE, {"id": eq(self.agent_run_id)}, fields
        )

    async def mark_running(self) -> bool:
        return await self._update({"status": "running", "started_at": utc_now()})

    async def mark_succeeded(self, metrics: RunMetrics) -> bool:
        return await self._update({
            "status": "succeeded",
            "outputs": metrics.model_dump(),
            "finished_at": utc_now(),
        })

    async def mark_failed(self, error_text: str) -> bool:
        return await self._update({
            "status": "failed",
            "error_text": error_text,
            "finished_at": utc_now(),
        })
