"""
Data Gateway - PostgREST access to the relational store

Thin async wrapper over the data store's REST endpoint, authenticated
with the service role key.

Operations:
    - get():   Read rows (raises GatewayError on failure)
    - post():  Insert a row, returns the created representation (raises)
    - rpc():   Call a stored procedure (raises)
    - patch(): Field-scoped update, best effort (logs, returns False)

Filter Syntax:
    Filters are passed as PostgREST query params, e.g.
        {"team_id": "eq.<uuid>", "embedding": "is.null", "limit": 500}

Usage:
    async with SupabaseGateway(url, service_key) as gateway:
        rows = await gateway.get("jobs", {"team_id": f"eq.{team_id}"})
        await gateway.patch("jobs", {"id": f"eq.{job_id}"}, {"embedding": "[...]"})
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

import httpx

from jobrank.exceptions import GatewayError

logger = logging.getLogger(__name__)

Params = Mapping[str, Any]


def eq(value: Any) -> str:
    return f"eq.{value}"


def in_list(values: List[str]) -> str:
    return f"in.({','.join(values)})"


class SupabaseGateway:
    """
    Async PostgREST client.

    Attributes:
        base_url: Project URL (without the /rest/v1 suffix)
        service_key: Service role key used as both apikey and bearer token
    """

    def __init__(
        self,
        base_url: str,
        service_key: str,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.service_key = service_key
        self._client = httpx.AsyncClient(
            base_url=f"{self.base_url}/rest/v1",
            headers={
                "apikey": service_key,
                "Authorization": f"Bearer {service_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "SupabaseGateway":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _send(
        self,
        method: str,
        path: str,
        params: Optional[Params] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        try:
            return await self._client.request(
                method, f"/{path}", params=params, json=json, headers=headers
            )
        except httpx.HTTPError as e:
            raise GatewayError(method, path, 0, str(e)) from e

    async def get(self, table: str, params: Optional[Params] = None) -> List[Dict[str, Any]]:
        """
        Read rows from a table.

        Args:
            table: Table or view name
            params: PostgREST filters plus select/limit/order

        Returns:
            List of row dicts

        Raises:
            GatewayError: On transport failure or non-2xx status
        """
        response = await self._send("GET", table, params=params)
        if response.is_error:
            raise GatewayError("GET", table, response.status_code, response.text)
        return response.json()

    async def post(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        """Insert one row and return the stored representation."""
        response = await self._send(
            "POST", table, json=row, headers={"Prefer": "return=representation"}
        )
        if response.is_error:
            raise GatewayError("POST", table, response.status_code, response.text)
        data = response.json()
        # PostgREST returns an array for representation inserts
        if isinstance(data, list):
            return data[0] if data else {}
        return data

    async def rpc(self, name: str, args: Dict[str, Any]) -> Any:
        """Call a stored procedure with named arguments."""
        response = await self._send("POST", f"rpc/{name}", json=args)
        if response.is_error:
            raise GatewayError("RPC", name, response.status_code, response.text)
        return response.json()

    async def patch(self, table: str, filters: Params, row: Dict[str, Any]) -> bool:
        """
        Best-effort, field-scoped update.

        Failures are logged and swallowed so one incidental write cannot
        abort a batch. The return value tells the caller whether the write
        was confirmed; callers are free to ignore it.

        Returns:
            True if the store acknowledged the update
        """
        try:
            response = await self._client.patch(
                f"/{table}",
                params=filters,
                json=row,
                headers={"Prefer": "return=minimal"},
            )
        except httpx.HTTPError as e:
            logger.error(f"Gateway PATCH {table} {dict(filters)} failed: {e}")
            return False

        if response.is_error:
            logger.error(
                f"Gateway PATCH {table} {dict(filters)} failed: "
                f"{response.status_code} - {response.text}"
            )
            return False
        return True
