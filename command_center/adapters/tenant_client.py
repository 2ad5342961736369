"""PostgREST client bound to one tenant backend project."""

import logging
import time
from typing import Dict, Any, List, Optional
from urllib.parse import quote

import httpx

from command_center.infra.config import config
from command_center.infra.error_handler import wrap_backend_error
from command_center.infra.metrics import backend_queries_total, backend_query_duration
from command_center.models.tenant import TenantConfig, ExecContext

logger = logging.getLogger("command_center.tenant_client")


class TenantClient:
    """Client for one tenant's Supabase REST endpoint.

    Opened once per (agent id, execution context) by the client cache and
    shared by every request for that tenant. Callers borrow it and must not
    keep their own reference.

    Exposes row queries (``select``, ``select_one``, ``rpc``) and a small
    session surface (``set_session``, ``clear_session``) for user JWTs.
    """

    def __init__(
        self,
        agent_id: str,
        endpoint_url: str,
        credential: str,
        exec_context: ExecContext,
        timeout: float = config.BACKEND_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.agent_id = agent_id
        self.endpoint_url = endpoint_url.rstrip("/")
        self.exec_context = exec_context
        # Distinct per tenant so sessions never collide in shared browser storage
        self.storage_key = f"sb-{agent_id}-auth"
        self.persist_session = exec_context == ExecContext.BROWSER
        self._credential = credential
        self._access_token: Optional[str] = None
        self._http = httpx.AsyncClient(
            base_url=f"{self.endpoint_url}/rest/v1",
            headers={"apikey": credential, "Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    @property
    def credential(self) -> str:
        """API key this handle authenticates with."""
        return self._credential

    @property
    def closed(self) -> bool:
        return self._http.is_closed

    @property
    def has_session(self) -> bool:
        return self._access_token is not None

    def set_session(self, access_token: str) -> None:
        """Attach a user access token; requests then run under that user's policies."""
        if not access_token:
            raise ValueError("access_token cannot be empty")
        self._access_token = access_token

    def clear_session(self) -> None:
        self._access_token = None

    def _auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self._access_token or self._credential}"}

    async def select(
        self,
        table: str,
        columns: str = "*",
        filters: Optional[Dict[str, Any]] = None,
        order: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        Select rows from a table.

        Args:
            table: Table or view name (may contain spaces, e.g. "Leads CRM")
            columns: PostgREST select list
            filters: Column -> value equality filters
            order: PostgREST order clause, e.g. "created_at.desc"
            limit: Maximum number of rows

        Returns:
            Rows in backend order

        Raises:
            CommandCenterError: Mapped from the transport or HTTP failure
        """
        params: Dict[str, Any] = {"select": " ".join(columns.split())}
        for column, value in (filters or {}).items():
            params[column] = f"eq.{value}"
        if order:
            params["order"] = order
        if limit is not None:
            params["limit"] = str(limit)

        rows = await self._request("GET", f"/{quote(table)}", table, params=params)
        return rows or []

    async def select_one(
        self,
        table: str,
        columns: str = "*",
        filters: Optional[Dict[str, Any]] = None,
        order: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        """Select the first matching row, or None when there is none."""
        rows = await self.select(table, columns=columns, filters=filters, order=order, limit=1)
        return rows[0] if rows else None

    async def rpc(self, function: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Call a Postgres function exposed through PostgREST."""
        return await self._request("POST", f"/rpc/{quote(function)}", f"rpc:{function}", json=params or {})

    async def _request(self, method: str, path: str, target: str, **kwargs) -> Any:
        start_time = time.time()
        try:
            response = await self._http.request(method, path, headers=self._auth_headers(), **kwargs)
            response.raise_for_status()
        except httpx.HTTPError as e:
            backend_queries_total.labels(agent_id=self.agent_id, table=target, status="failure").inc()
            logger.warning(
                "Backend query failed",
                extra={
                    "agent_id": self.agent_id,
                    "exec_context": self.exec_context.value,
                    "table": target,
                    "error": str(e),
                },
            )
            raise wrap_backend_error(e, self.agent_id, target) from e
        finally:
            backend_query_duration.labels(agent_id=self.agent_id, table=target).observe(time.time() - start_time)

        backend_queries_total.labels(agent_id=self.agent_id, table=target, status="success").inc()
        if not response.content:
            return None
        return response.json()

    async def aclose(self) -> None:
        await self._http.aclose()

    def __repr__(self) -> str:
        return f"TenantClient(agent_id={self.agent_id!r}, exec_context={self.exec_context.value!r})"


async def open_tenant_client(tenant_config: TenantConfig, exec_context: ExecContext) -> TenantClient:
    """Open a client for ``tenant_config`` scoped to ``exec_context``."""
    return TenantClient(
        agent_id=tenant_config.agent_id,
        endpoint_url=tenant_config.endpoint_url,
        credential=tenant_config.credential_for(exec_context),
        exec_context=exec_context,
    )
