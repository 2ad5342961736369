"""Pytest configuration and fixtures."""

import os
from typing import Any, Dict, List, Optional
from urllib.parse import unquote

import httpx
import pytest
from dotenv import load_dotenv

# Load test environment variables
load_dotenv()

# Set test environment
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "true")

from command_center.adapters.tenant_client import TenantClient
from command_center.models.tenant import TenantConfig, ExecContext
from command_center.services.tenant_registry import TenantRegistry

REST_PREFIX = "/rest/v1/"


class FakeBackend:
    """In-memory PostgREST stand-in served through httpx.MockTransport.

    ``tables`` maps table (or ``rpc/<fn>``) to rows; ``failures`` maps a
    table to an HTTP status code or an httpx exception class.
    """

    def __init__(self, tables: Optional[Dict[str, Any]] = None):
        self.tables: Dict[str, Any] = tables or {}
        self.failures: Dict[str, Any] = {}
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        name = unquote(request.url.path)[len(REST_PREFIX):]

        failure = self.failures.get(name)
        if isinstance(failure, type) and issubclass(failure, Exception):
            raise failure("backend unreachable", request=request)
        if failure is not None:
            return httpx.Response(failure, json={"code": "XX000", "message": "backend error"})

        if name.startswith("rpc/"):
            return httpx.Response(200, json=self.tables.get(name))
        if name not in self.tables:
            return httpx.Response(404, json={"code": "PGRST205", "message": f"Could not find the table {name}"})

        rows = list(self.tables[name])
        for key, value in request.url.params.multi_items():
            if value.startswith("eq."):
                rows = [row for row in rows if str(row.get(key)) == value[len("eq."):]]
        limit = request.url.params.get("limit")
        if limit:
            rows = rows[:int(limit)]
        return httpx.Response(200, json=rows)

    def tables_requested(self) -> List[str]:
        return [unquote(r.url.path)[len(REST_PREFIX):] for r in self.requests]

    def client_for(self, tenant_config: TenantConfig, exec_context: ExecContext = ExecContext.SERVER) -> TenantClient:
        return TenantClient(
            agent_id=tenant_config.agent_id,
            endpoint_url=tenant_config.endpoint_url,
            credential=tenant_config.credential_for(exec_context),
            exec_context=exec_context,
            transport=httpx.MockTransport(self.handler),
        )

    async def open_client(self, tenant_config: TenantConfig, exec_context: ExecContext) -> TenantClient:
        """Client factory for TenantClientCache."""
        return self.client_for(tenant_config, exec_context)


def make_config(agent_id: str, **overrides) -> TenantConfig:
    slug = agent_id[len("agent-"):]
    values = dict(
        agent_id=agent_id,
        endpoint_url=f"https://{slug}.supabase.co",
        credential=f"anon-{slug}",
        display_name=slug.capitalize(),
        context_label="test",
        service_credential=f"service-{slug}",
    )
    values.update(overrides)
    return TenantConfig(**values)


@pytest.fixture
def tenant_configs():
    """One fully configured entry per known tenant."""
    return [
        make_config(agent_id)
        for agent_id in (
            "agent-luis", "agent-alice", "agent-iza", "agent-fernanda", "agent-angela", "agent-victor",
        )
    ]


@pytest.fixture
def registry(tenant_configs):
    return TenantRegistry(tenant_configs)


@pytest.fixture
def backend():
    return FakeBackend()
