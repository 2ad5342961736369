"""Keyed cache of live tenant backend clients."""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Tuple

from command_center.adapters.tenant_client import TenantClient, open_tenant_client
from command_center.infra.error_handler import UpstreamUnavailable
from command_center.infra.metrics import tenant_clients_opened_total, tenant_clients_live
from command_center.models.tenant import TenantConfig, ExecContext
from command_center.services.tenant_registry import TenantRegistry

logger = logging.getLogger("command_center.client_cache")

ClientFactory = Callable[[TenantConfig, ExecContext], Awaitable[TenantClient]]
CacheKey = Tuple[str, ExecContext]


class TenantClientCache:
    """
    Holds at most one live client per (agent id, execution context).

    ``get_or_create`` is the only way clients enter the cache. Construction
    for a key runs under that key's lock, so racing callers all observe the
    handle the first one built. Failed constructions are not stored; the next
    call tries again. Once ``aclose`` has run the cache opens nothing more.
    """

    def __init__(self, registry: TenantRegistry, client_factory: ClientFactory = open_tenant_client):
        self.registry = registry
        self._client_factory = client_factory
        self._clients: Dict[CacheKey, TenantClient] = {}
        self._locks: Dict[CacheKey, asyncio.Lock] = {}
        self._closed = False

    async def get_or_create(self, agent_id: str, exec_context: ExecContext = ExecContext.SERVER) -> TenantClient:
        """
        Return the cached client for a tenant, opening it on first use.

        Raises:
            UnknownTenant: Agent id not registered (nothing is opened)
            MissingCredential: Registry entry incomplete
            UpstreamUnavailable: Cache already closed
            CommandCenterError: Client construction failed
        """
        self._raise_if_closed(agent_id)
        key = (agent_id, ExecContext(exec_context))
        client = self._clients.get(key)
        if client is not None:
            return client

        tenant_config = self.registry.resolve_valid(agent_id)

        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            client = self._clients.get(key)
            if client is not None:
                return client

            client = await self._client_factory(tenant_config, key[1])
            if self._closed:
                # Shutdown began while this client was being built
                await client.aclose()
                self._raise_if_closed(agent_id)
            self._clients[key] = client

        tenant_clients_opened_total.labels(agent_id=agent_id, exec_context=key[1].value).inc()
        tenant_clients_live.set(len(self._clients))
        logger.info(
            "Opened tenant client",
            extra={
                "agent_id": agent_id,
                "exec_context": key[1].value,
                "context_label": tenant_config.context_label,
                "storage_key": getattr(client, "storage_key", None),
            },
        )
        return client

    async def invalidate(self, agent_id: str, exec_context: ExecContext = ExecContext.SERVER) -> bool:
        """Close and drop one client. Returns True if one was cached."""
        key = (agent_id, ExecContext(exec_context))
        lock = self._locks.get(key)
        if lock is None:
            return False
        async with lock:
            client = self._clients.pop(key, None)
        if client is None:
            return False

        tenant_clients_live.set(len(self._clients))
        logger.info("Closed tenant client", extra={"agent_id": agent_id, "exec_context": key[1].value})
        await client.aclose()
        return True

    async def aclose(self) -> None:
        """Close every cached client (process shutdown)."""
        self._closed = True
        clients = []
        # Wait out constructions already holding a key's lock
        for key, lock in list(self._locks.items()):
            async with lock:
                client = self._clients.pop(key, None)
            if client is not None:
                clients.append(client)
        tenant_clients_live.set(0)
        for client in clients:
            await client.aclose()

    def _raise_if_closed(self, agent_id: str) -> None:
        if self._closed:
            raise UpstreamUnavailable("Tenant client cache is closed", agent_id=agent_id)

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._clients

    def __len__(self) -> int:
        return len(self._clients)
