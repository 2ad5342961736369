"""Selects and wires the tenant service for an agent id."""

import logging
from typing import Optional

from command_center.infra.error_handler import UnknownTenant
from command_center.models.tenant import ExecContext
from command_center.services.brain_data_aggregator import BrainDataAggregator
from command_center.services.client_cache import TenantClientCache
from command_center.services.tenants.alice import AliceService
from command_center.services.tenants.angela import AngelaService
from command_center.services.tenants.base import TenantService
from command_center.services.tenants.fernanda import FernandaService
from command_center.services.tenants.iza import IzaService
from command_center.services.tenants.luis import LuisService
from command_center.services.tenants.victor import VictorService

logger = logging.getLogger("command_center.service_factory")


def service_class_for(agent_id: str) -> type:
    """Variant for an agent id. Adding a tenant means adding one branch here."""
    if agent_id == "agent-luis":
        return LuisService
    elif agent_id == "agent-alice":
        return AliceService
    elif agent_id == "agent-iza":
        return IzaService
    elif agent_id == "agent-fernanda":
        return FernandaService
    elif agent_id == "agent-angela":
        return AngelaService
    elif agent_id == "agent-victor":
        return VictorService
    raise UnknownTenant(agent_id)


class ServiceFactory:
    """Builds tenant services bound to cached clients. No business logic here."""

    def __init__(self, client_cache: TenantClientCache, aggregator: Optional[BrainDataAggregator] = None):
        self.client_cache = client_cache
        self.aggregator = aggregator or BrainDataAggregator()

    @property
    def registry(self):
        return self.client_cache.registry

    async def build(self, agent_id: str, exec_context: ExecContext = ExecContext.SERVER) -> TenantService:
        """
        Build the service for ``agent_id``.

        Registry lookup and variant selection happen before any I/O.

        Raises:
            UnknownTenant: Agent id not registered or has no service variant
            MissingCredential: Registry entry incomplete
        """
        tenant_config = self.registry.resolve_valid(agent_id)
        service_class = service_class_for(agent_id)

        client = await self.client_cache.get_or_create(agent_id, exec_context)
        return service_class(tenant_config, client, aggregator=self.aggregator)
