"""Static registry mapping agent ids to tenant backend settings."""

import logging
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping

from command_center.infra.config import read_setting
from command_center.infra.error_handler import UnknownTenant, MissingCredential
from command_center.models.tenant import TenantConfig

logger = logging.getLogger("command_center.tenant_registry")


# agent id -> (env suffix, display name, context label)
KNOWN_TENANTS: Mapping[str, tuple] = MappingProxyType({
    "agent-luis": ("LUIS", "Luís", "devforaiagents"),
    "agent-alice": ("ALICE", "Alice", "tecnologia"),
    "agent-iza": ("IZA", "Iza", "corretoraagente"),
    "agent-fernanda": ("FERNANDA", "Fernanda", "tecnologia"),
    "agent-angela": ("ANGELA", "Ângela", "devforaiagents"),
    "agent-victor": ("VICTOR", "Victor", "tgvempreendimentos"),
})


class TenantRegistry:
    """Immutable agent id -> TenantConfig lookup.

    Built once at process start. Entries may be incomplete; ``validate``
    reports that separately from an unknown id.
    """

    def __init__(self, configs: Iterable[TenantConfig]):
        entries: Dict[str, TenantConfig] = {}
        for cfg in configs:
            if cfg.agent_id in entries:
                raise ValueError(f"Duplicate tenant registration: {cfg.agent_id}")
            entries[cfg.agent_id] = cfg
        self._entries = MappingProxyType(entries)

    @classmethod
    def from_environment(cls) -> "TenantRegistry":
        """
        Build the registry from environment variables.

        For each known tenant reads ``SUPABASE_URL_<SUFFIX>``,
        ``SUPABASE_ANON_KEY_<SUFFIX>`` and optionally
        ``SUPABASE_SERVICE_ROLE_KEY_<SUFFIX>``; each may be given as a
        secret reference through the ``_REF`` variant.
        """
        configs: List[TenantConfig] = []
        for agent_id, (suffix, display_name, context_label) in KNOWN_TENANTS.items():
            configs.append(TenantConfig(
                agent_id=agent_id,
                endpoint_url=read_setting(f"SUPABASE_URL_{suffix}") or "",
                credential=read_setting(f"SUPABASE_ANON_KEY_{suffix}") or "",
                display_name=display_name,
                context_label=context_label,
                service_credential=read_setting(f"SUPABASE_SERVICE_ROLE_KEY_{suffix}") or None,
            ))

        registry = cls(configs)
        incomplete = [cfg.agent_id for cfg in configs if not (cfg.endpoint_url and cfg.credential)]
        if incomplete:
            logger.warning("Tenants registered without complete configuration", extra={"agent_ids": incomplete})
        return registry

    def resolve(self, agent_id: str) -> TenantConfig:
        """
        Look up the config for an agent id.

        Raises:
            UnknownTenant: If the agent id is not registered
        """
        cfg = self._entries.get(agent_id)
        if cfg is None:
            raise UnknownTenant(agent_id)
        return cfg

    def validate(self, cfg: TenantConfig) -> None:
        """
        Check that a config has both endpoint and credential.

        Raises:
            MissingCredential: If either is empty or unset
        """
        missing = None
        if not cfg.endpoint_url or not cfg.endpoint_url.strip():
            missing = "SUPABASE_URL"
        elif not cfg.credential or not cfg.credential.strip():
            missing = "SUPABASE_ANON_KEY"

        if missing:
            logger.error(
                "Tenant configuration incomplete",
                extra={"agent_id": cfg.agent_id, "missing": missing},
            )
            raise MissingCredential(cfg.agent_id, missing)

    def resolve_valid(self, agent_id: str) -> TenantConfig:
        """Resolve and validate in one step."""
        cfg = self.resolve(agent_id)
        self.validate(cfg)
        return cfg

    def agent_ids(self) -> List[str]:
        return sorted(self._entries)

    def __contains__(self, agent_id: str) -> bool:
        return agent_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
