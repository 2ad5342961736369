"""Tests for the tenant registry."""

import pytest

from command_center.infra.error_handler import MissingCredential, UnknownTenant
from command_center.services.tenant_registry import KNOWN_TENANTS, TenantRegistry
from conftest import make_config


class TestTenantRegistry:
    """Lookup and validation of tenant configs."""

    def test_resolve_returns_same_config_every_call(self, registry):
        first = registry.resolve("agent-luis")
        second = registry.resolve("agent-luis")
        assert first is second
        assert first.endpoint_url == "https://luis.supabase.co"

    def test_resolve_unknown_agent(self, registry):
        with pytest.raises(UnknownTenant) as exc_info:
            registry.resolve("agent-ghost")
        assert str(exc_info.value) == "Unknown agentId: agent-ghost"
        assert exc_info.value.agent_id == "agent-ghost"

    def test_validate_missing_endpoint(self):
        registry = TenantRegistry([make_config("agent-luis", endpoint_url="")])
        with pytest.raises(MissingCredential) as exc_info:
            registry.validate(registry.resolve("agent-luis"))
        assert exc_info.value.setting == "SUPABASE_URL"

    def test_validate_missing_credential(self):
        registry = TenantRegistry([make_config("agent-iza", credential="  ")])
        with pytest.raises(MissingCredential) as exc_info:
            registry.resolve_valid("agent-iza")
        assert exc_info.value.setting == "SUPABASE_ANON_KEY"
        assert "agent-iza" in str(exc_info.value)

    def test_duplicate_registration_rejected(self):
        with pytest.raises(ValueError):
            TenantRegistry([make_config("agent-luis"), make_config("agent-luis")])

    def test_config_is_immutable(self, registry):
        cfg = registry.resolve("agent-alice")
        with pytest.raises(AttributeError):
            cfg.endpoint_url = "https://elsewhere.supabase.co"

    def test_credentials_hidden_from_repr(self, registry):
        text = repr(registry.resolve("agent-victor"))
        assert "anon-victor" not in text
        assert "service-victor" not in text

    def test_from_environment(self, monkeypatch):
        for suffix, _, _ in KNOWN_TENANTS.values():
            for name in ("SUPABASE_URL", "SUPABASE_ANON_KEY", "SUPABASE_SERVICE_ROLE_KEY"):
                monkeypatch.delenv(f"{name}_{suffix}", raising=False)
                monkeypatch.delenv(f"{name}_{suffix}_REF", raising=False)

        monkeypatch.setenv("SUPABASE_URL_LUIS", "https://luis.supabase.co")
        monkeypatch.setenv("SUPABASE_ANON_KEY_LUIS", "anon-luis")
        monkeypatch.setenv("LUIS_SERVICE_KEY", "service-luis")
        monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY_LUIS_REF", "env://LUIS_SERVICE_KEY")

        registry = TenantRegistry.from_environment()

        assert len(registry) == len(KNOWN_TENANTS)
        luis = registry.resolve_valid("agent-luis")
        assert luis.context_label == "devforaiagents"
        assert luis.display_name == "Luís"
        assert luis.service_credential == "service-luis"

        # Registered but unconfigured: a configuration error, not an unknown tenant
        with pytest.raises(MissingCredential):
            registry.resolve_valid("agent-victor")
