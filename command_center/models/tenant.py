"""Tenant configuration model for backend resolution."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class ExecContext(str, Enum):
    """Execution context a tenant client is opened for."""
    SERVER = "server"  # long-lived process, may hold the service key
    BROWSER = "browser"  # page session, anon key only


@dataclass(frozen=True)
class TenantConfig:
    """Connection settings for one tenant backend project."""
    agent_id: str  # e.g. "agent-luis"
    endpoint_url: str  # Supabase project URL
    credential: str = field(repr=False)  # anon key, scope-limited
    display_name: str = ""  # e.g. "Luís"
    context_label: Optional[str] = None  # diagnostic tag, e.g. "devforaiagents"
    service_credential: Optional[str] = field(default=None, repr=False)  # server-only key

    def credential_for(self, exec_context: ExecContext) -> str:
        """Credential a client in ``exec_context`` may hold."""
        if exec_context == ExecContext.SERVER and self.service_credential:
            return self.service_credential
        return self.credential
