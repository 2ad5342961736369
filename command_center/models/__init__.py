from .tenant import TenantConfig, ExecContext
from .agent import AgentSummary, Lead, Event
from .brain import BrainData

__all__ = [
    "TenantConfig",
    "ExecContext",
    "AgentSummary",
    "Lead",
    "Event",
    "BrainData",
]
