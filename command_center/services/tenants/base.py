"""Common contract and helpers for tenant-specific services."""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from command_center.adapters.tenant_client import TenantClient
from command_center.infra.error_handler import NotFound
from command_center.models.agent import AgentSummary, Event, Lead
from command_center.models.brain import BrainData
from command_center.models.tenant import TenantConfig
from command_center.services.brain_data_aggregator import BrainDataAggregator

logger = logging.getLogger("command_center.tenants")


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def parse_ts(value: Any) -> Optional[datetime]:
    """Parse a PostgREST timestamp; None when absent or unparseable."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def to_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def to_num(value: Any, fallback: float = 0) -> float:
    """Coerce numeric-ish backend values (numbers or numeric strings)."""
    if value is None or isinstance(value, bool):
        return fallback
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    if number != number or number in (float("inf"), float("-inf")):
        return fallback
    return number


def pct(part: float, whole: float) -> float:
    return (part / whole) * 100 if whole > 0 else 0.0


def build_agent_common(
    agent_id: str,
    name: str,
    leads: List[Lead],
    events: List[Event],
    agent_type: str = "SDR",
    metrics: Optional[Dict[str, float]] = None,
) -> AgentSummary:
    """Assemble an AgentSummary with the metrics every tenant reports."""
    won = [lead for lead in leads if lead.status == "GANHO"]
    base_metrics: Dict[str, float] = {
        "active_leads": len(leads),
        "conversions": len(won),
        "total_revenue": sum(lead.potential_value for lead in won),
        "dispatches_today": len(events),
    }
    base_metrics.update(metrics or {})

    timestamp = now_iso()
    return AgentSummary(
        id=agent_id,
        name=name,
        type=agent_type,
        status="ATIVO",
        metrics=base_metrics,
        created_at=timestamp,
        updated_at=timestamp,
        leads=leads,
        events=events,
    )


class TenantService(ABC):
    """
    Uniform data-access contract over one tenant's schema.

    Subclasses declare where their lead, chat and memory data live and map
    their own column names onto the shared models. Nothing tenant-specific
    leaks past ``get_agent`` / ``get_brain_data``.
    """

    # Lead lookup used to tell an unknown lead from an empty history
    lead_table: str = "leads"
    lead_key_column: str = "id"
    # Chat history tables keyed by session_id, read in this order
    chat_history_tables: Sequence[str] = ("chat_histories",)
    chat_sessions_table: Optional[str] = None
    memory_table: Optional[str] = None

    def __init__(
        self,
        tenant_config: TenantConfig,
        client: TenantClient,
        aggregator: Optional[BrainDataAggregator] = None,
    ):
        self.tenant_config = tenant_config
        self.client = client
        self.aggregator = aggregator or BrainDataAggregator()

    @property
    def agent_id(self) -> str:
        return self.tenant_config.agent_id

    @property
    def display_name(self) -> str:
        return self.tenant_config.display_name or self.agent_id

    def _require_own_agent(self, agent_id: str) -> None:
        if agent_id != self.agent_id:
            raise NotFound(f"No agent metadata for {agent_id} in {self.agent_id}", agent_id=agent_id)

    @abstractmethod
    async def get_agent(self, agent_id: str) -> AgentSummary:
        """Summary of the agent with normalized leads, events and metrics."""

    async def get_brain_data(self, agent_id: str, lead_id: str, timeout: Optional[float] = None) -> BrainData:
        self._require_own_agent(agent_id)
        return await self.aggregator.get_brain_data(self, lead_id, timeout=timeout)

    # Brain data sub-queries

    async def fetch_lead(self, lead_id: str) -> Optional[Dict[str, Any]]:
        return await self.client.select_one(
            self.lead_table, columns=self.lead_key_column, filters={self.lead_key_column: lead_id}
        )

    async def fetch_chat_messages(self, lead_id: str) -> List[Dict[str, Any]]:
        messages: List[Dict[str, Any]] = []
        for table in self.chat_history_tables:
            rows = await self.client.select(
                table, filters={"session_id": lead_id}, order="id.asc", limit=50
            )
            messages.extend(rows)
        return messages

    async def fetch_chat_sessions(self, lead_id: str) -> List[Dict[str, Any]]:
        if not self.chat_sessions_table:
            return []
        return await self.client.select(
            self.chat_sessions_table, filters={"session_id": lead_id}, order="created_at.asc", limit=10
        )

    async def fetch_memory(self, lead_id: str) -> Optional[Any]:
        if not self.memory_table:
            return None
        row = await self.client.select_one(self.memory_table, filters={"session_id": lead_id})
        return row.get("memoria_lead") if row else None

    async def fetch_notes(self, lead_id: str) -> Dict[str, Any]:
        """Reasoning, sentiment, problem or negotiation state, per tenant."""
        return {}

    async def _latest_reasoning(self, lead_id: str) -> Dict[str, Any]:
        row = await self.client.select_one(
            "internal_reasoning", filters={"session_id": lead_id}, order="created_at.desc"
        )
        if not row:
            return {}
        return {"reasoning": row.get("reasoning_data") or row}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(agent_id={self.agent_id!r})"
