"""Iza: insurance brokerage SDR."""

from typing import Any, Dict

from command_center.models.agent import AgentSummary, Lead
from command_center.services.tenants.base import TenantService, build_agent_common, now_iso, to_num, to_str


def normalize_lead(row: Dict[str, Any], agent_id: str) -> Lead:
    created_at = to_str(row.get("created_at")) or now_iso()
    return Lead(
        id=str(row["id"]),
        name=to_str(row.get("nome")) or "Sem nome",
        email=to_str(row.get("email")) or "",
        phone=to_str(row.get("telefone")),
        origin=row.get("origem") or "Inbound",
        status=row.get("status") or "NOVO",
        current_agent_id=agent_id,
        potential_value=to_num(row.get("valor_potencial")),
        last_interaction=to_str(row.get("ultima_interacao")) or created_at,
        created_at=created_at,
        updated_at=created_at,
    )


class IzaService(TenantService):
    lead_table = "leads"
    lead_key_column = "telefone"
    chat_history_tables = ("chat_histories",)
    memory_table = "memoria"

    async def get_agent(self, agent_id: str) -> AgentSummary:
        self._require_own_agent(agent_id)
        rows = await self.client.select(
            "leads",
            columns="id,created_at,nome,email,telefone,origem,status,ultima_interacao,valor_potencial",
            order="created_at.desc",
            limit=50,
        )
        leads = [normalize_lead(row, agent_id) for row in rows]
        return build_agent_common(agent_id, self.display_name, leads, [])

    async def fetch_notes(self, lead_id: str) -> Dict[str, Any]:
        return await self._latest_reasoning(lead_id)
