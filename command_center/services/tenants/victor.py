"""Victor: debt collection and renegotiation."""

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
        origin="Inbound",
        status="EM_CONTATO",
        current_agent_id=agent_id,
        # Debtors: amount owed stands in for potential value
        potential_value=to_num(row.get("valor_devido")),
        last_interaction=to_str(row.get("ultima_interacao")) or created_at,
        created_at=created_at,
        updated_at=created_at,
    )


class VictorService(TenantService):
    lead_table = "acompanhamento_leads"
    lead_key_column = "session_id"
    chat_history_tables = ("chat_histories",)
    memory_table = "memoria"

    async def get_agent(self, agent_id: str) -> AgentSummary:
        self._require_own_agent(agent_id)
        rows = await self.client.select(
            "acompanhamento_leads",
            columns="id,created_at,nome,valor_devido,dias_atraso,ultima_interacao,session_id,email,telefone",
            order="created_at.desc",
            limit=50,
        )
        leads = [normalize_lead(row, agent_id) for row in rows]
        days_late = [to_num(row.get("dias_atraso")) for row in rows if row.get("dias_atraso") is not None]

        metrics = {
            "total_debt": sum(lead.potential_value for lead in leads),
            "avg_days_late": sum(days_late) / len(days_late) if days_late else 0.0,
        }
        return build_agent_common(agent_id, self.display_name, leads, [], agent_type="FINANCEIRO", metrics=metrics)

    async def fetch_notes(self, lead_id: str) -> Dict[str, Any]:
        row = await self.client.select_one(
            "tgv_renegociacao", filters={"lead_id": lead_id}, order="created_at.desc"
        )
        return {"negotiation_state": row} if row else {}
