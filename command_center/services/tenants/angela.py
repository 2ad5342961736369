"""Ângela: store follow-up and interaction analysis."""

from typing import Any, Dict

from command_center.models.agent import AgentSummary, Event, Lead
from command_center.services.brain_data_aggregator import fan_out
from command_center.services.tenants.base import (
    TenantService, build_agent_common, now_iso, pct, to_num, to_str,
)


def infer_status(row: Dict[str, Any]) -> str:
    if row.get("alerta"):
        return "ESTAGNADO"
    if row.get("respondeu"):
        return "EM_CONTATO"
    return "NOVO"


def normalize_lead(row: Dict[str, Any], agent_id: str) -> Lead:
    created_at = to_str(row.get("created_at")) or now_iso()
    return Lead(
        id=str(row["id"]),
        name=to_str(row.get("nome")) or "Sem nome",
        phone=to_str(row.get("whatsapp")) or to_str(row.get("telefone")),
        company=to_str(row.get("empresa")) or to_str(row.get("loja")),
        origin=row.get("origem") or "Inbound",
        status=infer_status(row),
        current_agent_id=agent_id,
        potential_value=to_num(row.get("valor_potencial")),
        last_interaction=created_at,
        created_at=created_at,
        updated_at=created_at,
    )


def normalize_event(row: Dict[str, Any], agent_id: str) -> Event:
    return Event(
        id=str(row["id"]),
        type=row.get("event_type") or "LEAD_CAPTURADO",
        lead_id=to_str(row.get("id_lead")) or to_str(row.get("session_id")) or "unknown",
        agent_id=agent_id,
        metadata={
            "name": to_str(row.get("nome")),
            "phone": to_str(row.get("telefone")),
            "session_id": to_str(row.get("session_id")),
        },
        timestamp=to_str(row.get("created_at")) or now_iso(),
    )


class AngelaService(TenantService):
    lead_table = "analise_interacoes"
    lead_key_column = "whatsapp"
    chat_history_tables = ("chat_histories",)
    memory_table = "memoria"

    async def get_agent(self, agent_id: str) -> AgentSummary:
        self._require_own_agent(agent_id)
        data = await fan_out(
            {
                "interactions": self.client.select(
                    "analise_interacoes",
                    columns="id,created_at,nome,whatsapp,telefone,loja,empresa,valor_potencial,respondeu,alerta",
                    order="created_at.desc",
                    limit=50,
                ),
                "dispatches": self.client.select(
                    "follow-disparos",
                    columns="id,created_at,nome,telefone,session_id,id_lead",
                    order="created_at.desc",
                    limit=10,
                ),
            },
            agent_id=agent_id,
        )

        leads = [normalize_lead(row, agent_id) for row in data["interactions"]]
        events = [normalize_event(row, agent_id) for row in data["dispatches"]]
        # Post-sale rows carry no won state
        metrics = {
            "response_rate": pct(sum(1 for lead in leads if lead.status == "EM_CONTATO"), len(leads)),
            "stalled_leads": sum(1 for lead in leads if lead.status == "ESTAGNADO"),
        }

        return build_agent_common(agent_id, self.display_name, leads, events, metrics=metrics)

    async def fetch_notes(self, lead_id: str) -> Dict[str, Any]:
        row = await self.client.select_one(
            "angela_ai_analysis",
            columns="sentimento,problema",
            filters={"session_id": lead_id},
            order="created_at.desc",
        )
        if not row:
            return {}
        return {"sentiment": to_str(row.get("sentimento")), "problem": to_str(row.get("problema"))}
