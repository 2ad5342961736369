"""Luís: SDR for vehicle dealership leads."""

import logging
from typing import Any, Dict, List

from command_center.models.agent import AgentSummary, Lead
from command_center.services.brain_data_aggregator import fan_out
from command_center.services.tenants.base import (
    TenantService, build_agent_common, now_iso, parse_ts, pct, to_num, to_str,
)

logger = logging.getLogger("command_center.tenants.luis")

DIGITAL_ORIGINS = ("Site", "Chat", "WebMotors")
SPEED_TO_LEAD_SLA_SECONDS = 60

INTEREST_SCORES = {"Alto": 30, "Médio": 15}
PURCHASE_HORIZON_SCORES = {"Imediato": 30, "Curto prazo": 20, "Médio prazo": 10}


def normalize_lead(row: Dict[str, Any], agent_id: str) -> Lead:
    created_at = to_str(row.get("created_at")) or now_iso()
    return Lead(
        id=str(row["id"]),
        # Column is capitalized in this schema
        name=to_str(row.get("Nome")) or to_str(row.get("nome")) or "Sem nome",
        email=to_str(row.get("email")) or "",
        phone=to_str(row.get("telefone")),
        origin=row.get("origem") or "Inbound",
        status=row.get("status") or ("EM_CONTATO" if row.get("contato_realizado") else "NOVO"),
        current_agent_id=agent_id,
        potential_value=to_num(row.get("valor_potencial")),
        last_interaction=to_str(row.get("ultima_interacao")) or created_at,
        created_at=created_at,
        updated_at=created_at,
    )


def qualification_score(analysis: Dict[str, Any]) -> int:
    """BANT-style score from one interaction analysis."""
    score = INTEREST_SCORES.get(analysis.get("interesse"), 0)
    score += PURCHASE_HORIZON_SCORES.get(analysis.get("interesse_compra_futura"), 0)
    if analysis.get("solicitou_retorno") is True:
        score += 20
    if analysis.get("respondeu") is True:
        score += 20
    return score


def speed_to_lead_rate(leads: List[Dict[str, Any]], sessions: List[Dict[str, Any]]) -> float:
    """Share of digital leads whose first AI session opened within the SLA."""
    leads_by_id = {str(lead.get("id")): lead for lead in leads}
    within_sla = 0
    digital = 0
    for session in sessions:
        lead = leads_by_id.get(str(session.get("lead_id")))
        if not lead or lead.get("origem") not in DIGITAL_ORIGINS:
            continue
        digital += 1
        lead_created = parse_ts(lead.get("created_at"))
        session_created = parse_ts(session.get("created_at"))
        if lead_created and session_created:
            if (session_created - lead_created).total_seconds() <= SPEED_TO_LEAD_SLA_SECONDS:
                within_sla += 1
    return pct(within_sla, digital)


class LuisService(TenantService):
    """Leads live in "Leads CRM"; conversations are keyed by WhatsApp number."""

    lead_table = "Leads CRM"
    lead_key_column = "telefone"
    chat_history_tables = ("chat_histories_bdr",)
    chat_sessions_table = "ai_chat_sessions"
    memory_table = None

    async def get_agent(self, agent_id: str) -> AgentSummary:
        self._require_own_agent(agent_id)
        sb = self.client

        data = await fan_out(
            {
                "leads": sb.select(
                    "Leads CRM",
                    columns="id,created_at,Nome,telefone,origem,status,ultima_interacao,"
                            "valor_potencial,contato_realizado",
                    order="created_at.desc",
                    limit=50,
                ),
                "sessions": sb.select(
                    "ai_chat_sessions",
                    columns="id,lead_id,session_id,created_at,status,last_message_at",
                    order="last_message_at.desc",
                    limit=50,
                ),
                "analyses": sb.select(
                    "analise_interacoes_ia",
                    columns="id,created_at,interesse,interesse_compra_futura,solicitou_retorno,respondeu",
                    order="created_at.desc",
                    limit=50,
                ),
                "reminders": sb.select(
                    "automated_reminders",
                    columns="id,status,scheduled_for,lead_id",
                    order="scheduled_for.desc",
                    limit=30,
                ),
            },
            agent_id=agent_id,
        )

        leads = [normalize_lead(row, agent_id) for row in data["leads"]]

        scores = [s for s in (qualification_score(a) for a in data["analyses"]) if s > 0]
        avg_score = sum(scores) / len(scores) if scores else 0.0

        reminders = data["reminders"]
        followups_active = sum(1 for r in reminders if r.get("status") == "pending")
        followups_sent = sum(1 for r in reminders if r.get("status") == "sent")
        responded = sum(1 for a in data["analyses"] if a.get("respondeu") is True)

        metrics = {
            "speed_to_lead_rate": speed_to_lead_rate(data["leads"], data["sessions"]),
            "avg_qualification_score": avg_score,
            "followups_active": followups_active,
            "followup_response_rate": pct(responded, followups_sent),
        }
        logger.info("Agent summary built", extra={"agent_id": agent_id, "leads": len(leads), **metrics})

        return build_agent_common(agent_id, self.display_name, leads, [], agent_type="SDR", metrics=metrics)

    async def fetch_notes(self, lead_id: str) -> Dict[str, Any]:
        row = await self.client.select_one(
            "analise_interacoes_ia",
            columns="analise_sentimento,problema,relato_problema,resumo_interacao",
            filters={"whatsapp": lead_id},
            order="created_at.desc",
        )
        if not row:
            return {}
        return {
            "sentiment": to_str(row.get("analise_sentimento")),
            "problem": to_str(row.get("relato_problema")) or to_str(row.get("problema")),
            "reasoning": row.get("resumo_interacao"),
        }
