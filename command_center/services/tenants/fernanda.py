"""Fernanda: win-back of unconverted dealership leads."""

import logging
from typing import Any, Dict

from command_center.models.agent import AgentSummary, Lead
from command_center.services.brain_data_aggregator import fan_out
from command_center.services.tenants.base import TenantService, build_agent_common, now_iso, pct, to_str

logger = logging.getLogger("command_center.tenants.fernanda")

# Midpoint estimates by vehicle keyword
VEHICLE_VALUE_ESTIMATES = (
    (("suv", "hilux"), 200000),
    (("sedan", "corolla"), 105000),
)
DEFAULT_VEHICLE_VALUE = 65000

LOSS_REASON_KEYWORDS = (
    ("price", ("preço", "caro")),
    ("product", ("produto", "veículo")),
    ("service", ("atendimento", "vendedor")),
    ("timing", ("tempo", "prazo")),
)


def estimate_vehicle_value(vehicle: str) -> float:
    if not vehicle:
        return 0
    vehicle = vehicle.lower()
    for keywords, value in VEHICLE_VALUE_ESTIMATES:
        if any(k in vehicle for k in keywords):
            return value
    return DEFAULT_VEHICLE_VALUE


def infer_status(row: Dict[str, Any]) -> str:
    # CONTATADO is "Sim"/"Não" in this schema
    if row.get("CONTATADO") != "Sim":
        return "PERDIDO"
    intent = (to_str(row.get("INTENCAO")) or "").lower()
    if "compra" in intent or "interesse" in intent:
        return "QUALIFICADO"
    if "negociação" in intent or "proposta" in intent:
        return "NEGOCIACAO"
    return "EM_CONTATO"


def normalize_lead(row: Dict[str, Any], agent_id: str) -> Lead:
    created_at = to_str(row.get("created_at")) or now_iso()
    return Lead(
        id=str(row["id"]),
        name=to_str(row.get("nome")) or "Sem nome",
        email=to_str(row.get("EMAIL")) or "",
        whatsapp=to_str(row.get("whatsapp")),
        origin="Inbound",
        status=infer_status(row),
        current_agent_id=agent_id,
        potential_value=estimate_vehicle_value(to_str(row.get("VEICULO")) or ""),
        last_interaction=to_str(row.get("last_message_ia")) or to_str(row.get("last_message_lead")) or created_at,
        created_at=created_at,
        updated_at=created_at,
    )


def classify_loss_reason(reasoning: str) -> str:
    reasoning = reasoning.lower()
    for reason, keywords in LOSS_REASON_KEYWORDS:
        if any(k in reasoning for k in keywords):
            return reason
    return "other"


class FernandaService(TenantService):
    lead_table = "leads_nao_convertidos_fase02"
    lead_key_column = "sessionId"
    chat_history_tables = ("chat_histories_fase_02",)
    memory_table = "memoria"

    async def get_agent(self, agent_id: str) -> AgentSummary:
        self._require_own_agent(agent_id)
        sb = self.client

        data = await fan_out(
            {
                "leads": sb.select(
                    "leads_nao_convertidos_fase02",
                    columns="id,created_at,nome,VEICULO,INTENCAO,whatsapp,EMAIL,sessionId,"
                            "last_message_ia,last_message_lead,CONTATADO",
                    filters={"VENDEDOR": "Fernanda"},
                    order="created_at.desc",
                    limit=50,
                ),
                "memory": sb.select(
                    "memoria", columns="session_id,created_at,memoria_lead", order="created_at.desc", limit=50,
                ),
                "interventions": sb.select(
                    "intervencao_humana", columns="sessionId,block,date_time", order="date_time.desc", limit=50,
                ),
                "curation": sb.select(
                    "curadoria", columns="id,created_at,sessionId,internal_reasoning",
                    order="created_at.desc", limit=50,
                ),
            },
            agent_id=agent_id,
        )

        leads = [normalize_lead(row, agent_id) for row in data["leads"]]
        contacted = sum(1 for row in data["leads"] if row.get("CONTATADO") == "Sim")

        reasons = {"price": 0, "product": 0, "service": 0, "timing": 0, "other": 0}
        analysed = 0
        for entry in data["curation"]:
            reasoning = entry.get("internal_reasoning")
            if not reasoning or not isinstance(reasoning, str):
                continue
            reasons[classify_loss_reason(reasoning)] += 1
            if len(reasoning) > 50:
                analysed += 1

        reopened = sum(
            1 for m in data["memory"]
            if isinstance(m.get("memoria_lead"), str) and "retomou contato" in m["memoria_lead"].lower()
        )

        metrics = {
            "conversions": contacted,
            "total_revenue": 0,
            "reconversion_rate": pct(contacted, len(data["leads"])),
            "reopened_leads": reopened,
            "human_interventions": sum(1 for i in data["interventions"] if i.get("block") is True),
            "analysed_leads": analysed,
        }
        metrics.update({f"loss_reason_{reason}": count for reason, count in reasons.items()})
        logger.info("Agent summary built", extra={"agent_id": agent_id, "leads": len(leads)})

        return build_agent_common(agent_id, self.display_name, leads, [], agent_type="WINBACK", metrics=metrics)

    async def fetch_notes(self, lead_id: str) -> Dict[str, Any]:
        return await self._latest_reasoning(lead_id)
