"""Alice: outbound BDR prospecting cold leads."""

import logging
from typing import Any, Dict, List, Optional

from command_center.models.agent import AgentSummary, Lead
from command_center.services.brain_data_aggregator import fan_out
from command_center.services.tenants.base import (
    TenantService, build_agent_common, now_iso, pct, to_num, to_str,
)

logger = logging.getLogger("command_center.tenants.alice")

BLOCK_KEYWORDS = ("bloqueio", "spam")
NEGATIVE_REPLIES = ("não tenho interesse", "não quero")
USER_MESSAGE_PREFIX = "[USER]"


def normalize_lead(row: Dict[str, Any], agent_id: str) -> Lead:
    # leads_frios carries no timestamps or contact columns
    timestamp = now_iso()
    return Lead(
        id=str(row["id"]),
        name=to_str(row.get("nome")) or "Sem nome",
        origin="Outbound",
        status="NOVO",
        current_agent_id=agent_id,
        potential_value=0,
        last_interaction=timestamp,
        created_at=timestamp,
        updated_at=timestamp,
    )


def _text(value: Any) -> str:
    return value.lower() if isinstance(value, str) else ""


def normalize_funnel(data: Any) -> Optional[Dict[str, float]]:
    """Funnel RPC may answer with an object or a one-element array."""
    if isinstance(data, list):
        data = data[0] if data else None
    if not isinstance(data, dict):
        return None
    return {
        "funnel_base_total": to_num(data.get("base_total")),
        "funnel_valid": to_num(data.get("validos")),
        "funnel_contacted": to_num(data.get("contatados")),
        "funnel_engaged": to_num(data.get("engajados")),
    }


class AliceService(TenantService):
    """Cold-lead base with follow-up cadences and curated reasoning."""

    lead_table = "leads_frios"
    lead_key_column = "id"
    chat_history_tables = ("chat_histories_bdr",)
    chat_sessions_table = None
    memory_table = "memoria"

    async def get_funnel_metrics(self) -> Optional[Dict[str, float]]:
        """Prospecting funnel KPIs (base, valid, contacted, engaged)."""
        return normalize_funnel(await self.client.rpc("get_alice_kpi_funnel"))

    async def get_agent(self, agent_id: str) -> AgentSummary:
        self._require_own_agent(agent_id)
        sb = self.client

        data = await fan_out(
            {
                "leads": sb.select(
                    "leads_frios", columns="id,nome,priority_score",
                    order="priority_score.desc.nullslast", limit=50,
                ),
                "chat": sb.select(
                    "chat_histories_bdr", columns="session_id,message", order="id.desc", limit=100,
                ),
                "followups": sb.select(
                    "follow-ups", columns="id,created_at,shot_fired,shooting_schedule",
                    order="shooting_schedule.asc", limit=50,
                ),
                "curation": sb.select(
                    "curadoria", columns="id,created_at,sessionId,internal_reasoning",
                    order="created_at.desc", limit=30,
                ),
                "interventions": sb.select(
                    "intervencao_humana", columns="id,sessionId,block,date_time",
                    order="date_time.desc", limit=30,
                ),
                "alerts": sb.select(
                    "logs_alertas_enviados", columns="id,sessionId,alerta,created_at",
                    order="created_at.desc", limit=30,
                ),
                "funnel": self.get_funnel_metrics(),
            },
            agent_id=agent_id,
        )

        leads = [normalize_lead(row, agent_id) for row in data["leads"]]

        alerts: List[Dict[str, Any]] = data["alerts"]
        blocked = sum(1 for a in alerts if any(k in _text(a.get("alerta")) for k in BLOCK_KEYWORDS))

        followups = data["followups"]
        followups_active = sum(1 for f in followups if f.get("shot_fired") is False)
        followups_sent = sum(1 for f in followups if f.get("shot_fired") is True)

        messages = [c.get("message") for c in data["chat"] if isinstance(c.get("message"), str)]
        replies = sum(1 for m in messages if m.startswith(USER_MESSAGE_PREFIX))
        outbound = len(messages) - replies

        reasoning = [_text(c.get("internal_reasoning")) for c in data["curation"]]
        positive = sum(1 for r in reasoning if "interesse" in r)
        negative = sum(1 for r in reasoning if any(k in r for k in NEGATIVE_REPLIES))

        metrics = {
            "block_rate": pct(blocked, len(alerts)),
            "response_rate": pct(replies, outbound),
            "followups_active": followups_active,
            "human_interventions": sum(1 for i in data["interventions"] if i.get("block") is True),
            "positive_replies": positive,
            "negative_replies": negative,
            "conversions": positive,
            "dispatches_today": followups_sent,
            "total_revenue": 0,
        }
        metrics.update(data["funnel"] or {})
        logger.info("Agent summary built", extra={"agent_id": agent_id, "leads": len(leads)})

        return build_agent_common(agent_id, self.display_name, leads, [], agent_type="BDR", metrics=metrics)

    async def fetch_notes(self, lead_id: str) -> Dict[str, Any]:
        return await self._latest_reasoning(lead_id)
