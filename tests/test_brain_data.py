"""Tests for brain data aggregation."""

import asyncio

import pytest

from command_center.infra.error_handler import (
    InvalidInput, NotFound, UpstreamTimeout, UpstreamUnavailable,
)
from command_center.services.brain_data_aggregator import BrainDataAggregator, fan_out
from command_center.services.tenants.angela import AngelaService
from command_center.services.tenants.fernanda import FernandaService
from command_center.services.tenants.luis import LuisService
from command_center.services.tenants.victor import VictorService
from conftest import make_config

LEAD = "5511999990000"


def build(service_class, agent_id, backend):
    cfg = make_config(agent_id)
    return service_class(cfg, backend.client_for(cfg), aggregator=BrainDataAggregator(default_timeout=5))


class TestFanOut:
    """Concurrent sub-query execution."""

    @pytest.mark.asyncio
    async def test_results_keyed_by_name(self):
        async def value(v):
            await asyncio.sleep(0)
            return v

        results = await fan_out({"a": value(1), "b": value([2, 3])})
        assert results == {"a": 1, "b": [2, 3]}

    @pytest.mark.asyncio
    async def test_first_failure_cancels_the_rest(self):
        cancelled = asyncio.Event()

        async def slow():
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        async def broken():
            raise UpstreamUnavailable("boom")

        with pytest.raises(UpstreamUnavailable) as exc_info:
            await fan_out({"slow": slow(), "broken": broken()}, agent_id="agent-iza", lead_id="L1")

        assert cancelled.is_set()
        assert exc_info.value.sub_query == "broken"
        assert exc_info.value.agent_id == "agent-iza"
        assert exc_info.value.lead_id == "L1"

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_wrapped(self):
        async def broken():
            raise RuntimeError("socket closed")

        with pytest.raises(UpstreamUnavailable) as exc_info:
            await fan_out({"memory": broken()})
        assert exc_info.value.sub_query == "memory"

    @pytest.mark.asyncio
    async def test_timeout_cancels_outstanding(self):
        cancelled = asyncio.Event()

        async def slow():
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        async def fast():
            return "done"

        with pytest.raises(UpstreamTimeout) as exc_info:
            await fan_out({"fast": fast(), "slow": slow()}, timeout=0.05)

        assert cancelled.is_set()
        assert exc_info.value.sub_query == "slow"
        assert exc_info.value.status_code == 504


class TestBrainDataAggregator:
    """BrainData assembly through tenant services."""

    @pytest.mark.asyncio
    async def test_empty_history_is_not_an_error(self, backend):
        backend.tables.update({
            "analise_interacoes": [{"id": 1, "whatsapp": LEAD}],
            "chat_histories": [],
            "angela_ai_analysis": [],
            "memoria": [],
        })
        service = build(AngelaService, "agent-angela", backend)

        brain = await service.get_brain_data("agent-angela", LEAD)

        assert brain.chat_messages == []
        assert brain.chat_sessions == []
        assert brain.sentiment is None
        assert brain.memory_snapshot is None

    @pytest.mark.asyncio
    async def test_unknown_lead_is_not_found(self, backend):
        backend.tables.update({
            "analise_interacoes": [],
            "chat_histories": [],
            "angela_ai_analysis": [],
            "memoria": [],
        })
        service = build(AngelaService, "agent-angela", backend)

        with pytest.raises(NotFound) as exc_info:
            await service.get_brain_data("agent-angela", LEAD)
        assert exc_info.value.lead_id == LEAD
        assert exc_info.value.sub_query == "lead"

    @pytest.mark.asyncio
    async def test_sentiment_failure_fails_whole_fetch(self, backend):
        backend.tables.update({
            "analise_interacoes": [{"id": 1, "whatsapp": LEAD}],
            "chat_histories": [{"id": 1, "session_id": LEAD, "message": {"content": "oi"}}],
            "memoria": [{"session_id": LEAD, "memoria_lead": "prefers evening calls"}],
        })
        backend.failures["angela_ai_analysis"] = 500
        service = build(AngelaService, "agent-angela", backend)

        with pytest.raises(UpstreamUnavailable) as exc_info:
            await service.get_brain_data("agent-angela", LEAD)

        error = exc_info.value
        assert error.agent_id == "agent-angela"
        assert error.lead_id == LEAD
        assert error.sub_query == "notes"

    @pytest.mark.asyncio
    async def test_angela_sentiment_and_memory(self, backend):
        backend.tables.update({
            "analise_interacoes": [{"id": 1, "whatsapp": LEAD}],
            "chat_histories": [],
            "angela_ai_analysis": [{"session_id": LEAD, "sentimento": "positivo", "problema": "atraso"}],
            "memoria": [{"session_id": LEAD, "memoria_lead": "prefers evening calls"}],
        })
        service = build(AngelaService, "agent-angela", backend)

        brain = await service.get_brain_data("agent-angela", LEAD)

        assert brain.sentiment == "positivo"
        assert brain.problem == "atraso"
        assert brain.memory_snapshot == "prefers evening calls"

    @pytest.mark.asyncio
    async def test_luis_preserves_backend_ordering(self, backend):
        messages = [
            {"id": 3, "session_id": LEAD, "message": {"type": "ai", "content": "Olá"}},
            {"id": 1, "session_id": LEAD, "message": {"type": "human", "content": "Oi"}},
            {"id": 2, "session_id": "other", "message": {"type": "human", "content": "?"}},
        ]
        sessions = [
            {"id": 10, "session_id": LEAD, "created_at": "2026-01-02T10:00:00Z"},
            {"id": 9, "session_id": LEAD, "created_at": "2026-01-01T10:00:00Z"},
        ]
        backend.tables.update({
            "Leads CRM": [{"id": 1, "telefone": LEAD}],
            "chat_histories_bdr": messages,
            "ai_chat_sessions": sessions,
            "analise_interacoes_ia": [
                {"whatsapp": LEAD, "analise_sentimento": "neutro", "relato_problema": None,
                 "problema": "preço", "resumo_interacao": "asked for financing"},
            ],
        })
        service = build(LuisService, "agent-luis", backend)

        brain = await service.get_brain_data("agent-luis", LEAD)

        assert [m["id"] for m in brain.chat_messages] == [3, 1]
        assert [s["id"] for s in brain.chat_sessions] == [10, 9]
        assert brain.sentiment == "neutro"
        assert brain.problem == "preço"
        assert brain.reasoning == "asked for financing"
        assert "memoria" not in backend.tables_requested()

    @pytest.mark.asyncio
    async def test_victor_negotiation_state(self, backend):
        negotiation = {"lead_id": LEAD, "parcelas": 6, "valor_entrada": 500}
        backend.tables.update({
            "acompanhamento_leads": [{"id": 4, "session_id": LEAD}],
            "chat_histories": [],
            "memoria": [],
            "tgv_renegociacao": [negotiation],
        })
        service = build(VictorService, "agent-victor", backend)

        brain = await service.get_brain_data("agent-victor", LEAD)

        assert brain.negotiation_state == negotiation
        assert brain.reasoning is None

    @pytest.mark.asyncio
    async def test_fernanda_reasoning_from_payload(self, backend):
        backend.tables.update({
            "leads_nao_convertidos_fase02": [{"id": 2, "sessionId": LEAD}],
            "chat_histories_fase_02": [],
            "memoria": [],
            "internal_reasoning": [{"session_id": LEAD, "reasoning_data": {"stage": "objection"}}],
        })
        service = build(FernandaService, "agent-fernanda", backend)

        brain = await service.get_brain_data("agent-fernanda", LEAD)

        assert brain.reasoning == {"stage": "objection"}

    @pytest.mark.asyncio
    async def test_invalid_lead_rejected_before_io(self, backend):
        service = build(AngelaService, "agent-angela", backend)

        with pytest.raises(InvalidInput):
            await service.get_brain_data("agent-angela", "   ")
        with pytest.raises(InvalidInput):
            await service.get_brain_data("agent-angela", "x&select=*")
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_other_agent_is_not_found(self, backend):
        service = build(AngelaService, "agent-angela", backend)
        with pytest.raises(NotFound):
            await service.get_brain_data("agent-luis", LEAD)
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_timeout_returns_no_partial_aggregate(self, backend):
        backend.tables.update({
            "analise_interacoes": [{"id": 1, "whatsapp": LEAD}],
            "chat_histories": [],
            "angela_ai_analysis": [],
        })
        service = build(AngelaService, "agent-angela", backend)
        cancelled = asyncio.Event()

        async def stalled_memory(lead_id):
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        service.fetch_memory = stalled_memory

        with pytest.raises(UpstreamTimeout) as exc_info:
            await service.get_brain_data("agent-angela", LEAD, timeout=0.05)

        assert exc_info.value.sub_query == "memory"
        assert cancelled.is_set()
