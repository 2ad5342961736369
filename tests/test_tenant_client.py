"""Unit tests for the tenant PostgREST client."""

import httpx
import pytest

from command_center.infra.error_handler import (
    NotFound, SessionExpired, UpstreamTimeout, UpstreamUnavailable, wrap_backend_error,
)
from command_center.models.tenant import ExecContext
from conftest import make_config


class TestTenantClient:
    """Query building and error mapping."""

    @pytest.fixture
    def client(self, backend):
        return backend.client_for(make_config("agent-luis"), ExecContext.BROWSER)

    @pytest.mark.asyncio
    async def test_select_sends_credentials_and_filters(self, backend, client):
        backend.tables["ai_chat_sessions"] = [
            {"id": 1, "session_id": "5511999"},
            {"id": 2, "session_id": "5511888"},
        ]

        rows = await client.select(
            "ai_chat_sessions", columns="id, session_id",
            filters={"session_id": "5511999"}, order="created_at.asc", limit=10,
        )

        assert rows == [{"id": 1, "session_id": "5511999"}]
        request = backend.requests[0]
        assert str(request.url).startswith("https://luis.supabase.co/rest/v1/ai_chat_sessions")
        assert request.headers["apikey"] == "anon-luis"
        assert request.headers["Authorization"] == "Bearer anon-luis"
        assert request.url.params["session_id"] == "eq.5511999"
        assert request.url.params["order"] == "created_at.asc"
        assert request.url.params["limit"] == "10"
        assert request.url.params["select"] == "id, session_id"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_table_names_with_spaces(self, backend, client):
        backend.tables["Leads CRM"] = [{"id": 7}]
        assert await client.select("Leads CRM") == [{"id": 7}]
        assert backend.tables_requested() == ["Leads CRM"]
        await client.aclose()

    @pytest.mark.asyncio
    async def test_select_one_without_rows_is_none(self, backend, client):
        backend.tables["memoria"] = []
        assert await client.select_one("memoria", filters={"session_id": "x"}) is None
        await client.aclose()

    @pytest.mark.asyncio
    async def test_session_token_replaces_bearer(self, backend, client):
        backend.tables["leads"] = []
        client.set_session("user-jwt")
        await client.select("leads")
        assert backend.requests[-1].headers["Authorization"] == "Bearer user-jwt"
        assert backend.requests[-1].headers["apikey"] == "anon-luis"

        client.clear_session()
        await client.select("leads")
        assert backend.requests[-1].headers["Authorization"] == "Bearer anon-luis"
        assert not client.has_session
        await client.aclose()

    @pytest.mark.asyncio
    async def test_rpc_posts_to_function(self, backend, client):
        backend.tables["rpc/get_alice_kpi_funnel"] = [{"base_total": 10}]
        assert await client.rpc("get_alice_kpi_funnel") == [{"base_total": 10}]
        assert backend.requests[0].method == "POST"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_unauthorized_maps_to_session_expired(self, backend, client):
        backend.failures["leads"] = 401
        with pytest.raises(SessionExpired) as exc_info:
            await client.select("leads")
        assert isinstance(exc_info.value, UpstreamUnavailable)
        assert exc_info.value.sub_query == "leads"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_server_error_maps_to_upstream_unavailable(self, backend, client):
        backend.failures["leads"] = 503
        with pytest.raises(UpstreamUnavailable) as exc_info:
            await client.select("leads")
        assert exc_info.value.status_code == 502
        assert exc_info.value.agent_id == "agent-luis"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_connection_error_maps_to_upstream_unavailable(self, backend, client):
        backend.failures["leads"] = httpx.ConnectError
        with pytest.raises(UpstreamUnavailable) as exc_info:
            await client.select("leads")
        assert "unreachable" in exc_info.value.message
        await client.aclose()

    @pytest.mark.asyncio
    async def test_timeout_maps_to_upstream_timeout(self, backend, client):
        backend.failures["leads"] = httpx.ReadTimeout
        with pytest.raises(UpstreamTimeout):
            await client.select("leads")
        await client.aclose()

    @pytest.mark.asyncio
    async def test_unknown_table_maps_to_upstream_unavailable(self, client):
        with pytest.raises(UpstreamUnavailable) as exc_info:
            await client.select("does_not_exist")
        assert not isinstance(exc_info.value, NotFound)
        assert exc_info.value.status_code == 502
        assert exc_info.value.sub_query == "does_not_exist"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_bare_not_acceptable_is_not_a_missing_row(self, backend, client):
        backend.failures["leads"] = 406
        with pytest.raises(UpstreamUnavailable) as exc_info:
            await client.select("leads")
        assert not isinstance(exc_info.value, NotFound)
        await client.aclose()


class TestWrapBackendError:

    @staticmethod
    def status_error(status_code, body):
        request = httpx.Request("GET", "https://luis.supabase.co/rest/v1/memoria")
        response = httpx.Response(status_code, json=body, request=request)
        return httpx.HTTPStatusError("backend error", request=request, response=response)

    def test_no_rows_code_is_not_found(self):
        error = wrap_backend_error(self.status_error(406, {"code": "PGRST116"}), "agent-luis", "memoria")
        assert isinstance(error, NotFound)
        assert error.status_code == 404

    @pytest.mark.parametrize("code", ["PGRST205", "42P01"])
    def test_unknown_relation_is_upstream_unavailable(self, code):
        error = wrap_backend_error(self.status_error(404, {"code": code}), "agent-luis", "memoria")
        assert type(error) is UpstreamUnavailable
        assert error.sub_query == "memoria"
