"""Error taxonomy for tenant resolution and backend access."""

from typing import Optional, Dict, Any
from enum import Enum

import httpx


class ErrorCategory(str, Enum):
    """Categories of errors surfaced at the request boundary."""
    UNKNOWN_TENANT = "unknown_tenant"  # agent id has no registry entry
    MISSING_CREDENTIAL = "missing_credential"  # registry entry incomplete
    NOT_FOUND = "not_found"  # well-formed query, no record
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"  # backend unreachable or errored
    INVALID_INPUT = "invalid_input"  # malformed identifiers


class CommandCenterError(Exception):
    """Base exception carrying category, HTTP status and diagnostic context."""

    category: ErrorCategory = ErrorCategory.UPSTREAM_UNAVAILABLE
    status_code: int = 500

    def __init__(
        self,
        message: str,
        agent_id: Optional[str] = None,
        lead_id: Optional[str] = None,
        sub_query: Optional[str] = None,
    ):
        self.message = message
        self.agent_id = agent_id
        self.lead_id = lead_id
        self.sub_query = sub_query
        super().__init__(message)

    def context(self) -> Dict[str, Any]:
        """Diagnostic fields for logging and error envelopes."""
        ctx: Dict[str, Any] = {"category": self.category.value}
        if self.agent_id is not None:
            ctx["agent_id"] = self.agent_id
        if self.lead_id is not None:
            ctx["lead_id"] = self.lead_id
        if self.sub_query is not None:
            ctx["sub_query"] = self.sub_query
        return ctx


class UnknownTenant(CommandCenterError):
    """Agent id is not present in the tenant registry."""
    category = ErrorCategory.UNKNOWN_TENANT
    status_code = 404

    def __init__(self, agent_id: str):
        super().__init__(f"Unknown agentId: {agent_id}", agent_id=agent_id)


class MissingCredential(CommandCenterError):
    """Registry entry exists but its endpoint or credential is unset."""
    category = ErrorCategory.MISSING_CREDENTIAL
    status_code = 500

    def __init__(self, agent_id: str, setting: str):
        self.setting = setting
        super().__init__(
            f"Missing {setting} for {agent_id}. Please configure environment variables.",
            agent_id=agent_id,
        )


class NotFound(CommandCenterError):
    """A well-formed query found no matching record."""
    category = ErrorCategory.NOT_FOUND
    status_code = 404


class UpstreamUnavailable(CommandCenterError):
    """Tenant backend could not be reached or returned an error."""
    category = ErrorCategory.UPSTREAM_UNAVAILABLE
    status_code = 502


class UpstreamTimeout(UpstreamUnavailable):
    """Tenant backend did not answer within the caller's deadline."""
    status_code = 504


class SessionExpired(UpstreamUnavailable):
    """Backend rejected the handle's credentials or session token."""


class InvalidInput(CommandCenterError):
    """Caller supplied a malformed identifier."""
    category = ErrorCategory.INVALID_INPUT
    status_code = 400


# PostgREST code for "no rows" on a single-object request
POSTGREST_NO_ROWS = "PGRST116"
# PostgREST / Postgres codes for an unknown relation
POSTGREST_UNKNOWN_RELATION = ("PGRST205", "42P01")


def _postgrest_code(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        return body.get("code")
    return None


def wrap_backend_error(
    error: Exception,
    agent_id: str,
    table: Optional[str] = None,
) -> CommandCenterError:
    """
    Wrap httpx failures into the error taxonomy.

    Args:
        error: Original exception raised by httpx
        agent_id: Tenant the request was issued for
        table: Table or RPC the request targeted

    Returns:
        CommandCenterError with the appropriate category
    """
    if isinstance(error, CommandCenterError):
        return error

    target = table or "backend"

    if isinstance(error, httpx.TimeoutException):
        return UpstreamTimeout(f"{agent_id} {target} timed out: {error}", agent_id=agent_id, sub_query=table)

    if isinstance(error, httpx.HTTPStatusError):
        response = error.response
        status_code = response.status_code
        code = _postgrest_code(response)

        if status_code == 401:
            return SessionExpired(
                f"{agent_id} session rejected by backend ({status_code})", agent_id=agent_id, sub_query=table
            )
        if code == POSTGREST_NO_ROWS:
            return NotFound(f"No rows in {target} for {agent_id}", agent_id=agent_id, sub_query=table)
        if code in POSTGREST_UNKNOWN_RELATION:
            # Schema defect on the tenant side, not an empty result
            return UpstreamUnavailable(
                f"{target} does not exist for {agent_id}", agent_id=agent_id, sub_query=table
            )
        return UpstreamUnavailable(
            f"{agent_id} {target} failed ({status_code}): {response.text[:200]}",
            agent_id=agent_id,
            sub_query=table,
        )

    if isinstance(error, httpx.HTTPError):
        return UpstreamUnavailable(f"{agent_id} {target} unreachable: {error}", agent_id=agent_id, sub_query=table)

    return UpstreamUnavailable(f"{agent_id} {target} error: {error}", agent_id=agent_id, sub_query=table)
