"""Identifier validation for inbound requests."""

import re

from command_center.infra.error_handler import InvalidInput

AGENT_ID_PREFIX = "agent-"

_AGENT_ID_PATTERN = re.compile(r"^[a-z0-9][a-z0-9_-]{0,63}$")
# Lead ids are PostgREST filter values; keep them to a safe charset
_LEAD_ID_PATTERN = re.compile(r"^[A-Za-z0-9@._:+-]{1,128}$")


def normalize_agent_id(agent_id: str) -> str:
    """
    Validate an agent identifier and return its canonical form.

    Accepts ``agent-luis`` as well as the short slug ``luis``.

    Raises:
        InvalidInput: If the identifier is empty or malformed
    """
    if not agent_id or not agent_id.strip():
        raise InvalidInput("agent id missing")

    agent_id = agent_id.strip().lower()
    if not _AGENT_ID_PATTERN.match(agent_id):
        raise InvalidInput(f"Invalid agent id format: {agent_id}", agent_id=agent_id)

    if not agent_id.startswith(AGENT_ID_PREFIX):
        agent_id = AGENT_ID_PREFIX + agent_id
    return agent_id


def validate_lead_id(lead_id: str, agent_id: str = None) -> str:
    """
    Validate a lead identifier.

    Raises:
        InvalidInput: If the identifier is empty or contains unsafe characters
    """
    if lead_id is None or not str(lead_id).strip():
        raise InvalidInput("lead id missing", agent_id=agent_id)

    lead_id = str(lead_id).strip()
    if not _LEAD_ID_PATTERN.match(lead_id):
        raise InvalidInput(f"Invalid lead id format: {lead_id}", agent_id=agent_id, lead_id=lead_id)
    return lead_id
