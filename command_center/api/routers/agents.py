"""Agents API router."""

from typing import Optional
from fastapi import APIRouter, Depends, Query

from command_center.api.models import AgentResponse, BrainDataResponse, ErrorResponse
from command_center.api.utils import error_response, get_service_factory
from command_center.infra.error_handler import CommandCenterError, InvalidInput
from command_center.infra.validation import normalize_agent_id, validate_lead_id
from command_center.services.service_factory import ServiceFactory

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Missing or malformed identifier"},
    404: {"model": ErrorResponse, "description": "Unknown agent or record not found"},
    500: {"model": ErrorResponse, "description": "Tenant configuration incomplete"},
    502: {"model": ErrorResponse, "description": "Tenant backend unavailable"},
    504: {"model": ErrorResponse, "description": "Tenant backend timed out"},
}


@router.get("/agents/", include_in_schema=False)
async def get_agent_missing_id():
    return error_response(InvalidInput("agent id missing"))


@router.get("/agents/{agent_id}/brain/", include_in_schema=False)
async def get_brain_data_missing_lead(agent_id: str):
    return error_response(InvalidInput("lead id missing"), agent_id=agent_id)


@router.get(
    "/agents/{agent_id}",
    tags=["Agents"],
    response_model=AgentResponse,
    responses=ERROR_RESPONSES,
)
async def get_agent(
    agent_id: str,
    factory: ServiceFactory = Depends(get_service_factory),
):
    """Get the normalized summary of one agent (`agent-luis` or `luis`)."""
    try:
        canonical_id = normalize_agent_id(agent_id)
        service = await factory.build(canonical_id)
        agent = await service.get_agent(canonical_id)
    except CommandCenterError as e:
        return error_response(e, agent_id=agent_id)

    return AgentResponse(ok=True, agent=agent)


@router.get(
    "/agents/{agent_id}/brain/{lead_id}",
    tags=["Agents"],
    response_model=BrainDataResponse,
    responses=ERROR_RESPONSES,
)
async def get_brain_data(
    agent_id: str,
    lead_id: str,
    timeout: Optional[float] = Query(None, gt=0, le=60, description="Deadline in seconds for all sub-queries"),
    factory: ServiceFactory = Depends(get_service_factory),
):
    """Get chat history, sessions, notes and memory for one lead."""
    try:
        canonical_id = normalize_agent_id(agent_id)
        lead_id = validate_lead_id(lead_id, agent_id=canonical_id)
        service = await factory.build(canonical_id)
        brain_data = await service.get_brain_data(canonical_id, lead_id, timeout=timeout)
    except CommandCenterError as e:
        return error_response(e, agent_id=agent_id, lead_id=lead_id)

    return BrainDataResponse(ok=True, brain_data=brain_data)
