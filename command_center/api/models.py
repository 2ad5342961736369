"""API request/response models."""

from typing import Optional
from pydantic import BaseModel, Field

from command_center.models.agent import AgentSummary
from command_center.models.brain import BrainData


# ============================================================================
# Envelopes
# ============================================================================

class AgentResponse(BaseModel):
    """Response model for an agent summary."""
    ok: bool = Field(default=True, examples=[True])
    agent: AgentSummary


class BrainDataResponse(BaseModel):
    """Response model for a lead's brain data."""
    ok: bool = Field(default=True, examples=[True])
    brain_data: BrainData = Field(..., alias="brainData")

    model_config = {"populate_by_name": True}


class ErrorResponse(BaseModel):
    """Error envelope; echoes the identifiers that failed."""
    ok: bool = Field(default=False, examples=[False])
    error: str = Field(..., examples=["Unknown agentId: agent-ghost"])
    category: Optional[str] = Field(None, examples=["unknown_tenant"])
    agent_id: Optional[str] = Field(None, alias="agentId")
    lead_id: Optional[str] = Field(None, alias="leadId")
    sub_query: Optional[str] = Field(None, alias="subQuery")

    model_config = {"populate_by_name": True}


# ============================================================================
# Health Models
# ============================================================================

class ReadinessResponse(BaseModel):
    """Readiness of the tenant registry."""
    status: str = Field(..., examples=["ready"])
    configured_tenants: list = Field(default_factory=list)
    incomplete_tenants: list = Field(default_factory=list)
