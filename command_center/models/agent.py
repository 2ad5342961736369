"""Normalized agent, lead and event models shared by every tenant."""

from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List


class Lead(BaseModel):
    """Lead normalized from a tenant-specific lead table."""
    id: str
    name: str = Field(..., description="Lead display name")
    email: str = ""
    phone: Optional[str] = None
    whatsapp: Optional[str] = None
    company: Optional[str] = None
    origin: str = Field(default="Inbound", description="'Inbound' | 'Outbound' | 'Indicação' | ...")
    status: str = Field(default="NOVO", description="'NOVO' | 'EM_CONTATO' | 'QUALIFICADO' | 'NEGOCIACAO' | 'GANHO' | 'PERDIDO' | 'ESTAGNADO'")
    current_agent_id: str
    potential_value: float = 0
    last_interaction: str = Field(..., description="ISO8601 timestamp")
    created_at: str
    updated_at: str


class Event(BaseModel):
    """Dispatch or lifecycle event attributed to an agent."""
    id: str
    type: Optional[str] = Field(None, description="'LEAD_CAPTURADO' | 'LEAD_RESPONDIDO' | ...")
    lead_id: str
    agent_id: str
    metadata: Dict[str, Any] = Field(default_factory=dict)
    timestamp: str


class AgentSummary(BaseModel):
    """Uniform agent view returned by every tenant service."""
    id: str
    name: str
    type: str = Field(default="SDR", description="'SDR' | 'BDR' | 'CSM' | 'FINANCEIRO' | 'WINBACK' | ...")
    status: str = Field(default="ATIVO", description="'ATIVO' | 'INATIVO' | 'MANUTENCAO'")
    avatar_url: Optional[str] = None
    metrics: Dict[str, float] = Field(default_factory=dict, description="Aggregated metrics by name")
    created_at: str
    updated_at: str
    leads: List[Lead] = Field(default_factory=list)
    events: List[Event] = Field(default_factory=list)
