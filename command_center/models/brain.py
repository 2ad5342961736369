"""Per-lead conversational snapshot assembled from several tenant queries."""

from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List


class BrainData(BaseModel):
    """Aggregate of a lead's conversation history and derived state.

    Built per request and never persisted. Sequences keep the order the
    backend returned them in.
    """
    chat_messages: List[Dict[str, Any]] = Field(default_factory=list, alias="chatMessages")
    chat_sessions: List[Dict[str, Any]] = Field(default_factory=list, alias="chatSessions")
    reasoning: Optional[Any] = Field(None, description="Latest internal reasoning note")
    sentiment: Optional[str] = None
    problem: Optional[str] = None
    negotiation_state: Optional[Dict[str, Any]] = Field(None, alias="negotiationState")
    memory_snapshot: Optional[Any] = Field(None, alias="memorySnapshot")

    model_config = {"populate_by_name": True}
