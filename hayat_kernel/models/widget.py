"""Widget state, agent context and decision views."""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from hayat_kernel.models.action import AgentAction, UrgencyTier
from hayat_kernel.models.family import FamilyStructure
from hayat_kernel.models.trace import TraceEntry


class AgentStatus(str, Enum):
    CLEAR = "clear"
    ATTENTION_NEEDED = "attention_needed"
    ACTION_IN_PROGRESS = "action_in_progress"


class AgentLifecycle(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"


class AgentWidgetState(BaseModel):
    """Derived, ephemeral view of one agent. Never the source of truth."""

    agent_id: str
    agent_name: str
    status: AgentStatus
    message: Optional[str] = None
    countdown: Optional[int] = None         # Seconds remaining
    urgency: UrgencyTier = UrgencyTier.LOW
    last_updated: datetime
    actions: List[AgentAction] = []
    degraded: bool = False


class AgentContext(BaseModel):
    """Caller-supplied context for a decision request."""

    family_structure: Optional[FamilyStructure] = None
    current_user_id: str = "unknown"
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class AgentDecision(BaseModel):
    """One ranked candidate action with its explanation."""

    action: AgentAction
    reasoning: str
    confidence: float = Field(ge=0.0, le=1.0)
    trace: Optional[TraceEntry] = None
