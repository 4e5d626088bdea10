"""Agent Action — a candidate action produced by one evaluation cycle."""

from datetime import datetime
from enum import Enum
from typing import Dict, Optional, Set

from pydantic import BaseModel, Field

from hayat_kernel.errors import InvalidActionTransition
from hayat_kernel.models.obligation import EscalationLevel, ObligationKind


class ActionType(str, Enum):
    NOTIFICATION = "notification"
    WORKFLOW_PREPARATION = "workflow_preparation"
    PAYMENT_INITIATION = "payment_initiation"
    RENEWAL_START = "renewal_start"


class ActionStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class UrgencyTier(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


_ALLOWED_TRANSITIONS: Dict[ActionStatus, Set[ActionStatus]] = {
    ActionStatus.PENDING: {ActionStatus.IN_PROGRESS},
    ActionStatus.IN_PROGRESS: {ActionStatus.COMPLETED, ActionStatus.FAILED},
    ActionStatus.COMPLETED: set(),
    ActionStatus.FAILED: set(),
}


class ObligationRef(BaseModel):
    """Typed back-reference from an action to the obligation it was derived from."""

    kind: ObligationKind
    record_id: str
    member_id: Optional[str] = None


class AgentAction(BaseModel):
    """
    A single candidate action. Ids are only meaningful within the evaluation
    cycle that produced them plus any trace recorded against them.
    """

    id: str
    agent_id: str
    type: ActionType
    description: str
    reason: str                             # Trace-backed explanation
    priority: int = Field(ge=0, le=100)
    status: ActionStatus = ActionStatus.PENDING
    created_at: datetime
    target: Optional[ObligationRef] = None
    due_at: Optional[datetime] = None       # Deadline driving the widget countdown
    escalation_level: Optional[EscalationLevel] = None
    urgency: Optional[UrgencyTier] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (ActionStatus.COMPLETED, ActionStatus.FAILED)

    def transition(self, new_status: ActionStatus) -> None:
        """Move to ``new_status``. Statuses only ever move forward."""
        if new_status not in _ALLOWED_TRANSITIONS[self.status]:
            raise InvalidActionTransition(
                f"Action {self.id}: cannot move from {self.status.value} "
                f"to {new_status.value}"
            )
        if self.status == ActionStatus.PENDING and not self.reason.strip():
            raise InvalidActionTransition(
                f"Action {self.id}: a reason is required before leaving pending"
            )
        self.status = new_status
