"""HAYAT Kernel data models."""

from hayat_kernel.models.action import (
    ActionStatus,
    ActionType,
    AgentAction,
    ObligationRef,
    UrgencyTier,
)
from hayat_kernel.models.config import AgentConfig, OrchestratorConfig
from hayat_kernel.models.family import (
    FamilyMember,
    FamilyRole,
    FamilyStructure,
    ResidencyType,
)
from hayat_kernel.models.obligation import (
    EscalationLevel,
    ObligationKind,
    ObligationRecord,
)
from hayat_kernel.models.trace import TraceEntry
from hayat_kernel.models.widget import (
    AgentContext,
    AgentDecision,
    AgentLifecycle,
    AgentStatus,
    AgentWidgetState,
)

__all__ = [
    "ActionStatus",
    "ActionType",
    "AgentAction",
    "AgentConfig",
    "AgentContext",
    "AgentDecision",
    "AgentLifecycle",
    "AgentStatus",
    "AgentWidgetState",
    "EscalationLevel",
    "FamilyMember",
    "FamilyRole",
    "FamilyStructure",
    "ObligationKind",
    "ObligationRecord",
    "ObligationRef",
    "OrchestratorConfig",
    "ResidencyType",
    "TraceEntry",
    "UrgencyTier",
]
