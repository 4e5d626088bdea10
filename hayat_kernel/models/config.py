"""Orchestrator and agent configuration."""

from typing import Optional

from pydantic import BaseModel, Field


class AgentConfig(BaseModel):
    """Thresholds shared by the domain agents."""

    document_threshold_days: int = 30       # Visa / Emirates ID attention threshold
    wellbeing_threshold_days: int = 30
    fine_urgent_hours: int = 12
    preparation_horizon_days: int = 90      # Obligations further out produce no action
    collaborator_timeout_seconds: float = Field(gt=0, default=10.0)


class OrchestratorConfig(BaseModel):
    """Configuration for the Orchestrator."""

    heartbeat_interval_seconds: float = 60
    monitor_schedule: Optional[str] = None  # Cron expression; overrides the interval
    widget_top_actions: int = 3
    reject_duplicate_agents: bool = False
    fresh_confidence: float = Field(ge=0.0, le=1.0, default=0.9)
    degraded_confidence: float = Field(ge=0.0, le=1.0, default=0.6)
