"""Trace Entry — the immutable record of one agent decision."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class TraceEntry(BaseModel):
    """
    Answers "why did this happen" after the fact. Written once by the
    deciding agent, never mutated.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    agent_id: str
    action_id: Optional[str] = None         # Action this decision was taken on, if any
    action: str                             # Label, e.g. "payment_initiation"
    reasoning: str
    context: dict = {}                      # JSON snapshot taken at append time
    timestamp: datetime
    user_id: str

    # INTEGRITY
    signature: str = ""
    prior_record_hash: Optional[str] = None
