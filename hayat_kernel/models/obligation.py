"""Obligation Record — one time-bound requirement tracked for a member."""

from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel


class ObligationKind(str, Enum):
    VISA = "visa"
    EMIRATES_ID = "emirates_id"
    PARKING_FINE = "parking_fine"
    VACCINATION = "vaccination"
    MEDICAL_FITNESS = "medical_fitness"
    INSURANCE = "insurance"


class EscalationLevel(str, Enum):
    """Message tone for payment-style obligations."""
    FRIENDLY = "friendly"
    URGENT = "urgent"
    FORMAL = "formal"


# Kinds where a member may hold several concurrent records told apart by label
_LABELLED_KINDS = (ObligationKind.VACCINATION, ObligationKind.MEDICAL_FITNESS)


class ObligationRecord(BaseModel):
    """
    Generalizes visa, Emirates ID, parking fine, vaccination, medical fitness
    and insurance records. Collaborators deliver these; agents cache them.
    """

    record_id: str                          # Feed-assigned id (fine id for fines)
    kind: ObligationKind
    member_id: Optional[str] = None         # Absent for fines not tied to a member
    due_at: datetime                        # Expiry, due date or discount cutoff
    label: Optional[str] = None             # e.g. vaccine name, test type, provider
    reference: Optional[str] = None         # Document or fine number
    issuer: Optional[str] = None            # e.g. "ICP", "GDRFA", "Dubai"
    amount: Optional[float] = None          # Fines only, in AED
    completed: bool = False                 # Paid / administered / renewed
    renewal_in_progress: bool = False
    valid: bool = True                      # Insurance validity flag
    escalation_level: Optional[EscalationLevel] = None
    metadata: dict = {}

    @property
    def authority_key(self) -> Tuple[str, ...]:
        """Identity of the single authoritative record this one belongs to."""
        if self.kind == ObligationKind.PARKING_FINE:
            return (self.kind.value, self.record_id)
        if self.kind in _LABELLED_KINDS:
            return (self.kind.value, self.member_id or "", self.label or "")
        return (self.kind.value, self.member_id or "")

    @property
    def outstanding(self) -> bool:
        return not self.completed and not self.renewal_in_progress
