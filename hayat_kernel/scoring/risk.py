"""
Risk/Priority Scorer — converts deadlines into urgency and priority.

Two variants:
  Deadline obligations: (kind, days until due, member role, mandatory) →
      stress, legal risk, family impact ∈ [0, 1], urgency tier, priority ∈ [0, 100]
  Payment obligations (fines): hours left in the discount window →
      priority and escalation tone

Every function here is pure: no I/O, no clock reads, no side effects.
"""

import math
from datetime import datetime
from typing import Callable, Iterable, List, Optional, TypeVar, Union

from pydantic import BaseModel, Field

from hayat_kernel.models.action import UrgencyTier
from hayat_kernel.models.family import FamilyRole
from hayat_kernel.models.obligation import EscalationLevel, ObligationKind

T = TypeVar("T")

_ROLE_IMPACT = {
    FamilyRole.SPONSOR: 1.0,
    FamilyRole.SPOUSE: 0.9,
    FamilyRole.CHILD: 0.7,
    FamilyRole.DOMESTIC_WORKER: 0.5,
}

# Legal risk for mandatory items more than 60 days out, before the 0.5 cap
_KIND_LEGAL_BASE = {
    ObligationKind.VACCINATION: 0.8,
    ObligationKind.MEDICAL_FITNESS: 0.6,
    ObligationKind.INSURANCE: 0.7,
}


class RiskAssessment(BaseModel):
    """Scored view of one deadline obligation."""

    stress: float = Field(ge=0.0, le=1.0)
    legal_risk: float = Field(ge=0.0, le=1.0)
    family_impact: float = Field(ge=0.0, le=1.0)
    urgency: UrgencyTier
    priority: int = Field(ge=0, le=100)


class FineAssessment(BaseModel):
    """Scored view of one payment-style obligation."""

    priority: int = Field(ge=0, le=100)
    escalation: EscalationLevel
    hours_remaining: int


def days_until(due: datetime, now: datetime) -> int:
    """Whole days from ``now`` until ``due``, truncated toward zero."""
    return int((due - now).total_seconds() / 86400)


def hours_until(due: datetime, now: datetime) -> int:
    """Whole hours from ``now`` until ``due``, truncated toward zero."""
    return int((due - now).total_seconds() / 3600)


def stress_level(days_until_due: int, mandatory: bool) -> float:
    if days_until_due < 0:
        return 1.0
    if days_until_due <= 7:
        return 0.9
    if days_until_due <= 30:
        return 0.7
    if days_until_due <= 60:
        return 0.5
    if days_until_due <= 90:
        return 0.3
    return 0.3 if mandatory else 0.1


def legal_risk(kind: ObligationKind, days_until_due: int, mandatory: bool) -> float:
    """
    Legal exposure of a missed deadline.

    Beyond 60 days the per-kind bases in ``_KIND_LEGAL_BASE`` all sit above
    the 0.5 cap, so those kinds score 0.5 and every other kind 0.3.
    """
    if not mandatory:
        return 0.1
    if days_until_due < 0:
        return 1.0
    if days_until_due <= 7:
        return 0.9
    if days_until_due <= 30:
        return 0.7
    if days_until_due <= 60:
        return 0.5
    # Capped at the 60-day band so priority never rises as the deadline recedes
    return min(_KIND_LEGAL_BASE.get(kind, 0.3), 0.5)


def family_impact(member_role: Optional[Union[FamilyRole, str]], kind: ObligationKind) -> float:
    """Role-weighted impact. A child's vaccination weighs as much as a spouse."""
    try:
        role = FamilyRole(member_role) if member_role is not None else None
    except ValueError:
        role = None
    if role == FamilyRole.CHILD and kind == ObligationKind.VACCINATION:
        return 0.9
    return _ROLE_IMPACT.get(role, 0.5)


def urgency_tier(stress: float, legal: float, impact: float) -> UrgencyTier:
    average = (stress + legal + impact) / 3
    if average >= 0.8:
        return UrgencyTier.CRITICAL
    if average >= 0.6:
        return UrgencyTier.HIGH
    if average >= 0.4:
        return UrgencyTier.MEDIUM
    return UrgencyTier.LOW


def weighted_priority(stress: float, legal: float, impact: float) -> int:
    weighted = stress * 0.3 + legal * 0.4 + impact * 0.3
    # Half-up rounding; the builtin round() would bank 82.5 down to 82
    return int(math.floor(weighted * 100 + 0.5 + 1e-9))


def score(
    kind: ObligationKind,
    days_until_due: int,
    member_role: Optional[Union[FamilyRole, str]],
    mandatory: bool,
) -> RiskAssessment:
    """Score one deadline obligation."""
    stress = stress_level(days_until_due, mandatory)
    legal = legal_risk(kind, days_until_due, mandatory)
    impact = family_impact(member_role, kind)
    return RiskAssessment(
        stress=stress,
        legal_risk=legal,
        family_impact=impact,
        urgency=urgency_tier(stress, legal, impact),
        priority=weighted_priority(stress, legal, impact),
    )


def fine_escalation(hours_remaining: int, urgent_hours: int = 12) -> EscalationLevel:
    if hours_remaining < 0:
        return EscalationLevel.FORMAL
    if hours_remaining <= urgent_hours:
        return EscalationLevel.URGENT
    return EscalationLevel.FRIENDLY


def fine_priority(hours_remaining: int) -> int:
    if hours_remaining < 0:
        return 95   # Discount expired
    if hours_remaining <= 6:
        return 90
    if hours_remaining <= 12:
        return 85
    if hours_remaining <= 24:
        return 75
    return 70


def score_fine(hours_remaining: int, urgent_hours: int = 12) -> FineAssessment:
    """Score a fine purely from the hours left in its discount window."""
    return FineAssessment(
        priority=fine_priority(hours_remaining),
        escalation=fine_escalation(hours_remaining, urgent_hours),
        hours_remaining=hours_remaining,
    )


def urgency_for_priority(priority: int) -> UrgencyTier:
    """Coarse display tier for a 0-100 priority."""
    if priority >= 90:
        return UrgencyTier.CRITICAL
    if priority >= 70:
        return UrgencyTier.HIGH
    if priority >= 50:
        return UrgencyTier.MEDIUM
    return UrgencyTier.LOW


def prioritize(items: Iterable[T], key: Callable[[T], int]) -> List[T]:
    """Stable sort, highest priority first. Ties keep generation order."""
    return sorted(items, key=lambda item: -key(item))
