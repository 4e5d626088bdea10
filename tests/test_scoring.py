"""Tests for the risk/priority scorer."""

from datetime import timedelta

import pytest

from hayat_kernel.models.action import UrgencyTier
from hayat_kernel.models.family import FamilyRole
from hayat_kernel.models.obligation import EscalationLevel, ObligationKind
from hayat_kernel.scoring.risk import (
    days_until,
    family_impact,
    fine_escalation,
    hours_until,
    legal_risk,
    prioritize,
    score,
    score_fine,
    stress_level,
    urgency_for_priority,
    weighted_priority,
)

from fakes import NOW

_DEADLINE_KINDS = [k for k in ObligationKind if k != ObligationKind.PARKING_FINE]


class TestTimeUntil:
    def test_days_truncate_toward_zero(self):
        assert days_until(NOW + timedelta(days=1, hours=23), NOW) == 1
        assert days_until(NOW - timedelta(hours=36), NOW) == -1
        assert days_until(NOW + timedelta(hours=5), NOW) == 0

    def test_hours_truncate_toward_zero(self):
        assert hours_until(NOW + timedelta(hours=22, minutes=59), NOW) == 22
        assert hours_until(NOW - timedelta(minutes=90), NOW) == -1


class TestDeadlineScoring:
    def test_overdue_is_maximal_stress_and_legal_risk(self):
        for kind in _DEADLINE_KINDS:
            result = score(kind, -1, FamilyRole.CHILD, mandatory=True)
            assert result.stress == 1.0
            assert result.legal_risk == 1.0

    def test_overdue_sponsor_visa_scores_100(self):
        result = score(ObligationKind.VISA, -5, FamilyRole.SPONSOR, mandatory=True)
        assert result.priority == 100
        assert result.urgency == UrgencyTier.CRITICAL

    def test_overdue_spouse_visa(self):
        result = score(ObligationKind.VISA, -5, FamilyRole.SPOUSE, mandatory=True)
        assert result.family_impact == 0.9
        assert result.priority == 97

    def test_sponsor_visa_within_a_month(self):
        result = score(ObligationKind.VISA, 20, FamilyRole.SPONSOR, mandatory=True)
        assert result.stress == 0.7
        assert result.legal_risk == 0.7
        assert result.priority == 79

    def test_child_vaccination_weighs_like_a_spouse(self):
        assert family_impact(FamilyRole.CHILD, ObligationKind.VACCINATION) == 0.9
        assert family_impact(FamilyRole.CHILD, ObligationKind.INSURANCE) == 0.7
        result = score(ObligationKind.VACCINATION, 5, FamilyRole.CHILD, mandatory=True)
        assert result.priority == 90

    def test_unknown_role_has_neutral_impact(self):
        assert family_impact("landlord", ObligationKind.VISA) == 0.5
        assert family_impact(None, ObligationKind.VISA) == 0.5

    def test_optional_item_far_out(self):
        result = score(ObligationKind.VACCINATION, 200, FamilyRole.DOMESTIC_WORKER, mandatory=False)
        assert result.stress == 0.1
        assert result.legal_risk == 0.1
        assert result.priority == 22
        assert result.urgency == UrgencyTier.LOW

    def test_legal_risk_beyond_two_months_never_exceeds_the_60_day_band(self):
        for kind in _DEADLINE_KINDS:
            assert legal_risk(kind, 61, mandatory=True) <= legal_risk(kind, 60, mandatory=True)

    @pytest.mark.parametrize("mandatory", [True, False])
    @pytest.mark.parametrize("role", list(FamilyRole))
    def test_priority_never_rises_as_deadline_recedes(self, role, mandatory):
        for kind in _DEADLINE_KINDS:
            previous = None
            for days in range(-10, 200):
                current = score(kind, days, role, mandatory).priority
                if previous is not None:
                    assert current <= previous, (kind, role, days)
                previous = current

    def test_components_stay_in_unit_range(self):
        for kind in _DEADLINE_KINDS:
            for days in (-400, -1, 0, 7, 30, 60, 90, 365):
                for mandatory in (True, False):
                    assert 0.0 <= stress_level(days, mandatory) <= 1.0
                    assert 0.0 <= legal_risk(kind, days, mandatory) <= 1.0

    def test_weighted_priority_rounds_half_up(self):
        assert weighted_priority(0.9, 0.9, 0.55) == 80


class TestFineScoring:
    @pytest.mark.parametrize(
        "hours, priority, escalation",
        [
            (30, 70, EscalationLevel.FRIENDLY),
            (24, 75, EscalationLevel.FRIENDLY),
            (22, 75, EscalationLevel.FRIENDLY),
            (12, 85, EscalationLevel.URGENT),
            (10, 85, EscalationLevel.URGENT),
            (6, 90, EscalationLevel.URGENT),
            (0, 90, EscalationLevel.URGENT),
            (-1, 95, EscalationLevel.FORMAL),
        ],
    )
    def test_fine_table(self, hours, priority, escalation):
        result = score_fine(hours)
        assert result.priority == priority
        assert result.escalation == escalation
        assert result.hours_remaining == hours

    def test_urgent_threshold_is_configurable(self):
        assert fine_escalation(20, urgent_hours=24) == EscalationLevel.URGENT
        assert fine_escalation(20, urgent_hours=12) == EscalationLevel.FRIENDLY


class TestPrioritize:
    def test_urgency_for_priority(self):
        assert urgency_for_priority(100) == UrgencyTier.CRITICAL
        assert urgency_for_priority(90) == UrgencyTier.CRITICAL
        assert urgency_for_priority(75) == UrgencyTier.HIGH
        assert urgency_for_priority(50) == UrgencyTier.MEDIUM
        assert urgency_for_priority(10) == UrgencyTier.LOW

    def test_sorted_descending(self):
        items = [("a", 10), ("b", 90), ("c", 50)]
        assert [i[0] for i in prioritize(items, key=lambda i: i[1])] == ["b", "c", "a"]

    def test_ties_keep_generation_order(self):
        items = [("first", 80), ("low", 20), ("second", 80), ("third", 80)]
        ranked = prioritize(items, key=lambda i: i[1])
        assert [i[0] for i in ranked] == ["first", "second", "third", "low"]


class TestLegalRiskCap:
    def test_far_deadline_capped_for_every_kind(self):
        assert legal_risk(ObligationKind.VACCINATION, 61, mandatory=True) == 0.5
        assert legal_risk(ObligationKind.INSURANCE, 61, mandatory=True) == 0.5
        assert legal_risk(ObligationKind.MEDICAL_FITNESS, 61, mandatory=True) == 0.5
        assert legal_risk(ObligationKind.VISA, 61, mandatory=True) == 0.3
