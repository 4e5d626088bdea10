"""Tests for the core data models."""

import pytest
from pydantic import ValidationError

from hayat_kernel.errors import InvalidActionTransition
from hayat_kernel.models.action import ActionStatus, ActionType, AgentAction
from hayat_kernel.models.family import FamilyRole, FamilyStructure
from hayat_kernel.models.obligation import ObligationKind
from hayat_kernel.models.trace import TraceEntry

from fakes import NOW, make_member, make_record, make_sponsor, make_structure


def _make_action(reason: str = "Visa expires soon", **kwargs) -> AgentAction:
    return AgentAction(
        id=kwargs.pop("id", "act_1"),
        agent_id="residency_identity",
        type=ActionType.RENEWAL_START,
        description="Aisha's visa expires in 5 days",
        reason=reason,
        priority=kwargs.pop("priority", 90),
        created_at=NOW,
        **kwargs,
    )


class TestFamilyStructure:
    def test_valid_structure(self):
        structure = make_structure(make_member("m_child", FamilyRole.CHILD))
        assert structure.member_ids == ["m_sponsor", "m_child"]
        assert structure.get_member("m_child").role == FamilyRole.CHILD
        assert structure.get_member("missing") is None

    def test_sponsor_must_be_a_member(self):
        with pytest.raises(ValidationError):
            FamilyStructure(
                id="family_1",
                sponsor_id="nobody",
                members=[make_sponsor()],
                created_at=NOW,
                updated_at=NOW,
            )

    def test_sponsor_must_have_sponsor_role(self):
        spouse = make_member("m_spouse", FamilyRole.SPOUSE)
        with pytest.raises(ValidationError):
            FamilyStructure(
                id="family_1",
                sponsor_id="m_spouse",
                members=[make_sponsor(), spouse],
                created_at=NOW,
                updated_at=NOW,
            )

    def test_duplicate_member_ids_rejected(self):
        with pytest.raises(ValidationError):
            make_structure(make_member("m_sponsor", FamilyRole.CHILD))


class TestObligationRecord:
    def test_fine_keyed_by_record_id(self):
        a = make_record(ObligationKind.PARKING_FINE, record_id="fine_1")
        b = make_record(ObligationKind.PARKING_FINE, record_id="fine_2")
        assert a.authority_key != b.authority_key

    def test_visa_keyed_by_member(self):
        a = make_record(ObligationKind.VISA, record_id="v1")
        b = make_record(ObligationKind.VISA, record_id="v2")
        assert a.authority_key == b.authority_key

    def test_vaccinations_keyed_by_label(self):
        a = make_record(ObligationKind.VACCINATION, record_id="v1", label="MMR")
        b = make_record(ObligationKind.VACCINATION, record_id="v2", label="Polio")
        assert a.authority_key != b.authority_key

    def test_outstanding(self):
        record = make_record(ObligationKind.VISA)
        assert record.outstanding is True
        assert record.model_copy(update={"completed": True}).outstanding is False
        assert record.model_copy(update={"renewal_in_progress": True}).outstanding is False


class TestAgentAction:
    def test_priority_bounds(self):
        with pytest.raises(ValidationError):
            _make_action(priority=101)
        with pytest.raises(ValidationError):
            _make_action(priority=-1)

    def test_forward_transitions(self):
        action = _make_action()
        action.transition(ActionStatus.IN_PROGRESS)
        action.transition(ActionStatus.COMPLETED)
        assert action.status == ActionStatus.COMPLETED
        assert action.is_terminal

    def test_cannot_skip_in_progress(self):
        action = _make_action()
        with pytest.raises(InvalidActionTransition):
            action.transition(ActionStatus.COMPLETED)

    def test_cannot_move_backwards(self):
        action = _make_action()
        action.transition(ActionStatus.IN_PROGRESS)
        action.transition(ActionStatus.FAILED)
        with pytest.raises(InvalidActionTransition):
            action.transition(ActionStatus.PENDING)
        with pytest.raises(InvalidActionTransition):
            action.transition(ActionStatus.IN_PROGRESS)

    def test_reason_required_to_leave_pending(self):
        action = _make_action(reason="   ")
        with pytest.raises(InvalidActionTransition):
            action.transition(ActionStatus.IN_PROGRESS)
        assert action.status == ActionStatus.PENDING


class TestTraceEntry:
    def test_entry_is_frozen(self):
        entry = TraceEntry(
            id="trace_1",
            agent_id="wellbeing",
            action="notification",
            reasoning="Vaccination due",
            timestamp=NOW,
            user_id="u1",
        )
        with pytest.raises(ValidationError):
            entry.reasoning = "changed"
