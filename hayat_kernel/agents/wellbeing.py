"""
Family Well-Being Agent — vaccinations, medical fitness tests, insurance.

Competing obligation kinds are ranked by the shared risk scorer rather than
per-kind thresholds; the only fixed priority is invalid insurance.
"""

import logging
from typing import List, Optional

from hayat_kernel.agents.base import ObligationAgent
from hayat_kernel.agents.explanations import (
    deadline_phrase,
    insurance_reason,
    medical_fitness_reason,
    vaccination_reason,
)
from hayat_kernel.models.action import ActionType, AgentAction, UrgencyTier
from hayat_kernel.models.family import FamilyMember
from hayat_kernel.models.obligation import ObligationKind, ObligationRecord
from hayat_kernel.models.widget import AgentStatus
from hayat_kernel.scoring.risk import prioritize, score

logger = logging.getLogger(__name__)

_WELLBEING_KINDS = (
    ObligationKind.VACCINATION,
    ObligationKind.MEDICAL_FITNESS,
    ObligationKind.INSURANCE,
)

INVALID_INSURANCE_PRIORITY = 95


class WellBeingAgent(ObligationAgent):
    """Monitors vaccinations, medical fitness and insurance."""

    id = "wellbeing"
    name = "Family Well-Being"
    description = "Monitors vaccinations, medical fitness, and insurance"
    feed_name = "medical_feed"
    gateway_name = "health_gateway"

    async def _refresh(self) -> None:
        if not self.member_ids():
            return
        await super()._refresh()

    def _tracked(self) -> List[ObligationRecord]:
        """Outstanding records that belong to a known household member."""
        return [
            r for r in self.store.outstanding(*_WELLBEING_KINDS)
            if self.get_member(r.member_id) is not None
        ]

    def _classify(self) -> AgentStatus:
        threshold = self.config.wellbeing_threshold_days
        for record in self._tracked():
            if record.kind == ObligationKind.INSURANCE and not record.valid:
                return AgentStatus.ATTENTION_NEEDED
            if self._days(record) <= threshold:
                return AgentStatus.ATTENTION_NEEDED
        return AgentStatus.CLEAR

    def _build_actions(self) -> List[AgentAction]:
        actions = []
        for record in self._tracked():
            member = self.get_member(record.member_id)
            action = self._wellbeing_action(record, member)
            if action is not None:
                actions.append(action)
        return prioritize(actions, key=lambda a: a.priority)

    def _wellbeing_action(
        self, record: ObligationRecord, member: FamilyMember
    ) -> Optional[AgentAction]:
        days = self._days(record)
        subject = record.label or record.kind.value.replace("_", " ")

        if record.kind == ObligationKind.INSURANCE and not record.valid:
            return self._new_action(
                ActionType.NOTIFICATION,
                f"{member.name} - Insurance is invalid",
                insurance_reason(days, valid=False),
                INVALID_INSURANCE_PRIORITY,
                target=record,
                urgency=UrgencyTier.CRITICAL,
            )

        if days > self.config.preparation_horizon_days:
            return None

        assessment = score(record.kind, days, member.role, mandatory=True)
        if record.kind == ObligationKind.VACCINATION:
            action_type = ActionType.NOTIFICATION
            description = f"{member.name} - {subject} {deadline_phrase('was due', 'due', days)}"
            reason = vaccination_reason(member.role, days)
        elif record.kind == ObligationKind.MEDICAL_FITNESS:
            action_type = ActionType.RENEWAL_START
            description = f"{member.name} - {subject} {deadline_phrase('expired', 'expires', days)}"
            reason = medical_fitness_reason(days)
        else:
            action_type = ActionType.RENEWAL_START
            description = f"{member.name} - Insurance {deadline_phrase('expired', 'expires', days)}"
            reason = insurance_reason(days)

        return self._new_action(
            action_type,
            description,
            reason,
            assessment.priority,
            target=record,
            urgency=assessment.urgency,
        )

    async def _perform(self, action: AgentAction) -> bool:
        return await self._start_renewal(action)
