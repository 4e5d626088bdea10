"""
Residency & Identity Agent — visa and Emirates ID expiry, grace periods.
"""

import logging
from typing import List

from hayat_kernel.agents.base import ObligationAgent
from hayat_kernel.agents.explanations import deadline_phrase, emirates_id_reason, visa_reason
from hayat_kernel.models.action import ActionType, AgentAction
from hayat_kernel.models.obligation import ObligationKind, ObligationRecord
from hayat_kernel.models.widget import AgentStatus
from hayat_kernel.scoring.risk import score

logger = logging.getLogger(__name__)

_DOCUMENT_KINDS = (ObligationKind.VISA, ObligationKind.EMIRATES_ID)


class ResidencyIdentityAgent(ObligationAgent):
    """Monitors visa and Emirates ID expiry for every household member."""

    id = "residency_identity"
    name = "Residency & Identity"
    description = "Monitors visa and Emirates ID expiry, tracks grace periods"
    feed_name = "identity_feed"
    gateway_name = "renewal_gateway"

    async def _refresh(self) -> None:
        if not self.member_ids():
            return  # Nothing to look up until the household is known
        await super()._refresh()

    def _classify(self) -> AgentStatus:
        threshold = self.config.document_threshold_days
        for record in self.store.outstanding(*_DOCUMENT_KINDS):
            if self._days(record) <= threshold:
                return AgentStatus.ATTENTION_NEEDED
        return AgentStatus.CLEAR

    def _build_actions(self) -> List[AgentAction]:
        actions = []
        for record in self.store.outstanding(*_DOCUMENT_KINDS):
            days = self._days(record)
            if days > self.config.preparation_horizon_days:
                continue
            actions.append(self._document_action(record, days))
        return actions

    def _document_action(self, record: ObligationRecord, days: int) -> AgentAction:
        member = self.get_member(record.member_id)
        who = member.name if member else "Member"
        role = member.role if member else None
        assessment = score(record.kind, days, role, mandatory=True)

        if record.kind == ObligationKind.VISA:
            document = "visa"
            reason = visa_reason(member.residency_type if member else None, days)
            renew_within = 7
        else:
            document = "Emirates ID"
            reason = emirates_id_reason(days)
            renew_within = self.config.document_threshold_days

        status = deadline_phrase("expired", "expires", days)
        if days <= renew_within:
            action_type = ActionType.RENEWAL_START
            description = f"{who}'s {document} {status}"
        elif days <= self.config.document_threshold_days:
            action_type = ActionType.WORKFLOW_PREPARATION
            description = f"{who}'s {document} {status}"
        else:
            action_type = ActionType.WORKFLOW_PREPARATION
            description = f"Prepare renewal for {who}'s {document} ({status})"

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
