"""
Compliance Sentinel Agent — parking fines and their discount windows.

Escalation tone is recomputed on every evaluation from the hours left in
each fine's discount window:
  friendly → urgent (≤ 12h left) → formal (window expired)
"""

import logging
from typing import List

from hayat_kernel.agents.base import ObligationAgent
from hayat_kernel.agents.explanations import fine_message
from hayat_kernel.models.action import ActionType, AgentAction
from hayat_kernel.models.obligation import ObligationKind
from hayat_kernel.models.widget import AgentStatus
from hayat_kernel.scoring.risk import score_fine

logger = logging.getLogger(__name__)


class ComplianceSentinelAgent(ObligationAgent):
    """Monitors parking fines and ensures timely payment."""

    id = "compliance_sentinel"
    name = "Compliance Sentinel"
    description = "Monitors parking fines and ensures timely payment"
    feed_name = "fine_feed"
    gateway_name = "payment_gateway"

    def _classify(self) -> AgentStatus:
        for fine in self.store.outstanding(ObligationKind.PARKING_FINE):
            if self._hours(fine) <= self.config.fine_urgent_hours:
                return AgentStatus.ATTENTION_NEEDED
        return AgentStatus.CLEAR

    def _build_actions(self) -> List[AgentAction]:
        actions = []
        for fine in self.store.outstanding(ObligationKind.PARKING_FINE):
            hours = self._hours(fine)
            assessment = score_fine(hours, self.config.fine_urgent_hours)

            where = fine.issuer or "Parking"
            amount = f"{fine.amount:g} AED" if fine.amount is not None else "amount pending"
            if hours > 0:
                window = f"({hours}h discount window)"
            elif fine.due_at > self.now():
                window = "(discount window closing)"
            else:
                window = "(discount expired)"

            actions.append(self._new_action(
                ActionType.PAYMENT_INITIATION,
                f"{where} parking fine: {amount} {window}",
                fine_message(fine, assessment.escalation),
                assessment.priority,
                target=fine,
                escalation_level=assessment.escalation,
            ))
        return actions

    async def _perform(self, action: AgentAction) -> bool:
        fine = self._target_record(action)
        if fine is None:
            logger.warning("Fine for action %s is no longer tracked", action.id)
            return False

        result = await self.dispatcher.dispatch(
            action.type.value,
            {
                "amount": fine.amount,
                "description": f"Parking fine - {fine.issuer or 'UAE'}",
                "reference": fine.record_id,
            },
        )
        if result.success:
            self._apply_progress(
                fine, action, completed=True, metadata={"transaction_id": result.reference},
            )
        return result.success
