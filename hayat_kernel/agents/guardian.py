"""
Family Guardian Agent — keeps the household structure complete and serves it
to the other agents.

Has no external collaborator: the structure itself is its source of truth.
Missing required fields are reported as ordinary actions, never raised.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from hayat_kernel.agents.base import BaseAgent
from hayat_kernel.models.action import ActionType, AgentAction
from hayat_kernel.models.config import AgentConfig
from hayat_kernel.models.family import FamilyMember, FamilyRole, FamilyStructure
from hayat_kernel.models.widget import AgentStatus

logger = logging.getLogger(__name__)

SETUP_PRIORITY = 100
SPONSOR_IDENTITY_PRIORITY = 90
MEMBER_RESIDENCY_PRIORITY = 85


class FamilyGuardianAgent(BaseAgent):
    """Maintains the family structure and validates its completeness."""

    id = "family_guardian"
    name = "Family Guardian"
    description = "Maintains family structure and coordinates all agents"

    def __init__(
        self,
        structure: Optional[FamilyStructure] = None,
        config: Optional[AgentConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        super().__init__(config=config, clock=clock)
        self._structure = structure

    # --- FamilyStructureProvider ---

    def get_family_structure(self) -> Optional[FamilyStructure]:
        return self._structure

    def get_member_ids(self) -> List[str]:
        if self._structure is None:
            return []
        return self._structure.member_ids

    # --- Structure mutation ---

    def update_family_structure(self, structure: FamilyStructure) -> FamilyStructure:
        """Replace the whole structure (e.g. at onboarding)."""
        previous = self._structure
        self._structure = structure
        self._record(
            "family_structure_updated",
            "Family structure was updated",
            {"previous": previous, "structure": structure},
        )
        return structure

    def add_member(self, member: FamilyMember) -> FamilyStructure:
        """Append a member. Raises ValueError if no structure exists yet."""
        if self._structure is None:
            raise ValueError("Family structure not initialized")

        now = self.now()
        member = member.model_copy(update={"updated_at": now})
        self._structure = self._rebuild(self._structure.members + [member], now)
        self._record(
            "member_added",
            f"Added {member.name} to family structure",
            {"member": member},
        )
        return self._structure

    def update_member(self, member_id: str, **changes: Any) -> FamilyMember:
        """Update fields on one member, stamping ``updated_at``."""
        if self._structure is None:
            raise ValueError("Family structure not initialized")
        existing = self._structure.get_member(member_id)
        if existing is None:
            raise KeyError(member_id)

        now = self.now()
        updated = existing.model_copy(update={**changes, "updated_at": now})
        members = [updated if m.id == member_id else m for m in self._structure.members]
        self._structure = self._rebuild(members, now)
        self._record(
            "member_updated",
            f"Updated {updated.name}: {', '.join(sorted(changes))}",
            {"before": existing, "after": updated},
        )
        return self._structure.get_member(member_id)

    def _rebuild(self, members: List[FamilyMember], now: datetime) -> FamilyStructure:
        # Re-validate so the sponsor and unique-id invariants keep holding
        data = self._structure.model_dump()
        data["members"] = [m.model_dump() for m in members]
        data["updated_at"] = now
        return FamilyStructure.model_validate(data)

    # --- Agent cycle ---

    async def _load(self) -> None:
        if self._structure is None:
            logger.info("No family structure yet; setup will be requested")

    async def _refresh(self) -> None:
        pass

    def _missing_fields(self) -> List[Dict[str, Any]]:
        """Members whose required document is not on file."""
        gaps = []
        for member in self._structure.members:
            if member.role == FamilyRole.SPONSOR and not member.emirates_id:
                gaps.append({"member": member, "field": "emirates_id"})
            elif member.role != FamilyRole.SPONSOR and not member.visa_number:
                gaps.append({"member": member, "field": "visa_number"})
        return gaps

    def _classify(self) -> AgentStatus:
        if self._structure is None or self._missing_fields():
            return AgentStatus.ATTENTION_NEEDED
        return AgentStatus.CLEAR

    def _build_actions(self) -> List[AgentAction]:
        if self._structure is None:
            return [self._new_action(
                ActionType.NOTIFICATION,
                "Set up your family structure",
                "Family structure is required to monitor your obligations",
                SETUP_PRIORITY,
            )]

        actions = []
        for gap in self._missing_fields():
            member = gap["member"]
            if gap["field"] == "emirates_id":
                actions.append(self._new_action(
                    ActionType.NOTIFICATION,
                    f"Complete {member.name}'s Emirates ID information",
                    "Sponsor Emirates ID is required for all government services",
                    SPONSOR_IDENTITY_PRIORITY,
                ))
            else:
                actions.append(self._new_action(
                    ActionType.NOTIFICATION,
                    f"Add visa information for {member.name}",
                    "Visa information is required to track residency status",
                    MEMBER_RESIDENCY_PRIORITY,
                ))
        return actions

    def _trace_context(self, action: AgentAction) -> Dict[str, Any]:
        context = super()._trace_context(action)
        context["family_structure"] = self._structure
        return context

    async def _perform(self, action: AgentAction) -> bool:
        # Collecting the missing details is the caller's job; the request is the effect
        return True
