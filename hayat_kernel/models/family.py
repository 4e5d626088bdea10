"""Family Structure — the household unit whose obligations are tracked."""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, model_validator


class FamilyRole(str, Enum):
    SPONSOR = "sponsor"
    SPOUSE = "spouse"
    CHILD = "child"
    DOMESTIC_WORKER = "domestic_worker"


class ResidencyType(str, Enum):
    TOURIST = "tourist"
    SKILLED_EXPAT = "skilled_expat"
    DOMESTIC_WORKER = "domestic_worker"


class FamilyMember(BaseModel):
    """A single member of the household."""

    id: str
    name: str
    role: FamilyRole
    residency_type: Optional[ResidencyType] = None
    date_of_birth: Optional[str] = None
    emirates_id: Optional[str] = None       # Identity document number
    visa_number: Optional[str] = None       # Residency document number
    dependencies: List[str] = []            # IDs of members this person sponsors
    updated_at: Optional[datetime] = None


class FamilyStructure(BaseModel):
    """
    One sponsor plus an ordered set of members with unique ids.
    Created once at onboarding, mutated only through the guardian.
    """

    id: str
    sponsor_id: str
    members: List[FamilyMember]
    created_at: datetime
    updated_at: datetime

    @model_validator(mode="after")
    def _check_sponsor_and_ids(self) -> "FamilyStructure":
        seen = set()
        for member in self.members:
            if member.id in seen:
                raise ValueError(f"Duplicate member id: {member.id}")
            seen.add(member.id)

        sponsor = self.get_member(self.sponsor_id)
        if sponsor is None or sponsor.role != FamilyRole.SPONSOR:
            raise ValueError(
                f"sponsor_id {self.sponsor_id} must reference a member with role 'sponsor'"
            )
        return self

    def get_member(self, member_id: str) -> Optional[FamilyMember]:
        return next((m for m in self.members if m.id == member_id), None)

    @property
    def member_ids(self) -> List[str]:
        return [m.id for m in self.members]
