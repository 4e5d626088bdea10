"""In-memory collaborators and builders shared by the test modules."""

import asyncio
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from hayat_kernel.collaborators.interfaces import CommandOutcome
from hayat_kernel.models.family import FamilyMember, FamilyRole, FamilyStructure, ResidencyType
from hayat_kernel.models.obligation import ObligationKind, ObligationRecord

NOW = datetime(2026, 3, 1, 9, 0, 0)


class FakeClock:
    """Settable clock passed to agents instead of datetime.utcnow."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeFeed:
    """Poll-only fact feed."""

    def __init__(self, records=None, fail: bool = False, delay: float = 0.0):
        self.records: List[ObligationRecord] = list(records or [])
        self.fail = fail
        self.delay = delay
        self.fetch_calls: List[List[str]] = []

    async def fetch(self, member_ids: List[str]) -> List[ObligationRecord]:
        self.fetch_calls.append(list(member_ids))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise ConnectionError("feed offline")
        return list(self.records)


class SubscribingFeed(FakeFeed):
    """Fact feed that also pushes records to subscribers."""

    def __init__(self, records=None, fail: bool = False, delay: float = 0.0):
        super().__init__(records, fail, delay)
        self.callbacks = []
        self.subscribe_calls = 0
        self.unsubscribe_calls = 0

    def subscribe(self, callback):
        self.subscribe_calls += 1
        self.callbacks.append(callback)

        def unsubscribe():
            self.unsubscribe_calls += 1
            if callback in self.callbacks:
                self.callbacks.remove(callback)

        return unsubscribe

    def push(self, record: ObligationRecord) -> None:
        for callback in list(self.callbacks):
            callback(record)


class FakeGateway:
    """Command gateway that records every call."""

    def __init__(
        self,
        success: bool = True,
        error: Optional[Exception] = None,
        delay: float = 0.0,
        release: Optional[asyncio.Event] = None,
    ):
        self.success = success
        self.error = error
        self.delay = delay
        self.release = release
        self.calls: List[tuple] = []

    async def perform(self, kind: str, params: Dict[str, Any]) -> CommandOutcome:
        self.calls.append((kind, params))
        if self.release is not None:
            await self.release.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self.success:
            return CommandOutcome(success=True, reference=f"txn_{len(self.calls)}")
        return CommandOutcome(success=False, error="declined")


def make_member(
    member_id: str,
    role: FamilyRole,
    name: Optional[str] = None,
    **kwargs,
) -> FamilyMember:
    return FamilyMember(id=member_id, name=name or member_id.title(), role=role, **kwargs)


def make_sponsor(**kwargs) -> FamilyMember:
    defaults = {
        "name": "Aisha",
        "residency_type": ResidencyType.SKILLED_EXPAT,
        "emirates_id": "784-1234567-1",
        "visa_number": "VISA001",
    }
    defaults.update(kwargs)
    return make_member("m_sponsor", FamilyRole.SPONSOR, **defaults)


def make_structure(*members: FamilyMember, sponsor: Optional[FamilyMember] = None) -> FamilyStructure:
    sponsor = sponsor or make_sponsor()
    return FamilyStructure(
        id="family_1",
        sponsor_id=sponsor.id,
        members=[sponsor, *members],
        created_at=NOW,
        updated_at=NOW,
    )


def make_record(
    kind: ObligationKind,
    member_id: Optional[str] = "m_sponsor",
    due_at: Optional[datetime] = None,
    record_id: Optional[str] = None,
    **kwargs,
) -> ObligationRecord:
    return ObligationRecord(
        record_id=record_id or f"{kind.value}_{member_id}",
        kind=kind,
        member_id=member_id,
        due_at=due_at or NOW + timedelta(days=200),
        **kwargs,
    )


def make_fine(
    record_id: str = "fine_1",
    hours: float = 22,
    amount: float = 200,
    issuer: str = "Dubai",
    **kwargs,
) -> ObligationRecord:
    return ObligationRecord(
        record_id=record_id,
        kind=ObligationKind.PARKING_FINE,
        member_id=kwargs.pop("member_id", "m_sponsor"),
        due_at=NOW + timedelta(hours=hours),
        amount=amount,
        issuer=issuer,
        **kwargs,
    )
