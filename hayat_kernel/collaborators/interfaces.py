"""
Collaborator interfaces — the narrow seams to everything outside the core.

Fact feeds (fines, identity/visa registries, medical records), push
subscriptions, command gateways (payments, renewal workflows) and the
family-structure provider are all consumed through these protocols.
Implementations live outside the kernel.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Protocol, runtime_checkable

from pydantic import BaseModel

from hayat_kernel.models.family import FamilyStructure
from hayat_kernel.models.obligation import ObligationRecord

RecordCallback = Callable[[ObligationRecord], None]
Unsubscribe = Callable[[], None]


class CommandOutcome(BaseModel):
    """Result of a side-effecting command."""

    success: bool
    reference: Optional[str] = None         # e.g. payment transaction id
    error: Optional[str] = None


@runtime_checkable
class FactFeed(Protocol):
    """Idempotent, cheap-to-poll source of obligation records."""

    async def fetch(self, member_ids: List[str]) -> List[ObligationRecord]: ...


@runtime_checkable
class SubscribableFeed(Protocol):
    """Optional push delivery. At-most-once, no ordering guarantee."""

    def subscribe(self, callback: RecordCallback) -> Unsubscribe: ...


@runtime_checkable
class CommandGateway(Protocol):
    """Side-effect interface (payments, renewal workflows, notifications)."""

    async def perform(self, kind: str, params: Dict[str, Any]) -> CommandOutcome: ...


@runtime_checkable
class FamilyStructureProvider(Protocol):
    """Read accessor the dependent agents hold onto the household structure."""

    def get_family_structure(self) -> Optional[FamilyStructure]: ...

    def get_member_ids(self) -> List[str]: ...
