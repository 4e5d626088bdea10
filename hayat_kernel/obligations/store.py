"""
Obligation Store — an agent's authoritative cache of obligation records.

Updated by: fact-fetch refreshes + event subscriptions
Queried by: the owning agent's monitor / evaluate / act

Holds exactly one record per authority key. Replacing a record hands the
previous one back so the owning agent can carry its history into a trace.
"""

from datetime import datetime
from typing import Dict, List, Optional, Tuple

from hayat_kernel.models.obligation import ObligationKind, ObligationRecord


class ObligationStore:
    """In-memory obligation cache owned by exactly one agent."""

    def __init__(self):
        self._records: Dict[Tuple[str, ...], ObligationRecord] = {}
        self.last_refreshed: Optional[datetime] = None

    def __len__(self) -> int:
        return len(self._records)

    def upsert(self, record: ObligationRecord) -> Optional[ObligationRecord]:
        """
        Make ``record`` authoritative for its key.

        Returns the superseded record when one existed with different
        content, else None.
        """
        key = record.authority_key
        previous = self._records.get(key)
        self._records[key] = record
        if previous is not None and previous != record:
            return previous
        return None

    def get_by_key(self, key: Tuple[str, ...]) -> Optional[ObligationRecord]:
        return self._records.get(key)

    def get(self, kind: ObligationKind, record_id: str) -> Optional[ObligationRecord]:
        """Find a record by kind and feed-assigned id."""
        return next(
            (
                r for r in self._records.values()
                if r.kind == kind and r.record_id == record_id
            ),
            None,
        )

    def remove(self, record: ObligationRecord) -> bool:
        """Drop the authoritative record for ``record``'s key."""
        return self._records.pop(record.authority_key, None) is not None

    def all(self) -> List[ObligationRecord]:
        return list(self._records.values())

    def by_kind(self, *kinds: ObligationKind) -> List[ObligationRecord]:
        """All records of the given kinds, in insertion order."""
        return [r for r in self._records.values() if r.kind in kinds]

    def outstanding(self, *kinds: ObligationKind) -> List[ObligationRecord]:
        return [r for r in self.by_kind(*kinds) if r.outstanding]

    def mark_refreshed(self, when: Optional[datetime] = None) -> None:
        self.last_refreshed = when or datetime.utcnow()

    def snapshot(self) -> List[dict]:
        """Serializable snapshot of every cached record."""
        return [r.model_dump(mode="json") for r in self._records.values()]
