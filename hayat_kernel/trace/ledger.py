"""
Trace Ledger — append-only, cryptographically chained record of agent decisions.

Every decision an agent takes (and every structural change it makes) produces
one TraceEntry.

Behavioral Contract:
- Append-only. No entry is ever modified or deleted through this interface.
- Each entry is hashed and chained to the previous entry (tamper-evident).
- Appends are linearizable: concurrent writers are serialized by a lock.
- Context is snapshotted to JSON at append time, so explanations stay
  reproducible after upstream data changes.
"""

import hashlib
import json
import logging
import sqlite3
import threading
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import uuid4

from hayat_kernel.models.trace import TraceEntry

logger = logging.getLogger(__name__)


def _snapshot(context: Optional[Dict[str, Any]]) -> dict:
    """Deep-copy a context mapping into plain JSON types."""
    if not context:
        return {}
    return json.loads(json.dumps(context, default=_json_default, sort_keys=True))


def _json_default(value: Any) -> Any:
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _sign(entry_dict: dict) -> str:
    payload = dict(entry_dict)
    payload["signature"] = ""
    return hashlib.sha256(
        json.dumps(payload, sort_keys=True, default=str).encode()
    ).hexdigest()


def render_explanation(entry: TraceEntry) -> str:
    """
    Render a human-readable explanation of one trace entry.

    Pure function of the entry: it never consults external state.
    """
    context = json.dumps(entry.context, indent=2, sort_keys=True)
    return (
        f'The {entry.agent_id} agent took the action "{entry.action}" '
        f"because: {entry.reasoning}. "
        f"This decision was recorded at {entry.timestamp.isoformat()} "
        f"based on the following data: {context}"
    )


class TraceLedger:
    """
    Append-only trace ledger shared by every agent.
    Prototype: SQLite. Persistence strategy is left to deployment.
    """

    def __init__(self, db_path: str = ":memory:"):
        self.db_path = db_path
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._init_schema()

    def _init_schema(self) -> None:
        """Create the traces table if it doesn't exist."""
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS traces (
                id TEXT PRIMARY KEY,
                agent_id TEXT NOT NULL,
                action_id TEXT,
                action TEXT NOT NULL,
                user_id TEXT NOT NULL,
                timestamp TEXT NOT NULL,
                signature TEXT NOT NULL,
                prior_record_hash TEXT,
                record_json TEXT NOT NULL
            )
        """)
        self._conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_traces_agent_action ON traces(agent_id, action_id)
        """)
        self._conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_traces_user_id ON traces(user_id)
        """)
        self._conn.commit()

    def append(
        self,
        agent_id: str,
        action: str,
        reasoning: str,
        context: Optional[Dict[str, Any]],
        user_id: str,
        action_id: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> TraceEntry:
        """
        Append one decision. Computes the entry's hash and chains it to the
        previous entry. The returned entry is immutable.
        """
        with self._lock:
            entry_dict = {
                "id": f"trace_{uuid4().hex[:12]}",
                "agent_id": agent_id,
                "action_id": action_id,
                "action": action,
                "reasoning": reasoning,
                "context": _snapshot(context),
                "timestamp": (timestamp or datetime.utcnow()).isoformat(),
                "user_id": user_id,
                "signature": "",
                "prior_record_hash": self._get_latest_hash(),
            }
            entry_dict["signature"] = _sign(entry_dict)
            entry = TraceEntry.model_validate(entry_dict)

            self._conn.execute(
                """
                INSERT INTO traces (
                    id, agent_id, action_id, action, user_id, timestamp,
                    signature, prior_record_hash, record_json
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.id,
                    entry.agent_id,
                    entry.action_id,
                    entry.action,
                    entry.user_id,
                    entry_dict["timestamp"],
                    entry.signature,
                    entry.prior_record_hash,
                    json.dumps(entry_dict, sort_keys=True),
                ),
            )
            self._conn.commit()

        logger.debug("Trace %s appended for agent %s (%s)", entry.id, agent_id, action)
        return entry

    def _get_latest_hash(self) -> Optional[str]:
        """Get the signature of the most recent entry."""
        row = self._conn.execute(
            "SELECT signature FROM traces ORDER BY rowid DESC LIMIT 1"
        ).fetchone()
        return row["signature"] if row else None

    def _deserialize(self, row: sqlite3.Row) -> TraceEntry:
        return TraceEntry.model_validate_json(row["record_json"])

    def _query(self, sql: str, params: tuple = ()) -> List[TraceEntry]:
        with self._lock:
            rows = self._conn.execute(sql, params).fetchall()
        return [self._deserialize(r) for r in rows]

    def get_by_id(self, trace_id: str) -> Optional[TraceEntry]:
        """Get a specific entry by its trace id."""
        found = self._query("SELECT record_json FROM traces WHERE id = ?", (trace_id,))
        return found[0] if found else None

    def lookup(self, agent_id: str, action_id: str) -> Optional[TraceEntry]:
        """The decision trace an agent recorded against one of its actions."""
        found = self._query(
            "SELECT record_json FROM traces WHERE agent_id = ? AND action_id = ? "
            "ORDER BY rowid LIMIT 1",
            (agent_id, action_id),
        )
        return found[0] if found else None

    def by_user(self, user_id: str) -> List[TraceEntry]:
        """All entries recorded on behalf of a user, most recent first."""
        return self._query(
            "SELECT record_json FROM traces WHERE user_id = ? ORDER BY rowid DESC",
            (user_id,),
        )

    def by_agent(self, agent_id: str) -> List[TraceEntry]:
        """All entries written by one agent, in append order."""
        return self._query(
            "SELECT record_json FROM traces WHERE agent_id = ? ORDER BY rowid",
            (agent_id,),
        )

    def recent(self, limit: int = 50) -> List[TraceEntry]:
        """The most recent entries, in append order."""
        entries = self._query(
            "SELECT record_json FROM traces ORDER BY rowid DESC LIMIT ?",
            (limit,),
        )
        return list(reversed(entries))

    def verify_chain_integrity(self) -> bool:
        """Verify no entries have been tampered with."""
        with self._lock:
            rows = self._conn.execute(
                "SELECT record_json, signature FROM traces ORDER BY rowid"
            ).fetchall()

        prior_sig = None
        for row in rows:
            entry_dict = json.loads(row["record_json"])
            if entry_dict["signature"] != row["signature"]:
                return False
            if _sign(entry_dict) != row["signature"]:
                return False
            if entry_dict["prior_record_hash"] != prior_sig:
                return False
            prior_sig = row["signature"]

        return True

    def count(self) -> int:
        """Total number of entries."""
        with self._lock:
            row = self._conn.execute("SELECT COUNT(*) as cnt FROM traces").fetchone()
        return row["cnt"]

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            self._conn.close()
