"""Tests for the append-only trace ledger."""

import json
import threading
from datetime import timedelta

import pytest
from pydantic import ValidationError

from hayat_kernel.models.obligation import ObligationKind
from hayat_kernel.trace.ledger import TraceLedger, render_explanation

from fakes import NOW, make_record


def _append(ledger: TraceLedger, n: int = 1, user_id: str = "u1", agent_id: str = "wellbeing"):
    return [
        ledger.append(
            agent_id=agent_id,
            action=f"action_{i}",
            reasoning=f"Reason {i}",
            context={"index": i},
            user_id=user_id,
            action_id=f"act_{i}",
            timestamp=NOW + timedelta(minutes=i),
        )
        for i in range(n)
    ]


class TestTraceLedger:
    def test_append_and_lookup(self):
        ledger = TraceLedger()
        entry = _append(ledger)[0]

        assert ledger.get_by_id(entry.id) == entry
        assert ledger.lookup("wellbeing", "act_0") == entry
        assert ledger.lookup("wellbeing", "missing") is None
        assert ledger.lookup("other_agent", "act_0") is None
        assert ledger.count() == 1

    def test_entries_are_chained(self):
        ledger = TraceLedger()
        first, second = _append(ledger, 2)
        assert first.prior_record_hash is None
        assert second.prior_record_hash == first.signature
        assert ledger.verify_chain_integrity()

    def test_empty_chain_is_valid(self):
        assert TraceLedger().verify_chain_integrity()

    def test_tampering_is_detected(self):
        ledger = TraceLedger()
        _append(ledger, 3)

        row = ledger._conn.execute(
            "SELECT rowid, record_json FROM traces ORDER BY rowid LIMIT 1"
        ).fetchone()
        record = json.loads(row["record_json"])
        record["reasoning"] = "Rewritten history"
        ledger._conn.execute(
            "UPDATE traces SET record_json = ? WHERE rowid = ?",
            (json.dumps(record, sort_keys=True), row["rowid"]),
        )
        assert not ledger.verify_chain_integrity()

    def test_by_user_most_recent_first(self):
        ledger = TraceLedger()
        entries = _append(ledger, 3, user_id="u1")
        _append(ledger, 1, user_id="u2")

        found = ledger.by_user("u1")
        assert [e.id for e in found] == [e.id for e in reversed(entries)]
        assert ledger.by_user("nobody") == []

    def test_by_agent_and_recent_in_append_order(self):
        ledger = TraceLedger()
        a = _append(ledger, 2, agent_id="wellbeing")
        b = _append(ledger, 1, agent_id="compliance_sentinel")

        assert [e.id for e in ledger.by_agent("wellbeing")] == [e.id for e in a]
        assert [e.id for e in ledger.recent(2)] == [a[1].id, b[0].id]

    def test_context_is_snapshotted(self):
        ledger = TraceLedger()
        context = {"members": ["m_sponsor"]}
        entry = ledger.append("family_guardian", "member_added", "Added", context, "u1")

        context["members"].append("m_child")
        assert entry.context == {"members": ["m_sponsor"]}
        assert ledger.get_by_id(entry.id).context == {"members": ["m_sponsor"]}

    def test_models_in_context_are_serialized(self):
        ledger = TraceLedger()
        record = make_record(ObligationKind.VISA, due_at=NOW)
        entry = ledger.append("residency_identity", "renewal_start", "Expiring", {"obligation": record}, "u1")

        assert entry.context["obligation"]["kind"] == "visa"
        assert entry.context["obligation"]["due_at"] == NOW.isoformat()

    def test_entries_are_immutable(self):
        entry = _append(TraceLedger())[0]
        with pytest.raises(ValidationError):
            entry.action = "rewritten"

    def test_concurrent_appends_keep_the_chain(self):
        ledger = TraceLedger()

        def writer(user_id):
            for i in range(20):
                ledger.append("wellbeing", "notification", f"Reason {i}", {}, user_id)

        threads = [threading.Thread(target=writer, args=(f"u{n}",)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert ledger.count() == 80
        assert ledger.verify_chain_integrity()


class TestRenderExplanation:
    def test_explanation_contents(self):
        ledger = TraceLedger()
        entry = ledger.append(
            "compliance_sentinel",
            "payment_initiation",
            "Discount window closing",
            {"amount": 200},
            "u1",
            timestamp=NOW,
        )
        text = render_explanation(entry)

        assert text.startswith(
            'The compliance_sentinel agent took the action "payment_initiation" '
            "because: Discount window closing."
        )
        assert NOW.isoformat() in text
        assert '"amount": 200' in text

    def test_explanation_is_reproducible(self):
        ledger = TraceLedger()
        entry = _append(ledger)[0]
        first = render_explanation(entry)
        _append(ledger, 3)
        assert render_explanation(ledger.get_by_id(entry.id)) == first
