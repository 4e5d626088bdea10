"""Tests for the per-agent obligation store."""

from datetime import timedelta

from hayat_kernel.models.obligation import ObligationKind
from hayat_kernel.obligations.store import ObligationStore

from fakes import NOW, make_fine, make_record


class TestObligationStore:
    def test_upsert_new_record(self):
        store = ObligationStore()
        assert store.upsert(make_record(ObligationKind.VISA)) is None
        assert len(store) == 1

    def test_identical_upsert_supersedes_nothing(self):
        store = ObligationStore()
        store.upsert(make_record(ObligationKind.VISA))
        assert store.upsert(make_record(ObligationKind.VISA)) is None
        assert len(store) == 1

    def test_newer_data_supersedes_previous(self):
        store = ObligationStore()
        old = make_record(ObligationKind.VISA, due_at=NOW + timedelta(days=10))
        new = make_record(ObligationKind.VISA, due_at=NOW + timedelta(days=375), record_id="visa_renewed")
        store.upsert(old)

        assert store.upsert(new) == old
        assert len(store) == 1
        assert store.get(ObligationKind.VISA, "visa_renewed") == new
        assert store.get(ObligationKind.VISA, old.record_id) is None

    def test_one_authoritative_record_per_key(self):
        store = ObligationStore()
        store.upsert(make_fine("fine_1"))
        store.upsert(make_fine("fine_2"))
        store.upsert(make_record(ObligationKind.VACCINATION, label="MMR"))
        store.upsert(make_record(ObligationKind.VACCINATION, label="Polio", record_id="vac_2"))
        assert len(store.by_kind(ObligationKind.PARKING_FINE)) == 2
        assert len(store.by_kind(ObligationKind.VACCINATION)) == 2

    def test_outstanding_excludes_completed_and_in_progress(self):
        store = ObligationStore()
        store.upsert(make_fine("fine_1"))
        store.upsert(make_fine("fine_2", completed=True))
        store.upsert(make_record(ObligationKind.VISA, renewal_in_progress=True))

        outstanding = store.outstanding(ObligationKind.PARKING_FINE, ObligationKind.VISA)
        assert [r.record_id for r in outstanding] == ["fine_1"]

    def test_remove(self):
        store = ObligationStore()
        fine = make_fine()
        store.upsert(fine)
        assert store.remove(fine) is True
        assert store.remove(fine) is False
        assert store.all() == []

    def test_snapshot_and_refresh_marker(self):
        store = ObligationStore()
        store.upsert(make_fine())
        store.mark_refreshed(NOW)

        assert store.last_refreshed == NOW
        assert store.snapshot()[0]["kind"] == "parking_fine"
