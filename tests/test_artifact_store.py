"""Tests for ArtifactStore: expiry, lazy/eager eviction, idempotent removal."""

from __future__ import annotations

import threading
import time
from datetime import timedelta
from pathlib import Path

import pytest

from md2word_mcp.artifact_store import ArtifactReaper, ArtifactStore, LookupStatus

from conftest import FakeClock, make_payload


class TestPutAndGet:
    def test_put_returns_id_and_get_finds_entry(self, store: ArtifactStore, tmp_path: Path):
        payload = make_payload(tmp_path)
        artifact_id = store.put("Report", payload)

        artifact = store.get(artifact_id)
        assert artifact is not None
        assert artifact.id == artifact_id
        assert artifact.display_name == "Report"
        assert artifact.storage_path == payload
        assert artifact.size_bytes == payload.stat().st_size
        assert len(store) == 1

    def test_expiry_is_creation_plus_ttl(self, store: ArtifactStore, clock: FakeClock, tmp_path: Path):
        artifact = store.register("Report", make_payload(tmp_path))
        assert artifact.created_at == clock.now
        assert artifact.expires_at == clock.now + timedelta(minutes=30)

    def test_ids_are_unique(self, store: ArtifactStore, tmp_path: Path):
        ids = {store.put("Doc", make_payload(tmp_path, f"{i}.docx")) for i in range(50)}
        assert len(ids) == 50

    def test_duplicate_id_rejected(self, clock: FakeClock, tmp_path: Path):
        store = ArtifactStore(ttl=timedelta(minutes=1), clock=clock, id_factory=lambda: "same")
        store.put("a", make_payload(tmp_path, "a.docx"))
        with pytest.raises(KeyError):
            store.put("b", make_payload(tmp_path, "b.docx"))

    def test_unknown_id_is_missing(self, store: ArtifactStore):
        assert store.lookup("nope") == (LookupStatus.MISSING, None)
        assert store.get("nope") is None


class TestLazyExpiry:
    def test_expired_entry_absent_before_reap(self, store: ArtifactStore, clock: FakeClock, tmp_path: Path):
        payload = make_payload(tmp_path)
        artifact_id = store.put("Report", payload)

        clock.advance(minutes=30)
        status, artifact = store.lookup(artifact_id)

        assert status is LookupStatus.EXPIRED
        assert artifact is None
        assert len(store) == 0
        assert not payload.exists()

    def test_second_lookup_after_expiry_reports_missing(self, store: ArtifactStore, clock: FakeClock, tmp_path: Path):
        artifact_id = store.put("Report", make_payload(tmp_path))
        clock.advance(minutes=31)
        assert store.lookup(artifact_id)[0] is LookupStatus.EXPIRED
        assert store.lookup(artifact_id)[0] is LookupStatus.MISSING

    def test_missing_payload_evicts_entry(self, store: ArtifactStore, tmp_path: Path):
        payload = make_payload(tmp_path)
        artifact_id = store.put("Report", payload)
        payload.unlink()

        assert store.get(artifact_id) is None
        assert artifact_id not in store

    def test_live_until_just_before_expiry(self, store: ArtifactStore, clock: FakeClock, tmp_path: Path):
        artifact_id = store.put("Report", make_payload(tmp_path))
        clock.advance(minutes=29, seconds=59)
        assert store.get(artifact_id) is not None


class TestReap:
    def test_reap_removes_only_expired(self, store: ArtifactStore, clock: FakeClock, tmp_path: Path):
        old_payload = make_payload(tmp_path, "old.docx")
        old_id = store.put("old", old_payload)
        clock.advance(minutes=20)
        new_id = store.put("new", make_payload(tmp_path, "new.docx"))
        clock.advance(minutes=15)

        assert store.reap() == 1
        assert old_id not in store
        assert new_id in store
        assert not old_payload.exists()

    def test_double_reap_is_noop(self, store: ArtifactStore, clock: FakeClock, tmp_path: Path):
        store.put("Report", make_payload(tmp_path))
        clock.advance(hours=1)

        assert store.reap() == 1
        assert store.reap() == 0
        assert len(store) == 0

    def test_reap_then_lookup_is_missing(self, store: ArtifactStore, clock: FakeClock, tmp_path: Path):
        artifact_id = store.put("Report", make_payload(tmp_path))
        clock.advance(hours=1)
        store.reap()
        assert store.lookup(artifact_id) == (LookupStatus.MISSING, None)

    def test_payload_delete_failure_is_swallowed(self, store: ArtifactStore, clock: FakeClock, tmp_path: Path):
        # A directory cannot be unlinked; the entry must still leave the index
        directory = tmp_path / "not-a-file"
        directory.mkdir()
        artifact_id = store.put("Report", directory)
        clock.advance(hours=1)

        assert store.reap() == 1
        assert artifact_id not in store
        assert directory.exists()

    def test_remove_is_idempotent(self, store: ArtifactStore, tmp_path: Path):
        artifact_id = store.put("Report", make_payload(tmp_path))
        assert store.remove(artifact_id) is True
        assert store.remove(artifact_id) is False

    def test_close_all_deletes_payloads(self, store: ArtifactStore, tmp_path: Path):
        payloads = [make_payload(tmp_path, f"{i}.docx") for i in range(3)]
        for payload in payloads:
            store.put("Doc", payload)

        assert store.close_all() == 3
        assert len(store) == 0
        assert not any(p.exists() for p in payloads)

    def test_metrics(self, store: ArtifactStore, clock: FakeClock, tmp_path: Path):
        store.put("a", make_payload(tmp_path, "a.docx"))
        store.put("b", make_payload(tmp_path, "b.docx"))
        clock.advance(hours=1)
        store.reap()
        assert store.get_metrics() == {"active_count": 0, "total_created": 2, "total_evicted": 2}


class TestConcurrency:
    def test_concurrent_put_get_reap(self, tmp_path: Path):
        store = ArtifactStore(ttl=timedelta(0))
        errors = []

        def writer(worker: int) -> None:
            try:
                for i in range(25):
                    artifact_id = store.put("Doc", make_payload(tmp_path, f"{worker}-{i}.docx"))
                    store.get(artifact_id)
            except Exception as e:
                errors.append(e)

        def reaper() -> None:
            try:
                for _ in range(50):
                    store.reap()
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
        threads += [threading.Thread(target=reaper) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        store.reap()
        assert errors == []
        assert len(store) == 0
        assert store.total_created == 100
        assert store.total_evicted == 100


class TestArtifactReaper:
    def test_background_reaper_evicts_expired(self, tmp_path: Path):
        store = ArtifactStore(ttl=timedelta(0))
        store.put("Doc", make_payload(tmp_path))
        reaper = ArtifactReaper(store, interval_seconds=0.01)

        reaper.start()
        try:
            deadline = time.monotonic() + 5
            while len(store) and time.monotonic() < deadline:
                time.sleep(0.01)
        finally:
            reaper.stop()

        assert len(store) == 0
        assert reaper.running is False

    def test_start_and_stop_are_idempotent(self, store: ArtifactStore):
        reaper = ArtifactReaper(store, interval_seconds=60)
        reaper.start()
        reaper.start()
        assert reaper.running
        reaper.stop()
        reaper.stop()
        assert not reaper.running
