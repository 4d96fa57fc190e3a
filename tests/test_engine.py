"""Tests for SyncEngine orchestration."""

import hashlib
import json

import pytest
import requests

from catalog_blob_sync.catalog import CatalogReader
from catalog_blob_sync.models import CatalogEntry
from catalog_blob_sync.sync.engine import SyncEngine

ARCHIVE_URL = "https://x/a.pbw"
ICON_URL = "https://x/icon48.png"
SCREENSHOT_URL = "https://x/shot.png"


def make_entry(entry_id="E1", archive=ARCHIVE_URL, **fields):
    data = {"id": entry_id, "latest_release": {"pbw_file": archive}}
    data.update(fields)
    return CatalogEntry.model_validate(data)


@pytest.fixture
def engine(tmp_path, fake_session):
    with SyncEngine(output_dir=tmp_path / "blobs", session=fake_session) as engine:
        yield engine


def stored_path(engine, record):
    return engine.storage.get_blob_path(record.entry_id, record.stored_file_name)


class TestSyncEntry:
    """Tests for single-entry synchronization."""

    def test_first_run_fetches_archive(self, engine, fake_session):
        fake_session.add(ARCHIVE_URL, body=b"pbw-bytes")

        stats = engine.sync_entry(make_entry())

        assert fake_session.urls_called() == [ARCHIVE_URL]
        assert stats["blobs_found"] == 1
        assert stats["blobs_fetched"] == 1
        records = engine.index_store.load("E1")
        assert len(records) == 1
        assert records[0].stored_file_name
        assert records[0].content_hash == hashlib.sha1(b"pbw-bytes").hexdigest()
        assert stored_path(engine, records[0]).read_bytes() == b"pbw-bytes"

    def test_rerun_is_idempotent_without_fetches(self, engine, fake_session):
        fake_session.add(ARCHIVE_URL, body=b"pbw-bytes")
        fake_session.add(ICON_URL, body=b"icon")
        entry = make_entry(icon_image={"48x48": ICON_URL})

        engine.sync_entry(entry)
        first_index = engine.index_store.index_path("E1").read_text()
        calls_after_first = len(fake_session.calls)

        stats = engine.sync_entry(entry)

        assert len(fake_session.calls) == calls_after_first
        assert stats["blobs_valid"] == 2
        assert stats["blobs_fetched"] == 0
        assert engine.index_store.index_path("E1").read_text() == first_index

    def test_deleted_file_is_refetched(self, engine, fake_session):
        fake_session.add(ARCHIVE_URL, body=b"pbw-bytes")
        fake_session.add(ICON_URL, body=b"icon")
        entry = make_entry(icon_image={"48x48": ICON_URL})
        engine.sync_entry(entry)
        archive_before, icon_before = engine.index_store.load("E1")
        stored_path(engine, archive_before).unlink()
        fake_session.calls.clear()

        engine.sync_entry(entry)

        assert fake_session.urls_called() == [ARCHIVE_URL]
        archive_after, icon_after = engine.index_store.load("E1")
        assert archive_after.stored_file_name != archive_before.stored_file_name
        assert archive_after.content_hash == archive_before.content_hash
        assert icon_after == icon_before

    def test_truncated_file_is_refetched(self, engine, fake_session):
        fake_session.add(ARCHIVE_URL, body=b"pbw-bytes")
        entry = make_entry()
        engine.sync_entry(entry)
        (before,) = engine.index_store.load("E1")
        stored_path(engine, before).write_bytes(b"pbw")
        fake_session.calls.clear()

        stats = engine.sync_entry(entry)

        assert fake_session.urls_called() == [ARCHIVE_URL]
        assert stats["blobs_fetched"] == 1
        (after,) = engine.index_store.load("E1")
        assert after.stored_file_name != before.stored_file_name
        assert stored_path(engine, after).read_bytes() == b"pbw-bytes"

    def test_failed_fetch_is_recorded_and_others_continue(self, engine, fake_session):
        fake_session.add(ARCHIVE_URL, error=requests.ConnectionError("reset"))
        fake_session.add(ICON_URL, body=b"icon")
        entry = make_entry(icon_image={"48x48": ICON_URL})

        stats = engine.sync_entry(entry)

        assert stats["blobs_failed"] == 1
        assert stats["blobs_fetched"] == 1
        archive, icon = engine.index_store.load("E1")
        assert (archive.type, archive.url) == ("archive", ARCHIVE_URL)
        assert not archive.is_complete
        assert icon.is_complete

    def test_failed_reference_is_retried_next_run(self, engine, fake_session):
        fake_session.add(ARCHIVE_URL, status_code=503)
        fake_session.add(ARCHIVE_URL, body=b"pbw-bytes")
        entry = make_entry()

        engine.sync_entry(entry)
        stats = engine.sync_entry(entry)

        assert fake_session.urls_called() == [ARCHIVE_URL, ARCHIVE_URL]
        assert stats["blobs_fetched"] == 1
        (record,) = engine.index_store.load("E1")
        assert record.is_complete

    def test_stale_records_are_dropped(self, engine, fake_session):
        fake_session.add(ARCHIVE_URL, body=b"v1")
        fake_session.add("https://x/b.pbw", body=b"v2")
        engine.sync_entry(make_entry())
        (old,) = engine.index_store.load("E1")

        engine.sync_entry(make_entry(archive="https://x/b.pbw"))

        (record,) = engine.index_store.load("E1")
        assert record.url == "https://x/b.pbw"
        # Orphaned files stay on disk
        assert stored_path(engine, old).exists()

    def test_duplicate_urls_fetched_once(self, engine, fake_session):
        fake_session.add(ICON_URL, body=b"icon")
        entry = make_entry(
            archive=None,
            list_image={"144x144": ICON_URL},
            icon_image={"144x144": ICON_URL},
        )

        engine.sync_entry(entry)

        assert fake_session.urls_called() == [ICON_URL]
        (record,) = engine.index_store.load("E1")
        assert record.type == "list_image-144x144"

    def test_entry_without_references_writes_empty_index(self, engine, fake_session):
        engine.sync_entry(make_entry(archive=""))
        assert fake_session.calls == []
        assert engine.index_store.load("E1") == []
        assert engine.index_store.index_path("E1").exists()

    def test_records_keep_enumeration_order(self, engine, fake_session):
        for url in (ARCHIVE_URL, SCREENSHOT_URL, ICON_URL):
            fake_session.add(url, body=url.encode())
        entry = make_entry(
            icon_image={"48x48": ICON_URL},
            screenshot_images=[{"144x168": SCREENSHOT_URL}],
        )
        engine.sync_entry(entry)
        # Re-fetch only the screenshot; it must stay in the middle
        records = engine.index_store.load("E1")
        stored_path(engine, records[1]).unlink()

        engine.sync_entry(entry)

        assert [r.type for r in engine.index_store.load("E1")] == [
            "archive",
            "screenshot_images-144x168",
            "icon_image-48x48",
        ]


class TestSync:
    """Tests for multi-entry runs."""

    def test_example_entry(self, engine, fake_session):
        fake_session.add(ARCHIVE_URL, body=b"archive")

        stats = engine.sync([make_entry("E1")])
        assert stats["entries_processed"] == 1
        assert stats["blobs_fetched"] == 1
        (record,) = engine.index_store.load("E1")
        assert record.content_hash == hashlib.sha1(b"archive").hexdigest()

        fake_session.calls.clear()
        stats = engine.sync([make_entry("E1")])
        assert fake_session.calls == []
        assert stats["blobs_valid"] == 1

    def test_corrupt_index_isolated_to_entry(self, engine, fake_session):
        for entry_id in ("E1", "E2", "E3"):
            fake_session.add(f"https://x/{entry_id}.pbw", body=entry_id.encode())
        corrupt_path = engine.index_store.index_path("E2")
        corrupt_path.parent.mkdir(parents=True)
        corrupt_path.write_text("{not json")
        entries = [make_entry(e, archive=f"https://x/{e}.pbw") for e in ("E1", "E2", "E3")]

        stats = engine.sync(entries)

        assert stats["entries_found"] == 3
        assert stats["entries_processed"] == 2
        assert stats["entries_failed"] == 1
        assert stats["errors"][0]["entry_id"] == "E2"
        assert corrupt_path.read_text() == "{not json"
        assert "https://x/E2.pbw" not in fake_session.urls_called()
        assert len(engine.index_store.load("E1")) == 1
        assert len(engine.index_store.load("E3")) == 1

    def test_invalid_entry_id_isolated(self, engine, fake_session, tmp_path):
        fake_session.add(ARCHIVE_URL, body=b"archive")
        entries = [make_entry("../escape"), make_entry("E1")]

        stats = engine.sync(entries)

        assert stats["entries_failed"] == 1
        assert stats["entries_processed"] == 1
        assert not (tmp_path / "escape").exists()
        assert len(engine.index_store.load("E1")) == 1

    def test_unexpected_error_leaves_index_untouched(self, engine, fake_session, monkeypatch):
        fake_session.add(ARCHIVE_URL, body=b"archive")
        engine.sync([make_entry()])
        before = engine.index_store.index_path("E1").read_text()

        def boom(entry_id, reference):
            raise RuntimeError("unexpected")

        monkeypatch.setattr(engine.validator, "is_valid", lambda entry_id, record: False)
        monkeypatch.setattr(engine.fetcher, "fetch", boom)
        stats = engine.sync([make_entry()])

        assert stats["entries_failed"] == 1
        assert engine.index_store.index_path("E1").read_text() == before

    def test_fetch_failures_do_not_stop_other_entries(self, engine, fake_session):
        fake_session.add("https://x/E1.pbw", error=requests.Timeout("slow"))
        fake_session.add("https://x/E2.pbw", body=b"ok")
        entries = [make_entry(e, archive=f"https://x/{e}.pbw") for e in ("E1", "E2")]

        stats = engine.sync(entries)

        assert stats["entries_processed"] == 2
        assert stats["blobs_failed"] == 1
        assert stats["blobs_fetched"] == 1
        assert engine.index_store.load("E2")[0].is_complete

    def test_truncated_metadata_page_does_not_stop_run(self, engine, fake_session, tmp_path):
        """A broken page file only loses its own entries."""
        meta = tmp_path / "metadata"
        (meta / "watchfaces").mkdir(parents=True)
        (meta / "watchfaces" / "0000.json").write_text('{"data": [{"id": "E0"')
        (meta / "apps").mkdir()
        (meta / "apps" / "0000.json").write_text(
            json.dumps({"data": [{"id": "E1", "latest_release": {"pbw_file": ARCHIVE_URL}}]})
        )
        fake_session.add(ARCHIVE_URL, body=b"pbw-bytes")

        stats = engine.sync(CatalogReader(meta).iter_entries())

        assert stats["entries_processed"] == 1
        assert stats["blobs_fetched"] == 1
        assert engine.index_store.load("E1")[0].is_complete

    def test_max_entries(self, engine, fake_session):
        for entry_id in ("E1", "E2", "E3"):
            fake_session.add(f"https://x/{entry_id}.pbw", body=b"x")
        entries = (make_entry(e, archive=f"https://x/{e}.pbw") for e in ("E1", "E2", "E3"))

        stats = engine.sync(entries, max_entries=2)

        assert stats["entries_found"] == 2
        assert fake_session.urls_called() == ["https://x/E1.pbw", "https://x/E2.pbw"]
        assert not engine.index_store.index_path("E3").exists()

    def test_progress_callback(self, engine, fake_session):
        seen = []
        engine.sync(
            [make_entry("E1", archive=""), make_entry("E2", archive="")],
            progress_callback=lambda current, entry_id: seen.append((current, entry_id)),
        )
        assert seen == [(1, "E1"), (2, "E2")]

    def test_index_file_is_json_list(self, engine, fake_session):
        fake_session.add(ARCHIVE_URL, body=b"archive", headers={"ETag": '"v1"'})
        engine.sync([make_entry()])
        data = json.loads(engine.index_store.index_path("E1").read_text())
        assert data[0]["etag"] == "v1"
        assert data[0]["entryId"] == "E1"


class TestEntryStatus:
    """Tests for SyncEngine.get_entry_status."""

    def test_status_counts(self, engine, fake_session):
        fake_session.add(ARCHIVE_URL, body=b"archive")
        fake_session.add(ICON_URL, status_code=500)
        fake_session.add(SCREENSHOT_URL, body=b"shot")
        entry = make_entry(
            icon_image={"48x48": ICON_URL},
            screenshot_images=[{"144x168": SCREENSHOT_URL}],
        )
        engine.sync_entry(entry)
        shot = engine.index_store.load("E1")[1]
        stored_path(engine, shot).unlink()

        status = engine.get_entry_status("E1")

        assert status["record_count"] == 3
        assert status["complete_count"] == 2
        assert status["valid_count"] == 1
        assert status["invalid_count"] == 1
        assert status["failed_count"] == 1

    def test_status_of_unknown_entry(self, engine):
        status = engine.get_entry_status("never-synced")
        assert status["record_count"] == 0


class TestSessionOwnership:
    """Tests for session lifecycle."""

    def test_borrowed_session_not_closed(self, tmp_path, fake_session):
        with SyncEngine(output_dir=tmp_path, session=fake_session):
            pass
        assert fake_session.closed is False
