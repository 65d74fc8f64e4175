"""SQLite activity journal."""

from __future__ import annotations

from cascade_relay.storage.sqlite import SQLiteActivityJournal


async def test_log_and_read_back(journal):
    await journal.log_activity("signal_submitted", "first", tag="000001",
                               block_number=1000, tx_hash="0x" + "ab" * 32)
    await journal.log_activity("claim_success", "second", tag="000001", block_number=1000)

    records = await journal.get_recent_activity(10)

    assert [r.message for r in records] == ["second", "first"]
    assert records[1].event_type == "signal_submitted"
    assert records[1].tag == "000001"
    assert records[1].block_number == 1000
    assert records[1].tx_hash == "0x" + "ab" * 32
    assert records[0].tx_hash is None


async def test_limit(journal):
    for n in range(5):
        await journal.log_activity("decode_failure", f"bad {n}")
    records = await journal.get_recent_activity(2)
    assert [r.message for r in records] == ["bad 4", "bad 3"]


async def test_count_by_type(journal):
    await journal.log_activity("signal_submitted", "a")
    await journal.log_activity("signal_submitted", "b")
    await journal.log_activity("signal_skipped", "c")
    assert await journal.count_by_type() == {"signal_submitted": 2, "signal_skipped": 1}


async def test_file_database_creates_parent_dir(tmp_path):
    path = tmp_path / "nested" / "dir" / "activity.db"
    journal = SQLiteActivityJournal(str(path))
    await journal.initialize()
    try:
        await journal.log_activity("daemon_started", "Daemon started")
    finally:
        await journal.close()

    assert path.exists()

    reopened = SQLiteActivityJournal(str(path))
    await reopened.initialize()
    try:
        (record,) = await reopened.get_recent_activity(5)
        assert record.event_type == "daemon_started"
    finally:
        await reopened.close()
