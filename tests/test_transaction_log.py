from datetime import datetime

import pytest

from vending_machine import LogStorageError, MachineState, TransactionLog, TransactionLogEntry


def _entry(sequence: int) -> TransactionLogEntry:
    return TransactionLogEntry(
        sequence=sequence,
        timestamp=datetime(2024, 1, 1),
        command="insert_coin",
        resulting_state=MachineState.COIN_INSERTED,
        detail=f"entry {sequence}",
    )


def test_query_recent_returns_newest_last():
    log = TransactionLog()
    for i in range(1, 6):
        log.append(_entry(i))

    recent = log.query_recent(3)

    assert [e.sequence for e in recent] == [3, 4, 5]
    assert len(log) == 5


def test_query_recent_more_than_available():
    log = TransactionLog()
    log.append(_entry(1))
    assert [e.sequence for e in log.query_recent(10)] == [1]


def test_query_recent_non_positive():
    log = TransactionLog()
    log.append(_entry(1))
    assert log.query_recent(0) == []
    assert log.query_recent(-2) == []


def test_full_log_raises_storage_error():
    log = TransactionLog(max_entries=1)
    log.append(_entry(1))
    with pytest.raises(LogStorageError):
        log.append(_entry(2))
    assert len(log) == 1


def test_entries_are_immutable():
    entry = _entry(1)
    with pytest.raises(AttributeError):
        entry.detail = "changed"
