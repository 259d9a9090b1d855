from __future__ import annotations

from datetime import datetime, timezone

import pytest

from seatroster.models.import_summary import BatchStatsAccumulator, ImportMode, ImportSummary

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _summary(**overrides) -> ImportSummary:
    values = dict(
        mode=ImportMode.IMPORT, total=10, imported=10, batches=1, start_time=NOW, end_time=NOW,
        elapsed_seconds=0.0, throughput_rows_per_sec=0.0,
    )
    values.update(overrides)
    return ImportSummary(**values)


def test_summary_flags():
    assert _summary().succeeded
    assert not _summary().partial
    assert _summary(imported=5, failed_batch=2).partial
    assert not _summary(imported=0, failed_batch=1).partial


def test_summary_is_frozen():
    with pytest.raises(AttributeError):
        _summary().imported = 3  # type: ignore[misc]


class TestBatchStatsAccumulator:

    def test_empty_accumulator(self):
        assert BatchStatsAccumulator().get_stats() == (0, 0.0, 0.0)

    def test_single_batch(self):
        acc = BatchStatsAccumulator()
        acc.add_batch_time(2.5)
        assert acc.get_stats() == (1, 2.5, 2.5)

    def test_multiple_batches(self):
        acc = BatchStatsAccumulator()
        for t in [1.0, 1.5, 2.0, 2.5, 3.0, 3.5, 4.0, 4.5, 5.0, 10.0]:
            acc.add_batch_time(t)
        total, avg, p95 = acc.get_stats()
        assert total == 10
        assert avg == pytest.approx(3.7)
        assert 5.0 <= p95 <= 10.0
