from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from resource_monitor.schemas import NewSample
from resource_monitor.store import SampleStore, utcnow

PATH = "/srv/data"
BASE_TIME = datetime(2025, 10, 17, 2, 0, 0)


def new_sample(checked_at: datetime, path: str = PATH, **values: int) -> NewSample:
    fields = {
        "file_count": 100,
        "disk_usage_mb": 200,
        "available_inodes": 300,
        "available_space_mb": 400,
    }
    fields.update(values)
    return NewSample(monitored_path=path, checked_at=checked_at, **fields)


def test_insert_assigns_id(store: SampleStore) -> None:
    first = store.insert(new_sample(BASE_TIME))
    second = store.insert(new_sample(BASE_TIME + timedelta(hours=1)))

    assert first.id is not None
    assert second.id > first.id


def test_insert_then_range_round_trip(store: SampleStore) -> None:
    inserted = store.insert(
        new_sample(BASE_TIME, file_count=1, disk_usage_mb=2, available_inodes=3, available_space_mb=4)
    )

    found = store.range(PATH, BASE_TIME - timedelta(minutes=1), BASE_TIME + timedelta(minutes=1))

    assert found == [inserted]
    assert found[0].model_dump() == {
        "id": inserted.id,
        "monitored_path": PATH,
        "file_count": 1,
        "disk_usage_mb": 2,
        "available_inodes": 3,
        "available_space_mb": 4,
        "checked_at": BASE_TIME,
    }


def test_range_is_sorted_and_bounded(store: SampleStore) -> None:
    for hours in (5, 1, 3, 10):
        store.insert(new_sample(BASE_TIME + timedelta(hours=hours), file_count=hours))
    store.insert(new_sample(BASE_TIME + timedelta(hours=2), path="/other"))

    found = store.range(PATH, BASE_TIME, BASE_TIME + timedelta(hours=5))

    assert [s.file_count for s in found] == [1, 3, 5]
    assert all(s.monitored_path == PATH for s in found)


def test_range_accepts_aware_datetimes(store: SampleStore) -> None:
    store.insert(new_sample(BASE_TIME))
    start = (BASE_TIME - timedelta(hours=1)).replace(tzinfo=timezone.utc)
    end = (BASE_TIME + timedelta(hours=1)).replace(tzinfo=timezone.utc)

    assert len(store.range(PATH, start, end)) == 1


def test_latest(store: SampleStore) -> None:
    assert store.latest(PATH) is None

    for hours in (1, 2, 3):
        store.insert(new_sample(BASE_TIME + timedelta(hours=hours), file_count=hours))

    latest = store.latest(PATH)
    assert latest is not None
    assert latest.file_count == 3
    assert latest.checked_at == BASE_TIME + timedelta(hours=3)


def test_latest_ignores_other_paths(store: SampleStore) -> None:
    store.insert(new_sample(BASE_TIME, file_count=1))
    store.insert(new_sample(BASE_TIME + timedelta(hours=1), path="/other", file_count=2))

    assert store.latest(PATH).file_count == 1


def test_stats(store: SampleStore) -> None:
    for hours, count in ((1, 10), (2, 30), (3, 20)):
        store.insert(new_sample(BASE_TIME + timedelta(hours=hours), file_count=count))

    stats = store.stats(PATH, BASE_TIME, BASE_TIME + timedelta(days=1))

    assert stats is not None
    assert stats.file_count.current == 20
    assert stats.file_count.max == 30
    assert stats.file_count.min == 10
    assert stats.file_count.avg == 20.0
    assert stats.available_space_mb.avg == 400.0


def test_stats_empty_window(store: SampleStore) -> None:
    store.insert(new_sample(BASE_TIME))

    assert store.stats(PATH, BASE_TIME + timedelta(days=1), BASE_TIME + timedelta(days=2)) is None


def test_samples_are_immutable(store: SampleStore) -> None:
    sample = store.insert(new_sample(utcnow()))

    with pytest.raises(ValidationError):
        sample.file_count = 0
