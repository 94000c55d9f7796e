"""Tests for the in-memory zone registry."""
import pytest
from datetime import datetime, timedelta
from sprinksync.controllers.zone_registry import QueuedZoneEntry, RunningZoneEntry, ZoneRegistry
from sprinksync.models.history import TriggerType
from sprinksync.safety.errors import AlreadyRunning

T0 = datetime(2024, 6, 5, 6, 0)


def make_entry(zone_id, duration=10, start=T0):
    return RunningZoneEntry(
        zone_id=zone_id,
        zone_name=f'Zone {zone_id}',
        start_time=start,
        duration=duration,
        trigger=TriggerType.MANUAL,
        history_id=zone_id * 100
    )


class TestZoneRegistry:

    def test_insert_and_lookup(self):
        registry = ZoneRegistry()
        registry.insert(make_entry(1))

        assert registry.is_running(1)
        assert registry.running_count() == 1
        assert registry.get(1).zone_name == 'Zone 1'
        assert registry.running_zone_ids() == [1]

    def test_one_entry_per_zone(self):
        registry = ZoneRegistry()
        registry.insert(make_entry(1))
        with pytest.raises(AlreadyRunning):
            registry.insert(make_entry(1))
        assert registry.running_count() == 1

    def test_remove(self):
        registry = ZoneRegistry()
        registry.insert(make_entry(1))
        assert registry.remove(1).zone_id == 1
        assert registry.remove(1) is None
        assert not registry.is_running(1)

    def test_snapshot_derives_remaining_time(self):
        registry = ZoneRegistry()
        registry.insert(make_entry(3, duration=10))

        snapshot = registry.snapshot(T0 + timedelta(minutes=4, seconds=30))

        assert snapshot[0]['elapsed_minutes'] == 4.5
        assert snapshot[0]['remaining_minutes'] == 5.5
        assert snapshot[0]['will_stop_at'] == (T0 + timedelta(minutes=10)).isoformat()

    def test_remaining_never_negative(self):
        entry = make_entry(1, duration=1)
        assert entry.remaining_minutes(T0 + timedelta(minutes=5)) == 0.0

    def test_queue(self):
        registry = ZoneRegistry()
        entry = QueuedZoneEntry(
            zone_id=2, group_id=1, group_name='Front', position=2,
            total_in_group=3, scheduled_start=T0
        )
        registry.queue(entry)

        assert registry.is_queued(2)
        assert registry.get_queued(2) is entry
        assert registry.queued_entries() == [entry]
        assert not registry.is_running(2)

        assert registry.dequeue(2) is entry
        assert registry.dequeue(2) is None

    def test_clear(self):
        registry = ZoneRegistry()
        registry.insert(make_entry(1))
        registry.queue(QueuedZoneEntry(2, 1, 'Front', 2, 2, T0))
        registry.clear()
        assert registry.running_count() == 0
        assert registry.queued_entries() == []
