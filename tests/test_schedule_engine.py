"""Tests for the recurring schedule engine."""
import pytest
from dataclasses import replace
from sprinksync.scheduler.schedule_engine import FAILED, SKIPPED, STARTED, ScheduleEngine, job_id_for


@pytest.fixture
def weekday_schedule(store):
    """Zone 3 at 06:00 on Monday, Wednesday and Friday."""
    return store.create_schedule('06:00', 10, [1, 3, 5], zone_id=3)


class TestArming:
    """Test keeping cron jobs in line with stored schedules."""

    def test_load_arms_enabled_schedules(self, engine, store, weekday_schedule):
        disabled = store.create_schedule('07:00', 5, [0], zone_id=1, enabled=False)

        assert engine.load() == 1
        assert engine.is_armed(weekday_schedule.id)
        assert not engine.is_armed(disabled.id)
        assert engine.active_count() == 1

    def test_cron_trigger_fields(self, engine, weekday_schedule):
        engine.arm(weekday_schedule)

        job = engine.scheduler.get_job(job_id_for(weekday_schedule.id))
        trigger = str(job.trigger)
        assert "day_of_week='mon,wed,fri'" in trigger
        assert "hour='6'" in trigger
        assert "minute='0'" in trigger
        assert job.args[0].id == weekday_schedule.id

    def test_empty_days_not_armed(self, engine, store):
        schedule = store.create_schedule('06:00', 10, [], zone_id=1)

        assert engine.arm(schedule) is False
        assert not engine.is_armed(schedule.id)
        assert engine.active_count() == 0

    def test_arm_twice_keeps_one_job(self, engine, weekday_schedule):
        engine.arm(weekday_schedule)
        engine.arm(weekday_schedule)

        assert engine.active_count() == 1
        assert len(engine.scheduler.get_jobs()) == 1

    def test_disarm(self, engine, weekday_schedule):
        engine.arm(weekday_schedule)

        assert engine.disarm(weekday_schedule.id) is True
        assert engine.scheduler.get_job(job_id_for(weekday_schedule.id)) is None
        assert engine.disarm(weekday_schedule.id) is False

    def test_rearm_picks_up_edits(self, engine, store, weekday_schedule):
        engine.arm(weekday_schedule)
        store.update_schedule(weekday_schedule.id, start_time='19:30', days=[0, 6])

        assert engine.rearm(weekday_schedule.id) is True

        trigger = str(engine.scheduler.get_job(job_id_for(weekday_schedule.id)).trigger)
        assert "day_of_week='sun,sat'" in trigger
        assert "hour='19'" in trigger
        assert "minute='30'" in trigger

    def test_rearm_disabled_schedule(self, engine, store, weekday_schedule):
        engine.arm(weekday_schedule)
        store.update_schedule(weekday_schedule.id, enabled=False)

        assert engine.rearm(weekday_schedule.id) is False
        assert not engine.is_armed(weekday_schedule.id)

    def test_rearm_deleted_schedule(self, engine, store, weekday_schedule):
        engine.arm(weekday_schedule)
        store.delete_schedule(weekday_schedule.id)

        assert engine.rearm(weekday_schedule.id) is False
        assert engine.active_count() == 0

    def test_next_fire_time(self, engine, weekday_schedule):
        engine.arm(weekday_schedule)
        next_fire = engine.next_fire_time(weekday_schedule.id)

        assert next_fire is not None
        assert (next_fire.hour, next_fire.minute) == (6, 0)
        assert next_fire.isoweekday() in (1, 3, 5)

    def test_next_run_matches_cron_job(self, engine, weekday_schedule):
        engine.arm(weekday_schedule)

        assert engine.next_run(weekday_schedule) == engine.next_fire_time(weekday_schedule.id)

    def test_next_run_preview_uses_schedule_timezone(self, engine, weekday_schedule):
        next_run = engine.next_run(weekday_schedule)

        assert next_run.utcoffset() is not None
        assert (next_run.hour, next_run.minute) == (6, 0)
        assert next_run.isoweekday() in (1, 3, 5)

    def test_next_run_disabled(self, engine, weekday_schedule):
        engine.arm(weekday_schedule)
        assert engine.next_run(replace(weekday_schedule, enabled=False)) is None

    def test_shutdown_disarms(self, engine, weekday_schedule):
        engine.arm(weekday_schedule)
        engine.shutdown()

        assert engine.active_count() == 0
        assert not engine.scheduler.running


class TestExecute:
    """Test what happens when a schedule fires."""

    def test_zone_schedule_starts_zone(self, engine, coordinator, history, weekday_schedule):
        assert engine.execute(weekday_schedule) == STARTED

        assert coordinator.is_running(3)
        record = history.list_records(zone_id=3)[0]
        assert record['trigger'] == 'scheduled'
        assert record['schedule_id'] == weekday_schedule.id

    def test_skips_zone_already_running(self, engine, coordinator, history, fake_clock, fake_timers,
                                        weekday_schedule):
        # Wednesday 05:58: zone 3 started by hand for 10 minutes
        coordinator.start(3, 10)
        manual_timer = fake_timers.last
        fake_clock.advance(minutes=2)

        # 06:00: the Mon/Wed/Fri schedule fires
        assert engine.execute(weekday_schedule) == SKIPPED

        assert coordinator.registry.get(3).trigger.value == 'manual'
        assert not manual_timer.cancelled
        assert len(history.list_records(zone_id=3)) == 1

    def test_group_schedule_runs_group(self, engine, coordinator, store, history):
        group = store.create_group('Back Yard', [2, 4], default_duration=15)
        schedule = store.create_schedule('05:00', 7, [0, 1, 2, 3, 4, 5, 6], group_id=group.id)

        assert engine.execute(schedule) == STARTED

        assert coordinator.is_running(2)
        assert [q['zone_id'] for q in coordinator.queued_zones()] == [4]
        assert coordinator.registry.get(2).duration == 7
        assert history.list_records(zone_id=2)[0]['trigger'] == 'scheduled'

    def test_group_schedule_skips_when_member_running(self, engine, coordinator, store):
        group = store.create_group('Back Yard', [2, 4])
        schedule = store.create_schedule('05:00', 7, [1], group_id=group.id)
        coordinator.start(4, 10)

        assert engine.execute(schedule) == SKIPPED
        assert not coordinator.is_running(2)

    def test_group_schedule_skips_when_member_queued(self, engine, coordinator, sequencer, store):
        front = store.create_group('Front Yard', [1, 2])
        back = store.create_group('Back Yard', [4, 2])
        schedule = store.create_schedule('05:00', 7, [1], group_id=back.id)
        sequencer.run_group(front.id)

        assert engine.execute(schedule) == SKIPPED
        assert not coordinator.is_running(4)
        assert [q['group_id'] for q in coordinator.queued_zones()] == [front.id]

    def test_failure_is_contained(self, engine, coordinator, weekday_schedule):
        coordinator.start(1, 10)
        coordinator.start(2, 10)

        assert engine.execute(weekday_schedule) == FAILED
        assert not coordinator.is_running(3)

    def test_skip_oracle(self, coordinator, sequencer, store, scheduler, weekday_schedule):
        engine = ScheduleEngine(
            coordinator, sequencer, store, scheduler=scheduler,
            skip_oracle=lambda schedule: 'rain delay active'
        )

        assert engine.execute(weekday_schedule) == SKIPPED
        assert not coordinator.is_running(3)

    def test_oracle_errors_do_not_escape(self, coordinator, sequencer, store, scheduler, weekday_schedule):
        def broken_oracle(schedule):
            raise RuntimeError('weather service down')

        engine = ScheduleEngine(coordinator, sequencer, store, scheduler=scheduler, skip_oracle=broken_oracle)

        assert engine.execute(weekday_schedule) == FAILED
