"""
Unit tests for announcement scheduling and playback.
"""

import threading
import time

import pytest

from pacer.announcements import AnnouncementQueue, AnnouncementScheduler
from pacer.config import CONFIG
from pacer.deviation import DeviationEvent
from pacer.flags import AnnouncementFlags, FlagStoreError, MemoryFlagStore, SQLiteFlagStore
from pacer.models import (
    AnnouncementCategory,
    AnnouncementEvent,
    SessionSnapshot,
    UnitSystem,
    Verbosity,
)

MILE = 1609.34


class FailingStore:

    def get(self, key):
        raise FlagStoreError("unavailable")

    def set(self, key, value):
        raise FlagStoreError("unavailable")

    def clear_prefix(self, prefix):
        raise FlagStoreError("unavailable")


def make_scheduler(logger, units=UnitSystem.METRIC, store=None, **kwargs):
    flags = AnnouncementFlags(store or MemoryFlagStore(), logger)
    return AnnouncementScheduler(flags, units=units, logger=logger, **kwargs)


def run_ticks(scheduler, distances, start_elapsed=480, step=10):
    """Tick once per distance, returning the events that fired."""
    events = []
    for i, distance in enumerate(distances):
        snapshot = SessionSnapshot(elapsed=start_elapsed + i * step, distance=distance)
        event = scheduler.tick(snapshot)
        if event:
            events.append(event)
    return events


# Approaching and crossing one mile, staying clear of the 10 minute mark
CROSS_ONE_MILE = [1500, 1600, 1615, 1625, 1640, 1700]


class TestMilestones:

    @pytest.mark.unit
    def test_one_mile_fires_once(self, quiet_logger):
        scheduler = make_scheduler(quiet_logger, UnitSystem.IMPERIAL)
        events = run_ticks(scheduler, CROSS_ONE_MILE)
        assert len(events) == 1
        assert events[0].category is AnnouncementCategory.MILESTONE
        assert events[0].text.startswith("1 mile completed.")

    @pytest.mark.unit
    def test_recrossing_does_not_repeat(self, quiet_logger):
        scheduler = make_scheduler(quiet_logger, UnitSystem.IMPERIAL)
        run_ticks(scheduler, CROSS_ONE_MILE)
        assert run_ticks(scheduler, CROSS_ONE_MILE) == []

    @pytest.mark.unit
    def test_reset_allows_milestone_again(self, quiet_logger):
        scheduler = make_scheduler(quiet_logger, UnitSystem.IMPERIAL)
        run_ticks(scheduler, CROSS_ONE_MILE)
        scheduler.reset_announcement_tracking()
        assert len(run_ticks(scheduler, CROSS_ONE_MILE)) == 1

    @pytest.mark.unit
    def test_plural_kilometers(self, quiet_logger):
        scheduler = make_scheduler(quiet_logger)
        event = scheduler.tick(SessionSnapshot(elapsed=700, distance=2010))
        assert event.text.startswith("2 kilometers completed.")
        assert "per kilometer" in event.text

    @pytest.mark.unit
    def test_nothing_during_warmup(self, quiet_logger):
        scheduler = make_scheduler(quiet_logger)
        assert scheduler.tick(SessionSnapshot(elapsed=30, distance=1005)) is None

    @pytest.mark.unit
    def test_nothing_when_inactive_or_paused(self, quiet_logger):
        scheduler = make_scheduler(quiet_logger)
        snapshot = SessionSnapshot(elapsed=400, distance=1005)
        assert scheduler.tick(snapshot, active=False) is None
        assert scheduler.tick(snapshot, paused=True) is None

    @pytest.mark.unit
    def test_flags_survive_restart(self, quiet_logger, tmp_path):
        db_path = str(tmp_path / "flags.db")
        store = SQLiteFlagStore(db_path)
        first = make_scheduler(quiet_logger, UnitSystem.IMPERIAL, store=store)
        assert len(run_ticks(first, CROSS_ONE_MILE)) == 1
        store.close()

        store = SQLiteFlagStore(db_path)
        resumed = make_scheduler(quiet_logger, UnitSystem.IMPERIAL, store=store)
        assert run_ticks(resumed, CROSS_ONE_MILE) == []
        store.close()

    @pytest.mark.unit
    def test_store_failure_fails_open(self, quiet_logger):
        scheduler = make_scheduler(quiet_logger, UnitSystem.IMPERIAL, store=FailingStore())
        events = run_ticks(scheduler, [1615])
        assert len(events) == 1
        assert events[0].category is AnnouncementCategory.MILESTONE


class TestTimeUpdates:

    @pytest.mark.unit
    def test_ten_minutes(self, quiet_logger):
        scheduler = make_scheduler(quiet_logger)
        event = scheduler.tick(SessionSnapshot(elapsed=600, distance=500))
        assert event.category is AnnouncementCategory.TIME_UPDATE
        assert event.text == "10 minutes. Distance 500 m."
        assert scheduler.tick(SessionSnapshot(elapsed=610, distance=520)) is None

    @pytest.mark.unit
    def test_not_on_other_minutes(self, quiet_logger):
        scheduler = make_scheduler(quiet_logger)
        assert scheduler.tick(SessionSnapshot(elapsed=300, distance=500)) is None
        assert scheduler.tick(SessionSnapshot(elapsed=660, distance=500)) is None

    @pytest.mark.unit
    def test_deferred_near_milestone(self, quiet_logger):
        scheduler = make_scheduler(quiet_logger)
        assert scheduler.tick(SessionSnapshot(elapsed=600, distance=850)) is None
        assert not scheduler.flags.is_set(scheduler.flags.time_key(10))

    @pytest.mark.unit
    def test_milestone_takes_priority(self, quiet_logger):
        scheduler = make_scheduler(quiet_logger)
        event = scheduler.tick(SessionSnapshot(elapsed=1200, distance=3020))
        assert event.category is AnnouncementCategory.MILESTONE


class TestPaceGuidance:

    @pytest.mark.unit
    def test_dead_zone_is_silent(self, quiet_logger):
        scheduler = make_scheduler(quiet_logger, target_pace=300)
        assert scheduler.tick(SessionSnapshot(elapsed=120, distance=300, pace=320)) is None
        assert scheduler.tick(SessionSnapshot(elapsed=130, distance=330, pace=300)) is None

    @pytest.mark.unit
    def test_too_slow(self, quiet_logger):
        scheduler = make_scheduler(quiet_logger, target_pace=300)
        event = scheduler.tick(SessionSnapshot(elapsed=120, distance=300, pace=340))
        assert event.category is AnnouncementCategory.PACE_GUIDANCE
        assert event.text.startswith("Pick up the pace.")
        assert "target 5:00" in event.text

    @pytest.mark.unit
    def test_too_fast(self, quiet_logger):
        scheduler = make_scheduler(quiet_logger, target_pace=300)
        event = scheduler.tick(SessionSnapshot(elapsed=120, distance=300, pace=260))
        assert event.text.startswith("Ease off a little.")

    @pytest.mark.unit
    def test_rate_limited(self, quiet_logger):
        scheduler = make_scheduler(quiet_logger, target_pace=300)
        assert scheduler.tick(SessionSnapshot(elapsed=120, distance=300, pace=340))
        assert scheduler.tick(SessionSnapshot(elapsed=150, distance=380, pace=340)) is None
        assert scheduler.tick(SessionSnapshot(elapsed=181, distance=460, pace=340))

    @pytest.mark.unit
    def test_no_target_no_guidance(self, quiet_logger):
        scheduler = make_scheduler(quiet_logger)
        assert scheduler.tick(SessionSnapshot(elapsed=120, distance=300, pace=400)) is None


class TestDeviationAnnouncements:

    @pytest.mark.unit
    def test_deviated(self, quiet_logger):
        scheduler = make_scheduler(quiet_logger)
        event = scheduler.deviation_announcement(DeviationEvent.DEVIATED, 120)
        assert event.category is AnnouncementCategory.DEVIATION
        assert event.text == "You are off route, 120 m from the path."

    @pytest.mark.unit
    def test_back_on_route_only_when_comprehensive(self, quiet_logger):
        standard = make_scheduler(quiet_logger)
        assert standard.deviation_announcement(DeviationEvent.BACK_ON_ROUTE, 30) is None

        chatty = make_scheduler(quiet_logger, verbosity=Verbosity.COMPREHENSIVE)
        event = chatty.deviation_announcement(DeviationEvent.BACK_ON_ROUTE, 30)
        assert event.text == "Back on route."


def event(text):
    return AnnouncementEvent(AnnouncementCategory.MILESTONE, text)


class TestAnnouncementQueue:

    @pytest.mark.unit
    def test_fifo(self, quiet_logger):
        spoken = []
        announcements = AnnouncementQueue(spoken.append, delay=0, logger=quiet_logger)
        for text in ("one", "two", "three"):
            announcements.enqueue(event(text))
        assert announcements.pending == 3
        played = announcements.drain()
        assert spoken == ["one", "two", "three"]
        assert [e.text for e in played] == spoken
        assert announcements.pending == 0

    @pytest.mark.unit
    def test_empty_queue(self, quiet_logger):
        announcements = AnnouncementQueue(lambda text: None, logger=quiet_logger)
        assert announcements.play_next() is None

    @pytest.mark.unit
    def test_pause_after_each_playback(self, quiet_logger):
        pauses = []
        announcements = AnnouncementQueue(lambda text: None, delay=0.5,
                                          logger=quiet_logger, sleep=pauses.append)
        announcements.enqueue(event("a"))
        announcements.enqueue(event("b"))
        announcements.drain()
        assert pauses == [0.5, 0.5]

    @pytest.mark.unit
    def test_speaker_error_does_not_stop_queue(self, quiet_logger):
        spoken = []

        def speaker(text):
            if text == "bad":
                raise RuntimeError("audio device busy")
            spoken.append(text)

        announcements = AnnouncementQueue(speaker, delay=0, logger=quiet_logger)
        announcements.enqueue(event("bad"))
        announcements.enqueue(event("good"))
        announcements.drain()
        assert spoken == ["good"]
        assert len(announcements.played) == 2

    @pytest.mark.unit
    def test_played_history_is_bounded(self, quiet_logger, monkeypatch):
        monkeypatch.setitem(CONFIG, "announcement_history", 3)
        announcements = AnnouncementQueue(lambda text: None, delay=0, logger=quiet_logger)
        for text in "abcde":
            announcements.enqueue(event(text))
        assert len(announcements.drain()) == 5
        assert [e.text for e in announcements.played] == ["c", "d", "e"]

    @pytest.mark.unit
    def test_worker_never_overlaps(self, quiet_logger):
        lock = threading.Lock()
        active = []
        overlaps = []
        spoken = []

        def speaker(text):
            with lock:
                active.append(text)
                if len(active) > 1:
                    overlaps.append(list(active))
            time.sleep(0.02)
            with lock:
                active.remove(text)
            spoken.append(text)

        announcements = AnnouncementQueue(speaker, delay=0, logger=quiet_logger)
        announcements.start()
        try:
            for text in ("a", "b", "c", "d"):
                announcements.enqueue(event(text))
            deadline = time.time() + 5
            while len(spoken) < 4 and time.time() < deadline:
                time.sleep(0.01)
        finally:
            announcements.stop()

        assert spoken == ["a", "b", "c", "d"]
        assert overlaps == []
