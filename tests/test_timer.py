import pytest

from kitchen_timer.labels import MemoryLabel
from kitchen_timer.timers import Timer, TimerState

from conftest import record


@pytest.fixture
def make_timer(clock, scheduler, notifier, panel_label):
    def make(name="tea", duration=5, **kwargs):
        timer = Timer(name, duration, clock=clock, **kwargs)
        timer.scheduler = scheduler
        timer.notifier = notifier
        timer.panel_label = panel_label
        timer.label = MemoryLabel()
        return timer

    return make


class TestStart:
    def test_start_arms_a_single_schedule(self, make_timer, scheduler, clock):
        timer = make_timer()
        assert timer.start() is True
        assert timer.state is TimerState.RUNNING
        assert timer.start_time == clock.now
        assert timer.end_time == clock.now + 5000
        assert len(scheduler.active()) == 1
        assert scheduler.active()[0].interval_ms == Timer.INTERVAL_MS

    def test_disabled_timer_does_not_start(self, make_timer, scheduler):
        timer = make_timer(enabled=False)
        assert timer.start() is False
        assert timer.state is TimerState.RESET
        assert scheduler.tasks == []

    def test_double_start_cancels(self, make_timer, scheduler, notifier):
        timer = make_timer()
        assert timer.start() is True
        assert timer.start() is False
        assert timer.state is TimerState.RESET
        assert timer.start_time is None
        assert timer.end_time is None
        assert scheduler.active() == []

        scheduler.advance(10_000)
        assert timer.state is TimerState.RESET
        assert notifier.messages == []

    def test_restart_after_cancel_uses_one_schedule(self, make_timer, scheduler):
        timer = make_timer()
        timer.start()
        timer.start()
        assert timer.start() is True
        assert len(scheduler.active()) == 1

    def test_start_without_scheduler(self):
        timer = Timer("orphan", 5)
        with pytest.raises(RuntimeError):
            timer.start()


class TestTick:
    def test_labels_show_ceiling_of_remaining(self, make_timer, scheduler, panel_label):
        timer = make_timer(duration=65)
        timer.start()
        scheduler.advance(100)
        assert timer.label.text == "01:05"
        assert panel_label.text == "1:05"

        scheduler.advance(1000)
        assert timer.label.text == "01:04"
        assert panel_label.text == "1:04"

    def test_never_shows_zero_while_running(self, make_timer, scheduler, panel_label):
        timer = make_timer(duration=1)
        timer.start()
        scheduler.advance(900)
        assert timer.is_running()
        assert panel_label.text == "1"

    def test_expiry(self, make_timer, scheduler, notifier, panel_label):
        timer = make_timer("tea", 5)
        timer.start()
        scheduler.advance(4900)
        assert timer.is_running()
        assert notifier.messages == []

        scheduler.advance(200)
        assert timer.state is TimerState.EXPIRED
        assert timer.expired()
        assert notifier.messages == ["Timer [tea] completed"]
        assert panel_label.text == ""
        assert timer.label.text == "00:05"
        assert timer.end_time is None
        assert scheduler.active() == []

        scheduler.advance(10_000)
        assert len(notifier.messages) == 1

    def test_stale_tick_after_reset_halts_quietly(self, make_timer, notifier):
        timer = make_timer()
        timer.start()
        timer.reset()
        assert timer.tick() is False
        assert timer.state is TimerState.RESET
        assert notifier.messages == []

    def test_failing_sink_does_not_stop_countdown(self, make_timer, scheduler, notifier):
        class Broken:
            def set_text(self, text):
                raise RuntimeError("gone")

        timer = make_timer(duration=2)
        timer.label = Broken()
        timer.start()
        scheduler.advance(2500)
        assert timer.expired()
        assert len(notifier.messages) == 1

    def test_failing_notifier_still_expires(self, make_timer, scheduler, panel_label):
        class Broken:
            def notify(self, message):
                raise OSError("no sound card")

        timer = make_timer(duration=1)
        timer.notifier = Broken()
        timer.start()
        scheduler.advance(1500)
        assert timer.expired()
        assert panel_label.text == ""

    def test_expired_timer_can_start_again(self, make_timer, scheduler):
        timer = make_timer(duration=1)
        timer.start()
        scheduler.advance(1500)
        assert timer.start() is True
        assert timer.is_running()


class TestRefreshWith:
    def test_matching_id_merges(self, make_timer):
        timer = make_timer("tea", 5, id="abc")
        assert timer.refresh_with(record("abc", "coffee", 240, enabled=False)) is True
        assert (timer.name, timer.duration, timer.enabled) == ("coffee", 240, False)

    def test_other_id_is_ignored(self, make_timer):
        timer = make_timer("tea", 5, id="abc")
        for other in ("abd", "", "ABC"):
            assert timer.refresh_with(record(other, "coffee", 240, enabled=False)) is False
        assert (timer.name, timer.duration, timer.enabled) == ("tea", 5, True)


class TestAccessors:
    def test_generated_id_is_stable(self):
        timer = Timer("eggs", 360)
        assert timer.id
        assert timer.id == timer.id
        assert Timer("eggs", 360).id != timer.id

    def test_disable_and_enable(self):
        timer = Timer("eggs", 360)
        timer.disable()
        assert not timer.enabled
        timer.enable()
        assert timer.enabled

    def test_remaining_ms(self, make_timer, scheduler):
        timer = make_timer(duration=10)
        assert timer.remaining_ms() == 0
        timer.start()
        scheduler.advance(2500)
        assert timer.remaining_ms() == 7500

    def test_to_record(self):
        timer = Timer("eggs", 360, id="e1", quick=True)
        rec = timer.to_record()
        assert (rec.id, rec.name, rec.duration, rec.enabled, rec.quick) == ("e1", "eggs", 360, True, True)
