from conftest import FakeScheduler

from core.timers import PeriodicTask


class TestPeriodicTask:
    """Tests for restartable periodic callbacks."""

    def test_start_twice_keeps_one_interval(self):
        scheduler = FakeScheduler()
        task = PeriodicTask(scheduler, 0.5, lambda: None, "poll")
        task.start()
        task.start()
        assert len(scheduler.timers) == 2
        assert len(scheduler.active()) == 1
        assert task.running

    def test_stop_is_idempotent(self):
        scheduler = FakeScheduler()
        task = PeriodicTask(scheduler, 1.0, lambda: None)
        task.stop()
        task.start()
        task.stop()
        task.stop()
        assert scheduler.active() == []
        assert not task.running

    def test_name_defaults_to_callback(self):
        def tick():
            pass

        assert PeriodicTask(FakeScheduler(), 1.0, tick).name == "tick"
