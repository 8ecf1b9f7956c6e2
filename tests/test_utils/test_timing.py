"""Tests for timing utilities."""

from snaprotate.utils.timing import TimingMetrics, timed_phase, timed_section


class TestTimedSection:
    """Tests for timed_section and timed_phase."""

    def test_records_elapsed_and_phases(self):
        with timed_section("home") as metrics:
            with timed_phase(metrics, "take"):
                pass
            with timed_phase(metrics, "rotate"):
                pass

        assert metrics.name == "home"
        assert metrics.elapsed_seconds >= 0
        assert set(metrics.phases) == {"take", "rotate"}
        assert sum(metrics.phases.values()) <= metrics.elapsed_seconds

    def test_records_on_exception(self):
        metrics = TimingMetrics(name="x")
        try:
            with timed_phase(metrics, "rotate"):
                raise RuntimeError("boom")
        except RuntimeError:
            pass

        assert "rotate" in metrics.phases

    def test_log(self, log_messages):
        metrics = TimingMetrics(name="home", elapsed_seconds=2.0, phases={"take": 0.5})

        metrics.log("info")

        assert log_messages[0] == "Timing [home]: 2.000s"
        assert "take: 0.500s (25.0%)" in log_messages[1]
