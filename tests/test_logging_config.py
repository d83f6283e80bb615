import logging
from unittest.mock import patch

import colorlog

from bancho_irc.logging_config import ErrorStats, LoggerConfigurator, log_structured_error


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_error_stats_counts_per_category():
    stats = ErrorStats()
    assert stats.record("transport", "lost") == 1
    assert stats.record("transport", "lost again") == 2
    stats.record("lookup", "API down")

    assert stats.counts == {"transport": 2, "lookup": 1}
    assert stats.total == 3
    assert stats.last_messages["transport"] == "lost again"


def test_report_logs_one_event_per_category():
    clock = FakeClock()
    stats = ErrorStats(clock=clock)
    stats.record("transport", "lost")
    stats.record("lookup", "API down")
    clock.now += 120

    with patch("bancho_irc.logging_config.logger") as log:
        stats.report("TestBot")

    calls = log.log_event.call_args_list
    assert [c.kwargs["category"] for c in calls] == ["lookup", "transport"]
    assert all(c.args[:2] == ("errors", "summary") for c in calls)
    assert calls[1].kwargs["minutes"] == 2.0
    assert calls[1].kwargs["user"] == "TestBot"


def test_report_without_errors():
    with patch("bancho_irc.logging_config.logger") as log:
        ErrorStats().report()
    log.log_event.assert_called_once_with("errors", "none", user=None)


def test_log_structured_error_records_into_stats(caplog):
    stats = ErrorStats()
    with caplog.at_level(logging.ERROR):
        log_structured_error(
            "transport",
            "Connection lost",
            exception=ConnectionResetError("reset"),
            context={"user": "TestBot"},
            stats=stats,
        )
    assert "[TRANSPORT] Connection lost" in caplog.text
    assert "ConnectionResetError: reset" in caplog.text
    assert "user=TestBot" in caplog.text
    assert stats.counts["transport"] == 1


def test_log_structured_error_without_stats(caplog):
    with caplog.at_level(logging.WARNING):
        log_structured_error("state", "Odd", level=logging.WARNING)
    assert "[STATE] Odd" in caplog.text


def test_configurator_uses_colorlog(monkeypatch):
    monkeypatch.delenv("DEBUG", raising=False)
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        assert LoggerConfigurator().configure() == logging.INFO
        assert LoggerConfigurator(logging.DEBUG).configure() == logging.DEBUG
        assert root.level == logging.DEBUG
        assert all(isinstance(h.formatter, colorlog.ColoredFormatter) for h in root.handlers)
        assert logging.getLogger("aiohttp").level == logging.WARNING
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
