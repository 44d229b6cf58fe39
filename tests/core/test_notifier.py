from unittest.mock import MagicMock
from unittest.mock import patch

from fazuh.chalk.core.notifier import FETCH_COURSES
from fazuh.chalk.core.notifier import LOG
from fazuh.chalk.core.notifier import Notifier


def test_emit_calls_listeners_in_order():
    notifier = Notifier()
    calls = []
    notifier.subscribe(FETCH_COURSES, lambda p: calls.append(("first", p)))
    notifier.subscribe(FETCH_COURSES, lambda p: calls.append(("second", p)))

    notifier.emit(FETCH_COURSES, {"courses": []})

    assert calls == [("first", {"courses": []}), ("second", {"courses": []})]


def test_emit_without_listeners_is_noop():
    Notifier().emit(FETCH_COURSES, {"courses": []})


def test_unsubscribe():
    notifier = Notifier()
    listener = MagicMock()
    notifier.subscribe(LOG, listener)
    notifier.unsubscribe(LOG, listener)
    notifier.unsubscribe(LOG, listener)

    notifier.emit(LOG, {})

    listener.assert_not_called()
    assert notifier.listener_count(LOG) == 0


def test_failing_listener_does_not_block_others():
    notifier = Notifier()
    after = MagicMock()
    notifier.subscribe(LOG, MagicMock(side_effect=ValueError("bad listener")))
    notifier.subscribe(LOG, after)

    notifier.emit(LOG, {"message": "x"})

    after.assert_called_once_with({"message": "x"})


def test_log_emits_event_and_writes_loguru():
    notifier = Notifier()
    events = []
    notifier.subscribe(LOG, events.append)

    with patch("fazuh.chalk.core.notifier.logger") as mock_logger:
        with patch("fazuh.chalk.core.notifier.time.time", return_value=1700000000.5):
            notifier.log("WARN", "careful")

    mock_logger.opt.return_value.log.assert_called_once_with("WARNING", "careful")
    assert events == [{"timestamp": 1700000000500, "level": "WARN", "message": "careful"}]
