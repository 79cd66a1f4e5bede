import time
import logging

class ThrottledLogger:
    """
    Collapses bursts of identical hot-path messages into one line per interval.

    The number of suppressed occurrences is prefixed to the message that
    finally gets through, e.g. "[42] Sample queue full, dropping oldest sample."
    """
    def __init__(self, logger: logging.Logger, interval_sec: float = 5.0) -> None:
        self._logger = logger
        self._interval = interval_sec
        self._last_log_time = 0.0
        self._counter = 0

    @property
    def pending(self) -> int:
        return self._counter

    def _log(self, level: int, message: str, *args, **kwargs) -> bool:
        self._counter += 1
        now = time.monotonic()

        if now - self._last_log_time < self._interval:
            return False

        self._logger.log(level, "[%d] " + message, self._counter, *args, **kwargs)
        self._last_log_time = now
        self._counter = 0
        return True

    def debug(self, message: str, *args, **kwargs) -> bool:
        return self._log(logging.DEBUG, message, *args, **kwargs)

    def warning(self, message: str, *args, **kwargs) -> bool:
        return self._log(logging.WARNING, message, *args, **kwargs)
