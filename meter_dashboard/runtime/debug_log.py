from __future__ import annotations

import logging
import threading
from collections import deque
from datetime import datetime
from typing import Deque, List

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


class DebugLogHandler(logging.Handler):
    """
    Logging handler keeping the newest entries for the dashboard debug panel.

    Entries are formatted as ``"[HH:MM:SS] message"``.

    Parameters
    ----------
    capacity
        Number of entries kept; older entries are discarded.
    """

    def __init__(self, capacity: int = 20, level: int = logging.INFO):
        super().__init__(level=level)
        self._entries: Deque[str] = deque(maxlen=capacity)
        self._entries_lock = threading.Lock()

    def emit(self, record: logging.LogRecord) -> None:
        try:
            ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
            line = f"[{ts}] {record.getMessage()}"
        except Exception:
            self.handleError(record)
            return
        with self._entries_lock:
            self._entries.append(line)

    def entries(self) -> List[str]:
        """
        Return the kept entries, newest first.
        """
        with self._entries_lock:
            return list(reversed(self._entries))

    def clear(self) -> None:
        with self._entries_lock:
            self._entries.clear()


def configure_logging(level: str = "INFO", debug_log_size: int = 20) -> DebugLogHandler:
    """
    Configure root logging (console) and attach the debug panel handler.

    Parameters
    ----------
    level
        Console log level name.
    debug_log_size
        Number of entries kept for the debug panel.

    Returns
    -------
    DebugLogHandler
        Handler to hand to the UI.
    """
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)

    handler = DebugLogHandler(capacity=debug_log_size, level=logging.DEBUG)
    pkg_logger = logging.getLogger("meter_dashboard")
    pkg_logger.addHandler(handler)
    return handler
