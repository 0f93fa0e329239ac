"""
Logging setup.
Every module asks for a child of the ``cell_dashboard`` logger, and the web UI
reads the most recent records back out of ``log_buffer``.
"""

import logging
from collections import deque
from typing import Deque, List

from core.config import LOG_FORMAT, LOG_LEVEL, MAX_LOG_RECORDS

ROOT_LOGGER_NAME = 'cell_dashboard'


class MemoryHandler(logging.Handler):
    """Keeps the newest N formatted records for display in the UI."""

    def __init__(self, capacity: int = MAX_LOG_RECORDS):
        super().__init__()
        self.capacity = capacity
        self.buffer: Deque[str] = deque(maxlen=capacity)

    def emit(self, record: logging.LogRecord) -> None:
        self.buffer.append(self.format(record))


formatter = logging.Formatter(LOG_FORMAT)

logger = logging.getLogger(ROOT_LOGGER_NAME)
logger.setLevel(LOG_LEVEL)

# Streamlit re-imports changed modules on rerun; reuse handlers already attached
memory_handler = next(
    (h for h in logger.handlers if isinstance(h, MemoryHandler)), None
)
if memory_handler is None:
    _console = logging.StreamHandler()
    _console.setFormatter(formatter)
    logger.addHandler(_console)

    memory_handler = MemoryHandler()
    memory_handler.setFormatter(formatter)
    logger.addHandler(memory_handler)

log_buffer = memory_handler.buffer


def get_logger(name: str) -> logging.Logger:
    """Child logger under the dashboard namespace, e.g. ``cell_dashboard.core.storage``."""
    return logger.getChild(name)


def recent_logs(limit: int = 50) -> List[str]:
    return list(log_buffer)[-limit:]
