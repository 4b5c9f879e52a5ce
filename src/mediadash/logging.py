"""Package logger.

One ``mediadash`` logger, configured on import.  Each line carries a short
session id so output from concurrent dashboard sessions can be told apart.
"""
import logging
import sys
import uuid

from mediadash.config import settings

_SESSION_ID = uuid.uuid4().hex[:8]


def get_run_id() -> str:
    """Return the id stamped on every log line of this process."""
    return _SESSION_ID


class _SessionFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.session_id = _SESSION_ID
        return True


def _configure() -> logging.Logger:
    log = logging.getLogger("mediadash")
    if log.handlers:
        return log
    handler = logging.StreamHandler(sys.stderr)
    handler.addFilter(_SessionFilter())
    handler.setFormatter(logging.Formatter(
        "%(asctime)s [%(session_id)s] %(levelname)s %(name)s: %(message)s"
    ))
    log.addHandler(handler)
    log.setLevel(settings.LOG_LEVEL.upper())
    return log


logger = _configure()
