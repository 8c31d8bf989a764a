import logging
import os
import threading
from pathlib import Path
from contextlib import contextmanager
from contextvars import ContextVar, Token
from collections import deque

_job_id_var: ContextVar[str] = ContextVar("job_id", default="-")

_configured = False
_env_loaded = False
_debug_enabled = False
_memory_handler: "MemoryListHandler | None" = None

_NOISY_LOGGERS = (
    "uvicorn",
    "uvicorn.access",
    "uvicorn.error",
    "httpx",
    "httpcore",
    "asyncio",
)
_FORCE_QUIET_LOGGERS = (
    "httpx",
    "httpcore",
    "httpcore.http11",
    "httpcore.connection",
)

LOG_FORMAT = "%(asctime)s %(levelname)-8s job_id=%(job_id)s %(name)s %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S"


class MemoryListHandler(logging.Handler):
    """Keeps the most recent formatted lines for /diagnostics/logs."""

    def __init__(self, max_lines: int = 1000):
        super().__init__()
        self._lines: deque[str] = deque(maxlen=max_lines)
        self._lines_lock = threading.Lock()

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = self.format(record)
        except Exception:
            self.handleError(record)
            return

        with self._lines_lock:
            self._lines.append(line)

    def recent(self, limit: int = 200) -> list[str]:
        bounded_limit = max(1, int(limit))
        with self._lines_lock:
            lines = list(self._lines)
        return lines[-bounded_limit:]


class ContextEnricherFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.job_id = _job_id_var.get() or "-"
        return True


class NoisyLibraryFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if _debug_enabled:
            return True
        if record.levelno >= logging.WARNING:
            return True
        return not any(
            record.name == name or record.name.startswith(f"{name}.")
            for name in _NOISY_LOGGERS
        )


def configure_logging(force: bool = False) -> None:
    global _configured, _env_loaded, _debug_enabled, _memory_handler
    if _configured and not force:
        return

    # Repository .env is authoritative over stale shell exports.
    if not _env_loaded:
        try:
            from dotenv import load_dotenv

            repo_root = Path(__file__).resolve().parents[2]
            load_dotenv(dotenv_path=repo_root / ".env", override=True)
        except Exception:
            pass
        _env_loaded = True

    level_name = os.environ.get("LOG_LEVEL", "INFO").upper().strip()
    level = getattr(logging, level_name, logging.INFO)
    _debug_enabled = level <= logging.DEBUG

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATEFMT)
    else:
        root.setLevel(level)
        for handler in root.handlers:
            handler.setFormatter(formatter)

    if _memory_handler is None:
        _memory_handler = MemoryListHandler(max_lines=1000)
    if _memory_handler not in root.handlers:
        root.addHandler(_memory_handler)
    _memory_handler.setFormatter(formatter)

    context_filter = ContextEnricherFilter()
    noisy_filter = NoisyLibraryFilter()
    for handler in root.handlers:
        if not any(isinstance(f, ContextEnricherFilter) for f in handler.filters):
            handler.addFilter(context_filter)
        if not any(isinstance(f, NoisyLibraryFilter) for f in handler.filters):
            handler.addFilter(noisy_filter)

    if level > logging.DEBUG:
        for logger_name in _NOISY_LOGGERS:
            logging.getLogger(logger_name).setLevel(logging.WARNING)
        # Probe fan-out makes httpx request logging very chatty.
        for logger_name in _FORCE_QUIET_LOGGERS:
            noisy_logger = logging.getLogger(logger_name)
            noisy_logger.setLevel(logging.WARNING)
            noisy_logger.propagate = False
            noisy_logger.handlers.clear()
            hard_handler = logging.StreamHandler()
            hard_handler.setLevel(logging.WARNING)
            hard_handler.setFormatter(formatter)
            hard_handler.addFilter(context_filter)
            noisy_logger.addHandler(hard_handler)

    _configured = True


def get_recent_log_lines(limit: int = 200) -> list[str]:
    if _memory_handler is None:
        return []
    return _memory_handler.recent(limit=limit)


def set_job_context(job_id) -> Token:
    return _job_id_var.set(str(job_id) if job_id is not None else "-")


def reset_job_context(token: Token | None = None) -> None:
    if token is not None:
        _job_id_var.reset(token)
    else:
        _job_id_var.set("-")


@contextmanager
def job_context(job_id):
    token = set_job_context(job_id)
    try:
        yield
    finally:
        reset_job_context(token)
