import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

SCHEMA_STREAM_ROOT = "http://www.streambox.fr/playlists/x36xhzz/"
DEFAULT_STREAM_ROOT = "http://streams.livepeer.org"
DEFAULT_LEDGER_URL = "http://localhost:8935"


def _parse_non_negative_int(env_name: str, default: int) -> int:
    raw = os.environ.get(env_name)
    if raw is None or str(raw).strip() == "":
        return default
    try:
        value = int(str(raw).strip())
    except ValueError:
        logger.warning("%s=%r is invalid; using %d", env_name, raw, default)
        return default
    if value < 0:
        logger.warning("%s=%r must be >= 0; using %d", env_name, raw, default)
        return default
    return value


def _parse_positive_float(env_name: str, default: float) -> float:
    raw = os.environ.get(env_name)
    if raw is None or str(raw).strip() == "":
        return default
    try:
        value = float(str(raw).strip())
    except ValueError:
        logger.warning("%s=%r is invalid; using %s", env_name, raw, default)
        return default
    if value <= 0:
        logger.warning("%s=%r must be > 0; using %s", env_name, raw, default)
        return default
    return value


def _parse_url(env_name: str, default: str) -> str:
    raw = (os.environ.get(env_name) or "").strip()
    if not raw:
        return default
    if not raw.startswith(("http://", "https://")):
        logger.warning("%s=%r must start with http:// or https://; using %s", env_name, raw, default)
        return default
    return raw


@dataclass(frozen=True)
class Settings:
    ledger_url: str
    ledger_timeout_seconds: float
    stream_root_url: str
    probe_timeout_seconds: float
    probe_concurrency: int


def get_settings() -> Settings:
    return Settings(
        ledger_url=_parse_url("LEDGER_URL", DEFAULT_LEDGER_URL),
        ledger_timeout_seconds=_parse_positive_float("LEDGER_TIMEOUT_SECONDS", 10.0),
        stream_root_url=_parse_url("STREAM_ROOT_URL", SCHEMA_STREAM_ROOT),
        probe_timeout_seconds=_parse_positive_float("PROBE_TIMEOUT_SECONDS", 5.0),
        probe_concurrency=_parse_non_negative_int("PROBE_CONCURRENCY", 0),
    )


def get_concurrency_diagnostics() -> dict:
    settings = get_settings()
    limit = settings.probe_concurrency
    return {
        "probe_concurrency": limit,
        "probe_timeout_seconds": settings.probe_timeout_seconds,
        "ledger_timeout_seconds": settings.ledger_timeout_seconds,
        "effective_mode": (
            f"up to {limit} concurrent stream probe(s) per process"
            if limit
            else "unbounded stream probes per batch"
        ),
    }
