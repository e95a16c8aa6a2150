import os
from collections.abc import Callable
from typing import TypeVar

from dotenv import load_dotenv

load_dotenv()

T = TypeVar("T")


def _parsed_env(name: str, default: T, parse: Callable[[str], T]) -> T:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return parse(value.strip())
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    return _parsed_env(name, default, int)


def _float_env(name: str, default: float) -> float:
    return _parsed_env(name, default, float)


def _bool_env(name: str, default: bool) -> bool:
    return _parsed_env(name, default, lambda raw: raw.lower() in {"1", "true", "yes", "on"})


TELEGRAM_TOKEN = os.getenv("TELEGRAM_TOKEN")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Drafts live in the FSM redis when USE_REDIS is on, otherwise in process memory.
USE_REDIS = _bool_env("USE_REDIS", False)
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379")
DRAFT_TTL_SECONDS = _int_env("DRAFT_TTL_SECONDS", 60 * 60 * 24 * 30)

# Empty SUBMIT_API_URL submits in-process through an in-memory document store.
SUBMIT_API_URL = os.getenv("SUBMIT_API_URL", "")
SUBMIT_TIMEOUT_SECONDS = _float_env("SUBMIT_TIMEOUT_SECONDS", 10.0)
LOADING_DELAY_SECONDS = _float_env("LOADING_DELAY_SECONDS", 0.3)

ONBOARDING_LOG_METRICS_ENABLED = _bool_env("ONBOARDING_LOG_METRICS_ENABLED", False)
ONBOARDING_METRICS_BACKEND = os.getenv("ONBOARDING_METRICS_BACKEND", "noop")
STATSD_HOST = os.getenv("STATSD_HOST", "localhost")
STATSD_PORT = _int_env("STATSD_PORT", 8125)
STATSD_PREFIX = os.getenv("STATSD_PREFIX") or None
