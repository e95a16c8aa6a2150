import logging
from collections.abc import Callable
from typing import Any

import config

logger = logging.getLogger(__name__)

# Dotted statsd name -> (prometheus name, help text).
COUNTERS: dict[str, tuple[str, str]] = {
    "onboarding.step.redirect": ("onboarding_step_redirect_total", "Wizard requests sent back to an earlier step"),
    "onboarding.step.invalid": ("onboarding_step_invalid_total", "Answers rejected by field validation"),
    "onboarding.submit.success": ("onboarding_submit_success_total", "Applications written to the document store"),
    "onboarding.submit.failed": ("onboarding_submit_failed_total", "Submit attempts that did not create a document"),
    "onboarding.reset": ("onboarding_reset_total", "Drafts discarded by the user"),
}

_prometheus_counters: dict[str, Any] = {}
_statsd_client: Any = None
_statsd_ready = False


def _sanitize_metric_name(name: str) -> str:
    if name in COUNTERS:
        return COUNTERS[name][0]
    return name.replace(".", "_")


def _statsd() -> Any:
    global _statsd_client, _statsd_ready
    if _statsd_ready:
        return _statsd_client

    _statsd_ready = True
    try:
        from statsd import StatsClient

        _statsd_client = StatsClient(host=config.STATSD_HOST, port=config.STATSD_PORT, prefix=config.STATSD_PREFIX)
    except Exception as exc:
        logger.warning("[METRICS] statsd client unavailable: %s", exc)
        _statsd_client = None
    return _statsd_client


def _prometheus_inc(name: str, value: int) -> None:
    from prometheus_client import Counter

    metric_name = _sanitize_metric_name(name)
    counter = _prometheus_counters.get(metric_name)
    if counter is None:
        help_text = COUNTERS.get(name, (metric_name, f"Onboarding counter {name}"))[1]
        counter = Counter(metric_name, help_text)
        _prometheus_counters[metric_name] = counter
    counter.inc(value)


def _statsd_inc(name: str, value: int) -> None:
    client = _statsd()
    if client is not None:
        client.incr(name, value)


_BACKENDS: dict[str, Callable[[str, int], None]] = {
    "prometheus": _prometheus_inc,
    "statsd": _statsd_inc,
}


def inc(name: str, value: int = 1) -> None:
    """Count one onboarding event; never raises into the conversation."""
    if not config.ONBOARDING_LOG_METRICS_ENABLED:
        return

    backend = _BACKENDS.get((config.ONBOARDING_METRICS_BACKEND or "noop").strip().lower())
    if backend is None:
        return
    try:
        backend(name, value)
    except Exception as exc:
        logger.warning("[METRICS] %s inc failed for %s: %s", config.ONBOARDING_METRICS_BACKEND, name, exc)
