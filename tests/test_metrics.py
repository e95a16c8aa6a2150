from bot import metrics


class FakeStatsd:
    def __init__(self) -> None:
        self.calls: list[tuple[str, int]] = []

    def incr(self, name: str, value: int = 1) -> None:
        self.calls.append((name, value))


def test_metrics_disabled_is_noop(monkeypatch):
    client = FakeStatsd()
    monkeypatch.setattr(metrics.config, "ONBOARDING_LOG_METRICS_ENABLED", False)
    monkeypatch.setattr(metrics.config, "ONBOARDING_METRICS_BACKEND", "statsd")
    monkeypatch.setattr(metrics, "_statsd_client", client)
    monkeypatch.setattr(metrics, "_statsd_ready", True)

    metrics.inc("onboarding.submit.success")

    assert client.calls == []


def test_metrics_statsd_backend(monkeypatch):
    client = FakeStatsd()
    monkeypatch.setattr(metrics.config, "ONBOARDING_LOG_METRICS_ENABLED", True)
    monkeypatch.setattr(metrics.config, "ONBOARDING_METRICS_BACKEND", "statsd")
    monkeypatch.setattr(metrics, "_statsd_client", client)
    monkeypatch.setattr(metrics, "_statsd_ready", True)

    metrics.inc("onboarding.submit.failed")
    metrics.inc("onboarding.step.redirect", 2)

    assert client.calls == [("onboarding.submit.failed", 1), ("onboarding.step.redirect", 2)]


def test_prometheus_metric_names():
    assert metrics._sanitize_metric_name("onboarding.submit.success") == "onboarding_submit_success_total"
    assert metrics._sanitize_metric_name("onboarding.custom.event") == "onboarding_custom_event"
