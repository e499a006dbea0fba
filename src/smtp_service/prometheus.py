# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Prometheus metrics for the SMTP connection lifecycle.

Metrics exposed:
    - ``smtp_connects_total``: Counter of connections opened per host.
    - ``smtp_reconnects_total``: Counter of reconnects triggered by a stale
      connection, per host.
    - ``smtp_connect_errors_total``: Counter of failed connects per host.
    - ``smtp_sent_total``: Counter of mails accepted by the relay per host.
    - ``smtp_send_errors_total``: Counter of mails the relay did not accept
      per host.
    - ``smtp_connected``: Gauge, 1 while a connection is cached, else 0.
"""

from prometheus_client import CollectorRegistry, Counter, Gauge, generate_latest


class ConnectionMetrics:
    """Prometheus metrics collector for ``SMTPService``.

    Attributes:
        registry: The Prometheus CollectorRegistry holding all metrics.
        connects: Counter of successful connects.
        reconnects: Counter of staleness-triggered reconnects.
        connect_errors: Counter of failed connects.
        sent: Counter of sent mails.
        send_errors: Counter of failed sends.
        connected: Gauge of the cached connection state.
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """Initialize metrics with an optional custom registry.

        Args:
            registry: Optional Prometheus CollectorRegistry. If not provided,
                a new registry is created, so several services can coexist
                in one process.
        """
        self.registry = registry or CollectorRegistry()
        self.connects = Counter(
            "smtp_connects_total",
            "Total SMTP connections opened",
            ["host"],
            registry=self.registry,
        )
        self.reconnects = Counter(
            "smtp_reconnects_total",
            "Total reconnects after a stale connection",
            ["host"],
            registry=self.registry,
        )
        self.connect_errors = Counter(
            "smtp_connect_errors_total",
            "Total failed connection attempts",
            ["host"],
            registry=self.registry,
        )
        self.sent = Counter(
            "smtp_sent_total",
            "Total mails accepted by the relay",
            ["host"],
            registry=self.registry,
        )
        self.send_errors = Counter(
            "smtp_send_errors_total",
            "Total mails not accepted by the relay",
            ["host"],
            registry=self.registry,
        )
        self.connected = Gauge(
            "smtp_connected",
            "Whether a relay connection is cached",
            registry=self.registry,
        )

    def inc_connect(self, host: str) -> None:
        self.connects.labels(host=host or "unknown").inc()

    def inc_reconnect(self, host: str) -> None:
        self.reconnects.labels(host=host or "unknown").inc()

    def inc_connect_error(self, host: str) -> None:
        self.connect_errors.labels(host=host or "unknown").inc()

    def inc_sent(self, host: str) -> None:
        self.sent.labels(host=host or "unknown").inc()

    def inc_send_error(self, host: str) -> None:
        self.send_errors.labels(host=host or "unknown").inc()

    def set_connected(self, value: bool) -> None:
        self.connected.set(1 if value else 0)

    def generate_latest(self) -> bytes:
        """Export all metrics in Prometheus text exposition format."""
        return generate_latest(self.registry)
