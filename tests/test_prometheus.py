from prometheus_client import CollectorRegistry

from smtp_service.prometheus import ConnectionMetrics


def test_connection_metrics_counters_and_gauge():
    metrics = ConnectionMetrics()

    metrics.inc_connect("smtp.example.com")
    metrics.inc_reconnect("smtp.example.com")
    metrics.inc_connect_error("")
    metrics.inc_sent("smtp.example.com")
    metrics.inc_send_error(None)
    metrics.set_connected(True)

    output = metrics.generate_latest()
    assert b'smtp_connects_total{host="smtp.example.com"} 1.0' in output
    assert b'smtp_reconnects_total{host="smtp.example.com"} 1.0' in output
    assert b'smtp_connect_errors_total{host="unknown"} 1.0' in output
    assert b'smtp_sent_total{host="smtp.example.com"} 1.0' in output
    assert b'smtp_send_errors_total{host="unknown"} 1.0' in output
    assert b"smtp_connected 1.0" in output


def test_instances_use_separate_registries():
    registry = CollectorRegistry()
    first = ConnectionMetrics(registry)
    second = ConnectionMetrics()

    first.inc_sent("relay.local")

    assert first.registry is registry
    assert b'smtp_sent_total{host="relay.local"} 1.0' in first.generate_latest()
    assert b'host="relay.local"' not in second.generate_latest()
