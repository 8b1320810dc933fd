from __future__ import annotations

from ticket_service.metrics import MetricsCollector


def test_metrics_render_prometheus() -> None:
    collector = MetricsCollector()
    collector.inc("ticket_operations_total", "issue")
    collector.inc("tickets_issued_total", "checkout", n=3)
    collector.inc("ticket_errors_total", "STORAGE_UNAVAILABLE")
    collector.observe_latency("issue", 0.4)
    collector.observe_latency("issue", 9000)

    text = collector.render_prometheus()
    assert "# TYPE ticket_operations_total counter" in text
    assert 'ticket_operations_total{operation="issue"} 1' in text
    assert 'tickets_issued_total{queue="checkout"} 3' in text
    assert 'ticket_errors_total{code="STORAGE_UNAVAILABLE"} 1' in text
    assert 'ticket_operation_latency_ms_bucket{operation="issue",le="1"} 1' in text
    assert 'le="+Inf"} 1' in text
    assert collector.value("tickets_issued_total", "checkout") == 3
