import threading
from datetime import timedelta

from jokko.core.monitoring import MonitoringService
from jokko.services.health_service import health_status


def test_buffer_is_bounded_and_newest_first():
    monitoring = MonitoringService(max_events=3)
    for i in range(5):
        monitoring.log_info(f"event {i}")

    assert len(monitoring) == 3
    assert [e.message for e in monitoring.recent_events()] == ["event 4", "event 3", "event 2"]


def test_recent_events_filters_and_limits():
    monitoring = MonitoringService()
    monitoring.log_error("e1")
    monitoring.log_info("i1")
    monitoring.log_error("e2")

    assert [e.message for e in monitoring.recent_events("error")] == ["e2", "e1"]
    assert [e.message for e in monitoring.recent_events(limit=1)] == ["e2"]


def test_log_api_call_levels():
    monitoring = MonitoringService()
    assert monitoring.log_api_call("GET", "/a", 200, 1.234).type == "info"
    assert monitoring.log_api_call("GET", "/b", 302, 1.0).type == "warning"
    assert monitoring.log_api_call("GET", "/c", 404, 1.0).type == "error"

    event = monitoring.recent_events(limit=3)[-1]
    assert event.message == "API GET /a - 200"
    assert event.metadata == {"method": "GET", "endpoint": "/a", "statusCode": 200, "duration": 1.23}


def test_counts_only_within_window():
    monitoring = MonitoringService()
    old = monitoring.log_error("old")
    old.timestamp -= timedelta(hours=2)
    monitoring.log_error("new")
    monitoring.log_auth_failure("invalid_token", "127.0.0.1")

    assert monitoring.error_count(60) == 1
    assert monitoring.error_count(180) == 2
    assert monitoring.security_event_count(60) == 1


def test_event_to_dict():
    monitoring = MonitoringService()
    event = monitoring.log_security("denied", context="auth", user_id="u-1", metadata={"ip": "x"})
    data = event.to_dict()

    assert data["type"] == "security"
    assert data["userId"] == "u-1"
    assert data["metadata"] == {"ip": "x"}
    assert data["timestamp"].endswith("+00:00")


def test_health_status_thresholds():
    assert health_status(0, 0) == "healthy"
    assert health_status(10, 5) == "healthy"
    assert health_status(11, 0) == "degraded"
    assert health_status(51, 0) == "unhealthy"
    assert health_status(0, 6) == "unhealthy"


def test_reads_while_another_thread_logs():
    monitoring = MonitoringService(max_events=50)
    stop = threading.Event()

    def writer():
        while not stop.is_set():
            monitoring.log_error("boom", context="worker")

    thread = threading.Thread(target=writer)
    thread.start()
    try:
        for _ in range(2000):
            monitoring.error_count()
            monitoring.recent_events("error", limit=5)
            len(monitoring)
    finally:
        stop.set()
        thread.join()

    assert len(monitoring) == 50
