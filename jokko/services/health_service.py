# jokko/services/health_service.py
import time
from typing import Any

from jokko.core.monitoring import MonitoringService

DEGRADED_ERRORS = 10
UNHEALTHY_ERRORS = 50
UNHEALTHY_SECURITY_EVENTS = 5

HOUR = 60
DAY = 24 * HOUR
WEEK = 7 * DAY


def health_status(errors: int, security_events: int) -> str:
    """
    Status from last-hour counts:
      - unhealthy: more than 50 errors or more than 5 security events
      - degraded: more than 10 errors
      - healthy otherwise
    """
    if errors > UNHEALTHY_ERRORS or security_events > UNHEALTHY_SECURITY_EVENTS:
        return "unhealthy"
    if errors > DEGRADED_ERRORS:
        return "degraded"
    return "healthy"


class HealthService:
    def __init__(self, version: str, started_at: float | None = None):
        self.version = version
        self.started_at = started_at if started_at is not None else time.monotonic()

    def health(self, monitoring: MonitoringService) -> dict[str, Any]:
        errors = monitoring.error_count(HOUR)
        security_events = monitoring.security_event_count(HOUR)

        return {
            "status": health_status(errors, security_events),
            "uptime": round(time.monotonic() - self.started_at, 1),
            "version": self.version,
            "errors": {
                "lastHour": errors,
                "recent": [e.to_dict() for e in monitoring.recent_events("error", 5)],
            },
            "securityEvents": {
                "lastHour": security_events,
                "recent": [e.to_dict() for e in monitoring.recent_events("security", 5)],
            },
        }

    def monitoring_report(self, monitoring: MonitoringService) -> dict[str, Any]:
        return {
            "events": {
                kind: [e.to_dict() for e in monitoring.recent_events(kind, 20)]
                for kind in ("error", "warning", "info", "security")
            },
            "counts": {
                "errors": {
                    "lastHour": monitoring.error_count(HOUR),
                    "last24Hours": monitoring.error_count(DAY),
                    "lastWeek": monitoring.error_count(WEEK),
                },
                "securityEvents": {
                    "lastHour": monitoring.security_event_count(HOUR),
                    "last24Hours": monitoring.security_event_count(DAY),
                    "lastWeek": monitoring.security_event_count(WEEK),
                },
            },
            "totalEvents": len(monitoring),
        }
