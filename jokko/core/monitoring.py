# jokko/core/monitoring.py
"""
In-process observability: a bounded, newest-first event log.

The service is created once in the app factory and reached through the
`get_monitoring` dependency. It is not a module-level singleton.
"""
import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Literal

from fastapi import Request

EventType = Literal["error", "warning", "info", "security"]

logger = logging.getLogger("jokko.monitoring")

_LEVELS: dict[str, int] = {
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "security": logging.WARNING,
}


@dataclass
class MonitoringEvent:
    type: EventType
    message: str
    context: str | None = None
    user_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "message": self.message,
            "context": self.context,
            "userId": self.user_id,
            "metadata": self.metadata,
            "timestamp": self.timestamp.isoformat(),
        }


class MonitoringService:
    """
    Keeps the last `max_events` events in memory (oldest evicted first)
    and mirrors each one to the standard logger.
    """

    def __init__(self, max_events: int = 1000):
        # appendleft keeps index 0 as the newest event
        self._events: deque[MonitoringEvent] = deque(maxlen=max_events)
        # middleware writes on the event loop, sync handlers read from the threadpool
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def _snapshot(self) -> list[MonitoringEvent]:
        with self._lock:
            return list(self._events)

    def log(
        self,
        type: EventType,
        message: str,
        context: str | None = None,
        user_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> MonitoringEvent:
        event = MonitoringEvent(
            type=type,
            message=message,
            context=context,
            user_id=user_id,
            metadata=metadata or {},
        )
        with self._lock:
            self._events.appendleft(event)
        logger.log(
            _LEVELS[type],
            "[%s] %s context=%s user=%s metadata=%s",
            type.upper(),
            message,
            context,
            user_id,
            event.metadata,
        )
        return event

    def log_error(self, message: str, context: str | None = None, user_id: str | None = None, metadata: dict[str, Any] | None = None) -> MonitoringEvent:
        return self.log("error", message, context, user_id, metadata)

    def log_warning(self, message: str, context: str | None = None, user_id: str | None = None, metadata: dict[str, Any] | None = None) -> MonitoringEvent:
        return self.log("warning", message, context, user_id, metadata)

    def log_info(self, message: str, context: str | None = None, user_id: str | None = None, metadata: dict[str, Any] | None = None) -> MonitoringEvent:
        return self.log("info", message, context, user_id, metadata)

    def log_security(self, message: str, context: str | None = None, user_id: str | None = None, metadata: dict[str, Any] | None = None) -> MonitoringEvent:
        return self.log("security", message, context, user_id, metadata)

    # ----- Domain helpers -----

    def log_api_call(
        self,
        method: str,
        path: str,
        status_code: int,
        duration_ms: float,
        user_id: str | None = None,
    ) -> MonitoringEvent:
        if status_code >= 400:
            level: EventType = "error"
        elif status_code >= 300:
            level = "warning"
        else:
            level = "info"
        return self.log(
            level,
            f"API {method} {path} - {status_code}",
            context="api",
            user_id=user_id,
            metadata={
                "method": method,
                "endpoint": path,
                "statusCode": status_code,
                "duration": round(duration_ms, 2),
            },
        )

    def log_auth_failure(self, reason: str, ip: str | None, user_id: str | None = None) -> MonitoringEvent:
        return self.log_security(
            "Authentication failure",
            context="auth",
            user_id=user_id,
            metadata={"reason": reason, "ip": ip},
        )

    # ----- Queries -----

    def recent_events(self, type: EventType | None = None, limit: int = 50) -> list[MonitoringEvent]:
        events = (e for e in self._snapshot() if type is None or e.type == type)
        out: list[MonitoringEvent] = []
        for event in events:
            if len(out) >= limit:
                break
            out.append(event)
        return out

    def _count_since(self, type: EventType, window_minutes: int) -> int:
        cutoff = datetime.now(timezone.utc) - timedelta(minutes=window_minutes)
        return sum(1 for e in self._snapshot() if e.type == type and e.timestamp > cutoff)

    def error_count(self, window_minutes: int = 60) -> int:
        return self._count_since("error", window_minutes)

    def security_event_count(self, window_minutes: int = 60) -> int:
        return self._count_since("security", window_minutes)


def get_monitoring(request: Request) -> MonitoringService:
    """FastAPI dependency returning the app-owned MonitoringService."""
    return request.app.state.monitoring
