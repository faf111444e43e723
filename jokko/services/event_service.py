# jokko/services/event_service.py
from sqlmodel import Session

from jokko.models.event import Event
from jokko.repositories.event_repo import EventRepository
from jokko.schemas.event import TrackEventRequest
from jokko.services.stats_service import parse_uuid


class EventService:
    """
    Stores client analytics events.
    """

    def __init__(self, repo: EventRepository):
        self.repo = repo

    def track(self, session: Session, payload: TrackEventRequest) -> Event:
        """
        Insert an event; `payload.user_id` becomes the event's user_id
        when it is a valid UUID.
        """
        return self.repo.create(
            session,
            Event(
                event_type=payload.event_type,
                event_payload=payload.payload,
                user_id=parse_uuid(payload.payload.get("user_id")),
            ),
        )
