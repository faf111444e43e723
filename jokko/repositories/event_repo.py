# jokko/repositories/event_repo.py
from sqlmodel import Session

from jokko.models.event import Event


class EventRepository:
    """Write access to the analytics events table."""

    def create(self, session: Session, event: Event) -> Event:
        session.add(event)
        session.commit()
        session.refresh(event)
        return event
