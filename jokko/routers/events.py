# jokko/routers/events.py
from fastapi import APIRouter, Depends
from sqlmodel import Session

from jokko.database import get_session
from jokko.repositories.event_repo import EventRepository
from jokko.schemas.event import TrackEventRequest, TrackEventResult
from jokko.services.event_service import EventService

router = APIRouter(tags=["Events"])

repo = EventRepository()
service = EventService(repo)


@router.post("/track-event", response_model=TrackEventResult)
def track_event(
    payload: TrackEventRequest,
    session: Session = Depends(get_session),
):
    """
    Record a client analytics event (contact_click, provider_view, ...).

    Public endpoint.
    """
    service.track(session, payload)
    return TrackEventResult(success=True)
