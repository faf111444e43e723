# jokko/schemas/event.py
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic import Field as PydanticField


class TrackEventRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    event_type: str = PydanticField(alias="eventType", max_length=50)
    payload: dict[str, Any] = PydanticField(default_factory=dict)

    @field_validator("event_type")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("eventType cannot be empty")
        return v


class TrackEventResult(BaseModel):
    success: bool = True
