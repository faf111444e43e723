# jokko/core/dependencies.py
from fastapi import Request

from jokko.repositories.connection_repo import ConnectionSchema


def get_connection_schema(request: Request) -> ConnectionSchema | None:
    """
    Shape of the `connection` table detected at startup.

    None when detection found nothing usable; readers then probe.
    """
    return getattr(request.app.state, "connection_schema", None)
