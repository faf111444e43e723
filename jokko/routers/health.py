# jokko/routers/health.py
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlmodel import Session

from jokko.core.auth import require_admin
from jokko.core.dependencies import get_connection_schema
from jokko.core.monitoring import MonitoringService, get_monitoring
from jokko.database import get_session
from jokko.repositories.connection_repo import ConnectionSchema
from jokko.services.schema_service import SchemaService

router = APIRouter(tags=["Health"])

schema_service = SchemaService()


@router.get("/health")
def health(
    request: Request,
    monitoring: MonitoringService = Depends(get_monitoring),
):
    """
    Service health from the last hour of monitoring events.

    Returns 503 when unhealthy.
    """
    report = request.app.state.health.health(monitoring)
    code = (
        status.HTTP_503_SERVICE_UNAVAILABLE
        if report["status"] == "unhealthy"
        else status.HTTP_200_OK
    )
    return JSONResponse(status_code=code, content=report)


@router.get("/admin/monitoring", dependencies=[Depends(require_admin)])
def monitoring_report(
    request: Request,
    monitoring: MonitoringService = Depends(get_monitoring),
):
    """
    Recent monitoring events per type and error / security counts.
    """
    return request.app.state.health.monitoring_report(monitoring)


@router.get("/admin/schema-check", dependencies=[Depends(require_admin)])
def schema_check(
    session: Session = Depends(get_session),
    connection_schema: ConnectionSchema | None = Depends(get_connection_schema),
):
    """
    Tables, columns and row counts of the live database.
    """
    return schema_service.describe(session, session.get_bind(), connection_schema)
