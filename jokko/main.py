# jokko/main.py
from contextlib import asynccontextmanager
import logging
import time

from fastapi.middleware.cors import CORSMiddleware
from fastapi import FastAPI, Request

from jokko.core.config import get_settings
from jokko.core.monitoring import MonitoringService
from jokko.database import create_db_and_tables, engine
from jokko.repositories.connection_repo import detect_connection_schema
from jokko.services.health_service import HealthService

# Import models so SQLModel metadata is populated before create_all()
from jokko.models import user as _user_models  # noqa: F401
from jokko.models import provider as _provider_models  # noqa: F401
from jokko.models import recommendation as _recommendation_models  # noqa: F401
from jokko.models import connection as _connection_models  # noqa: F401
from jokko.models import event as _event_models  # noqa: F401

# Routers
from jokko.routers.providers import router as providers_router
from jokko.routers.events import router as events_router
from jokko.routers.admin_auth import router as admin_auth_router
from jokko.routers.admin_providers import router as admin_providers_router
from jokko.routers.admin_users import router as admin_users_router
from jokko.routers.admin_stats import router as admin_stats_router
from jokko.routers.health import router as health_router

settings = get_settings()

VERSION = "0.1.0"

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
      - Verify DB connectivity and create tables.
      - Detect the shape of the `connection` table once.

    Shutdown:
      - No special cleanup needed for sync engine.
    """
    logger.info("Startup: connecting to database...")
    try:
        create_db_and_tables()
        logger.info("Startup: DB connection OK, tables verified.")
    except Exception as e:
        logger.error(f"Startup: DB connection FAILED: {e}")
        raise

    app.state.connection_schema = detect_connection_schema(engine)
    logger.info(f"Startup: connection schema = {app.state.connection_schema}")
    yield


app = FastAPI(
    title=settings.PROJECT_NAME or "Jokko Referral API",
    version=VERSION,
    lifespan=lifespan,
)

# App-owned observability, reached through dependencies
app.state.monitoring = MonitoringService(settings.MONITORING_MAX_EVENTS)
app.state.health = HealthService(VERSION)
app.state.connection_schema = None


# --- CORS configuration ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def record_api_call(request: Request, call_next):
    """Log every request to the monitoring buffer."""
    started = time.perf_counter()
    response = await call_next(request)
    request.app.state.monitoring.log_api_call(
        request.method,
        request.url.path,
        response.status_code,
        (time.perf_counter() - started) * 1000,
    )
    return response


# Versioned API prefix, e.g. /api/v1
app.include_router(providers_router, prefix=settings.API_V1_STR)
app.include_router(events_router, prefix=settings.API_V1_STR)
app.include_router(admin_auth_router, prefix=settings.API_V1_STR)
app.include_router(admin_providers_router, prefix=settings.API_V1_STR)
app.include_router(admin_users_router, prefix=settings.API_V1_STR)
app.include_router(admin_stats_router, prefix=settings.API_V1_STR)
app.include_router(health_router, prefix=settings.API_V1_STR)


@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "jokko-backend"}
