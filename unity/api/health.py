"""Liveness probe: reports version, environment and whether the database answers."""

from fastapi import APIRouter

from unity import __version__
from unity.api.deps import AppSettings, DbSession
from unity.core.database import check_db_connected
from unity.schemas.health import HealthResponse

router = APIRouter()


@router.get("", response_model=HealthResponse)
def get_health(db: DbSession, settings: AppSettings) -> HealthResponse:
    """Always 200 while the process is up; `database` says if SELECT 1 succeeded."""
    return HealthResponse(
        version=__version__,
        environment=settings.APP_ENV,
        database="connected" if check_db_connected(db) else "disconnected",
    )
