from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from events_api.core.security import Principal, require_admin
from events_api.database.db import get_db
from events_api.schemas.reports import AdminStatsOut
from events_api.services.reports import get_admin_stats

router = APIRouter(prefix="/api", tags=["reports"])


@router.get("/admin-stats", response_model=AdminStatsOut)
def admin_stats(
    days: int | None = Query(None, ge=1),
    _: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Dashboard totals and chart series; ``days`` windows the join figures."""
    return get_admin_stats(db, days)
