from datetime import timedelta

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from events_api.database.db import utcnow
from events_api.models.events import Event
from events_api.models.joins import JoinRecord
from events_api.models.users import User

CHART_POINTS = 10


def get_admin_stats(db: Session, days: int | None = None) -> dict:
    """Dashboard rollups. ``days`` restricts the join-derived figures to a trailing window."""
    total_events = db.scalar(select(func.count(Event.id)))
    total_users = db.scalar(select(func.count(User.id)))

    join_filter = []
    if days:
        join_filter.append(JoinRecord.joined_date >= utcnow() - timedelta(days=days))

    totals = db.execute(
        select(func.count(JoinRecord.id), func.sum(JoinRecord.amount)).where(*join_filter)
    ).one()

    return {
        "total_events": int(total_events or 0),
        "total_users": int(total_users or 0),
        "total_joined": int(totals[0] or 0),
        "total_earnings": float(totals[1] or 0),
        "category_stats": get_category_stats(db),
        "chart_data": get_earnings_by_date(db, join_filter),
    }


def get_category_stats(db: Session) -> list[dict]:
    rows = db.execute(
        select(Event.category, func.count(Event.id))
        .group_by(Event.category)
        .order_by(Event.category)
    ).all()
    return [{"name": category, "value": int(count)} for category, count in rows]


def get_earnings_by_date(db: Session, join_filter: list | None = None, limit: int = CHART_POINTS) -> list[dict]:
    """Earliest ``limit`` days of earnings, oldest first."""
    day = func.date(JoinRecord.joined_date)
    rows = db.execute(
        select(day, func.sum(JoinRecord.amount))
        .where(*(join_filter or []))
        .group_by(day)
        .order_by(day)
        .limit(limit)
    ).all()
    return [{"name": str(d), "amount": float(amount or 0)} for d, amount in rows]
