from events_api.core.celery_config import celery_app
from events_api.database.db import SessionLocal
from events_api.services.joins import finalize_join


@celery_app.task(bind=True)
def finalize_join_task(self, join_id: int):
    """Confirm a pending paid join once it has been recorded."""
    db = SessionLocal()
    try:
        finalize_join(db, join_id)
    finally:
        db.close()
