import logging

import redis
from sqlalchemy import delete, exists, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from events_api.core.config import get_redis_url
from events_api.models.events import Event
from events_api.models.joins import FREE_TRANSACTION_ID, JoinRecord, JoinStatus
from events_api.services.errors import AlreadyJoinedError, JoinInProgressError, NotFoundError

logger = logging.getLogger(__name__)


def get_redis_client():
    """Get Redis client for locking."""
    return redis.from_url(get_redis_url(), decode_responses=True)


def join_event(
    db: Session,
    *,
    event_id: int,
    user_email: str,
    user_name: str | None = None,
    amount: float = 0,
    transaction_id: str | None = None,
) -> JoinRecord:
    """
    Join an event at most once per user.

    The unique (event_id, user_email) constraint is what guarantees a single
    join; the Redis lock makes concurrent attempts for the same pair queue up
    so the losers see a clean conflict instead of racing the insert.
    """
    redis_client = get_redis_client()
    lock_key = f"join_lock:{event_id}:{user_email}"
    lock = redis_client.lock(lock_key, timeout=10, blocking_timeout=5)

    try:
        acquired = lock.acquire(blocking=True)
    except redis.exceptions.LockError:  # type: ignore
        acquired = False
    if not acquired:
        raise JoinInProgressError("A join for this event is already in progress, please try again.")

    try:
        return _join_in_transaction(
            db,
            event_id=event_id,
            user_email=user_email,
            user_name=user_name,
            amount=amount,
            transaction_id=transaction_id,
        )
    finally:
        _release(lock, lock_key)


def _release(lock, lock_key: str) -> None:
    try:
        lock.release()
    except redis.exceptions.LockNotOwnedError:  # type: ignore
        # The lock expired mid-join; whatever the transaction did stands.
        logger.warning("Join lock %s expired before release", lock_key)


def _join_in_transaction(db: Session, **fields) -> JoinRecord:
    try:
        record = record_join(db, **fields)
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info("Duplicate join refused: event=%s user=%s", fields["event_id"], fields["user_email"])
        raise AlreadyJoinedError("You have already joined this event.")
    except NotFoundError:
        db.rollback()
        raise

    db.refresh(record)
    logger.info("User %s joined event %s", record.user_email, record.event_id)
    return record


def record_join(
    db: Session,
    *,
    event_id: int,
    user_email: str,
    user_name: str | None = None,
    amount: float = 0,
    transaction_id: str | None = None,
) -> JoinRecord:
    """Bump the participant counter and stage the join record. Does not commit."""
    # Counter and record go out in the same transaction so they cannot drift.
    stmt = (
        update(Event)
        .where(Event.id == event_id)
        .values(participants=Event.participants + 1)
    )
    res = db.execute(stmt)
    if res.rowcount != 1:  # type: ignore
        raise NotFoundError("Event not found.")

    amount = amount or 0
    record = JoinRecord(
        event_id=event_id,
        user_email=user_email,
        user_name=user_name,
        amount=amount,
        transaction_id=transaction_id or FREE_TRANSACTION_ID,
        status=JoinStatus.PENDING.value if amount > 0 else JoinStatus.SUCCESS.value,
    )
    db.add(record)
    db.flush()  # raises IntegrityError on a duplicate join
    return record


def is_joined(db: Session, event_id: int, email: str) -> bool:
    stmt = select(
        exists().where(JoinRecord.event_id == event_id, JoinRecord.user_email == email)
    )
    return bool(db.scalar(stmt))


def list_for_user(db: Session, email: str) -> list[JoinRecord]:
    """User's joins, newest first, with their events eagerly loaded.

    ``record.event`` is None when the event no longer exists.
    """
    stmt = (
        select(JoinRecord)
        .options(joinedload(JoinRecord.event))
        .where(JoinRecord.user_email == email)
        .order_by(JoinRecord.joined_date.desc(), JoinRecord.id.desc())
    )
    return list(db.scalars(stmt))


def _newest_first():
    return select(JoinRecord).order_by(JoinRecord.joined_date.desc(), JoinRecord.id.desc())


def list_recent(db: Session, limit: int = 10) -> list[JoinRecord]:
    return list(db.scalars(_newest_first().limit(limit)))


def list_all(db: Session) -> list[JoinRecord]:
    return list(db.scalars(_newest_first()))


def list_donations(db: Session) -> list[JoinRecord]:
    return list(db.scalars(_newest_first().where(JoinRecord.amount > 0)))


def update_join_status(db: Session, join_id: int, status: str) -> JoinRecord:
    record = db.get(JoinRecord, join_id)
    if not record:
        raise NotFoundError("Join record not found.")
    record.status = status
    db.commit()
    db.refresh(record)
    logger.info("Join %s status set to %s", join_id, status)
    return record


def delete_join(db: Session, join_id: int) -> None:
    record = db.get(JoinRecord, join_id)
    if not record:
        raise NotFoundError("Join record not found.")

    event_id = record.event_id
    db.execute(
        update(Event)
        .where(Event.id == event_id, Event.participants > 0)
        .values(participants=Event.participants - 1)
    )
    db.delete(record)
    db.commit()
    logger.info("Join %s removed from event %s", join_id, event_id)


def delete_joins_for_event(db: Session, event_id: int) -> int:
    """Stage removal of every join of an event. Does not commit."""
    res = db.execute(delete(JoinRecord).where(JoinRecord.event_id == event_id))
    return res.rowcount or 0  # type: ignore


def finalize_join(db: Session, join_id: int) -> None:
    if db.in_transaction():
        # Use existing transaction and commit it
        _finalize_join_in_transaction(db, join_id)
        db.commit()
    else:
        with db.begin():
            _finalize_join_in_transaction(db, join_id)


def _finalize_join_in_transaction(db: Session, join_id: int) -> None:
    record = db.get(JoinRecord, join_id)
    if not record or record.status != JoinStatus.PENDING.value:
        return
    record.status = JoinStatus.SUCCESS.value
