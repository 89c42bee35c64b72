"""
Test service functions.
"""
from datetime import timedelta

import pytest
from sqlalchemy.orm import Session

from events_api.core.config import settings
from events_api.core.security import Principal
from events_api.database.db import utcnow
from events_api.models.events import Event
from events_api.models.joins import JoinRecord, JoinStatus
from events_api.models.users import User
from events_api.schemas.events import EventCreate, EventUpdate
from events_api.services import events as event_service
from events_api.services import joins as join_service
from events_api.services.errors import (
    AlreadyJoinedError,
    ForbiddenError,
    NotFoundError,
)
from events_api.services.reports import get_admin_stats
from events_api.services.users import create_user, resolve_role, update_user
from events_api.tests.factories import add_event, add_join, add_user

OWNER = Principal(email="owner@example.com")
STRANGER = Principal(email="stranger@example.com")
ADMIN = Principal(email="admin@example.com", role="admin")


def new_event(**overrides) -> EventCreate:
    data = {"eventName": "Beach Cleanup", "category": "Cleanup", "eventDate": utcnow() + timedelta(days=3)}
    data.update(overrides)
    return EventCreate(**data)


class TestUserService:
    """Test user service functions."""

    def test_create_user_is_idempotent(self, db_session: Session):
        """A second insert for the same email is a no-op."""
        user, created = create_user(db_session, email="a@example.com", display_name="A")
        again, created_again = create_user(db_session, email="a@example.com", display_name="Other")

        assert created is True
        assert created_again is False
        assert again.id == user.id
        assert again.display_name == "A"
        assert db_session.query(User).count() == 1

    def test_resolve_role_defaults_for_unknown_email(self, db_session: Session):
        """Unknown users resolve as active plain users."""
        assert resolve_role(db_session, "ghost@example.com") == {"role": "user", "status": "active"}

    def test_update_user(self, db_session: Session):
        """Admins can change status and role independently."""
        user = add_user(db_session, "a@example.com")

        update_user(db_session, user.id, status="suspended")
        assert resolve_role(db_session, "a@example.com") == {"role": "user", "status": "suspended"}

        update_user(db_session, user.id, role="admin")
        assert resolve_role(db_session, "a@example.com") == {"role": "admin", "status": "suspended"}

    def test_update_missing_user(self, db_session: Session):
        with pytest.raises(NotFoundError):
            update_user(db_session, 99999, status="active")


class TestEventService:
    """Test event repository functions."""

    def test_create_event_auto_joins_organizer(self, db_session: Session):
        """The organizer becomes the first participant."""
        event = event_service.create_event(db_session, new_event(), OWNER)

        assert event.organizer_email == OWNER.email
        assert event.participants == 1
        assert event.status == "active"
        assert join_service.is_joined(db_session, event.id, OWNER.email)

        record = db_session.query(JoinRecord).filter_by(event_id=event.id).one()
        assert record.transaction_id == "organizer"
        assert record.amount == 0

    def test_create_event_without_auto_join(self, db_session: Session, monkeypatch):
        monkeypatch.setattr(settings, "organizer_auto_join", False)

        event = event_service.create_event(db_session, new_event(), OWNER)

        assert event.participants == 0
        assert not join_service.is_joined(db_session, event.id, OWNER.email)

    def test_suspended_user_cannot_create(self, db_session: Session):
        suspended = Principal(email="owner@example.com", status="suspended")
        with pytest.raises(ForbiddenError):
            event_service.create_event(db_session, new_event(), suspended)
        assert db_session.query(Event).count() == 0

    def test_organizer_email_ignored_for_non_admin(self, db_session: Session):
        """Only admins may post on behalf of someone else."""
        event = event_service.create_event(db_session, new_event(organizerEmail="other@example.com"), OWNER)
        assert event.organizer_email == OWNER.email

        event = event_service.create_event(db_session, new_event(organizerEmail="other@example.com"), ADMIN)
        assert event.organizer_email == "other@example.com"

    def test_list_upcoming_filters_and_sorts(self, db_session: Session):
        """Only future, active events matching category and name, soonest first."""
        later = add_event(db_session, event_name="River Cleanup Drive", days_ahead=10)
        sooner = add_event(db_session, event_name="Park CLEANUP", days_ahead=2)
        add_event(db_session, event_name="Old Cleanup", days_ahead=-1)
        add_event(db_session, event_name="Cleanup Cancelled", days_ahead=5, status="cancelled")
        add_event(db_session, event_name="Cleanup Trees", category="Plantation", days_ahead=4)
        add_event(db_session, event_name="Food Drive", days_ahead=3)

        events = event_service.list_upcoming(db_session, category="Cleanup", search="cleanup")

        assert [e.id for e in events] == [sooner.id, later.id]

    def test_list_upcoming_all_category(self, db_session: Session):
        add_event(db_session, category="Cleanup")
        add_event(db_session, category="Plantation")

        assert len(event_service.list_upcoming(db_session, category="all")) == 2

    def test_search_treats_wildcards_literally(self, db_session: Session):
        add_event(db_session, event_name="100% Recycled")
        add_event(db_session, event_name="1000 Trees")

        events = event_service.list_upcoming(db_session, search="100%")
        assert [e.event_name for e in events] == ["100% Recycled"]

    def test_can_modify(self, db_session: Session):
        event = add_event(db_session, OWNER.email)

        assert event_service.can_modify(OWNER, event)
        assert event_service.can_modify(ADMIN, event)
        assert not event_service.can_modify(STRANGER, event)

    def test_update_by_owner(self, db_session: Session):
        event = add_event(db_session, OWNER.email)

        updated = event_service.update_event(
            db_session, event.id, EventUpdate(eventName="Renamed", location="Dhaka"), OWNER
        )

        assert updated.event_name == "Renamed"
        assert updated.location == "Dhaka"
        assert updated.category == "Cleanup"

    def test_update_by_stranger_is_forbidden(self, db_session: Session):
        """A non-owner update never mutates the event."""
        event = add_event(db_session, OWNER.email, event_name="Original")

        with pytest.raises(ForbiddenError):
            event_service.update_event(db_session, event.id, EventUpdate(eventName="Hijacked"), STRANGER)

        db_session.refresh(event)
        assert event.event_name == "Original"

    def test_update_missing_event_is_not_found(self, db_session: Session):
        with pytest.raises(NotFoundError):
            event_service.update_event(db_session, 99999, EventUpdate(eventName="X"), ADMIN)

    def test_null_status_from_owner_is_ignored(self, db_session: Session):
        """A full form with an empty status is an ordinary owner edit."""
        event = add_event(db_session, OWNER.email)

        updated = event_service.update_event(
            db_session, event.id, EventUpdate(eventName="Renamed", status=None), OWNER
        )

        assert updated.event_name == "Renamed"
        assert updated.status == "active"

    def test_status_change_requires_admin(self, db_session: Session):
        event = add_event(db_session, OWNER.email)

        with pytest.raises(ForbiddenError):
            event_service.update_event(db_session, event.id, EventUpdate(status="cancelled"), OWNER)

        updated = event_service.update_event(db_session, event.id, EventUpdate(status="cancelled"), ADMIN)
        assert updated.status == "cancelled"

    def test_delete_cascades_to_joins(self, db_session: Session):
        """Deleting an event removes every join that references it."""
        event = add_event(db_session, OWNER.email)
        other = add_event(db_session, OWNER.email)
        add_join(db_session, event.id, "a@example.com")
        add_join(db_session, event.id, "b@example.com")
        add_join(db_session, other.id, "a@example.com")
        event_id = event.id

        removed = event_service.delete_event(db_session, event_id, OWNER)

        assert removed == 2
        assert event_service.resolve_event(db_session, event_id) is None
        assert db_session.query(JoinRecord).filter_by(event_id=event_id).count() == 0
        assert db_session.query(JoinRecord).filter_by(event_id=other.id).count() == 1

    def test_delete_by_stranger_is_forbidden(self, db_session: Session):
        event = add_event(db_session, OWNER.email)
        add_join(db_session, event.id, "a@example.com")

        with pytest.raises(ForbiddenError):
            event_service.delete_event(db_session, event.id, STRANGER)

        assert event_service.resolve_event(db_session, event.id) is not None
        assert db_session.query(JoinRecord).filter_by(event_id=event.id).count() == 1

    def test_list_for_management(self, db_session: Session):
        add_event(db_session, OWNER.email)
        add_event(db_session, "someone@example.com")

        assert len(event_service.list_for_management(db_session, OWNER)) == 1
        assert len(event_service.list_for_management(db_session, ADMIN)) == 2


class TestJoinService:
    """Test join ledger functions."""

    def test_join_increments_participants(self, db_session: Session):
        event = add_event(db_session)

        record = join_service.join_event(db_session, event_id=event.id, user_email="a@example.com")

        assert record.id is not None
        assert record.amount == 0
        assert record.transaction_id == "free"
        assert record.status == JoinStatus.SUCCESS.value
        db_session.refresh(event)
        assert event.participants == 1

    def test_counter_matches_number_of_joins(self, db_session: Session):
        event = add_event(db_session, participants=0)

        for i in range(5):
            join_service.join_event(db_session, event_id=event.id, user_email=f"user{i}@example.com")

        db_session.refresh(event)
        assert event.participants == 5

    def test_second_join_conflicts_and_leaves_counter(self, db_session: Session):
        event = add_event(db_session)
        join_service.join_event(db_session, event_id=event.id, user_email="a@example.com")

        with pytest.raises(AlreadyJoinedError):
            join_service.join_event(db_session, event_id=event.id, user_email="a@example.com")

        db_session.refresh(event)
        assert event.participants == 1
        assert db_session.query(JoinRecord).count() == 1

    def test_join_missing_event(self, db_session: Session):
        with pytest.raises(NotFoundError):
            join_service.join_event(db_session, event_id=99999, user_email="a@example.com")
        assert db_session.query(JoinRecord).count() == 0

    def test_paid_join_starts_pending(self, db_session: Session):
        event = add_event(db_session)

        record = join_service.join_event(
            db_session, event_id=event.id, user_email="a@example.com", amount=25.5, transaction_id="pi_123"
        )

        assert record.status == JoinStatus.PENDING.value
        assert record.amount == 25.5
        assert record.transaction_id == "pi_123"

    def test_list_for_user_enriches_and_tolerates_dangling(self, db_session: Session):
        event = add_event(db_session, event_name="Blood Drive")
        add_join(db_session, event.id, "a@example.com", days_ago=1)
        add_join(db_session, 99999, "a@example.com")  # event no longer exists
        add_join(db_session, event.id, "b@example.com")

        records = join_service.list_for_user(db_session, "a@example.com")

        assert len(records) == 2
        assert records[0].event is None
        assert records[1].event.event_name == "Blood Drive"

    def test_admin_views(self, db_session: Session):
        event = add_event(db_session)
        oldest = add_join(db_session, event.id, "a@example.com", days_ago=3)
        paid = add_join(db_session, event.id, "b@example.com", amount=10, days_ago=2)
        newest = add_join(db_session, event.id, "c@example.com", days_ago=1)

        assert [r.id for r in join_service.list_recent(db_session, 2)] == [newest.id, paid.id]
        assert [r.id for r in join_service.list_all(db_session)] == [newest.id, paid.id, oldest.id]
        assert [r.id for r in join_service.list_donations(db_session)] == [paid.id]

    def test_update_join_status(self, db_session: Session):
        event = add_event(db_session)
        record = add_join(db_session, event.id, "a@example.com", amount=5, status="pending")

        updated = join_service.update_join_status(db_session, record.id, "failed")
        assert updated.status == "failed"

        with pytest.raises(NotFoundError):
            join_service.update_join_status(db_session, 99999, "success")

    def test_delete_join_decrements_participants(self, db_session: Session):
        event = add_event(db_session)
        record = join_service.join_event(db_session, event_id=event.id, user_email="a@example.com")

        join_service.delete_join(db_session, record.id)

        db_session.refresh(event)
        assert event.participants == 0
        assert not join_service.is_joined(db_session, event.id, "a@example.com")

    def test_delete_join_never_goes_negative(self, db_session: Session):
        event = add_event(db_session, participants=0)
        record = add_join(db_session, event.id, "a@example.com")

        join_service.delete_join(db_session, record.id)

        db_session.refresh(event)
        assert event.participants == 0

    def test_finalize_join(self, db_session: Session):
        event = add_event(db_session)
        record = add_join(db_session, event.id, "a@example.com", amount=5, status="pending")

        join_service.finalize_join(db_session, record.id)

        db_session.refresh(record)
        assert record.status == JoinStatus.SUCCESS.value

    def test_finalize_leaves_moderated_joins_alone(self, db_session: Session):
        event = add_event(db_session)
        record = add_join(db_session, event.id, "a@example.com", amount=5, status="failed")

        join_service.finalize_join(db_session, record.id)

        db_session.refresh(record)
        assert record.status == "failed"

    def test_finalize_nonexistent_join(self, db_session: Session):
        # Should not raise an error
        join_service.finalize_join(db_session, 99999)


class TestReportService:
    """Test dashboard rollups."""

    def test_admin_stats(self, db_session: Session):
        add_user(db_session, "a@example.com")
        add_user(db_session, "b@example.com")
        cleanup = add_event(db_session, category="Cleanup")
        add_event(db_session, category="Cleanup")
        add_event(db_session, category="Plantation")
        add_join(db_session, cleanup.id, "a@example.com", amount=10)
        add_join(db_session, cleanup.id, "b@example.com", amount=5.5)
        add_join(db_session, cleanup.id, "c@example.com")

        stats = get_admin_stats(db_session)

        assert stats["total_events"] == 3
        assert stats["total_users"] == 2
        assert stats["total_joined"] == 3
        assert stats["total_earnings"] == 15.5
        assert stats["category_stats"] == [
            {"name": "Cleanup", "value": 2},
            {"name": "Plantation", "value": 1},
        ]
        assert len(stats["chart_data"]) == 1
        assert stats["chart_data"][0]["amount"] == 15.5
        assert stats["chart_data"][0]["name"] == utcnow().date().isoformat()

    def test_admin_stats_window(self, db_session: Session):
        event = add_event(db_session)
        add_join(db_session, event.id, "old@example.com", amount=100, days_ago=30)
        add_join(db_session, event.id, "new@example.com", amount=20, days_ago=1)

        stats = get_admin_stats(db_session, days=7)
        assert stats["total_joined"] == 1
        assert stats["total_earnings"] == 20
        assert len(stats["chart_data"]) == 1

        stats = get_admin_stats(db_session)
        assert stats["total_joined"] == 2
        assert stats["total_earnings"] == 120
        assert [p["name"] for p in stats["chart_data"]] == sorted(p["name"] for p in stats["chart_data"])

    def test_chart_keeps_earliest_ten_days(self, db_session: Session):
        event = add_event(db_session)
        for i in range(12):
            add_join(db_session, event.id, f"user{i}@example.com", amount=i + 1, days_ago=12 - i)

        chart = get_admin_stats(db_session)["chart_data"]

        assert len(chart) == 10
        assert [p["amount"] for p in chart] == [float(i + 1) for i in range(10)]

    def test_admin_stats_empty_database(self, db_session: Session):
        stats = get_admin_stats(db_session)

        assert stats["total_events"] == 0
        assert stats["total_users"] == 0
        assert stats["total_joined"] == 0
        assert stats["total_earnings"] == 0
        assert stats["category_stats"] == []
        assert stats["chart_data"] == []
