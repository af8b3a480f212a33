"""
Tests for the report cycle scheduler

Covers lazy creation, due-date arithmetic, days remaining and advancing.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from models import UserReportCycle
from services import report_cycle

from services.report_cycle import (
    CycleCreationError,
    advance,
    days_remaining,
    get_cycle,
    get_or_create_cycle,
    is_due,
)
from services.report_inputs import as_utc

ACCOUNT_CREATED = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def cycle(db_session, test_athlete):
    return get_or_create_cycle(db_session, str(test_athlete.id), lambda: ACCOUNT_CREATED)


class TestCycleCreation:

    def test_starts_at_account_creation(self, cycle):
        assert as_utc(cycle.cycle_start_date) == ACCOUNT_CREATED
        assert as_utc(cycle.next_report_date) == ACCOUNT_CREATED + timedelta(days=30)
        assert cycle.reports_generated == 0

    def test_created_once(self, db_session, test_athlete, cycle):
        calls = []

        def created_at():
            calls.append(1)
            return ACCOUNT_CREATED - timedelta(days=100)

        again = get_or_create_cycle(db_session, str(test_athlete.id), created_at)
        assert again.id == cycle.id
        assert calls == []

    def test_unknown_creation_date_starts_now(self, db_session, test_athlete):
        now = datetime(2024, 6, 1, 12, tzinfo=timezone.utc)
        cycle = get_or_create_cycle(db_session, str(test_athlete.id), lambda: None, now=now)
        assert as_utc(cycle.cycle_start_date) == now

    def test_store_failure_raises(self):
        db = MagicMock()
        db.query.return_value.filter.return_value.first.return_value = None
        db.commit.side_effect = OperationalError("INSERT", {}, Exception("db down"))

        with pytest.raises(CycleCreationError):
            get_or_create_cycle(db, "00000000-0000-0000-0000-000000000001", lambda: ACCOUNT_CREATED)
        db.rollback.assert_called_once()

    def test_concurrent_creation_returns_existing_cycle(self, db_session, test_athlete, cycle):
        """Another request inserted the cycle between our lookup and our insert."""
        real_get_cycle = report_cycle.get_cycle
        lookups = []

        def lookup(db, athlete_id):
            lookups.append(athlete_id)
            if len(lookups) == 1:
                return None
            return real_get_cycle(db, athlete_id)

        with patch.object(report_cycle, "get_cycle", side_effect=lookup):
            result = get_or_create_cycle(
                db_session, str(test_athlete.id), lambda: ACCOUNT_CREATED - timedelta(days=5)
            )

        assert result.id == cycle.id
        assert as_utc(result.cycle_start_date) == ACCOUNT_CREATED
        assert db_session.query(UserReportCycle).count() == 1

    def test_duplicate_without_existing_cycle_raises(self):
        db = MagicMock()
        db.query.return_value.filter.return_value.first.return_value = None
        db.commit.side_effect = IntegrityError("INSERT", {}, Exception("duplicate key"))

        with pytest.raises(CycleCreationError):
            get_or_create_cycle(db, "00000000-0000-0000-0000-000000000001", lambda: ACCOUNT_CREATED)
        db.rollback.assert_called_once()


class TestDueDate:

    def test_not_due_one_day_early(self, cycle):
        assert is_due(cycle, ACCOUNT_CREATED + timedelta(days=29)) is False

    def test_due_on_next_report_date(self, cycle):
        assert is_due(cycle, ACCOUNT_CREATED + timedelta(days=30)) is True
        assert is_due(cycle, ACCOUNT_CREATED + timedelta(days=45)) is True

    def test_force_is_always_due(self, cycle):
        assert is_due(cycle, ACCOUNT_CREATED, force=True) is True

    def test_days_remaining(self, cycle):
        assert days_remaining(cycle, ACCOUNT_CREATED) == 30
        assert days_remaining(cycle, ACCOUNT_CREATED + timedelta(days=29)) == 1
        # partial days round up
        assert days_remaining(cycle, ACCOUNT_CREATED + timedelta(days=29, hours=1)) == 1
        assert days_remaining(cycle, ACCOUNT_CREATED + timedelta(days=31)) == 0


class TestAdvance:

    def test_advance_moves_window_forward(self, db_session, test_athlete, cycle):
        period_end = as_utc(cycle.next_report_date)
        advance(db_session, cycle, period_end)

        stored = get_cycle(db_session, str(test_athlete.id))
        assert as_utc(stored.cycle_start_date) == period_end
        assert as_utc(stored.next_report_date) == period_end + timedelta(days=30)
        assert stored.reports_generated == 1

    def test_window_length_is_constant(self, db_session, cycle):
        for _ in range(3):
            advance(db_session, cycle, as_utc(cycle.next_report_date))
            assert as_utc(cycle.next_report_date) - as_utc(cycle.cycle_start_date) == timedelta(days=30)
        assert cycle.reports_generated == 3
