"""
Unit tests for utility modules.

This module tests:
- app/utils/timestamp_utils.py
- app/utils/logging_utils.py
- app/models/schemas.py validators
"""

import logging
from datetime import datetime, timezone, timedelta

import pytest

from app.models.schemas import Subscriber, PlanDefinition, CreditOutcome
from app.utils.logging_utils import get_run_logger, setup_logger
from app.utils.timestamp_utils import (
    ensure_utc,
    format_iso,
    is_same_calendar_month,
    utc_now,
)


class TestTimestampUtils:
    """Test timestamp utility functions."""

    def test_utc_now_is_aware(self):
        assert utc_now().tzinfo is not None
        assert utc_now().utcoffset() == timedelta(0)

    def test_ensure_utc_naive(self):
        value = ensure_utc(datetime(2026, 10, 1, 12, 0))
        assert value == datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)

    def test_ensure_utc_converts_offset(self):
        tz = timezone(timedelta(hours=-5))
        value = ensure_utc(datetime(2026, 9, 30, 22, 0, tzinfo=tz))
        assert (value.month, value.day, value.hour) == (10, 1, 3)

    def test_same_calendar_month(self):
        reference = datetime(2026, 10, 18, tzinfo=timezone.utc)
        assert is_same_calendar_month(datetime(2026, 10, 3, tzinfo=timezone.utc), reference)
        assert not is_same_calendar_month(datetime(2026, 9, 30, tzinfo=timezone.utc), reference)
        assert not is_same_calendar_month(datetime(2025, 10, 3, tzinfo=timezone.utc), reference)
        assert not is_same_calendar_month(None, reference)

    def test_same_calendar_month_across_offsets(self):
        # 23:30 on 31 Oct in UTC-5 is already November in UTC
        tz = timezone(timedelta(hours=-5))
        late_october_local = datetime(2026, 10, 31, 23, 30, tzinfo=tz)
        assert is_same_calendar_month(late_october_local, datetime(2026, 11, 2, tzinfo=timezone.utc))

    def test_format_iso(self):
        assert format_iso(datetime(2026, 10, 18, 12, 0)) == "2026-10-18T12:00:00+00:00"


class TestSchemas:
    """Test model validation of store rows."""

    def test_subscriber_parses_supabase_timestamp(self):
        subscriber = Subscriber.model_validate({
            "user_id": "u1",
            "plan_name": "Pro",
            "subscription_id": "I-XYZ",
            "last_payment_date": "2026-10-03T08:15:00.123456+00:00",
        })
        assert subscriber.last_payment_date.tzinfo is not None
        assert subscriber.last_payment_date.day == 3

    def test_subscriber_naive_timestamp_becomes_utc(self):
        subscriber = Subscriber(user_id="u1", plan_name="Pro", last_payment_date="2026-10-03T08:15:00")
        assert subscriber.last_payment_date.utcoffset() == timedelta(0)

    def test_plan_rejects_negative_coins(self):
        with pytest.raises(ValueError):
            PlanDefinition(name="Broken", monthly_coins=-1)

    def test_outcome_constructors(self):
        assert CreditOutcome.credited("u1", 500, "Pro").model_dump(exclude_none=True) == {
            "user_id": "u1", "status": "credited", "coins": 500, "plan": "Pro"
        }
        assert CreditOutcome.skipped("u1", "x").reason == "x"
        assert CreditOutcome.failed("u1", "y").status == "failed"


class TestLoggingUtils:
    """Test run logger setup."""

    def test_run_logger_injects_run_id(self):
        adapter = get_run_logger("credit-abc")
        assert adapter.extra == {"request_id": "credit-abc"}

    def test_setup_logger_is_idempotent(self):
        logger = setup_logger(logging.DEBUG, logger_name="test_credit_run_logger")
        setup_logger(logging.DEBUG, logger_name="test_credit_run_logger")
        assert len(logger.handlers) == 1
        assert logger.level == logging.DEBUG
