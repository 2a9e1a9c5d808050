"""
Billing store backed by Supabase tables.

Tables:
- user_subscriptions: user_id, plan_name, subscription_id, last_payment_date, status
- pricing_plans: name, monthly_coins

The monthly credit job only needs three operations: list active
subscribers, list plan definitions, and stamp a subscriber's last credit
time. Reads raise on any store error; the job turns that into a FetchError.

Reads return raw rows. Row validation happens in the credit job, one row
at a time, so a single malformed row only affects its own subscriber.
"""

from datetime import datetime
from typing import Any, Dict, List

from supabase import Client

from app.utils.timestamp_utils import format_iso

SUBSCRIPTIONS_TABLE = "user_subscriptions"
PLANS_TABLE = "pricing_plans"
ACTIVE_STATUS = "active"


class SupabaseBillingStore:
    """Read/write access to subscription and pricing tables."""

    def __init__(self, client: Client):
        self._client = client

    def list_active_subscribers(self) -> List[Dict[str, Any]]:
        result = self._client.table(SUBSCRIPTIONS_TABLE).select(
            "user_id, plan_name, subscription_id, last_payment_date"
        ).eq("status", ACTIVE_STATUS).execute()
        return list(result.data or [])

    def list_plans(self) -> List[Dict[str, Any]]:
        result = self._client.table(PLANS_TABLE).select(
            "name, monthly_coins"
        ).execute()
        return list(result.data or [])

    def update_last_credit(self, user_id: str, when: datetime) -> None:
        """Persist the credit time so re-runs this month skip the subscriber."""
        self._client.table(SUBSCRIPTIONS_TABLE).update({
            "last_payment_date": format_iso(when)
        }).eq("user_id", user_id).execute()
