"""
Pydantic models for billing records and credit run reports.

This module contains the Pydantic BaseModel schemas used to validate rows
read from the billing store and to shape the monthly credit response.
"""

from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from app.utils.timestamp_utils import ensure_utc


CREDITED = "credited"
SKIPPED = "skipped"
FAILED = "failed"


class Subscriber(BaseModel):
    """Active subscription row from user_subscriptions."""
    user_id: str
    plan_name: Optional[str] = None
    subscription_id: Optional[str] = None
    last_payment_date: Optional[datetime] = Field(
        None, description="Last time monthly coins were credited (UTC)"
    )

    @field_validator("last_payment_date")
    @classmethod
    def _normalize_last_payment_date(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value) if value is not None else None


class PlanDefinition(BaseModel):
    """Pricing plan row: plan name -> monthly coin allotment."""
    name: str
    monthly_coins: int = Field(0, ge=0)

    @field_validator("monthly_coins", mode="before")
    @classmethod
    def _null_coins_as_zero(cls, value):
        return 0 if value is None else value


class CreditOutcome(BaseModel):
    """Result for one subscriber in a credit run."""
    user_id: str
    status: Literal["credited", "skipped", "failed"]
    coins: Optional[int] = None
    plan: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def credited(cls, user_id: str, coins: int, plan: str) -> "CreditOutcome":
        return cls(user_id=user_id, status=CREDITED, coins=coins, plan=plan)

    @classmethod
    def skipped(cls, user_id: str, reason: str) -> "CreditOutcome":
        return cls(user_id=user_id, status=SKIPPED, reason=reason)

    @classmethod
    def failed(cls, user_id: str, reason: str) -> "CreditOutcome":
        return cls(user_id=user_id, status=FAILED, reason=reason)


class CreditReport(BaseModel):
    """Response with per-subscriber outcomes: success, processed, summary, results[]."""
    success: bool = True
    run_id: str
    processed: int
    summary: Dict[str, int]
    results: List[CreditOutcome]


class ErrorResponse(BaseModel):
    """Body returned for 401/403/500/503 responses."""
    error: str
