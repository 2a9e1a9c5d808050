"""
FastAPI dependency injection functions.

This module provides reusable dependencies for:
- Cron bearer key verification for the monthly credit trigger
- Billing store and coin ledger handles built from the app's Supabase client
"""

import secrets

from fastapi import Depends, Header
from supabase import Client

from app.config import get_settings
from app.exceptions import Unauthorized, Forbidden, ConfigurationError
from app.services.billing_store import SupabaseBillingStore
from app.services.ledger_service import SupabaseCoinLedger
from app.services.supabase_service import get_supabase_client


def verify_cron_key(authorization: str = Header(None)) -> bool:
    """
    Dependency to verify the cron bearer key from the Authorization header.

    Expected format: "Bearer <key>"

    Raises:
        Unauthorized (401) if the header is missing or malformed
        ConfigurationError (500) if SUBSCRIPTION_CRON_API_KEY is not configured
        Forbidden (403) if the key does not match
    """
    if not authorization:
        raise Unauthorized("Unauthorized")

    # Parse "Bearer <key>" format
    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise Unauthorized("Unauthorized")

    settings = get_settings()
    if not settings.subscription_cron_api_key:
        raise ConfigurationError("Cron API key not configured")

    if not secrets.compare_digest(parts[1].strip().encode(), settings.subscription_cron_api_key.encode()):
        raise Forbidden("Invalid API key")

    return True


def get_billing_store(client: Client = Depends(get_supabase_client)) -> SupabaseBillingStore:
    return SupabaseBillingStore(client)


def get_coin_ledger(client: Client = Depends(get_supabase_client)) -> SupabaseCoinLedger:
    return SupabaseCoinLedger(client)
