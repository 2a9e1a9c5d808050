"""
Supabase service module for billing database access.

This module provides utilities for:
- Supabase client construction from application settings
- Access to the client owned by the running application

The client is created once during application startup and stored on
``app.state``; nothing here keeps a module-level client.
"""

import logging
from typing import Optional

from fastapi import Request
from supabase import create_client, Client

from app.config import Settings
from app.exceptions import StoreNotConfigured

logger = logging.getLogger(__name__)


def create_supabase_client(settings: Settings) -> Optional[Client]:
    """
    Create a Supabase client from settings, or None if not configured.

    Initialization errors are logged rather than raised so the API can still
    start and answer health checks; billing endpoints then report 503.

    Args:
        settings: Application settings with SUPABASE_URL/SUPABASE_SERVICE_KEY

    Returns:
        Initialized Supabase client instance, or None
    """
    if not settings.supabase_configured:
        logger.info("Supabase not configured (SUPABASE_URL/SUPABASE_SERVICE_KEY missing) - billing store disabled")
        return None

    try:
        client = create_client(settings.supabase_url, settings.supabase_service_key)
        logger.info("Supabase client initialized successfully")
        return client
    except Exception as e:
        logger.warning(f"Failed to initialize Supabase client: {str(e)}")
        return None


def get_supabase_client(request: Request) -> Client:
    """
    Get the application's Supabase client or raise error if not configured.

    Raises:
        StoreNotConfigured: 503 if Supabase is not configured
    """
    client = getattr(request.app.state, "supabase_client", None)
    if client is None:
        raise StoreNotConfigured(
            "Supabase not configured. Set SUPABASE_URL and SUPABASE_SERVICE_KEY environment variables."
        )
    return client
