"""
Coin ledger service for crediting user balances.

This module handles coin balance changes made by the billing side:

1. Read the user's user_coins row (balance, total_earned)
2. Write the new balance, total_earned, subscription tier and refresh time
3. Record a SUBSCRIPTION row in coin_transactions

A failure to record the transaction row is logged but does not undo or fail
the credit, since the balance has already been written. Every other store
error is logged and reported as False; callers never see an exception for
an expected store failure.
"""

import logging
import uuid

from supabase import Client

from app.utils.timestamp_utils import utc_now, format_iso

logger = logging.getLogger(__name__)

COINS_TABLE = "user_coins"
TRANSACTIONS_TABLE = "coin_transactions"
SUBSCRIPTION_TRANSACTION = "SUBSCRIPTION"


class SupabaseCoinLedger:
    """Coin balance mutations against the user_coins/coin_transactions tables."""

    def __init__(self, client: Client):
        self._client = client

    def add_subscription_coins(self, user_id: str, plan_name: str, coins: int) -> bool:
        """
        Add a plan's monthly coins to a user's balance.

        Args:
            user_id: Owner of the user_coins row
            plan_name: Plan the coins come from; also becomes the subscription tier
            coins: Number of coins to add

        Returns:
            True if the balance was updated, False otherwise
        """
        if not user_id:
            logger.error("Cannot add subscription coins: no user ID provided")
            return False

        logger.info(f"Adding {coins} coins for user {user_id} from {plan_name} subscription")

        try:
            result = self._client.table(COINS_TABLE).select(
                "balance, total_earned"
            ).eq("user_id", user_id).single().execute()
        except Exception as e:
            logger.error(f"Error fetching coins for user {user_id}: {str(e)}")
            return False

        if not result.data:
            logger.error(f"Coins record not found for user {user_id}")
            return False

        new_balance = (result.data.get("balance") or 0) + coins
        new_total_earned = (result.data.get("total_earned") or 0) + coins
        now = format_iso(utc_now())

        try:
            self._client.table(COINS_TABLE).update({
                "balance": new_balance,
                "total_earned": new_total_earned,
                "subscription_tier": plan_name.upper(),
                "last_coin_refresh": now
            }).eq("user_id", user_id).execute()
        except Exception as e:
            logger.error(f"Error updating coin balance for user {user_id}: {str(e)}")
            return False

        try:
            self._client.table(TRANSACTIONS_TABLE).insert({
                "user_id": user_id,
                "transaction_id": f"subscription_{uuid.uuid4().hex}",
                "type": SUBSCRIPTION_TRANSACTION,
                "amount": coins,
                "description": f"{plan_name} subscription coins",
                "created_at": now
            }).execute()
        except Exception as e:
            logger.warning(f"Coins added but transaction record failed for user {user_id}: {str(e)}")

        logger.info(f"Added {coins} coins to user {user_id}. New balance: {new_balance}")
        return True
