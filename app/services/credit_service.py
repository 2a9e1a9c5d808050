"""
Credit service for the monthly subscription coin run.

This module handles the reconciliation run that credits every active
subscriber with their plan's monthly coins, triggered by the cron endpoint
or the in-process scheduler.

Run Flow:
1. Fetch active subscribers (abort with FetchError on store failure)
2. Fetch pricing plans (abort with FetchError on store failure)
3. Build plan name -> monthly coins lookup (invalid plan rows left out)
4. For each subscriber row, in fetched order:
   a. Fail a row that does not validate, without touching the ledger
   b. Skip duplicate rows for a user already seen in this run
   c. Skip if already credited this calendar month
   d. Skip if the plan is unknown, missing or worth zero coins
   e. Add coins through the ledger
   f. Stamp last_payment_date so a re-run this month skips them
5. Return report with per-subscriber outcomes

Subscribers are processed one at a time and each is committed on its own;
one subscriber's failure never stops the others.

Store and ledger are passed in by the caller. The store needs
list_active_subscribers() and list_plans() returning rows (dicts or models)
and update_last_credit(user_id, when);
the ledger needs add_subscription_coins(user_id, plan_name, coins) -> bool.
"""

import uuid
from collections import Counter
from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Set

from pydantic import ValidationError

from app.exceptions import FetchError
from app.models.schemas import CreditOutcome, CreditReport, PlanDefinition, Subscriber, CREDITED, SKIPPED, FAILED
from app.utils.logging_utils import get_run_logger
from app.utils.timestamp_utils import utc_now, ensure_utc, is_same_calendar_month

REASON_ALREADY_CREDITED = "already credited this month"
REASON_INVALID_PLAN = "invalid plan or zero coins"
REASON_DUPLICATE = "duplicate subscriber row"
REASON_LEDGER_FAILED = "failed to add coins"
REASON_INVALID_ROW = "invalid subscriber row"


def _new_run_id() -> str:
    return f"credit-{uuid.uuid4().hex[:8]}"


def _row_user_id(row: Any) -> str:
    if isinstance(row, Subscriber):
        return row.user_id
    if isinstance(row, dict) and row.get("user_id"):
        return str(row["user_id"])
    return "unknown"


def build_plan_coins(rows: Iterable[Any], log) -> Dict[str, int]:
    """
    Build plan name -> monthly coins from pricing rows.

    Rows that fail validation (negative or non-numeric coins, missing name)
    are left out with a warning; subscribers on those plans are then skipped
    as having an invalid plan.
    """
    plan_coins = {}
    for row in rows:
        try:
            plan = PlanDefinition.model_validate(row)
        except ValidationError as e:
            log.warning(f"Ignoring invalid pricing plan row {row!r}: {e.errors()[0].get('msg')}")
            continue
        plan_coins[plan.name] = plan.monthly_coins
    return plan_coins


def credit_subscriber(
    subscriber: Subscriber,
    plan_coins: Dict[str, int],
    store,
    ledger,
    now: datetime,
    log=None
) -> CreditOutcome:
    """
    Decide and apply the monthly credit for one subscriber.

    Args:
        subscriber: Active subscription row
        plan_coins: Plan name -> monthly coins for this run
        store: Billing store used to stamp the credit time
        ledger: Coin ledger used to add the coins
        now: Run time; also the value written to last_payment_date
        log: Logger or LoggerAdapter for this run

    Returns:
        CreditOutcome (credited, skipped or failed); never raises
    """
    log = log or get_run_logger("-")
    user_id = subscriber.user_id

    if is_same_calendar_month(subscriber.last_payment_date, now):
        log.info(f"Skipping {user_id}: {REASON_ALREADY_CREDITED}")
        return CreditOutcome.skipped(user_id, REASON_ALREADY_CREDITED)

    coins = plan_coins.get(subscriber.plan_name) or 0
    if coins <= 0:
        log.warning(f"Skipping {user_id}: {REASON_INVALID_PLAN} (plan={subscriber.plan_name!r})")
        return CreditOutcome.skipped(user_id, REASON_INVALID_PLAN)

    # Track which step failed for better error messages
    current_step = "adding coins"

    try:
        added = ledger.add_subscription_coins(user_id, subscriber.plan_name, coins)
        if not added:
            log.error(f"Ledger refused credit for {user_id} ({coins} coins, plan={subscriber.plan_name})")
            return CreditOutcome.failed(user_id, REASON_LEDGER_FAILED)

        current_step = "updating last credit date"
        store.update_last_credit(user_id, now)

    except Exception as e:
        message = str(e) or e.__class__.__name__
        log.error(f"Error processing subscriber {user_id} at '{current_step}': {message}")
        return CreditOutcome.failed(user_id, message)

    log.info(f"Credited {coins} coins to {user_id} (plan={subscriber.plan_name})")
    return CreditOutcome.credited(user_id, coins, subscriber.plan_name)


def run_monthly_credit(
    store,
    ledger,
    now: Optional[datetime] = None,
    run_id: Optional[str] = None
) -> CreditReport:
    """
    Credit monthly coins to every active subscriber that is due.

    Args:
        store: Billing store (subscribers, plans, last credit stamp)
        ledger: Coin ledger
        now: Run time, defaults to current UTC time; one value for the whole run
        run_id: Identifier stamped on every log line of this run

    Returns:
        CreditReport with processed count, per-status summary and ordered results

    Raises:
        FetchError: If subscribers or plans cannot be read; nothing has been
                    written at that point
    """
    now = ensure_utc(now) if now is not None else utc_now()
    run_id = run_id or _new_run_id()
    log = get_run_logger(run_id)

    log.info(f"Monthly credit run started for {now.strftime('%Y-%m')}")

    try:
        subscribers = store.list_active_subscribers()
    except Exception as e:
        log.error(f"Error fetching active subscribers: {str(e)}")
        raise FetchError("Failed to fetch subscribers") from e

    try:
        plans = store.list_plans()
    except Exception as e:
        log.error(f"Error fetching pricing plans: {str(e)}")
        raise FetchError("Failed to fetch pricing plans") from e

    plan_coins = build_plan_coins(plans, log)

    log.info(f"Processing {len(subscribers)} active subscriber(s) against {len(plan_coins)} plan(s)")

    results = []
    seen: Set[str] = set()

    # One read-decide-write per subscriber; each is committed on its own
    for row in subscribers:
        try:
            subscriber = Subscriber.model_validate(row)
        except ValidationError as e:
            user_id = _row_user_id(row)
            log.error(f"Data integrity: invalid subscription row for {user_id}: {e.errors()[0].get('msg')}")
            results.append(CreditOutcome.failed(user_id, REASON_INVALID_ROW))
            continue

        if subscriber.user_id in seen:
            log.warning(f"Data integrity: duplicate active subscription row for {subscriber.user_id} - not crediting twice")
            results.append(CreditOutcome.skipped(subscriber.user_id, REASON_DUPLICATE))
            continue
        seen.add(subscriber.user_id)

        results.append(credit_subscriber(
            subscriber=subscriber,
            plan_coins=plan_coins,
            store=store,
            ledger=ledger,
            now=now,
            log=log
        ))

    counts = Counter(r.status for r in results)
    summary = {
        "total": len(results),
        CREDITED: counts.get(CREDITED, 0),
        SKIPPED: counts.get(SKIPPED, 0),
        FAILED: counts.get(FAILED, 0),
    }

    log.info(
        f"Monthly credit run complete - credited:{summary[CREDITED]} "
        f"skipped:{summary[SKIPPED]} failed:{summary[FAILED]}"
    )

    return CreditReport(
        success=True,
        run_id=run_id,
        processed=len(results),
        summary=summary,
        results=results
    )
