"""
Subscriptions router for the monthly coin credit run.

This module provides the endpoints called by the external cron trigger:

Endpoint: POST /subscriptions/monthly-credit
    Credits monthly plan coins to every active subscriber that has not been
    credited this calendar month.

Endpoint: POST /subscriptions/credit-scheduler/trigger
    Runs the in-process scheduler's credit job immediately.

Endpoint: GET /subscriptions/credit-scheduler/status
    In-process scheduler state and last run summary.

Authentication: Bearer token via Authorization header (SUBSCRIPTION_CRON_API_KEY)
"""

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from app.dependencies import verify_cron_key, get_billing_store, get_coin_ledger
from app.exceptions import CreditJobError
from app.models.schemas import CreditReport, ErrorResponse
from app.services.billing_store import SupabaseBillingStore
from app.services.credit_service import run_monthly_credit
from app.services.ledger_service import SupabaseCoinLedger

router = APIRouter(prefix="/subscriptions", tags=["Subscriptions"])


def _get_scheduler(request: Request):
    return getattr(request.app.state, "credit_scheduler", None)


@router.post(
    "/monthly-credit",
    response_model=CreditReport,
    response_model_exclude_none=True,
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
async def credit_monthly_subscription_coins(
    request: Request,
    _: bool = Depends(verify_cron_key),
    store: SupabaseBillingStore = Depends(get_billing_store),
    ledger: SupabaseCoinLedger = Depends(get_coin_ledger),
) -> CreditReport:
    """
    Credit monthly coins to active subscribers.

    Called by an external cron job. When the in-process scheduler is running,
    the run holds the scheduler's lock so it never overlaps a scheduled run.
    Authentication: Requires Bearer token in Authorization header.

    Per subscriber:
    - Already credited this month -> skipped
    - Unknown plan or zero coins -> skipped
    - Ledger refuses or errors -> failed (other subscribers still processed)
    - Otherwise coins added, last_payment_date stamped -> credited

    Returns:
        success, processed count, per-status summary and ordered results.
        A run with failed subscribers still returns 200; failures are in results.
    """
    scheduler = _get_scheduler(request)

    # Supabase client is synchronous; keep the event loop free
    if scheduler is not None:
        return await run_in_threadpool(scheduler.run_locked, store, ledger)
    return await run_in_threadpool(run_monthly_credit, store, ledger)


@router.post(
    "/credit-scheduler/trigger",
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
async def trigger_credit_scheduler(request: Request, _: bool = Depends(verify_cron_key)):
    """
    Manually run the scheduler's monthly credit job immediately.

    Uses the scheduler's own store and ledger and waits for any run already
    in progress. Same idempotency as the scheduled run: subscribers credited
    this month are skipped.

    Returns:
    - success: Boolean indicating if the run completed
    - run_id/summary or error
    - timestamp: ISO timestamp of the run
    """
    scheduler = _get_scheduler(request)
    if scheduler is None:
        raise CreditJobError("Scheduler not started", status_code=503)

    result = await run_in_threadpool(scheduler.trigger_now)
    if result["success"]:
        return JSONResponse(content=result, status_code=200)
    else:
        return JSONResponse(content=result, status_code=500)


@router.get("/credit-scheduler/status")
async def get_credit_scheduler_status(request: Request, _: bool = Depends(verify_cron_key)):
    """
    Get current status of the monthly credit scheduler.

    Returns information about:
    - Scheduler running state
    - Schedule (day of month, UTC hour)
    - Next scheduled run time
    - Last run timestamp, status and summary
    """
    scheduler = _get_scheduler(request)
    if scheduler is None:
        return {"running": False, "message": "Scheduler not started"}
    return scheduler.status()
