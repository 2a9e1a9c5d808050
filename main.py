import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from app.config import get_settings
from app.exceptions import CreditJobError
from app.routers import subscriptions_router
from app.services.billing_store import SupabaseBillingStore
from app.services.ledger_service import SupabaseCoinLedger
from app.services.supabase_service import create_supabase_client
from app.utils.logging_utils import configure_root_logging, setup_logger
from scripts.credit_scheduler import CreditScheduler

# Load environment variables from .env file
load_dotenv()

settings = get_settings()
logger = logging.getLogger(__name__)

app = FastAPI(title="Subscription Credit API")

# CORS configuration
app.add_middleware(CORSMiddleware,
    allow_origins=[settings.allowed_origin],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(subscriptions_router)


@app.exception_handler(CreditJobError)
async def credit_job_error_handler(request: Request, exc: CreditJobError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


# Application lifecycle events
@app.on_event("startup")
async def startup_event():
    """Initialize services on application startup."""
    settings = get_settings()
    configure_root_logging(settings.log_level)
    setup_logger(getattr(logging, settings.log_level.upper(), logging.INFO))
    logger.info("Starting application...")

    app.state.supabase_client = create_supabase_client(settings)
    app.state.credit_scheduler = None

    if not settings.credit_scheduler_enabled:
        logger.info("Monthly credit scheduler disabled (CREDIT_SCHEDULER_ENABLED=false)")
        return
    if app.state.supabase_client is None:
        logger.warning("Monthly credit scheduler not started: billing store not configured")
        return

    try:
        scheduler = CreditScheduler(
            store=SupabaseBillingStore(app.state.supabase_client),
            ledger=SupabaseCoinLedger(app.state.supabase_client),
            day=settings.credit_schedule_day,
            hour=settings.credit_schedule_hour,
        )
        scheduler.start()
        app.state.credit_scheduler = scheduler
    except Exception as e:
        logger.warning(f"Failed to start monthly credit scheduler: {str(e)}")
        logger.warning("Scheduled monthly credits disabled")


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on application shutdown."""
    logger.info("Shutting down application...")

    scheduler = getattr(app.state, "credit_scheduler", None)
    if scheduler is not None:
        try:
            scheduler.stop()
        except Exception as e:
            logger.warning(f"Error stopping monthly credit scheduler: {str(e)}")
        app.state.credit_scheduler = None

    app.state.supabase_client = None


@app.get("/health")
async def health():
    return {
        "status": "ok",
        "store_configured": getattr(app.state, "supabase_client", None) is not None,
    }


@app.get("/")
async def root():
    return {"message": "Subscription Credit API. POST /subscriptions/monthly-credit with a Bearer key to credit monthly coins."}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="::", port=8000)
