import asyncio

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from quota_activator.api.routes import router as api_router
from quota_activator.config.settings import get_settings
from quota_activator.engine.cancellation import CancellationToken
from quota_activator.models.exceptions import QuotaActivatorError
from quota_activator.runtime import build_scheduler, load_validated_config
from quota_activator.utils.logging_config import setup_logging


APP_VERSION = "1.0.0"

# Setup logging
logger = setup_logging()
settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    description="Quota keep-alive scheduler: trigger calculation, conflict validation and status",
    version=APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.config = None
app.state.scheduler = None
app.state.token = None
app.state.scheduler_task = None


@app.on_event("startup")
async def startup_event():
    logger.info(f"Starting {settings.app_name}...")
    if not settings.run_scheduler_in_api:
        logger.info("Scheduler loop disabled for this process (QA_RUN_SCHEDULER_IN_API=false)")
        return

    # Startup errors are fatal: never run a schedule that did not validate
    try:
        config = load_validated_config(settings.config_path)
        scheduler = build_scheduler(config)
    except QuotaActivatorError as e:
        logger.error(f"Invalid config: {e}")
        raise

    app.state.config = config
    app.state.scheduler = scheduler
    app.state.token = CancellationToken()
    app.state.scheduler_task = asyncio.create_task(scheduler.run(app.state.token))
    logger.info(f"Scheduler running: {scheduler}")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info(f"Shutting down {settings.app_name}...")
    if app.state.token is not None:
        app.state.token.cancel()
    if app.state.scheduler_task is not None:
        await app.state.scheduler_task


app.include_router(api_router, prefix="/api/v1", tags=["schedule"])


@app.get("/health", tags=["health"])
def health_check():
    """Health check endpoint for monitoring and load balancers."""
    return {"status": "ok", "app": settings.app_name, "version": APP_VERSION}
