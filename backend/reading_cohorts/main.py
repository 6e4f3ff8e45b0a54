"""Reading Cohorts API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map CohortError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database and scheduler started in the lifespan, stopped in reverse order

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - The scheduler runs in-process on the app's event loop (single-process deployment)
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from reading_cohorts import __version__
from reading_cohorts.api.dependencies import build_scheduler_job, get_mail_transport
from reading_cohorts.api.error_handlers import register_error_handlers
from reading_cohorts.api.routes import cohorts, enrollment, health, members, scheduler
from reading_cohorts.config import get_settings
from reading_cohorts.infrastructure.database import init_db
from reading_cohorts.infrastructure.observability import setup_logging
from reading_cohorts.infrastructure.scheduler import shutdown_scheduler, start_scheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    job = build_scheduler_job(settings, get_mail_transport())
    app.state.scheduler_job = job
    if settings.scheduler_enabled:
        start_scheduler(
            job,
            interval_hours=settings.scheduler_interval_hours,
            run_on_startup=settings.scheduler_run_on_startup,
        )
    else:
        logger.info("Scheduler disabled via settings (SCHEDULER_ENABLED=false)")
    logger.info("Reading Cohorts API started")
    yield
    logger.info("Reading Cohorts API shutting down")
    shutdown_scheduler()
    await manager.dispose()


app = FastAPI(
    title="Reading Cohorts API", version=__version__, lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(enrollment.router)
app.include_router(cohorts.router)
app.include_router(members.router)
app.include_router(scheduler.router)

register_error_handlers(app)
