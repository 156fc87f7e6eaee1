import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator

from vancal.config import settings
from vancal.database import async_session, init_db
from vancal.log import setup_logging
from vancal.routers import events, health, scrape, venues
from vancal.services.scheduler import start_scheduler, stop_scheduler
from vancal.services.store import upsert_venues
from vancal.venues.registry import list_venues

setup_logging(settings.log_level)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting VanCal")
    await init_db()
    async with async_session() as session:
        await upsert_venues(session, list_venues())
    start_scheduler()
    yield
    stop_scheduler()
    logger.info("Shutting down VanCal")


app = FastAPI(title="VanCal", lifespan=lifespan)

# Add Prometheus metrics instrumentation
Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=True,
    excluded_handlers=["/health", "/metrics"],
).instrument(app).expose(app, endpoint="/metrics")

app.include_router(health.router)
app.include_router(venues.router)
app.include_router(events.router)
app.include_router(scrape.router)
