import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator
from pythonjsonlogger import jsonlogger

from app.config import settings
from app.database import init_db
from app.routers import cron, events, health, preferences
from app.services.scheduler import start_scheduler, stop_scheduler

# Configure JSON structured logging for Loki
handler = logging.StreamHandler(sys.stdout)
formatter = jsonlogger.JsonFormatter(
    fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
    rename_fields={"asctime": "timestamp", "levelname": "level", "name": "logger"},
)
handler.setFormatter(formatter)
logging.root.handlers = [handler]
logging.root.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

# Suppress verbose logs from external libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("apscheduler").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting sport calendar backend")
    await init_db()
    if not settings.scraper_api_key:
        logger.info("SCRAPER_API_KEY not set, rider pages are fetched directly")
    start_scheduler()
    yield
    stop_scheduler()
    logger.info("Shutting down sport calendar backend")


app = FastAPI(title="Sport Calendar", lifespan=lifespan)

# Add Prometheus metrics instrumentation
Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=True,
    excluded_handlers=["/health", "/metrics"],
).instrument(app).expose(app, endpoint="/metrics")

app.include_router(health.router)
app.include_router(events.router)
app.include_router(preferences.router)
app.include_router(cron.router)
