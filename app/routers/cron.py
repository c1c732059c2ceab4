from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from app.auth import require_cron_secret
from app.services.event_store import EventStore, get_event_store
from app.services.scanner import run_refresh

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cron", tags=["cron"])


@router.post("/refresh", dependencies=[Depends(require_cron_secret)])
async def refresh(store: EventStore = Depends(get_event_store)):
    """Run a full refresh cycle and report per-source results.

    Called by the external scheduler. Partial failures are reported in the
    summary; the request itself still succeeds.
    """
    logger.info("Refresh triggered over HTTP")
    summary = await run_refresh(store)
    return {"ok": True, "summary": summary.report()}
