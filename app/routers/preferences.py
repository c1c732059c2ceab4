from __future__ import annotations

from fastapi import APIRouter

from app.config import settings
from app.schemas import PreferencesOut
from app.subjects import ALL_SPORTS, SPORT_LABELS

router = APIRouter(prefix="/api/preferences", tags=["preferences"])


@router.get("/defaults", response_model=PreferencesOut)
async def default_preferences():
    """Preferences for a user who has not saved any: every sport enabled."""
    return PreferencesOut(
        sports=ALL_SPORTS, labels=SPORT_LABELS, timezone=settings.default_timezone
    )
