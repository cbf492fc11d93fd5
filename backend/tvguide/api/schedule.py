"""
schedule.py

API endpoints for the weekly schedule: add, remove, reorder, move, toggle and
the enriched week view.
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
import logging
from typing import Optional

from tvguide.api.deps import get_settings, get_tmdb_client
from tvguide.core.database import get_db
from tvguide.errors import ServiceError
from tvguide.schemas import (
    ScheduleEntryCreate,
    ScheduleEntrySchema,
    ScheduleMove,
    ScheduleReorder,
    ScheduleToggle,
    WeekScheduleResponse,
)
from tvguide.services.enrichment import WeekViewBuilder
from tvguide.services.profiles import get_profile
from tvguide.services.schedule import ScheduleService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=WeekScheduleResponse)
def get_week_schedule(profile_id: int, household_id: int = 1, db: Session = Depends(get_db)):
    """All seven weekday buckets for a profile."""
    try:
        get_profile(db, profile_id, household_id)
        week = ScheduleService(db).get_week_schedule(profile_id)
        return {"profile_id": profile_id, "days": week}
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Failed to load schedule for profile {profile_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to load schedule: {str(e)}")


@router.get("/week-view")
async def get_week_view(
    profile_id: int,
    household_id: int = 1,
    tz: Optional[str] = None,
    db: Session = Depends(get_db),
    tmdb=Depends(get_tmdb_client),
    settings=Depends(get_settings),
):
    """Week schedule with titles, up-next episodes and evening timelines. tz is an IANA zone name."""
    try:
        get_profile(db, profile_id, household_id)
        return await WeekViewBuilder.from_settings(db, tmdb, settings).build(profile_id, tz=tz)
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Failed to build week view for profile {profile_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to build week view: {str(e)}")


@router.post("", response_model=ScheduleEntrySchema, status_code=201)
def add_schedule_entry(payload: ScheduleEntryCreate, db: Session = Depends(get_db)):
    try:
        return ScheduleService(db).add_entry(
            payload.profile_id,
            payload.tracked_title_id,
            payload.weekday,
            household_id=payload.household_id,
        )
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Failed to add schedule entry: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to add to schedule: {str(e)}")


@router.put("/reorder", response_model=ScheduleEntrySchema)
def reorder_schedule_entry(payload: ScheduleReorder, db: Session = Depends(get_db)):
    try:
        return ScheduleService(db).reorder_slot(payload.entry_id, payload.new_slot_order, household_id=payload.household_id)
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Failed to reorder schedule entry {payload.entry_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to reorder schedule: {str(e)}")


@router.put("/move", response_model=ScheduleEntrySchema)
def move_schedule_entry(payload: ScheduleMove, db: Session = Depends(get_db)):
    """Move to another weekday, optionally placing it at a slot there."""
    try:
        return ScheduleService(db).move_and_reorder(
            payload.entry_id,
            payload.new_weekday,
            payload.new_slot_order,
            household_id=payload.household_id,
        )
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Failed to move schedule entry {payload.entry_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to move schedule entry: {str(e)}")


@router.patch("/{entry_id}", response_model=ScheduleEntrySchema)
def toggle_schedule_entry(entry_id: int, payload: ScheduleToggle, db: Session = Depends(get_db)):
    try:
        return ScheduleService(db).set_enabled(entry_id, payload.enabled, household_id=payload.household_id)
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Failed to update schedule entry {entry_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to update schedule entry: {str(e)}")


@router.delete("/{entry_id}")
def remove_schedule_entry(entry_id: int, household_id: int = 1, db: Session = Depends(get_db)):
    try:
        ScheduleService(db).remove_entry(entry_id, household_id=household_id)
        return {"success": True}
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Failed to remove schedule entry {entry_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to remove from schedule: {str(e)}")
