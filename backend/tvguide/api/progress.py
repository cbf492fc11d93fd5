"""
progress.py

API endpoints for per-profile TV watch progress.
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from tvguide.core.database import get_db
from tvguide.errors import ServiceError
from tvguide.schemas import (
    AdvanceResponse,
    ProgressAdvance,
    ProgressSet,
    ProgressWithTitleSchema,
    TvProgressSchema,
)
from tvguide.services.profiles import get_profile
from tvguide.services.progress import ProgressService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=List[ProgressWithTitleSchema])
def list_progress(profile_id: int, household_id: int = 1, db: Session = Depends(get_db)):
    try:
        get_profile(db, profile_id, household_id)
        rows = ProgressService(db).list_progress(profile_id)
        return [
            {
                **TvProgressSchema.model_validate(cursor).model_dump(),
                "tmdb_id": title.tmdb_id,
                "media_type": title.media_type,
            }
            for cursor, title in rows
        ]
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Failed to list progress for profile {profile_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to get progress: {str(e)}")


@router.get("/{profile_id}/{tracked_title_id}", response_model=Optional[TvProgressSchema])
def get_progress(profile_id: int, tracked_title_id: int, household_id: int = 1, db: Session = Depends(get_db)):
    """The cursor for one title, or null when the profile has not started it."""
    try:
        get_profile(db, profile_id, household_id)
        return ProgressService(db).get_progress(profile_id, tracked_title_id)
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Failed to get progress for profile {profile_id}, title {tracked_title_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to get progress: {str(e)}")


@router.post("", response_model=TvProgressSchema)
def set_progress(payload: ProgressSet, db: Session = Depends(get_db)):
    try:
        return ProgressService(db).set_progress(
            payload.profile_id,
            payload.tracked_title_id,
            payload.season_number,
            payload.episode_number,
            household_id=payload.household_id,
        )
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Failed to set progress: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to update progress: {str(e)}")


@router.patch("", response_model=AdvanceResponse)
def advance_progress(payload: ProgressAdvance, db: Session = Depends(get_db)):
    """Step the cursor forward one episode (action="advance")."""
    try:
        result = ProgressService(db).advance_episode(
            payload.profile_id,
            payload.tracked_title_id,
            payload.total_episodes_in_season,
            payload.total_seasons,
            household_id=payload.household_id,
        )
        return {"progress": result.progress, "complete": result.complete}
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Failed to advance progress: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to advance episode: {str(e)}")
