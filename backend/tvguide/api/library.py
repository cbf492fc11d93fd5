"""
library.py

API endpoints for the household title library.
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from tvguide.api.deps import get_settings, get_tmdb_client
from tvguide.core.database import get_db
from tvguide.errors import ServiceError
from tvguide.schemas import LibraryAdd, LibraryCheckResponse, TrackedTitleSchema
from tvguide.services import library
from tvguide.services.enrichment import get_enriched_library

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=List[TrackedTitleSchema])
def list_library(household_id: int = 1, media_type: Optional[str] = None, db: Session = Depends(get_db)):
    try:
        return library.get_library(db, household_id, media_type)
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Failed to fetch library: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to fetch library: {str(e)}")


@router.get("/enriched")
async def list_enriched_library(
    household_id: int = 1,
    media_type: Optional[str] = None,
    db: Session = Depends(get_db),
    tmdb=Depends(get_tmdb_client),
    settings=Depends(get_settings),
):
    """Library rows with TMDB name, poster and year. Titles TMDB cannot describe are skipped."""
    try:
        items = await get_enriched_library(db, tmdb, household_id, media_type, batch_size=settings.enrichment_batch_size)
        return {"items": items}
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Failed to fetch enriched library: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to fetch library: {str(e)}")


@router.get("/check", response_model=LibraryCheckResponse)
def check_library(tmdb_id: int, household_id: int = 1, db: Session = Depends(get_db)):
    try:
        in_library, title_id = library.is_in_library(db, household_id, tmdb_id)
        return {"in_library": in_library, "title_id": title_id}
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Failed to check library for {tmdb_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to check library: {str(e)}")


@router.post("", response_model=TrackedTitleSchema, status_code=201)
def add_to_library(payload: LibraryAdd, db: Session = Depends(get_db)):
    try:
        return library.add_title(db, payload.household_id, payload.tmdb_id, payload.media_type)
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Failed to add {payload.media_type}/{payload.tmdb_id} to library: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to add to library: {str(e)}")


@router.delete("/{title_id}")
def remove_from_library(title_id: int, household_id: int = 1, db: Session = Depends(get_db)):
    """Remove a title; its schedule entries and progress go with it."""
    try:
        library.remove_title(db, title_id, household_id)
        return {"success": True}
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Failed to remove title {title_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to remove from library: {str(e)}")
