"""
synopsis.py

Spoiler-free episode synopsis endpoint.
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
import logging

from tvguide.api.deps import get_synopsis_generator
from tvguide.core.database import get_db
from tvguide.errors import ServiceError
from tvguide.schemas import SynopsisRequest, SynopsisResponse
from tvguide.services.blurbs import get_or_create_synopsis

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("", response_model=SynopsisResponse)
async def get_synopsis(payload: SynopsisRequest, db: Session = Depends(get_db), generator=Depends(get_synopsis_generator)):
    try:
        return await get_or_create_synopsis(
            db,
            generator,
            payload.series_id,
            payload.season_number,
            payload.episode_number,
            show_name=payload.show_name,
            episode_name=payload.episode_name,
            overview=payload.overview,
        )
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Failed to produce synopsis for {payload.series_id} S{payload.season_number}E{payload.episode_number}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to generate synopsis: {str(e)}")
