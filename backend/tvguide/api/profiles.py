"""
profiles.py

API endpoints for viewer profiles.
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
import logging

from tvguide.core.database import get_db
from tvguide.errors import ServiceError
from tvguide.schemas import ProfileCreate, ProfileSchema, ProfileUpdate
from tvguide.services import profiles

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=List[ProfileSchema])
def list_profiles(household_id: int = 1, db: Session = Depends(get_db)):
    try:
        return profiles.list_profiles(db, household_id)
    except Exception as e:
        logger.error(f"Failed to list profiles: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to list profiles: {str(e)}")


@router.post("", response_model=ProfileSchema, status_code=201)
def create_profile(payload: ProfileCreate, db: Session = Depends(get_db)):
    try:
        return profiles.create_profile(
            db,
            payload.household_id,
            payload.name,
            maturity_level=payload.maturity_level,
            avatar=payload.avatar,
        )
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Failed to create profile: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to create profile: {str(e)}")


@router.get("/{profile_id}", response_model=ProfileSchema)
def get_profile(profile_id: int, household_id: int = 1, db: Session = Depends(get_db)):
    return profiles.get_profile(db, profile_id, household_id)


@router.patch("/{profile_id}", response_model=ProfileSchema)
def update_profile(profile_id: int, payload: ProfileUpdate, db: Session = Depends(get_db)):
    """Only fields present in the body are changed."""
    fields = payload.model_dump(exclude_unset=True)
    household_id = fields.pop("household_id", 1)
    try:
        return profiles.update_profile(db, profile_id, household_id=household_id, **fields)
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Failed to update profile {profile_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to update profile: {str(e)}")


@router.delete("/{profile_id}")
def delete_profile(profile_id: int, household_id: int = 1, db: Session = Depends(get_db)):
    try:
        profiles.delete_profile(db, profile_id, household_id)
        return {"success": True}
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Failed to delete profile {profile_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to delete profile: {str(e)}")
