"""
households.py

API endpoints for bootstrapping a household. The owner id comes from the
external auth layer; the same owner always gets the same household back.
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
import logging

from tvguide.core.database import get_db
from tvguide.errors import ServiceError
from tvguide.schemas import HouseholdCreate, HouseholdSchema
from tvguide.services import profiles

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("", response_model=HouseholdSchema)
def get_or_create_household(payload: HouseholdCreate, db: Session = Depends(get_db)):
    try:
        return profiles.get_or_create_household(db, payload.owner_id, name=payload.name)
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Failed to bootstrap household for {payload.owner_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to bootstrap household: {str(e)}")


@router.get("/{household_id}", response_model=HouseholdSchema)
def get_household(household_id: int, db: Session = Depends(get_db)):
    return profiles.get_household(db, household_id)
