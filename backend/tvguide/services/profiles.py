"""
profiles.py

Households and the viewer profiles inside them.
"""
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from tvguide.errors import InvalidArgument, NotFound
from tvguide.models import Household, Profile, MATURITY_LEVELS

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 50


def _clean_name(name: Optional[str], required: bool = True) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise InvalidArgument("Profile name is required" if required else "Profile name cannot be empty")
    if len(cleaned) > MAX_NAME_LENGTH:
        raise InvalidArgument(f"Profile name must be {MAX_NAME_LENGTH} characters or less")
    return cleaned


def _validate_maturity(level: str) -> None:
    if level not in MATURITY_LEVELS:
        raise InvalidArgument("Maturity level must be kids, teen, or adult")


def get_or_create_household(db: Session, owner_id: str, name: str = "My Household") -> Household:
    owner_id = (owner_id or "").strip()
    if not owner_id:
        raise InvalidArgument("Owner id is required")
    household = db.query(Household).filter(Household.owner_id == owner_id).first()
    if household:
        return household
    household = Household(owner_id=owner_id, name=name)
    db.add(household)
    db.commit()
    db.refresh(household)
    logger.info(f"Created household {household.id} for owner {owner_id}")
    return household


def get_household(db: Session, household_id: int) -> Household:
    household = db.get(Household, household_id)
    if not household:
        raise NotFound("No household found")
    return household


def create_profile(db: Session, household_id: int, name: str, maturity_level: str = "adult", avatar: Optional[str] = None) -> Profile:
    cleaned = _clean_name(name)
    _validate_maturity(maturity_level)
    get_household(db, household_id)

    profile = Profile(household_id=household_id, name=cleaned, avatar=avatar or None, maturity_level=maturity_level)
    db.add(profile)
    db.commit()
    db.refresh(profile)
    logger.info(f"Created profile {profile.id} ({cleaned}) in household {household_id}")
    return profile


def get_profile(db: Session, profile_id: int, household_id: Optional[int] = None) -> Profile:
    profile = db.get(Profile, profile_id)
    if not profile or (household_id is not None and profile.household_id != household_id):
        raise NotFound("Profile not found")
    return profile


def list_profiles(db: Session, household_id: int) -> List[Profile]:
    return (
        db.query(Profile)
        .filter(Profile.household_id == household_id)
        .order_by(Profile.created_at.asc(), Profile.id.asc())
        .all()
    )


_UNSET = object()


def update_profile(db: Session, profile_id: int, household_id: Optional[int] = None, name=_UNSET, avatar=_UNSET, maturity_level=_UNSET) -> Profile:
    """Update only the fields that were passed."""
    updates = {}
    if name is not _UNSET:
        updates["name"] = _clean_name(name, required=False)
    if avatar is not _UNSET:
        updates["avatar"] = avatar
    if maturity_level is not _UNSET:
        _validate_maturity(maturity_level)
        updates["maturity_level"] = maturity_level
    if not updates:
        raise InvalidArgument("No fields to update")

    profile = get_profile(db, profile_id, household_id)
    for field, value in updates.items():
        setattr(profile, field, value)
    db.commit()
    db.refresh(profile)
    return profile


def delete_profile(db: Session, profile_id: int, household_id: Optional[int] = None) -> None:
    profile = get_profile(db, profile_id, household_id)
    db.delete(profile)
    db.commit()
    logger.info(f"Deleted profile {profile_id}")
