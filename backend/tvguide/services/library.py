"""
library.py

Household title library. Removing a title removes every schedule entry and
progress cursor that references it.
"""
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import List, Optional, Tuple
import logging

from tvguide.errors import InvalidArgument, NotFound
from tvguide.models import Household, TrackedTitle, MEDIA_TYPES

logger = logging.getLogger(__name__)


def _validate_media_type(media_type: str) -> None:
    if media_type not in MEDIA_TYPES:
        raise InvalidArgument("Media type must be tv or movie")


def _validate_tmdb_id(tmdb_id) -> None:
    if isinstance(tmdb_id, bool) or not isinstance(tmdb_id, int) or tmdb_id <= 0:
        raise InvalidArgument("TMDB ID must be a positive number")


def add_title(db: Session, household_id: int, tmdb_id: int, media_type: str) -> TrackedTitle:
    """Add a TMDB title to the library; adding it again returns the existing row."""
    _validate_tmdb_id(tmdb_id)
    _validate_media_type(media_type)
    if not db.get(Household, household_id):
        raise NotFound("Household not found")

    existing = db.query(TrackedTitle).filter(
        TrackedTitle.household_id == household_id,
        TrackedTitle.tmdb_id == tmdb_id,
    ).first()
    if existing:
        if existing.media_type != media_type:
            existing.media_type = media_type
            db.commit()
            db.refresh(existing)
        return existing

    title = TrackedTitle(household_id=household_id, tmdb_id=tmdb_id, media_type=media_type)
    db.add(title)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent add of the same title
        db.rollback()
        return db.query(TrackedTitle).filter(
            TrackedTitle.household_id == household_id,
            TrackedTitle.tmdb_id == tmdb_id,
        ).one()
    db.refresh(title)
    logger.info(f"Added {media_type}/{tmdb_id} to library of household {household_id}")
    return title


def get_title(db: Session, title_id: int, household_id: Optional[int] = None) -> TrackedTitle:
    title = db.get(TrackedTitle, title_id)
    if not title or (household_id is not None and title.household_id != household_id):
        raise NotFound("Tracked title not found")
    return title


def remove_title(db: Session, title_id: int, household_id: Optional[int] = None) -> None:
    title = get_title(db, title_id, household_id)
    try:
        db.delete(title)
        db.commit()
    except Exception as e:
        logger.error(f"Failed to remove title {title_id} from library: {e}")
        db.rollback()
        raise
    logger.info(f"Removed title {title_id} (and its schedule/progress rows) from library")


def get_library(db: Session, household_id: int, media_type: Optional[str] = None) -> List[TrackedTitle]:
    if media_type is not None:
        _validate_media_type(media_type)
    query = db.query(TrackedTitle).filter(TrackedTitle.household_id == household_id)
    if media_type:
        query = query.filter(TrackedTitle.media_type == media_type)
    return query.order_by(TrackedTitle.added_at.desc(), TrackedTitle.id.desc()).all()


def is_in_library(db: Session, household_id: int, tmdb_id: int) -> Tuple[bool, Optional[int]]:
    _validate_tmdb_id(tmdb_id)
    title_id = db.query(TrackedTitle.id).filter(
        TrackedTitle.household_id == household_id,
        TrackedTitle.tmdb_id == tmdb_id,
    ).scalar()
    return (title_id is not None, title_id)
