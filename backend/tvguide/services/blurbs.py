"""
blurbs.py

Episode synopses: cached per (series, season, episode) and shared by every
household. The generator is tried first; the truncated TMDB overview is the
fallback.
"""
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from typing import Any, Dict, Optional
import logging

from tvguide.errors import InvalidArgument, UpstreamUnavailable
from tvguide.models import EpisodeBlurb, BLURB_SOURCES

logger = logging.getLogger(__name__)

MIN_SENTENCE_END = 50


def truncate_overview(overview: Optional[str], max_length: int = 200) -> str:
    """
    Shorten an overview to max_length characters.

    Prefers ending on a full sentence, then on a word boundary with an
    ellipsis. Either break must fall past the first 50 characters.
    """
    if not overview:
        return ""
    if len(overview) <= max_length:
        return overview

    truncated = overview[:max_length]
    last_sentence_end = max(truncated.rfind("."), truncated.rfind("!"), truncated.rfind("?"))
    if last_sentence_end > MIN_SENTENCE_END:
        return truncated[:last_sentence_end + 1]

    last_space = truncated.rfind(" ")
    if last_space > MIN_SENTENCE_END:
        return truncated[:last_space] + "..."
    return truncated + "..."


def _validate_key(series_tmdb_id: int, season_number: int, episode_number: int) -> None:
    for value in (series_tmdb_id, season_number, episode_number):
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidArgument("seriesId, seasonNumber and episodeNumber must be numbers")
    if series_tmdb_id < 1:
        raise InvalidArgument("seriesId must be a positive number")
    if season_number < 0:
        raise InvalidArgument("seasonNumber cannot be negative")
    if episode_number < 1:
        raise InvalidArgument("episodeNumber must be a positive number")


def get_blurb(db: Session, series_tmdb_id: int, season_number: int, episode_number: int) -> Optional[EpisodeBlurb]:
    _validate_key(series_tmdb_id, season_number, episode_number)
    return db.query(EpisodeBlurb).filter(
        EpisodeBlurb.series_tmdb_id == series_tmdb_id,
        EpisodeBlurb.season_number == season_number,
        EpisodeBlurb.episode_number == episode_number,
    ).first()


def save_blurb(db: Session, series_tmdb_id: int, season_number: int, episode_number: int, blurb_text: str, source: str) -> EpisodeBlurb:
    """Insert or replace the blurb for one episode."""
    _validate_key(series_tmdb_id, season_number, episode_number)
    if not blurb_text or not blurb_text.strip():
        raise InvalidArgument("Blurb text is required")
    if source not in BLURB_SOURCES:
        raise InvalidArgument("Blurb source must be ai or tmdb_truncate")

    blurb = get_blurb(db, series_tmdb_id, season_number, episode_number)
    if blurb:
        blurb.blurb_text = blurb_text
        blurb.source = source
    else:
        blurb = EpisodeBlurb(
            series_tmdb_id=series_tmdb_id,
            season_number=season_number,
            episode_number=episode_number,
            blurb_text=blurb_text,
            source=source,
        )
        db.add(blurb)
    try:
        db.commit()
    except IntegrityError:
        # Another request saved the same episode first; overwrite theirs
        db.rollback()
        blurb = get_blurb(db, series_tmdb_id, season_number, episode_number)
        blurb.blurb_text = blurb_text
        blurb.source = source
        db.commit()
    db.refresh(blurb)
    return blurb


async def get_or_create_synopsis(
    db: Session,
    generator,
    series_tmdb_id: int,
    season_number: int,
    episode_number: int,
    show_name: str,
    episode_name: str,
    overview: str,
) -> Dict[str, Any]:
    """Return {blurb, source, cached}; never fails because an upstream did."""
    cached = get_blurb(db, series_tmdb_id, season_number, episode_number)
    if cached:
        return {"blurb": cached.blurb_text, "source": cached.source, "cached": True}

    blurb_text = ""
    source = "tmdb_truncate"
    if generator is not None:
        try:
            blurb_text = await generator.generate_synopsis(
                show_name, season_number, episode_number, episode_name, overview or ""
            )
            source = "ai"
        except UpstreamUnavailable as e:
            logger.info(f"Synopsis generation unavailable for {series_tmdb_id} S{season_number}E{episode_number}, using overview: {e.message}")

    if source != "ai":
        blurb_text = truncate_overview(overview)

    if blurb_text:
        try:
            save_blurb(db, series_tmdb_id, season_number, episode_number, blurb_text, source)
        except (SQLAlchemyError, InvalidArgument) as e:
            db.rollback()
            logger.warning(f"Failed to save blurb for {series_tmdb_id} S{season_number}E{episode_number}: {e}")

    return {"blurb": blurb_text, "source": source, "cached": False}
