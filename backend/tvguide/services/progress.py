"""
Progress Service

Per-profile (season, episode) cursors through tracked titles.

A cursor is always in one of two states:
- in progress: pointing at the next episode to watch
- series complete: pointing at the last episode of the last season;
  advancing from here is a no-op

advance_cursor() is the pure transition function; ProgressService persists it.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from tvguide.errors import InvalidArgument, NotFound
from tvguide.models import Profile, TrackedTitle, TvProgress
from tvguide.utils.timezone import utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Cursor:
    season: int
    episode: int
    complete: bool = False


@dataclass
class AdvanceResult:
    progress: TvProgress
    complete: bool


def _require_positive(value, name: str) -> None:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise InvalidArgument(f"{name} must be a positive number")


def advance_cursor(season: int, episode: int, total_episodes_in_season: int, total_seasons: int) -> Cursor:
    """
    Compute the cursor after watching the current episode.

    - episode < total_episodes_in_season -> next episode, same season
    - else season < total_seasons -> first episode of the next season
    - else -> unchanged, series complete

    The returned cursor is flagged complete when it sits on the last episode
    of the last season.
    """
    _require_positive(total_episodes_in_season, "Total episodes in season")
    _require_positive(total_seasons, "Total seasons")

    if episode < total_episodes_in_season:
        episode += 1
        return Cursor(season, episode, complete=(season >= total_seasons and episode >= total_episodes_in_season))
    if season < total_seasons:
        # next season's length is unknown here
        return Cursor(season + 1, 1)
    return Cursor(season, episode, complete=True)


def clamp_cursor(season: int, episode: int, season_episode_counts: Dict[int, int]) -> Cursor:
    """
    Fit a stored cursor onto the title's current season/episode counts.

    Metadata can shrink after a cursor was written (season re-cut, specials
    removed). A cursor past the end is pulled back to the last known episode
    and reported complete; unknown counts leave the cursor untouched.
    """
    counts = {s: n for s, n in (season_episode_counts or {}).items() if s >= 1 and n and n > 0}
    if not counts:
        return Cursor(season, episode)

    last_season = max(counts)
    last_episode = counts[last_season]

    if season > last_season:
        return Cursor(last_season, last_episode, complete=True)

    season_total = counts.get(season)
    if season_total is None:
        return Cursor(season, episode)
    if episode > season_total:
        episode = season_total

    return Cursor(season, episode, complete=(season == last_season and episode >= last_episode))


class ProgressService:
    """Reads and writes TvProgress rows for profiles."""

    def __init__(self, db: Session):
        self.db = db

    def _check_refs(self, profile_id: int, tracked_title_id: int, household_id: Optional[int]) -> Tuple[Profile, TrackedTitle]:
        profile = self.db.get(Profile, profile_id)
        if not profile or (household_id is not None and profile.household_id != household_id):
            raise NotFound("Profile not found")
        title = self.db.get(TrackedTitle, tracked_title_id)
        if not title or title.household_id != profile.household_id:
            raise NotFound("Tracked title not found")
        return profile, title

    def get_progress(self, profile_id: int, tracked_title_id: int) -> Optional[TvProgress]:
        return self.db.query(TvProgress).filter(
            TvProgress.profile_id == profile_id,
            TvProgress.tracked_title_id == tracked_title_id,
        ).first()

    def list_progress(self, profile_id: int) -> List[Tuple[TvProgress, TrackedTitle]]:
        """All cursors for a profile with their titles, most recently updated first."""
        return (
            self.db.query(TvProgress, TrackedTitle)
            .join(TrackedTitle, TrackedTitle.id == TvProgress.tracked_title_id)
            .filter(TvProgress.profile_id == profile_id)
            .order_by(TvProgress.updated_at.desc(), TvProgress.id.desc())
            .all()
        )

    def set_progress(
        self,
        profile_id: int,
        tracked_title_id: int,
        season_number: int,
        episode_number: int,
        household_id: Optional[int] = None,
    ) -> TvProgress:
        """
        Upsert the cursor. Jumps are trusted: any positive season/episode is
        accepted without checking it against TMDB counts.
        """
        _require_positive(season_number, "Season number")
        _require_positive(episode_number, "Episode number")
        self._check_refs(profile_id, tracked_title_id, household_id)

        try:
            progress = self.get_progress(profile_id, tracked_title_id)
            if progress:
                progress.season_number = season_number
                progress.episode_number = episode_number
                progress.updated_at = utc_now()
            else:
                progress = TvProgress(
                    profile_id=profile_id,
                    tracked_title_id=tracked_title_id,
                    season_number=season_number,
                    episode_number=episode_number,
                    updated_at=utc_now(),
                )
                self.db.add(progress)
            self.db.commit()
            self.db.refresh(progress)
        except Exception as e:
            logger.error(f"Failed to set progress for profile {profile_id}, title {tracked_title_id}: {e}")
            self.db.rollback()
            raise

        logger.info(f"Progress for profile {profile_id}, title {tracked_title_id} set to S{season_number}E{episode_number}")
        return progress

    def advance_episode(
        self,
        profile_id: int,
        tracked_title_id: int,
        total_episodes_in_season: int,
        total_seasons: int,
        household_id: Optional[int] = None,
    ) -> AdvanceResult:
        """Move the stored cursor one episode forward, rolling over seasons."""
        _require_positive(total_episodes_in_season, "Total episodes in season")
        _require_positive(total_seasons, "Total seasons")
        if household_id is not None:
            self._check_refs(profile_id, tracked_title_id, household_id)

        progress = self.get_progress(profile_id, tracked_title_id)
        if not progress:
            raise NotFound("No progress recorded for this title; set progress first")

        cursor = advance_cursor(progress.season_number, progress.episode_number, total_episodes_in_season, total_seasons)
        if (cursor.season, cursor.episode) == (progress.season_number, progress.episode_number):
            logger.debug(f"Profile {profile_id} already at the last episode of title {tracked_title_id}")
            return AdvanceResult(progress=progress, complete=True)

        try:
            progress.season_number = cursor.season
            progress.episode_number = cursor.episode
            progress.updated_at = utc_now()
            self.db.commit()
            self.db.refresh(progress)
        except Exception as e:
            logger.error(f"Failed to advance progress for profile {profile_id}, title {tracked_title_id}: {e}")
            self.db.rollback()
            raise

        logger.info(f"Advanced profile {profile_id}, title {tracked_title_id} to S{cursor.season}E{cursor.episode}")
        return AdvanceResult(progress=progress, complete=cursor.complete)
