"""
Enrichment of schedule and library rows with TMDB metadata.

Metadata calls are fanned out with asyncio.gather in fixed-size batches. A
title whose metadata cannot be fetched degrades (estimated runtime in the
week view, omitted from the enriched library) instead of failing the request.
"""
import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from tvguide.errors import InvalidArgument, UpstreamUnavailable
from tvguide.models import ScheduleEntry, TrackedTitle, TvProgress
from tvguide.services.library import get_library
from tvguide.services.progress import ProgressService, clamp_cursor
from tvguide.services.schedule import DAY_NAMES, ScheduleService, build_day_timeline
from tvguide.services.tmdb_client import TMDBClient
from tvguide.services.tmdb_types import MovieDetails, TVDetails
from tvguide.utils.timezone import get_zone, schedule_weekday, utc_now

logger = logging.getLogger(__name__)


async def gather_in_batches(keys: Iterable, fetch: Callable[[Any], Awaitable[Any]], batch_size: int = 20) -> Dict[Any, Any]:
    """
    Run fetch(key) for every key, at most batch_size at a time.
    Keys whose fetch raised UpstreamUnavailable map to None.
    """
    keys = list(keys)
    batch_size = max(int(batch_size), 1)

    async def _safe(key):
        try:
            return await fetch(key)
        except UpstreamUnavailable as e:
            logger.warning(f"Metadata unavailable for {key}: {e.message}")
            return None

    results: Dict[Any, Any] = {}
    for i in range(0, len(keys), batch_size):
        batch = keys[i:i + batch_size]
        values = await asyncio.gather(*(_safe(key) for key in batch))
        results.update(zip(batch, values))
    return results


def _title_name(details) -> str:
    if isinstance(details, TVDetails):
        return details.name
    if isinstance(details, MovieDetails):
        return details.title
    return ""


class WeekViewBuilder:
    """Builds the enriched, time-laid-out week for one profile."""

    def __init__(
        self,
        db: Session,
        tmdb: TMDBClient,
        batch_size: int = 20,
        start_hour: int = 18,
        pixels_per_minute: float = 2.0,
        default_tv_runtime: int = 30,
        default_movie_runtime: int = 120,
        timezone: str = "UTC",
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.tmdb = tmdb
        self.batch_size = batch_size
        self.start_hour = start_hour
        self.pixels_per_minute = pixels_per_minute
        self.default_tv_runtime = default_tv_runtime
        self.default_movie_runtime = default_movie_runtime
        self.timezone = timezone
        self.clock = clock

    @classmethod
    def from_settings(cls, db: Session, tmdb: TMDBClient, settings) -> "WeekViewBuilder":
        return cls(
            db,
            tmdb,
            batch_size=settings.enrichment_batch_size,
            start_hour=settings.schedule_start_hour,
            pixels_per_minute=settings.pixels_per_minute,
            default_tv_runtime=settings.default_tv_runtime,
            default_movie_runtime=settings.default_movie_runtime,
            timezone=settings.household_timezone,
        )

    def _fallback_runtime(self, media_type: str) -> int:
        return self.default_tv_runtime if media_type == "tv" else self.default_movie_runtime

    def _current_episodes(
        self,
        titles: Dict[int, TrackedTitle],
        details: Dict[int, Any],
        progress: Dict[int, TvProgress],
    ) -> Dict[int, Dict[str, Any]]:
        """Clamped 'up next' episode per TV title that has a cursor."""
        current = {}
        for title_id, cursor in progress.items():
            title = titles.get(title_id)
            if title is None or title.media_type != "tv":
                continue
            info = details.get(title.tmdb_id)
            counts = info.season_episode_counts() if isinstance(info, TVDetails) else {}
            clamped = clamp_cursor(cursor.season_number, cursor.episode_number, counts)
            current[title_id] = {
                "season": clamped.season,
                "episode": clamped.episode,
                "complete": clamped.complete,
                "name": None,
            }
        return current

    async def build(self, profile_id: int, tz: Optional[str] = None) -> Dict[str, Any]:
        """Week view for a profile. tz overrides the household timezone used for "today"."""
        tz_name = tz or self.timezone
        try:
            get_zone(tz_name)
        except ValueError as e:
            raise InvalidArgument(str(e))

        week = ScheduleService(self.db).get_week_schedule(profile_id)
        entries: List[ScheduleEntry] = [e for day in week.values() for e in day]

        titles: Dict[int, TrackedTitle] = {e.tracked_title_id: e.tracked_title for e in entries}
        wanted = {(t.tmdb_id, t.media_type) for t in titles.values()}
        fetched = await gather_in_batches(
            wanted,
            lambda key: self.tmdb.get_details(key[0], key[1]),
            self.batch_size,
        )
        details = {tmdb_id: info for (tmdb_id, _media), info in fetched.items()}

        progress = {
            cursor.tracked_title_id: cursor
            for cursor, _title in ProgressService(self.db).list_progress(profile_id)
        }
        current = self._current_episodes(titles, details, progress)

        episode_keys = [
            (titles[title_id].tmdb_id, ep["season"], ep["episode"])
            for title_id, ep in current.items()
            if not ep["complete"]
        ]
        episodes = await gather_in_batches(
            episode_keys,
            lambda key: self.tmdb.get_tv_episode(*key),
            self.batch_size,
        )
        for title_id, ep in current.items():
            episode = episodes.get((titles[title_id].tmdb_id, ep["season"], ep["episode"]))
            if episode is not None:
                ep["name"] = episode.name

        runtimes: Dict[int, Optional[int]] = {}
        fallbacks: Dict[int, int] = {}
        for entry in entries:
            title = titles[entry.tracked_title_id]
            fallbacks[entry.id] = self._fallback_runtime(title.media_type)
            runtimes[entry.id] = self._runtime_for(title, details.get(title.tmdb_id), current, episodes)

        days = []
        for weekday, day_entries in week.items():
            blocks = build_day_timeline(
                day_entries,
                runtimes,
                fallbacks,
                start_hour=self.start_hour,
                pixels_per_minute=self.pixels_per_minute,
            )
            items = []
            for entry, block in zip(day_entries, blocks):
                title = titles[entry.tracked_title_id]
                info = details.get(title.tmdb_id)
                items.append({
                    "entry_id": entry.id,
                    "tracked_title_id": title.id,
                    "tmdb_id": title.tmdb_id,
                    "media_type": title.media_type,
                    "title": _title_name(info),
                    "poster_path": info.poster_path if info else None,
                    "slot_order": entry.slot_order,
                    "enabled": entry.enabled,
                    "current_episode": current.get(title.id),
                    "start": block.start,
                    "end": block.end,
                    "runtime": block.runtime,
                    "runtime_estimated": block.runtime_estimated,
                    "start_label": block.start_label,
                    "end_label": block.end_label,
                    "top_px": block.top_px,
                    "height_px": block.height_px,
                })
            days.append({"weekday": weekday, "name": DAY_NAMES[weekday], "entries": items})

        logger.debug(f"Built week view for profile {profile_id}: {len(entries)} entries, {len(wanted)} titles")
        return {"profile_id": profile_id, "today": schedule_weekday(self.clock(), tz_name), "timezone": tz_name, "start_hour": self.start_hour, "days": days}

    def _runtime_for(self, title: TrackedTitle, info, current: Dict[int, Dict[str, Any]], episodes: Dict[Tuple, Any]) -> Optional[int]:
        if isinstance(info, MovieDetails):
            return info.runtime
        if not isinstance(info, TVDetails):
            return None
        ep = current.get(title.id)
        if ep is not None:
            episode = episodes.get((title.tmdb_id, ep["season"], ep["episode"]))
            if episode is not None and episode.runtime:
                return episode.runtime
        return info.typical_runtime


async def get_enriched_library(db: Session, tmdb: TMDBClient, household_id: int, media_type: Optional[str] = None, batch_size: int = 20) -> List[Dict[str, Any]]:
    """Library rows with name, poster and year; titles without metadata are left out."""
    titles = get_library(db, household_id, media_type)
    fetched = await gather_in_batches(
        titles,
        lambda t: tmdb.get_details(t.tmdb_id, t.media_type),
        batch_size,
    )

    enriched = []
    for title in titles:
        info = fetched.get(title)
        if info is None:
            continue
        enriched.append({
            "id": title.id,
            "tmdb_id": title.tmdb_id,
            "media_type": title.media_type,
            "added_at": title.added_at,
            "title": _title_name(info),
            "poster_path": info.poster_path,
            "year": info.year,
        })
    return enriched
