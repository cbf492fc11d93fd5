import asyncio
from datetime import datetime, timezone

import pytest

from tvguide.errors import InvalidArgument, UpstreamUnavailable
from tvguide.services.enrichment import WeekViewBuilder, gather_in_batches, get_enriched_library
from tvguide.services.progress import ProgressService
from tvguide.services.schedule import ScheduleService
from tvguide.services.tmdb_types import Episode, MovieDetails, TVDetails


class StubTMDB:
    """In-memory stand-in for TMDBClient keyed by tmdb id."""

    def __init__(self, details=None, episodes=None, failing=()):
        self.details = details or {}
        self.episodes = episodes or {}
        self.failing = set(failing)
        self.calls = []

    async def get_details(self, tmdb_id, media_type):
        self.calls.append(("details", tmdb_id))
        if tmdb_id in self.failing:
            raise UpstreamUnavailable("TMDB down", service="tmdb")
        return self.details.get(tmdb_id)

    async def get_tv_episode(self, series_id, season_number, episode_number):
        self.calls.append(("episode", series_id, season_number, episode_number))
        return self.episodes.get((series_id, season_number, episode_number))


BREAKING_BAD = TVDetails(
    id=1396,
    name="Breaking Bad",
    first_air_date="2008-01-20",
    episode_run_time=[47],
    seasons=[{"season_number": 1, "episode_count": 7}, {"season_number": 2, "episode_count": 13}],
)
MATRIX = MovieDetails(id=603, title="The Matrix", release_date="1999-03-31", runtime=136)


def test_gather_in_batches_respects_batch_size():
    in_flight = []
    peak = []

    async def fetch(key):
        in_flight.append(key)
        peak.append(len(in_flight))
        await asyncio.sleep(0)
        in_flight.remove(key)
        if key == 3:
            raise UpstreamUnavailable("nope")
        return key * 10

    results = asyncio.run(gather_in_batches(range(7), fetch, batch_size=2))

    assert results == {0: 0, 1: 10, 2: 20, 3: None, 4: 40, 5: 50, 6: 60}
    assert max(peak) <= 2


def test_week_view_lays_out_runtimes(db, profile, show, movie):
    schedule = ScheduleService(db)
    first = schedule.add_entry(profile.id, show.id, 5)
    second = schedule.add_entry(profile.id, movie.id, 5)
    ProgressService(db).set_progress(profile.id, show.id, 2, 4)

    tmdb = StubTMDB(
        details={1396: BREAKING_BAD, 603: MATRIX},
        episodes={(1396, 2, 4): Episode(id=1, name="Down", season_number=2, episode_number=4, runtime=48)},
    )
    view = asyncio.run(WeekViewBuilder(db, tmdb).build(profile.id))

    friday = view["days"][5]
    assert friday["name"] == "Friday"
    assert [e["entry_id"] for e in friday["entries"]] == [first.id, second.id]
    bb, matrix = friday["entries"]
    assert (bb["title"], bb["runtime"], bb["start"]) == ("Breaking Bad", 48, 0)
    assert bb["current_episode"] == {"season": 2, "episode": 4, "complete": False, "name": "Down"}
    assert (matrix["title"], matrix["runtime"], matrix["start"]) == ("The Matrix", 136, 48)
    assert matrix["start_label"] == "6:48 PM"
    assert not matrix["runtime_estimated"]
    assert all(day["entries"] == [] for day in view["days"] if day["weekday"] != 5)


def test_week_view_degrades_when_metadata_fails(db, profile, show, movie):
    schedule = ScheduleService(db)
    schedule.add_entry(profile.id, show.id, 0)
    schedule.add_entry(profile.id, movie.id, 0)

    tmdb = StubTMDB(failing={1396, 603})
    view = asyncio.run(WeekViewBuilder(db, tmdb, default_tv_runtime=30, default_movie_runtime=120).build(profile.id))

    sunday = view["days"][0]["entries"]
    assert [e["runtime"] for e in sunday] == [30, 120]
    assert all(e["runtime_estimated"] for e in sunday)
    assert sunday[1]["start"] == 30


def test_week_view_clamps_stale_cursor(db, profile, show):
    ScheduleService(db).add_entry(profile.id, show.id, 1)
    ProgressService(db).set_progress(profile.id, show.id, 9, 1)

    tmdb = StubTMDB(details={1396: BREAKING_BAD})
    view = asyncio.run(WeekViewBuilder(db, tmdb).build(profile.id))

    entry = view["days"][1]["entries"][0]
    assert entry["current_episode"]["season"] == 2
    assert entry["current_episode"]["episode"] == 13
    assert entry["current_episode"]["complete"] is True
    # caught up: no episode lookup, series typical runtime used
    assert entry["runtime"] == 47
    assert not any(call[0] == "episode" for call in tmdb.calls)


def test_enriched_library_omits_failures(db, household, show, movie, make_title):
    make_title(777)
    tmdb = StubTMDB(details={1396: BREAKING_BAD, 603: MATRIX}, failing={777})

    items = asyncio.run(get_enriched_library(db, tmdb, household.id))

    assert {(i["title"], i["year"]) for i in items} == {("Breaking Bad", "2008"), ("The Matrix", "1999")}


def test_week_view_today_uses_household_timezone(db, profile):
    friday_evening_pacific = datetime(2024, 1, 6, 2, 30, tzinfo=timezone.utc)
    builder = WeekViewBuilder(db, StubTMDB(), timezone="America/Los_Angeles", clock=lambda: friday_evening_pacific)

    view = asyncio.run(builder.build(profile.id))
    assert (view["today"], view["timezone"]) == (5, "America/Los_Angeles")

    # An explicit zone wins over the household default
    assert asyncio.run(builder.build(profile.id, tz="UTC"))["today"] == 6


def test_week_view_rejects_unknown_timezone(db, profile):
    with pytest.raises(InvalidArgument):
        asyncio.run(WeekViewBuilder(db, StubTMDB()).build(profile.id, tz="Nowhere/City"))
