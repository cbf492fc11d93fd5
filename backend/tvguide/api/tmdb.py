"""
tmdb.py

Read-only TMDB proxy used by the show, episode and person pages.
"""
from fastapi import APIRouter, Depends
from typing import Optional
import logging

from tvguide.api.deps import get_tmdb_client
from tvguide.errors import InvalidArgument, NotFound
from tvguide.services.tmdb_client import TMDBClient

router = APIRouter()
logger = logging.getLogger(__name__)


def _found(result, what: str):
    if result is None:
        raise NotFound(f"{what} not found")
    return result


@router.get("/search")
async def search(query: str = "", page: int = 1, tmdb: TMDBClient = Depends(get_tmdb_client)):
    """Multi search limited to TV and movies."""
    if not query.strip():
        raise InvalidArgument("Search query is required")
    return await tmdb.search_multi(query.strip(), page=page)


@router.get("/tv/{series_id}")
async def get_tv_details(series_id: int, tmdb: TMDBClient = Depends(get_tmdb_client)):
    return _found(await tmdb.get_tv_details(series_id), "Show")


@router.get("/movie/{movie_id}")
async def get_movie_details(movie_id: int, tmdb: TMDBClient = Depends(get_tmdb_client)):
    return _found(await tmdb.get_movie_details(movie_id), "Movie")


@router.get("/tv/{series_id}/credits")
async def get_tv_credits(series_id: int, tmdb: TMDBClient = Depends(get_tmdb_client)):
    return _found(await tmdb.get_tv_credits(series_id), "Show")


@router.get("/tv/{series_id}/providers")
async def get_tv_providers(series_id: int, region: Optional[str] = None, tmdb: TMDBClient = Depends(get_tmdb_client)):
    """Watch providers for one region; empty lists when there are none."""
    providers = await tmdb.get_watch_providers(series_id, "tv", region)
    if providers is None:
        return {"link": None, "flatrate": [], "free": [], "ads": [], "rent": [], "buy": []}
    return providers


@router.get("/tv/{series_id}/season/{season_number}")
async def get_season(series_id: int, season_number: int, tmdb: TMDBClient = Depends(get_tmdb_client)):
    return _found(await tmdb.get_tv_season(series_id, season_number), "Season")


@router.get("/tv/{series_id}/season/{season_number}/episode/{episode_number}")
async def get_episode(series_id: int, season_number: int, episode_number: int, tmdb: TMDBClient = Depends(get_tmdb_client)):
    return _found(await tmdb.get_tv_episode(series_id, season_number, episode_number), "Episode")


@router.get("/tv/{series_id}/season/{season_number}/episode/{episode_number}/credits")
async def get_episode_credits(series_id: int, season_number: int, episode_number: int, tmdb: TMDBClient = Depends(get_tmdb_client)):
    return _found(await tmdb.get_episode_credits(series_id, season_number, episode_number), "Episode")


@router.get("/person/{person_id}")
async def get_person(person_id: int, tmdb: TMDBClient = Depends(get_tmdb_client)):
    return _found(await tmdb.get_person_details(person_id), "Person")


@router.get("/person/{person_id}/credits")
async def get_person_credits(person_id: int, tmdb: TMDBClient = Depends(get_tmdb_client)):
    return _found(await tmdb.get_person_combined_credits(person_id), "Person")
