"""
justwatch.py

Episode-level streaming links. Always answers 200 with a (possibly empty)
offer list once the parameters are valid.
"""
from fastapi import APIRouter, Depends
import logging

from tvguide.api.deps import get_justwatch_client
from tvguide.errors import InvalidArgument
from tvguide.schemas import EpisodeOffersResponse
from tvguide.services.justwatch_client import JustWatchClient

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/episode", response_model=EpisodeOffersResponse)
async def get_episode_offers(
    tmdb_id: int,
    title: str,
    season: int,
    episode: int,
    justwatch: JustWatchClient = Depends(get_justwatch_client),
):
    if not title.strip():
        raise InvalidArgument("Missing required parameters: tmdb_id, title, season, episode")
    try:
        return await justwatch.get_episode_offers(tmdb_id, title, season, episode)
    except Exception as e:
        logger.error(f"JustWatch lookup failed for {title} S{season}E{episode}: {e}", exc_info=True)
        return {"offers": []}
