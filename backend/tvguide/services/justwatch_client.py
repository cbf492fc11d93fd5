"""
JustWatch GraphQL client for episode-level streaming links.

Lookups walk search -> show -> season -> episode. Responses are validated
against the models in justwatch_types. Any failure along the way
yields an empty offer list, which is cached like a real answer so a broken
upstream is not hammered.
"""
import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from tvguide.core.cache import MISS, ResponseCache
from tvguide.services.justwatch_types import Package, SearchData, SeasonData, ShowData

logger = logging.getLogger(__name__)

DataT = TypeVar("DataT", bound=BaseModel)

JUSTWATCH_WEB = "https://www.justwatch.com"

SEARCH_QUERY = """
query SearchTitles($searchQuery: String!, $country: Country!, $language: Language!) {
  popularTitles(country: $country, filter: { searchQuery: $searchQuery, objectTypes: [SHOW] }, first: 10) {
    edges {
      node {
        id
        objectType
        content(country: $country, language: $language) {
          title
          fullPath
          externalIds {
            tmdbId
          }
        }
      }
    }
  }
}
"""

GET_SHOW_QUERY = """
query GetShow($nodeId: ID!, $country: Country!, $language: Language!) {
  node(id: $nodeId) {
    id
    ... on Show {
      content(country: $country, language: $language) {
        title
        fullPath
      }
      seasons {
        id
        content(country: $country, language: $language) {
          seasonNumber
        }
      }
    }
  }
}
"""

GET_SEASON_QUERY = """
query GetSeason($nodeId: ID!, $country: Country!, $language: Language!) {
  node(id: $nodeId) {
    id
    ... on Season {
      content(country: $country, language: $language) {
        seasonNumber
      }
      episodes {
        id
        content(country: $country, language: $language) {
          episodeNumber
          title
        }
        offers(country: $country, platform: WEB) {
          standardWebURL
          monetizationType
          package {
            clearName
            packageId
          }
        }
      }
    }
  }
}
"""


class JustWatchError(Exception):
    pass


def build_provider_url_map(offers: List[Dict[str, Any]]) -> Dict[str, str]:
    """Subscription offer URLs keyed by normalised provider name."""
    urls = {}
    for offer in offers:
        if offer.get("url") and offer.get("monetization_type") == "flatrate":
            urls[offer["provider_name"].lower().strip()] = offer["url"]
    return urls


class JustWatchClient:
    def __init__(
        self,
        url: str = "https://apis.justwatch.com/graphql",
        country: str = "US",
        language: str = "en",
        cache: Optional[ResponseCache] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.country = country
        self.language = language
        self.cache = cache
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings, cache: Optional[ResponseCache] = None) -> "JustWatchClient":
        return cls(
            url=settings.justwatch_url,
            country=settings.watch_region,
            language=settings.justwatch_language,
            cache=cache,
            timeout=settings.http_timeout_seconds,
        )

    async def _graphql(self, query: str, variables: Dict[str, Any], model: Type[DataT]) -> DataT:
        """POST a query and validate its data block into model; any other shape is a JustWatchError."""
        variables = {**variables, "country": self.country, "language": self.language}
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            resp = await client.post(self.url, json={"query": query, "variables": variables})
        if resp.status_code >= 400:
            raise JustWatchError(f"JustWatch API error: {resp.status_code}")
        result = resp.json()
        if not isinstance(result, dict):
            raise JustWatchError("Unexpected JustWatch response")
        errors = result.get("errors")
        if errors:
            message = errors[0].get("message") if isinstance(errors, list) and isinstance(errors[0], dict) else errors
            raise JustWatchError(f"GraphQL error: {message}")
        try:
            return model.model_validate(result.get("data") or {})
        except ValidationError as e:
            raise JustWatchError(f"Unexpected {model.__name__} payload: {e.error_count()} invalid field(s)") from e

    async def _cache_get(self, key: str):
        if self.cache is None:
            return MISS
        return await self.cache.get(key)

    async def _cache_set(self, key: str, value) -> None:
        if self.cache is not None:
            await self.cache.set(key, value)

    async def find_show_id(self, title: str, tmdb_id: int) -> Optional[str]:
        """
        JustWatch node id for a show: TMDB id match first, then exact title,
        then whatever ranked first.
        """
        cache_key = f"justwatch:show:{tmdb_id}:{title}"
        cached = await self._cache_get(cache_key)
        if cached is not MISS:
            return cached

        try:
            data = await self._graphql(SEARCH_QUERY, {"searchQuery": title}, SearchData)
        except (httpx.HTTPError, JustWatchError, ValueError) as e:
            logger.error(f"JustWatch search failed for {title!r}: {e}")
            await self._cache_set(cache_key, None)
            return None

        nodes = data.nodes()
        show_id = None
        if nodes:
            tmdb_str = str(tmdb_id)
            normalized = title.lower().strip()
            by_tmdb = [n for n in nodes if n.tmdb_id == tmdb_str]
            by_title = [n for n in nodes if n.title.lower().strip() == normalized]
            show_id = (by_tmdb or by_title or nodes)[0].id

        await self._cache_set(cache_key, show_id)
        return show_id

    async def get_episode_offers(self, tmdb_id: int, title: str, season_number: int, episode_number: int) -> Dict[str, Any]:
        """
        {"offers": [...], "show_level_url": str | None} for one episode.
        Offers are de-duplicated by provider, first one wins.
        """
        cache_key = f"justwatch:episode:{tmdb_id}:{season_number}:{episode_number}"
        cached = await self._cache_get(cache_key)
        if cached is not MISS:
            return cached

        result: Dict[str, Any] = {"offers": [], "show_level_url": None}
        try:
            await self._collect_offers(result, tmdb_id, title, season_number, episode_number)
        except (httpx.HTTPError, JustWatchError, ValueError) as e:
            logger.error(f"Failed to fetch episode offers for {title} S{season_number}E{episode_number}: {e}")
            result = {"offers": [], "show_level_url": None}

        await self._cache_set(cache_key, result)
        return result

    async def _collect_offers(self, result: Dict[str, Any], tmdb_id: int, title: str, season_number: int, episode_number: int) -> None:
        show_id = await self.find_show_id(title, tmdb_id)
        if not show_id:
            return

        show = (await self._graphql(GET_SHOW_QUERY, {"nodeId": show_id}, ShowData)).node
        if not show:
            return
        if show.content and show.content.full_path:
            result["show_level_url"] = f"{JUSTWATCH_WEB}{show.content.full_path}"

        season = show.find_season(season_number)
        if not season:
            return

        season_node = (await self._graphql(GET_SEASON_QUERY, {"nodeId": season.id}, SeasonData)).node
        episode = season_node.find_episode(episode_number) if season_node else None
        if not episode or not episode.offers:
            return

        seen = set()
        for offer in episode.offers:
            package = offer.package or Package()
            if package.package_id in seen:
                continue
            seen.add(package.package_id)
            result["offers"].append({
                "provider_id": package.package_id,
                "provider_name": package.clear_name or "",
                "monetization_type": (offer.monetization_type or "").lower(),
                "url": offer.standard_web_url or "",
            })
