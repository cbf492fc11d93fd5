"""
TMDB client for the TV guide.
- Async httpx client; API key from settings (v3 key or v4 read token).
- 404 -> None; any other failure -> UpstreamUnavailable. No retries.
- Payloads validated into tmdb_types models before they leave this module.
- Successful responses cached in the injected response cache.
"""
import logging
from typing import Dict, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from tvguide.core.cache import MISS, ResponseCache
from tvguide.errors import UpstreamUnavailable
from tvguide.services.tmdb_types import (
    Credits,
    Episode,
    MovieDetails,
    PersonCombinedCredits,
    PersonDetails,
    SearchPage,
    Season,
    TVDetails,
    WatchProviderResult,
    WatchProvidersResponse,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class TMDBClient:
    """Thin typed wrapper over the TMDB v3 REST API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.themoviedb.org/3",
        language: str = "en-US",
        region: str = "US",
        cache: Optional[ResponseCache] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.language = language
        self.region = region
        self.cache = cache
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings, cache: Optional[ResponseCache] = None) -> "TMDBClient":
        return cls(
            api_key=settings.tmdb_api_key,
            base_url=settings.tmdb_base_url,
            language=settings.tmdb_language,
            region=settings.watch_region,
            cache=cache,
            timeout=settings.http_timeout_seconds,
        )

    def _auth(self, params: Dict[str, str]) -> Dict[str, str]:
        # v4 read access tokens are JWTs and go in the Authorization header
        if self.api_key.startswith("eyJ"):
            return {"Authorization": f"Bearer {self.api_key}"}
        params["api_key"] = self.api_key
        return {}

    async def _fetch(self, endpoint: str, model: Type[T], params: Optional[Dict[str, str]] = None) -> Optional[T]:
        if not self.api_key:
            logger.warning("TMDB API key not configured")
            raise UpstreamUnavailable("TMDB API key not configured", service="tmdb")

        params = dict(params or {})
        cache_key = "tmdb:" + endpoint + "?" + "&".join(f"{k}={v}" for k, v in sorted(params.items()))
        if self.cache is not None:
            cached = await self.cache.get(cache_key)
            if cached is not MISS:
                return model.model_validate(cached)

        headers = self._auth(params)
        url = f"{self.base_url}{endpoint}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.get(url, params=params, headers=headers)
        except httpx.HTTPError as e:
            logger.debug(f"TMDB request failed for {endpoint}: {e}")
            raise UpstreamUnavailable(f"TMDB request failed: {e}", service="tmdb")

        if resp.status_code == 404:
            return None
        if resp.status_code >= 400:
            logger.warning(f"TMDB API error {resp.status_code} for {endpoint}")
            raise UpstreamUnavailable(f"TMDB API error: {resp.status_code}", service="tmdb", status=resp.status_code)

        try:
            payload = resp.json()
            result = model.model_validate(payload)
        except (ValueError, ValidationError) as e:
            logger.warning(f"TMDB returned an unexpected payload for {endpoint}: {e}")
            raise UpstreamUnavailable("TMDB returned an unexpected payload", service="tmdb")

        if self.cache is not None:
            await self.cache.set(cache_key, result.model_dump(mode="json"))
        return result

    async def get_tv_details(self, tmdb_id: int) -> Optional[TVDetails]:
        return await self._fetch(f"/tv/{tmdb_id}", TVDetails, {"language": self.language})

    async def get_movie_details(self, tmdb_id: int) -> Optional[MovieDetails]:
        return await self._fetch(f"/movie/{tmdb_id}", MovieDetails, {"language": self.language})

    async def get_details(self, tmdb_id: int, media_type: str):
        if media_type == "tv":
            return await self.get_tv_details(tmdb_id)
        return await self.get_movie_details(tmdb_id)

    async def get_tv_season(self, series_id: int, season_number: int) -> Optional[Season]:
        return await self._fetch(f"/tv/{series_id}/season/{season_number}", Season, {"language": self.language})

    async def get_tv_episode(self, series_id: int, season_number: int, episode_number: int) -> Optional[Episode]:
        return await self._fetch(
            f"/tv/{series_id}/season/{season_number}/episode/{episode_number}",
            Episode,
            {"language": self.language},
        )

    async def get_tv_credits(self, series_id: int) -> Optional[Credits]:
        return await self._fetch(f"/tv/{series_id}/credits", Credits, {"language": self.language})

    async def get_episode_credits(self, series_id: int, season_number: int, episode_number: int) -> Optional[Credits]:
        return await self._fetch(
            f"/tv/{series_id}/season/{season_number}/episode/{episode_number}/credits",
            Credits,
            {"language": self.language},
        )

    async def get_watch_providers(self, tmdb_id: int, media_type: str = "tv", region: Optional[str] = None) -> Optional[WatchProviderResult]:
        """Providers for one region, or None when the title has none there."""
        media_path = "tv" if media_type == "tv" else "movie"
        response = await self._fetch(f"/{media_path}/{tmdb_id}/watch/providers", WatchProvidersResponse)
        if response is None:
            return None
        return response.results.get(region or self.region)

    async def search_multi(self, query: str, page: int = 1) -> SearchPage:
        """Search movies and TV shows; people are filtered out."""
        result = await self._fetch(
            "/search/multi",
            SearchPage,
            {"query": query, "page": str(page), "language": self.language, "include_adult": "false"},
        )
        if result is None:
            return SearchPage(page=page)
        result.results = [r for r in result.results if r.media_type in ("tv", "movie")]
        return result

    async def get_person_details(self, person_id: int) -> Optional[PersonDetails]:
        return await self._fetch(f"/person/{person_id}", PersonDetails, {"language": self.language})

    async def get_person_combined_credits(self, person_id: int) -> Optional[PersonCombinedCredits]:
        return await self._fetch(f"/person/{person_id}/combined_credits", PersonCombinedCredits, {"language": self.language})
