"""
Typed views of the TMDB v3 payloads we consume.

Responses are validated here at the boundary; anything that does not fit is
rejected by the client as an upstream failure. Unknown fields are ignored.
"""
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class TMDBModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class Genre(TMDBModel):
    id: int
    name: str


class SeasonSummary(TMDBModel):
    season_number: int
    episode_count: int = 0
    name: Optional[str] = None
    air_date: Optional[str] = None
    poster_path: Optional[str] = None


class EpisodeSummary(TMDBModel):
    season_number: int
    episode_number: int
    name: Optional[str] = None
    air_date: Optional[str] = None
    runtime: Optional[int] = None


def _year(date: Optional[str]) -> str:
    return date[:4] if date else ""


class TVDetails(TMDBModel):
    id: int
    name: str
    overview: Optional[str] = None
    poster_path: Optional[str] = None
    backdrop_path: Optional[str] = None
    first_air_date: Optional[str] = None
    last_air_date: Optional[str] = None
    status: Optional[str] = None
    number_of_seasons: Optional[int] = None
    number_of_episodes: Optional[int] = None
    episode_run_time: List[int] = Field(default_factory=list)
    genres: List[Genre] = Field(default_factory=list)
    seasons: List[SeasonSummary] = Field(default_factory=list)
    last_episode_to_air: Optional[EpisodeSummary] = None
    next_episode_to_air: Optional[EpisodeSummary] = None

    @property
    def year(self) -> str:
        return _year(self.first_air_date)

    @property
    def typical_runtime(self) -> Optional[int]:
        runtimes = [r for r in self.episode_run_time if r and r > 0]
        return runtimes[0] if runtimes else None

    def season_episode_counts(self) -> Dict[int, int]:
        """Episode count per regular season; specials (season 0) are skipped."""
        return {s.season_number: s.episode_count for s in self.seasons if s.season_number >= 1}

    @property
    def total_seasons(self) -> int:
        counts = self.season_episode_counts()
        if counts:
            return max(counts)
        return self.number_of_seasons or 0


class MovieDetails(TMDBModel):
    id: int
    title: str
    overview: Optional[str] = None
    poster_path: Optional[str] = None
    backdrop_path: Optional[str] = None
    release_date: Optional[str] = None
    runtime: Optional[int] = None
    status: Optional[str] = None
    genres: List[Genre] = Field(default_factory=list)

    @property
    def year(self) -> str:
        return _year(self.release_date)


class Episode(TMDBModel):
    id: int
    name: str = ""
    overview: Optional[str] = None
    season_number: int
    episode_number: int
    air_date: Optional[str] = None
    runtime: Optional[int] = None
    still_path: Optional[str] = None
    vote_average: Optional[float] = None


class Season(TMDBModel):
    id: int
    name: Optional[str] = None
    season_number: int
    overview: Optional[str] = None
    air_date: Optional[str] = None
    poster_path: Optional[str] = None
    episodes: List[Episode] = Field(default_factory=list)

    def get_episode(self, episode_number: int) -> Optional[Episode]:
        for episode in self.episodes:
            if episode.episode_number == episode_number:
                return episode
        return None


class CastMember(TMDBModel):
    id: int
    name: str
    character: Optional[str] = None
    profile_path: Optional[str] = None
    order: Optional[int] = None


class CrewMember(TMDBModel):
    id: int
    name: str
    job: Optional[str] = None
    department: Optional[str] = None
    profile_path: Optional[str] = None


class Credits(TMDBModel):
    cast: List[CastMember] = Field(default_factory=list)
    crew: List[CrewMember] = Field(default_factory=list)
    guest_stars: List[CastMember] = Field(default_factory=list)


class WatchProvider(TMDBModel):
    provider_id: int
    provider_name: str
    logo_path: Optional[str] = None
    display_priority: Optional[int] = None


class WatchProviderResult(TMDBModel):
    link: Optional[str] = None
    flatrate: List[WatchProvider] = Field(default_factory=list)
    free: List[WatchProvider] = Field(default_factory=list)
    ads: List[WatchProvider] = Field(default_factory=list)
    rent: List[WatchProvider] = Field(default_factory=list)
    buy: List[WatchProvider] = Field(default_factory=list)


class WatchProvidersResponse(TMDBModel):
    id: Optional[int] = None
    results: Dict[str, WatchProviderResult] = Field(default_factory=dict)


class SearchResult(TMDBModel):
    id: int
    media_type: Optional[str] = None
    name: Optional[str] = None
    title: Optional[str] = None
    overview: Optional[str] = None
    poster_path: Optional[str] = None
    profile_path: Optional[str] = None
    first_air_date: Optional[str] = None
    release_date: Optional[str] = None
    popularity: Optional[float] = None

    @property
    def display_title(self) -> str:
        return self.title or self.name or ""


class SearchPage(TMDBModel):
    page: int = 1
    results: List[SearchResult] = Field(default_factory=list)
    total_pages: int = 0
    total_results: int = 0


class PersonDetails(TMDBModel):
    id: int
    name: str
    biography: Optional[str] = None
    birthday: Optional[str] = None
    deathday: Optional[str] = None
    place_of_birth: Optional[str] = None
    profile_path: Optional[str] = None
    known_for_department: Optional[str] = None


class PersonCredit(TMDBModel):
    id: int
    media_type: Optional[str] = None
    title: Optional[str] = None
    name: Optional[str] = None
    character: Optional[str] = None
    job: Optional[str] = None
    poster_path: Optional[str] = None
    release_date: Optional[str] = None
    first_air_date: Optional[str] = None
    episode_count: Optional[int] = None


class PersonCombinedCredits(TMDBModel):
    cast: List[PersonCredit] = Field(default_factory=list)
    crew: List[PersonCredit] = Field(default_factory=list)
