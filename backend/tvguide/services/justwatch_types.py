"""
Typed views of the JustWatch GraphQL responses we consume.

Only the fields requested by the queries in justwatch_client are modelled.
GraphQL may return null for any list, so lists are Optional and read with
`or []`.
"""
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class JustWatchModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, coerce_numbers_to_str=True)


class ExternalIds(JustWatchModel):
    tmdb_id: Optional[str] = Field(default=None, alias="tmdbId")


class TitleContent(JustWatchModel):
    title: Optional[str] = None
    full_path: Optional[str] = Field(default=None, alias="fullPath")
    external_ids: Optional[ExternalIds] = Field(default=None, alias="externalIds")


class SearchNode(JustWatchModel):
    id: str
    content: Optional[TitleContent] = None

    @property
    def tmdb_id(self) -> Optional[str]:
        ids = self.content.external_ids if self.content else None
        return ids.tmdb_id if ids else None

    @property
    def title(self) -> str:
        return (self.content.title if self.content else None) or ""


class SearchEdge(JustWatchModel):
    node: Optional[SearchNode] = None


class PopularTitles(JustWatchModel):
    edges: Optional[List[SearchEdge]] = None


class SearchData(JustWatchModel):
    popular_titles: Optional[PopularTitles] = Field(default=None, alias="popularTitles")

    def nodes(self) -> List[SearchNode]:
        edges = (self.popular_titles.edges if self.popular_titles else None) or []
        return [edge.node for edge in edges if edge.node is not None]


class SeasonContent(JustWatchModel):
    season_number: Optional[int] = Field(default=None, alias="seasonNumber")


class SeasonRef(JustWatchModel):
    id: str
    content: Optional[SeasonContent] = None


class ShowNode(JustWatchModel):
    id: str
    content: Optional[TitleContent] = None
    seasons: Optional[List[SeasonRef]] = None

    def find_season(self, season_number: int) -> Optional[SeasonRef]:
        for season in self.seasons or []:
            if season.content and season.content.season_number == season_number:
                return season
        return None


class ShowData(JustWatchModel):
    node: Optional[ShowNode] = None


class Package(JustWatchModel):
    clear_name: Optional[str] = Field(default=None, alias="clearName")
    package_id: Optional[int] = Field(default=None, alias="packageId")


class Offer(JustWatchModel):
    standard_web_url: Optional[str] = Field(default=None, alias="standardWebURL")
    monetization_type: Optional[str] = Field(default=None, alias="monetizationType")
    package: Optional[Package] = None


class EpisodeContent(JustWatchModel):
    episode_number: Optional[int] = Field(default=None, alias="episodeNumber")
    title: Optional[str] = None


class EpisodeNode(JustWatchModel):
    id: str
    content: Optional[EpisodeContent] = None
    offers: Optional[List[Offer]] = None


class SeasonNode(JustWatchModel):
    id: str
    content: Optional[SeasonContent] = None
    episodes: Optional[List[EpisodeNode]] = None

    def find_episode(self, episode_number: int) -> Optional[EpisodeNode]:
        for episode in self.episodes or []:
            if episode.content and episode.content.episode_number == episode_number:
                return episode
        return None


class SeasonData(JustWatchModel):
    node: Optional[SeasonNode] = None
