"""
schemas.py

Pydantic schemas for request payloads and API responses.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Literal, Optional
import datetime


class ORMSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class HouseholdSchema(ORMSchema):
    id: int
    name: str
    owner_id: str
    created_at: Optional[datetime.datetime] = None


class ProfileSchema(ORMSchema):
    id: int
    household_id: int
    name: str
    avatar: Optional[str] = None
    maturity_level: str
    created_at: Optional[datetime.datetime] = None


class TrackedTitleSchema(ORMSchema):
    id: int
    household_id: int
    tmdb_id: int
    media_type: str
    added_at: Optional[datetime.datetime] = None


class ScheduleEntrySchema(ORMSchema):
    id: int
    household_id: int
    profile_id: int
    tracked_title_id: int
    weekday: int
    slot_order: int
    enabled: bool
    created_at: Optional[datetime.datetime] = None


class TvProgressSchema(ORMSchema):
    id: int
    profile_id: int
    tracked_title_id: int
    season_number: int
    episode_number: int
    updated_at: Optional[datetime.datetime] = None


class ProgressWithTitleSchema(TvProgressSchema):
    tmdb_id: int
    media_type: str


class AdvanceResponse(BaseModel):
    progress: TvProgressSchema
    complete: bool


class WeekScheduleResponse(BaseModel):
    profile_id: int
    days: Dict[int, List[ScheduleEntrySchema]]


# Payloads
class ScheduleEntryCreate(BaseModel):
    profile_id: int
    tracked_title_id: int
    weekday: int
    household_id: int = 1


class ScheduleReorder(BaseModel):
    entry_id: int
    new_slot_order: int
    household_id: int = 1


class ScheduleMove(BaseModel):
    entry_id: int
    new_weekday: int
    new_slot_order: Optional[int] = None
    household_id: int = 1


class ScheduleToggle(BaseModel):
    enabled: bool
    household_id: int = 1


class ProgressSet(BaseModel):
    profile_id: int
    tracked_title_id: int
    season_number: int
    episode_number: int
    household_id: int = 1


class ProgressAdvance(BaseModel):
    profile_id: int
    tracked_title_id: int
    action: Literal["advance"] = "advance"
    total_episodes_in_season: int
    total_seasons: int
    household_id: int = 1


class LibraryAdd(BaseModel):
    tmdb_id: int
    media_type: str
    household_id: int = 1


class LibraryCheckResponse(BaseModel):
    in_library: bool
    title_id: Optional[int] = None


class HouseholdCreate(BaseModel):
    owner_id: str = Field(min_length=1)
    name: str = "My Household"


class ProfileCreate(BaseModel):
    name: str
    maturity_level: str = "adult"
    avatar: Optional[str] = None
    household_id: int = 1


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    maturity_level: Optional[str] = None
    avatar: Optional[str] = None
    household_id: int = 1


class SynopsisRequest(BaseModel):
    series_id: int
    season_number: int
    episode_number: int
    show_name: str = ""
    episode_name: str = ""
    overview: str = ""


class SynopsisResponse(BaseModel):
    blurb: str
    source: str
    cached: bool


class JustWatchOffer(BaseModel):
    provider_id: Optional[int] = None
    provider_name: str
    monetization_type: str
    url: str


class EpisodeOffersResponse(BaseModel):
    offers: List[JustWatchOffer] = Field(default_factory=list)
    show_level_url: Optional[str] = None
    error: Optional[str] = None


class ErrorResponse(BaseModel):
    error: str
    code: str
    details: Optional[Any] = None
