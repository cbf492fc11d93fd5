"""
models.py

SQLAlchemy models for households, profiles, the shared title library,
weekly schedule entries, per-profile TV progress and cached episode blurbs.
"""
from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, Text, UniqueConstraint, Index, CheckConstraint
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import relationship
from tvguide.utils.timezone import utc_now

Base = declarative_base()

MEDIA_TYPES = ("tv", "movie")
MATURITY_LEVELS = ("kids", "teen", "adult")
BLURB_SOURCES = ("ai", "tmdb_truncate")


class Household(Base):
    __tablename__ = "households"
    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    owner_id = Column(String, nullable=False, unique=True)  # external auth subject
    created_at = Column(DateTime, default=utc_now)

    profiles = relationship("Profile", back_populates="household", cascade="all, delete", order_by="Profile.created_at")
    titles = relationship("TrackedTitle", back_populates="household", cascade="all, delete")


class Profile(Base):
    __tablename__ = "profiles"
    id = Column(Integer, primary_key=True)
    household_id = Column(Integer, ForeignKey("households.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(50), nullable=False)
    avatar = Column(String, nullable=True)
    maturity_level = Column(String, nullable=False, default="adult")
    pin_hash = Column(String, nullable=True)
    created_at = Column(DateTime, default=utc_now)

    household = relationship("Household", back_populates="profiles")
    schedule_entries = relationship("ScheduleEntry", back_populates="profile", cascade="all, delete")
    progress = relationship("TvProgress", back_populates="profile", cascade="all, delete")


class TrackedTitle(Base):
    """A TMDB title in a household's shared library."""
    __tablename__ = "tracked_titles"
    id = Column(Integer, primary_key=True)
    household_id = Column(Integer, ForeignKey("households.id", ondelete="CASCADE"), nullable=False, index=True)
    tmdb_id = Column(Integer, nullable=False, index=True)
    media_type = Column(String, nullable=False)  # 'tv' or 'movie'
    added_at = Column(DateTime, default=utc_now)

    household = relationship("Household", back_populates="titles")
    schedule_entries = relationship("ScheduleEntry", back_populates="tracked_title", cascade="all, delete")
    progress = relationship("TvProgress", back_populates="tracked_title", cascade="all, delete")

    __table_args__ = (
        UniqueConstraint("household_id", "tmdb_id", name="uq_tracked_titles_household_tmdb"),
    )


class ScheduleEntry(Base):
    """
    A tracked title placed on a profile's weekday.

    slot_order defines display order inside a (profile_id, weekday) bucket.
    Gaps are allowed; readers sort by (slot_order, id).
    """
    __tablename__ = "schedule_entries"
    id = Column(Integer, primary_key=True)
    household_id = Column(Integer, ForeignKey("households.id", ondelete="CASCADE"), nullable=False, index=True)
    profile_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    tracked_title_id = Column(Integer, ForeignKey("tracked_titles.id", ondelete="CASCADE"), nullable=False, index=True)
    weekday = Column(Integer, nullable=False)  # 0 = Sunday ... 6 = Saturday
    slot_order = Column(Integer, nullable=False, default=0)
    enabled = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utc_now)

    profile = relationship("Profile", back_populates="schedule_entries")
    tracked_title = relationship("TrackedTitle", back_populates="schedule_entries")

    __table_args__ = (
        UniqueConstraint("profile_id", "tracked_title_id", "weekday", name="uq_schedule_profile_title_weekday"),
        CheckConstraint("weekday >= 0 AND weekday <= 6", name="ck_schedule_weekday_range"),
        CheckConstraint("slot_order >= 0", name="ck_schedule_slot_order_non_negative"),
        Index("ix_schedule_profile_weekday_slot", "profile_id", "weekday", "slot_order"),
    )


class TvProgress(Base):
    """(season, episode) cursor of one profile through one tracked title."""
    __tablename__ = "tv_progress"
    id = Column(Integer, primary_key=True)
    profile_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    tracked_title_id = Column(Integer, ForeignKey("tracked_titles.id", ondelete="CASCADE"), nullable=False, index=True)
    season_number = Column(Integer, nullable=False, default=1)
    episode_number = Column(Integer, nullable=False, default=1)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    profile = relationship("Profile", back_populates="progress")
    tracked_title = relationship("TrackedTitle", back_populates="progress")

    __table_args__ = (
        UniqueConstraint("profile_id", "tracked_title_id", name="uq_tv_progress_profile_title"),
        CheckConstraint("season_number >= 1", name="ck_tv_progress_season_positive"),
        CheckConstraint("episode_number >= 1", name="ck_tv_progress_episode_positive"),
    )


class EpisodeBlurb(Base):
    """Cached spoiler-free synopsis for one episode, shared across households."""
    __tablename__ = "episode_blurbs"
    id = Column(Integer, primary_key=True)
    series_tmdb_id = Column(Integer, nullable=False)
    season_number = Column(Integer, nullable=False)
    episode_number = Column(Integer, nullable=False)
    blurb_text = Column(Text, nullable=False)
    source = Column(String, nullable=False)  # 'ai' or 'tmdb_truncate'
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    __table_args__ = (
        UniqueConstraint("series_tmdb_id", "season_number", "episode_number", name="uq_episode_blurbs_episode"),
    )
