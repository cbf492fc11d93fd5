"""
Schedule Service

Keeps, for every (profile, weekday) bucket, an ordered list of schedule
entries. Order is defined by slot_order alone; gaps are harmless and ties are
broken by entry id so reads are deterministic.

Reorder is a direct assignment of slot_order: it never shifts neighbours.
Two entries may therefore share a slot_order; the older entry (lower id)
renders first.

Concurrent writers on the same bucket are last-write-wins; nothing here
takes locks.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tvguide.errors import DuplicateEntry, InvalidArgument, NotFound
from tvguide.models import Profile, ScheduleEntry, TrackedTitle

logger = logging.getLogger(__name__)

WEEKDAYS = range(7)
DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
DUPLICATE_PLACEMENT_CONSTRAINT = "uq_schedule_profile_title_weekday"


def validate_weekday(weekday) -> None:
    if isinstance(weekday, bool) or not isinstance(weekday, int) or weekday not in WEEKDAYS:
        raise InvalidArgument("Weekday must be a number between 0 (Sunday) and 6 (Saturday)")


def sort_key(entry: ScheduleEntry):
    return (entry.slot_order, entry.id)


def is_duplicate_placement(error: IntegrityError) -> bool:
    """True when the error is the (profile, title, weekday) unique constraint."""
    diag = getattr(error.orig, "diag", None)
    constraint = getattr(diag, "constraint_name", None)
    if constraint:
        return constraint == DUPLICATE_PLACEMENT_CONSTRAINT
    # SQLite names the columns instead of the constraint
    message = str(error.orig)
    return DUPLICATE_PLACEMENT_CONSTRAINT in message or message.startswith(
        "UNIQUE constraint failed: schedule_entries.profile_id, schedule_entries.tracked_title_id, schedule_entries.weekday"
    )


class ScheduleService:
    """Ordering engine for schedule entries."""

    def __init__(self, db: Session):
        self.db = db

    def _get_entry(self, entry_id: int, household_id: Optional[int] = None) -> ScheduleEntry:
        entry = self.db.get(ScheduleEntry, entry_id)
        if not entry or (household_id is not None and entry.household_id != household_id):
            raise NotFound("Schedule entry not found")
        return entry

    def _next_slot_order(self, profile_id: int, weekday: int) -> int:
        current_max = self.db.query(func.max(ScheduleEntry.slot_order)).filter(
            ScheduleEntry.profile_id == profile_id,
            ScheduleEntry.weekday == weekday,
        ).scalar()
        return 0 if current_max is None else current_max + 1

    def _is_scheduled(self, profile_id: int, tracked_title_id: int, weekday: int) -> bool:
        return self.db.query(ScheduleEntry.id).filter(
            ScheduleEntry.profile_id == profile_id,
            ScheduleEntry.tracked_title_id == tracked_title_id,
            ScheduleEntry.weekday == weekday,
        ).first() is not None

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if is_duplicate_placement(e):
                logger.warning(f"Schedule {action} rejected as duplicate: {e.orig}")
                raise DuplicateEntry("Title is already scheduled on that day")
            logger.error(f"Schedule {action} violated a database constraint: {e.orig}")
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Schedule {action} failed: {e}")
            raise

    def add_entry(self, profile_id: int, tracked_title_id: int, weekday: int, household_id: Optional[int] = None) -> ScheduleEntry:
        """Append a title to the end of a profile's weekday."""
        validate_weekday(weekday)

        profile = self.db.get(Profile, profile_id)
        if not profile or (household_id is not None and profile.household_id != household_id):
            raise NotFound("Profile not found")
        title = self.db.get(TrackedTitle, tracked_title_id)
        if not title or title.household_id != profile.household_id:
            raise NotFound("Tracked title not found")

        if self._is_scheduled(profile_id, tracked_title_id, weekday):
            raise DuplicateEntry("Title is already scheduled on that day")

        entry = ScheduleEntry(
            household_id=profile.household_id,
            profile_id=profile_id,
            tracked_title_id=tracked_title_id,
            weekday=weekday,
            slot_order=self._next_slot_order(profile_id, weekday),
            enabled=True,
        )
        self.db.add(entry)
        self._commit("add")
        self.db.refresh(entry)
        logger.info(f"Scheduled title {tracked_title_id} for profile {profile_id} on weekday {weekday} at slot {entry.slot_order}")
        return entry

    def remove_entry(self, entry_id: int, household_id: Optional[int] = None) -> None:
        """Delete an entry. Remaining slot orders are left as they are."""
        entry = self._get_entry(entry_id, household_id)
        self.db.delete(entry)
        self._commit("remove")
        logger.info(f"Removed schedule entry {entry_id}")

    def reorder_slot(self, entry_id: int, new_slot_order: int, household_id: Optional[int] = None) -> ScheduleEntry:
        if isinstance(new_slot_order, bool) or not isinstance(new_slot_order, int) or new_slot_order < 0:
            raise InvalidArgument("Slot order must be a non-negative number")
        entry = self._get_entry(entry_id, household_id)

        collision = self.db.query(ScheduleEntry.id).filter(
            ScheduleEntry.profile_id == entry.profile_id,
            ScheduleEntry.weekday == entry.weekday,
            ScheduleEntry.slot_order == new_slot_order,
            ScheduleEntry.id != entry.id,
        ).first()
        if collision:
            logger.debug(f"Entry {entry_id} now shares slot {new_slot_order} with entry {collision.id}; id breaks the tie")

        entry.slot_order = new_slot_order
        self._commit("reorder")
        self.db.refresh(entry)
        return entry

    def move_to_day(self, entry_id: int, new_weekday: int, household_id: Optional[int] = None) -> ScheduleEntry:
        """Move an entry to the end of another weekday. Same-day moves change nothing."""
        validate_weekday(new_weekday)
        entry = self._get_entry(entry_id, household_id)

        if entry.weekday == new_weekday:
            return entry

        if self._is_scheduled(entry.profile_id, entry.tracked_title_id, new_weekday):
            raise DuplicateEntry("Title is already scheduled on that day")

        old_weekday = entry.weekday
        entry.slot_order = self._next_slot_order(entry.profile_id, new_weekday)
        entry.weekday = new_weekday
        self._commit("move")
        self.db.refresh(entry)
        logger.info(f"Moved schedule entry {entry_id} from weekday {old_weekday} to {new_weekday} (slot {entry.slot_order})")
        return entry

    def move_and_reorder(
        self,
        entry_id: int,
        new_weekday: int,
        new_slot_order: Optional[int] = None,
        household_id: Optional[int] = None,
    ) -> ScheduleEntry:
        """
        Move, then optionally reorder. The steps commit separately, so a
        failed reorder leaves the entry moved to the end of the new day.
        """
        entry = self.move_to_day(entry_id, new_weekday, household_id)
        if new_slot_order is None:
            return entry
        return self.reorder_slot(entry_id, new_slot_order, household_id)

    def set_enabled(self, entry_id: int, enabled: bool, household_id: Optional[int] = None) -> ScheduleEntry:
        entry = self._get_entry(entry_id, household_id)
        entry.enabled = bool(enabled)
        self._commit("toggle")
        self.db.refresh(entry)
        return entry

    def get_day_schedule(self, profile_id: int, weekday: int) -> List[ScheduleEntry]:
        validate_weekday(weekday)
        return (
            self.db.query(ScheduleEntry)
            .filter(ScheduleEntry.profile_id == profile_id, ScheduleEntry.weekday == weekday)
            .order_by(ScheduleEntry.slot_order.asc(), ScheduleEntry.id.asc())
            .all()
        )

    def get_week_schedule(self, profile_id: int) -> Dict[int, List[ScheduleEntry]]:
        """All seven buckets for a profile, each sorted by (slot_order, id)."""
        entries = (
            self.db.query(ScheduleEntry)
            .filter(ScheduleEntry.profile_id == profile_id)
            .order_by(ScheduleEntry.slot_order.asc(), ScheduleEntry.id.asc())
            .all()
        )
        schedule: Dict[int, List[ScheduleEntry]] = {day: [] for day in WEEKDAYS}
        for entry in entries:
            schedule[entry.weekday].append(entry)
        return schedule


# ---------------------------------------------------------------------------
# Timeline
# ---------------------------------------------------------------------------

@dataclass
class TimelineBlock:
    entry_id: int
    start: int  # minutes from the start of the evening
    runtime: int
    runtime_estimated: bool
    start_label: str
    end_label: str
    top_px: float
    height_px: float

    @property
    def end(self) -> int:
        return self.start + self.runtime


def format_clock(minutes_from_start: int, start_hour: int = 18) -> str:
    """'6:00 PM' style label for an offset from start_hour."""
    total = start_hour * 60 + minutes_from_start
    hours = (total // 60) % 24
    minutes = total % 60
    display_hour = hours % 12 or 12
    ampm = "PM" if hours >= 12 else "AM"
    return f"{display_hour}:{minutes:02d} {ampm}"


def build_day_timeline(
    entries: Sequence[ScheduleEntry],
    runtimes: Dict[int, Optional[int]],
    fallback_runtimes: Dict[int, int],
    start_hour: int = 18,
    pixels_per_minute: float = 2.0,
) -> List[TimelineBlock]:
    """
    Lay a day's entries end to end.

    runtimes maps entry id -> minutes (None or missing when metadata was
    unavailable); fallback_runtimes maps entry id -> estimate used instead.
    Block i starts where block i-1 ends, so blocks never overlap.
    """
    blocks: List[TimelineBlock] = []
    cursor = 0
    for entry in entries:
        runtime = runtimes.get(entry.id)
        estimated = not runtime or runtime <= 0
        if estimated:
            runtime = max(int(fallback_runtimes.get(entry.id, 0) or 0), 0)
        blocks.append(TimelineBlock(
            entry_id=entry.id,
            start=cursor,
            runtime=runtime,
            runtime_estimated=estimated,
            start_label=format_clock(cursor, start_hour),
            end_label=format_clock(cursor + runtime, start_hour),
            top_px=cursor * pixels_per_minute,
            height_px=runtime * pixels_per_minute,
        ))
        cursor += runtime
    return blocks
