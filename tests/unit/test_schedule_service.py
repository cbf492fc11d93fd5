import pytest
from sqlalchemy.exc import IntegrityError

from tvguide.errors import DuplicateEntry, InvalidArgument, NotFound
from tvguide.models import Household, Profile, ScheduleEntry, TrackedTitle
from tvguide.services.schedule import ScheduleService, sort_key


def _ids(entries):
    return [e.id for e in entries]


def test_add_entry_appends_to_end_of_day(db, profile, make_title):
    service = ScheduleService(db)
    first = service.add_entry(profile.id, make_title(1).id, 1)
    second = service.add_entry(profile.id, make_title(2).id, 1)
    other_day = service.add_entry(profile.id, make_title(3).id, 2)

    assert first.slot_order == 0
    assert second.slot_order == 1
    assert other_day.slot_order == 0
    assert _ids(service.get_day_schedule(profile.id, 1)) == [first.id, second.id]


def test_add_entry_rejects_same_title_twice_on_one_day(db, profile, show):
    service = ScheduleService(db)
    service.add_entry(profile.id, show.id, 3)
    with pytest.raises(DuplicateEntry):
        service.add_entry(profile.id, show.id, 3)
    # Another day is fine
    assert service.add_entry(profile.id, show.id, 4).weekday == 4


@pytest.mark.parametrize("weekday", [-1, 7, 100, True, "1"])
def test_add_entry_rejects_bad_weekday(db, profile, show, weekday):
    with pytest.raises(InvalidArgument):
        ScheduleService(db).add_entry(profile.id, show.id, weekday)


def test_add_entry_unknown_profile_or_title(db, profile, show):
    service = ScheduleService(db)
    with pytest.raises(NotFound):
        service.add_entry(9999, show.id, 0)
    with pytest.raises(NotFound):
        service.add_entry(profile.id, 9999, 0)


def test_add_entry_rejects_title_from_other_household(db, profile):
    other = Household(name="Neighbours", owner_id="owner-2")
    db.add(other)
    db.commit()
    foreign = TrackedTitle(household_id=other.id, tmdb_id=42, media_type="tv")
    db.add(foreign)
    db.commit()

    with pytest.raises(NotFound):
        ScheduleService(db).add_entry(profile.id, foreign.id, 0)


def test_remove_entry_leaves_gap(db, profile, make_title):
    service = ScheduleService(db)
    a = service.add_entry(profile.id, make_title(1).id, 5)
    b = service.add_entry(profile.id, make_title(2).id, 5)
    c = service.add_entry(profile.id, make_title(3).id, 5)

    service.remove_entry(b.id)

    day = service.get_day_schedule(profile.id, 5)
    assert _ids(day) == [a.id, c.id]
    assert [e.slot_order for e in day] == [0, 2]
    with pytest.raises(NotFound):
        service.remove_entry(b.id)


def test_reorder_is_direct_assignment_with_id_tiebreak(db, profile, make_title):
    service = ScheduleService(db)
    a = service.add_entry(profile.id, make_title(1).id, 0)
    b = service.add_entry(profile.id, make_title(2).id, 0)
    c = service.add_entry(profile.id, make_title(3).id, 0)

    service.reorder_slot(c.id, 0)

    day = service.get_day_schedule(profile.id, 0)
    # a and c share slot 0; a was created first so it renders first
    assert _ids(day) == [a.id, c.id, b.id]
    assert [e.slot_order for e in day] == [0, 0, 1]


def test_reorder_then_read_puts_entry_at_new_position(db, profile, make_title):
    service = ScheduleService(db)
    a = service.add_entry(profile.id, make_title(1).id, 6)
    b = service.add_entry(profile.id, make_title(2).id, 6)

    service.reorder_slot(a.id, 5)

    assert _ids(service.get_day_schedule(profile.id, 6)) == [b.id, a.id]


@pytest.mark.parametrize("slot", [-1, 1.5, None, False])
def test_reorder_rejects_bad_slot(db, profile, show, slot):
    service = ScheduleService(db)
    entry = service.add_entry(profile.id, show.id, 0)
    with pytest.raises(InvalidArgument):
        service.reorder_slot(entry.id, slot)


def test_reorder_unknown_entry(db):
    with pytest.raises(NotFound):
        ScheduleService(db).reorder_slot(12345, 0)


def test_move_to_day_appends_to_destination(db, profile, make_title):
    service = ScheduleService(db)
    service.add_entry(profile.id, make_title(1).id, 2)
    service.add_entry(profile.id, make_title(2).id, 2)
    moving = service.add_entry(profile.id, make_title(3).id, 1)

    moved = service.move_to_day(moving.id, 2)

    assert moved.weekday == 2
    assert moved.slot_order == 2
    assert _ids(service.get_day_schedule(profile.id, 2))[-1] == moving.id
    assert service.get_day_schedule(profile.id, 1) == []


def test_move_to_empty_day_starts_at_zero(db, profile, show):
    service = ScheduleService(db)
    entry = service.add_entry(profile.id, show.id, 1)
    service.reorder_slot(entry.id, 7)

    assert service.move_to_day(entry.id, 4).slot_order == 0


def test_move_to_same_day_is_noop(db, profile, make_title):
    service = ScheduleService(db)
    a = service.add_entry(profile.id, make_title(1).id, 3)
    b = service.add_entry(profile.id, make_title(2).id, 3)

    result = service.move_to_day(a.id, 3)

    assert result.id == a.id
    assert result.slot_order == 0
    assert _ids(service.get_day_schedule(profile.id, 3)) == [a.id, b.id]


def test_move_rejects_duplicate_on_destination(db, profile, show):
    service = ScheduleService(db)
    service.add_entry(profile.id, show.id, 1)
    tuesday = service.add_entry(profile.id, show.id, 2)

    with pytest.raises(DuplicateEntry):
        service.move_to_day(tuesday.id, 1)
    db.refresh(tuesday)
    assert tuesday.weekday == 2


def test_move_rejects_bad_weekday(db, profile, show):
    service = ScheduleService(db)
    entry = service.add_entry(profile.id, show.id, 1)
    with pytest.raises(InvalidArgument):
        service.move_to_day(entry.id, 9)


def test_move_and_reorder(db, profile, make_title):
    service = ScheduleService(db)
    first = service.add_entry(profile.id, make_title(1).id, 0)
    moving = service.add_entry(profile.id, make_title(2).id, 1)

    service.move_and_reorder(moving.id, 0, 0)

    day = service.get_day_schedule(profile.id, 0)
    assert _ids(day) == [first.id, moving.id]
    assert day[1].slot_order == 0


def test_move_and_reorder_without_slot_only_moves(db, profile, show):
    service = ScheduleService(db)
    entry = service.add_entry(profile.id, show.id, 0)
    moved = service.move_and_reorder(entry.id, 5)
    assert (moved.weekday, moved.slot_order) == (5, 0)


def test_set_enabled(db, profile, show):
    service = ScheduleService(db)
    entry = service.add_entry(profile.id, show.id, 0)
    assert service.set_enabled(entry.id, False).enabled is False
    assert service.set_enabled(entry.id, True).enabled is True


def test_week_schedule_has_seven_sorted_buckets(db, profile, make_title):
    service = ScheduleService(db)
    a = service.add_entry(profile.id, make_title(1).id, 0)
    b = service.add_entry(profile.id, make_title(2).id, 0)
    c = service.add_entry(profile.id, make_title(3).id, 6)
    service.reorder_slot(a.id, 3)

    week = service.get_week_schedule(profile.id)

    assert sorted(week.keys()) == list(range(7))
    assert _ids(week[0]) == [b.id, a.id]
    assert _ids(week[6]) == [c.id]
    for day in week.values():
        assert day == sorted(day, key=sort_key)


def test_week_schedule_is_per_profile(db, household, profile, show):
    sibling = Profile(household_id=household.id, name="Sam")
    db.add(sibling)
    db.commit()
    service = ScheduleService(db)
    service.add_entry(profile.id, show.id, 2)

    assert all(day == [] for day in service.get_week_schedule(sibling.id).values())


def test_household_scoping_hides_entries(db, profile, show):
    service = ScheduleService(db)
    entry = service.add_entry(profile.id, show.id, 0)
    with pytest.raises(NotFound):
        service.remove_entry(entry.id, household_id=profile.household_id + 1)
    assert db.get(ScheduleEntry, entry.id) is not None


def test_unique_constraint_race_maps_to_duplicate_entry(db, profile, show):
    service = ScheduleService(db)
    service.add_entry(profile.id, show.id, 1)
    other = service.add_entry(profile.id, show.id, 2)

    # Skip the pre-check, as a concurrent writer would
    other.weekday = 1
    with pytest.raises(DuplicateEntry):
        service._commit("move")
    assert service.get_day_schedule(profile.id, 2)[0].id == other.id


def test_other_constraint_failures_are_not_reported_as_duplicates(db, profile, show):
    service = ScheduleService(db)
    entry = service.add_entry(profile.id, show.id, 1)

    entry.weekday = 9
    with pytest.raises(IntegrityError):
        service._commit("move")
    assert db.get(ScheduleEntry, entry.id).weekday == 1
