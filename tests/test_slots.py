import uuid
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from timesync_bot.models import ActivePoll, GroupAvailability, MatchResult, SlotInfo
from timesync_bot.slots import (
    find_optimal_meeting_slot,
    format_slot_time,
    organize_slots_by_day,
)

UTC = timezone.utc


def _match(start, hours, users=()):
    group = GroupAvailability(
        id=uuid.uuid4(), name="alpha", count=len(users), available_users=list(users)
    )
    return MatchResult(start=start, end=start + timedelta(hours=hours), groups=[group])


def _slot(slot_id, hour):
    start = datetime(2024, 3, 4, hour, tzinfo=UTC)
    return SlotInfo(
        id=slot_id,
        start=start,
        end=start + timedelta(hours=1),
        formatted_time=format_slot_time(start, start + timedelta(hours=1)),
    )


# --- format_slot_time -------------------------------------------------------


def test_format_on_the_hour():
    start = datetime(2024, 3, 4, 18, 0)
    assert format_slot_time(start, start + timedelta(hours=1)) == "6pm-7pm"


def test_format_with_minutes():
    start = datetime(2024, 3, 4, 18, 30)
    assert format_slot_time(start, start + timedelta(hours=1)) == "6:30pm-7:30pm"


def test_format_midnight_is_twelve_am():
    start = datetime(2024, 3, 4, 0, 0)
    assert format_slot_time(start, start + timedelta(hours=1)) == "12am-1am"


def test_format_shows_minutes_if_either_end_is_off_hour():
    start = datetime(2024, 3, 4, 9, 0)
    text = format_slot_time(start, start + timedelta(minutes=45))
    assert text.startswith("9:00am-")
    assert " " not in text and text == text.lower()


# --- organize_slots_by_day --------------------------------------------------


def test_splits_match_into_contiguous_slots():
    start = datetime(2024, 3, 4, 12, tzinfo=UTC)
    days = organize_slots_by_day([_match(start, 3)], "UTC", 60)
    assert list(days) == [0]
    slots = days[0]
    assert len(slots) == 3
    assert slots[0].start == start
    assert slots[-1].end == start + timedelta(hours=3)
    for earlier, later in zip(slots, slots[1:]):
        assert earlier.end == later.start
    assert [s.id for s in slots] == [f"0_{int(s.start.timestamp())}" for s in slots]


def test_last_slot_is_truncated_at_match_end():
    start = datetime(2024, 3, 4, 12, tzinfo=UTC)
    match = MatchResult(start=start, end=start + timedelta(minutes=90))
    slots = organize_slots_by_day([match], "UTC", 60)[0]
    assert [s.end - s.start for s in slots] == [timedelta(minutes=60), timedelta(minutes=30)]
    assert slots[-1].end == match.end


def test_days_are_reindexed_chronologically():
    later = datetime(2024, 3, 6, 12, tzinfo=UTC)
    earlier = datetime(2024, 3, 4, 12, tzinfo=UTC)
    days = organize_slots_by_day([_match(later, 1), _match(earlier, 1)], "UTC", 60)
    assert sorted(days) == [0, 1]
    assert days[0][0].start == earlier
    assert days[1][0].start == later
    assert days[0][0].id.startswith("1_")


def test_timezone_determines_day_grouping():
    a = datetime(2024, 1, 1, 23, tzinfo=UTC)
    b = datetime(2024, 1, 2, 3, tzinfo=UTC)
    matches = [_match(a, 1), _match(b, 1)]
    assert len(organize_slots_by_day(matches, "UTC", 60)) == 2
    assert len(organize_slots_by_day(matches, "America/New_York", 60)) == 1


def test_formatted_time_uses_local_zone():
    start = datetime(2024, 3, 4, 18, tzinfo=UTC)
    slot = organize_slots_by_day([_match(start, 1)], "Asia/Tokyo", 60)[0][0]
    tz = ZoneInfo("Asia/Tokyo")
    assert slot.formatted_time == format_slot_time(start.astimezone(tz), slot.end.astimezone(tz))


def test_unknown_timezone_falls_back_to_utc():
    start = datetime(2024, 3, 4, 18, tzinfo=UTC)
    bad = organize_slots_by_day([_match(start, 2)], "Not/AZone", 60)
    utc = organize_slots_by_day([_match(start, 2)], "UTC", 60)
    assert [s.formatted_time for s in bad[0]] == [s.formatted_time for s in utc[0]]


def test_available_users_are_flattened_from_groups():
    start = datetime(2024, 3, 4, 12, tzinfo=UTC)
    match = MatchResult(
        start=start,
        end=start + timedelta(hours=1),
        groups=[
            GroupAvailability(id=uuid.uuid4(), name="a", count=1, available_users=["1"]),
            GroupAvailability(id=uuid.uuid4(), name="b", count=2, available_users=["2", "3"]),
        ],
    )
    slot = organize_slots_by_day([match], "UTC", 60)[0][0]
    assert slot.available_users == ["1", "2", "3"]


def test_empty_matches_give_no_days():
    assert organize_slots_by_day([], "UTC", 60) == {}


@pytest.mark.parametrize("duration", [0, -30])
def test_non_positive_duration_rejected(duration):
    start = datetime(2024, 3, 4, 12, tzinfo=UTC)
    with pytest.raises(ValueError):
        organize_slots_by_day([_match(start, 1)], "UTC", duration)


# --- find_optimal_meeting_slot ----------------------------------------------


def _poll(responses, locked, members):
    gid = uuid.uuid4()
    return ActivePoll(
        day_slots={0: [_slot("a", 10), _slot("b", 11)], 1: [_slot("c", 12)]},
        group_members={gid: members},
        slot_responses=responses,
        locked_votes={user: True for user in locked},
    )


def test_no_locked_votes_gives_none():
    poll = _poll({"1": ["a"], "2": ["a"]}, [], ["1", "2"])
    assert find_optimal_meeting_slot(poll, 2) is None


def test_picks_slot_with_most_locked_votes():
    poll = _poll(
        {"1": ["a", "c"], "2": ["c"], "3": ["c", "b"]},
        ["1", "2", "3"],
        ["1", "2", "3"],
    )
    result = find_optimal_meeting_slot(poll, 2)
    assert result is not None
    day, slot, voters = result
    assert (day, slot.id) == (1, "c")
    assert sorted(voters) == ["1", "2", "3"]


def test_unlocked_votes_are_ignored():
    poll = _poll({"1": ["b"], "2": ["a"], "3": ["a"]}, ["1"], ["1", "2", "3"])
    day, slot, voters = find_optimal_meeting_slot(poll, 1)
    assert slot.id == "b"
    assert voters == ["1"]


def test_group_minimum_not_met_gives_none():
    poll = _poll({"1": ["a"], "2": ["b"]}, ["1", "2"], ["1", "2", "3"])
    assert find_optimal_meeting_slot(poll, 2) is None


def test_minimum_is_capped_by_group_size():
    poll = _poll({"1": ["a"], "2": ["a"]}, ["1", "2"], ["1", "2"])
    day, slot, voters = find_optimal_meeting_slot(poll, 6)
    assert slot.id == "a"
    assert len(voters) == 2


def test_every_group_must_meet_its_minimum():
    g1, g2 = uuid.uuid4(), uuid.uuid4()
    poll = ActivePoll(
        day_slots={0: [_slot("a", 10), _slot("b", 11)]},
        group_members={g1: ["1", "2"], g2: ["3"]},
        slot_responses={"1": ["a", "b"], "2": ["a", "b"], "3": ["b"]},
        locked_votes={"1": True, "2": True, "3": True},
    )
    day, slot, voters = find_optimal_meeting_slot(poll, 1)
    assert slot.id == "b"
    assert sorted(voters) == ["1", "2", "3"]