import uuid
from datetime import datetime, timezone

import pytest

from timesync_bot.messages import (
    format_match_option,
    format_personal_time_slots,
    format_time_slots,
    format_timezone_info,
    generate_summary_message,
    timezone_list_description,
)
from timesync_bot.models import ActivePoll, GroupAvailability, MatchResult
from timesync_bot.slots import organize_slots_by_day

GROUP_ID = uuid.UUID(int=1)


def _match(available=("1", "2")):
    return MatchResult(
        start=datetime(2024, 1, 15, 18, 0, tzinfo=timezone.utc),
        end=datetime(2024, 1, 15, 20, 0, tzinfo=timezone.utc),
        groups=[
            GroupAvailability(
                id=GROUP_ID, name="Team", count=len(available),
                available_users=list(available),
            )
        ],
    )


def _poll(tz="UTC"):
    matches = [_match()]
    return ActivePoll(
        matches=matches,
        group_names=["Team"],
        min_per_group=1,
        timezone=tz,
        eligible_voters="1,2",
        group_members={GROUP_ID: ["1", "2"]},
        slot_duration=60,
        day_slots=organize_slots_by_day(matches, tz, 60),
    )


def test_summary_without_slots():
    poll = ActivePoll(eligible_voters="1", group_members={GROUP_ID: ["1"]})
    text = generate_summary_message(poll, 6)
    assert text.startswith("Date range unavailable\n\n")
    assert "**No suitable time slot found yet**" in text


def test_summary_single_day_range():
    text = generate_summary_message(_poll(), 6)
    assert text.startswith("**January 15, 2024**\n\n")
    assert "**Total: 0 of 2 members have locked in their votes**" in text


def test_summary_with_locked_votes_meets_requirements():
    poll = _poll()
    slot_id = poll.day_slots[0][0].id
    poll.slot_responses = {"1": [slot_id], "2": [slot_id]}
    poll.locked_votes = {"1": True, "2": True}
    text = generate_summary_message(poll, 6)
    assert "**Most Popular Time Slot:**" in text
    assert "• **2 members available**" in text
    assert "✅ **This time slot meets all group requirements!**" in text
    assert "2/2 members locked in votes (min required: 6)" in text


def test_format_time_slots_no_day():
    poll = _poll()
    poll.current_day = 5
    assert format_time_slots(poll) == "No time slots available for this day."


def test_format_time_slots_progress():
    poll = _poll()
    poll.slot_responses = {"1": []}
    text = format_time_slots(poll)
    assert "**Total: 1 of 2 members have voted**" in text
    assert "1/2 members voted (min required: 1)" in text
    assert "Select all time slots when you are available:" in text


def test_personal_no_selection_and_unlocked():
    text = format_personal_time_slots(_poll(), "1")
    assert "You haven't selected any time slots yet." in text
    assert "❌ You have not locked in your votes yet." in text


def test_personal_with_selection_and_locked():
    poll = _poll()
    poll.slot_responses = {"1": [poll.day_slots[0][0].id]}
    poll.locked_votes = {"1": True}
    text = format_personal_time_slots(poll, "1")
    assert "You've selected 1 time slots for this day." in text
    assert "✅ Your votes are locked in." in text


def test_personal_empty_poll():
    assert format_personal_time_slots(ActivePoll(), "1") == (
        "No time slots available for this day."
    )


def test_match_option_all_yes():
    poll = _poll()
    poll.responses = {"1": True, "2": True}
    text = format_match_option(poll, 0)
    assert "(UTC)" in text
    assert "  - <@1> ✅\n" in text
    assert "• Group Team: 2/2 yes votes\n" in text
    assert text.endswith("✅ **All groups have enough votes!**")


def test_match_option_waiting_and_additional():
    poll = _poll()
    poll.responses = {"2": False, "9": True}
    text = format_match_option(poll, 0)
    assert "  - <@2> ❌\n" in text
    assert "**Additional Responses:**" in text
    assert "• <@9>\n" in text
    assert text.endswith("⏳ **Waiting for more votes...**")


def test_match_option_invalid_timezone_falls_back():
    poll = _poll()
    poll.timezone = "Not/AZone"
    text = format_match_option(poll, 0)
    assert "(UTC)" in text
    assert "Not/AZone" not in text


def test_timezone_list_contents():
    text = timezone_list_description()
    assert text.startswith("Here are some common timezones you can use:\n\n")
    for region in ("**North America**", "**Europe**", "**Asia/Pacific**", "**Other**"):
        assert f"{region}\n" in text
    assert "• `America/New_York (Eastern Time)`\n" in text


def test_timezone_info_invalid():
    assert format_timezone_info("Nowhere/Land") == (
        "Unable to determine current time in this timezone."
    )


def test_timezone_info_utc():
    now = datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)
    text = format_timezone_info("UTC", now)
    assert "Current time: **2024-01-15 12:00:00**" in text
    assert text.endswith("Offset from UTC: **+0**")


@pytest.mark.parametrize("zone", ["Asia/Kolkata"])
def test_timezone_info_fractional_offset(zone):
    now = datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)
    assert format_timezone_info(zone, now).endswith("**+5.5**")