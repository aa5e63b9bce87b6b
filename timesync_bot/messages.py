"""Text bodies for poll embeds and timezone replies."""

from __future__ import annotations

from datetime import datetime, timezone as dt_timezone, tzinfo

from timesync_bot.models import ActivePoll, is_valid_timezone, resolve_timezone
from timesync_bot.slots import find_optimal_meeting_slot

_DAY_NAMES = (
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
)
_MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

_TIMEZONE_REGIONS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("**North America**", (
        "America/Los_Angeles (Pacific Time)",
        "America/Denver (Mountain Time)",
        "America/Chicago (Central Time)",
        "America/New_York (Eastern Time)",
    )),
    ("**Europe**", (
        "Europe/London (GMT/BST)",
        "Europe/Paris (Central European Time)",
        "Europe/Helsinki (Eastern European Time)",
    )),
    ("**Asia/Pacific**", (
        "Asia/Tokyo (Japan Standard Time)",
        "Asia/Shanghai (China Standard Time)",
        "Asia/Kolkata (India Standard Time)",
        "Australia/Sydney (Australian Eastern Standard Time)",
    )),
    ("**Other**", (
        "UTC (Coordinated Universal Time)",
        "Etc/GMT+12 (UTC-12)",
        "Etc/GMT-12 (UTC+12)",
    )),
)

_NO_SLOTS = "No time slots available for this day."


def _local(moment: datetime, tz: tzinfo) -> datetime:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=dt_timezone.utc)
    return moment.astimezone(tz)


def _month_date(moment: datetime) -> str:
    return f"{_MONTH_NAMES[moment.month - 1]} {moment.day:02d}, {moment.year}"


def _full_date(moment: datetime) -> str:
    return f"{_DAY_NAMES[moment.weekday()]}, {_month_date(moment)}"


def _short_stamp(moment: datetime) -> str:
    day = _DAY_NAMES[moment.weekday()][:3]
    month = _MONTH_NAMES[moment.month - 1][:3]
    return f"{day}, {month} {moment.day:02d} at {moment:%H:%M}"


def _total_eligible(poll: ActivePoll) -> int:
    return len(poll.eligible_voter_ids())


_INSTRUCTIONS_SUMMARY = (
    "\n**How to Vote:**\n"
    "• Click **Edit Your Availability** to select the times you're available\n"
    "• Your votes are automatically saved as you select them\n"
    "• When you're done, click **Lock In My Votes** to finalize your selections\n"
    "• If you don't select any times, you'll be marked as unavailable\n"
    "• Members with saved schedules have their slots pre-selected\n"
)


def _date_range(poll: ActivePoll) -> str:
    unavailable = "Date range unavailable"
    if not poll.day_slots:
        return unavailable
    tz = resolve_timezone(poll.timezone)
    first_slots = poll.day_slots.get(min(poll.day_slots))
    last_slots = poll.day_slots.get(max(poll.day_slots))
    if not first_slots or not last_slots:
        return unavailable
    first = _month_date(_local(first_slots[0].start, tz))
    last = _month_date(_local(last_slots[0].start, tz))
    if first == last:
        return f"**{first}**"
    return f"**{first} to {last}**"


def generate_summary_message(poll: ActivePoll, min_required_per_group: int) -> str:
    """Build the main proposal text: date range, lock progress and best slot."""
    parts = [f"{_date_range(poll)}\n\n", "**Voting Progress:**\n"]
    locked = set(poll.locked_votes)

    for idx, members in enumerate(poll.group_members.values()):
        voted = sum(1 for member in members if member in locked)
        parts.append(
            f"• **{poll.group_name(idx)}**: {voted}/{len(members)} members locked in "
            f"votes (min required: {min_required_per_group})\n"
        )

    parts.append(
        f"\n**Total: {len(locked)} of {_total_eligible(poll)} members have locked "
        "in their votes**\n\n"
    )

    best = find_optimal_meeting_slot(poll, min_required_per_group)
    if best is not None:
        _, slot, attending = best
        tz = resolve_timezone(poll.timezone)
        parts.append("**Most Popular Time Slot:**\n")
        parts.append(
            f"• **{_full_date(_local(slot.start, tz))}** at **{slot.formatted_time}**\n"
        )
        parts.append(f"• **{len(attending)} members available**\n")

        all_meet = True
        for idx, members in enumerate(poll.group_members.values()):
            required = min(min_required_per_group, len(members))
            available = sum(1 for member in members if member in attending)
            meets = available >= required
            all_meet = all_meet and meets
            parts.append(
                f"• **{poll.group_name(idx)}**: {available}/{required} members "
                f"available {'✅' if meets else '❌'}\n"
            )

        if all_meet:
            parts.append("\n✅ **This time slot meets all group requirements!**\n")
        else:
            parts.append(
                "\n❌ **This time slot does not meet all group requirements yet.**\n"
            )
    else:
        parts.append("**No suitable time slot found yet**\n")
        parts.append(
            "More members need to vote to find a time that works for everyone.\n"
        )

    parts.append(_INSTRUCTIONS_SUMMARY)
    return "".join(parts)


def _day_header(poll: ActivePoll) -> str | None:
    slots = poll.day_slots.get(poll.current_day)
    if not slots:
        return None
    tz = resolve_timezone(poll.timezone)
    day_date = _full_date(_local(slots[0].start, tz))
    return f"**{day_date}**\n\nSelect all time slots when you are available:\n\n"


def format_time_slots(poll: ActivePoll) -> str:
    """Build the shared voting text for the poll's current day."""
    header = _day_header(poll)
    if header is None:
        return _NO_SLOTS

    parts = [header, "**Voting Progress:**\n"]
    voted = set(poll.slot_responses)

    for idx, members in enumerate(poll.group_members.values()):
        count = sum(1 for member in members if member in voted)
        parts.append(
            f"• **{poll.group_name(idx)}**: {count}/{len(members)} members voted "
            f"(min required: {poll.min_per_group})\n"
        )

    parts.append(
        f"\n**Total: {len(voted)} of {_total_eligible(poll)} members have voted**\n\n"
    )
    parts.append(
        "Click on a time to toggle your availability. Green buttons indicate times "
        "you're available for. The number in brackets [0] shows how many people "
        "have selected that time.\n"
    )
    parts.append(
        "Users with saved schedules will have their slots pre-selected. Users "
        "without schedules start with no selections.\n"
    )
    parts.append(
        "Use the navigation buttons to switch between days. 'Select All Days' will "
        "mark you as available for all time slots. 'Clear All Days' will mark you "
        "as unavailable for all days.\n"
    )
    parts.append(
        "Your votes are automatically saved as you select time slots. When you're "
        "finished, click 'Lock In My Votes' on the main message to finalize your "
        "selections.\n\n"
    )
    return "".join(parts)


def format_personal_time_slots(poll: ActivePoll, user_id: str) -> str:
    """Build one voter's private view of the current day."""
    header = _day_header(poll)
    if header is None:
        return _NO_SLOTS

    parts = [header, "**Selected Time Slots:**\n"]
    selections = poll.slot_responses.get(user_id, [])

    if not selections:
        parts.append("You haven't selected any time slots yet.\n")
    else:
        today = poll.day_slots[poll.current_day]
        chosen = sum(1 for slot in today if slot.id in selections)
        parts.append(f"You've selected {chosen} time slots for this day.\n")

    if user_id in poll.locked_votes:
        status = "✅ Your votes are locked in."
    else:
        status = "❌ You have not locked in your votes yet."
    parts.append(f"\n**Vote Status:** {status}\n\n")

    parts.append(
        "Click on a time to toggle your availability. Green buttons indicate times "
        "you're available for.\n"
    )
    parts.append("Use the navigation buttons to switch between days.\n")
    parts.append(
        "Use 'Select All Days' to mark yourself as available for all time slots "
        "across all days.\n"
    )
    parts.append(
        "To finalize your votes, click 'Lock In My Votes' on the main message.\n"
    )
    return "".join(parts)


def format_match_option(poll: ActivePoll, index: int) -> str:
    """Describe one proposed match for yes/no voting."""
    match = poll.matches[index]

    if is_valid_timezone(poll.timezone):
        tz = resolve_timezone(poll.timezone)
        tz_display = poll.timezone
    else:
        tz = dt_timezone.utc
        tz_display = "UTC"
    start = _local(match.start, tz)
    end = _local(match.end, tz)

    def said_yes(user_id: str) -> bool:
        return poll.responses.get(user_id) is True

    parts = [
        f"**Proposed Time:** {_short_stamp(start)} - {end:%H:%M} ({tz_display})\n\n",
        "**Available Members:**\n",
    ]

    for group in match.groups:
        members = poll.group_members.get(group.id)
        required = min(6, len(members)) if members is not None else 6
        yes_votes = sum(1 for user in group.available_users if said_yes(user))
        noun = "member" if group.count == 1 else "members"
        parts.append(
            f"• **{group.name}**: {group.count} {noun} "
            f"({yes_votes}/{required} yes votes needed)\n"
        )
        for user in group.available_users:
            vote = poll.responses.get(user)
            mark = "" if vote is None else (" ✅" if vote else " ❌")
            parts.append(f"  - <@{user}>{mark}\n")

    listed = {user for group in match.groups for user in group.available_users}
    yes_users = [u for u, v in poll.responses.items() if v and u not in listed]
    no_users = [u for u, v in poll.responses.items() if not v and u not in listed]

    if yes_users or no_users:
        parts.append("\n**Additional Responses:**\n")
        if yes_users:
            parts.append("✅ **Yes:**\n")
            parts.extend(f"• <@{user}>\n" for user in yes_users)
        if no_users:
            parts.append("❌ **No:**\n")
            parts.extend(f"• <@{user}>\n" for user in no_users)

    requirements = []
    all_enough = True
    for group in match.groups:
        members = poll.group_members.get(group.id)
        if members is None:
            continue
        required = min(6, len(members))
        yes_votes = sum(1 for user in members if said_yes(user))
        requirements.append(
            f"• Group {group.name}: {yes_votes}/{required} yes votes\n"
        )
        if yes_votes < required:
            all_enough = False

    if requirements:
        parts.append("\n**Voting Progress:**\n")
        parts.extend(requirements)
        if all_enough:
            parts.append("\n✅ **All groups have enough votes!**")
        else:
            parts.append("\n⏳ **Waiting for more votes...**")

    return "".join(parts)


def timezone_list_description() -> str:
    """List common time zones grouped by region."""
    parts = ["Here are some common timezones you can use:\n\n"]
    for region, zones in _TIMEZONE_REGIONS:
        parts.append(f"{region}\n")
        parts.extend(f"• `{zone}`\n" for zone in zones)
        parts.append("\n")
    parts.append(
        "\nUse `/timezone set <timezone>` to set your server's timezone. For a "
        "complete list of available timezones, see the IANA Time Zone Database."
    )
    return "".join(parts)


def _format_hours(hours: float) -> str:
    if hours == int(hours):
        text = str(int(hours))
    else:
        text = repr(hours)
    return f"+{text}" if hours >= 0 else text


def format_timezone_info(timezone: str, now: datetime | None = None) -> str:
    """Describe the current local time and UTC offset of ``timezone``."""
    if not is_valid_timezone(timezone):
        return "Unable to determine current time in this timezone."
    if now is None:
        now = datetime.now(dt_timezone.utc)
    local = _local(now, resolve_timezone(timezone))
    offset = local.utcoffset()
    hours = offset.total_seconds() / 3600.0 if offset is not None else 0.0
    return (
        f"Current time: **{local:%Y-%m-%d %H:%M:%S}**\n"
        f"Offset from UTC: **{_format_hours(hours)}**"
    )