"""Splitting matched periods into votable slots and picking the best one."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta, timezone

from timesync_bot.models import ActivePoll, MatchResult, SlotInfo, resolve_timezone


def _as_aware(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def _clock(moment: datetime, with_minutes: bool) -> str:
    hour = moment.hour % 12 or 12
    suffix = "am" if moment.hour < 12 else "pm"
    if with_minutes:
        return f"{hour}:{moment.minute:02d}{suffix}"
    return f"{hour}{suffix}"


def format_slot_time(start: datetime, end: datetime) -> str:
    """Format a slot's local start and end compactly, e.g. ``6pm-7pm``.

    Minutes are shown only when either end is not on the hour.
    """
    with_minutes = not (start.minute == 0 and end.minute == 0)
    return f"{_clock(start, with_minutes)}-{_clock(end, with_minutes)}"


def organize_slots_by_day(
    matches: Iterable[MatchResult],
    timezone: str,
    slot_duration: int,
) -> dict[int, list[SlotInfo]]:
    """Cut each match into ``slot_duration``-minute slots grouped by local day.

    Days are numbered from 0 in chronological order; a match is filed under
    the local date on which it starts. Slots within a day are sorted by start.
    """
    if slot_duration <= 0:
        raise ValueError("slot duration must be a positive number of minutes")

    tz = resolve_timezone(timezone)
    chunk = timedelta(minutes=slot_duration)
    by_date: dict[int, list[SlotInfo]] = {}

    for match_idx, match in enumerate(matches):
        match_start = _as_aware(match.start)
        match_end = _as_aware(match.end)
        day_key = match_start.astimezone(tz).date().toordinal()
        available = [user for group in match.groups for user in group.available_users]

        current = match_start
        while current < match_end:
            chunk_end = min(current + chunk, match_end)
            slot = SlotInfo(
                id=f"{match_idx}_{int(current.timestamp())}",
                start=current,
                end=chunk_end,
                formatted_time=format_slot_time(
                    current.astimezone(tz), chunk_end.astimezone(tz)
                ),
                available_users=list(available),
            )
            by_date.setdefault(day_key, []).append(slot)
            current = chunk_end

    for slots in by_date.values():
        slots.sort(key=lambda slot: slot.start)

    return {index: by_date[key] for index, key in enumerate(sorted(by_date))}


def find_optimal_meeting_slot(
    poll: ActivePoll, min_required_per_group: int
) -> tuple[int, SlotInfo, list[str]] | None:
    """Return the slot with most locked-in votes that satisfies every group.

    Each group needs at least ``min(min_required_per_group, group size)``
    locked-in members who chose the slot. The result is
    ``(day index, slot, voters)``, or ``None`` when no slot qualifies.
    """
    slot_votes: dict[str, list[str]] = {}
    for user_id, selected in poll.slot_responses.items():
        if user_id not in poll.locked_votes or not selected:
            continue
        for slot_id in selected:
            slot_votes.setdefault(slot_id, []).append(user_id)

    best: tuple[int, SlotInfo, list[str]] | None = None
    max_votes = 0

    for day_idx in sorted(poll.day_slots):
        for slot in poll.day_slots[day_idx]:
            voters = list(slot_votes.get(slot.id, []))
            meets_all = all(
                sum(
                    1
                    for member in members
                    if member in poll.locked_votes and member in voters
                )
                >= min(min_required_per_group, len(members))
                for members in poll.group_members.values()
            )
            if meets_all and len(voters) > max_votes:
                max_votes = len(voters)
                best = (day_idx, slot, voters)

    return best