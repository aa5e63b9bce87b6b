"""Data types shared by the scheduling poll machinery."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


@dataclass
class GroupAvailability:
    """Members of one group who are free during a matched period."""

    id: uuid.UUID
    name: str
    count: int
    available_users: list[str] = field(default_factory=list)


@dataclass
class MatchResult:
    """A period of common availability returned by the matching service."""

    start: datetime
    end: datetime
    groups: list[GroupAvailability] = field(default_factory=list)


@dataclass
class SlotInfo:
    """A votable chunk of a matched period."""

    id: str
    start: datetime
    end: datetime
    formatted_time: str
    available_users: list[str] = field(default_factory=list)


@dataclass
class ActivePoll:
    """State of a running meeting-time poll."""

    matches: list[MatchResult] = field(default_factory=list)
    current_index: int = 0
    group_names: list[str] = field(default_factory=list)
    min_per_group: int = 1
    required_yes_count: int = 0
    responses: dict[str, bool] = field(default_factory=dict)
    slot_responses: dict[str, list[str]] = field(default_factory=dict)
    locked_votes: dict[str, bool] = field(default_factory=dict)
    timezone: str = "UTC"
    eligible_voters: str = ""
    group_members: dict[uuid.UUID, list[str]] = field(default_factory=dict)
    slot_duration: int = 120
    display_days: int = 7
    current_day: int = 0
    day_slots: dict[int, list[SlotInfo]] = field(default_factory=dict)

    def eligible_voter_ids(self) -> list[str]:
        """Return the IDs of everyone allowed to vote, in stored order."""
        return [voter for voter in self.eligible_voters.split(",") if voter]

    def is_eligible(self, user_id: str) -> bool:
        """Tell whether the user belongs to one of the poll's groups."""
        return user_id in self.eligible_voter_ids()

    def all_slot_ids(self) -> list[str]:
        """Return every slot ID across all days, in day order."""
        return [
            slot.id
            for day in sorted(self.day_slots)
            for slot in self.day_slots[day]
        ]

    def day_count(self) -> int:
        """Return the number of days that have slots."""
        return len(self.day_slots)

    def group_name(self, index: int) -> str:
        """Return the name of the group at ``index``, or a numbered fallback."""
        if 0 <= index < len(self.group_names):
            return self.group_names[index]
        return f"Group {index + 1}"

    def slot_vote_count(self, slot_id: str) -> int:
        """Count the voters who have selected ``slot_id``."""
        return sum(1 for selected in self.slot_responses.values() if slot_id in selected)


def resolve_timezone(name: str) -> tzinfo:
    """Return the named IANA time zone, falling back to UTC if unknown."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, TypeError):
        return timezone.utc


def is_valid_timezone(name: str) -> bool:
    """Tell whether ``name`` is a known IANA time zone."""
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, TypeError):
        return False
    return True