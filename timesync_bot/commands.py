"""Parsing of slash-command options and text for group and schedule replies."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote

DEFAULT_MIN_PER_GROUP = 1
DEFAULT_SLOT_DURATION = 120
DEFAULT_DISPLAY_DAYS = 7
MAX_DISPLAY_DAYS = 7

NO_MEMBERS_MESSAGE = "No members in this group yet"
NO_ROLE_MESSAGE = "No role assigned"

_UNSIGNED = re.compile(r"\+?[0-9]+")
_U64_LIMIT = 2**64
_I64_MIN = -(2**63)
_I64_MAX = 2**63 - 1


def _parse_u64(text: str) -> int | None:
    if not _UNSIGNED.fullmatch(text):
        return None
    value = int(text)
    return value if value < _U64_LIMIT else None


def _strip_repeated_prefix(text: str, prefix: str) -> str:
    while text.startswith(prefix):
        text = text[len(prefix):]
    return text


def _strip_repeated_suffix(text: str, suffix: str) -> str:
    while text.endswith(suffix):
        text = text[: -len(suffix)]
    return text


def parse_mention_tags(text: str) -> list[str]:
    """Extract user IDs from comma-separated mention tags or raw IDs.

    Entries that are neither a ``<@id>``/``<@!id>`` mention nor a plain
    unsigned 64-bit number are skipped.
    """
    ids: list[str] = []
    for raw in text.split(","):
        part = raw.strip()
        if part.startswith("<@") and part.endswith(">"):
            inner = _strip_repeated_prefix(part, "<@")
            inner = _strip_repeated_prefix(inner, "!")
            inner = _strip_repeated_suffix(inner, ">")
            value = _parse_u64(inner)
            if value is not None:
                ids.append(str(value))
                continue
        value = _parse_u64(part)
        if value is not None:
            ids.append(str(value))
    return ids


def format_member_list(member_ids: Sequence[str]) -> str:
    """Render member IDs as comma-separated mentions, or ``None`` if empty."""
    if not member_ids:
        return "None"
    return ", ".join(f"<@{member}>" for member in member_ids)


def parse_group_names(text: str) -> list[str]:
    """Split a comma-separated list of group names, dropping blank entries."""
    return [name.strip() for name in text.split(",") if name.strip()]


@dataclass
class MatchOptions:
    """Settings supplied to the match command."""

    groups: list[str] = field(default_factory=list)
    min_per_group: int = DEFAULT_MIN_PER_GROUP
    slot_duration: int = DEFAULT_SLOT_DURATION
    display_days: int = DEFAULT_DISPLAY_DAYS
    time_span: str | None = None


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    if _I64_MIN <= value <= _I64_MAX:
        return value
    return None


def _positional_int(options: Sequence[tuple[str, Any]], index: int, default: int) -> int:
    if index >= len(options):
        return default
    value = _as_int(options[index][1])
    return default if value is None else value


def parse_match_options(options: Iterable[tuple[str, Any]]) -> MatchOptions:
    """Read match-command options given as ``(name, value)`` pairs in order.

    The first option holds the group names; the next three are read by
    position as minimum per group, slot duration and days to display, and
    ``time_span`` is looked up by name. Days are clamped to 1..7.
    Raises :class:`ValueError` when the groups option is missing or not text.
    """
    ordered = list(options)
    if not ordered:
        raise ValueError("Missing groups parameter")
    groups_value = ordered[0][1]
    if not isinstance(groups_value, str):
        raise ValueError("Invalid groups parameter")

    display_days = _positional_int(ordered, 3, DEFAULT_DISPLAY_DAYS)
    display_days = min(max(display_days, 1), MAX_DISPLAY_DAYS)

    time_span = next(
        (
            value
            for name, value in ordered
            if name == "time_span"
        ),
        None,
    )
    if not isinstance(time_span, str):
        time_span = None

    return MatchOptions(
        groups=parse_group_names(groups_value),
        min_per_group=_positional_int(ordered, 1, DEFAULT_MIN_PER_GROUP),
        slot_duration=_positional_int(ordered, 2, DEFAULT_SLOT_DURATION),
        display_days=display_days,
        time_span=time_span,
    )


def schedule_url(web_base_url: str, discord_id: str, username: str) -> str:
    """Build the link at which a user creates their availability schedule."""
    return (
        f"{web_base_url}/create?discord_id={discord_id}"
        f"&name={quote(username, safe='')}"
    )


def group_list_line(name: str, role_id: str | None, count: int) -> str:
    """Render one group's line in the group list, ending in a newline."""
    role_mention = f" <@&{role_id}>" if role_id is not None else ""
    noun = "member" if count == 1 else "members"
    return f"**{name}**{role_mention} - {count} {noun}\n"


def group_info_description(
    member_schedules: Iterable[tuple[str, Any]],
    role_id: str | None,
) -> tuple[str, str, str]:
    """Describe a group from ``(discord_id, schedule_id)`` pairs.

    A member has a schedule when its schedule ID is not ``None``. Returns
    ``(description, role field, member list)``.
    """
    members = list(member_schedules)
    lines = []
    with_schedule = 0
    for discord_id, schedule_id in members:
        has_schedule = schedule_id is not None
        if has_schedule:
            with_schedule += 1
        lines.append(f"<@{discord_id}> {'✅' if has_schedule else '❌'}\n")

    members_list = "".join(lines) or NO_MEMBERS_MESSAGE
    description = (
        f"This group has {len(members)} members, {with_schedule} of which have "
        "availability schedules."
    )
    role_field = f"<@&{role_id}>" if role_id is not None else NO_ROLE_MESSAGE
    return description, role_field, members_list