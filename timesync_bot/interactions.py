"""Button layouts, poll messages and routing of button presses."""

from __future__ import annotations

from collections.abc import Callable, Hashable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone as dt_timezone
from enum import Enum

from timesync_bot.messages import (
    format_match_option,
    format_personal_time_slots,
    format_time_slots,
    generate_summary_message,
)
from timesync_bot.models import (
    ActivePoll,
    MatchResult,
    SlotInfo,
    is_valid_timezone,
    resolve_timezone,
)
from timesync_bot.voting import (
    MIN_REQUIRED_PER_GROUP,
    LockOutcome,
    LockResult,
    NotEligibleError,
    PollRegistry,
    VoteOutcome,
    clear_all_slots,
    lock_votes,
    next_day,
    previous_day,
    record_yes_no_vote,
    select_all_slots,
    toggle_slot,
)

DARK_GREEN = 0x1F8B4C
GOLD = 0xF1C40F
RED = 0xE74C3C

BUTTONS_PER_ROW = 5
LEGACY_CONFIRM_MESSAGE = (
    "This feature has been updated. Please use the new /match command to "
    "propose meeting times."
)
LOCKED_IN_MESSAGE = "Your votes have been locked in!"

_NAVIGATION_IDS = frozenset({"prev_day", "next_day", "select_all", "clear_all"})


class ButtonStyle(Enum):
    """Visual style of a message button."""

    PRIMARY = "primary"
    SECONDARY = "secondary"
    SUCCESS = "success"
    DANGER = "danger"


@dataclass(frozen=True)
class Button:
    """A clickable message component."""

    custom_id: str
    label: str
    style: ButtonStyle
    disabled: bool = False
    emoji: str | None = None


@dataclass
class Response:
    """A message to send or an edit to apply in reply to an interaction."""

    content: str = ""
    title: str | None = None
    description: str = ""
    footer: str = ""
    color: int | None = None
    components: list[list[Button]] = field(default_factory=list)
    ephemeral: bool = False
    followup: str = ""


def slot_button_rows(poll: ActivePoll, user_id: str) -> list[list[Button]]:
    """Return rows of slot buttons for the current day, five to a row."""
    slots = poll.day_slots.get(poll.current_day, [])
    selected = poll.slot_responses.get(user_id, [])
    buttons = [
        Button(
            custom_id=f"slot_{slot.id}",
            label=f"{slot.formatted_time} [{poll.slot_vote_count(slot.id)}]",
            style=ButtonStyle.SUCCESS if slot.id in selected else ButtonStyle.SECONDARY,
        )
        for slot in slots
    ]
    return [
        buttons[start:start + BUTTONS_PER_ROW]
        for start in range(0, len(buttons), BUTTONS_PER_ROW)
    ]


def _control_rows(poll: ActivePoll) -> list[list[Button]]:
    navigation = [
        Button(
            "prev_day",
            "◀️ Previous Day",
            ButtonStyle.PRIMARY,
            disabled=poll.current_day == 0,
        ),
        Button(
            "next_day",
            "Next Day ▶️",
            ButtonStyle.PRIMARY,
            disabled=poll.current_day >= poll.day_count() - 1,
        ),
    ]
    bulk = [
        Button("select_all", "Select All Days", ButtonStyle.SUCCESS),
        Button("clear_all", "Clear All Days", ButtonStyle.DANGER),
    ]
    return [navigation, bulk]


def voting_interface(poll: ActivePoll, user_id: str) -> Response:
    """Build a voter's private availability view for the current day."""
    return Response(
        title=f"Your Availability - Day {poll.current_day + 1} of {poll.day_count()}",
        description=format_personal_time_slots(poll, user_id),
        footer="Select all times when you are available",
        color=GOLD,
        components=slot_button_rows(poll, user_id) + _control_rows(poll),
        ephemeral=True,
    )


def _shared_interface(poll: ActivePoll, user_id: str) -> Response:
    return Response(
        title=(
            f"Vote on Your Availability - Day {poll.current_day + 1} "
            f"of {poll.day_count()}"
        ),
        description=format_time_slots(poll),
        footer=(
            f"Min members per group: {poll.min_per_group} • Slot duration: "
            f"{poll.slot_duration} min • Timezone: {poll.timezone}"
        ),
        color=GOLD,
        components=slot_button_rows(poll, user_id) + _control_rows(poll),
    )


def _proposal_buttons() -> list[list[Button]]:
    return [[
        Button("open_voting", "Edit Your Availability", ButtonStyle.PRIMARY, emoji="✏"),
        Button("lock_votes", "Lock In My Votes", ButtonStyle.SUCCESS, emoji="🔒"),
    ]]


def proposal_message(poll: ActivePoll, min_required_per_group: int) -> Response:
    """Build the main poll message with its voting buttons."""
    return Response(
        title="Meeting Time Proposal",
        description=generate_summary_message(poll, min_required_per_group),
        footer=(
            f"Min members per group: {min_required_per_group} • Slot duration: "
            f"{poll.slot_duration} min • Timezone: {poll.timezone}"
        ),
        color=GOLD,
        components=_proposal_buttons(),
    )


def _local(moment: datetime, tz) -> datetime:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=dt_timezone.utc)
    return moment.astimezone(tz)


def _slot_day(poll: ActivePoll, slot: SlotInfo) -> str:
    return _local(slot.start, resolve_timezone(poll.timezone)).strftime(
        "%A, %B %d, %Y"
    )


def _failed_message(result: LockResult, mentions: Sequence[str]) -> Response:
    lines = [
        "**Matching Failed**\n\n",
        "The meeting cannot be scheduled because not enough members are available.\n\n",
        "**Group Status:**\n",
    ]
    for group in result.groups:
        lines.append(
            f"• **{group.name}**: {group.available}/{group.min_required} members "
            f"available, {group.unavailable} unavailable, {group.remaining} haven't "
            f"voted yet (min required: {group.min_required})\n"
        )
    notice = "Meeting scheduling failed due to insufficient availability."
    content = f"❌ {' '.join(mentions)} {notice}" if mentions else f"❌ {notice}"
    return Response(
        content=content,
        title="Not Enough Members Available",
        description="".join(lines),
        footer="Members who didn't select any time slots are considered unavailable",
        color=RED,
    )


def _confirmed_message(
    result: LockResult, poll: ActivePoll, mentions: Sequence[str]
) -> Response:
    _, slot, attending = result.best
    lines = [
        f"**{_slot_day(poll, slot)}**\n**{slot.formatted_time}**\n\n",
        "**Group Attendance:**\n",
    ]
    for group in result.groups:
        lines.append(
            f"• **{group.name}**: {group.available}/{group.min_required} members "
            f"available (minimum required: {group.min_required}) ✅\n"
        )
    lines.append("\n**Attendees:**\n")
    lines.extend(f"• <@{user}>\n" for user in attending)

    content = "🔔 Meeting confirmed! "
    if mentions:
        content += f"{' '.join(mentions)} "
    content += "Please mark your calendars!"

    return Response(
        content=content,
        title="Meeting Time Confirmed!",
        description="".join(lines),
        footer=(
            f"Slot duration: {poll.slot_duration} min • Timezone: {poll.timezone} "
            f"• Successfully matched {len(attending)} attendees"
        ),
        color=DARK_GREEN,
    )


def _no_slot_message() -> Response:
    return Response(
        content="❌ No suitable meeting time could be found despite having enough votes.",
        title="No Suitable Meeting Time Found",
        description=(
            "We could not find a time slot where enough members from each group are "
            "available. You may want to try again with different parameters or ask "
            "members to update their availability."
        ),
        color=RED,
    )


def lock_result_message(
    result: LockResult, poll: ActivePoll, role_mentions: Sequence[str]
) -> Response:
    """Build the main-message update that follows a voter locking in."""
    if result.outcome is LockOutcome.FAILED:
        return _failed_message(result, role_mentions)
    if result.outcome is LockOutcome.CONFIRMED and result.best is not None:
        return _confirmed_message(result, poll, role_mentions)
    if result.outcome in (LockOutcome.CONFIRMED, LockOutcome.NO_SUITABLE_SLOT):
        return _no_slot_message()
    response = proposal_message(poll, MIN_REQUIRED_PER_GROUP)
    response.followup = LOCKED_IN_MESSAGE
    return response


def _match_window(poll: ActivePoll, match: MatchResult) -> tuple[str, str, str]:
    if is_valid_timezone(poll.timezone):
        tz, display = resolve_timezone(poll.timezone), poll.timezone
    else:
        tz, display = dt_timezone.utc, "UTC"
    start = _local(match.start, tz)
    end = _local(match.end, tz)
    return start.strftime("%a, %b %d at %H:%M"), end.strftime("%H:%M"), display


def _yes_no_buttons() -> list[list[Button]]:
    return [[
        Button("match_yes", "Yes", ButtonStyle.SUCCESS),
        Button("match_no", "No", ButtonStyle.DANGER),
    ]]


def _no_role_mentions(poll: ActivePoll) -> list[str]:
    return []


def _utc_now() -> datetime:
    return datetime.now(dt_timezone.utc)


class ComponentRouter:
    """Dispatch button presses on poll messages to the right poll action.

    ``role_mentions`` returns the role mention tags for a poll's groups;
    ``clock`` supplies the current time for message footers.
    """

    def __init__(
        self,
        registry: PollRegistry,
        role_mentions: Callable[[ActivePoll], Sequence[str]] = _no_role_mentions,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.registry = registry
        self._role_mentions = role_mentions
        self._clock = clock

    def handle(
        self, custom_id: str, message_id: Hashable, user_id: str
    ) -> Response | None:
        """Apply the button ``custom_id`` pressed by ``user_id``.

        Returns the reply or message update to send, or ``None`` when there
        is nothing to show. Raises :class:`PollError` when no poll matches.
        """
        if custom_id in ("match_yes", "match_no"):
            return self._yes_no(message_id, user_id, custom_id == "match_yes")
        if custom_id == "match_confirm":
            return Response(content=LEGACY_CONFIRM_MESSAGE, ephemeral=True)
        if custom_id == "open_voting":
            return self._open_voting(message_id, user_id)
        if custom_id == "lock_votes":
            return self._lock(message_id, user_id)
        if custom_id in _NAVIGATION_IDS or custom_id.startswith("slot_"):
            return self._personal(custom_id, message_id, user_id)
        return None

    def _open_voting(self, message_id: Hashable, user_id: str) -> Response:
        poll = self.registry.get(message_id)
        if not poll.is_eligible(user_id):
            return Response(content=str(NotEligibleError(user_id)), ephemeral=True)
        return voting_interface(poll, user_id)

    def _lock(self, message_id: Hashable, user_id: str) -> Response:
        poll = self.registry.get(message_id)
        try:
            result = lock_votes(poll, user_id, MIN_REQUIRED_PER_GROUP)
        except NotEligibleError as exc:
            return Response(content=str(exc), ephemeral=True)
        if result.finalized:
            self.registry.remove(message_id)
        mentions: Sequence[str] = ()
        if result.outcome in (LockOutcome.FAILED, LockOutcome.CONFIRMED):
            mentions = self._role_mentions(poll)
        return lock_result_message(result, poll, mentions)

    def _personal(
        self, custom_id: str, message_id: Hashable, user_id: str
    ) -> Response | None:
        private = message_id not in self.registry

        if custom_id in ("prev_day", "next_day"):
            key = self.registry.find_message_id(message_id, user_id, private)
            poll = self.registry.get(key)
            step = previous_day if custom_id == "prev_day" else next_day
            if not step(poll) and not private:
                return None
        else:
            key = self.registry.find_message_id(message_id, user_id, True)
            poll = self.registry.get(key)
            try:
                if custom_id == "select_all":
                    select_all_slots(poll, user_id)
                elif custom_id == "clear_all":
                    clear_all_slots(poll, user_id)
                else:
                    toggle_slot(poll, user_id, custom_id.removeprefix("slot_"))
            except NotEligibleError as exc:
                return Response(content=str(exc), ephemeral=True)

        if private:
            return voting_interface(poll, user_id)
        return _shared_interface(poll, user_id)

    def _yes_no(self, message_id: Hashable, user_id: str, is_yes: bool) -> Response:
        poll = self.registry.get(message_id)
        try:
            outcome = record_yes_no_vote(poll, user_id, is_yes)
        except NotEligibleError as exc:
            return Response(content=str(exc), ephemeral=True)

        if outcome.finalized:
            self.registry.remove(message_id)

        if outcome is VoteOutcome.CONFIRMED:
            return self._vote_confirmed(poll)
        if outcome is VoteOutcome.EXHAUSTED:
            return Response(
                content=(
                    "❌ We've gone through all available time options and none "
                    "received enough votes."
                ),
                title="No Suitable Time Found",
                description=(
                    "We've tried all possible meeting times, but none received enough "
                    "confirmations. You may want to try again with different groups or "
                    "ask members to update their availability schedules."
                ),
                color=RED,
            )

        if outcome is VoteOutcome.ADVANCED:
            content = (
                "🔄 Not enough people were available for the previous time slot. "
                f"Moving to option {poll.current_index + 1} of {len(poll.matches)}. "
                "Please vote again!"
            )
            yes_votes = 0
        else:
            mentions = self._role_mentions(poll)
            content = (
                f"🗣️ {' '.join(mentions)} Please vote on this meeting time proposal!"
                if mentions
                else ""
            )
            yes_votes = sum(1 for vote in poll.responses.values() if vote)

        return Response(
            content=content,
            title=(
                f"Proposed Meeting Time ({poll.current_index + 1} of "
                f"{len(poll.matches)})"
            ),
            description=format_match_option(poll, poll.current_index),
            footer=(
                f"Min members per group: {poll.min_per_group} • {yes_votes}/"
                f"{poll.required_yes_count} yes votes needed • Generated at: "
                f"{self._clock():%Y-%m-%d %H:%M UTC}"
            ),
            color=GOLD,
            components=_yes_no_buttons(),
        )

    def _vote_confirmed(self, poll: ActivePoll) -> Response:
        start, end, tz_display = _match_window(poll, poll.matches[poll.current_index])
        attending = [user for user, vote in poll.responses.items() if vote]
        absent = [user for user, vote in poll.responses.items() if not vote]
        mentions = self._role_mentions(poll)

        content = "🔔 Meeting confirmed! "
        if mentions:
            content += f"{' '.join(mentions)} "
        content += (
            "- Please mark your calendars!" if attending else "Please mark your calendars!"
        )

        lines = [
            "The meeting time has been confirmed!\n\n",
            f"**{start}** - **{end}** ({tz_display})\n\n",
            "**Attending:**\n",
        ]
        lines.extend(f"• <@{user}> ✅\n" for user in attending)
        lines.append("\n**Not Available:**\n")
        lines.extend(f"• <@{user}> ❌\n" for user in absent)

        return Response(
            content=content,
            title="Meeting Time Confirmed!",
            description="".join(lines),
            footer=(
                f"Min members per group: {poll.min_per_group} • {len(attending)}/"
                f"{poll.required_yes_count} yes votes received"
            ),
            color=DARK_GREEN,
        )