"""Poll state changes: creating polls, voting, locking and navigation."""

from __future__ import annotations

import threading
import uuid
from collections.abc import Hashable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum

from timesync_bot.models import ActivePoll, MatchResult, SlotInfo
from timesync_bot.slots import find_optimal_meeting_slot, organize_slots_by_day

MIN_REQUIRED_PER_GROUP = 6
NOT_ELIGIBLE_MESSAGE = (
    "You are not a member of any of the groups in this poll, so you cannot vote."
)


class PollError(Exception):
    """Raised when a poll cannot be found or acted on."""


class NotEligibleError(PollError):
    """Raised when a user outside the poll's groups tries to vote."""

    def __init__(self, user_id: str) -> None:
        super().__init__(NOT_ELIGIBLE_MESSAGE)
        self.user_id = user_id


@dataclass(frozen=True)
class GroupStatus:
    """Lock-in tally for one group."""

    name: str
    available: int
    unavailable: int
    remaining: int
    min_required: int


class LockOutcome(Enum):
    """What a lock-in means for the poll as a whole."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"
    NO_SUITABLE_SLOT = "no_suitable_slot"


@dataclass
class LockResult:
    """Result of a voter locking in their votes."""

    outcome: LockOutcome
    groups: list[GroupStatus] = field(default_factory=list)
    best: tuple[int, SlotInfo, list[str]] | None = None

    @property
    def finalized(self) -> bool:
        """Tell whether the poll is over and should be removed."""
        return self.outcome is not LockOutcome.PENDING


class VoteOutcome(Enum):
    """What a yes/no vote did to the poll."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    ADVANCED = "advanced"
    EXHAUSTED = "exhausted"

    @property
    def finalized(self) -> bool:
        """Tell whether the poll is over and should be removed."""
        return self in (VoteOutcome.CONFIRMED, VoteOutcome.EXHAUSTED)


class PollRegistry:
    """Thread-safe store of active polls keyed by message ID."""

    def __init__(self) -> None:
        self._polls: dict[Hashable, ActivePoll] = {}
        self._lock = threading.Lock()

    def __contains__(self, message_id: object) -> bool:
        with self._lock:
            return message_id in self._polls

    def __len__(self) -> int:
        with self._lock:
            return len(self._polls)

    def add(self, message_id: Hashable, poll: ActivePoll) -> None:
        """Store ``poll`` under ``message_id``, replacing any previous one."""
        with self._lock:
            self._polls[message_id] = poll

    def get(self, message_id: Hashable) -> ActivePoll:
        """Return the poll for ``message_id`` or raise :class:`PollError`."""
        with self._lock:
            try:
                return self._polls[message_id]
            except KeyError:
                raise PollError("No active poll found for this message") from None

    def remove(self, message_id: Hashable) -> ActivePoll | None:
        """Drop the poll for ``message_id`` and return it, if there was one."""
        with self._lock:
            return self._polls.pop(message_id, None)

    def rekey(self, old_id: Hashable, new_id: Hashable) -> ActivePoll:
        """Move a poll from ``old_id`` to ``new_id`` and return it."""
        with self._lock:
            try:
                poll = self._polls.pop(old_id)
            except KeyError:
                raise PollError("No active poll found for this message") from None
            self._polls[new_id] = poll
            return poll

    def find_message_id(
        self,
        message_id: Hashable,
        voter_id: str,
        allow_voter_fallback: bool,
    ) -> Hashable:
        """Find which poll a button press belongs to.

        A direct match on ``message_id`` wins. Otherwise, when the press came
        from a private view, the first poll holding a response from
        ``voter_id`` is used.
        """
        with self._lock:
            if message_id in self._polls:
                return message_id
            if not allow_voter_fallback:
                raise PollError("No active poll found for this message")
            for key, poll in self._polls.items():
                if voter_id in poll.slot_responses:
                    return key
        raise PollError("No active poll found for this user")


def _require_eligible(poll: ActivePoll, voter_id: str) -> None:
    if not poll.is_eligible(voter_id):
        raise NotEligibleError(voter_id)


def create_poll(
    matches: Sequence[MatchResult],
    group_names: Sequence[str],
    group_members: Mapping[uuid.UUID, Sequence[str]],
    min_per_group: int = 1,
    slot_duration: int = 120,
    display_days: int = 7,
    timezone: str = "UTC",
    members_with_schedule: Iterable[str] = (),
) -> ActivePoll:
    """Build a new slot-voting poll.

    Every eligible voter starts with no selections, except members with a
    saved schedule, who start with every slot selected.
    """
    members = {group_id: list(ids) for group_id, ids in group_members.items()}
    eligible = list(dict.fromkeys(m for ids in members.values() for m in ids))
    required_yes = sum(
        min(MIN_REQUIRED_PER_GROUP, len(ids)) for ids in members.values()
    )

    poll = ActivePoll(
        matches=list(matches),
        current_index=0,
        group_names=list(group_names),
        min_per_group=min_per_group,
        required_yes_count=required_yes,
        timezone=timezone,
        eligible_voters=",".join(eligible),
        group_members=members,
        slot_duration=slot_duration,
        display_days=max(1, min(7, display_days)),
        current_day=0,
        day_slots=organize_slots_by_day(matches, timezone, slot_duration),
    )

    all_ids = poll.all_slot_ids()
    scheduled = set(members_with_schedule)
    for voter in eligible:
        poll.slot_responses[voter] = list(all_ids) if voter in scheduled else []
    return poll


def lock_votes(
    poll: ActivePoll,
    voter_id: str,
    min_required_per_group: int = MIN_REQUIRED_PER_GROUP,
) -> LockResult:
    """Lock in ``voter_id``'s selections and judge whether the poll is decided."""
    _require_eligible(poll, voter_id)
    poll.locked_votes[voter_id] = True

    all_enough = True
    impossible = False
    statuses: list[GroupStatus] = []

    for idx, members in enumerate(poll.group_members.values()):
        required = min(min_required_per_group, len(members))
        locked = [m for m in members if m in poll.locked_votes]
        available = sum(1 for m in locked if poll.slot_responses.get(m))
        unavailable = len(locked) - available
        remaining = len(members) - available - unavailable

        if available + remaining < required:
            impossible = True
        if available < required:
            all_enough = False

        statuses.append(
            GroupStatus(poll.group_name(idx), available, unavailable, remaining, required)
        )

    if impossible:
        return LockResult(LockOutcome.FAILED, statuses)
    if not all_enough:
        return LockResult(LockOutcome.PENDING, statuses)

    best = find_optimal_meeting_slot(poll, min_required_per_group)
    if best is None:
        return LockResult(LockOutcome.NO_SUITABLE_SLOT, statuses)
    return LockResult(LockOutcome.CONFIRMED, statuses, best)


def toggle_slot(poll: ActivePoll, voter_id: str, slot_id: str) -> bool:
    """Flip ``slot_id`` in the voter's selections; return whether it is now chosen."""
    _require_eligible(poll, voter_id)
    selected = poll.slot_responses.setdefault(voter_id, [])
    if slot_id in selected:
        selected.remove(slot_id)
        return False
    selected.append(slot_id)
    return True


def select_all_slots(poll: ActivePoll, voter_id: str) -> list[str]:
    """Select every slot on every day for the voter."""
    _require_eligible(poll, voter_id)
    selection = poll.all_slot_ids()
    poll.slot_responses[voter_id] = selection
    return list(selection)


def clear_all_slots(poll: ActivePoll, voter_id: str) -> None:
    """Remove every selection the voter has made."""
    _require_eligible(poll, voter_id)
    poll.slot_responses[voter_id] = []


def previous_day(poll: ActivePoll) -> bool:
    """Step back one day; return whether the day changed."""
    if poll.current_day == 0:
        return False
    poll.current_day -= 1
    return True


def next_day(poll: ActivePoll) -> bool:
    """Step forward one day; return whether the day changed."""
    if poll.current_day >= poll.day_count() - 1:
        return False
    poll.current_day += 1
    return True


def record_yes_no_vote(poll: ActivePoll, voter_id: str, is_yes: bool) -> VoteOutcome:
    """Record a yes/no answer on the current proposed match.

    When no group can reach its threshold any more, the poll moves on to the
    next match (clearing answers) or, with a single match, is exhausted.
    """
    _require_eligible(poll, voter_id)
    poll.responses[voter_id] = is_yes

    def yes_count(members: Sequence[str]) -> int:
        return sum(1 for m in members if poll.responses.get(m) is True)

    groups = list(poll.group_members.values())
    if all(
        yes_count(members) >= min(MIN_REQUIRED_PER_GROUP, len(members))
        for members in groups
    ):
        return VoteOutcome.CONFIRMED

    impossible = any(
        yes_count(members) + sum(1 for m in members if m not in poll.responses)
        < min(MIN_REQUIRED_PER_GROUP, len(members))
        for members in groups
    )
    if not impossible:
        return VoteOutcome.PENDING

    if len(poll.matches) > 1:
        poll.current_index = (poll.current_index + 1) % len(poll.matches)
        poll.responses.clear()
        return VoteOutcome.ADVANCED
    return VoteOutcome.EXHAUSTED