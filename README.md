# timesync-bot

This package holds the scheduling logic for a chat bot that helps groups agree on a
meeting time. It splits matched availability windows into slots that people can vote
on. Members mark the slots that suit them and then lock in their votes. The package
then picks the slot that gives every group enough attendees.

The package takes plain Python data and returns plain data and message text. It uses
only the standard library.

## Installation

```
pip install .
```

To install the test dependency (pytest) as well:

```
pip install .[test]
```

## Modules

### `timesync_bot.models`

- `GroupAvailability`, `MatchResult`, `SlotInfo` and `ActivePoll` are dataclasses.
- `ActivePoll` has these helpers:
  - `eligible_voter_ids()`
  - `is_eligible(user_id)`
  - `all_slot_ids()`
  - `day_count()`
  - `group_name(index)`, which returns `"Group N"` when no name exists for that index.
  - `slot_vote_count(slot_id)`
- `resolve_timezone(name)` returns the named IANA zone. It returns UTC when it does not know the name.
- `is_valid_timezone(name)` checks a zone name.

### `timesync_bot.slots`

- `organize_slots_by_day(matches, timezone, slot_duration)`:
  - Cuts each match into slots of `slot_duration` minutes.
  - Groups the slots by the local date on which each match starts.
  - Numbers the days from 0 in date order.
  - Raises `ValueError` when the duration is not positive.
- `format_slot_time(start, end)` produces labels such as `6pm-8pm`, or `6:30pm-8pm` when either end is not on the hour.
- `find_optimal_meeting_slot(poll, min_required_per_group)`:
  - Counts only votes that have been locked in.
  - Returns `(day index, slot, voters)` for the slot with the most such votes.
  - The slot must have at least `min(min_required_per_group, group size)` of those voters from each group.
  - Returns `None` when no slot qualifies.

### `timesync_bot.messages`

This module builds message text:

- `generate_summary_message(poll, min_required_per_group)`: the main poll summary.
- `format_time_slots(poll)`: the shared day view.
- `format_personal_time_slots(poll, user_id)`: one voter's private view.
- `format_match_option(poll, index)`: the text for the yes/no proposal.
- `timezone_list_description()`: a list of common time zones.
- `format_timezone_info(timezone, now=None)`: the current local time and UTC offset.

### `timesync_bot.voting`

- `create_poll(...)` builds a poll:
  - Eligible voters are the members of the given groups.
  - Members listed in `members_with_schedule` start with every slot selected.
  - Everyone else starts with no slots selected.
  - `display_days` is clamped to 1–7.
- `toggle_slot`, `select_all_slots` and `clear_all_slots` change one voter's selections. They raise `NotEligibleError` (a subclass of `PollError`) for anyone outside the poll's groups.
- `previous_day` and `next_day` move the day being shown. Each returns whether the day changed.
- `lock_votes(poll, voter_id, min_required_per_group=6)` returns a `LockResult`:
  - `outcome` is a `LockOutcome`: `PENDING`, `CONFIRMED`, `FAILED` or `NO_SUITABLE_SLOT`.
  - `groups` is a list of `GroupStatus` tallies, one per group.
  - `best` is the chosen slot when the outcome is `CONFIRMED`.
- `record_yes_no_vote(poll, voter_id, is_yes)` runs the older yes/no flow. It returns a `VoteOutcome`:
  - `PENDING` while votes are still coming in.
  - `CONFIRMED` when every group has enough yes votes.
  - `ADVANCED` when the poll moves on to the next match and clears the votes.
  - `EXHAUSTED` when there is no other match to move to.
- `PollRegistry` is a thread-safe store of polls, keyed by message id. It has these methods:
  - `add`
  - `get`, which raises `PollError` when the poll is missing.
  - `remove`
  - `rekey`
  - `find_message_id`, which can fall back to the poll in which a voter has responses.

### `timesync_bot.interactions`

- `Button`, `ButtonStyle` and `Response` describe what to send back. A `Response` holds content, an embed title, description, footer and colour, rows of buttons, an ephemeral flag and a follow-up text.
- `slot_button_rows(poll, user_id)` lays out slot buttons, five to a row. Each label shows the vote count.
- `voting_interface(poll, user_id)` builds a voter's private availability view.
- `proposal_message(poll, min_required_per_group)` builds the main poll message.
- `lock_result_message(result, poll, role_mentions)` builds the message update that follows a lock-in.
- `ComponentRouter(registry, role_mentions=..., clock=...)` handles button presses:
  - Its `handle(custom_id, message_id, user_id)` method covers `open_voting`, `lock_votes`, `prev_day`, `next_day`, `select_all`, `clear_all`, `slot_<id>`, `match_yes`, `match_no` and `match_confirm`.
  - It returns a `Response`, or `None` when there is nothing to show.
  - The optional `role_mentions` callable supplies role mention tags for a poll.
  - The optional `clock` callable supplies the current time.

### `timesync_bot.commands`

These helpers parse command input:

- `parse_mention_tags(text)` accepts `<@id>`, `<@!id>` or plain numeric ids.
- `parse_group_names(text)`
- `parse_match_options(options)` reads `(name, value)` pairs into a `MatchOptions`. Defaults: minimum 1 per group, 120-minute slots, 7 days. Days are clamped to 1–7. It raises `ValueError` when the groups option is missing or invalid.

These helpers format replies:

- `format_member_list(member_ids)`
- `schedule_url(web_base_url, discord_id, username)`
- `group_list_line(name, role_id, count)`
- `group_info_description(member_schedules, role_id)`

## Example

```python
import uuid
from datetime import datetime, timezone

from timesync_bot.models import GroupAvailability, MatchResult
from timesync_bot.voting import create_poll, lock_votes

raid = uuid.uuid4()
match = MatchResult(
    start=datetime(2024, 5, 6, 18, tzinfo=timezone.utc),
    end=datetime(2024, 5, 6, 20, tzinfo=timezone.utc),
    groups=[GroupAvailability(id=raid, name="Raid", count=2, available_users=["1", "2"])],
)
poll = create_poll(
    [match], ["Raid"], {raid: ["1", "2"]},
    min_per_group=1, slot_duration=60, display_days=7,
    timezone="UTC", members_with_schedule={"1", "2"},
)
lock_votes(poll, "1", 6)
result = lock_votes(poll, "2", 6)
print(result.outcome)       # LockOutcome.CONFIRMED
print(result.best[1].formatted_time)
```

Time zone names are looked up in the IANA database that Python's `zoneinfo` finds on
the system.

## What this package does not do

The package does not:

- connect to a chat service, register slash commands or send messages;
- store groups, schedules or server time zones, so it has no database layer;
- fetch matches from an availability service. You pass `MatchResult` objects in yourself;
- provide a command-line entry point or a server to run.

The calling application has to connect `ComponentRouter` and the message builders to
its chat client, and keep the data these functions need.