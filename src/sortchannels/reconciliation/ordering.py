"""
Natural-sort ordering of a guild's text channels.

Names are split into text and digit runs; digit runs compare by numeric value
so ``general-2`` sorts before ``general-10``. Text runs compare case-insensitively
with the original spelling as a secondary key, and the channel id breaks ties
between identical names, so the order is total and repeated passes converge.

Everything here is pure: no I/O, no platform objects.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Sequence, Tuple

from sortchannels.datatypes.channel_datatypes import ChannelKind, ChannelSnapshot, PositionEdit

_RUN_PATTERN = re.compile(r"(\d+)")

# Digit runs sort before text runs at the same index, matching how ASCII
# digits sort ahead of letters.
_DIGIT_RUN = 0
_TEXT_RUN = 1


def natural_sort_key(name: str) -> Tuple[tuple, str]:
    """Return a sort key that orders ``name`` naturally.

    The first element is the tuple of runs, each encoded as
    ``(run_type, value)``; the second is the raw name, used only when two names
    differ solely in letter case.
    """
    runs = []
    for index, part in enumerate(_RUN_PATTERN.split(name)):
        if not part:
            continue
        if index % 2:
            # Leading zeros only matter when the numeric values are equal.
            runs.append((_DIGIT_RUN, (int(part), len(part))))
        else:
            runs.append((_TEXT_RUN, part.casefold()))
    return tuple(runs), name


def text_channels(channels: Iterable[ChannelSnapshot]) -> List[ChannelSnapshot]:
    """Return only the channels the orderer is allowed to touch."""
    return [channel for channel in channels if channel.kind is ChannelKind.TEXT]


def sorted_text_channels(channels: Iterable[ChannelSnapshot]) -> List[ChannelSnapshot]:
    """Return the text channels in target order."""
    return sorted(text_channels(channels), key=lambda c: (natural_sort_key(c.name), c.id))


def compute_target_order(channels: Sequence[ChannelSnapshot]) -> List[PositionEdit]:
    """Compute the minimal set of position edits that puts text channels in natural order.

    Each text channel's target position is its 0-based rank in the sorted
    sequence. Channels already at their rank produce no edit; non-text channels
    never appear in the output. Edits are returned in rank order.

    Args:
        channels: Snapshot of a guild's channels, any kind

    Returns:
        List of PositionEdit for channels whose position must change
    """
    return [
        PositionEdit(channel=channel, new_position=rank)
        for rank, channel in enumerate(sorted_text_channels(channels))
        if channel.position != rank
    ]


def apply_edits(channels: Sequence[ChannelSnapshot], edits: Iterable[PositionEdit]) -> List[ChannelSnapshot]:
    """Return ``channels`` with ``edits`` applied, as the platform would report them afterwards."""
    targets = {edit.channel_id: edit.new_position for edit in edits}
    return [
        channel.moved_to(targets[channel.id]) if channel.id in targets else channel
        for channel in channels
    ]
