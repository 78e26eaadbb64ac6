"""
Pytest configuration and fixtures for sort-channels tests.
"""

import sys
from pathlib import Path

# Add src directory to path so imports work without an editable install
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

import pytest

from sortchannels.datatypes.channel_datatypes import ChannelKind, ChannelSnapshot


def text(channel_id, name, position):
    return ChannelSnapshot(id=channel_id, name=name, kind=ChannelKind.TEXT, position=position)


def voice(channel_id, name, position):
    return ChannelSnapshot(id=channel_id, name=name, kind=ChannelKind.VOICE, position=position)


class FakeGuild:
    """In-memory guild: serves channel lists and applies edits like the platform would."""

    def __init__(self, channels, failing_ids=()):
        self.channels = {c.id: c for c in channels}
        self.failing_ids = set(failing_ids)
        self.edit_calls = []
        self.list_calls = 0

    async def list_channels(self, guild_id):
        self.list_calls += 1
        return list(self.channels.values())

    async def set_channel_position(self, channel_id, position):
        self.edit_calls.append((channel_id, position))
        if channel_id in self.failing_ids:
            raise RuntimeError(f"edit rejected for {channel_id}")
        self.channels[channel_id] = self.channels[channel_id].moved_to(position)


@pytest.fixture
def scenario_channels():
    return [
        text(1, "general", 0),
        text(2, "general-2", 1),
        text(3, "general-10", 2),
        text(4, "bot-commands", 3),
    ]
