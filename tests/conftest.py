"""
Pytest configuration and fixtures for NeuraTalk tests.
"""

import asyncio

import pytest

from neuratalk.core.errors import GenerationFailed
from neuratalk.core.store import TranscriptStore


class FakeClient:
    """Stands in for GenerationClient; answers from a list, records every call."""

    def __init__(self, responses=None, error=None):
        self.responses = list(responses or [])
        self.error = error
        self.calls = []
        self.gate = None

    async def generate(self, model_id, prior_turns_joined, new_prompt, options):
        self.calls.append((model_id, prior_turns_joined, new_prompt, options))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        if not self.responses:
            raise GenerationFailed("no response queued")
        return self.responses.pop(0)


@pytest.fixture
def store(tmp_path):
    return TranscriptStore(tmp_path / "conversations", tmp_path / "history")


@pytest.fixture
def fake_client():
    return FakeClient(responses=["hello"])


@pytest.fixture
def events():
    return asyncio.Queue()


def drain(queue):
    """All events currently queued, oldest first."""
    items = []
    while not queue.empty():
        items.append(queue.get_nowait())
    return items


async def settle_background():
    """Wait for snapshot writes and other detached session tasks."""
    from neuratalk.core import session

    pending = set(session._background_tasks)
    if pending:
        await asyncio.wait(pending)
