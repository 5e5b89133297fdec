import os
import random
from typing import List, Optional

import pytest

# --- ENVIRONMENT ---
# Keep local .env files and real credentials out of the test run.
os.environ.setdefault("KV_BACKEND", "memory")
os.environ.setdefault("DECK_CHANNEL_ID", "C-TEST")

from deckbot.bot import build_bot
from deckbot.config import Settings
from deckbot.kv import MemoryStore
from deckbot.models import PostedMessage

CHANNEL_ID = "C-TEST"


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeGateway:
    """Records every outbound call. Message ids are handed out in order."""

    def __init__(self):
        self.posts: List[dict] = []
        self.reactions: List[dict] = []
        self.fail_reactions = False
        self.fail_posts = False
        self._next_ts = 100

    async def post_message(self, channel_id, text, thread_ts=None, display_name=None, reply_to=None):
        if self.fail_posts:
            raise ConnectionError("gateway down")
        self._next_ts += 1
        ts = str(self._next_ts)
        self.posts.append({
            "channel_id": channel_id,
            "text": text,
            "thread_ts": thread_ts,
            "display_name": display_name,
            "reply_to": reply_to,
            "ts": ts,
        })
        return PostedMessage(channel_id=channel_id, ts=ts)

    async def set_reaction(self, channel_id, message_ts, name, on=True, thread_ts=None):
        if self.fail_reactions:
            raise ConnectionError("reactions unavailable")
        self.reactions.append({"message_ts": message_ts, "name": name, "on": on, "thread_ts": thread_ts})

    def texts(self, thread_ts: Optional[str] = None) -> List[str]:
        return [p["text"] for p in self.posts if thread_ts is None or p["thread_ts"] == thread_ts]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return MemoryStore(clock=clock)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        channel_id=CHANNEL_ID,
        session_file=str(tmp_path / ".rootmessage"),
        kv_backend="memory",
        intro_delay_seconds=0,
    )


@pytest.fixture
def bot(settings, gateway, store):
    return build_bot(settings, gateway, store, rng=random.Random(7))
