import asyncio
import pytest
from unittest.mock import AsyncMock, patch

from deckbot.intro import IntroSequence, IntroStep, default_steps
from deckbot.messenger import Messenger
from deckbot.session import SessionState
from deckbot.transcript import Catalog


@pytest.fixture
def messenger(gateway, tmp_path):
    return Messenger(gateway, SessionState(str(tmp_path / ".rootmessage")), "C-TEST")


@pytest.mark.asyncio
async def test_intro_posts_root_then_narrated_thread(messenger, gateway):
    sequence = IntroSequence(messenger, default_steps(Catalog(), "The Fool", delay=0))
    root = await sequence.run()

    assert [p["text"] for p in gateway.posts] == [
        "🃏",
        "ooooh! what's this deck of cards doing here?",
        "DRAW",
    ]
    assert gateway.posts[0]["thread_ts"] is None
    assert all(p["thread_ts"] == root.ts for p in gateway.posts[1:])
    assert all(p["display_name"] == "The Fool" for p in gateway.posts[1:])

    # The root message became the session
    assert messenger.session_state.current().message_ts == root.ts


@pytest.mark.asyncio
async def test_intro_waits_between_every_step(messenger):
    sequence = IntroSequence(messenger, default_steps(Catalog(), "The Fool", delay=3))
    with patch("deckbot.intro.asyncio.sleep", new_callable=AsyncMock) as sleep:
        await sequence.run()
    assert [c.args[0] for c in sleep.await_args_list] == [3, 3, 3]


@pytest.mark.asyncio
async def test_cancel_stops_mid_sequence(messenger, gateway):
    sequence = IntroSequence(messenger, [
        IntroStep(text="root", delay=60, threaded=False),
        IntroStep(text="never sent"),
    ])
    task = sequence.start()
    await asyncio.sleep(0)

    sequence.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert gateway.texts() == ["root"]
    assert not sequence.running


@pytest.mark.asyncio
async def test_threaded_step_without_root_is_rejected(messenger):
    sequence = IntroSequence(messenger, [IntroStep(text="orphan")])
    with pytest.raises(ValueError):
        await sequence.run()
