import asyncio
import logging
from typing import Optional, Protocol, Set

from .models import PostedMessage
from .session import SessionState


class MessagingGateway(Protocol):
    async def post_message(
        self,
        channel_id: str,
        text: str,
        thread_ts: Optional[str] = None,
        display_name: Optional[str] = None,
        reply_to: Optional[str] = None,
    ) -> PostedMessage:
        ...

    async def set_reaction(
        self,
        channel_id: str,
        message_ts: str,
        name: str,
        on: bool = True,
        thread_ts: Optional[str] = None,
    ) -> None:
        ...


class Messenger:
    """
    Sends into the configured channel.
    Every non-threaded send becomes the new root message: the session is
    updated and persisted right after the post succeeds.
    """
    def __init__(self, gateway: MessagingGateway, session_state: SessionState, channel_id: str):
        self.gateway = gateway
        self.session_state = session_state
        self.channel_id = channel_id
        self._background: Set[asyncio.Task] = set()

    async def send(
        self,
        text: str,
        thread_ts: Optional[str] = None,
        display_name: Optional[str] = None,
        reply_to: Optional[str] = None,
    ) -> PostedMessage:
        logging.info(
            "Sending message",
            extra={"context": {"thread_ts": thread_ts, "display_name": display_name, "reply_to": reply_to}},
        )
        try:
            posted = await self.gateway.post_message(
                self.channel_id, text,
                thread_ts=thread_ts, display_name=display_name, reply_to=reply_to,
            )
        except Exception as e:
            logging.error(f"Error sending message to channel {self.channel_id}: {e}")
            raise

        if not thread_ts:
            self.session_state.update(posted.channel_id, posted.ts)
        return posted

    def acknowledge(self, message_ts: str, name: str, thread_ts: Optional[str] = None, on: bool = True) -> asyncio.Task:
        """Best-effort reaction. Runs detached; the caller never waits on it or sees its errors."""
        task = asyncio.create_task(self._react(message_ts, name, thread_ts, on))
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    async def _react(self, message_ts: str, name: str, thread_ts: Optional[str], on: bool):
        try:
            await self.gateway.set_reaction(self.channel_id, message_ts, name, on=on, thread_ts=thread_ts)
        except Exception as e:
            logging.warning(f"Failed to react to message {message_ts} with {name} (on={on}): {e}")

    async def drain(self):
        """Waits for outstanding reactions. Used on shutdown and in tests."""
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)
