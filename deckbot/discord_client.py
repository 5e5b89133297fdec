import logging
import asyncio
from typing import Awaitable, Callable, Dict, Optional

import discord

from . import presentation
from .models import InboundEvent, PostedMessage

MAX_MESSAGE_LENGTH = 2000
WEBHOOK_NAME = "Thread Deck"


def to_inbound_event(message: discord.Message) -> InboundEvent:
    """
    Flattens a discord.py message into the transport-neutral event shape.
    A thread opened from a message shares that message's id, so the thread id
    is the root message "timestamp".
    """
    channel = message.channel
    if isinstance(channel, discord.Thread):
        channel_id, thread_ts = str(channel.parent_id), str(channel.id)
    else:
        channel_id, thread_ts = str(channel.id), None

    return InboundEvent(
        channel_id=channel_id,
        thread_ts=thread_ts,
        ts=str(message.id),
        text=message.content or "",
        user_id=str(message.author.id),
        is_bot=bool(message.author.bot),
    )


# --- GATEWAY CLIENT (WEBSOCKET) ---
class DeckClient(discord.Client):
    """Gateway connection. Every message it sees is forwarded to `event_handler`."""

    def __init__(self, event_handler: Optional[Callable[[InboundEvent], Awaitable[None]]] = None):
        intents = discord.Intents.default()
        intents.message_content = True
        super().__init__(intents=intents)
        self.event_handler = event_handler

    async def on_ready(self):
        logging.info(f"Discord Gateway: Connected as {self.user}")

    async def on_message(self, message: discord.Message):
        if self.event_handler is None:
            return
        await self.event_handler(to_inbound_event(message))


# --- OUTPUT ---
class DiscordGateway:
    """
    Messaging Gateway over discord.py.
    Plain posts go out as the bot; posts with a display name go through a
    channel webhook so the narrator can speak under its own name.
    """
    def __init__(self, client: discord.Client):
        self.client = client
        self._webhooks: Dict[int, discord.Webhook] = {}
        self._thread_lock = asyncio.Lock()

    async def _channel(self, channel_id: str):
        channel = self.client.get_channel(int(channel_id))
        if channel is None:
            channel = await self.client.fetch_channel(int(channel_id))
        return channel

    async def _thread(self, channel_id: str, thread_ts: str) -> discord.Thread:
        # Serialised so two replies racing on a fresh root open only one thread
        async with self._thread_lock:
            try:
                return await self._channel(thread_ts)
            except discord.NotFound:
                parent = await self._channel(channel_id)
                root = await parent.fetch_message(int(thread_ts))
                logging.info(f"Discord: Opening thread on root message {thread_ts}")
                return await root.create_thread(name=presentation.THREAD_NAME)

    async def _webhook(self, channel) -> discord.Webhook:
        hook = self._webhooks.get(channel.id)
        if hook:
            return hook
        hooks = await channel.webhooks()
        hook = next((h for h in hooks if h.name == WEBHOOK_NAME and h.token), None)
        if hook is None:
            hook = await channel.create_webhook(name=WEBHOOK_NAME)
        self._webhooks[channel.id] = hook
        return hook

    async def post_message(
        self,
        channel_id: str,
        text: str,
        thread_ts: Optional[str] = None,
        display_name: Optional[str] = None,
        reply_to: Optional[str] = None,
    ) -> PostedMessage:
        if len(text) > MAX_MESSAGE_LENGTH:
            text = text[:MAX_MESSAGE_LENGTH - 10] + "..."

        try:
            parent = await self._channel(channel_id)
            thread = await self._thread(channel_id, thread_ts) if thread_ts else None

            if display_name:
                hook = await self._webhook(parent)
                if thread:
                    message = await hook.send(text, username=display_name, thread=thread, wait=True)
                else:
                    message = await hook.send(text, username=display_name, wait=True)
            else:
                target = thread or parent
                reference = target.get_partial_message(int(reply_to)) if reply_to else None
                message = await target.send(text, reference=reference, mention_author=False)
        except discord.HTTPException as e:
            logging.error(f"Send Error {channel_id} (thread {thread_ts}): {e}")
            raise

        return PostedMessage(channel_id=str(channel_id), ts=str(message.id))

    async def set_reaction(
        self,
        channel_id: str,
        message_ts: str,
        name: str,
        on: bool = True,
        thread_ts: Optional[str] = None,
    ):
        target = await self._thread(channel_id, thread_ts) if thread_ts else await self._channel(channel_id)
        message = target.get_partial_message(int(message_ts))
        if on:
            await message.add_reaction(name)
        else:
            await message.remove_reaction(name, self.client.user)
