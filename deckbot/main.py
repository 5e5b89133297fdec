import os
import asyncio
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, Response, status

from .bot import build_bot
from .config import load_settings, get_discord_token
from .discord_client import DeckClient, DiscordGateway
from .gcp_log import setup_logging
from .kv import create_store
from . import presentation
from .routers.ingress import router as ingress_router
from .routers.ops import router as ops_router


async def _introduce_when_ready(client: DeckClient, bot):
    await client.wait_until_ready()
    logging.info(presentation.format_revision())
    if bot.should_introduce():
        bot.begin_session()


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = load_settings()
    setup_logging(settings.log_level)

    if not settings.channel_id:
        logging.warning("DECK_CHANNEL_ID is not set. Every event will be ignored.")

    discord_client = DeckClient()
    bot = build_bot(settings, DiscordGateway(discord_client), create_store(settings))
    discord_client.event_handler = bot.handle_message_event
    bot.start()

    app.state.settings = settings
    app.state.bot = bot
    app.state.discord_client = discord_client

    token = get_discord_token()
    if token:
        # Start the Discord Client (Gateway Mode)
        asyncio.create_task(discord_client.start(token))
        asyncio.create_task(_introduce_when_ready(discord_client, bot))
    else:
        logging.warning("Discord token not found. Bot will not start.")

    yield

    # --- SHUTDOWN ---
    logging.info("System: Shutdown signal received.")
    bot.stop()
    await bot.messenger.drain()
    if not discord_client.is_closed():
        await discord_client.close()


app = FastAPI(lifespan=lifespan)
app.include_router(ingress_router)
app.include_router(ops_router)


@app.get("/ping")
async def ping(request: Request, response: Response):
    client = getattr(request.app.state, "discord_client", None)
    if client is not None and client.is_ready():
        return {"status": "ok", "discord": "connected"}
    response.status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return {"status": "unhealthy", "discord": "disconnected"}


def run():
    uvicorn.run("deckbot.main:app", host="0.0.0.0", port=int(os.environ.get("PORT", "8080")))


if __name__ == "__main__":
    run()
