import random
import logging
from typing import Optional

from . import presentation
from .config import Settings
from .draw import DrawOrchestrator
from .intro import IntroSequence, default_steps
from .kv import KeyValueStore
from .messenger import Messenger, MessagingGateway
from .models import DrawOutcome, InboundEvent, RouteKind, Session
from .router import classify
from .session import SessionState
from .transcript import Catalog


class DeckBot:
    """
    Owns the session and wires inbound events to draws.
    `handle_message_event` is the error boundary: nothing raised below it
    stops the bot from serving the next event.
    """
    def __init__(
        self,
        settings: Settings,
        session_state: SessionState,
        messenger: Messenger,
        catalog: Catalog,
        orchestrator: DrawOrchestrator,
    ):
        self.settings = settings
        self.session_state = session_state
        self.messenger = messenger
        self.catalog = catalog
        self.orchestrator = orchestrator
        self.intro: Optional[IntroSequence] = None

    def start(self) -> Optional[Session]:
        session = self.session_state.load()
        if session is None:
            logging.info(presentation.LOG_SESSION_MISSING)
        return session

    def should_introduce(self) -> bool:
        mode = self.settings.intro_on_start
        if mode == "always":
            return True
        if mode == "never":
            return False
        return self.session_state.current() is None

    def begin_session(self):
        """Starts a fresh introductory sequence (and with it, a fresh session)."""
        if self.intro:
            self.intro.cancel()
        self.intro = IntroSequence(
            self.messenger,
            default_steps(self.catalog, self.settings.narrator_name, self.settings.intro_delay_seconds),
        )
        return self.intro.start()

    def stop(self):
        if self.intro:
            self.intro.cancel()

    async def handle_message_event(self, event: InboundEvent) -> Optional[DrawOutcome]:
        try:
            session = self.session_state.current()
            logging.debug(
                "Received message event",
                extra={"context": {
                    "thread_ts": event.thread_ts,
                    "root_message_ts": session.message_ts if session else None,
                    "channel": event.channel_id,
                    "expected_channel": self.settings.channel_id,
                    "message_ts": event.ts,
                    "user": event.user_id,
                    "is_bot": event.is_bot,
                }},
            )

            route = classify(event, session, self.settings.channel_id, self.settings.narrator_name)
            if route.kind != RouteKind.DRAW:
                return None

            logging.info(f"DRAW command detected on {event.ts} by {route.request.actor_key}")
            return await self.orchestrator.draw(route.request)
        except Exception as e:
            logging.exception(f"Error handling message event {event.ts}: {e}")
            return None


def build_bot(settings: Settings, gateway: MessagingGateway, store: KeyValueStore, rng: random.Random = None) -> DeckBot:
    session_state = SessionState(settings.session_file)
    messenger = Messenger(gateway, session_state, settings.channel_id)
    catalog = Catalog()
    orchestrator = DrawOrchestrator(
        messenger,
        catalog,
        cooldowns=store,
        hands=store,
        cooldown_ms=settings.cooldown_ms,
        reaction=settings.draw_reaction,
        rng=rng,
    )
    return DeckBot(settings, session_state, messenger, catalog, orchestrator)
