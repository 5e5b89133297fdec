import random
import logging
from enum import Enum

from . import presentation
from .deck import choose_card
from .kv import KeyValueStore, cooldown_key, hand_key
from .messenger import Messenger
from .models import DrawOutcome, DrawRequest, DrawStatus
from .transcript import Catalog

# Re-selection attempts when a concurrent append already took the chosen card
MAX_RECORD_ATTEMPTS = 3


class DrawStage(str, Enum):
    RECEIVED = "received"
    COOLDOWN_CHECKED = "cooldown_checked"
    REJECTED = "rejected"
    HAND_RESOLVED = "hand_resolved"
    CARD_SELECTED = "card_selected"
    RECORDED = "recorded"
    ANNOUNCED = "announced"


class DrawConflict(RuntimeError):
    """The hand kept changing underneath us while recording a card."""


class DrawOrchestrator:
    def __init__(
        self,
        messenger: Messenger,
        catalog: Catalog,
        cooldowns: KeyValueStore,
        hands: KeyValueStore,
        cooldown_ms: int = 30_000,
        reaction: str = "🎴",
        rng: random.Random = None,
    ):
        self.messenger = messenger
        self.catalog = catalog
        self.cooldowns = cooldowns
        self.hands = hands
        self.cooldown_ms = cooldown_ms
        self.reaction = reaction
        self.rng = rng or random.Random()

    async def draw(self, request: DrawRequest) -> DrawOutcome:
        actor = request.actor_key
        stage = DrawStage.RECEIVED

        # 1. Acknowledge (detached, never blocks or fails the draw)
        self.messenger.acknowledge(request.message_ts, self.reaction, thread_ts=request.thread_ts)

        try:
            await self._reply(request, presentation.format_drawing_start(
                request.mention, self.catalog.get_string("drawing.start")))

            # 2. Cooldown gate. Writing the entry is the commit point.
            committed = await self.cooldowns.set_if_absent(cooldown_key(actor), True, ttl_ms=self.cooldown_ms)
            stage = DrawStage.COOLDOWN_CHECKED
            if not committed:
                stage = DrawStage.REJECTED
                logging.info(f"Draw: {actor} is still on cooldown")
                await self._reply(request, presentation.format_too_soon(
                    request.mention, self.catalog.get_string("drawing.too_soon")))
                return DrawOutcome(status=DrawStatus.TOO_SOON, actor_key=actor)

            # 3-5. Pick an undrawn card and record it
            for _ in range(MAX_RECORD_ATTEMPTS):
                hand = list(await self.hands.get(hand_key(actor)) or [])
                stage = DrawStage.HAND_RESOLVED

                card_id = choose_card(self.catalog.card_order(), hand, self.rng)
                if card_id is None:
                    logging.info(f"Draw: {actor} has exhausted the deck ({len(hand)} cards)")
                    await self._reply(request, presentation.format_exhausted(
                        request.mention, self.catalog.get_string("drawing.exhausted")))
                    return DrawOutcome(status=DrawStatus.EXHAUSTED, actor_key=actor, hand=hand)
                stage = DrawStage.CARD_SELECTED

                if await self.hands.append_unique(hand_key(actor), card_id):
                    hand.append(card_id)
                    stage = DrawStage.RECORDED
                    break
                logging.warning(f"Draw: {card_id} already landed in {actor}'s hand, re-selecting")
            else:
                raise DrawConflict(f"Could not record a card for {actor} after {MAX_RECORD_ATTEMPTS} attempts")

            # 6. Announce
            card = self.catalog.get_card(card_id)
            await self._reply(request, presentation.format_card_drawn(
                request.mention, card, self.catalog.get_string("drawing.requirements")))
            stage = DrawStage.ANNOUNCED

            logging.info(f"Draw: {actor} drew {card_id}", extra={"context": {"hand_size": len(hand)}})
            return DrawOutcome(status=DrawStatus.DRAWN, actor_key=actor, card_id=card_id, hand=hand)

        except Exception as e:
            logging.error(f"Error in draw for {actor} at stage {stage.value}: {e}")
            raise

    async def _reply(self, request: DrawRequest, text: str):
        await self.messenger.send(text, thread_ts=request.thread_ts, reply_to=request.message_ts)
