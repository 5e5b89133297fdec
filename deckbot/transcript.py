from typing import Any, Dict, List, Set

from .models import Card

# --- TEXT TABLE ---
# Dotted keys resolve into this tree, e.g. "drawing.too_soon" or "cards.tower.flavor".

TRANSCRIPT: Dict[str, Any] = {
    "intro": {
        "root": "🃏",
        "wonder": "ooooh! what's this deck of cards doing here?",
        "prompt": "DRAW",
    },
    "drawing": {
        "start": "reaches for the deck",
        "too_soon": "draws too quickly! The cards need a moment to settle.",
        "exhausted": "has already drawn every card in the deck. There is nothing left to draw.",
        "requirements": "Requirements",
    },
    "cards": {
        "fool": {
            "name": "Fool",
            "flavor": "A step off the cliff, and the ground rises to meet you.",
            "requirements": "Do something you have never done before.",
        },
        "magician": {
            "name": "Magician",
            "flavor": "Everything you need is already on the table.",
            "requirements": "Finish a task using only what is within reach.",
        },
        "high_priestess": {
            "name": "High Priestess",
            "flavor": "Some answers only come when you stop asking.",
            "requirements": "Keep a secret until tomorrow.",
        },
        "empress": {
            "name": "Empress",
            "flavor": "What you tend, grows.",
            "requirements": "Water a plant or feed someone.",
        },
        "emperor": {
            "name": "Emperor",
            "flavor": "Order is a kindness you give your future self.",
            "requirements": "Tidy one shelf, folder or drawer.",
        },
        "hierophant": {
            "name": "Hierophant",
            "flavor": "Every tradition was once somebody's odd idea.",
            "requirements": "Teach someone a trick you learned from someone else.",
        },
        "lovers": {
            "name": "Lovers",
            "flavor": "A choice made with the whole heart.",
            "requirements": "Tell someone what you appreciate about them.",
        },
        "chariot": {
            "name": "Chariot",
            "flavor": "Two horses, one direction.",
            "requirements": "Ship something you have been putting off.",
        },
        "strength": {
            "name": "Strength",
            "flavor": "The lion is calmed by a gentle hand.",
            "requirements": "Respond to a frustration with patience.",
        },
        "hermit": {
            "name": "Hermit",
            "flavor": "A lantern is only useful in the dark.",
            "requirements": "Spend ten minutes without a screen.",
        },
        "wheel_of_fortune": {
            "name": "Wheel of Fortune",
            "flavor": "Up, down, and around again.",
            "requirements": "Let a coin flip make one decision today.",
        },
        "justice": {
            "name": "Justice",
            "flavor": "The scales do not care who is watching.",
            "requirements": "Settle a small debt, of money or of favours.",
        },
        "hanged_man": {
            "name": "Hanged Man",
            "flavor": "Upside down, the world makes a different kind of sense.",
            "requirements": "Argue the other side of something you believe.",
        },
        "death": {
            "name": "Death",
            "flavor": "Endings are just doors seen from the other side.",
            "requirements": "Throw away something you no longer need.",
        },
        "temperance": {
            "name": "Temperance",
            "flavor": "Pour slowly. Mix well.",
            "requirements": "Take a proper break between two tasks.",
        },
        "devil": {
            "name": "Devil",
            "flavor": "The chains were never locked.",
            "requirements": "Skip one habit you would rather not have.",
        },
        "tower": {
            "name": "Tower",
            "flavor": "What was built on sand was always going to fall.",
            "requirements": "Delete a plan that is not working.",
        },
        "star": {
            "name": "Star",
            "flavor": "After the storm, the sky is very clear.",
            "requirements": "Write down one thing you hope for.",
        },
        "moon": {
            "name": "Moon",
            "flavor": "Not everything in the shadows is a wolf.",
            "requirements": "Ask the question you were afraid sounded silly.",
        },
        "sun": {
            "name": "Sun",
            "flavor": "Warmth, freely given.",
            "requirements": "Share good news in the channel.",
        },
        "judgement": {
            "name": "Judgement",
            "flavor": "A trumpet call: wake up, you are ready.",
            "requirements": "Review something you made last month.",
        },
        "world": {
            "name": "World",
            "flavor": "The dance ends where it began, only wiser.",
            "requirements": "Close a loop you opened long ago.",
        },
    },
}


def _resolve(table: Dict[str, Any], key: str) -> Any:
    """Resolves a dotted key into a text table. Raises KeyError if any segment is missing."""
    node: Any = table
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            raise KeyError(key)
        node = node[part]
    return node


def transcript(key: str) -> Any:
    return _resolve(TRANSCRIPT, key)


class Catalog:
    """Read-only view of the card deck and localized strings."""

    def __init__(self, table: Dict[str, Any] = None):
        self.table = table if table is not None else TRANSCRIPT

    def _lookup(self, key: str) -> Any:
        return _resolve(self.table, key)

    def card_order(self) -> List[str]:
        return list(self.table.get("cards", {}).keys())

    def list_card_ids(self) -> Set[str]:
        return set(self.card_order())

    def get_card(self, card_id: str) -> Card:
        data = self._lookup(f"cards.{card_id}")
        return Card(id=card_id, **data)

    def get_string(self, key: str) -> str:
        return str(self._lookup(key))
