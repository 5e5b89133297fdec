import os

from .models import Card

# --- CONSTANTS ---

LOG_SESSION_MISSING = "Session: No root message restored. Waiting for a new introduction."
SYSTEM_ONLINE = "**Deck Online**"
THREAD_NAME = "The Deck"


# --- FORMATTERS ---

def format_mention(actor_key: str, is_player: bool) -> str:
    """Players are pinged; the narrator label is printed as-is."""
    if is_player:
        return f"<@{actor_key}>"
    return actor_key

def format_drawing_start(mention: str, line: str) -> str:
    return f"{mention} {line}..."

def format_too_soon(mention: str, line: str) -> str:
    return f"{mention} {line}"

def format_exhausted(mention: str, line: str) -> str:
    return f"{mention} {line}"

def format_card_drawn(mention: str, card: Card, requirements_label: str = "Requirements") -> str:
    return (
        f"{mention} draws the {card.name}!\n"
        f"_{card.flavor}_\n\n"
        f"{requirements_label}: {card.requirements}"
    )

def format_revision() -> str:
    rev = os.environ.get('K_REVISION', 'Local-Dev')
    return f"{SYSTEM_ONLINE}: `{rev}`"
