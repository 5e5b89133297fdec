from typing import Optional

from .models import DrawRequest, InboundEvent, RouteKind, RouteResult, Session
from . import presentation

DRAW_COMMAND = "DRAW"

IRRELEVANT = RouteResult(kind=RouteKind.IRRELEVANT)
NO_COMMAND = RouteResult(kind=RouteKind.NO_COMMAND)


def normalize_command(text: Optional[str]) -> str:
    return (text or "").strip().upper()


def classify(event: InboundEvent, session: Optional[Session], channel_id: str, narrator_name: str) -> RouteResult:
    """
    Decides whether an event belongs to the active game thread and what it asks for.
    No I/O: the caller owns the session and acts on the result.
    """
    # 1. Wrong channel
    if event.channel_id != channel_id:
        return IRRELEVANT

    # 2. Not a reply in the active thread
    if session is None or event.thread_ts != session.message_ts:
        return IRRELEVANT

    # 3. Chatter in the thread, or a player message with nobody to credit
    if normalize_command(event.text) != DRAW_COMMAND:
        return NO_COMMAND
    if not event.is_bot and not event.user_id:
        return NO_COMMAND

    # 4. Resolve the actor. Bot posts (the narrator's own prompt) draw as the narrator.
    if event.is_bot:
        actor_key = narrator_name
        mention = presentation.format_mention(narrator_name, is_player=False)
    else:
        actor_key = event.user_id
        mention = presentation.format_mention(event.user_id, is_player=True)

    return RouteResult(
        kind=RouteKind.DRAW,
        request=DrawRequest(
            actor_key=actor_key,
            mention=mention,
            message_ts=event.ts,
            thread_ts=event.thread_ts,
        ),
    )
