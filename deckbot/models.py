from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

class Session(BaseModel):
    """The one active root message whose thread is the game board."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    channel_id: str = Field(alias="channelId")
    message_ts: str = Field(alias="messageTs")

class Card(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    flavor: str
    requirements: str

class InboundEvent(BaseModel):
    channel_id: str
    thread_ts: Optional[str] = None  # Root of the thread this reply belongs to
    ts: str
    text: str = ""
    user_id: Optional[str] = None
    is_bot: bool = False

class PostedMessage(BaseModel):
    channel_id: str
    ts: str

# --- ROUTING ---

class RouteKind(str, Enum):
    IRRELEVANT = "irrelevant"
    NO_COMMAND = "no_command"
    DRAW = "draw"

class DrawRequest(BaseModel):
    actor_key: str   # Store key: player id or the narrator label
    mention: str     # How the actor is addressed in replies
    message_ts: str  # The triggering message
    thread_ts: str

class RouteResult(BaseModel):
    kind: RouteKind
    request: Optional[DrawRequest] = None

# --- DRAW OUTCOMES ---

class DrawStatus(str, Enum):
    DRAWN = "drawn"
    TOO_SOON = "too_soon"
    EXHAUSTED = "exhausted"

class DrawOutcome(BaseModel):
    status: DrawStatus
    actor_key: str
    card_id: Optional[str] = None
    hand: List[str] = Field(default_factory=list)
