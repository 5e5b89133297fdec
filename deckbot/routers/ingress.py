from fastapi import APIRouter, Header, HTTPException, Request, Depends
from pydantic import BaseModel
from typing import Optional
import logging

from ..models import InboundEvent

async def verify_auth(request: Request, x_internal_auth: str = Header(...)):
    if x_internal_auth != request.app.state.settings.internal_api_key:
        raise HTTPException(status_code=403, detail="Invalid API Key")

router = APIRouter(
    prefix="/ingress",
    tags=["ingress"],
    dependencies=[Depends(verify_auth)]
)

class MessagePayload(BaseModel):
    """A message event forwarded by an external gateway process."""
    channel_id: str
    thread_id: Optional[str] = None
    message_id: str
    user_id: Optional[str] = None
    content: str = ""
    is_bot: bool = False

# --- ENDPOINTS ---

@router.post("/message")
async def handle_message(payload: MessagePayload, request: Request):
    event = InboundEvent(
        channel_id=payload.channel_id,
        thread_ts=payload.thread_id,
        ts=payload.message_id,
        text=payload.content,
        user_id=payload.user_id,
        is_bot=payload.is_bot,
    )

    try:
        outcome = await request.app.state.bot.handle_message_event(event)
    except Exception as e:
        logging.error(f"Ingress Message Error: {e}")
        return {"status": "error", "detail": str(e)}

    if outcome is None:
        return {"status": "ignored"}
    return {"status": "ok", "outcome": outcome.model_dump(mode="json")}
