from fastapi import APIRouter, Header, HTTPException, Request, Depends
import logging

async def verify_ops_auth(request: Request, x_ops_key: str = Header(...)):
    """
    Strictly validates the request against the OPS_KEY.
    This key should be distinct from the INTERNAL_API_KEY.
    """
    if x_ops_key != request.app.state.settings.ops_key:
        logging.warning("Ops: Invalid key attempt.")
        raise HTTPException(status_code=403, detail="Invalid Ops Key")

router = APIRouter(prefix="/ops", tags=["ops"], dependencies=[Depends(verify_ops_auth)])

@router.get("/session")
async def get_session(request: Request):
    session = request.app.state.bot.session_state.current()
    if session is None:
        return {"status": "empty"}
    return {"status": "active", "session": session.model_dump(by_alias=True)}

@router.post("/intro")
async def start_intro(request: Request):
    """Posts a fresh introduction. The new root message replaces the current session."""
    bot = request.app.state.bot
    logging.info("Ops: Starting a new introductory sequence")
    bot.begin_session()
    return {"status": "started"}
