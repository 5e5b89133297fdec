import logging
from pathlib import Path
from typing import Optional

from .models import Session

class SessionState:
    """
    Holds the active root message and mirrors it to a small JSON file
    so the bot keeps listening to the same thread across restarts.
    Persistence is best-effort: failures are logged, never raised.
    """
    def __init__(self, path: str = ".rootmessage"):
        self.path = Path(path)
        self._session: Optional[Session] = None

    def load(self) -> Optional[Session]:
        try:
            if self.path.exists():
                self._session = Session.model_validate_json(self.path.read_text())
                logging.info(f"Session: Restored root message {self._session.message_ts}")
        except (OSError, ValueError) as e:
            logging.error(f"Error loading root message from {self.path}: {e}")
            self._session = None
        return self._session

    def save(self, session: Session):
        self._session = session
        try:
            self.path.write_text(session.model_dump_json(by_alias=True))
        except OSError as e:
            logging.error(f"Error saving root message to {self.path}: {e}")

    def current(self) -> Optional[Session]:
        return self._session

    def update(self, channel_id: str, message_ts: str) -> Session:
        session = Session(channel_id=channel_id, message_ts=message_ts)
        self.save(session)
        return session
