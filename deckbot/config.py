import os
import logging
from dataclasses import dataclass
from typing import Optional

import google.auth
import google.auth.exceptions
from google.cloud import secretmanager
from dotenv import load_dotenv

# Load .env for local dev
load_dotenv()

DEFAULT_NARRATOR = "The Fool"
INTRO_MODES = ("auto", "always", "never")


@dataclass(frozen=True)
class Settings:
    channel_id: str
    session_file: str = ".rootmessage"
    kv_backend: str = "firestore"
    firestore_database: str = "sandbox"
    kv_collection: str = "deck_kv"
    internal_api_key: str = "local-dev-secret"
    ops_key: str = "local-ops-key"
    cooldown_seconds: float = 30
    intro_delay_seconds: float = 3
    narrator_name: str = DEFAULT_NARRATOR
    draw_reaction: str = "🎴"
    intro_on_start: str = "auto"
    log_level: str = "INFO"

    @property
    def cooldown_ms(self) -> int:
        return int(self.cooldown_seconds * 1000)


def load_settings() -> Settings:
    intro_mode = os.getenv("INTRO_ON_START", "auto").lower()
    if intro_mode not in INTRO_MODES:
        logging.warning(f"Config: Unknown INTRO_ON_START '{intro_mode}', using 'auto'")
        intro_mode = "auto"

    return Settings(
        channel_id=os.getenv("DECK_CHANNEL_ID", ""),
        session_file=os.getenv("SESSION_FILE", ".rootmessage"),
        kv_backend=os.getenv("KV_BACKEND", "firestore").lower(),
        firestore_database=os.getenv("FIRESTORE_DATABASE", "sandbox"),
        kv_collection=os.getenv("KV_COLLECTION", "deck_kv"),
        internal_api_key=os.getenv("INTERNAL_API_KEY", "local-dev-secret"),
        ops_key=os.getenv("OPS_KEY", "local-ops-key"),
        cooldown_seconds=float(os.getenv("COOLDOWN_SECONDS", "30")),
        intro_delay_seconds=float(os.getenv("INTRO_DELAY_SECONDS", "3")),
        narrator_name=os.getenv("NARRATOR_NAME", DEFAULT_NARRATOR),
        draw_reaction=os.getenv("DRAW_REACTION", "🎴"),
        intro_on_start=intro_mode,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def get_project_id() -> Optional[str]:
    project_id = os.environ.get("GOOGLE_CLOUD_PROJECT", os.environ.get("GCP_PROJECT_ID"))
    if project_id:
        return project_id
    try:
        _, project_id = google.auth.default()
    except google.auth.exceptions.DefaultCredentialsError as e:
        logging.warning(f"Config: No default GCP credentials: {e}")
        return None
    return project_id


def get_discord_token() -> Optional[str]:
    """
    Fetches the Discord Token.
    1. Checks Env Var (Local Dev)
    2. Checks Secret Manager (Prod)
    """
    if os.getenv("DISCORD_TOKEN"):
        return os.getenv("DISCORD_TOKEN")

    project_id = get_project_id()
    if not project_id:
        return None

    secret_name = os.getenv("DISCORD_SECRET_NAME", "thread-deck-discord-api")
    try:
        client = secretmanager.SecretManagerServiceClient()
        name = f"projects/{project_id}/secrets/{secret_name}/versions/latest"
        response = client.access_secret_version(request={"name": name})
        return response.payload.data.decode("UTF-8")
    except Exception as e:
        logging.error(f"Failed to retrieve Discord token: {e}")
        return None
