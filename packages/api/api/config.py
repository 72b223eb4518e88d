"""Application settings loaded once from the environment."""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from chatbot.entitlements import DEFAULT_ENTITLEMENTS, Entitlements
from chatbot.log import get_logger
from chatbot.models import User
from chatbot.WorkflowClient import WorkflowConfig

logger = get_logger(__name__)


class Settings(BaseModel):
    """Explicit configuration handed to the app at startup.

    Handlers read these values from ``app.state.settings``; nothing below
    the lifespan touches ``os.environ``.
    """

    db_path: str = "./data/chat.db"
    webhook_url: str | None = None
    webhook_token: str | None = None
    workflow_timeout: float = 60.0
    api_keys: dict[str, User] = Field(default_factory=dict)
    entitlements: dict[str, Entitlements] = Field(
        default_factory=lambda: dict(DEFAULT_ENTITLEMENTS)
    )
    log_level: str = "INFO"

    @property
    def workflow(self) -> WorkflowConfig:
        return WorkflowConfig(
            url=self.webhook_url or None,
            token=self.webhook_token or None,
            timeout=self.workflow_timeout,
        )


def parse_api_keys(raw: str) -> dict[str, User]:
    """Parse ``key=user_id[:type]`` entries separated by commas.

    A bare ``key`` maps to a regular user whose id is the key itself.
    """
    keys: dict[str, User] = {}
    for entry in raw.split(","):
        entry = entry.strip()
        if not entry:
            continue
        key, sep, identity = entry.partition("=")
        key = key.strip()
        if not sep:
            keys[key] = User(id=key)
            continue
        user_id, _, user_type = identity.strip().partition(":")
        if not key or not user_id:
            logger.warning("api_key_entry_invalid", entry=entry)
            continue
        keys[key] = User(id=user_id, type=user_type or "regular")
    return keys


def load_settings() -> Settings:
    """Build settings from the process environment (and ``.env`` if present)."""
    load_dotenv()

    entitlements = dict(DEFAULT_ENTITLEMENTS)
    for user_type in entitlements:
        override = os.environ.get(f"MAX_MESSAGES_PER_DAY_{user_type.upper()}")
        if override:
            entitlements[user_type] = Entitlements(max_messages_per_day=int(override))

    return Settings(
        db_path=os.environ.get("DB_PATH", "./data/chat.db"),
        webhook_url=os.environ.get("N8N_WEBHOOK_URL"),
        webhook_token=os.environ.get("N8N_WEBHOOK_TOKEN"),
        workflow_timeout=float(os.environ.get("WORKFLOW_TIMEOUT_SECONDS", "60")),
        api_keys=parse_api_keys(os.environ.get("API_KEYS", "")),
        entitlements=entitlements,
        log_level=os.environ.get("LOG_LEVEL", "INFO"),
    )
