"""Backend application factory.

Returns a small dependency container: settings, the AI client and a factory
for wizard controllers. The Streamlit layer keeps one controller per session.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

from dotenv import load_dotenv

from .ai.openai_client import DEFAULT_CHAT_MODEL, DEFAULT_IMAGE_MODEL, OpenAIClient
from .controller import WizardController
from .translations import DEFAULT_LANGUAGE, LANGUAGES

# Local `.env` values are visible when running via Streamlit/CLI; real env wins.
load_dotenv(Path(__file__).resolve().parents[2] / ".env", override=False)

logger = logging.getLogger(__name__)


def _read_env(name: str) -> str | None:
    value = os.getenv(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class Settings:
    api_key: str | None
    base_url: str | None
    chat_model: str
    image_model: str
    language: str
    log_level: str

    @classmethod
    def from_env(cls) -> "Settings":
        language = (_read_env("STORYSPARK_LANGUAGE") or DEFAULT_LANGUAGE).lower()
        return cls(
            api_key=_read_env("OPENAI_API_KEY"),
            base_url=_read_env("OPENAI_BASE_URL"),
            chat_model=_read_env("OPENAI_DEFAULT_CHAT_MODEL") or DEFAULT_CHAT_MODEL,
            image_model=_read_env("OPENAI_IMAGE_MODEL") or DEFAULT_IMAGE_MODEL,
            language=language if language in LANGUAGES else DEFAULT_LANGUAGE,
            log_level=(_read_env("STORYSPARK_LOG_LEVEL") or "INFO").upper(),
        )


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(settings: Settings | None = None) -> Dict[str, Any]:
    """Create the backend dependency container."""
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    ai_client = OpenAIClient(
        api_key=settings.api_key,
        base_url=settings.base_url,
        default_chat_model=settings.chat_model,
        default_image_model=settings.image_model,
    )
    if not ai_client.configured:
        logger.warning("OPENAI_API_KEY is not set; generation actions are disabled")

    def new_controller() -> WizardController:
        return WizardController(ai_client, language=settings.language)

    return {
        "settings": settings,
        "ai_client": ai_client,
        "new_controller": new_controller,
    }
