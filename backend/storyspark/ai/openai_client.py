"""Central OpenAI client wrapper for the three generation calls StorySpark makes."""

from __future__ import annotations

import base64
import json
import logging
from typing import Any, Dict, List, Sequence

from openai import OpenAI

from ..errors import GenerationError, MissingCredentialError

DEFAULT_CHAT_MODEL = "gpt-4.1-mini"
DEFAULT_IMAGE_MODEL = "gpt-image-1"

logger = logging.getLogger(__name__)


def extract_content(resp: Any) -> str:
    """Pull the assistant text out of a chat completion (SDK object or dict)."""

    def _normalize(content: Any) -> str:
        if content is None:
            return ""
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            parts: list[str] = []
            for item in content:
                if isinstance(item, dict):
                    text_value = item.get("text") or item.get("content")
                else:
                    text_value = getattr(item, "text", None) or getattr(item, "content", None)
                if isinstance(text_value, str):
                    parts.append(text_value)
            return "\n".join(parts).strip()
        return str(content)

    if isinstance(resp, dict):
        try:
            return _normalize(resp["choices"][0]["message"]["content"])
        except (KeyError, IndexError, TypeError) as exc:
            raise GenerationError(f"Malformed completion payload: {exc}") from exc

    try:
        return _normalize(resp.choices[0].message.content)
    except (AttributeError, IndexError) as exc:
        raise GenerationError(f"Malformed completion payload: {exc}") from exc


class OpenAIClient:
    """Thin wrapper around an OpenAI-compatible provider.

    Every call raises ``MissingCredentialError`` when no API key
    is configured, so the UI can show a setup message instead of output.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        default_chat_model: str | None = None,
        default_image_model: str | None = None,
    ):
        self.api_key = self._clean(api_key)
        self.base_url = self._clean(base_url)
        self.default_chat_model = self._clean(default_chat_model) or DEFAULT_CHAT_MODEL
        self.default_image_model = self._clean(default_image_model) or DEFAULT_IMAGE_MODEL
        self._client: OpenAI | None = None

    @staticmethod
    def _clean(value: str | None) -> str | None:
        if value is None:
            return None
        stripped = value.strip()
        return stripped or None

    @property
    def configured(self) -> bool:
        return self.api_key is not None

    @property
    def client(self) -> OpenAI:
        if not self.api_key:
            raise MissingCredentialError("OPENAI_API_KEY is not set; please configure your .env")
        if self._client is None:
            self._client = OpenAI(api_key=self.api_key, base_url=self.base_url)
        return self._client

    def chat(self, messages: List[Dict[str, Any]], model: str | None = None, **kwargs) -> Any:
        """Call the provider chat endpoint."""
        chosen_model = model or self.default_chat_model
        return self.client.chat.completions.create(messages=messages, model=chosen_model, **kwargs)

    def complete_text(self, prompt: str, model: str | None = None) -> str:
        """Single-turn text completion returning the stripped reply."""
        resp = self.chat([{"role": "user", "content": prompt}], model=model)
        return extract_content(resp).strip()

    def generate_structured(
        self,
        system_prompt: str,
        user_content: str | List[Dict[str, Any]],
        schema: Dict[str, Any],
        schema_name: str,
        model: str | None = None,
    ) -> Any:
        """Ask for a JSON document constrained by ``schema`` and return it parsed."""
        resp = self.chat(
            [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content},
            ],
            model=model,
            response_format={
                "type": "json_schema",
                "json_schema": {"name": schema_name, "schema": schema, "strict": True},
            },
        )
        content = extract_content(resp).strip()
        try:
            return json.loads(content)
        except json.JSONDecodeError as exc:
            raise GenerationError(f"Structured response is not valid JSON: {exc}") from exc

    def edit_image(
        self,
        images: Sequence[bytes],
        prompt: str,
        model: str | None = None,
    ) -> bytes | None:
        """Send PNG images plus an instruction to the image-edit endpoint.

        Returns the first image's bytes, or ``None`` when the provider answered
        without one.
        """
        if not images:
            raise ValueError("edit_image needs at least one input image")
        files = [(f"input_{idx}.png", data, "image/png") for idx, data in enumerate(images)]
        resp = self.client.images.edit(
            model=model or self.default_image_model,
            image=files if len(files) > 1 else files[0],
            prompt=prompt,
        )
        data = getattr(resp, "data", None) or []
        for item in data:
            b64 = getattr(item, "b64_json", None)
            if b64:
                return base64.b64decode(b64)
        logger.warning("Image edit returned no inline image (model=%s)", model or self.default_image_model)
        return None
