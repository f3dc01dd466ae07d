"""Idea intake: story configuration form, brainstorm assist and scene generation."""

from __future__ import annotations

import itertools
import logging
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional, Tuple

from . import prompts
from .ai.openai_client import OpenAIClient
from .errors import GenerationError, InputValidationError, MissingCredentialError
from .images import validate_upload
from .models import MISSING_PROMPT, PromptVersion, Scene, StoryConfiguration

logger = logging.getLogger(__name__)

SCENE_COUNT_RANGES: Dict[Tuple[str, str], Tuple[int, int]] = {
    ("story", "10s"): (4, 6),
    ("story", "30s"): (8, 12),
    ("story", "60s"): (15, 20),
}
LOOP_SCENE_COUNT = (2, 4)

DURATION_ESTIMATES_MS = {"10s": 15000, "30s": 25000, "60s": 35000}
PROGRESS_INTERVAL_MS = 100
PROGRESS_CAP = 95.0

_scene_ids = itertools.count(1)


def scene_count_range(config: StoryConfiguration) -> Tuple[int, int]:
    if config.video_type == "loop":
        return LOOP_SCENE_COUNT
    return SCENE_COUNT_RANGES[(config.video_type, config.video_length)]


def estimated_duration_ms(config: StoryConfiguration) -> int:
    """Loop videos always use the shortest bucket; story videos scale with length."""
    if config.video_type == "loop":
        return DURATION_ESTIMATES_MS["10s"]
    return DURATION_ESTIMATES_MS[config.video_length]


class ProgressEstimator:
    """Fabricated progress for the scene request: fixed-rate ticks capped at 95%."""

    def __init__(self, total_ms: int, interval_ms: int = PROGRESS_INTERVAL_MS):
        self.interval_ms = interval_ms
        self.increment = PROGRESS_CAP / (total_ms / interval_ms)
        self.value = 0.0

    @classmethod
    def for_config(cls, config: StoryConfiguration) -> "ProgressEstimator":
        return cls(estimated_duration_ms(config))

    def tick(self) -> float:
        self.value = min(PROGRESS_CAP, self.value + self.increment)
        return self.value

    def complete(self) -> float:
        self.value = 100.0
        return self.value


def _prompt_version(raw: Any) -> PromptVersion:
    if isinstance(raw, dict):
        chinese = raw.get("chinese_prompt")
        english = raw.get("english_prompt")
        if isinstance(chinese, str) and isinstance(english, str):
            return PromptVersion(chinese_prompt=chinese, english_prompt=english)
    return MISSING_PROMPT


def _prompt_pair(raw: Any) -> Tuple[PromptVersion, PromptVersion]:
    items = raw if isinstance(raw, list) else []
    first = _prompt_version(items[0]) if len(items) > 0 else MISSING_PROMPT
    second = _prompt_version(items[1]) if len(items) > 1 else MISSING_PROMPT
    return first, second


def parse_scenes(payload: Any, max_scenes: Optional[int] = None) -> List[Scene]:
    """Build scenes from a structured response.

    Accepts either ``{"scenes": [...]}`` or a bare list. Missing prompt
    versions become a visible placeholder instead of dropping the scene.
    """
    if isinstance(payload, dict):
        payload = payload.get("scenes")
    if not isinstance(payload, list):
        raise GenerationError("structured response has no scene list", message_key="errorPromptGeneration")

    if max_scenes is not None and len(payload) > max_scenes:
        logger.warning("Model returned %d scenes, keeping the first %d", len(payload), max_scenes)
        payload = payload[:max_scenes]

    scenes: List[Scene] = []
    for index, raw in enumerate(payload):
        if not isinstance(raw, dict):
            raise GenerationError(f"scene {index} is not an object", message_key="errorPromptGeneration")
        scene_number = raw.get("scene_number")
        if not isinstance(scene_number, int) or isinstance(scene_number, bool):
            scene_number = index + 1
        scenes.append(
            Scene(
                id=next(_scene_ids),
                scene_number=scene_number,
                story_content=str(raw.get("story_content") or ""),
                image_prompts=_prompt_pair(raw.get("image_prompts")),
                image_to_video_prompts=_prompt_pair(raw.get("image_to_video_prompts")),
            )
        )
    return scenes


class IdeaIntake:
    """Form state for the first wizard step."""

    def __init__(self, ai_client: OpenAIClient, config: StoryConfiguration | None = None):
        self.ai_client = ai_client
        self.config = config or StoryConfiguration()

    def update(self, **fields: Any) -> StoryConfiguration:
        """Apply form edits; invalid enum values raise ``ValueError`` and change nothing."""
        self.config = replace(self.config, **fields)
        return self.config

    def attach_reference_image(self, data: bytes, mime_type: str | None) -> StoryConfiguration:
        data_url = validate_upload(data, mime_type)
        self.config = self.config.with_reference_image(data_url)
        logger.info("Reference image attached (%s, %d bytes)", mime_type, len(data))
        return self.config

    def brainstorm(self) -> str:
        """Rewrite the current idea, or invent one when it is empty."""
        idea = self.config.idea.strip()
        template = prompts.BRAINSTORM_REWRITE_PROMPT if idea else prompts.BRAINSTORM_NEW_PROMPT
        prompt = template.format(story_style=self.config.story_style, idea=idea)
        try:
            new_idea = self.ai_client.complete_text(prompt)
        except MissingCredentialError:
            raise
        except Exception as exc:
            logger.exception("Brainstorming failed")
            raise GenerationError(str(exc), message_key="brainstormError") from exc
        if not new_idea:
            raise GenerationError("empty brainstorm reply", message_key="brainstormError")
        self.config = replace(self.config, idea=new_idea)
        return new_idea

    def validate(self) -> None:
        if not self.config.idea.strip():
            raise InputValidationError("idea is empty", message_key="errorStoryDescription")
        if not self.config.has_reference_image or not self.config.reference_image:
            raise InputValidationError("reference image missing", message_key="errorNoReferenceImage")

    def build_user_content(self, language: str = "zh") -> List[Dict[str, Any]]:
        config = self.config
        min_scenes, max_scenes = scene_count_range(config)
        has_reference = bool(config.reference_image)
        text = prompts.SCENES_USER_PROMPT.format(
            workflow=prompts.WORKFLOW_NAMES[config.video_type],
            idea=config.idea.strip(),
            story_style=config.story_style,
            image_style=config.image_style,
            video_length=config.video_length,
            reference_line=prompts.REFERENCE_LINE if has_reference else "",
            min_scenes=min_scenes,
            max_scenes=max_scenes,
            story_language=prompts.STORY_LANGUAGES.get(language, prompts.STORY_LANGUAGES["zh"]),
            reference_instruction=prompts.REFERENCE_INSTRUCTION if has_reference else "",
        )
        content: List[Dict[str, Any]] = [{"type": "text", "text": text}]
        if has_reference:
            content.append({"type": "image_url", "image_url": {"url": config.reference_image}})
        return content

    def submit(
        self,
        language: str = "zh",
        on_progress: Callable[[float], None] | None = None,
    ) -> List[Scene]:
        """Validate, request scenes and return them.

        ``on_progress`` only receives the final 100% here; callers that want
        the ticking estimate drive a ``ProgressEstimator`` themselves while
        this runs on a worker thread.
        """
        self.validate()
        _, max_scenes = scene_count_range(self.config)
        logger.info(
            "Requesting scenes (type=%s, length=%s, style=%s)",
            self.config.video_type,
            self.config.video_length,
            self.config.story_style,
        )
        try:
            payload = self.ai_client.generate_structured(
                prompts.SCENES_SYSTEM_PROMPT,
                self.build_user_content(language),
                prompts.SCENES_SCHEMA,
                "story_scenes",
            )
            scenes = parse_scenes(payload, max_scenes=max_scenes)
        except MissingCredentialError:
            raise
        except Exception as exc:
            logger.exception("Scene generation failed")
            raise GenerationError(str(exc), message_key="errorPromptGeneration") from exc
        if on_progress is not None:
            on_progress(100.0)
        logger.info("Generated %d scenes", len(scenes))
        return scenes
