"""Root wizard controller: idea -> generator -> overview, with an edit overlay."""

from __future__ import annotations

import logging
from typing import List, Optional

from .ai.openai_client import OpenAIClient
from .images import validate_upload
from .intake import IdeaIntake
from .mask_editor import MaskEditor
from .models import Scene, StoryConfiguration
from .overview import ImageOrchestrator
from .picker import ScenePromptPicker
from .translations import DEFAULT_LANGUAGE, LANGUAGES, translate

logger = logging.getLogger(__name__)

STEP_IDEA = "idea"
STEP_GENERATOR = "generator"
STEP_OVERVIEW = "overview"


class WizardController:
    def __init__(self, ai_client: OpenAIClient, language: str = DEFAULT_LANGUAGE):
        self.ai_client = ai_client
        self.language = language if language in LANGUAGES else DEFAULT_LANGUAGE
        self._step = STEP_IDEA
        self.intake = IdeaIntake(ai_client)
        self.picker: Optional[ScenePromptPicker] = None
        self.orchestrator: Optional[ImageOrchestrator] = None
        self.editor: Optional[MaskEditor] = None

    @property
    def config(self) -> StoryConfiguration:
        return self.intake.config

    @property
    def step(self) -> str:
        """Current step; a step whose data is missing falls back to the idea form."""
        if self._step == STEP_GENERATOR and self.picker is None:
            return STEP_IDEA
        if self._step == STEP_OVERVIEW and self.orchestrator is None:
            return STEP_IDEA
        return self._step

    @property
    def editing(self) -> bool:
        return self.editor is not None and self.step == STEP_OVERVIEW

    def t(self, key: str, **params: object) -> str:
        return translate(self.language, key, **params)

    def toggle_language(self) -> str:
        self.language = "en" if self.language == "zh" else "zh"
        return self.language

    def submit_idea(self, on_progress=None) -> List[Scene]:
        scenes = self.intake.submit(self.language, on_progress=on_progress)
        self.accept_scenes(scenes)
        return scenes

    def accept_scenes(self, scenes: List[Scene]) -> None:
        self.picker = ScenePromptPicker(scenes)
        self.orchestrator = None
        self._step = STEP_GENERATOR

    def back_to_idea(self) -> None:
        self._step = STEP_IDEA

    def finish_selection(self) -> None:
        if self.picker is None:
            raise RuntimeError("no scenes have been generated")
        entries = self.picker.overview_entries()
        self.orchestrator = ImageOrchestrator(self.ai_client, entries, self.config.reference_image)
        self._step = STEP_OVERVIEW
        logger.info("Prompt selection finished for %d scenes", len(entries))

    def new_story(self) -> None:
        self.intake = IdeaIntake(self.ai_client)
        self.picker = None
        self.orchestrator = None
        self.editor = None
        self._step = STEP_IDEA

    def change_reference_image(self, data_url: str) -> None:
        """Swap the reference everywhere; generated images are invalidated."""
        self.intake.config = self.config.with_reference_image(data_url)
        if self.orchestrator is not None:
            self.orchestrator.set_reference_image(data_url)

    def upload_reference_image(self, data: bytes, mime_type: str | None) -> None:
        self.change_reference_image(validate_upload(data, mime_type))

    def start_edit(self) -> MaskEditor:
        if not self.config.reference_image:
            raise RuntimeError("there is no reference image to edit")
        self.editor = MaskEditor(self.config.reference_image)
        return self.editor

    def finish_edit(self, result: Optional[str]) -> None:
        """Close the editor; ``None`` means the edit was cancelled."""
        self.editor = None
        if result is not None:
            self.change_reference_image(result)
