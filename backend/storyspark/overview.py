"""Scene overview: per-scene candidate image generation, selection and download.

Each candidate pair is two independent image-edit calls run side by side on a
small thread pool; both are awaited before anything is written. Across scenes
only one pair is ever outstanding.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from . import prompts
from .ai.openai_client import OpenAIClient
from .errors import GenerationError, InputValidationError, MissingCredentialError
from .images import download_payloads, to_data_url, to_png_bytes, zip_bundle
from .models import GeneratedImageSet, SceneOverviewEntry

logger = logging.getLogger(__name__)

CANDIDATES_PER_SCENE = 2


def _generate_one(ai_client: OpenAIClient, inputs: Sequence[bytes], instruction: str) -> Optional[str]:
    try:
        data = ai_client.edit_image(inputs, instruction)
    except Exception:
        logger.exception("Image generation call failed")
        return None
    return to_data_url(data) if data else None


def request_candidates(
    ai_client: OpenAIClient,
    instruction: str,
    images: Sequence[str],
) -> List[str]:
    """Issue two parallel edit calls and return the usable results (0-2)."""
    if not ai_client.configured:
        raise MissingCredentialError("OPENAI_API_KEY is not set")
    inputs = [to_png_bytes(image) for image in images]
    with ThreadPoolExecutor(max_workers=CANDIDATES_PER_SCENE) as pool:
        futures = [pool.submit(_generate_one, ai_client, inputs, instruction) for _ in range(CANDIDATES_PER_SCENE)]
        results = [future.result() for future in futures]
    return [result for result in results if result]


def request_scene_candidates(
    ai_client: OpenAIClient,
    prompt: str,
    reference_image: str,
    previous_image: Optional[str] = None,
) -> List[str]:
    instruction = prompts.scene_image_instruction(prompt, with_previous=previous_image is not None)
    images = [reference_image] if previous_image is None else [reference_image, previous_image]
    return request_candidates(ai_client, instruction, images)


class ImageOrchestrator:
    """Overview-step state: candidates, selections and loading flags per scene."""

    def __init__(
        self,
        ai_client: OpenAIClient,
        scenes: List[SceneOverviewEntry],
        reference_image: Optional[str],
        images: GeneratedImageSet | None = None,
    ):
        self.ai_client = ai_client
        self.scenes = scenes
        self._reference_image = reference_image
        self.images = images or GeneratedImageSet()
        self.loading: set[int] = set()
        self.generating_all = False
        self.sequential: Optional[SequentialRun] = None

    @property
    def reference_image(self) -> Optional[str]:
        return self._reference_image

    def set_reference_image(self, data_url: str) -> None:
        """Swap the style reference; every generated and selected image is dropped."""
        self._reference_image = data_url
        if self.sequential is not None:
            self.sequential.cancel()
        self.images.clear()
        logger.info("Reference image replaced, cleared generated images")

    def scene(self, scene_number: int) -> SceneOverviewEntry:
        for entry in self.scenes:
            if entry.scene_number == scene_number:
                return entry
        raise KeyError(scene_number)

    def require_reference(self) -> str:
        if not self._reference_image:
            raise InputValidationError("reference image missing", message_key="errorNoReferenceImage")
        return self._reference_image

    def generate_scene(self, scene_number: int, previous_image: Optional[str] = None) -> List[str]:
        """(Re)generate candidates for one scene.

        The prior selection and candidates are cleared while the calls run and
        put back untouched if both calls fail.
        """
        reference = self.require_reference()
        entry = self.scene(scene_number)
        before = self.images.snapshot(scene_number)
        self.images.clear_scene(scene_number)
        self.loading.add(scene_number)
        try:
            results = request_scene_candidates(self.ai_client, entry.image_prompt, reference, previous_image)
        except Exception:
            self.images.restore(scene_number, before)
            raise
        finally:
            self.loading.discard(scene_number)
        if not results:
            self.images.restore(scene_number, before)
            raise GenerationError(
                f"Image generation returned no images for scene {scene_number}",
                message_key="errorImageGeneration",
            )
        self.images.set_candidates(scene_number, results)
        logger.info("Scene %d: %d candidate(s) generated", scene_number, len(results))
        return results

    def generate_all(self, on_scene: Callable[[SceneOverviewEntry], None] | None = None) -> List[int]:
        """Generate every scene without candidates, one scene at a time.

        Returns the scene numbers that failed; a failed scene does not stop the walk.
        """
        failed: List[int] = []
        self.generating_all = True
        try:
            for entry in self.scenes:
                if self.images.candidates.get(entry.scene_number):
                    continue
                if on_scene is not None:
                    on_scene(entry)
                try:
                    self.generate_scene(entry.scene_number)
                except GenerationError:
                    logger.error("Scene %d failed during generate all", entry.scene_number)
                    failed.append(entry.scene_number)
        finally:
            self.generating_all = False
        return failed

    def select(self, scene_number: int, image: str) -> None:
        self.images.select(scene_number, image)

    @property
    def all_generated(self) -> bool:
        return all(self.images.candidates.get(entry.scene_number) for entry in self.scenes)

    @property
    def all_selected(self) -> bool:
        numbers = {entry.scene_number for entry in self.scenes}
        return bool(numbers) and set(self.images.selected) == numbers

    def download_files(self) -> List[Tuple[str, bytes, str]]:
        if not self.all_selected:
            raise InputValidationError("not every scene has a selected image", message_key="selectAnImage")
        return download_payloads(self.images.selected)

    def download_bundle(self) -> bytes:
        return zip_bundle(self.download_files())

    def start_sequential(self) -> "SequentialRun":
        self.require_reference()
        if not self.ai_client.configured:
            raise MissingCredentialError("OPENAI_API_KEY is not set")
        self.sequential = SequentialRun(self)
        self.sequential.start()
        return self.sequential


class SequentialRun:
    """Blocking walk over scenes: the next scene waits for a confirmed pick.

    The confirmed pick of scene K is the continuity image for scene K+1.

    A response that lands after ``cancel`` is dropped rather than applied, so a
    cancelled run can never repopulate candidates the user already discarded.
    """

    def __init__(self, orchestrator: ImageOrchestrator):
        self.orchestrator = orchestrator
        self.index = 0
        self.candidates: List[str] = []
        self.chosen: Optional[str] = None
        self.active = False
        self.loading = False
        self._run_id = 0

    @property
    def scene(self) -> SceneOverviewEntry:
        return self.orchestrator.scenes[self.index]

    @property
    def is_last(self) -> bool:
        return self.index == len(self.orchestrator.scenes) - 1

    def progress(self) -> Dict[str, int]:
        return {"current": self.index + 1, "total": len(self.orchestrator.scenes)}

    def start(self) -> List[str]:
        if not self.orchestrator.scenes:
            raise InputValidationError("no scenes to generate", message_key="errorNoScenes")
        self.orchestrator.images.clear()
        self.index = 0
        self.chosen = None
        self.candidates = []
        self.active = True
        return self._generate_current()

    def _previous_image(self) -> Optional[str]:
        if self.index == 0:
            return None
        previous = self.orchestrator.scenes[self.index - 1]
        return self.orchestrator.images.selected.get(previous.scene_number)

    def _generate_current(self) -> List[str]:
        run_id = self._run_id
        self.loading = True
        try:
            results = request_scene_candidates(
                self.orchestrator.ai_client,
                self.scene.image_prompt,
                self.orchestrator.require_reference(),
                self._previous_image(),
            )
        finally:
            self.loading = False
        if run_id != self._run_id or not self.active:
            logger.info("Discarding results for a cancelled sequential run")
            return []
        self.candidates = results
        if not results:
            raise GenerationError(
                f"Image generation returned no images for scene {self.scene.scene_number}",
                message_key="errorImageGeneration",
            )
        return results

    def choose(self, image: str) -> None:
        if image not in self.candidates:
            raise ValueError("image is not one of the current candidates")
        self.chosen = image

    def regenerate(self) -> List[str]:
        if not self.active:
            raise RuntimeError("sequential run is not active")
        self.chosen = None
        self.candidates = []
        return self._generate_current()

    def confirm_and_next(self) -> List[str]:
        """Record the pick; generate the next scene or finish on the last one."""
        if not self.active:
            raise RuntimeError("sequential run is not active")
        if self.chosen is None:
            raise InputValidationError("no candidate chosen", message_key="selectAnImage")
        self.orchestrator.images.narrow(self.scene.scene_number, self.chosen)
        if self.is_last:
            self.active = False
            self.candidates = []
            self.chosen = None
            return []
        self.index += 1
        self.chosen = None
        self.candidates = []
        return self._generate_current()

    def cancel(self) -> None:
        self._run_id += 1
        self.active = False
        self.loading = False
        self.candidates = []
        self.chosen = None
        self.orchestrator.images.clear()
