"""Wizard data model: story configuration, scenes and generated image sets."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Tuple

STORY_STYLES = ["Fantasy", "Sci-Fi", "Realism", "Cyberpunk", "Cute Style"]
IMAGE_STYLES = [
    "Default", "8-Bit", "Botanical Art", "Comic Book", "Cubism", "Cyberpunk",
    "Exploded View", "Glitch Art", "Isometric", "Knolling", "Low Poly", "Mosaic",
    "Oil Painting", "Pixel Art", "Playful 3D Art", "Pop Art", "Photorealism",
    "Surrealism", "Vaporwave", "Vector Art", "Watercolor",
]
VIDEO_TYPES = ["loop", "story"]
VIDEO_LENGTHS = ["10s", "30s", "60s"]

IMAGE_AXIS = "image"
VIDEO_AXIS = "video"


@dataclass
class StoryConfiguration:
    idea: str = ""
    story_style: str = STORY_STYLES[0]
    image_style: str = IMAGE_STYLES[0]
    video_type: str = "loop"
    video_length: str = "10s"
    reference_image: Optional[str] = None
    has_reference_image: bool = False

    def __post_init__(self) -> None:
        _check_choice("story_style", self.story_style, STORY_STYLES)
        _check_choice("image_style", self.image_style, IMAGE_STYLES)
        _check_choice("video_type", self.video_type, VIDEO_TYPES)
        _check_choice("video_length", self.video_length, VIDEO_LENGTHS)

    def with_reference_image(self, data_url: str) -> "StoryConfiguration":
        return replace(self, reference_image=data_url, has_reference_image=True)


def _check_choice(name: str, value: str, choices: List[str]) -> None:
    if value not in choices:
        raise ValueError(f"{name} must be one of {choices}, got {value!r}")


@dataclass(frozen=True)
class PromptVersion:
    chinese_prompt: str
    english_prompt: str


MISSING_PROMPT = PromptVersion(chinese_prompt="錯誤: 缺少提示", english_prompt="Error: Missing prompt")


@dataclass
class Scene:
    id: int
    scene_number: int
    story_content: str
    image_prompts: Tuple[PromptVersion, PromptVersion]
    image_to_video_prompts: Tuple[PromptVersion, PromptVersion]
    selected_image_prompt_index: int = 0
    selected_video_prompt_index: int = 0

    def __post_init__(self) -> None:
        if len(self.image_prompts) != 2 or len(self.image_to_video_prompts) != 2:
            raise ValueError("a scene needs exactly two prompt versions per axis")
        self.image_prompts = tuple(self.image_prompts)
        self.image_to_video_prompts = tuple(self.image_to_video_prompts)
        self.select(IMAGE_AXIS, self.selected_image_prompt_index)
        self.select(VIDEO_AXIS, self.selected_video_prompt_index)

    def select(self, axis: str, index: int) -> None:
        """Record which variant is chosen on ``axis``; prompt text never changes."""
        if index not in (0, 1):
            raise ValueError(f"selection index must be 0 or 1, got {index!r}")
        if axis == IMAGE_AXIS:
            self.selected_image_prompt_index = index
        elif axis == VIDEO_AXIS:
            self.selected_video_prompt_index = index
        else:
            raise ValueError(f"unknown prompt axis {axis!r}")

    @property
    def selected_image_prompt(self) -> PromptVersion:
        return self.image_prompts[self.selected_image_prompt_index]

    @property
    def selected_video_prompt(self) -> PromptVersion:
        return self.image_to_video_prompts[self.selected_video_prompt_index]


@dataclass(frozen=True)
class SceneOverviewEntry:
    scene_number: int
    image_prompt: str
    video_prompt: str
    story_content: str = ""


@dataclass
class GeneratedImageSet:
    """Candidate and selected images per scene number (data URLs)."""

    candidates: Dict[int, List[str]] = field(default_factory=dict)
    selected: Dict[int, str] = field(default_factory=dict)

    def set_candidates(self, scene_number: int, images: List[str]) -> None:
        if not images or len(images) > 2:
            raise ValueError("a scene holds one or two candidate images")
        self.candidates[scene_number] = list(images)

    def select(self, scene_number: int, image: str) -> None:
        if image not in self.candidates.get(scene_number, []):
            raise ValueError(f"image is not a candidate for scene {scene_number}")
        self.selected[scene_number] = image

    def narrow(self, scene_number: int, image: str) -> None:
        """Keep only ``image`` as the scene's candidate and select it."""
        self.candidates[scene_number] = [image]
        self.selected[scene_number] = image

    def clear_scene(self, scene_number: int) -> None:
        self.candidates.pop(scene_number, None)
        self.selected.pop(scene_number, None)

    def clear(self) -> None:
        self.candidates.clear()
        self.selected.clear()

    def snapshot(self, scene_number: int) -> Tuple[Optional[List[str]], Optional[str]]:
        images = self.candidates.get(scene_number)
        return (list(images) if images is not None else None, self.selected.get(scene_number))

    def restore(self, scene_number: int, state: Tuple[Optional[List[str]], Optional[str]]) -> None:
        images, chosen = state
        self.clear_scene(scene_number)
        if images is not None:
            self.candidates[scene_number] = images
        if chosen is not None:
            self.selected[scene_number] = chosen
