"""Scene prompt picker: page through scenes and choose one variant per axis."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from .models import Scene, SceneOverviewEntry


@dataclass(frozen=True)
class PromptSelection:
    image_prompts: List[str]
    video_prompts: List[str]
    story_texts: List[str]

    def to_overview(self, scene_numbers: List[int]) -> List[SceneOverviewEntry]:
        return [
            SceneOverviewEntry(
                scene_number=number,
                image_prompt=image_prompt,
                video_prompt=video_prompt,
                story_content=story,
            )
            for number, image_prompt, video_prompt, story in zip(
                scene_numbers, self.image_prompts, self.video_prompts, self.story_texts
            )
        ]


class ScenePromptPicker:
    def __init__(self, scenes: List[Scene]):
        self.scenes = scenes
        self.index = 0

    @property
    def is_empty(self) -> bool:
        return not self.scenes

    @property
    def current(self) -> Scene:
        if self.is_empty:
            raise IndexError("no scenes to pick from")
        return self.scenes[self.index]

    @property
    def is_last(self) -> bool:
        return not self.is_empty and self.index == len(self.scenes) - 1

    @property
    def progress(self) -> float:
        if self.is_empty:
            return 0.0
        return (self.index + 1) / len(self.scenes)

    def go_to(self, index: int) -> int:
        """Move to ``index``; out-of-range targets leave the position alone."""
        if 0 <= index < len(self.scenes):
            self.index = index
        return self.index

    def next(self) -> int:
        return self.go_to(self.index + 1)

    def previous(self) -> int:
        return self.go_to(self.index - 1)

    def select(self, axis: str, variant: int) -> None:
        self.current.select(axis, variant)

    def finish(self) -> PromptSelection:
        if not self.is_last:
            raise RuntimeError("finish is only available on the last scene")
        return PromptSelection(
            image_prompts=[scene.selected_image_prompt.english_prompt for scene in self.scenes],
            video_prompts=[scene.selected_video_prompt.english_prompt for scene in self.scenes],
            story_texts=[scene.story_content for scene in self.scenes],
        )

    def overview_entries(self) -> List[SceneOverviewEntry]:
        selection = self.finish()
        # Overview keys scenes by position so duplicate model numbering cannot collide.
        return selection.to_overview(list(range(1, len(self.scenes) + 1)))
