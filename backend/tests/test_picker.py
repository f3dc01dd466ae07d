"""Scene prompt picker navigation and projection."""

import pytest

from storyspark.models import IMAGE_AXIS, VIDEO_AXIS, PromptVersion, Scene
from storyspark.picker import ScenePromptPicker


def _scene(number):
    versions = lambda axis: tuple(
        PromptVersion(chinese_prompt=f"{axis}{number}{tag}", english_prompt=f"{axis} {number} {tag}") for tag in "AB"
    )
    return Scene(
        id=number,
        scene_number=number,
        story_content=f"story {number}",
        image_prompts=versions("image"),
        image_to_video_prompts=versions("video"),
    )


def test_navigation_is_clamped():
    picker = ScenePromptPicker([_scene(1), _scene(2)])

    assert picker.previous() == 0
    assert picker.next() == 1
    assert picker.next() == 1
    assert picker.is_last
    assert picker.go_to(-3) == 1
    assert picker.progress == 1.0


def test_select_only_changes_index():
    scene = _scene(1)
    prompts_before = (scene.image_prompts, scene.image_to_video_prompts)
    picker = ScenePromptPicker([scene])

    picker.select(IMAGE_AXIS, 1)
    picker.select(VIDEO_AXIS, 1)
    picker.select(VIDEO_AXIS, 0)

    assert scene.selected_image_prompt_index == 1
    assert scene.selected_video_prompt_index == 0
    assert (scene.image_prompts, scene.image_to_video_prompts) == prompts_before
    with pytest.raises(ValueError):
        picker.select(IMAGE_AXIS, 2)
    assert scene.selected_image_prompt_index == 1


def test_finish_projects_selected_prompts():
    picker = ScenePromptPicker([_scene(1), _scene(2)])
    picker.select(IMAGE_AXIS, 1)
    with pytest.raises(RuntimeError):
        picker.finish()
    picker.next()
    picker.select(VIDEO_AXIS, 1)

    selection = picker.finish()

    assert selection.image_prompts == ["image 1 B", "image 2 A"]
    assert selection.video_prompts == ["video 1 A", "video 2 B"]
    assert selection.story_texts == ["story 1", "story 2"]
    entries = picker.overview_entries()
    assert [entry.scene_number for entry in entries] == [1, 2]
    assert entries[1].video_prompt == "video 2 B"


def test_empty_picker_is_a_dead_end():
    picker = ScenePromptPicker([])
    assert picker.is_empty
    assert not picker.is_last
    assert picker.next() == 0
    with pytest.raises(IndexError):
        picker.current
    with pytest.raises(RuntimeError):
        picker.finish()
