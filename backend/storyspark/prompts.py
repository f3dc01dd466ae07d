"""Prompt templates and the structured-output schema for scene generation."""

from __future__ import annotations

import textwrap

BRAINSTORM_REWRITE_PROMPT = textwrap.dedent(
    """
    You are a creative writer. Your task is to refine and enhance a story idea.
    Story Theme: {story_style}
    Original Idea: "{idea}"
    Rewrite the original idea in one paragraph to be more vivid, engaging, and imaginative, while staying true to the core concept and theme. Provide only the rewritten text, without any preamble or explanation.
    """
).strip()

BRAINSTORM_NEW_PROMPT = textwrap.dedent(
    """
    You are a creative writer. Your task is to brainstorm a new story idea.
    Story Theme: {story_style}
    Generate a short, one-paragraph story idea that fits the given theme. The idea should be imaginative and provide a good starting point for a visual story. Provide only the story text, without any preamble or explanation.
    """
).strip()

SCENES_SYSTEM_PROMPT = (
    "You are a creative writer and prompt engineer. Turn story ideas into structured scenes, "
    "scene narration and varied bilingual image prompts. Follow the requested JSON format strictly."
)

SCENES_USER_PROMPT = textwrap.dedent(
    """
    Write a story for a {workflow} based on the settings below.

    Settings:
    - Core story idea: "{idea}"
    - Overall story style: {story_style}
    - Image style: {image_style}
    - Video length: {video_length}
    {reference_line}

    Your task:
    1. Split the story into {min_scenes} to {max_scenes} separate scenes.
    2. For every scene provide:
       - the scene's story content, written in {story_language};
       - two different versions (A and B) of an image generation prompt;
       - two different versions (A and B) of an image-to-video generation prompt.
       Every prompt version carries both Traditional Chinese ("chinese_prompt") and English ("english_prompt") text.
       Optimise the English prompts for image and video generation models with concrete art styles, camera angles and lighting.
    {reference_instruction}

    Return an object whose "scenes" array holds one object per scene with the keys
    "scene_number", "story_content", "image_prompts" and "image_to_video_prompts".
    """
).strip()

REFERENCE_LINE = "- Match the style and subject of the attached reference image."

REFERENCE_INSTRUCTION = textwrap.dedent(
    """
    Important: a reference image is attached, so every prompt must explicitly ask to follow its style.
       - english_prompt must start with "Drawing inspiration from the reference image, create a scene of..." or a similar sentence.
       - chinese_prompt must start with 「參考範例圖的風格，描繪一個...」 or a similar sentence.
    """
).strip()

WORKFLOW_NAMES = {
    "loop": "seamless looping short video",
    "story": "story-driven video",
}

STORY_LANGUAGES = {
    "en": "English",
    "zh": "Traditional Chinese",
}

SCENE_IMAGE_PROMPT = (
    "Your task is to generate an image based on the text prompt. You MUST STRICTLY adhere to the "
    "character design, art style, color palette, and overall aesthetic of the provided reference image. "
    "DO NOT deviate from the reference image's style. The character's appearance MUST remain identical. "
    'The text prompt is: "{prompt}"'
)

SCENE_CONTINUITY_PROMPT = textwrap.dedent(
    """
    You are given two images. The first is the ORIGINAL reference image that defines the character and style. The second is the image from the PREVIOUS scene.
    Your task is to generate a new image.
    1. You MUST STRICTLY adhere to the character design, art style, color palette, and overall aesthetic from the FIRST (original) reference image.
    2. Use the SECOND (previous scene) image for compositional and narrative continuity.
    3. The new scene should be based on this prompt: "{prompt}"
    """
).strip()

_PROMPT_VERSION_SCHEMA = {
    "type": "object",
    "properties": {
        "chinese_prompt": {"type": "string"},
        "english_prompt": {"type": "string"},
    },
    "required": ["chinese_prompt", "english_prompt"],
    "additionalProperties": False,
}

SCENES_SCHEMA = {
    "type": "object",
    "properties": {
        "scenes": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "scene_number": {"type": "integer"},
                    "story_content": {"type": "string"},
                    "image_prompts": {"type": "array", "items": _PROMPT_VERSION_SCHEMA},
                    "image_to_video_prompts": {"type": "array", "items": _PROMPT_VERSION_SCHEMA},
                },
                "required": ["scene_number", "story_content", "image_prompts", "image_to_video_prompts"],
                "additionalProperties": False,
            },
        }
    },
    "required": ["scenes"],
    "additionalProperties": False,
}


def scene_image_instruction(prompt: str, with_previous: bool) -> str:
    template = SCENE_CONTINUITY_PROMPT if with_previous else SCENE_IMAGE_PROMPT
    return template.format(prompt=prompt)


def edit_instruction(instruction: str, suffix: str) -> str:
    return f"{instruction.strip()}. {suffix}"
