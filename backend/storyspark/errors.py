"""Exception hierarchy shared by the wizard components."""

from __future__ import annotations


class StorySparkError(Exception):
    """Base class for all errors surfaced to the user.

    ``message_key`` names the translation entry the UI should display.
    """

    message_key = "errorGeneric"

    def __init__(self, message: str | None = None, *, message_key: str | None = None):
        if message_key:
            self.message_key = message_key
        super().__init__(message or self.message_key)


class InputValidationError(StorySparkError):
    """Bad user input: empty idea, missing reference image, bad upload."""


class GenerationError(StorySparkError):
    """An external generation call failed or returned something unusable."""

    message_key = "errorGeneration"


class MissingCredentialError(StorySparkError):
    """No API key is configured, so no generation call can be made."""

    message_key = "errorAiInit"
