"""Basic app construction smoke tests."""

from storyspark.app import Settings, create_app
from storyspark.controller import STEP_IDEA, WizardController

TRACKED = [
    "OPENAI_API_KEY",
    "OPENAI_BASE_URL",
    "OPENAI_DEFAULT_CHAT_MODEL",
    "OPENAI_IMAGE_MODEL",
    "STORYSPARK_LANGUAGE",
    "STORYSPARK_LOG_LEVEL",
]


def _clear_env(monkeypatch):
    for name in TRACKED:
        monkeypatch.delenv(name, raising=False)


def test_app_constructs(monkeypatch):
    _clear_env(monkeypatch)
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("OPENAI_IMAGE_MODEL", "custom-image")
    monkeypatch.setenv("STORYSPARK_LANGUAGE", "en")

    app = create_app()

    assert {"settings", "ai_client", "new_controller"}.issubset(app.keys())
    assert app["ai_client"].configured
    assert app["ai_client"].default_image_model == "custom-image"
    controller = app["new_controller"]()
    assert isinstance(controller, WizardController)
    assert controller.language == "en"
    assert controller.step == STEP_IDEA


def test_missing_key_leaves_client_unconfigured(monkeypatch):
    _clear_env(monkeypatch)
    settings = Settings.from_env()

    app = create_app(settings)

    assert settings.api_key is None
    assert not app["ai_client"].configured


def test_unknown_language_falls_back_to_default(monkeypatch):
    _clear_env(monkeypatch)
    monkeypatch.setenv("STORYSPARK_LANGUAGE", "fr")
    assert Settings.from_env().language == "zh"
