"""Pure helpers behind the Streamlit entry point: secrets, clicks and header links."""

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import streamlit_app  # noqa: E402
from storyspark.mask_editor import parse_stroke_points  # noqa: E402
from storyspark.translations import translate  # noqa: E402


def test_openai_block_maps_to_env_names():
    values = streamlit_app._env_from_secrets(
        {"openai": {"api_key": " sk-test ", "image_model": "gpt-image-1", "base_url": ""}}
    )
    assert values == {"OPENAI_API_KEY": "sk-test", "OPENAI_IMAGE_MODEL": "gpt-image-1"}


def test_flat_keys_override_block():
    values = streamlit_app._env_from_secrets(
        {"openai": {"api_key": "from-block"}, "OPENAI_API_KEY": "flat", "STORYSPARK_LANGUAGE": "en", "OTHER": "x"}
    )
    assert values == {"OPENAI_API_KEY": "flat", "STORYSPARK_LANGUAGE": "en"}


def test_click_on_scaled_preview_maps_to_overlay_pixels():
    point = streamlit_app._click_point({"x": 50, "y": 20, "width": 320, "height": 180}, (640, 360))
    assert point == (100.0, 40.0)
    assert streamlit_app._click_point(None, (640, 360)) is None
    assert streamlit_app._click_point({"x": 7, "y": 9}, (640, 360)) == (7.0, 9.0)


def test_clicks_accumulate_as_stroke_points():
    text = streamlit_app._append_point("", (10.0, 20.5))
    text = streamlit_app._append_point(text, (30.0, 40.0))

    assert text == "10,20.5\n30,40"
    assert parse_stroke_points(text) == [(10.0, 20.5), (30.0, 40.0)]


def test_header_links_are_translated():
    for key, url in streamlit_app.HEADER_LINKS:
        assert url.startswith("https://")
        assert translate("en", key) != key
        assert translate("zh", key) not in (key, translate("en", key))
