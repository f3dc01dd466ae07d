"""Shared fixtures: tiny PNG payloads and fake AI clients."""

import io
import threading

import pytest
from PIL import Image

from storyspark.images import to_data_url


def png_bytes(size=(8, 6), color=(20, 120, 200, 255)):
    buf = io.BytesIO()
    Image.new("RGBA", size, color).save(buf, format="PNG")
    return buf.getvalue()


class FakeAIClient:
    """Stands in for OpenAIClient; records every call it receives."""

    def __init__(self, configured=True, image_results=None, text="A vivid idea.", payload=None):
        self.configured = configured
        self.default_image_model = "fake-image-model"
        self.image_results = image_results
        self.text = text
        self.payload = payload
        self.edit_calls = []
        self.text_calls = []
        self.structured_calls = []
        self.before_edit = None
        self._lock = threading.Lock()

    def edit_image(self, images, prompt, model=None):
        if self.before_edit is not None:
            self.before_edit()
        with self._lock:
            self.edit_calls.append((list(images), prompt))
            count = len(self.edit_calls)
        if self.image_results is None:
            return f"image-{count}".encode()
        result = self.image_results(count)
        if isinstance(result, Exception):
            raise result
        return result

    def complete_text(self, prompt, model=None):
        self.text_calls.append(prompt)
        if isinstance(self.text, Exception):
            raise self.text
        return self.text

    def generate_structured(self, system_prompt, user_content, schema, schema_name, model=None):
        self.structured_calls.append((system_prompt, user_content, schema, schema_name))
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


@pytest.fixture
def reference_image():
    return to_data_url(png_bytes())


@pytest.fixture
def fake_client():
    return FakeAIClient()
