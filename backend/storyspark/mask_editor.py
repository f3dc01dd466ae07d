"""Freehand mask editor for refining the reference image.

Strokes are drawn on a transparent RGBA overlay the size of the *displayed*
image. On generate the base image is used at native resolution and the overlay
is scaled up on top of it, so the model sees one composite PNG.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from PIL import Image, ImageChops, ImageDraw

from . import prompts
from .ai.openai_client import OpenAIClient
from .errors import GenerationError, InputValidationError
from .images import encode_png, load_image, to_data_url
from .overview import request_candidates

logger = logging.getLogger(__name__)

DRAW = "draw"
ERASE = "erase"
MIN_BRUSH, MAX_BRUSH, DEFAULT_BRUSH = 5, 100, 30
MASK_COLOR = (239, 68, 68, 77)  # red at 30% opacity
DISPLAY_MAX_WIDTH = 640

Point = Tuple[float, float]


def display_size_for(size: Tuple[int, int], max_width: int = DISPLAY_MAX_WIDTH) -> Tuple[int, int]:
    width, height = size
    if width <= max_width:
        return width, height
    scale = max_width / width
    return max_width, max(1, round(height * scale))


def parse_stroke_points(text: str) -> List[Point]:
    """Parse ``x,y`` pairs, one per line, into pointer positions."""
    points: List[Point] = []
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        parts = [part.strip() for part in line.split(",")]
        if len(parts) != 2:
            raise InputValidationError(f"bad stroke point {line!r}", message_key="errorStrokePoints")
        try:
            points.append((float(parts[0]), float(parts[1])))
        except ValueError as exc:
            raise InputValidationError(f"bad stroke point {line!r}", message_key="errorStrokePoints") from exc
    return points


class MaskEditor:
    def __init__(self, image: str, display_size: Optional[Tuple[int, int]] = None):
        self.current_image = image
        self.brush_size = DEFAULT_BRUSH
        self.mode = DRAW
        self.results: List[str] = []
        self._base = load_image(image)
        self.display_size = display_size or display_size_for(self._base.size)
        self.overlay = Image.new("RGBA", self.display_size, (0, 0, 0, 0))
        self._drawing = False
        self._last: Point = (0.0, 0.0)

    def set_brush_size(self, size: int) -> None:
        self.brush_size = max(MIN_BRUSH, min(MAX_BRUSH, int(size)))

    def set_mode(self, mode: str) -> None:
        if mode not in (DRAW, ERASE):
            raise ValueError(f"unknown mask mode {mode!r}")
        self.mode = mode

    # pointer tracking

    def pointer_down(self, x: float, y: float) -> None:
        self._drawing = True
        self._last = (x, y)

    def pointer_move(self, x: float, y: float) -> None:
        if not self._drawing:
            return
        self._draw_line(self._last, (x, y))
        self._last = (x, y)

    def pointer_up(self) -> None:
        self._drawing = False

    def stroke(self, points: List[Point]) -> None:
        """Replay a whole drag: press on the first point, move through the rest."""
        if not points:
            return
        self.pointer_down(*points[0])
        for point in points[1:]:
            self.pointer_move(*point)
        self.pointer_up()

    def _stroke_layer(self, start: Point, end: Point, fill) -> Image.Image:
        mode = "RGBA" if isinstance(fill, tuple) else "L"
        layer = Image.new(mode, self.display_size, (0, 0, 0, 0) if mode == "RGBA" else 0)
        draw = ImageDraw.Draw(layer)
        width = self.brush_size
        draw.line([start, end], fill=fill, width=width)
        radius = width / 2
        for cx, cy in (start, end):
            draw.ellipse([cx - radius, cy - radius, cx + radius, cy + radius], fill=fill)
        return layer

    def _draw_line(self, start: Point, end: Point) -> None:
        if self.mode == DRAW:
            layer = self._stroke_layer(start, end, MASK_COLOR)
            self.overlay = Image.alpha_composite(self.overlay, layer)
        else:
            cut = self._stroke_layer(start, end, 255)
            alpha = ImageChops.subtract(self.overlay.getchannel("A"), cut)
            self.overlay.putalpha(alpha)

    def clear(self) -> None:
        self.overlay = Image.new("RGBA", self.display_size, (0, 0, 0, 0))

    @property
    def has_mask(self) -> bool:
        return self.overlay.getchannel("A").getbbox() is not None

    def preview(self) -> Image.Image:
        """Base image at display size with the overlay on top."""
        base = self._base.convert("RGBA").resize(self.display_size, Image.LANCZOS)
        return Image.alpha_composite(base, self.overlay)

    def composite(self) -> bytes:
        base = self._base.convert("RGBA")
        overlay = self.overlay.resize(base.size, Image.LANCZOS)
        return encode_png(Image.alpha_composite(base, overlay))

    def generate(self, ai_client: OpenAIClient, instruction: str, suffix: str) -> List[str]:
        """Request two edited candidates; on failure the working image is kept."""
        if not instruction.strip():
            raise InputValidationError("edit instruction is empty", message_key="errorEditPrompt")
        payload = to_data_url(self.composite())
        self.results = []
        results = request_candidates(ai_client, prompts.edit_instruction(instruction, suffix), [payload])
        if not results:
            raise GenerationError("AI failed to generate images.", message_key="errorGeneration")
        self.results = results
        logger.info("Mask edit produced %d candidate(s)", len(results))
        return results

    def accept(self, image: str, finish: bool) -> Optional[str]:
        """Use a candidate; returns it when finishing, else keeps editing on it."""
        if image not in self.results:
            raise ValueError("image is not one of the edit results")
        if finish:
            return image
        self.current_image = image
        self._base = load_image(image)
        self.display_size = display_size_for(self._base.size)
        self.clear()
        self.results = []
        return None
