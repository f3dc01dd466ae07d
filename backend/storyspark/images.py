"""Image payload helpers: data URLs, upload validation and download files."""

from __future__ import annotations

import base64
import binascii
import io
import re
import warnings
import zipfile
from typing import Dict, List, Tuple

from PIL import Image, UnidentifiedImageError

from .errors import InputValidationError

MAX_UPLOAD_BYTES = 10 * 1024 * 1024
ACCEPTED_MIME_TYPES = ("image/png", "image/jpeg", "image/gif")
DOWNLOAD_NAME_PATTERN = "StorySpark-Scene-{scene_number}.png"

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[^;,]*)(?:;[^,]*)?;base64,(?P<data>.*)$", re.DOTALL)


def to_data_url(data: bytes, mime_type: str = "image/png") -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def from_data_url(data_url: str) -> Tuple[str, bytes]:
    """Split a data URL into (mime type, raw bytes); mime defaults to PNG."""
    match = _DATA_URL_RE.match(data_url.strip())
    if not match:
        raise ValueError("not a base64 data URL")
    mime_type = match.group("mime") or "image/png"
    try:
        return mime_type, base64.b64decode(match.group("data"), validate=True)
    except binascii.Error as exc:
        raise ValueError(f"invalid base64 payload: {exc}") from exc


def validate_upload(data: bytes, mime_type: str | None) -> str:
    """Check an uploaded reference image and return it as a data URL.

    Type is checked before size, and both before any decoding, so a rejected
    file never costs more than a header comparison.
    """
    mime_type = (mime_type or "").lower()
    if not mime_type.startswith("image/") or mime_type not in ACCEPTED_MIME_TYPES:
        raise InputValidationError(f"unsupported upload type {mime_type!r}", message_key="errorInvalidImage")
    if len(data) > MAX_UPLOAD_BYTES:
        raise InputValidationError(f"upload is {len(data)} bytes", message_key="errorFileSize")
    try:
        with warnings.catch_warnings():
            # Pixel counts past Pillow's bomb limit are rejected, not just warned about.
            warnings.simplefilter("error", Image.DecompressionBombWarning)
            with Image.open(io.BytesIO(data)) as img:
                img.verify()
    except (Image.DecompressionBombError, Image.DecompressionBombWarning) as exc:
        raise InputValidationError(f"image too large: {exc}", message_key="errorImageDimensions") from exc
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise InputValidationError(f"unreadable image: {exc}", message_key="errorFileRead") from exc
    return to_data_url(data, mime_type)


def load_image(data_url: str) -> Image.Image:
    _, raw = from_data_url(data_url)
    img = Image.open(io.BytesIO(raw))
    img.load()
    return img


def encode_png(img: Image.Image) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def to_png_bytes(data_url: str) -> bytes:
    """Re-encode any supported image data URL as PNG bytes."""
    mime_type, raw = from_data_url(data_url)
    if mime_type == "image/png":
        return raw
    img = load_image(data_url)
    if img.mode not in ("RGB", "RGBA"):
        img = img.convert("RGBA")
    return encode_png(img)


def scene_file_name(scene_number: int) -> str:
    return DOWNLOAD_NAME_PATTERN.format(scene_number=scene_number)


def download_payloads(selected: Dict[int, str]) -> List[Tuple[str, bytes, str]]:
    """One (file name, PNG bytes, mime) triple per selected scene image."""
    return [
        (scene_file_name(scene_number), to_png_bytes(selected[scene_number]), "image/png")
        for scene_number in sorted(selected)
    ]


def zip_bundle(payloads: List[Tuple[str, bytes, str]]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
        for name, data, _mime in payloads:
            zf.writestr(name, data)
    return buf.getvalue()
