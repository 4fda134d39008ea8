"""
Profile photo normalization: square crop, bounded size, JPEG data URL.
"""

from __future__ import annotations

import base64
import binascii
import io
import re

from PIL import Image, ImageOps, UnidentifiedImageError

DATA_URL_PATTERN = re.compile(
    r"^data:(?P<mime>image/[\w.+-]+);base64,(?P<data>[A-Za-z0-9+/=\s]+)$"
)
JPEG_QUALITY = 85
MAX_DATA_URL_LENGTH = 1_000_000  # same 1 MB cap as the JSON request body
MAX_PIXELS = 40_000_000


def decode_data_url(data_url: str) -> bytes:
    if len(data_url) > MAX_DATA_URL_LENGTH:
        raise ValueError("photo is larger than 1 MB")
    match = DATA_URL_PATTERN.match(data_url.strip())
    if not match:
        raise ValueError("photo must be a base64 image data URL")
    try:
        return base64.b64decode(re.sub(r"\s+", "", match.group("data")), validate=True)
    except binascii.Error as exc:
        raise ValueError("photo data is not valid base64") from exc


def normalize_photo(data_url: str, size: int = 512) -> str:
    raw = decode_data_url(data_url)
    try:
        with Image.open(io.BytesIO(raw)) as img:
            # header only so far; refuse before decoding the pixels
            if img.width * img.height > MAX_PIXELS:
                raise ValueError(f"photo is too large ({img.width}x{img.height})")
            img = ImageOps.exif_transpose(img).convert("RGB")
    except Image.DecompressionBombError as exc:
        raise ValueError("photo is too large") from exc
    except (UnidentifiedImageError, OSError) as exc:
        raise ValueError("photo is not a readable image") from exc

    side = min(img.size)
    left = (img.width - side) // 2
    top = (img.height - side) // 2
    img = img.crop((left, top, left + side, top + side))
    if side > size:
        img = img.resize((size, size), Image.LANCZOS)

    out = io.BytesIO()
    img.save(out, format="JPEG", quality=JPEG_QUALITY)
    encoded = base64.b64encode(out.getvalue()).decode("ascii")
    return f"data:image/jpeg;base64,{encoded}"
