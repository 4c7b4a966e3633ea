# backend/app/utils.py
import io
import html
import base64
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/webp")
PIL_FORMATS = {"JPEG", "PNG", "WEBP"}
DEFAULT_MAX_UPLOAD_BYTES = 5 * 1024 * 1024


def validate_image_file(
    data: bytes,
    content_type: Optional[str],
    max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
) -> Tuple[bool, Optional[str]]:
    """
    Upload check used before anything is sent to the API.
    Returns (valid, error message).
    """
    if (content_type or "").lower() not in ALLOWED_IMAGE_TYPES:
        return False, "Please upload a valid image file (JPEG, PNG, or WebP)"

    if len(data) > max_bytes:
        limit_mb = max_bytes / (1024 * 1024)
        return False, f"Image size must be less than {limit_mb:g}MB"

    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError):
        return False, "Please upload a valid image file (JPEG, PNG, or WebP)"

    if fmt not in PIL_FORMATS:
        return False, "Please upload a valid image file (JPEG, PNG, or WebP)"

    return True, None


def image_to_base64(data: bytes) -> str:
    """Plain base64 text, without a data: URL prefix."""
    return base64.b64encode(data).decode("utf-8")


def strip_data_url_prefix(value: str) -> str:
    """'data:image/png;base64,AAAA' -> 'AAAA'; other strings unchanged."""
    value = value.strip()
    if value.startswith("data:") and "," in value:
        return value.split(",", 1)[1]
    return value


def render_pills(values) -> str:
    """HTML-escaped pill markup for a list of tags."""
    return "".join(f'<span class="pill">{html.escape(str(v))}</span>' for v in values)


def format_confidence(confidence: float) -> str:
    return f"{round(confidence * 100)}%"


VIBE_EMOJIS = {
    "modern": "🏢",
    "vintage": "🕰️",
    "cozy": "🏠",
    "elegant": "✨",
    "rustic": "🌾",
    "minimalist": "⚪",
    "bohemian": "🌸",
    "industrial": "🏭",
    "luxurious": "💎",
    "casual": "👕",
    "artistic": "🎨",
    "natural": "🌿",
    "urban": "🏙️",
    "traditional": "🏛️",
    "contemporary": "🔲",
}

CATEGORY_ICONS = {
    "music": "🎵",
    "activities": "🎮",
    "restaurants": "🍽️",
    "experiences": "🎪",
}


def get_vibe_emoji(vibe: str) -> str:
    lower = vibe.lower()
    for key, emoji in VIBE_EMOJIS.items():
        if key in lower:
            return emoji
    return "🎯"


def get_category_icon(category: str) -> str:
    return CATEGORY_ICONS.get(category, "📋")
