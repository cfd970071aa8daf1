"""
Photo validation and preparation for the model gateway.
"""
from dataclasses import dataclass, field
from io import BytesIO
from typing import Dict, Optional
import base64
import logging

from PIL import Image, ExifTags, UnidentifiedImageError

from app.core.config import get_settings

logger = logging.getLogger(__name__)

# Source photos may be this many times MAX_IMAGE_SIDE on each side before decoding
SOURCE_SIDE_FACTOR = 5


class ImageRejected(Exception):
    """Raised when an uploaded photo cannot be used."""
    pass


@dataclass
class PreparedImage:
    filename: str
    content_type: str
    size_bytes: int
    width: int
    height: int
    base64_jpeg: str
    exif: Dict = field(default_factory=dict)


def safe_filename(name: Optional[str]) -> str:
    """Sanitize filename to prevent path traversal."""
    name = name or ""
    bad = '<>:"/\\|?*'
    for ch in bad:
        name = name.replace(ch, "_")
    return name.strip() or "file"


def extract_exif(img: Image.Image) -> Dict:
    """Extract a small EXIF summary from an image."""
    summary = {"width": img.width, "height": img.height}
    try:
        raw = img.getexif() or {}
        tag_by_id = {ExifTags.TAGS.get(k, str(k)): v for k, v in raw.items()}
        for k in ("DateTime", "Model", "Orientation"):
            if k in tag_by_id:
                summary[k] = str(tag_by_id[k])
    except (AttributeError, KeyError, ValueError) as e:
        logger.debug(f"EXIF unreadable: {e}")
    return summary


def prepare_image(filename: Optional[str], content_type: Optional[str], data: bytes) -> PreparedImage:
    """
    Validate an uploaded photo and re-encode it as base64 JPEG.

    Args:
        filename: Client-provided file name
        content_type: Client-provided MIME type
        data: Raw file bytes

    Returns:
        PreparedImage ready for the gateway

    Raises:
        ImageRejected: Unsupported type, too many bytes or pixels, empty or not decodable
    """
    settings = get_settings()
    fname = safe_filename(filename)
    ctype = (content_type or "").lower()

    if ctype not in set(settings.ALLOWED_MIME):
        raise ImageRejected(f"Unsupported file type: {ctype}")

    if not data:
        raise ImageRejected(f"File {fname} is empty")

    max_bytes = settings.MAX_IMAGE_MB * 1024 * 1024
    if len(data) > max_bytes:
        raise ImageRejected(f"File {fname} exceeds {settings.MAX_IMAGE_MB}MB")

    max_pixels = (settings.MAX_IMAGE_SIDE * SOURCE_SIDE_FACTOR) ** 2

    try:
        img = Image.open(BytesIO(data))
        if img.width * img.height > max_pixels:
            raise ImageRejected(f"File {fname} is {img.width}x{img.height} pixels, too large to process")
        img.load()
    except Image.DecompressionBombError as e:
        raise ImageRejected(f"File {fname} has too many pixels") from e
    except (UnidentifiedImageError, OSError) as e:
        raise ImageRejected(f"File {fname} is not a readable image") from e

    exif = extract_exif(img)

    img = img.convert("RGB")
    img.thumbnail((settings.MAX_IMAGE_SIDE, settings.MAX_IMAGE_SIDE))

    buf = BytesIO()
    img.save(buf, format="JPEG", quality=85)

    logger.info(f"Prepared image {fname}: {len(data)} bytes -> {buf.tell()} bytes JPEG {img.width}x{img.height}")

    return PreparedImage(
        filename=fname,
        content_type=ctype,
        size_bytes=len(data),
        width=img.width,
        height=img.height,
        base64_jpeg=base64.b64encode(buf.getvalue()).decode("ascii"),
        exif=exif,
    )
