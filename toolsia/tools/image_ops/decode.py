from __future__ import annotations

import io
import logging
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError

from toolsia.app.errors import InvalidDimensions, PayloadTooLarge, UnsupportedFormat
from toolsia.core.buffer import PixelBuffer
from toolsia.graph.policies import TierPolicy

logger = logging.getLogger(__name__)

# Pillow format name -> canonical mime
SUPPORTED_FORMATS = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "WEBP": "image/webp",
}


def sniff_format(data: bytes) -> Optional[str]:
    """Detect the container from magic bytes. Returns a Pillow format name or None."""
    if data[:3] == b"\xff\xd8\xff":
        return "JPEG"
    if data[:8] == b"\x89PNG\r\n\x1a\n":
        return "PNG"
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "WEBP"
    return None


def check_source_size(size_bytes: int, policy: TierPolicy) -> None:
    if policy.max_source_bytes is not None and size_bytes > policy.max_source_bytes:
        raise PayloadTooLarge(
            f"Source is {size_bytes} bytes; {policy.tier} tier allows {policy.max_source_bytes}",
            stage="decoding",
        )


def decode(source_bytes: bytes, declared_mime: Optional[str], policy: TierPolicy) -> PixelBuffer:
    """
    Decode an uploaded JPEG/PNG/WebP into an RGBA PixelBuffer.

    The size limit is enforced before Pillow sees the payload, so an
    oversize upload never allocates pixels.
    """
    check_source_size(len(source_bytes), policy)

    fmt = sniff_format(source_bytes)
    if fmt is None:
        raise UnsupportedFormat(
            f"Unrecognised image content (declared {declared_mime or 'nothing'})",
            stage="decoding",
        )
    if declared_mime and declared_mime.lower() != SUPPORTED_FORMATS[fmt]:
        logger.debug("Declared mime %s disagrees with content %s; using content", declared_mime, fmt)

    try:
        with Image.open(io.BytesIO(source_bytes), formats=[fmt]) as img:
            img.load()
            img = ImageOps.exif_transpose(img)
            if img.width < 1 or img.height < 1:
                raise InvalidDimensions(
                    f"Decoded image is {img.width}x{img.height}", stage="decoding"
                )
            return PixelBuffer.from_image(img.convert("RGBA"))
    except Image.DecompressionBombError as e:
        raise PayloadTooLarge(str(e), stage="decoding") from e
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        raise UnsupportedFormat(f"Could not decode {fmt} payload: {e}", stage="decoding") from e
