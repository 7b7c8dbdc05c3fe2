from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Dict, Literal

from PIL import Image

from toolsia.app.errors import EncodeFailure
from toolsia.core.buffer import PixelBuffer
from toolsia.core.utils import round_half_up

OutputFormat = Literal["PNG", "JPEG", "WEBP"]

MIME_BY_FORMAT: Dict[str, str] = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "WEBP": "image/webp",
}


@dataclass(frozen=True)
class EncodedArtifact:
    data: bytes
    mime: str
    format: str

    @property
    def size_bytes(self) -> int:
        return len(self.data)


def quality_to_int(quality_factor: float) -> int:
    """Map a factor in (0, 1] onto Pillow's 1..100 quality scale."""
    return max(1, min(100, round_half_up(quality_factor * 100)))


def encode(buffer: PixelBuffer, fmt: str, quality_factor: float = 1.0) -> EncodedArtifact:
    """
    Serialize the buffer.
    PNG is lossless and keeps alpha (quality ignored).
    JPEG has no alpha channel; it is dropped before encoding.
    """
    fmt = fmt.upper()
    if fmt not in MIME_BY_FORMAT:
        raise EncodeFailure(f"Unsupported output format: {fmt}", stage="encoding")

    img = buffer.check().to_image()
    out = io.BytesIO()
    try:
        if fmt == "PNG":
            img.save(out, format="PNG", optimize=False)
        elif fmt == "JPEG":
            img.convert("RGB").save(out, format="JPEG", quality=quality_to_int(quality_factor))
        else:
            img.save(out, format="WEBP", quality=quality_to_int(quality_factor))
    except (OSError, ValueError) as e:
        raise EncodeFailure(f"{fmt} encoder failed: {e}", stage="encoding") from e

    data = out.getvalue()
    if not data:
        raise EncodeFailure(f"{fmt} encoder returned no output", stage="encoding")
    return EncodedArtifact(data=data, mime=MIME_BY_FORMAT[fmt], format=fmt)
