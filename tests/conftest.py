import io

import numpy as np
import pytest
from PIL import Image

from toolsia.app.settings import Settings
from toolsia.core.buffer import PixelBuffer


def encode_image(img: Image.Image, fmt: str = "PNG", **save_kwargs) -> bytes:
    out = io.BytesIO()
    img.save(out, format=fmt, **save_kwargs)
    return out.getvalue()


def decode_rgba(data: bytes) -> np.ndarray:
    with Image.open(io.BytesIO(data)) as img:
        return np.array(img.convert("RGBA"))


def gradient_image(width: int, height: int) -> Image.Image:
    """Opaque horizontal gradient, white on the left to black on the right."""
    row = np.linspace(255, 0, width).round().astype(np.uint8)
    arr = np.repeat(row[None, :, None], 3, axis=2)
    arr = np.repeat(arr, height, axis=0)
    return Image.fromarray(arr)


def solid_buffer(width: int, height: int, rgba) -> PixelBuffer:
    data = np.empty((height, width, 4), dtype=np.uint8)
    data[...] = rgba
    return PixelBuffer(width, height, data)


@pytest.fixture
def settings():
    return Settings(log_level="DEBUG", stage_timeout_s=30.0, watermark_text="toolsIA")


@pytest.fixture
def noisy_image():
    rng = np.random.default_rng(1234)
    base = gradient_image(256, 256)
    noise = rng.integers(-40, 40, size=(256, 256, 3))
    arr = np.clip(np.asarray(base, dtype=np.int16) + noise, 0, 255).astype(np.uint8)
    return Image.fromarray(arr)
