"""Turn PNG images into feature vectors and show them in the terminal."""

from __future__ import annotations

import base64
import io
import sys
from pathlib import Path
from typing import TextIO

import numpy as np
from PIL import Image

from ..core.types import Array


def normalize_pixels(raw: Array) -> Array:
    """Map raw grayscale values in ``[0, 255]`` onto ``[0.001, 1.0]``, inverted.

    Dark pixels become large values, matching the polarity of the MNIST
    training data.
    """

    raw = np.asarray(raw, dtype=np.float64)
    return (255.0 - raw) / 255.0 * 0.999 + 0.001


def load_grayscale(path: str | Path) -> Image.Image:
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Image not found: {path}")
    with Image.open(path) as img:
        return img.convert("L")


def features_from_image(path: str | Path) -> Array:
    """Return the row-major, normalised pixel vector of the image at ``path``."""

    gray = load_grayscale(path)
    pixels = np.asarray(gray, dtype=np.float64).reshape(-1)
    return normalize_pixels(pixels)


def render_image(path: str | Path, stream: TextIO | None = None) -> None:
    """Write ``path`` as an inline image using the iTerm2 escape sequence."""

    stream = stream or sys.stdout
    buffer = io.BytesIO()
    with Image.open(Path(path)) as img:
        img.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    stream.write(f"\x1b]1337;File=inline=1:{encoded}\a\n")


__all__ = ["features_from_image", "load_grayscale", "normalize_pixels", "render_image"]
