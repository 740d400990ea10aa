"""Image preprocessing pipeline.

Decodes uploaded bytes or files with Pillow, resizes to the model's fixed
input resolution and packs RGB channels into a reusable byte buffer in the
layout the model expects (row-major, HWC, uint8).
"""

from __future__ import annotations

import io
import logging
from typing import TYPE_CHECKING

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from moodlens.ml.errors import BufferOverflowError, ImageDecodeError

if TYPE_CHECKING:
    from pathlib import Path

    from numpy.typing import NDArray

logger = logging.getLogger(__name__)

# Bit offsets of red, green and blue inside a packed 0xAARRGGBB pixel.
_CHANNEL_SHIFTS: tuple[int, ...] = (16, 8, 0)


class PixelBuffer:
    """Fixed-capacity byte buffer with a write position.

    Must be rewound before each image is written; writes never grow or wrap
    the buffer.
    """

    def __init__(self, width: int, height: int, channels: int) -> None:
        self.width = width
        self.height = height
        self.channels = channels
        self._data = bytearray(width * height * channels)
        self._position = 0

    @property
    def capacity(self) -> int:
        return len(self._data)

    @property
    def position(self) -> int:
        return self._position

    @property
    def remaining(self) -> int:
        return self.capacity - self._position

    @property
    def is_full(self) -> bool:
        return self._position == self.capacity

    def rewind(self) -> None:
        self._position = 0

    def put(self, data: bytes | bytearray | memoryview) -> None:
        """Write ``data`` at the current position.

        Raises:
            BufferOverflowError: If ``data`` does not fit; nothing is written.
        """
        size = len(data)
        if size > self.remaining:
            raise BufferOverflowError(
                f"Cannot write {size} bytes at position {self._position} of a {self.capacity}-byte buffer"
            )
        self._data[self._position : self._position + size] = data
        self._position += size

    def tobytes(self) -> bytes:
        return bytes(self._data)

    def as_array(self) -> NDArray[np.uint8]:
        """Return a (1, H, W, C) uint8 view over the buffer contents."""
        return np.frombuffer(self._data, dtype=np.uint8).reshape(1, self.height, self.width, self.channels)

    def __len__(self) -> int:
        return self.capacity


def decode_image(image_bytes: bytes, max_pixels: int) -> Image.Image:
    """Decode raw image bytes into an RGB image.

    Args:
        image_bytes: Raw file bytes (any Pillow-supported format).
        max_pixels: Upper bound on width * height.

    Returns:
        RGB image with EXIF orientation applied.

    Raises:
        ImageDecodeError: If the image is empty, cannot be decoded or exceeds
            the size limit.
    """
    if not image_bytes:
        raise ImageDecodeError("Empty image data")
    try:
        image = Image.open(io.BytesIO(image_bytes))
        if image.width * image.height > max_pixels:
            raise ImageDecodeError(f"Image has {image.width}x{image.height} pixels, limit is {max_pixels}")
        image.load()
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as exc:
        raise ImageDecodeError(f"Cannot decode image: {exc}") from exc
    return ImageOps.exif_transpose(image).convert("RGB")


def load_image(path: Path, max_pixels: int) -> Image.Image:
    """Read and decode an image file."""
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise ImageDecodeError(f"Cannot read image {path}: {exc}") from exc
    return decode_image(data, max_pixels)


def resize_image(image: Image.Image, width: int, height: int) -> Image.Image:
    """Scale ``image`` to exactly width x height; aspect ratio is not kept."""
    if image.size == (width, height):
        return image
    return image.resize((width, height), resample=Image.Resampling.NEAREST)


def pack_pixels(image: Image.Image) -> NDArray[np.uint32]:
    """Return every pixel as a packed 0xAARRGGBB integer in row-major order."""
    rgba = np.asarray(image.convert("RGBA"), dtype=np.uint32)
    r, g, b, a = rgba[..., 0], rgba[..., 1], rgba[..., 2], rgba[..., 3]
    return ((a << 24) | (r << 16) | (g << 8) | b).reshape(-1)


def preprocess(
    image: Image.Image,
    width: int,
    height: int,
    channels: int,
    buffer: PixelBuffer | None = None,
) -> PixelBuffer:
    """Resize ``image`` and serialize its channels into a pixel buffer.

    Pixels are emitted rows outer, columns inner; each contributes ``channels``
    bytes taken from red, green, blue in that order. Alpha is discarded.

    Args:
        image: Source image of any size.
        width: Target width.
        height: Target height.
        channels: Bytes per pixel (1 to 3).
        buffer: Buffer to reuse. It is rewound before writing.

    Returns:
        The filled buffer.

    Raises:
        BufferOverflowError: If ``buffer`` capacity differs from
            width * height * channels.
    """
    if not 1 <= channels <= len(_CHANNEL_SHIFTS):
        raise ValueError(f"channels must be between 1 and {len(_CHANNEL_SHIFTS)}, got {channels}")

    expected = width * height * channels
    if buffer is None:
        buffer = PixelBuffer(width, height, channels)
    elif buffer.capacity != expected:
        raise BufferOverflowError(f"Buffer holds {buffer.capacity} bytes, {width}x{height}x{channels} needs {expected}")

    pixels = pack_pixels(resize_image(image, width, height))
    planes = [(pixels >> shift) & 0xFF for shift in _CHANNEL_SHIFTS[:channels]]
    interleaved = np.stack(planes, axis=-1).astype(np.uint8)

    buffer.rewind()
    buffer.put(interleaved.tobytes())
    logger.debug("Packed %dx%d image into %d-byte buffer", width, height, buffer.position)
    return buffer
