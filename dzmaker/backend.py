"""
Image backend - pixel operations used by the pyramid and collection builders

The builders only talk to an ImageBackend; PillowBackend is the default.

Usage:
    from dzmaker.backend import get_backend

    backend = get_backend(quality=90)
    raster = backend.decode("photo.jpg")
    half = backend.halve(raster)
    data = backend.encode(half, "jpg")
"""

import io
import logging
import sys
from abc import ABC, abstractmethod
from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

from .config import JPEG_QUALITY
from .errors import BackendError, BoundsError, DecodeError
from .plan import halve

logger = logging.getLogger(__name__)

Image.MAX_IMAGE_PIXELS = None  # allow large images

#: Tile extension -> Pillow codec name
FORMATS = {
    'jpg': 'JPEG',
    'jpeg': 'JPEG',
    'png': 'PNG',
    'webp': 'WEBP',
    'tif': 'TIFF',
    'tiff': 'TIFF',
    'bmp': 'BMP',
    'gif': 'GIF',
}

# Codecs that cannot store an alpha channel
_OPAQUE_CODECS = {'JPEG', 'BMP'}


def _normalize(image):
    """Bring palette, CMYK and high-bit-depth images to L, RGB or RGBA."""
    if image.mode in ('L', 'RGB', 'RGBA'):
        return image
    if 'A' in image.getbands() or 'transparency' in image.info:
        return image.convert('RGBA')
    return image.convert('RGB')


class ImageBackend(ABC):
    """
    Capabilities the builders need from an imaging library.

    Rasters are opaque handles; only the backend looks inside them.
    """

    @abstractmethod
    def decode(self, source):
        """Decode a path, bytes or in-memory image into a raster."""

    @abstractmethod
    def dimensions(self, raster):
        """Return (width, height)."""

    @abstractmethod
    def halve(self, raster):
        """Resample to (round(w/2), round(h/2))."""

    @abstractmethod
    def crop(self, raster, x, y, width, height):
        """Cut a window out of a raster; BoundsError if it does not fit."""

    @abstractmethod
    def composite_over(self, destination, source, x, y):
        """Draw source over destination with its top-left at (x, y)."""

    @abstractmethod
    def new_canvas(self, width, height, color):
        """Create a solid-colour raster."""

    @abstractmethod
    def encode(self, raster, fmt):
        """Encode a raster to bytes in the given tile format."""

    @abstractmethod
    def load(self, path):
        """Decode a file, or return None if it does not exist."""

    def save(self, raster, path, fmt):
        """Encode a raster and write it to path."""
        data = self.encode(raster, fmt)
        with open(path, 'wb') as f:
            f.write(data)


class PillowBackend(ImageBackend):
    """
    Pillow-based image backend.

    Accepts file paths, raw bytes, '-' for standard input, PIL Images and
    numpy arrays (H, W[, C], uint8) as sources.
    """

    def __init__(self, quality=JPEG_QUALITY):
        """
        Args:
            quality: JPEG/WebP quality used by encode (1-100)
        """
        self.quality = quality

    def decode(self, source):
        if isinstance(source, Image.Image):
            return _normalize(source.copy())

        if isinstance(source, np.ndarray):
            try:
                return _normalize(Image.fromarray(source))
            except (TypeError, ValueError) as e:
                raise DecodeError(f"Cannot build image from array of shape {source.shape}: {e}") from e

        if isinstance(source, (bytes, bytearray)):
            label = '<bytes>'
            stream = io.BytesIO(source)
        elif str(source) == '-':
            label = '<stdin>'
            stream = io.BytesIO(sys.stdin.buffer.read())
        else:
            label = str(source)
            stream = label

        logger.debug("reading from %s", label)
        try:
            image = Image.open(stream)
            image.load()
        except FileNotFoundError as e:
            raise DecodeError(f"Source image not found: {label}") from e
        except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
            raise DecodeError(f"Cannot decode {label}: {e}") from e

        return _normalize(image)

    def dimensions(self, raster):
        return raster.size

    def halve(self, raster):
        width, height = raster.size
        size = (halve(width), halve(height))
        try:
            return raster.resize(size, Image.Resampling.LANCZOS)
        except (OSError, ValueError) as e:
            raise BackendError(f"Cannot resize {width}x{height} to {size[0]}x{size[1]}: {e}") from e

    def crop(self, raster, x, y, width, height):
        raster_w, raster_h = raster.size
        if (x < 0 or y < 0 or width <= 0 or height <= 0
                or x + width > raster_w or y + height > raster_h):
            raise BoundsError(
                f"Crop {width}x{height}+{x}+{y} outside {raster_w}x{raster_h} raster"
            )
        return raster.crop((x, y, x + width, y + height))

    def composite_over(self, destination, source, x, y):
        dest_w, dest_h = destination.size
        src_w, src_h = source.size
        if x < 0 or y < 0 or x + src_w > dest_w or y + src_h > dest_h:
            raise BoundsError(
                f"Composite {src_w}x{src_h}+{x}+{y} outside {dest_w}x{dest_h} canvas"
            )

        try:
            result = destination.convert('RGBA')
            result.alpha_composite(source.convert('RGBA'), dest=(x, y))
        except (OSError, ValueError) as e:
            raise BackendError(f"Cannot composite at {x},{y}: {e}") from e
        return result

    def new_canvas(self, width, height, color):
        try:
            return Image.new('RGB', (width, height), color)
        except ValueError as e:
            raise BackendError(f"Cannot create {width}x{height} canvas in {color!r}: {e}") from e

    def encode(self, raster, fmt):
        codec = FORMATS.get(fmt.lower())
        if codec is None:
            raise BackendError(f"Unsupported tile format: {fmt}")

        image = raster
        if codec in _OPAQUE_CODECS and image.mode not in ('RGB', 'L'):
            image = image.convert('RGB')

        options = {}
        if codec in ('JPEG', 'WEBP'):
            options['quality'] = self.quality

        buffer = io.BytesIO()
        try:
            image.save(buffer, codec, **options)
        except (OSError, ValueError, KeyError) as e:
            raise BackendError(f"Cannot encode {image.size[0]}x{image.size[1]} {image.mode} as {fmt}: {e}") from e
        return buffer.getvalue()

    def load(self, path):
        if not Path(path).exists():
            return None
        return self.decode(path)

    def pad_to_aspect(self, raster, ratio, color):
        """
        Pad a raster with background so that width / height == ratio.

        The source is centred; a raster already at the ratio is returned as is.
        """
        width, height = raster.size
        if width * 1.0 / height < ratio:
            new_w, new_h = int(round(height * ratio)), height
        else:
            new_w, new_h = width, int(round(width / ratio))

        if (new_w, new_h) == (width, height):
            return raster

        logger.debug("padding %dx%d to %dx%d for aspect %.4f", width, height, new_w, new_h, ratio)
        mode = 'RGBA' if 'A' in raster.getbands() else 'RGB'
        try:
            canvas = Image.new(mode, (new_w, new_h), color)
            canvas.paste(raster.convert(mode), ((new_w - width) // 2, (new_h - height) // 2))
        except (OSError, ValueError) as e:
            raise BackendError(f"Cannot pad {width}x{height} to {new_w}x{new_h}: {e}") from e
        return canvas


def get_backend(quality=JPEG_QUALITY):
    """
    Get the default image backend.

    Args:
        quality: JPEG/WebP quality for encoded tiles

    Returns:
        PillowBackend instance
    """
    return PillowBackend(quality=quality)
