"""
Configuration for dzmaker.

Defaults can be overridden via environment variables; every setting is
then carried explicitly by BuildConfig / CollectionConfig.

Environment Variables:
    DZMAKER_TILE_SIZE: Per-image tile size in pixels (default: 256)
    DZMAKER_OVERLAP: Overlap written to .dzi descriptors (default: 1)
    DZMAKER_FORMAT: Tile format (default: jpg)
    DZMAKER_JPEG_QUALITY: JPEG quality for tiles (default: 90)
    DZMAKER_COLLECTION_TILE_SIZE: Collection canvas tile size (default: 256)
    DZMAKER_COLLECTION_MAX_LEVEL: Deepest collection level (default: 8)
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import InvalidDimensions

logger = logging.getLogger(__name__)


def _get_env_int(name, default):
    """Get an integer from environment variable with fallback."""
    value = os.environ.get(name)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            logger.warning(
                "Invalid integer for %s: %r, using default %d", name, value, default
            )
    return default


def _get_env_str(name, default):
    """Get a string from environment variable with fallback."""
    return os.environ.get(name, default)


# =============================================================================
# Tile Generation Defaults
# =============================================================================

#: Per-image tile size in pixels
DEFAULT_TILE_SIZE = _get_env_int("DZMAKER_TILE_SIZE", 256)

#: Overlap advertised in descriptors (tiles are padded by 0 or 1 pixel)
DEFAULT_OVERLAP = _get_env_int("DZMAKER_OVERLAP", 1)

#: Tile file format / extension
DEFAULT_FORMAT = _get_env_str("DZMAKER_FORMAT", "jpg")

#: JPEG quality for encoded tiles
JPEG_QUALITY = _get_env_int("DZMAKER_JPEG_QUALITY", 90)

#: Background colour for aspect padding and new canvas tiles
BACKGROUND_COLOR = "black"


# =============================================================================
# Collection Defaults
# =============================================================================

#: Edge of one collection canvas tile
COLLECTION_TILE_SIZE = _get_env_int("DZMAKER_COLLECTION_TILE_SIZE", 256)

#: Deepest collection level that members are packed into
COLLECTION_MAX_LEVEL = _get_env_int("DZMAKER_COLLECTION_MAX_LEVEL", 8)

#: Deep Zoom XML namespace
DEEPZOOM_NAMESPACE = "http://schemas.microsoft.com/deepzoom/2008"


@dataclass
class BuildConfig:
    """Settings for building per-image pyramids."""

    tile_size: int = DEFAULT_TILE_SIZE
    overlap: int = DEFAULT_OVERLAP
    format: str = DEFAULT_FORMAT
    quality: int = JPEG_QUALITY
    aspect_ratio: Optional[float] = None
    background: object = BACKGROUND_COLOR
    xml_ext: bool = False

    @property
    def descriptor_ext(self):
        return ".xml" if self.xml_ext else ".dzi"

    def validate(self):
        if self.tile_size <= 0:
            raise InvalidDimensions(f"Tile size must be positive, got {self.tile_size}")
        if self.overlap < 0:
            raise ValueError(f"Overlap must not be negative, got {self.overlap}")
        if not 1 <= self.quality <= 100:
            raise ValueError(f"Quality must be in 1..100, got {self.quality}")
        if self.aspect_ratio is not None and self.aspect_ratio <= 0:
            raise ValueError(f"Aspect ratio must be positive, got {self.aspect_ratio}")
        return self


@dataclass
class CollectionConfig:
    """
    Settings for a Deep Zoom collection.

    `path` is the collection base: the manifest is written next to it as
    `<path>.dzc` and canvas tiles go under `<path>_files/`.
    """

    path: Path
    start_index: int = 0
    max_level: int = COLLECTION_MAX_LEVEL
    tile_size: int = COLLECTION_TILE_SIZE
    format: str = DEFAULT_FORMAT
    background: object = BACKGROUND_COLOR
    xml_ext: bool = False

    def __post_init__(self):
        self.path = Path(self.path)

    @property
    def files_dir(self):
        return self.path.parent / f"{self.path.name}_files"

    @property
    def manifest_path(self):
        ext = ".xml" if self.xml_ext else ".dzc"
        return self.path.parent / f"{self.path.name}{ext}"

    def validate(self):
        if self.tile_size <= 0:
            raise InvalidDimensions(f"Collection tile size must be positive, got {self.tile_size}")
        if self.start_index < 0:
            raise ValueError(f"Collection start index must not be negative, got {self.start_index}")
        if self.max_level < 0:
            raise ValueError(f"Collection max level must not be negative, got {self.max_level}")
        if self.tile_size >> self.max_level < 1:
            raise InvalidDimensions(
                f"Collection max level {self.max_level} too deep for "
                f"{self.tile_size}px canvas tiles"
            )
        return self
