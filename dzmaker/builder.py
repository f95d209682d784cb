"""
Pyramid Builder - Cuts one source image into a Deep Zoom tile pyramid
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .backend import get_backend
from .config import BuildConfig
from .errors import BackendError
from .partition import partition
from .plan import PyramidPlan, halve

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PyramidSpec:
    """Geometry and encoding of one pyramid, fixed once leveling starts."""

    width: int
    height: int
    tile_size: int
    overlap: int
    format: str


class BuildState(Enum):
    """Builder lifecycle."""

    IDLE = "idle"
    LOADED = "loaded"
    LEVELING = "leveling"
    DONE = "done"


class TileWriter:
    """
    Writes emitted tiles to `<files_dir>/<level>/<col>_<row>.<fmt>`.

    Usable directly as the `emit` callback of PyramidBuilder.build().
    """

    def __init__(self, files_dir, fmt, backend=None):
        """
        Args:
            files_dir: The `<name>_files` directory
            fmt: Tile format / extension
            backend: ImageBackend used to encode tiles
        """
        self.files_dir = Path(files_dir)
        self.format = fmt
        self.backend = backend or get_backend()
        self.count = 0

    def level_dir(self, level):
        return self.files_dir / str(level)

    def __call__(self, tile, raster):
        level_dir = self.level_dir(tile.level)
        level_dir.mkdir(parents=True, exist_ok=True)

        path = level_dir / tile.filename(self.format)
        logger.debug("making tile %s, %dx%d", path, tile.width, tile.height)
        self.backend.save(raster, path, self.format)
        self.count += 1


class PyramidBuilder:
    """
    Walks one image from its original size down to level 0.

    For every level the current raster is partitioned into tiles, each tile
    is cropped and handed to `emit`, then the optional `level_hook` sees the
    whole level raster before it is halved for the next level.
    """

    def __init__(self, config=None, backend=None):
        """
        Args:
            config: BuildConfig (tile size, overlap, format, aspect padding)
            backend: ImageBackend; defaults to Pillow
        """
        self.config = (config or BuildConfig()).validate()
        self.backend = backend or get_backend(quality=self.config.quality)
        self.state = BuildState.IDLE
        self.level = None
        self.spec = None
        self.plan = None

    def load(self, source):
        """
        Decode the source once and fix the pyramid geometry.

        Returns:
            tuple: (raster, PyramidSpec)
        """
        raster = self.backend.decode(source)

        if self.config.aspect_ratio:
            raster = self.backend.pad_to_aspect(
                raster, self.config.aspect_ratio, self.config.background
            )

        width, height = self.backend.dimensions(raster)
        self.plan = PyramidPlan(width, height)
        self.spec = PyramidSpec(
            width=width,
            height=height,
            tile_size=self.config.tile_size,
            overlap=self.config.overlap,
            format=self.config.format,
        )
        self.state = BuildState.LOADED
        logger.debug("image is %dx%d, %d levels", width, height, self.plan.level_count + 1)
        return raster, self.spec

    def build(self, source, emit, level_hook=None, loaded=None):
        """
        Build the full pyramid for one image.

        Args:
            source: Anything the backend can decode (path, bytes, image)
            emit: Callable(tile, raster) invoked per tile, in partition order
            level_hook: Optional callable(level, raster, width, height)
                invoked once per level after that level's tiles
            loaded: Optional (raster, spec) pair from a previous load() call

        Returns:
            PyramidSpec: Geometry of the built pyramid
        """
        raster, spec = loaded if loaded is not None else self.load(source)
        width, height = spec.width, spec.height

        self.state = BuildState.LEVELING
        for level in range(self.plan.level_count, -1, -1):
            self.level = level
            logger.debug("level %d size %dx%d", level, width, height)

            for tile in partition(width, height, spec.tile_size, spec.overlap, level):
                left, upper = tile.origin
                try:
                    pixels = self.backend.crop(raster, left, upper, tile.width, tile.height)
                except BackendError as e:
                    raise type(e)(f"level {level}, tile {tile.col}_{tile.row}: {e}") from e
                emit(tile, pixels)

            if level_hook is not None:
                level_hook(level, raster, width, height)

            if level == 0:
                break

            raster = self.backend.halve(raster)
            width, height = halve(width), halve(height)
            if tuple(self.backend.dimensions(raster)) != (width, height):
                raise BackendError(
                    f"level {level - 1}: backend halved to "
                    f"{self.backend.dimensions(raster)}, expected {width}x{height}"
                )

        self.state = BuildState.DONE
        self.level = None
        return spec
