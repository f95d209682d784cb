"""
Tile grid partitioning with boundary-aware overlap padding
"""

from dataclasses import dataclass

from .errors import InvalidDimensions


@dataclass(frozen=True)
class Tile:
    """
    One tile of a level raster.

    `x`, `y` are the pre-padding origin; the crop window starts at
    (x - pad_left, y - pad_top) and spans `width` x `height` pixels.
    """

    level: int
    col: int
    row: int
    x: int
    y: int
    width: int
    height: int
    pad_left: int = 0
    pad_top: int = 0
    pad_right: int = 0
    pad_bottom: int = 0

    @property
    def origin(self):
        """Top-left corner of the crop window."""
        return self.x - self.pad_left, self.y - self.pad_top

    @property
    def box(self):
        """Crop window as (left, upper, right, lower)."""
        left, upper = self.origin
        return left, upper, left + self.width, upper + self.height

    @property
    def content_box(self):
        """The window this tile owns, without padding."""
        left, upper, right, lower = self.box
        return self.x, self.y, right - self.pad_right, lower - self.pad_bottom

    def filename(self, fmt):
        return f"{self.col}_{self.row}.{fmt}"


def partition(level_width, level_height, tile_size, overlap=1, level=0):
    """
    Split a level raster into tiles.

    Tiles are produced column by column (x outer, y inner). A tile gets one
    pixel of padding on each side that has a neighbouring tile, as long as
    overlap is enabled; larger overlap values still pad by a single pixel.
    Extents past the right/bottom edge are clamped to the raster.

    Args:
        level_width: Raster width at this level
        level_height: Raster height at this level
        tile_size: Nominal tile edge in pixels
        overlap: Configured overlap; only zero vs non-zero matters here
        level: Level number stamped on each tile

    Returns:
        list: Tile descriptors in traversal order
    """
    if tile_size <= 0:
        raise InvalidDimensions(f"Tile size must be positive, got {tile_size}")
    if level_width < 0 or level_height < 0:
        raise InvalidDimensions(f"Level size must not be negative, got {level_width}x{level_height}")

    pad = 1 if overlap > 0 else 0
    tiles = []

    for col, x in enumerate(range(0, level_width, tile_size)):
        left = pad if x > 0 else 0
        right = pad if (col + 1) * tile_size < level_width else 0
        width = min(tile_size + left + right, level_width - (x - left))

        for row, y in enumerate(range(0, level_height, tile_size)):
            top = pad if y > 0 else 0
            bottom = pad if (row + 1) * tile_size < level_height else 0
            height = min(tile_size + top + bottom, level_height - (y - top))

            tiles.append(Tile(
                level=level,
                col=col,
                row=row,
                x=x,
                y=y,
                width=width,
                height=height,
                pad_left=left,
                pad_top=top,
                pad_right=right,
                pad_bottom=bottom,
            ))

    return tiles
