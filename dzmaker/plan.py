"""
Pyramid planning - level count and per-level raster sizes
"""

from .errors import InvalidDimensions


def halve(n):
    """Halve a pixel extent, rounding halves up (13 -> 7, 7 -> 4)."""
    return (n + 1) // 2


def level_count(width, height):
    """
    Number of halvings between the original size and level 0.

    Equals ceil(log2(max(width, height))), computed with integers so that
    exact powers of two are not nudged across a boundary by float error.

    Args:
        width: Source width in pixels
        height: Source height in pixels

    Returns:
        int: The finest level number (the coarsest is always 0)
    """
    if width <= 0 and height <= 0:
        raise InvalidDimensions(f"Image size must be positive, got {width}x{height}")

    longest = max(width, height)
    return (longest - 1).bit_length()


def dimensions_at(level, count, width, height):
    """
    Raster size at a level, by repeated halve-and-round from the original.

    This intentionally differs from round(width / 2**k): 13 halved twice
    is 4, not 3.
    """
    if not 0 <= level <= count:
        raise ValueError(f"Level {level} outside 0..{count}")

    for _ in range(count - level):
        width = halve(width)
        height = halve(height)
    return width, height


class PyramidPlan:
    """
    Precomputed level table for one source image.

    Level `level_count` is the original size, level 0 the smallest.
    """

    def __init__(self, width, height):
        self.width = width
        self.height = height
        self.level_count = level_count(width, height)

        sizes = [(width, height)]
        w, h = width, height
        for _ in range(self.level_count):
            w, h = halve(w), halve(h)
            sizes.append((w, h))
        sizes.reverse()
        self._sizes = sizes

    def dimensions(self, level):
        """Return (width, height) at a level."""
        if not 0 <= level <= self.level_count:
            raise ValueError(f"Level {level} outside 0..{self.level_count}")
        return self._sizes[level]

    def levels(self):
        """Yield (level, width, height) from finest to coarsest."""
        for level in range(self.level_count, -1, -1):
            w, h = self._sizes[level]
            yield level, w, h

    def grid(self, level, tile_size):
        """Return (cols, rows) of the tile grid at a level."""
        w, h = self.dimensions(level)
        return (w + tile_size - 1) // tile_size, (h + tile_size - 1) // tile_size

    def __repr__(self):
        return f"PyramidPlan({self.width}x{self.height}, levels=0..{self.level_count})"
