"""
Collection Packer - Packs many pyramids into shared Deep Zoom collection canvases
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import List

from .backend import get_backend
from .morton import morton_encode

logger = logging.getLogger(__name__)


@dataclass
class CollectionMember:
    """One image registered with a collection."""

    index: int
    width: int
    height: int
    source: str
    row: int = 0
    col: int = 0


@dataclass
class CollectionManifest:
    """Everything the .dzc manifest needs."""

    tile_size: int
    max_level: int
    format: str
    next_item_id: int
    items: List[CollectionMember] = field(default_factory=list)


def images_per_tile_edge(tile_size, level):
    """How many level-sized member thumbnails fit along one canvas tile edge."""
    return tile_size // (2 ** level)


class _CanvasHandle:
    """Mutable holder for the canvas tile being edited."""

    def __init__(self, key, path, image, created):
        self.key = key
        self.path = path
        self.image = image
        self.created = created


class CanvasStore:
    """
    Canvas tile files of a collection, addressed by (level, col, row).

    Every edit is a load-or-create, mutate, persist cycle. Edits of the same
    key are serialised with a per-key lock; different keys do not block
    each other. A key only has a lock while it is being edited.
    """

    def __init__(self, files_dir, tile_size, fmt, background, backend=None):
        self.files_dir = files_dir
        self.tile_size = tile_size
        self.format = fmt
        self.background = background
        self.backend = backend or get_backend()
        self._guard = threading.Lock()
        self._locks = {}

    def path(self, level, col, row):
        return self.files_dir / str(level) / f"{col}_{row}.{self.format}"

    def make_dirs(self, max_level):
        """Create the collection directory and one directory per level."""
        for level in range(max_level + 1):
            (self.files_dir / str(level)).mkdir(parents=True, exist_ok=True)

    @contextmanager
    def _locked(self, key):
        # entries are [lock, users]; an entry is dropped once nobody holds or waits on it
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = [threading.Lock(), 0]
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]

    @contextmanager
    def edit(self, level, col, row):
        """
        Exclusively edit one canvas tile.

        Yields a handle whose `image` may be replaced; it is written back when
        the block exits normally and left untouched if the block raises.
        """
        key = (level, col, row)
        path = self.path(level, col, row)

        with self._locked(key):
            image = self.backend.load(path)
            created = image is None
            if created:
                logger.debug("creating %s", path)
                image = self.backend.new_canvas(self.tile_size, self.tile_size, self.background)

            handle = _CanvasHandle(key, path, image, created)
            yield handle

            path.parent.mkdir(parents=True, exist_ok=True)
            self.backend.save(handle.image, path, self.format)


class CollectionPacker:
    """
    Composites each member's per-level rasters into shared canvas tiles.

    Members are placed on a Z-order grid by their sequence index. At level L
    each member occupies a 2**L square cell, so a canvas tile of `tile_size`
    pixels holds `tile_size / 2**L` members per edge.

    Members must be packed in registration order, finest level first.
    """

    def __init__(self, config, backend=None):
        """
        Args:
            config: CollectionConfig
            backend: ImageBackend; defaults to Pillow
        """
        self.config = config.validate()
        self.backend = backend or get_backend()
        self.next_index = config.start_index
        self.members = []
        self.current = None
        self.store = CanvasStore(
            config.files_dir,
            config.tile_size,
            config.format,
            config.background,
            backend=self.backend,
        )

    def make_dirs(self):
        self.store.make_dirs(self.config.max_level)

    def register_member(self, width, height, source):
        """
        Register the next member and make it the one being packed.

        Args:
            width: Member width in pixels
            height: Member height in pixels
            source: Path of the member's own descriptor, for the manifest

        Returns:
            int: The member's sequence index
        """
        index = self.next_index
        self.next_index += 1

        row, col = morton_encode(index)
        member = CollectionMember(
            index=index, width=width, height=height, source=str(source), row=row, col=col
        )
        self.members.append(member)
        self.current = member

        logger.debug("morton: %d: %d, %d", index, row, col)
        return index

    def canvas_address(self, level, member=None):
        """
        Canvas tile and pixel offset of a member at a level.

        Returns:
            tuple: ((col, row), (x, y))
        """
        member = member or self.current
        per_edge = images_per_tile_edge(self.config.tile_size, level)
        cell = 2 ** level

        tile_col = member.col // per_edge
        tile_row = member.row // per_edge
        x = (member.col % per_edge) * cell
        y = (member.row % per_edge) * cell
        return (tile_col, tile_row), (x, y)

    def pack_level(self, level, raster, width, height):
        """
        Composite the current member's level raster into its canvas tile.

        Levels deeper than the configured maximum are skipped. Matches the
        PyramidBuilder level_hook signature.
        """
        if level > self.config.max_level:
            return
        if self.current is None:
            raise RuntimeError("pack_level() called before register_member()")

        (col, row), (x, y) = self.canvas_address(level)
        with self.store.edit(level, col, row) as canvas:
            logger.debug("adding %dx%d to %s at %dx%d", width, height, canvas.path, x, y)
            canvas.image = self.backend.composite_over(canvas.image, raster, x, y)

    def finalize(self):
        """
        Collect the manifest of all registered members.

        Returns:
            CollectionManifest
        """
        return CollectionManifest(
            tile_size=self.config.tile_size,
            max_level=self.config.max_level,
            format=self.config.format,
            next_item_id=self.next_index,
            items=list(self.members),
        )
