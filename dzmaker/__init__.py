"""
dzmaker - Deep Zoom image pyramids and collections
Cuts images into multi-resolution tile trees and packs them into shared collection canvases
"""

__version__ = "0.1.0"

from .builder import PyramidBuilder, PyramidSpec, TileWriter
from .collection import CollectionPacker
from .config import BuildConfig, CollectionConfig
from .morton import morton_encode
from .partition import Tile, partition
from .pipeline import DeepZoomMaker
from .plan import PyramidPlan, level_count

__all__ = [
    "BuildConfig",
    "CollectionConfig",
    "CollectionPacker",
    "DeepZoomMaker",
    "PyramidBuilder",
    "PyramidPlan",
    "PyramidSpec",
    "Tile",
    "TileWriter",
    "level_count",
    "morton_encode",
    "partition",
]
