"""
Tests for PyramidBuilder and TileWriter
"""

import shutil
import tempfile
import unittest
from pathlib import Path

import numpy as np
from PIL import Image

from dzmaker.backend import PillowBackend
from dzmaker.builder import BuildState, PyramidBuilder, TileWriter
from dzmaker.config import BuildConfig
from dzmaker.errors import BackendError, DecodeError


class ShrinkTooFarBackend(PillowBackend):
    """Backend whose halve() disagrees with the level plan."""

    def halve(self, raster):
        width, height = raster.size
        return raster.resize((max(1, width // 2 - 1), max(1, height // 2 - 1)))


class TestPyramidBuilder(unittest.TestCase):
    """Test the level loop."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())

        rng = np.random.default_rng(42)
        self.array = rng.integers(0, 256, (300, 300, 3), dtype=np.uint8)
        self.image = Image.fromarray(self.array)
        self.config = BuildConfig(tile_size=256, overlap=1, format='png')

    def tearDown(self):
        if self.temp_dir.exists():
            shutil.rmtree(self.temp_dir)

    def _collect(self, source=None, config=None):
        builder = PyramidBuilder(config or self.config)
        emitted = []
        levels = []

        def emit(tile, raster):
            emitted.append((tile, raster))

        def level_hook(level, raster, width, height):
            levels.append((level, width, height, raster.size))

        spec = builder.build(source if source is not None else self.image, emit, level_hook)
        return builder, spec, emitted, levels

    def test_spec(self):
        builder, spec, _, _ = self._collect()
        self.assertEqual((spec.width, spec.height), (300, 300))
        self.assertEqual((spec.tile_size, spec.overlap, spec.format), (256, 1, 'png'))
        self.assertEqual(builder.plan.level_count, 9)
        self.assertEqual(builder.state, BuildState.DONE)

    def test_finest_level_tiles(self):
        """Level 9 is a 2x2 grid with padding only towards neighbours."""
        _, _, emitted, _ = self._collect()
        finest = [(tile, raster) for tile, raster in emitted if tile.level == 9]

        self.assertEqual([(t.col, t.row) for t, _ in finest], [(0, 0), (0, 1), (1, 0), (1, 1)])

        top_left, bottom_right = finest[0], finest[3]
        self.assertEqual(top_left[1].size, (257, 257))
        self.assertTrue(np.array_equal(np.array(top_left[1]), self.array[0:257, 0:257]))
        self.assertEqual(bottom_right[1].size, (45, 45))
        self.assertTrue(np.array_equal(np.array(bottom_right[1]), self.array[255:300, 255:300]))

    def test_every_level_emitted_finest_first(self):
        _, _, emitted, levels = self._collect()

        self.assertEqual([level for level, _, _, _ in levels], list(range(9, -1, -1)))
        self.assertEqual(levels[0][1:3], (300, 300))
        self.assertEqual(levels[1][1:3], (150, 150))
        self.assertEqual(levels[2][1:3], (75, 75))
        self.assertEqual(levels[3][1:3], (38, 38))
        self.assertEqual(levels[-1][1:3], (1, 1))
        for level, width, height, size in levels:
            self.assertEqual(size, (width, height))

        tile_levels = [tile.level for tile, _ in emitted]
        self.assertEqual(tile_levels, sorted(tile_levels, reverse=True))
        self.assertEqual(len(emitted), 4 + 9)

    def test_level_hook_follows_level_tiles(self):
        """The hook for a level runs after all of that level's tiles."""
        order = []
        builder = PyramidBuilder(self.config)
        builder.build(
            self.image,
            lambda tile, raster: order.append(('tile', tile.level)),
            lambda level, raster, w, h: order.append(('level', level)),
        )
        self.assertEqual(order[:5], [('tile', 9)] * 4 + [('level', 9)])
        self.assertEqual(order[-2:], [('tile', 0), ('level', 0)])

    def test_single_pixel_image(self):
        _, spec, emitted, levels = self._collect(np.zeros((1, 1, 3), dtype=np.uint8))
        self.assertEqual((spec.width, spec.height), (1, 1))
        self.assertEqual(len(emitted), 1)
        self.assertEqual(levels, [(0, 1, 1, (1, 1))])

    def test_aspect_ratio_padding(self):
        config = BuildConfig(tile_size=256, format='png', aspect_ratio=2.0)
        _, spec, _, _ = self._collect(config=config)
        self.assertEqual((spec.width, spec.height), (600, 300))

    def test_decode_failure(self):
        builder = PyramidBuilder(self.config)
        with self.assertRaises(DecodeError):
            builder.build(b'garbage', lambda tile, raster: None)

    def test_backend_size_mismatch_is_fatal(self):
        builder = PyramidBuilder(self.config, backend=ShrinkTooFarBackend())
        with self.assertRaises(BackendError):
            builder.build(self.image, lambda tile, raster: None)
        self.assertEqual(builder.state, BuildState.LEVELING)


class TestTileWriter(unittest.TestCase):
    """Test writing tiles to the Deep Zoom directory layout."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        rng = np.random.default_rng(3)
        self.image = Image.fromarray(rng.integers(0, 256, (300, 300, 3), dtype=np.uint8))

    def tearDown(self):
        if self.temp_dir.exists():
            shutil.rmtree(self.temp_dir)

    def _build(self, name):
        files_dir = self.temp_dir / f"{name}_files"
        writer = TileWriter(files_dir, 'png')
        PyramidBuilder(BuildConfig(tile_size=256, format='png')).build(self.image, writer)
        return files_dir, writer

    def test_layout(self):
        files_dir, writer = self._build('a')

        self.assertEqual(sorted(int(p.name) for p in files_dir.iterdir()), list(range(10)))
        finest = sorted(p.name for p in (files_dir / '9').iterdir())
        self.assertEqual(finest, ['0_0.png', '0_1.png', '1_0.png', '1_1.png'])
        self.assertEqual(writer.count, 13)

        with Image.open(files_dir / '9' / '1_0.png') as tile:
            self.assertEqual(tile.size, (45, 257))
        with Image.open(files_dir / '0' / '0_0.png') as tile:
            self.assertEqual(tile.size, (1, 1))

    def test_rebuild_is_byte_identical(self):
        first, _ = self._build('a')
        second, _ = self._build('b')

        first_files = sorted(p.relative_to(first) for p in first.rglob('*.png'))
        second_files = sorted(p.relative_to(second) for p in second.rglob('*.png'))
        self.assertEqual(first_files, second_files)
        for rel in first_files:
            self.assertEqual((first / rel).read_bytes(), (second / rel).read_bytes())


if __name__ == '__main__':
    unittest.main()
