"""
Tests for pyramid level planning
"""

import math
import unittest

from dzmaker.errors import InvalidDimensions
from dzmaker.plan import PyramidPlan, dimensions_at, halve, level_count


class TestLevelCount(unittest.TestCase):
    """Test level count computation."""

    def test_known_sizes(self):
        self.assertEqual(level_count(800, 600), 10)
        self.assertEqual(level_count(300, 300), 9)
        self.assertEqual(level_count(256, 256), 8)
        self.assertEqual(level_count(257, 1), 9)
        self.assertEqual(level_count(2, 1), 1)
        self.assertEqual(level_count(1, 1), 0)

    def test_matches_ceil_log2(self):
        for k in range(1, 5000):
            self.assertEqual(level_count(k, 1), math.ceil(math.log2(k)))
            self.assertEqual(level_count(1, k), level_count(k, k))

    def test_non_positive_size(self):
        with self.assertRaises(InvalidDimensions):
            level_count(0, 0)
        with self.assertRaises(ValueError):
            level_count(-3, 0)


class TestHalving(unittest.TestCase):
    """Test iterative halve-and-round."""

    def test_halve_rounds_half_up(self):
        self.assertEqual(halve(15), 8)
        self.assertEqual(halve(13), 7)
        self.assertEqual(halve(7), 4)
        self.assertEqual(halve(8), 4)
        self.assertEqual(halve(1), 1)

    def test_iterative_not_closed_form(self):
        """13 -> 7 -> 4, where round(13 / 4) would give 3."""
        self.assertEqual(dimensions_at(2, 4, 13, 13), (4, 4))
        self.assertEqual(dimensions_at(2, 4, 15, 15), (4, 4))

    def test_finest_level_is_original(self):
        self.assertEqual(dimensions_at(10, 10, 800, 600), (800, 600))

    def test_level_out_of_range(self):
        with self.assertRaises(ValueError):
            dimensions_at(11, 10, 800, 600)


class TestPyramidPlan(unittest.TestCase):
    """Test the precomputed level table."""

    def test_levels_finest_to_coarsest(self):
        plan = PyramidPlan(13, 5)
        self.assertEqual(plan.level_count, 4)
        self.assertEqual(list(plan.levels()), [
            (4, 13, 5),
            (3, 7, 3),
            (2, 4, 2),
            (1, 2, 1),
            (0, 1, 1),
        ])

    def test_dimensions_agree_with_dimensions_at(self):
        plan = PyramidPlan(800, 600)
        for level in range(plan.level_count + 1):
            self.assertEqual(
                plan.dimensions(level),
                dimensions_at(level, plan.level_count, 800, 600),
            )
        self.assertEqual(plan.dimensions(0), (1, 1))

    def test_grid(self):
        plan = PyramidPlan(300, 300)
        self.assertEqual(plan.grid(9, 256), (2, 2))
        self.assertEqual(plan.grid(8, 256), (1, 1))
        self.assertEqual(plan.grid(9, 100), (3, 3))


if __name__ == '__main__':
    unittest.main()
