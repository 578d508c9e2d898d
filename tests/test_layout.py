"""Tests for the level-order index arithmetic."""

from __future__ import annotations

import pytest

from flatmerkle import layout


class TestDepth:
    @pytest.mark.parametrize(
        "leaf_count, depth",
        [(1, 0), (2, 1), (3, 2), (4, 2), (5, 3), (8, 3), (9, 4), (1024, 10), (1025, 11)],
    )
    def test_depth_is_ceil_log2(self, leaf_count, depth):
        assert layout.depth_for(leaf_count) == depth

    def test_zero_leaves_rejected(self):
        with pytest.raises(ValueError):
            layout.depth_for(0)

    def test_slot_count(self):
        assert layout.slot_count(0) == 1
        assert layout.slot_count(1) == 3
        assert layout.slot_count(3) == 15


class TestNavigation:
    def test_parent(self):
        assert layout.parent(0) is None
        assert layout.parent(1) == 0
        assert layout.parent(2) == 0
        assert layout.parent(5) == 2
        assert layout.parent(6) == 2

    def test_children(self):
        assert layout.left_child(0) == 1
        assert layout.right_child(0) == 2
        assert layout.left_child(2) == 5
        assert layout.right_child(2) == 6

    def test_parent_inverts_children(self):
        for index in range(100):
            assert layout.parent(layout.left_child(index)) == index
            assert layout.parent(layout.right_child(index)) == index

    def test_sibling(self):
        assert layout.sibling(0) is None
        assert layout.sibling(1) == 2
        assert layout.sibling(2) == 1
        assert layout.sibling(5) == 6
        assert layout.sibling(6) == 5

    def test_is_left_child(self):
        assert layout.is_left_child(1)
        assert not layout.is_left_child(2)
        assert layout.is_left_child(7)


class TestLevels:
    def test_level_offset(self):
        assert [layout.level_offset(k) for k in range(4)] == [0, 1, 3, 7]

    def test_level_of(self):
        assert layout.level_of(0) == 0
        assert layout.level_of(1) == layout.level_of(2) == 1
        assert [layout.level_of(i) for i in range(3, 7)] == [2, 2, 2, 2]
        assert layout.level_of(7) == 3

    def test_leaf_slot(self):
        assert layout.leaf_slot(0, 0) == 0
        assert layout.leaf_slot(0, 2) == 3
        assert layout.leaf_slot(3, 2) == 6

    def test_real_width_halves_rounding_up(self):
        # five leaves: 5 -> 3 -> 2 -> 1
        depth = layout.depth_for(5)
        assert [layout.real_width(5, depth, k) for k in range(depth, -1, -1)] == [5, 3, 2, 1]

    def test_real_width_full_tree(self):
        assert [layout.real_width(4, 2, k) for k in range(3)] == [1, 2, 4]
