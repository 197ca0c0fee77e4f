"""Tests for layout module."""

import pytest

from galahad_rgb.constants import GRID_HEIGHT, GRID_WIDTH
from galahad_rgb.layout import LedLayout, Ring, ring_positions
from galahad_rgb.models import RingMode


@pytest.fixture
def layout() -> LedLayout:
    """Create the standard 16 + 8 Trinity layout."""
    return LedLayout.build(16, 8)


class TestActiveIndices:
    """Tests for ring mode index selection."""

    def test_outer_ring_only(self, layout: LedLayout) -> None:
        """Outer mode should select indices 0..15."""
        assert layout.active_indices(RingMode.OUTER) == tuple(range(16))

    def test_inner_ring_only(self, layout: LedLayout) -> None:
        """Inner mode should select indices 16..23."""
        assert layout.active_indices(RingMode.INNER) == tuple(range(16, 24))

    def test_combined(self, layout: LedLayout) -> None:
        """Combined mode should select outer then inner."""
        assert layout.active_indices(RingMode.COMBINED) == tuple(range(24))

    def test_independent(self, layout: LedLayout) -> None:
        """Independent mode should select the same set as combined."""
        assert layout.active_indices(RingMode.INDEPENDENT) == tuple(range(24))


class TestBuild:
    """Tests for layout generation."""

    def test_counts(self, layout: LedLayout) -> None:
        """Layout should hold one entry per LED."""
        assert layout.total_count == 24
        assert len(layout.positions) == 24
        assert len(layout.names) == 24

    def test_protocol_indices_outer_first(self, layout: LedLayout) -> None:
        """Entries should be indexed 0..N-1, outer ring first."""
        assert [entry.index for entry in layout.entries] == list(range(24))
        assert all(entry.ring is Ring.OUTER for entry in layout.entries[:16])
        assert all(entry.ring is Ring.INNER for entry in layout.entries[16:])

    def test_names(self, layout: LedLayout) -> None:
        """Names should be numbered per ring starting at 1."""
        assert layout.names[0] == "Outer 1"
        assert layout.names[15] == "Outer 16"
        assert layout.names[16] == "Inner 1"
        assert layout.names[23] == "Inner 8"

    def test_outer_ring_starts_at_top_clockwise(self, layout: LedLayout) -> None:
        """Outer ring should start at the top and run clockwise."""
        assert layout.position(0) == (5, 1)  # top
        assert layout.position(4) == (8, 4)  # right
        assert layout.position(8) == (5, 7)  # bottom

    def test_inner_ring_positions(self, layout: LedLayout) -> None:
        """Inner ring uses its own radius and angular step; halves round up."""
        assert layout.position(16) == (5, 3)  # 2.5 rounds up to 3
        assert layout.position(18) == (7, 4)  # 6.5 rounds up to 7

    def test_positions_within_grid(self) -> None:
        """Every position should be inside the grid."""
        layout = LedLayout.build(40, 24)
        for x, y in layout.positions:
            assert 0 <= x < GRID_WIDTH
            assert 0 <= y < GRID_HEIGHT

    def test_rebuild_keeps_indices(self) -> None:
        """Rebuilding with the same counts should give identical entries."""
        assert LedLayout.build(16, 8) == LedLayout.build(16, 8)

    def test_empty_inner_ring(self) -> None:
        """A zero-sized ring should select nothing."""
        layout = LedLayout.build(12, 0)
        assert layout.active_indices(RingMode.INNER) == ()
        assert layout.active_indices(RingMode.COMBINED) == tuple(range(12))

    def test_negative_count_rejected(self) -> None:
        """Negative LED counts should raise ValueError."""
        with pytest.raises(ValueError, match="non-negative"):
            LedLayout.build(-1, 8)

    def test_layout_is_immutable(self, layout: LedLayout) -> None:
        """Layouts are never mutated in place."""
        with pytest.raises(AttributeError):
            layout.outer_count = 20  # type: ignore[misc]


class TestRingPositions:
    """Tests for ring_positions helper."""

    def test_clamps_to_grid(self) -> None:
        """Points outside the grid should be clamped to its edges."""
        positions = ring_positions(4, 10.0)
        assert positions[0] == (5, 0)  # top clamped
        assert positions[1] == (GRID_WIDTH - 1, 4)  # right clamped
        assert positions[2] == (5, GRID_HEIGHT - 1)  # bottom clamped
        assert positions[3] == (0, 4)  # left clamped

    def test_zero_count(self) -> None:
        """No LEDs should give no positions."""
        assert ring_positions(0, 3.0) == []
