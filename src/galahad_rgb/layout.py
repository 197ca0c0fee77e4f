"""LED layout model for the pump's two concentric rings.

Positions live on a GRID_WIDTH x GRID_HEIGHT canvas grid. Protocol indices
are assigned outer ring first, then inner ring, each clockwise from the top.
The index is the key written into per-LED payloads, so it only changes when
the LED counts change.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Self

from galahad_rgb.constants import (
    GRID_CENTER,
    GRID_HEIGHT,
    GRID_WIDTH,
    INNER_RADIUS,
    OUTER_RADIUS,
)
from galahad_rgb.models import RingMode


class Ring(Enum):
    """Physical ring an LED belongs to."""

    OUTER = "outer"
    INNER = "inner"


@dataclass(frozen=True, slots=True)
class LedEntry:
    """One LED: its ring, grid cell and protocol index."""

    index: int
    ring: Ring
    position: tuple[int, int]
    name: str


def _round_half_up(value: float) -> int:
    # Halves round towards +inf, matching the host engine's rounding
    return math.floor(value + 0.5)


def ring_positions(count: int, radius: float) -> list[tuple[int, int]]:
    """Grid cells for ``count`` LEDs evenly spaced on a circle.

    Starts at the top (-90 degrees) and runs clockwise in screen space.
    Each point is rounded to a cell and clamped to the grid.
    """
    cx, cy = GRID_CENTER
    positions = []
    for i in range(count):
        angle = (i / count) * 2 * math.pi - math.pi / 2
        x = _round_half_up(cx + radius * math.cos(angle))
        y = _round_half_up(cy + radius * math.sin(angle))
        positions.append(
            (max(0, min(GRID_WIDTH - 1, x)), max(0, min(GRID_HEIGHT - 1, y)))
        )
    return positions


@dataclass(frozen=True)
class LedLayout:
    """Immutable LED layout for a given pair of ring sizes.

    Use :meth:`build` rather than constructing entries by hand.

    Example:
        layout = LedLayout.build(16, 8)
        layout.active_indices(RingMode.INNER)  # (16, 17, ..., 23)
    """

    outer_count: int
    inner_count: int
    entries: tuple[LedEntry, ...]

    @classmethod
    def build(cls, outer_count: int, inner_count: int) -> Self:
        """Generate the layout for the given ring sizes.

        Args:
            outer_count: Number of LEDs on the outer ring.
            inner_count: Number of LEDs on the inner ring.

        Raises:
            ValueError: If either count is negative.
        """
        if outer_count < 0 or inner_count < 0:
            msg = f"LED counts must be non-negative, got {outer_count}/{inner_count}"
            raise ValueError(msg)

        entries: list[LedEntry] = []
        for i, pos in enumerate(ring_positions(outer_count, OUTER_RADIUS)):
            entries.append(LedEntry(i, Ring.OUTER, pos, f"Outer {i + 1}"))
        for i, pos in enumerate(ring_positions(inner_count, INNER_RADIUS)):
            entries.append(
                LedEntry(outer_count + i, Ring.INNER, pos, f"Inner {i + 1}")
            )
        return cls(outer_count, inner_count, tuple(entries))

    @property
    def total_count(self) -> int:
        return self.outer_count + self.inner_count

    @property
    def positions(self) -> list[tuple[int, int]]:
        """Grid positions in protocol index order."""
        return [entry.position for entry in self.entries]

    @property
    def names(self) -> list[str]:
        """LED names in protocol index order."""
        return [entry.name for entry in self.entries]

    @property
    def outer_indices(self) -> tuple[int, ...]:
        return tuple(range(self.outer_count))

    @property
    def inner_indices(self) -> tuple[int, ...]:
        return tuple(range(self.outer_count, self.total_count))

    def position(self, index: int) -> tuple[int, int]:
        """Grid position of the LED with the given protocol index."""
        return self.entries[index].position

    def active_indices(self, ring_mode: RingMode) -> tuple[int, ...]:
        """Ordered protocol indices driven in the given ring mode."""
        if ring_mode is RingMode.OUTER:
            return self.outer_indices
        if ring_mode is RingMode.INNER:
            return self.inner_indices
        return self.outer_indices + self.inner_indices
