"""Color sampling from the host canvas."""

from collections.abc import Iterable, Sequence
from typing import Protocol

from galahad_rgb.layout import LedLayout
from galahad_rgb.models import ColorSample


class Canvas(Protocol):
    """Host pixel canvas addressed by layout grid coordinates."""

    def sample(self, x: int, y: int) -> Sequence[int] | None:
        """Return (r, g, b) at a grid cell, or None if unavailable."""
        ...


def scale_channel(value: float, brightness: int) -> int:
    """Scale a channel value by brightness percent, rounding half up."""
    scaled = value * (brightness / 100)
    return int(scaled + 0.5)


def _read(canvas: Canvas, layout: LedLayout, index: int) -> Sequence[int] | None:
    x, y = layout.position(index)
    color = canvas.sample(x, y)
    if color is None or len(color) < 3:
        return None
    return color


def sample_colors(
    canvas: Canvas,
    layout: LedLayout,
    indices: Sequence[int],
    per_led: bool,
    brightness: int,
) -> list[ColorSample]:
    """Read and brightness-scale colors for the active LEDs.

    Args:
        canvas: Host canvas to sample from.
        layout: LED layout supplying grid positions.
        indices: Active protocol indices, in send order.
        per_led: One color per LED if True, otherwise the average of all
            valid samples replicated to every active index.
        brightness: Brightness percent applied to every channel.

    Returns:
        The samples to send. Empty if the canvas had no color for any LED,
        which means there is nothing to send this frame.
    """
    if per_led:
        samples = []
        for index in indices:
            color = _read(canvas, layout, index)
            if color is None:
                continue
            samples.append(
                ColorSample(
                    index,
                    scale_channel(color[0], brightness),
                    scale_channel(color[1], brightness),
                    scale_channel(color[2], brightness),
                )
            )
        return samples

    r = g = b = 0
    count = 0
    for index in indices:
        color = _read(canvas, layout, index)
        if color is None:
            continue
        r += color[0]
        g += color[1]
        b += color[2]
        count += 1

    if count == 0:
        return []

    avg = (
        scale_channel(r / count, brightness),
        scale_channel(g / count, brightness),
        scale_channel(b / count, brightness),
    )
    return [ColorSample(index, *avg) for index in indices]


def average_color(samples: Iterable[ColorSample]) -> tuple[int, int, int]:
    """Rounded mean of already-scaled samples. Black if there are none."""
    r = g = b = 0
    count = 0
    for sample in samples:
        r += sample.r
        g += sample.g
        b += sample.b
        count += 1
    if count == 0:
        return (0, 0, 0)
    return (
        int(r / count + 0.5),
        int(g / count + 0.5),
        int(b / count + 0.5),
    )
