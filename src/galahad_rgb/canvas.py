"""Pillow-backed canvases for driving the pump without a host engine.

The layout grid is tiny (10x8), so images are resized to the grid once
and then sampled cell by cell.
"""

from pathlib import Path

from PIL import Image, ImageColor, ImageSequence

from galahad_rgb.constants import GRID_HEIGHT, GRID_WIDTH
from galahad_rgb.exceptions import ImageError

GRID_SIZE = (GRID_WIDTH, GRID_HEIGHT)

# Minimum frame time for animations (~60fps)
MIN_FRAME_DURATION = 0.016


class ImageCanvas:
    """Canvas that samples an RGB image scaled to the layout grid."""

    def __init__(self, image: Image.Image) -> None:
        self._image = self._fit(image)

    @staticmethod
    def _fit(image: Image.Image) -> Image.Image:
        if image.mode != "RGB":
            image = image.convert("RGB")
        if image.size != GRID_SIZE:
            image = image.resize(GRID_SIZE)
        return image

    @property
    def image(self) -> Image.Image:
        return self._image

    def set_image(self, image: Image.Image) -> None:
        """Replace the sampled image (e.g. the next animation frame)."""
        self._image = self._fit(image)

    def sample(self, x: int, y: int) -> tuple[int, int, int] | None:
        """Return the color at a grid cell, or None outside the grid."""
        if not (0 <= x < GRID_WIDTH and 0 <= y < GRID_HEIGHT):
            return None
        r, g, b = self._image.getpixel((x, y))[:3]
        return (r, g, b)


def solid_canvas(color: str | tuple[int, int, int]) -> ImageCanvas:
    """Create a canvas filled with one color.

    Args:
        color: An (r, g, b) tuple or any color string Pillow understands,
            e.g. "red", "#ff8800" or "rgb(0, 128, 255)".

    Raises:
        ValueError: If the color string is not recognized.
    """
    if isinstance(color, str):
        color = ImageColor.getrgb(color)[:3]
    return ImageCanvas(Image.new("RGB", GRID_SIZE, color))


def load_frames(image_path: Path) -> tuple[list[Image.Image], float]:
    """Load and resize every frame of an image file to the layout grid.

    Args:
        image_path: Path to the image or GIF file.

    Returns:
        A tuple of (list of RGB frames, seconds between frames).

    Raises:
        ImageError: If the image cannot be opened or processed.
    """
    try:
        with Image.open(image_path) as im:
            frames = [
                frame.convert("RGB").resize(GRID_SIZE)
                for frame in ImageSequence.Iterator(im)
            ]

            if "duration" in im.info:
                frame_time = max(im.info["duration"] / 1000.0, MIN_FRAME_DURATION)
            else:
                # Static image: one frame per second is plenty
                frame_time = 1.0

            return frames, frame_time
    except FileNotFoundError as e:
        msg = f"Image file not found: {image_path}"
        raise ImageError(msg) from e
    except Image.DecompressionBombError as e:
        msg = f"Image too large (potential decompression bomb): {image_path}"
        raise ImageError(msg) from e
    except OSError as e:
        msg = f"Failed to open image: {image_path}"
        raise ImageError(msg) from e
