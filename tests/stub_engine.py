from __future__ import annotations

import copy
from dataclasses import dataclass, field
from pathlib import Path

from image_compose.engine.base import ImageInfo, RasterEngine
from image_compose.fonts import FontSpec


@dataclass
class StubBuffer:
    width: int
    height: int
    alpha: float = 1.0
    # Geometry the engine reports, when it differs from the real size
    reported: tuple[int, int] | None = None
    alphas: list[list[float]] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.alphas:
            self.alphas = [[self.alpha] * self.width for _ in range(self.height)]


class _StubPixel:
    def __init__(self, alphas: list[list[float]], x: int, y: int) -> None:
        self._alphas = alphas
        self._x = x
        self._y = y

    @property
    def alpha(self) -> float:
        return self._alphas[self._y][self._x]

    @alpha.setter
    def alpha(self, value: float) -> None:
        self._alphas[self._y][self._x] = value


class RecordingEngine(RasterEngine):
    """In-memory engine that records every call; text is ``size * glyph_width`` wide per character."""

    def __init__(self, glyph_width: float = 3.0) -> None:
        self.glyph_width = glyph_width
        self.calls: list[tuple] = []
        self.composites: list[dict] = []
        self.measure_calls = 0
        self.scanned_rows = 0
        self.decoded: dict[object, StubBuffer] = {}
        self.infos: dict[Path, ImageInfo] = {}

    def create_canvas(self, width, height, background):
        self.calls.append(("create_canvas", width, height, background))
        return StubBuffer(width, height)

    def decode(self, source):
        self.calls.append(("decode", source))
        key = source if isinstance(source, bytes) else Path(source)
        return copy.deepcopy(self.decoded.get(key, StubBuffer(20, 20)))

    def read_info(self, path):
        self.calls.append(("read_info", path))
        return self.infos.get(Path(path), ImageInfo(width=10, height=10, mime="image/png", format="PNG"))

    def geometry(self, resource):
        return resource.reported or (resource.width, resource.height)

    def copy(self, resource):
        return copy.deepcopy(resource)

    def resize(self, resource, width, height, best_fit=False):
        self.calls.append(("resize", width, height, best_fit))
        fill = resource.alphas[0][0] if resource.alphas else 1.0
        return StubBuffer(width, height, alpha=fill)

    def thumbnail(self, resource, width, height, crop=False):
        self.calls.append(("thumbnail", width, height, crop))
        return StubBuffer(width, height)

    def crop(self, resource, width, height, x, y):
        self.calls.append(("crop", width, height, x, y))
        return StubBuffer(width, height, reported=(width - 1, height - 1))

    def rotate(self, resource, degrees, background):
        self.calls.append(("rotate", degrees, background))
        return StubBuffer(resource.height, resource.width)

    def composite_over(self, destination, overlay, x, y):
        self.composites.append(
            {
                "destination": destination,
                "overlay": overlay,
                "x": x,
                "y": y,
                "alphas": [row[:] for row in overlay.alphas],
            }
        )

    def measure_text(self, resource, text, font: FontSpec):
        self.measure_calls += 1
        return font.size * self.glyph_width * len(text), float(font.size)

    def draw_text(self, resource, text, x, y, angle, font):
        self.calls.append(("draw_text", text, x, y, angle, font))

    def encode(self, resource, image_format, quality=None):
        self.calls.append(("encode", image_format, quality))
        return f"{image_format}:{resource.width}x{resource.height}".encode()

    def write(self, resource, path, image_format=None, quality=None):
        self.calls.append(("write", path, image_format, quality))

    def pixel_rows(self, resource):
        for y in range(resource.height):
            self.scanned_rows += 1
            yield [_StubPixel(resource.alphas, x, y) for x in range(resource.width)]


