from __future__ import annotations

import copy
import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from image_compose.engine.base import RasterEngine, Resource
from image_compose.engine.pillow_engine import PillowEngine
from image_compose.exceptions import EmptyImageError, ImageNotFoundError
from image_compose.fonts import FontSpec
from image_compose.geometry import Anchor, placement_coordinates
from image_compose.imaging.compositor import Compositor
from image_compose.imaging.text_fit import FitStrategy, fit_font_size
from image_compose.settings import Settings, load_settings

logger = logging.getLogger(__name__)


def _target_size(width: int, height: int) -> tuple[int, int] | None:
    return (width, height) if width and height else None


class ComposableImage:
    """Stateful wrapper around one raster engine resource.

    ``width``/``height`` always describe the current resource, except after
    :meth:`crop`, which records the requested size as given.
    """

    def __init__(
        self,
        path: str | os.PathLike | None = None,
        engine: RasterEngine | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or load_settings()
        self.engine = engine or PillowEngine(fonts_dir=self.settings.fonts_dir)
        self._resource: Resource | None = None
        self._compositor = Compositor(self.engine)

        self.width = 0
        self.height = 0
        self.background: str | None = None
        self.format: str | None = None
        self.source_path: Path | None = None
        self.mime: str | None = None

        if path is not None:
            self.load(path)

    def __copy__(self) -> ComposableImage:
        clone = ComposableImage.__new__(ComposableImage)
        clone.__dict__.update(self.__dict__)
        clone._compositor = Compositor(self.engine)
        if self._resource is not None:
            clone._resource = self.engine.copy(self._resource)
        return clone

    def copy(self) -> ComposableImage:
        return copy.copy(self)

    def create_new(self, width: int, height: int, background: str = "white") -> None:
        """Replace the current resource with a blank canvas.  No format is set."""
        self.width = width
        self.height = height
        self.background = background
        self._resource = self.engine.create_canvas(width, height, background)

    def load(self, path: str | os.PathLike) -> ComposableImage:
        image_path = Path(path)
        if not image_path.is_file():
            raise ImageNotFoundError(image_path)

        self.source_path = image_path
        self.load_image_info()
        self._resource = self.engine.decode(image_path)
        logger.info("Loaded %s (%dx%d, %s)", image_path, self.width, self.height, self.mime)
        return self

    def load_image_info(self) -> None:
        """Read width, height and mime type of ``source_path`` from the file header."""
        if self.source_path is None or not self.source_path.is_file():
            raise ImageNotFoundError(self.source_path)

        info = self.engine.read_info(self.source_path)
        self.mime = info.mime
        self.width = info.width
        self.height = info.height
        if info.format:
            self.format = info.format.lower()

    @contextmanager
    def borrow_resource(self) -> Iterator[Resource]:
        """Lend the engine resource for one ``with`` block.  Borrowers must not modify it."""
        if self._resource is None:
            raise EmptyImageError("You are trying to use an empty image as a source.")
        yield self._resource

    def _sync_geometry(self) -> None:
        self.width, self.height = self.engine.geometry(self._resource)

    def _require_resource(self, action: str) -> Resource:
        if self.is_blank() or self._resource is None:
            raise EmptyImageError(f"You are trying to {action} an empty image.")
        return self._resource

    def resize(self, width: int, height: int, best_fit: bool = True) -> None:
        """Resize the image.

        With *best_fit* the image is scaled proportionally to fit inside
        ``width`` x ``height``; otherwise it is forced to exactly that size.
        """
        resource = self._require_resource("resize")
        self._resource = self.engine.resize(resource, width, height, best_fit=best_fit)
        self._sync_geometry()

    def crop(self, width: int, height: int, x: int, y: int) -> None:
        resource = self._require_resource("crop")
        self.width = width
        self.height = height
        self._resource = self.engine.crop(resource, width, height, x, y)

    def thumbnail(self, width: int, height: int, crop: bool = False) -> None:
        """Shrink to a thumbnail: center-cropped to the exact size when *crop*, best fit otherwise."""
        resource = self._require_resource("create a thumbnail of")
        self._resource = self.engine.thumbnail(resource, width, height, crop=crop)
        self._sync_geometry()

    def rotate(self, degrees: float = 90.0, background: str = "transparent") -> None:
        """Rotate clockwise by *degrees*; negative values rotate anti-clockwise.

        The uncovered corners are filled with *background*, which renders as
        black in formats without an alpha channel such as JPEG.
        """
        resource = self._require_resource("rotate")
        self._resource = self.engine.rotate(resource, degrees, background)
        self._sync_geometry()

    def annotate_text(self, text: str, x: float, y: float, angle: float, font: FontSpec) -> None:
        """Write *text* with its baseline starting at ``(x, y)``."""
        self.engine.draw_text(self._require_resource("write on"), text, x, y, angle, font)

    def text_geometry(self, text: str, font: FontSpec) -> tuple[float, float]:
        return self.engine.measure_text(self._require_resource("measure text on"), text, font)

    def fit_font_size(
        self,
        text: str,
        font: FontSpec,
        width: float,
        strategy: FitStrategy | None = None,
    ) -> FontSpec:
        return fit_font_size(
            self.engine,
            self._require_resource("measure text on"),
            text,
            font,
            width,
            strategy=strategy or self.settings.fit_strategy,
            max_size=self.settings.max_fit_size,
        )

    def place_text(self, text: str, anchor: Anchor | str, font: FontSpec, fit_width: float = 0) -> FontSpec:
        """Write *text* at a relative *anchor* position and return the font that was used.

        A positive *fit_width* first grows the font until the text is just wider
        than that width.
        """
        if fit_width > 0:
            font = self.fit_font_size(text, font, fit_width)

        text_size = self.text_geometry(text, font)
        x, y = self.placement_coordinates(text_size, anchor)
        self.engine.draw_text(self._resource, text, x, y + font.size, 0, font)
        return font

    def placement_coordinates(
        self,
        overlay_size: tuple[float, float],
        anchor: Anchor | str = Anchor.TOP_LEFT,
    ) -> tuple[float, float]:
        container_size = self.engine.geometry(self._require_resource("place onto"))
        return placement_coordinates(container_size, overlay_size, anchor)

    def composite_image(
        self,
        image: object,
        x: float,
        y: float,
        width: int = 0,
        height: int = 0,
        transparency: float = 0,
    ) -> None:
        """Place *image* (a path, encoded bytes or another ``ComposableImage``) at ``(x, y)``.

        *transparency* goes from 0, fully opaque, to 100, fully transparent.  It
        is applied pixel by pixel, so it costs more on large overlays.
        """
        destination = self._require_resource("composite onto")
        self._compositor.composite(destination, image, x, y, _target_size(width, height), transparency)

    def place_image(
        self,
        image: object,
        anchor: Anchor | str,
        width: int = 0,
        height: int = 0,
        transparency: float = 100,
    ) -> tuple[float, float]:
        """Place *image* at a relative *anchor* position and return the coordinates used."""
        destination = self._require_resource("composite onto")
        return self._compositor.place(destination, image, anchor, _target_size(width, height), transparency)

    def output(self, image_format: str | None = None) -> bytes:
        """Return the encoded image.

        *image_format* overrides the stored format.  When neither is set the
        configured default (``jpg``) is used and stored.
        """
        resource = self._require_resource("output")

        if image_format is not None:
            self.format = image_format
        elif self.format is None:
            self.format = self.settings.default_format

        return self.engine.encode(resource, self.format)

    def write(self, path: str | os.PathLike, jpeg_quality: int = 0) -> None:
        """Save to *path*; the file extension decides the format.

        A positive *jpeg_quality* (1 to 100) is passed to the encoder as its
        quality.  JPEG uses it, and so do other lossy formats such as WebP;
        lossless formats ignore it.
        """
        resource = self._require_resource("write")
        output_path = Path(path)
        self.engine.write(resource, output_path, self.format, jpeg_quality if jpeg_quality > 0 else None)
        logger.info("Saved image to %s", output_path)

    def is_blank(self) -> bool:
        return not self.width

    def get_format(self) -> str | None:
        return self.format

    def set_format(self, image_format: str) -> None:
        """Set the output format.  Required before outputting a new blank canvas in a non-default format."""
        self.format = image_format

    def get_background(self) -> str | None:
        return self.background
