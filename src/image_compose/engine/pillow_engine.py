from __future__ import annotations

import io
import logging
import math
from collections.abc import Iterator
from functools import lru_cache
from pathlib import Path

from PIL import Image, ImageColor, ImageDraw, ImageFont, ImageOps

from image_compose.exceptions import UndefinedFormatError
from image_compose.fonts import FontSpec
from image_compose.settings import load_settings

from .base import ImageInfo, RasterEngine

logger = logging.getLogger(__name__)

RESIZE_FILTER = Image.Resampling.LANCZOS
ROTATE_FILTER = Image.Resampling.BICUBIC

_TRANSPARENT_NAMES = {"transparent", "none"}
# Formats known to drop alpha; other encoders that reject RGBA are retried as RGB
_NO_ALPHA_FORMATS = {"JPEG", "EPS"}


def _parse_color(color: str) -> tuple[int, int, int, int]:
    if color.strip().lower() in _TRANSPARENT_NAMES:
        return 0, 0, 0, 0
    return ImageColor.getcolor(color, "RGBA")


def _resolve_format(image_format: str) -> str:
    name = image_format.strip().lstrip(".")
    extension_formats = Image.registered_extensions()
    by_extension = extension_formats.get(f".{name.lower()}")
    if by_extension and by_extension in Image.SAVE:
        return by_extension
    if name.upper() in Image.SAVE:
        return name.upper()
    raise UndefinedFormatError(f"Unsupported image format: '{image_format}'")


def _scaled_size(source: tuple[int, int], width: int, height: int) -> tuple[int, int]:
    """Fill in a zero width or height from the source aspect ratio."""
    src_width, src_height = source
    if width and height:
        return width, height
    if width:
        return width, max(1, round(src_height * width / src_width))
    if height:
        return max(1, round(src_width * height / src_height)), height
    return source


@lru_cache(maxsize=128)
def _pick_font(
    fonts_dir: Path,
    family: str | None,
    size: int,
) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Resolve the font for *family* at *size*.

    Search order:
    1. ``fonts_dir / family`` (bundled fonts, or ``IMAGE_COMPOSE_FONTS_DIR``).
    2. System font lookup via Pillow.
    3. Pillow built-in default font at the requested size.
    """
    if family:
        bundled_path = fonts_dir / family
        if bundled_path.exists():
            try:
                return ImageFont.truetype(str(bundled_path), size)
            except OSError:
                pass
        try:
            return ImageFont.truetype(family, size)
        except OSError:
            logger.debug("Font %s not found, using Pillow default font", family)
    return ImageFont.load_default(size=size)


class _PillowPixel:
    __slots__ = ("_pixels", "_x", "_y", "_band")

    def __init__(self, pixels, x: int, y: int, band: int) -> None:
        self._pixels = pixels
        self._x = x
        self._y = y
        self._band = band

    @property
    def alpha(self) -> float:
        return self._pixels[self._x, self._y][self._band] / 255

    @alpha.setter
    def alpha(self, value: float) -> None:
        channels = list(self._pixels[self._x, self._y])
        channels[self._band] = min(255, max(0, round(value * 255)))
        self._pixels[self._x, self._y] = tuple(channels)


class PillowEngine(RasterEngine):
    """Raster engine backed by Pillow.  All resources are RGBA images."""

    def __init__(self, fonts_dir: Path | None = None) -> None:
        if fonts_dir is None:
            fonts_dir = load_settings().fonts_dir
        self.fonts_dir = Path(fonts_dir)

    def create_canvas(self, width: int, height: int, background: str) -> Image.Image:
        return Image.new("RGBA", (width, height), _parse_color(background))

    def decode(self, source: Path | bytes) -> Image.Image:
        if isinstance(source, (bytes, bytearray, memoryview)):
            with Image.open(io.BytesIO(bytes(source))) as image:
                return image.convert("RGBA")
        with Image.open(source) as image:
            return image.convert("RGBA")

    def read_info(self, path: Path) -> ImageInfo:
        with Image.open(path) as image:
            width, height = image.size
            image_format = image.format
            mime = image.get_format_mimetype() if image_format else None
        return ImageInfo(width=width, height=height, mime=mime, format=image_format)

    def geometry(self, resource: Image.Image) -> tuple[int, int]:
        return resource.size

    def copy(self, resource: Image.Image) -> Image.Image:
        return resource.copy()

    def resize(self, resource: Image.Image, width: int, height: int, best_fit: bool = False) -> Image.Image:
        if best_fit and width and height:
            return ImageOps.contain(resource, (width, height), method=RESIZE_FILTER)
        return resource.resize(_scaled_size(resource.size, width, height), RESIZE_FILTER)

    def thumbnail(self, resource: Image.Image, width: int, height: int, crop: bool = False) -> Image.Image:
        if crop:
            # Center-crop to fill the exact target size
            return ImageOps.fit(resource, (width, height), method=RESIZE_FILTER, centering=(0.5, 0.5))
        return ImageOps.contain(resource, (width, height), method=RESIZE_FILTER)

    def crop(self, resource: Image.Image, width: int, height: int, x: int, y: int) -> Image.Image:
        return resource.crop((x, y, x + width, y + height))

    def rotate(self, resource: Image.Image, degrees: float, background: str) -> Image.Image:
        # Pillow rotates counter-clockwise; positive degrees here mean clockwise
        return resource.rotate(-degrees, resample=ROTATE_FILTER, expand=True, fillcolor=_parse_color(background))

    def composite_over(self, destination: Image.Image, overlay: Image.Image, x: float, y: float) -> None:
        # paste() clips negative and overflowing offsets, alpha_composite() does not accept them
        layer = Image.new("RGBA", destination.size, (0, 0, 0, 0))
        layer.paste(overlay.convert("RGBA"), (int(x), int(y)))
        destination.alpha_composite(layer)

    def _font(self, font: FontSpec) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
        return _pick_font(self.fonts_dir, font.family, font.size)

    def measure_text(self, resource: Image.Image, text: str, font: FontSpec) -> tuple[float, float]:
        if font.size <= 0 or not text:
            return 0.0, 0.0
        draw = ImageDraw.Draw(resource)
        left, top, right, bottom = draw.textbbox((0, 0), text, font=self._font(font), align=font.alignment)
        return float(right - left), float(bottom - top)

    def draw_text(self, resource: Image.Image, text: str, x: float, y: float, angle: float, font: FontSpec) -> None:
        """Draw *text* with its baseline starting at ``(x, y)``, rotated clockwise by *angle* degrees."""
        if font.size <= 0 or not text:
            return

        pil_font = self._font(font)
        fill = _parse_color(font.color)

        if not angle:
            draw = ImageDraw.Draw(resource)
            draw.text((x, y), text, fill=fill, font=pil_font, anchor="ls", align=font.alignment)
            return

        probe = ImageDraw.Draw(resource)
        left, top, right, bottom = probe.textbbox((0, 0), text, font=pil_font, anchor="ls", align=font.alignment)
        radius = max(math.hypot(px, py) for px in (left, right) for py in (top, bottom))
        pad = 2 * math.ceil(radius) + 1

        width, height = resource.size
        layer = Image.new("RGBA", (width + 2 * pad, height + 2 * pad), (0, 0, 0, 0))
        origin = (x + pad, y + pad)
        ImageDraw.Draw(layer).text(origin, text, fill=fill, font=pil_font, anchor="ls", align=font.alignment)
        rotated = layer.rotate(-angle, resample=ROTATE_FILTER, center=origin)
        resource.alpha_composite(rotated.crop((pad, pad, pad + width, pad + height)))

    def _save(self, resource: Image.Image, target: Path | io.BytesIO, pil_format: str, params: dict) -> None:
        if pil_format in _NO_ALPHA_FORMATS and resource.mode != "RGB":
            resource = resource.convert("RGB")
        try:
            resource.save(target, format=pil_format, **params)
        except (OSError, ValueError):
            # Encoders that reject RGBA get an RGB copy
            if resource.mode == "RGB":
                raise
            logger.debug("%s cannot store mode %s, saving as RGB", pil_format, resource.mode)
            if isinstance(target, io.BytesIO):
                target.seek(0)
                target.truncate()
            try:
                resource.convert("RGB").save(target, format=pil_format, **params)
            except (OSError, ValueError) as exc:
                raise UndefinedFormatError(f"{pil_format} cannot store this image: {exc}") from exc

    def encode(self, resource: Image.Image, image_format: str, quality: int | None = None) -> bytes:
        pil_format = _resolve_format(image_format)
        params = {"quality": quality} if quality else {}
        buffer = io.BytesIO()
        self._save(resource, buffer, pil_format, params)
        return buffer.getvalue()

    def write(
        self,
        resource: Image.Image,
        path: Path,
        image_format: str | None = None,
        quality: int | None = None,
    ) -> None:
        pil_format = Image.registered_extensions().get(path.suffix.lower())
        if pil_format is None or pil_format not in Image.SAVE:
            if not image_format:
                raise UndefinedFormatError(f"Cannot infer an image format from '{path}'")
            pil_format = _resolve_format(image_format)

        params = {"quality": quality} if quality else {}
        path.parent.mkdir(parents=True, exist_ok=True)
        self._save(resource, path, pil_format, params)

    def pixel_rows(self, resource: Image.Image) -> Iterator[list[_PillowPixel]]:
        bands = resource.getbands()
        if "A" not in bands:
            raise ValueError(f"Image mode {resource.mode} has no alpha channel")
        band = bands.index("A")
        pixels = resource.load()
        width, height = resource.size
        for y in range(height):
            yield [_PillowPixel(pixels, x, y, band) for x in range(width)]
