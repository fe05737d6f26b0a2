from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from image_compose.fonts import FontSpec

# Opaque pixel buffer owned by a concrete engine (a ``PIL.Image.Image`` for PillowEngine)
Resource = Any


@dataclass(frozen=True, slots=True)
class ImageInfo:
    width: int
    height: int
    mime: str | None = None
    format: str | None = None


class PixelCell(Protocol):
    """One pixel of a buffer being scanned; ``alpha`` is normalized to 0..1."""

    @property
    def alpha(self) -> float: ...

    @alpha.setter
    def alpha(self, value: float) -> None: ...


class RasterEngine(ABC):
    """Primitive raster operations the image facade is built on.

    Operations that change pixel data either mutate *resource* in place
    (``composite_over``, ``draw_text``, writes through ``pixel_rows``) or
    return the transformed resource (``resize``, ``crop``, ...), which the
    caller must keep instead of the old one.
    """

    @abstractmethod
    def create_canvas(self, width: int, height: int, background: str) -> Resource:
        raise NotImplementedError

    @abstractmethod
    def decode(self, source: Path | bytes) -> Resource:
        raise NotImplementedError

    @abstractmethod
    def read_info(self, path: Path) -> ImageInfo:
        raise NotImplementedError

    @abstractmethod
    def geometry(self, resource: Resource) -> tuple[int, int]:
        raise NotImplementedError

    @abstractmethod
    def copy(self, resource: Resource) -> Resource:
        raise NotImplementedError

    @abstractmethod
    def resize(self, resource: Resource, width: int, height: int, best_fit: bool = False) -> Resource:
        raise NotImplementedError

    @abstractmethod
    def thumbnail(self, resource: Resource, width: int, height: int, crop: bool = False) -> Resource:
        raise NotImplementedError

    @abstractmethod
    def crop(self, resource: Resource, width: int, height: int, x: int, y: int) -> Resource:
        raise NotImplementedError

    @abstractmethod
    def rotate(self, resource: Resource, degrees: float, background: str) -> Resource:
        raise NotImplementedError

    @abstractmethod
    def composite_over(self, destination: Resource, overlay: Resource, x: float, y: float) -> None:
        raise NotImplementedError

    @abstractmethod
    def measure_text(self, resource: Resource, text: str, font: FontSpec) -> tuple[float, float]:
        raise NotImplementedError

    @abstractmethod
    def draw_text(self, resource: Resource, text: str, x: float, y: float, angle: float, font: FontSpec) -> None:
        raise NotImplementedError

    @abstractmethod
    def encode(self, resource: Resource, image_format: str, quality: int | None = None) -> bytes:
        raise NotImplementedError

    @abstractmethod
    def write(self, resource: Resource, path: Path, image_format: str | None = None, quality: int | None = None) -> None:
        raise NotImplementedError

    @abstractmethod
    def pixel_rows(self, resource: Resource) -> Iterator[Iterable[PixelCell]]:
        raise NotImplementedError
