from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from image_compose.engine.base import RasterEngine, Resource
from image_compose.exceptions import ImageNotFoundError, UnsupportedOperandError
from image_compose.geometry import Anchor, placement_coordinates

from .alpha import attenuate_opacity

logger = logging.getLogger(__name__)


@runtime_checkable
class BorrowableImage(Protocol):
    """Anything that can lend its engine resource for the duration of a ``with`` block."""

    def borrow_resource(self) -> AbstractContextManager[Resource]: ...


@dataclass(frozen=True, slots=True)
class PathSource:
    path: Path


@dataclass(frozen=True, slots=True)
class BytesSource:
    data: bytes


@dataclass(frozen=True, slots=True)
class HandleSource:
    owner: BorrowableImage


OverlaySource = PathSource | BytesSource | HandleSource


def resolve_source(source: object) -> OverlaySource:
    """Classify a composite source once: a filesystem path, encoded bytes, or a borrowable image."""
    if isinstance(source, (PathSource, BytesSource, HandleSource)):
        return source
    if isinstance(source, (str, os.PathLike)):
        return PathSource(Path(source))
    if isinstance(source, (bytes, bytearray, memoryview)):
        return BytesSource(bytes(source))
    if isinstance(source, BorrowableImage):
        return HandleSource(source)
    raise UnsupportedOperandError(source)


@dataclass(slots=True)
class _Overlay:
    resource: Resource
    borrowed: bool


def _has_target_size(size: tuple[int, int] | None) -> bool:
    return size is not None and bool(size[0]) and bool(size[1])


class Compositor:
    """Places overlay images on a destination resource, optionally resized and faded."""

    def __init__(self, engine: RasterEngine) -> None:
        self.engine = engine

    @contextmanager
    def _open(self, source: OverlaySource, size: tuple[int, int] | None) -> Iterator[_Overlay]:
        if isinstance(source, HandleSource):
            with source.owner.borrow_resource() as resource:
                overlay = _Overlay(resource=resource, borrowed=True)
                if _has_target_size(size):
                    overlay = _Overlay(resource=self.engine.resize(resource, size[0], size[1]), borrowed=False)
                yield overlay
            return

        if isinstance(source, PathSource) and not source.path.is_file():
            raise ImageNotFoundError(source.path)

        target = source.path if isinstance(source, PathSource) else source.data
        overlay = _Overlay(resource=self.engine.decode(target), borrowed=False)
        if _has_target_size(size):
            overlay.resource = self.engine.resize(overlay.resource, size[0], size[1])
        yield overlay

    def _composite_open(
        self,
        destination: Resource,
        overlay: _Overlay,
        x: float,
        y: float,
        transparency: float,
    ) -> None:
        pixels = overlay.resource
        if transparency > 0:
            if overlay.borrowed:
                # Never fade the lender's own pixels
                pixels = self.engine.copy(pixels)
            attenuate_opacity(self.engine, pixels, transparency)

        logger.debug("Compositing overlay at (%s, %s) with transparency %s%%", x, y, transparency)
        self.engine.composite_over(destination, pixels, x, y)

    def composite(
        self,
        destination: Resource,
        source: object,
        x: float,
        y: float,
        size: tuple[int, int] | None = None,
        transparency: float = 0,
    ) -> None:
        """Composite *source* over *destination* with its top-left corner at ``(x, y)``.

        *size* resizes the overlay first when both of its values are non-zero.
        *transparency* is a 0..100 percentage applied pixel by pixel.
        """
        resolved = resolve_source(source)
        with self._open(resolved, size) as overlay:
            self._composite_open(destination, overlay, x, y, transparency)

    def place(
        self,
        destination: Resource,
        source: object,
        anchor: Anchor | str,
        size: tuple[int, int] | None = None,
        transparency: float = 100,
    ) -> tuple[float, float]:
        """Composite *source* at a relative *anchor* position and return the coordinates used.

        The anchor is resolved against the overlay size after the optional resize.
        """
        resolved = resolve_source(source)
        with self._open(resolved, size) as overlay:
            x, y = placement_coordinates(
                self.engine.geometry(destination),
                self.engine.geometry(overlay.resource),
                anchor,
            )
            self._composite_open(destination, overlay, x, y, transparency)
        return x, y
