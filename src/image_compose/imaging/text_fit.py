from __future__ import annotations

import logging
from typing import Literal

from image_compose.engine.base import RasterEngine, Resource
from image_compose.fonts import FontSpec

logger = logging.getLogger(__name__)

FitStrategy = Literal["bisect", "linear"]

DEFAULT_MAX_FIT_SIZE = 4096


def _measured_width(engine: RasterEngine, resource: Resource, text: str, font: FontSpec) -> float:
    width, _ = engine.measure_text(resource, text, font)
    return width


def _fit_linear(
    engine: RasterEngine,
    resource: Resource,
    text: str,
    font: FontSpec,
    target_width: float,
    max_size: int,
) -> FontSpec:
    size = 0
    width = 0.0
    while width <= target_width:
        if size > max_size:
            return _capped(font, text, max_size)
        font = font.with_size(size)
        width = _measured_width(engine, resource, text, font)
        size += 1
    return font


def _fit_bisect(
    engine: RasterEngine,
    resource: Resource,
    text: str,
    font: FontSpec,
    target_width: float,
    max_size: int,
) -> FontSpec:
    def exceeds(size: int) -> bool:
        return _measured_width(engine, resource, text, font.with_size(size)) > target_width

    if exceeds(0):
        return font.with_size(0)

    # Grow the upper bound until it overshoots, then narrow down to the first overshooting size
    low, high = 0, 1
    while not exceeds(high):
        if high >= max_size:
            return _capped(font, text, max_size)
        low, high = high, min(high * 2, max_size)

    while high - low > 1:
        middle = (low + high) // 2
        if exceeds(middle):
            high = middle
        else:
            low = middle
    return font.with_size(high)


def _capped(font: FontSpec, text: str, max_size: int) -> FontSpec:
    logger.warning("Text %r never exceeded the target width; stopping at font size %d", text, max_size)
    return font.with_size(max_size)


def fit_font_size(
    engine: RasterEngine,
    resource: Resource,
    text: str,
    font: FontSpec,
    target_width: float,
    strategy: FitStrategy = "bisect",
    max_size: int = DEFAULT_MAX_FIT_SIZE,
) -> FontSpec:
    """Return *font* resized to the smallest size whose rendered *text* is wider than *target_width*.

    The result overshoots by one step: the size just below it is the largest
    one that still fits.  ``"linear"`` walks sizes from 0 upwards, one metric
    call per size; ``"bisect"`` gives the same answer for width that grows
    with size, using a logarithmic number of metric calls.

    A negative *target_width* returns *font* as given, without measuring
    anything.  The caller's *font* is never modified.
    """
    if target_width < 0:
        return font

    if strategy == "linear":
        fitted = _fit_linear(engine, resource, text, font, target_width, max_size)
    elif strategy == "bisect":
        fitted = _fit_bisect(engine, resource, text, font, target_width, max_size)
    else:
        raise ValueError(f"Unknown fit strategy: {strategy}")

    logger.debug("Fitted %r to width %s with font size %d", text, target_width, fitted.size)
    return fitted
