from __future__ import annotations

import logging

from image_compose.engine.base import RasterEngine, Resource

logger = logging.getLogger(__name__)


def attenuate_opacity(engine: RasterEngine, resource: Resource, transparency: float) -> Resource:
    """Lower the alpha of every pixel of *resource* in place.

    *transparency* is a percentage, 0 for unchanged and 100 for fully
    transparent.  Each normalized alpha ``a`` becomes ``max(a - transparency / 100, 0)``,
    so pixels that were already see-through stay see-through instead of being
    scaled, which is what makes this usable on images with transparent
    backgrounds.  At 100 or above the buffer is returned untouched without a scan.

    Every pixel is visited, so the cost grows with the image area.
    """
    alpha = transparency / 100

    if alpha >= 1:
        return resource

    scanned = 0
    for row in engine.pixel_rows(resource):
        for pixel in row:
            current = pixel.alpha
            pixel.alpha = current - alpha if current - alpha > 0 else 0.0
            scanned += 1

    logger.debug("Attenuated opacity by %s%% across %d pixels", transparency, scanned)
    return resource
