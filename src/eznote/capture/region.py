"""Region cropping for screenshot insertions.

Converts a user-drawn rectangle in CSS pixels into a crop of the captured
viewport raster. The raster is in physical pixels, so the rectangle is
scaled by the device pixel ratio and then clamped to the raster bounds.
"""

from __future__ import annotations

import base64
import binascii
import io
import logging
import math

from PIL import Image, UnidentifiedImageError

from eznote.core.exceptions import CaptureError
from eznote.core.types import CapturedAsset, CaptureRegion

logger = logging.getLogger(__name__)

# CSS px -> pt, then the extra shrink the document applies to screenshots
_PX_TO_PT = 72 / 96
_SNIP_SHRINK = 0.75


def _round_half_up(value: float) -> int:
    # round() uses banker's rounding; pixel edges must round .5 upward
    return math.floor(value + 0.5)


def compute_source_rect(
    region: CaptureRegion, raster_width: int, raster_height: int
) -> tuple[int, int, int, int]:
    """Return ``(sx, sy, sw, sh)`` in raster pixels, clamped to the raster.

    The result always satisfies ``0 <= sx < raster_width``,
    ``0 <= sy < raster_height``, ``sw, sh >= 1`` and
    ``sx + sw <= raster_width``, ``sy + sh <= raster_height``.
    """
    if raster_width < 1 or raster_height < 1:
        raise CaptureError(f"Raster has no pixels ({raster_width}x{raster_height})")

    scale = region.dpr
    sx = max(0, _round_half_up(region.x * scale))
    sy = max(0, _round_half_up(region.y * scale))
    sw = max(1, _round_half_up(region.width * scale))
    sh = max(1, _round_half_up(region.height * scale))

    sx = min(sx, raster_width - 1)
    sy = min(sy, raster_height - 1)
    sw = min(sw, raster_width - sx)
    sh = min(sh, raster_height - sy)
    return sx, sy, sw, sh


def decode_data_url(data_url: str) -> bytes:
    """Decode a ``data:<mime>;base64,<payload>`` URL into raw bytes."""
    header, sep, payload = data_url.partition(",")
    if not sep or not header.startswith("data:") or ";base64" not in header:
        raise CaptureError("Viewport capture is not a base64 data URL")
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise CaptureError(f"Viewport capture is not valid base64: {e}") from e


def crop_region(raster: bytes | str, region: CaptureRegion) -> CapturedAsset:
    """Crop a full-viewport raster to ``region`` and encode the result as PNG.

    Args:
        raster: Encoded image bytes, or a base64 data URL as produced by a
            browser tab capture.
        region: Selection rectangle in CSS pixels with its device pixel ratio.

    Returns:
        A PNG `CapturedAsset` whose dimensions are both at least 1px.

    Raises:
        CaptureError: If the raster cannot be decoded or encoded.
    """
    data = decode_data_url(raster) if isinstance(raster, str) else raster
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            sx, sy, sw, sh = compute_source_rect(region, img.width, img.height)
            cropped = img.crop((sx, sy, sx + sw, sy + sh))
        buffer = io.BytesIO()
        cropped.save(buffer, format="PNG")
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        raise CaptureError(f"Could not process the captured image: {e}") from e

    logger.debug("Cropped %dx%d at (%d, %d) from viewport raster", sw, sh, sx, sy)
    return CapturedAsset(data=buffer.getvalue(), width=sw, height=sh)


def asset_size_in_points(asset: CapturedAsset) -> tuple[int, int]:
    """Size at which a screenshot is embedded, in points."""
    width_pt = max(1, _round_half_up(asset.width * _PX_TO_PT * _SNIP_SHRINK))
    height_pt = max(1, _round_half_up(asset.height * _PX_TO_PT * _SNIP_SHRINK))
    return width_pt, height_pt
