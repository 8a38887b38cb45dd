"""Screenshot capture: region cropping and the snip flow."""

from .region import asset_size_in_points, compute_source_rect, crop_region
from .session import INACTIVE, Overlay, OverlayState, SnipSession, ViewportCapturer

__all__ = [
    "INACTIVE",
    "Overlay",
    "OverlayState",
    "SnipSession",
    "ViewportCapturer",
    "asset_size_in_points",
    "compute_source_rect",
    "crop_region",
]
