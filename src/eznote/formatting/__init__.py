"""Text formatting for insertion transactions."""

from .formatter import format_caption, format_selection, timestamp_now

__all__ = ["format_caption", "format_selection", "timestamp_now"]
