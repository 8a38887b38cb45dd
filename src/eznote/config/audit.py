"""Configuration audit and source tracking.

This module provides the SourceMap system for tracking where each configuration
value originated.
"""

from typing import Any

from .types import ConfigOrigin, SourceMap


class SourceTracker:
    """Tracks the origin of configuration values during resolution.

    This class builds up a SourceMap as configuration is resolved from
    multiple sources, ensuring audit-grade tracking of where each value
    came from.
    """

    def __init__(self) -> None:
        """Initialize an empty source tracker."""
        self._origins: dict[str, ConfigOrigin] = {}

    def set_origin(self, field: str, origin: ConfigOrigin) -> None:
        """Record the origin of a configuration field."""
        self._origins[field] = origin

    def set_multiple(self, fields: dict[str, Any], origin: ConfigOrigin) -> None:
        """Record the origin for multiple fields at once."""
        for field in fields:
            self._origins[field] = origin

    def get_source_map(self) -> SourceMap:
        """Get the current source map.

        Returns:
            A copy of the mapping of field names to their origins.
        """
        return dict(self._origins)
