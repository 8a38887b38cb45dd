"""Core configuration data types for the eznote pipeline.

This module defines the fundamental data structures used throughout the configuration
system, following the resolve-once, freeze-then-flow pattern.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Literal, NamedTuple

# --- Source Tracking Types ---

ConfigOrigin = Literal["programmatic", "env", "default"]
SourceMap = Mapping[str, ConfigOrigin]

# --- Core Configuration Data ---


class ResolvedConfig(NamedTuple):
    """Configuration after resolution from all sources, before freezing.

    This represents the validated, merged result of combining programmatic
    overrides, environment variables and defaults. It includes audit metadata
    for observability.
    """

    docs_api_base: str
    drive_api_base: str
    drive_upload_url: str
    snips_folder_name: str
    snip_filename_prefix: str
    min_region_px: float
    repaint_delay_seconds: float
    heading_label_max: int
    http_timeout_seconds: float | None
    telemetry_enabled: bool

    # Audit metadata - tracks where each field value came from
    origin: SourceMap

    def to_frozen(self) -> "FrozenConfig":
        """Convert to the immutable configuration used in the pipeline.

        Returns:
            FrozenConfig with the same field values, excluding audit metadata.
        """
        values = self._asdict()
        values.pop("origin")
        return FrozenConfig(**values)

    def with_overrides(self, **overrides: object) -> "ResolvedConfig":
        """Create a new ResolvedConfig with programmatic overrides applied.

        Args:
            **overrides: Field values to override. Unknown fields are ignored.

        Returns:
            New ResolvedConfig with overrides applied and origin updated.
        """
        new_values = self._asdict()
        new_origin = dict(self.origin)

        for field, value in overrides.items():
            if field in new_values and field != "origin":
                new_values[field] = value
                new_origin[field] = "programmatic"

        new_values["origin"] = new_origin
        return ResolvedConfig(**new_values)

    def audit(self) -> str:
        """Generate a report showing the origin of each field.

        Returns:
            One ``field: origin:value`` line per field, in declaration order.
        """
        lines = []
        for field in self._fields:
            if field == "origin" or field not in self.origin:
                continue
            origin = self.origin[field]
            value = getattr(self, field)
            if origin == "env":
                lines.append(f"{field}: env:EZNOTE_{field.upper()}={value}")
            else:
                lines.append(f"{field}: {origin}:{value}")
        return "\n".join(lines)


@dataclass(frozen=True)
class FrozenConfig:
    """Immutable configuration handed to pipeline components.

    Components receive this object and access fields as attributes. Any
    attempt to modify it raises an exception.
    """

    docs_api_base: str
    drive_api_base: str
    drive_upload_url: str
    snips_folder_name: str
    snip_filename_prefix: str
    min_region_px: float
    repaint_delay_seconds: float
    heading_label_max: int
    http_timeout_seconds: float | None
    telemetry_enabled: bool
