"""Configuration resolution with precedence handling.

Merges configuration according to the documented precedence order:
Programmatic > Environment > Defaults
"""

from pathlib import Path
from typing import Any

from pydantic import ValidationError

from eznote.core.exceptions import ConfigurationError

from .audit import SourceTracker
from .env_loader import EnvironmentConfigLoader
from .schema import EznoteSettings
from .types import ResolvedConfig


class ConfigResolver:
    """Resolves configuration from multiple sources with proper precedence."""

    def __init__(self) -> None:
        """Initialize the configuration resolver."""
        self.env_loader = EnvironmentConfigLoader()

    def resolve(
        self,
        programmatic: dict[str, Any] | None = None,
        *,
        use_env_file: str | Path | None = None,
    ) -> ResolvedConfig:
        """Resolve configuration from all sources with proper precedence.

        Args:
            programmatic: Programmatic overrides (highest precedence)
            use_env_file: Optional .env file to read

        Returns:
            ResolvedConfig with merged values and source tracking.

        Raises:
            ConfigurationError: If validation fails or the environment is invalid.
        """
        source_tracker = SourceTracker()

        # Step 1: Start with schema defaults. model_construct skips env reading.
        merged_config: dict[str, Any] = EznoteSettings.model_construct().to_dict()
        source_tracker.set_multiple(merged_config, "default")

        # Step 2: Apply environment variables
        try:
            env_config = self.env_loader.load_env_config(env_file=use_env_file)
        except (ValueError, FileNotFoundError) as e:
            raise ConfigurationError(f"Environment configuration error: {e}") from e
        for field, value in env_config.items():
            merged_config[field] = value
            source_tracker.set_origin(field, "env")

        # Step 3: Apply programmatic overrides (highest precedence)
        if programmatic:
            for field, value in programmatic.items():
                if field in merged_config:  # Only override known fields
                    merged_config[field] = value
                    source_tracker.set_origin(field, "programmatic")

        # Step 4: Validate the merged values without re-reading the environment
        try:
            final_config = EznoteSettings.model_validate(merged_config).to_dict()
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed: {e}") from e

        return ResolvedConfig(**final_config, origin=source_tracker.get_source_map())
