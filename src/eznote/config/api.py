"""Public API for the configuration system."""

from pathlib import Path
from typing import Any

from .resolver import ConfigResolver
from .scope import get_ambient_resolved_config
from .types import ResolvedConfig

# Global resolver instance for efficient reuse
_resolver = ConfigResolver()


def resolve_config(
    programmatic: dict[str, Any] | None = None,
    *,
    use_env_file: str | Path | None = None,
) -> ResolvedConfig:
    """Resolve configuration from all sources with proper precedence.

    Precedence: Programmatic > Environment > Defaults. Inside a
    `config_scope`, the scoped configuration replaces environment and
    defaults, and programmatic overrides are applied on top of it.

    Args:
        programmatic: Dictionary of programmatic overrides (highest precedence).
            Only known configuration fields are used.
        use_env_file: Optional path to a .env file read before the environment.

    Returns:
        ResolvedConfig with merged values and source tracking for audit.

    Raises:
        ConfigurationError: If validation fails or the environment holds
            invalid values.

    Example:
        config = resolve_config({"repaint_delay_seconds": 0.2})
        frozen = config.to_frozen()
    """
    ambient_config = get_ambient_resolved_config()
    if ambient_config is not None:
        if programmatic:
            return ambient_config.with_overrides(**programmatic)
        return ambient_config
    return _resolver.resolve(programmatic=programmatic, use_env_file=use_env_file)
