"""Configuration scoping for entry-time overrides.

`config_scope()` only affects `resolve_config()` calls made inside the scope.
Once a FrozenConfig has been handed to a component, ambient changes are not
seen by it.
"""

from collections.abc import Generator
from contextlib import contextmanager
import contextvars
from typing import Any

from .types import ResolvedConfig

_ambient_resolved_config: contextvars.ContextVar[ResolvedConfig] = (
    contextvars.ContextVar("eznote_resolved_config")
)


def get_ambient_resolved_config() -> ResolvedConfig | None:
    """Return the configuration set by an enclosing scope, or None."""
    try:
        return _ambient_resolved_config.get()
    except LookupError:
        return None


@contextmanager
def config_scope(config: ResolvedConfig) -> Generator[None]:
    """Temporarily use a different resolved configuration.

    Example:
        base_config = resolve_config()
        with config_scope(base_config.with_overrides(repaint_delay_seconds=0)):
            services = create_services(client, settings)  # resolves the scoped config
    """
    token = _ambient_resolved_config.set(config)
    try:
        yield
    finally:
        _ambient_resolved_config.reset(token)


@contextmanager
def config_override(**overrides: Any) -> Generator[None]:
    """Convenience context manager for programmatic config overrides.

    Example:
        with config_override(heading_label_max=30):
            config = resolve_config()  # heading_label_max == 30
    """
    base_config = get_ambient_resolved_config()
    if base_config is None:
        # Import here to avoid circular dependency at module level
        from .api import resolve_config

        base_config = resolve_config()
    with config_scope(base_config.with_overrides(**overrides)):
        yield
