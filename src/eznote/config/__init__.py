"""Configuration management for the eznote pipeline.

Resolve-once, freeze-then-flow:
- ResolvedConfig: post-resolution configuration with audit metadata
- FrozenConfig: immutable configuration handed to components
- SourceMap: audit tracking of configuration value origins
"""

from .api import resolve_config
from .audit import SourceTracker
from .schema import EznoteSettings
from .scope import config_override, config_scope, get_ambient_resolved_config
from .types import ConfigOrigin, FrozenConfig, ResolvedConfig, SourceMap

__all__ = [
    "ConfigOrigin",
    "EznoteSettings",
    "FrozenConfig",
    "ResolvedConfig",
    "SourceMap",
    "SourceTracker",
    "config_override",
    "config_scope",
    "get_ambient_resolved_config",
    "resolve_config",
]
