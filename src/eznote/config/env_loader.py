"""Environment variable configuration loading.

This module handles loading configuration from environment variables with
the EZNOTE_ prefix, including optional .env file support and type coercion.
"""

import os
from pathlib import Path
from typing import Any

from dotenv import dotenv_values
from pydantic import ValidationError

from .schema import FIELD_ORDER, EznoteSettings

ENV_PREFIX = "EZNOTE_"


class EnvironmentConfigLoader:
    """Loads configuration from EZNOTE_* environment variables.

    Values from an optional .env file are used only where the process
    environment does not already define the variable.
    """

    def load_env_config(self, env_file: str | Path | None = None) -> dict[str, Any]:
        """Load configuration from environment variables.

        Args:
            env_file: Optional path to a .env file read before the environment.

        Returns:
            Dictionary of configuration values found in the environment.
            Only includes fields that are actually set (not defaults).

        Raises:
            FileNotFoundError: If ``env_file`` does not exist.
            ValueError: If environment variables contain invalid values.
        """
        raw: dict[str, str] = {}
        if env_file is not None:
            env_path = Path(env_file)
            if not env_path.exists():
                raise FileNotFoundError(f"Environment file not found: {env_path}")
            for key, value in dotenv_values(env_path).items():
                if value is not None:
                    raw[key.upper()] = value
        for key, value in os.environ.items():
            raw[key.upper()] = value

        env_values = {
            field: raw[f"{ENV_PREFIX}{field.upper()}"]
            for field in FIELD_ORDER
            if f"{ENV_PREFIX}{field.upper()}" in raw
        }
        if not env_values:
            return {}

        try:
            settings = EznoteSettings.model_validate(env_values)
        except ValidationError as e:
            env_var_list = [f"{ENV_PREFIX}{f.upper()}" for f in env_values]
            raise ValueError(
                f"Invalid environment variable values: {', '.join(env_var_list)}. "
                f"Error: {e}"
            ) from e
        return {field: getattr(settings, field) for field in env_values}
