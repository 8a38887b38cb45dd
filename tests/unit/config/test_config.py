"""Resolution precedence, validation and scoping of the configuration system."""

import dataclasses

import pytest

from eznote.config import (
    FrozenConfig,
    config_override,
    config_scope,
    get_ambient_resolved_config,
    resolve_config,
)
from eznote.core.exceptions import ConfigurationError

pytestmark = pytest.mark.unit


def test_defaults():
    config = resolve_config()

    assert config.docs_api_base == "https://docs.googleapis.com/v1/documents"
    assert config.snips_folder_name == "Research Snips"
    assert config.repaint_delay_seconds == 0.12
    assert config.min_region_px == 5
    assert config.heading_label_max == 60
    assert config.http_timeout_seconds is None
    assert config.telemetry_enabled is False
    assert set(config.origin.values()) == {"default"}


def test_environment_overrides_defaults(monkeypatch):
    monkeypatch.setenv("EZNOTE_SNIPS_FOLDER_NAME", "Clippings")
    monkeypatch.setenv("EZNOTE_TELEMETRY_ENABLED", "true")

    config = resolve_config()

    assert config.snips_folder_name == "Clippings"
    assert config.telemetry_enabled is True
    assert config.origin["snips_folder_name"] == "env"
    assert config.origin["heading_label_max"] == "default"


def test_programmatic_overrides_environment(monkeypatch):
    monkeypatch.setenv("EZNOTE_HEADING_LABEL_MAX", "30")

    config = resolve_config({"heading_label_max": 20, "not_a_field": 1})

    assert config.heading_label_max == 20
    assert config.origin["heading_label_max"] == "programmatic"
    assert "not_a_field" not in config.origin


def test_env_file_fills_unset_variables(monkeypatch, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text(
        "EZNOTE_SNIP_FILENAME_PREFIX=clip\nEZNOTE_SNIPS_FOLDER_NAME=FromFile\n"
    )
    monkeypatch.setenv("EZNOTE_SNIPS_FOLDER_NAME", "FromEnv")

    config = resolve_config(use_env_file=env_file)

    assert config.snip_filename_prefix == "clip"
    assert config.snips_folder_name == "FromEnv"


def test_missing_env_file_is_configuration_error(tmp_path):
    with pytest.raises(ConfigurationError, match="not found"):
        resolve_config(use_env_file=tmp_path / "nope.env")


def test_invalid_environment_value(monkeypatch):
    monkeypatch.setenv("EZNOTE_HEADING_LABEL_MAX", "lots")

    with pytest.raises(ConfigurationError, match="EZNOTE_HEADING_LABEL_MAX"):
        resolve_config()


@pytest.mark.parametrize(
    "overrides",
    [
        {"docs_api_base": "ftp://docs.example"},
        {"http_timeout_seconds": 0},
        {"repaint_delay_seconds": -1},
        {"snips_folder_name": ""},
    ],
)
def test_invalid_programmatic_values(overrides):
    with pytest.raises(ConfigurationError):
        resolve_config(overrides)


def test_endpoint_trailing_slash_is_stripped():
    config = resolve_config({"drive_api_base": "https://drive.example/files/"})

    assert config.drive_api_base == "https://drive.example/files"


def test_frozen_config_is_immutable():
    frozen = resolve_config().to_frozen()

    assert isinstance(frozen, FrozenConfig)
    with pytest.raises(dataclasses.FrozenInstanceError):
        frozen.heading_label_max = 10  # type: ignore[misc]


def test_audit_lists_origins(monkeypatch):
    monkeypatch.setenv("EZNOTE_MIN_REGION_PX", "8")

    report = resolve_config({"heading_label_max": 40}).audit()

    assert "min_region_px: env:EZNOTE_MIN_REGION_PX=8.0" in report
    assert "heading_label_max: programmatic:40" in report
    assert "snips_folder_name: default:Research Snips" in report


def test_scope_replaces_resolution():
    scoped = resolve_config({"snips_folder_name": "Scoped"})

    with config_scope(scoped):
        assert resolve_config().snips_folder_name == "Scoped"
        assert resolve_config({"heading_label_max": 9}).heading_label_max == 9

    assert get_ambient_resolved_config() is None
    assert resolve_config().snips_folder_name == "Research Snips"


def test_override_nests():
    with config_override(heading_label_max=30):
        with config_override(min_region_px=2):
            config = resolve_config()
            assert (config.heading_label_max, config.min_region_px) == (30, 2)
        assert resolve_config().min_region_px == 5


def test_with_overrides_ignores_unknown_fields():
    base = resolve_config()

    updated = base.with_overrides(origin={}, bogus=1, min_region_px=1)

    assert updated.min_region_px == 1
    assert updated.origin["min_region_px"] == "programmatic"
    assert "bogus" not in updated.origin
