from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from eventcal.settings import EnvSettings, EventcalYamlSettings, build_settings


def _write_config(tmp_path: Path, text: str) -> Path:
    config_path = tmp_path / "eventcal.yaml"
    config_path.write_text(text, encoding="utf-8")
    return config_path


def test_build_settings_reads_yaml(tmp_path: Path) -> None:
    config_path = _write_config(
        tmp_path,
        """
ui:
  title: "  Family Calendar "
service:
  base_url: "http://events.internal:8080/"
  port: 8080
events:
  default_color: "#EA4335"
  palette: ["#4285F4", "#ea4335", "#ea4335"]
""",
    )
    env = EnvSettings(
        eventcal_config_path=config_path,
        eventcal_data_path=tmp_path / "events.json",
        eventcal_timezone="America/New_York",
    )

    settings = build_settings(env)

    assert settings.yaml.ui.title == "Family Calendar"
    assert settings.yaml.service.base_url == "http://events.internal:8080"
    assert settings.yaml.service.port == 8080
    assert settings.yaml.events.default_color == "#ea4335"
    assert settings.yaml.events.palette == ["#4285f4", "#ea4335"]
    assert settings.data_path == tmp_path / "events.json"
    assert settings.timezone.key == "America/New_York"


def test_empty_yaml_uses_defaults(tmp_path: Path) -> None:
    env = EnvSettings(eventcal_config_path=_write_config(tmp_path, ""))
    settings = build_settings(env)
    assert settings.yaml.service.port == 5006
    assert settings.yaml.events.default_color == "#4285f4"
    assert len(settings.yaml.events.palette) == 6


def test_missing_config_file_is_an_error(tmp_path: Path) -> None:
    env = EnvSettings(eventcal_config_path=tmp_path / "nope.yaml")
    with pytest.raises(FileNotFoundError):
        build_settings(env)


def test_non_mapping_yaml_is_an_error(tmp_path: Path) -> None:
    env = EnvSettings(eventcal_config_path=_write_config(tmp_path, "- just\n- a list\n"))
    with pytest.raises(ValueError):
        build_settings(env)


def test_unknown_timezone_is_rejected() -> None:
    with pytest.raises(ValidationError):
        EnvSettings(eventcal_timezone="Mars/Olympus_Mons")


def test_default_color_must_be_in_palette() -> None:
    with pytest.raises(ValidationError):
        EventcalYamlSettings.model_validate(
            {"events": {"default_color": "#00bcd4", "palette": ["#4285f4"]}}
        )


def test_service_url_must_be_absolute() -> None:
    with pytest.raises(ValidationError):
        EventcalYamlSettings.model_validate({"service": {"base_url": "localhost:5006"}})


def test_env_variables_are_read(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EVENTCAL_ENV", "prod")
    monkeypatch.setenv("EVENTCAL_LOG_LEVEL", "WARNING")
    env = EnvSettings()
    assert env.eventcal_env == "prod"
    assert env.eventcal_log_level == "warning"
