from __future__ import annotations

from typing import Any

import pytest

from eventcal import __main__ as launcher
from eventcal.settings import AppSettings


@pytest.fixture
def uvicorn_calls(monkeypatch: pytest.MonkeyPatch, settings: AppSettings) -> list[tuple[str, dict[str, Any]]]:
    calls: list[tuple[str, dict[str, Any]]] = []

    def _fake_run(app: str, **kwargs: Any) -> None:
        calls.append((app, kwargs))

    monkeypatch.setattr(launcher.uvicorn, "run", _fake_run)
    monkeypatch.setattr(launcher, "load_settings", lambda: settings)
    return calls


def test_service_uses_configured_port(uvicorn_calls) -> None:
    launcher.main(["service"])
    app, kwargs = uvicorn_calls[0]
    assert app == "eventcal.service:create_app"
    assert kwargs["factory"] is True
    assert kwargs["port"] == 5006
    assert kwargs["host"] == "127.0.0.1"


def test_ui_accepts_overrides(uvicorn_calls) -> None:
    launcher.main(["ui", "--host", "0.0.0.0", "--port", "9000"])
    app, kwargs = uvicorn_calls[0]
    assert app == "eventcal.main:create_app"
    assert kwargs["host"] == "0.0.0.0"
    assert kwargs["port"] == 9000


def test_unknown_component_exits() -> None:
    with pytest.raises(SystemExit):
        launcher.main(["worker"])
