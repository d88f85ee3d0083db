from __future__ import annotations

import json
from datetime import date
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from pydantic import ValidationError

from ...domain.models import Event
from .base import EventStoreClientError

DEFAULT_TIMEOUT_SECONDS = 10
USER_AGENT = "eventcal-ui/0.1"


def _error_message(exc: HTTPError) -> str:
    try:
        body = json.loads(exc.read().decode("utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        body = None
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        return body["error"]
    return f"HTTP {exc.code}"


class HttpEventStoreClient:
    def __init__(self, *, base_url: str, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        self._base_url = base_url.strip().rstrip("/")
        self._timeout_seconds = timeout_seconds

    @property
    def base_url(self) -> str:
        return self._base_url

    def _request(self, method: str, path: str, payload: dict[str, Any] | None = None) -> Any:
        url = f"{self._base_url}{path}"
        headers = {"User-Agent": USER_AGENT, "Accept": "application/json"}
        data = None
        if payload is not None:
            data = json.dumps(payload).encode("utf-8")
            headers["Content-Type"] = "application/json"

        request = Request(url, data=data, headers=headers, method=method)
        try:
            with urlopen(request, timeout=self._timeout_seconds) as response:
                raw_body = response.read()
        except HTTPError as exc:
            raise EventStoreClientError(f"{method} {url} failed: {_error_message(exc)}") from exc
        except (URLError, TimeoutError, OSError) as exc:
            raise EventStoreClientError(f"Unable to reach event service at {url}") from exc

        try:
            return json.loads(raw_body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise EventStoreClientError(f"Invalid JSON from {url}") from exc

    def list_events(self) -> list[Event]:
        payload = self._request("GET", "/api/events")
        if not isinstance(payload, list):
            raise EventStoreClientError("Event service returned a non-list event collection")
        try:
            return [Event.model_validate(item) for item in payload]
        except ValidationError as exc:
            raise EventStoreClientError("Event service returned malformed events") from exc

    def create_event(self, *, title: str, event_date: date, color: str) -> Event:
        payload = self._request(
            "POST",
            "/api/events",
            {"title": title, "date": event_date.isoformat(), "color": color},
        )
        try:
            return Event.model_validate(payload)
        except ValidationError as exc:
            raise EventStoreClientError("Event service returned a malformed event") from exc
