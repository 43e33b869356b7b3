"""Calendar / conferencing service integration client.

Creates and deletes the calendar event (with its video join link) that backs
a booked class. The service is opaque to us: we only send event details and
keep the returned event id and join link.
"""

from __future__ import annotations

from datetime import datetime
import logging
from typing import Any, cast
import uuid

import httpx
from pydantic import SecretStr

logger = logging.getLogger(__name__)


class CalendarError(RuntimeError):
    """Raised when the calendar service responds with an error or is unreachable."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        *,
        details: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details


class CalendarClient:
    """HTTP client for the calendar service REST API."""

    def __init__(
        self,
        *,
        base_url: str,
        api_token: str | SecretStr | None = None,
        timeout: float = 10.0,
    ) -> None:
        if isinstance(api_token, SecretStr):
            api_token = api_token.get_secret_value()
        self._api_token = api_token or ""
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        url = f"{self._base_url}/{path.lstrip('/')}"
        headers = {"Content-Type": "application/json"}
        if self._api_token:
            headers["Authorization"] = f"Bearer {self._api_token}"

        try:
            with httpx.Client(timeout=self._timeout) as client:
                response = client.request(method, url, headers=headers, json=json_body)
        except httpx.TransportError as exc:
            logger.error("Calendar API unreachable for %s %s: %s", method, path, exc)
            raise CalendarError(message=f"Calendar API unreachable: {exc}") from exc

        if response.status_code >= 400:
            try:
                parsed_body = response.json()
                error_body = parsed_body if isinstance(parsed_body, dict) else {}
            except ValueError:
                error_body = {}
            message = error_body.get("message") or error_body.get("error") or response.text
            logger.error(
                "Calendar API error %s for %s %s: %s",
                response.status_code,
                method,
                path,
                response.text[:500],
            )
            raise CalendarError(
                message=message or f"HTTP {response.status_code}",
                status_code=response.status_code,
                details=error_body.get("details"),
            )

        if response.status_code == 204 or not response.content:
            return {}
        return cast(dict[str, Any], response.json())

    def create_event(
        self,
        *,
        summary: str,
        start: datetime,
        end: datetime,
        attendee_ids: list[str],
        description: str | None = None,
    ) -> dict[str, Any]:
        """Create an event with a conferencing link; returns the raw API payload."""
        body: dict[str, Any] = {
            "summary": summary,
            "start": start.isoformat(),
            "end": end.isoformat(),
            "attendees": attendee_ids,
            "conference": True,
        }
        if description:
            body["description"] = description
        return self._request("POST", "events", json_body=body)

    def delete_event(self, event_id: str) -> None:
        """Delete an event. A 404 means it is already gone."""
        try:
            self._request("DELETE", f"events/{event_id}")
        except CalendarError as e:
            if e.status_code == 404:
                logger.info("Calendar event %s already deleted", event_id)
                return
            raise


class FakeCalendarClient:
    """In-memory stub for testing/non-production environments."""

    def __init__(self, **kwargs: Any) -> None:
        self.calls: list[dict[str, Any]] = []
        self.events: dict[str, dict[str, Any]] = {}
        self._errors: dict[str, CalendarError] = {}

    def set_error(self, method: str, error: CalendarError) -> None:
        """Inject a method-specific error for deterministic failure testing."""
        self._errors[method] = error

    def clear_errors(self) -> None:
        self._errors.clear()

    def _raise_if_injected(self, method: str) -> None:
        error = self._errors.get(method)
        if error is not None:
            raise error

    def create_event(self, *, summary: str, **kwargs: Any) -> dict[str, Any]:
        self.calls.append({"method": "create_event", "summary": summary, **kwargs})
        self._raise_if_injected("create_event")
        event_id = f"fake_event_{uuid.uuid4().hex[:12]}"
        self.events[event_id] = {"summary": summary, **kwargs}
        return {"id": event_id, "join_link": f"https://meet.example.com/{event_id}"}

    def delete_event(self, event_id: str) -> None:
        self.calls.append({"method": "delete_event", "event_id": event_id})
        self._raise_if_injected("delete_event")
        self.events.pop(event_id, None)
