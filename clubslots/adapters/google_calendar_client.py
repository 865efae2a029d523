"""
Google Calendar v3 REST client for fetching events and writing bookings.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import pendulum
import requests
from pendulum import DateTime

from ..domain.exceptions import ProviderError, provider_error_from_status
from ..domain.models import TimeRange
from ..services.protocols import EventsPage

logger = logging.getLogger(__name__)


class GoogleCalendarClient:
    """
    Client for Google Calendar API calendar operations.

    Blocking HTTP calls run in a worker thread so the services can await
    them page by page.
    """

    API_ENDPOINT = "https://www.googleapis.com/calendar/v3"
    MAX_RESULTS = 2500

    def __init__(self, access_token: str, session: Optional[requests.Session] = None, timeout: int = 30):
        """
        Initialize the Google Calendar client.

        Args:
            access_token: Valid Google OAuth access token
            session: Optional requests session (useful for tests)
            timeout: Per-request timeout in seconds
        """
        self.access_token = access_token
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }

    async def list_events(
        self,
        calendar_id: str,
        time_min: Optional[DateTime] = None,
        time_max: Optional[DateTime] = None,
        page_token: Optional[str] = None,
        private_extended_property: Optional[str] = None,
    ) -> EventsPage:
        """
        Get one page of events, with recurring events expanded into instances.
        """
        params: Dict[str, Any] = {
            "singleEvents": "true",
            "orderBy": "startTime",
            "maxResults": self.MAX_RESULTS,
        }
        if time_min is not None:
            params["timeMin"] = time_min.to_iso8601_string()
        if time_max is not None:
            params["timeMax"] = time_max.to_iso8601_string()
        if page_token:
            params["pageToken"] = page_token
        if private_extended_property:
            params["privateExtendedProperty"] = private_extended_property

        data = await self._call("GET", f"/calendars/{_quote(calendar_id)}/events", params=params)
        return EventsPage(
            items=data.get("items", []),
            next_page_token=data.get("nextPageToken"),
        )

    async def query_free_busy(
        self,
        calendar_id: str,
        time_min: DateTime,
        time_max: DateTime,
        timezone: str,
    ) -> List[TimeRange]:
        """
        Get busy ranges for a calendar from the freeBusy endpoint.

        Response format:
        {
            "calendars": {
                "club@example.com": {
                    "busy": [{"start": "...", "end": "..."}],
                    "errors": [{"domain": "...", "reason": "..."}]
                }
            }
        }
        """
        payload = {
            "timeMin": time_min.to_iso8601_string(),
            "timeMax": time_max.to_iso8601_string(),
            "timeZone": timezone,
            "items": [{"id": calendar_id}],
        }
        data = await self._call("POST", "/freeBusy", json=payload)

        calendar = data.get("calendars", {}).get(calendar_id, {})
        errors = calendar.get("errors") or []
        if errors:
            reason = errors[0].get("reason", "unknown")
            raise ProviderError(f"Free/busy unavailable for calendar {calendar_id}: {reason}")

        busy: List[TimeRange] = []
        for item in calendar.get("busy", []):
            try:
                busy.append(
                    TimeRange(start=pendulum.parse(item["start"]), end=pendulum.parse(item["end"]))
                )
            except (KeyError, ValueError) as exc:
                logger.warning("Could not parse busy period %s: %s", item, exc)
        return busy

    async def insert_event(
        self,
        calendar_id: str,
        body: Dict[str, Any],
        send_updates: str = "all",
    ) -> Dict[str, Any]:
        return await self._call(
            "POST",
            f"/calendars/{_quote(calendar_id)}/events",
            params={"sendUpdates": send_updates},
            json=body,
        )

    async def patch_event(
        self,
        calendar_id: str,
        event_id: str,
        body: Dict[str, Any],
        send_updates: str = "all",
        etag: Optional[str] = None,
    ) -> Dict[str, Any]:
        return await self._call(
            "PATCH",
            f"/calendars/{_quote(calendar_id)}/events/{_quote(event_id)}",
            params={"sendUpdates": send_updates},
            json=body,
            extra_headers={"If-Match": etag} if etag else None,
        )

    async def delete_event(
        self,
        calendar_id: str,
        event_id: str,
        send_updates: str = "all",
        etag: Optional[str] = None,
    ) -> None:
        await self._call(
            "DELETE",
            f"/calendars/{_quote(calendar_id)}/events/{_quote(event_id)}",
            params={"sendUpdates": send_updates},
            extra_headers={"If-Match": etag} if etag else None,
        )

    async def get_calendar(self, calendar_id: str) -> Dict[str, Any]:
        return await self._call("GET", f"/calendars/{_quote(calendar_id)}")

    async def list_calendars(self) -> List[Dict[str, Any]]:
        """List calendars visible to the authenticated identity."""
        calendars: List[Dict[str, Any]] = []
        page_token: Optional[str] = None

        while True:
            params = {"pageToken": page_token} if page_token else None
            data = await self._call("GET", "/users/me/calendarList", params=params)
            for item in data.get("items", []):
                calendars.append(
                    {
                        "id": item.get("id"),
                        "summary": item.get("summary"),
                        "primary": bool(item.get("primary")),
                        "timeZone": item.get("timeZone"),
                    }
                )
            page_token = data.get("nextPageToken")
            if not page_token:
                return calendars

    async def _call(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        return await asyncio.to_thread(self._request, method, path, **kwargs)

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        extra_headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """
        Perform one API request.

        Raises:
            ProviderError: If the request fails or the API answers with an error
        """
        headers = dict(self.headers)
        if extra_headers:
            headers.update(extra_headers)

        try:
            response = self.session.request(
                method,
                f"{self.API_ENDPOINT}{path}",
                headers=headers,
                params=params,
                json=json,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as exc:
            raise ProviderError(f"Failed to reach Google Calendar: {exc}") from exc

        if response.status_code >= 400:
            logger.error(
                "Google Calendar %s %s failed with status %s: %s",
                method,
                path,
                response.status_code,
                response.text[:500],
            )
            raise provider_error_from_status(response.status_code, _error_reason(response))

        if response.status_code == 204 or not response.content:
            return {}
        return response.json()


def _quote(value: str) -> str:
    return quote(value, safe="")


def _error_reason(response: requests.Response) -> Optional[str]:
    """Pull the short reason out of a Google error body, never the full payload."""
    try:
        body = response.json()
    except ValueError:
        return None
    error = body.get("error") if isinstance(body, dict) else None
    if not isinstance(error, dict):
        return None

    errors = error.get("errors") or []
    if errors and errors[0].get("reason"):
        return errors[0]["reason"]
    return error.get("status") or error.get("message")
