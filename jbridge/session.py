"""Authenticated connection to a Jira server over its REST v2 API."""

import logging
from typing import IO, Any

import httpx

from jbridge.errors import InvalidUrl, RemoteCallFailed
from jbridge.settings import TrackerSettings

logger = logging.getLogger(__name__)

API_PREFIX = "/rest/api/2"
TIMEOUT = 30


def _jira_error_details(response: httpx.Response) -> str:
    """Collect errorMessages/errors from a Jira error body, if it has any."""
    try:
        body = response.json()
    except ValueError:
        return ""
    if not isinstance(body, dict):
        return ""
    details = list(body.get("errorMessages") or [])
    details += [f"{field}: {message}" for field, message in (body.get("errors") or {}).items()]
    return "; ".join(details)


class JiraSession:
    """One basic-auth httpx client bound to a set of tracker settings.

    Opening a session never touches the network; credentials are first sent
    with the first real call.
    """

    def __init__(self, client: httpx.Client, settings: TrackerSettings) -> None:
        self._client = client
        self.settings = settings

    @classmethod
    def open(cls, settings: TrackerSettings) -> "JiraSession":
        try:
            url = httpx.URL(settings.url)
        except (httpx.InvalidURL, TypeError, ValueError) as exc:
            logger.error("%s (%s)", InvalidUrl.default_message, exc)
            raise InvalidUrl() from exc
        if url.scheme not in ("http", "https") or not url.host:
            logger.error("%s (%r)", InvalidUrl.default_message, settings.url)
            raise InvalidUrl()

        client = httpx.Client(
            base_url=url,
            auth=httpx.BasicAuth(settings.login, settings.password.get_secret_value()),
            headers={"Accept": "application/json"},
            timeout=TIMEOUT,
        )
        return cls(client, settings)

    @property
    def closed(self) -> bool:
        return self._client.is_closed

    def _send(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("%s %s failed: %s", method, url, exc)
            raise RemoteCallFailed(str(exc) or type(exc).__name__) from exc

        if response.status_code == 401:
            message = f"Jira returned 401 for {method} {url}. Run jbridge configure to update the login and password."
            logger.error(message)
            raise RemoteCallFailed(message)
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            message = f"{exc} {_jira_error_details(response)}".strip()
            logger.error("%s %s failed: %s", method, url, message)
            raise RemoteCallFailed(message) from exc

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            logger.error("%s %s returned a non-JSON body", method, url)
            raise RemoteCallFailed(f"Unexpected non-JSON response from {response.url}") from exc

    def get(self, path: str, params: dict | None = None) -> Any:
        return self._send("GET", f"{API_PREFIX}{path}", params=params or {})

    def post(self, path: str, body: dict) -> Any:
        return self._send("POST", f"{API_PREFIX}{path}", json=body)

    def upload(self, url: str, file_name: str, content: IO[bytes] | bytes) -> Any:
        """Post content as a multipart attachment to an issue's attachments URL."""
        return self._send(
            "POST",
            url,
            files={"file": (file_name, content)},
            headers={"X-Atlassian-Token": "no-check"},
        )

    def close(self) -> None:
        self._client.close()
