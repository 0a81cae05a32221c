"""HTTP transport — authenticated requests against the database API."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, BinaryIO

import httpx

if TYPE_CHECKING:
    from types import TracebackType

    from koji_database._config import Config
    from koji_database._types import Payload

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class HttpTransport:
    """Thin wrapper over :class:`httpx.Client` that knows the API's headers and base URL.

    Methods return the raw :class:`httpx.Response` after ``raise_for_status()``;
    translating failures is left to the caller, since read and mutation
    operations treat them differently.

    :param config: Credentials sent with every request.
    :param base_url: Scheme and host the API paths are joined to.
    :param timeout: Per-request timeout in seconds.
    :param transport: Optional ``httpx`` transport (e.g. ``httpx.MockTransport``).
    """

    def __init__(
        self,
        config: Config,
        base_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._config = config
        self._base_url = base_url.rstrip("/")
        self._client = httpx.Client(timeout=timeout, transport=transport)

    def __repr__(self) -> str:
        return f"HttpTransport(base_url={self._base_url!r}, project_id={self._config.project_id!r})"

    @property
    def config(self) -> Config:
        return self._config

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def auth_headers(self) -> dict[str, str]:
        return {
            "X-Koji-Project-Id": self._config.project_id,
            "X-Koji-Project-Token": self._config.project_token,
        }

    @property
    def headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json", **self.auth_headers}

    def url_for(self, path: str) -> str:
        """Return the absolute URL for an API path."""
        return f"{self._base_url}{path}"

    def post_json(self, path: str, body: Payload, *, auth_only: bool = False) -> httpx.Response:
        """POST a JSON body.

        :param auth_only: Send only the ``X-Koji-*`` headers.
        :raises httpx.HTTPStatusError: On a non-2xx response.
        :raises httpx.TransportError: If the service cannot be reached.
        """
        url = self.url_for(path)
        log.debug("POST %s", url)
        headers = self.auth_headers if auth_only else self.headers
        response = self._client.post(url, json=body, headers=headers)
        response.raise_for_status()
        return response

    def post_file(
        self,
        path: str,
        content: BinaryIO,
        *,
        filename: str | None = None,
        content_type: str | None = None,
    ) -> httpx.Response:
        """POST ``content`` as the ``file`` field of a multipart form.

        :raises httpx.HTTPStatusError: On a non-2xx response.
        :raises httpx.TransportError: If the service cannot be reached.
        """
        url = self.url_for(path)
        log.debug("POST %s (multipart, filename=%s)", url, filename)
        file_field: Any = (filename, content, content_type) if content_type else (filename, content)
        response = self._client.post(url, files={"file": file_field}, headers=self.auth_headers)
        response.raise_for_status()
        return response

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def __enter__(self) -> HttpTransport:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()


def status_code_of(exc: Exception) -> int | None:
    """Return the HTTP status carried by ``exc``, or ``None`` for non-HTTP failures."""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code
    return None
