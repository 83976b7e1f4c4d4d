"""HTTP client for the remote sales service.

The client only moves JSON across the wire and maps failures onto
:class:`RemoteError`. Shaping the responses into records is the job of
:mod:`naxos_pos.data_manager`.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

import requests

from . import log


FALLBACK_ERROR_MESSAGE = "Request failed"


class RemoteError(Exception):
    """Raised when the sales service answers with a non-2xx status."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NetworkError(RemoteError):
    """Raised when the request never produced a response (transport, timeout)."""


class SalesApiClient:
    """Thin wrapper around the sales service REST endpoints."""

    MENU_PATH = "/api/public/menu"
    SALES_PATH = "/api/sales"
    FULL_SALE_PATH = "/api/sales/full"

    def __init__(
        self,
        base_url: str,
        *,
        token: Optional[str] = None,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def request(self, method: str, path: str, *, payload: Optional[Mapping[str, Any]] = None) -> Any:
        """Send one request and return the decoded JSON body.

        Bodies that are not JSON decode to an empty dict, matching how the
        service reports errors with empty bodies.

        Args:
            method: HTTP verb.
            path: Path relative to ``base_url``.
            payload: Optional JSON body.

        Returns:
            The decoded response body.

        Raises:
            NetworkError: If the request fails before a response arrives.
            RemoteError: If the response status is not 2xx. The message comes
                from the body's ``message`` or ``error`` field when present.
        """

        url = f"{self.base_url}{path}"
        log.debug("%s %s", method, url)
        try:
            response = self.session.request(
                method,
                url,
                json=payload,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            log.error("Request %s %s failed: %s", method, url, exc)
            raise NetworkError(f"Could not reach sales service: {exc}") from exc

        try:
            data = response.json()
        except ValueError:
            data = {}

        if not response.ok:
            message = FALLBACK_ERROR_MESSAGE
            if isinstance(data, Mapping):
                message = data.get("message") or data.get("error") or FALLBACK_ERROR_MESSAGE
            log.error("Request %s %s returned %s: %s", method, url, response.status_code, message)
            raise RemoteError(str(message), status_code=response.status_code)

        return data

    def fetch_menu(self) -> Any:
        return self.request("GET", self.MENU_PATH)

    def list_sales(self) -> Any:
        return self.request("GET", self.SALES_PATH)

    def get_sale(self, sale_id: int) -> Any:
        return self.request("GET", f"{self.SALES_PATH}/{sale_id}")

    def create_full_sale(self, payload: Mapping[str, Any]) -> Any:
        return self.request("POST", self.FULL_SALE_PATH, payload=payload)

    def update_sale(self, sale_id: int, payload: Mapping[str, Any]) -> Any:
        return self.request("PUT", f"{self.SALES_PATH}/{sale_id}", payload=payload)

    def delete_sale(self, sale_id: int) -> Any:
        return self.request("DELETE", f"{self.SALES_PATH}/{sale_id}")


__all__ = ["FALLBACK_ERROR_MESSAGE", "NetworkError", "RemoteError", "SalesApiClient"]
