"""Thin synchronous client for the HashiCups REST API."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Self

import requests

from hashicups_provisioner.client.errors import (
    CancelledError,
    DecodeError,
    NotFoundError,
    RemoteError,
    TransportError,
)

if TYPE_CHECKING:
    import threading
    from types import TracebackType

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class HashiCupsClient:
    """JSON-over-HTTP access to coffees and orders.

    Every method performs exactly one logical API call (plus a one-time
    sign-in when credentials are configured). Nothing is retried here;
    retry policy belongs to the caller.

    Args:
        host: Base URL, e.g. ``http://localhost:19090``.
        username: Optional user for ``/signin``. Orders require it.
        password: Password for ``username``.
        timeout: Per-request timeout in seconds. Expiry raises
            :class:`CancelledError`.
        cancel_event: Optional event; once set, further requests are refused
            with :class:`CancelledError` before anything is sent.
        session: Injected ``requests.Session`` (mainly for tests).
    """

    def __init__(
        self,
        host: str,
        *,
        username: str | None = None,
        password: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        cancel_event: threading.Event | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self._host = host.rstrip("/")
        self._username = username
        self._password = password
        self._timeout = timeout
        self._cancel_event = cancel_event
        self._session = session if session is not None else requests.Session()
        self._token: str | None = None

    @property
    def host(self) -> str:
        return self._host

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # -- transport -------------------------------------------------------

    def _send(
        self,
        method: str,
        path: str,
        *,
        payload: Any = None,
        headers: dict[str, str] | None = None,
    ) -> requests.Response:
        if self._cancel_event is not None and self._cancel_event.is_set():
            raise CancelledError(f"{method} {path} cancelled before dispatch")

        logger.debug("%s %s", method, path)
        try:
            response = self._session.request(
                method,
                f"{self._host}{path}",
                json=payload,
                headers=headers,
                timeout=self._timeout,
            )
        except requests.Timeout as exc:
            raise CancelledError(f"{method} {path} timed out after {self._timeout}s") from exc
        except requests.RequestException as exc:
            raise TransportError(f"{method} {path} failed: {exc}") from exc

        if response.status_code == 404:
            raise NotFoundError(response.text, method=method, path=path)
        if not 200 <= response.status_code < 300:
            raise RemoteError(response.status_code, response.text, method=method, path=path)
        return response

    @staticmethod
    def _decode(response: requests.Response, expected: type) -> Any:
        try:
            body = response.json()
        except ValueError as exc:
            raise DecodeError(f"Response is not valid JSON: {response.text[:200]!r}") from exc
        if not isinstance(body, expected):
            raise DecodeError(
                f"Expected a JSON {expected.__name__}, got {type(body).__name__}"
            )
        return body

    def _auth_headers(self) -> dict[str, str]:
        if self._username is None or self._password is None:
            return {}
        if self._token is None:
            self.sign_in()
        assert self._token is not None
        return {"Authorization": self._token}

    def _call(
        self, method: str, path: str, *, payload: Any = None, expected: type | None = dict
    ) -> Any:
        response = self._send(method, path, payload=payload, headers=self._auth_headers())
        if expected is None:
            return response.text
        return self._decode(response, expected)

    # -- auth ------------------------------------------------------------

    def sign_in(self) -> str:
        """Exchange username/password for an API token."""
        if self._username is None or self._password is None:
            raise ValueError("sign_in requires both username and password")
        response = self._send(
            "POST",
            "/signin",
            payload={"username": self._username, "password": self._password},
        )
        body = self._decode(response, dict)
        token = body.get("token")
        if not isinstance(token, str) or not token:
            raise DecodeError("Sign-in response did not contain a token")
        self._token = token
        logger.debug("Signed in to %s as %s", self._host, self._username)
        return token

    # -- coffees ---------------------------------------------------------

    def get_coffees(self) -> list[dict[str, Any]]:
        return self._call("GET", "/coffees", expected=list)

    # -- orders ----------------------------------------------------------

    def create_order(self, items: list[dict[str, Any]]) -> dict[str, Any]:
        return self._call("POST", "/orders", payload=items)

    def get_order(self, order_id: int) -> dict[str, Any]:
        return self._call("GET", f"/orders/{order_id}")

    def update_order(self, order_id: int, items: list[dict[str, Any]]) -> dict[str, Any]:
        return self._call("PUT", f"/orders/{order_id}", payload=items)

    def delete_order(self, order_id: int) -> None:
        self._call("DELETE", f"/orders/{order_id}", expected=None)
