"""Client error types."""

from __future__ import annotations


class ClientError(Exception):
    """Base exception for remote API failures."""

    retryable: bool = False


class TransportError(ClientError):
    """Raised when the request never got a response (connection refused, reset, DNS)."""

    retryable = True


class CancelledError(ClientError):
    """Raised when the caller's timeout or cancel event aborted a request."""


class RemoteError(ClientError):
    """Raised when the API answered with a non-2xx status."""

    def __init__(self, status: int, body: str, *, method: str = "", path: str = "") -> None:
        self.status = status
        self.body = body
        self.method = method
        self.path = path
        where = f" {method} {path}" if method else ""
        super().__init__(f"HTTP {status}{where}: {body}")


class NotFoundError(RemoteError):
    """Raised when the remote object does not exist (HTTP 404)."""

    def __init__(self, body: str = "", *, method: str = "", path: str = "") -> None:
        super().__init__(404, body, method=method, path=path)


class DecodeError(ClientError):
    """Raised when a response body is not the JSON shape the API documents."""
