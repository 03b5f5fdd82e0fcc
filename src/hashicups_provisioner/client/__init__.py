"""HTTP client for the HashiCups API."""

from hashicups_provisioner.client.errors import (
    CancelledError,
    ClientError,
    DecodeError,
    NotFoundError,
    RemoteError,
    TransportError,
)
from hashicups_provisioner.client.http import HashiCupsClient

__all__ = [
    "CancelledError",
    "ClientError",
    "DecodeError",
    "HashiCupsClient",
    "NotFoundError",
    "RemoteError",
    "TransportError",
]
