"""HashiCups Provider - Connection configuration for a HashiCups API."""

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Self

from pydantic import BaseModel, ConfigDict, SecretStr

from hashicups_provisioner.client.http import DEFAULT_TIMEOUT, HashiCupsClient


class PasswordAuth(BaseModel):
    """Username/password credentials exchanged for a token at ``/signin``."""

    username: str
    password: SecretStr


class HashiCupsProvider(BaseModel):
    """Connection configuration for a HashiCups API.

    Connections are scoped: :meth:`connect` opens a client for one operation
    and closes it afterwards. An injected client (``from_client``) is shared
    and left open, which is what tests want.

    Examples:
        provider = HashiCupsProvider(
            host="http://localhost:19090",
            auth=PasswordAuth(username="education", password="test123"),
        )
        with provider.connect() as client:
            client.get_coffees()
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    host: str | None = None
    auth: PasswordAuth | None = None
    timeout: float = DEFAULT_TIMEOUT

    # Injected client (for testing)
    _injected_client: HashiCupsClient | None = None

    @classmethod
    def from_client(cls, client: HashiCupsClient) -> Self:
        """Create a provider with an injected client.

        Args:
            client: A pre-configured client, or a mock of one
        """
        provider = cls.model_construct()
        provider._injected_client = client
        return provider

    def new_client(self, *, cancel_event: threading.Event | None = None) -> HashiCupsClient:
        """Build a fresh client from host/auth."""
        if self.host is None:
            raise ValueError(
                "Either provide host, or use HashiCupsProvider.from_client() to inject a client"
            )
        username = password = None
        if self.auth is not None:
            username = self.auth.username
            password = self.auth.password.get_secret_value()
        return HashiCupsClient(
            self.host,
            username=username,
            password=password,
            timeout=self.timeout,
            cancel_event=cancel_event,
        )

    @contextmanager
    def connect(self, *, cancel_event: threading.Event | None = None) -> Iterator[HashiCupsClient]:
        """Yield a client for the duration of one operation."""
        if self._injected_client is not None:
            yield self._injected_client
            return
        client = self.new_client(cancel_event=cancel_event)
        try:
            yield client
        finally:
            client.close()
