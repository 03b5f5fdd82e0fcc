"""Observed state of synchronized entities."""

import contextlib
import hashlib
import json
import logging
import os
import tempfile
import uuid
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


def _canonical_json(obj: Any) -> str:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), default=str)


def compute_attributes_hash(attrs: Mapping[str, Any]) -> str:
    """Compute a stable hash for a resource's stored attributes."""
    payload = _canonical_json(attrs)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def _now() -> datetime:
    return datetime.now(UTC)


class ResourceInstance(BaseModel):
    """Last-synchronized snapshot of one remote entity.

    Attributes:
        address: Unique resource address (e.g., "hashicups_order.morning")
        resource_type: Type of the resource (e.g., "hashicups_order")
        name: Resource name (e.g., "morning")
        id: Identity key assigned by the API; ``None`` only for data sources
        attributes: User-specified and server-computed values
        attributes_hash: SHA256 hash of ``attributes``
        created_at: When the entity was created
        synced_at: When ``attributes`` were last taken from the API
    """

    address: str
    resource_type: str
    name: str
    id: str | None = None
    attributes: dict[str, Any] = Field(default_factory=dict)
    attributes_hash: str = ""
    created_at: datetime = Field(default_factory=_now)
    synced_at: datetime = Field(default_factory=_now)


class State(BaseModel):
    """State file kept by the host between reconciliation passes.

    Attributes:
        version: State file format version
        serial: Incremented on every write
        lineage: Random identifier fixed at creation
        resources: Mapping of resource addresses to instances
    """

    version: int = 1
    serial: int = 0
    lineage: str = Field(default_factory=lambda: str(uuid.uuid4()))
    resources: dict[str, ResourceInstance] = Field(default_factory=dict)

    def save(self, path: Path) -> None:
        """Write state atomically, keeping the previous file as ``.backup``."""
        path.parent.mkdir(parents=True, exist_ok=True)

        backup_path = Path(str(path) + ".backup")
        with contextlib.suppress(FileNotFoundError):
            backup_path.write_bytes(path.read_bytes())

        content = json.dumps(self.model_dump(mode="json"), indent=2, sort_keys=True) + "\n"

        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            tmp_path.replace(path)
        finally:
            with contextlib.suppress(FileNotFoundError):
                tmp_path.unlink()
        logger.debug("State saved: serial=%d path=%s", self.serial, path)

    @classmethod
    def load(cls, path: Path) -> "State":
        return cls.model_validate_json(path.read_text(encoding="utf-8"))

    @classmethod
    def load_or_create(cls, path: Path) -> "State":
        if path.exists():
            state = cls.load(path)
            logger.debug("State loaded from %s: serial=%d", path, state.serial)
            return state
        logger.debug("No state at %s, starting empty", path)
        return cls()
