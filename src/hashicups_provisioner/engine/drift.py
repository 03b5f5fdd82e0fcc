"""Structural drift detection between two attribute snapshots."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from hashicups_provisioner.engine.types import FieldDrift
from hashicups_provisioner.resources.fields import project

_MISSING = object()


def _join(prefix: str, key: str) -> str:
    return f"{prefix}.{key}" if prefix else key


def _walk(path: str, old: Any, new: Any, out: list[FieldDrift]) -> None:
    if isinstance(old, Mapping) and isinstance(new, Mapping):
        keys = [*old, *(k for k in new if k not in old)]
        for k in keys:
            _walk(_join(path, str(k)), old.get(k, _MISSING), new.get(k, _MISSING), out)
        return
    if isinstance(old, list) and isinstance(new, list):
        for i in range(max(len(old), len(new))):
            o = old[i] if i < len(old) else _MISSING
            n = new[i] if i < len(new) else _MISSING
            _walk(f"{path}[{i}]", o, n, out)
        return
    if old != new:
        out.append(
            FieldDrift(
                path=path,
                old_value=None if old is _MISSING else old,
                new_value=None if new is _MISSING else new,
            )
        )


def detect(
    observed: Mapping[str, Any],
    fresh: Mapping[str, Any],
    fields: Iterable[str],
) -> list[FieldDrift]:
    """Diff two attribute trees over *fields* (normally the user fields).

    Returns one entry per differing leaf, in a stable order: keys of
    *observed* first, then keys only present in *fresh*, list indices
    ascending. An empty list means no drift.
    """
    fields = tuple(fields)
    out: list[FieldDrift] = []
    _walk("", project(observed, fields), project(fresh, fields), out)
    return out
