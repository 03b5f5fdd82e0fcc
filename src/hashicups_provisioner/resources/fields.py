"""Dotted field paths over attribute trees.

A field path names a leaf in a nested dict/list structure::

    "id"                  -> attrs["id"]
    "items[].quantity"    -> attrs["items"][i]["quantity"] for every i
    "items[].coffee.id"   -> attrs["items"][i]["coffee"]["id"]

Resource types declare their user-specified and server-computed fields as
tuples of such paths, which keeps them statically enumerable.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

EACH = "[]"

FieldTree = dict[str, "FieldTree"]


def split_path(path: str) -> list[str]:
    """Split ``"items[].coffee.id"`` into ``["items", "[]", "coffee", "id"]``."""
    parts: list[str] = []
    for segment in path.split("."):
        depth = 0
        while segment.endswith(EACH):
            segment = segment[: -len(EACH)]
            depth += 1
        if not segment:
            raise ValueError(f"Empty segment in field path: {path!r}")
        parts.append(segment)
        parts.extend([EACH] * depth)
    return parts


def build_tree(paths: Iterable[str]) -> FieldTree:
    """Merge field paths into a prefix tree, preserving declaration order."""
    tree: FieldTree = {}
    for path in paths:
        node = tree
        for part in split_path(path):
            node = node.setdefault(part, {})
    return tree


def _project(value: Any, tree: FieldTree) -> Any:
    if not tree:
        return value
    if EACH in tree:
        if not isinstance(value, list):
            return value
        return [_project(v, tree[EACH]) for v in value]
    if not isinstance(value, Mapping):
        return value
    return {k: _project(value[k], sub) for k, sub in tree.items() if k in value}


def project(attrs: Mapping[str, Any], paths: Iterable[str]) -> dict[str, Any]:
    """Restrict *attrs* to the given field paths.

    Keys absent from *attrs* stay absent. Lists are projected element-wise.
    """
    return _project(dict(attrs), build_tree(paths))
