"""
URL Builder
~~~~~~~~~~~

Builds ``things:///`` URL scheme commands.

Only formatting happens here. Values are percent-encoded and booleans
render as ``true`` / ``false``. Tag lists are joined by commas and
checklist items by newlines. ``None`` is omitted from new items but sent
as an empty value on updates, which clears the field in Things.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

__all__ = [
    "THINGS_URL_SCHEME",
    "build_query_string",
    "build_add_todo_url",
    "build_add_project_url",
    "build_update_url",
    "build_update_project_url",
    "build_complete_url",
    "build_cancel_url",
]

THINGS_URL_SCHEME = "things:///"

# Snapshot field names that differ from the URL parameter names.
_FIELD_ALIASES = {
    "checklist_items": "checklist-items",
    "list_id": "list-id",
    "heading_id": "heading-id",
    "area_id": "area-id",
    "creation_date": "creation-date",
    "completion_date": "completion-date",
}

_NEWLINE_JOINED = {"checklist-items", "titles"}


def _encode(value: Any, key: str, clear_none: bool = False) -> str | None:
    if value is None:
        return "" if clear_none else None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list | tuple):
        sep = "\n" if key in _NEWLINE_JOINED else ","
        value = sep.join(str(v) for v in value)
    return quote(str(value), safe="")


def build_query_string(params: Mapping[str, Any], clear_none: bool = False) -> str:
    """
    Encode a parameter mapping.

    ``None`` values are skipped, or rendered as an empty value when
    ``clear_none`` is set.
    """
    entries: list[str] = []
    for raw_key, value in params.items():
        key = _FIELD_ALIASES.get(raw_key, raw_key)
        encoded = _encode(value, key, clear_none)
        if encoded is None:
            continue
        entries.append(f"{key}={encoded}")
    return "&".join(entries)


def _build(command: str, params: Mapping[str, Any], clear_none: bool = False) -> str:
    return f"{THINGS_URL_SCHEME}{command}?{build_query_string(params, clear_none)}"


def build_add_todo_url(title: str, **fields: Any) -> str:
    """Build an ``add`` URL for a new to-do."""
    return _build("add", {"title": title, **fields})


def build_add_project_url(title: str, **fields: Any) -> str:
    """Build an ``add-project`` URL for a new project."""
    return _build("add-project", {"title": title, **fields})


def build_update_url(
    item_id: str,
    auth_token: str,
    fields: Mapping[str, Any] | None = None,
) -> str:
    """Build an ``update`` URL for an existing to-do. Requires the auth token."""
    params: dict[str, Any] = {"auth-token": auth_token, "id": item_id}
    params.update(fields or {})
    return _build("update", params, clear_none=True)


def build_update_project_url(
    item_id: str,
    auth_token: str,
    fields: Mapping[str, Any] | None = None,
) -> str:
    """Build an ``update-project`` URL for an existing project."""
    params: dict[str, Any] = {"auth-token": auth_token, "id": item_id}
    params.update(fields or {})
    return _build("update-project", params, clear_none=True)


def build_complete_url(item_id: str, auth_token: str, project: bool = False) -> str:
    """Build a URL that marks an item completed."""
    if project:
        return build_update_project_url(item_id, auth_token, {"completed": True})
    return build_update_url(item_id, auth_token, {"completed": True})


def build_cancel_url(item_id: str, auth_token: str, project: bool = False) -> str:
    """Build a URL that marks an item canceled."""
    if project:
        return build_update_project_url(item_id, auth_token, {"canceled": True})
    return build_update_url(item_id, auth_token, {"canceled": True})
