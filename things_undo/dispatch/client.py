"""
Things Client
~~~~~~~~~~~~~

High-level command methods on top of the URL executor.

Commands that modify an existing item need the Things auth token. When
none is configured they fail with a descriptive ``DispatchResult``
instead of reaching Things.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, assert_never

from things_undo.core.models import DispatchResult, RollbackAction
from things_undo.core.status import ItemStatus, ItemType, RollbackActionType
from things_undo.dispatch.url_builder import (
    build_add_project_url,
    build_add_todo_url,
    build_cancel_url,
    build_complete_url,
    build_update_project_url,
    build_update_url,
)
from things_undo.dispatch.url_executor import UrlExecutor
from things_undo.exceptions import AuthTokenError

__all__ = ["ThingsClient", "AUTH_REQUIRED_MESSAGE"]

logger = logging.getLogger(__name__)

AUTH_REQUIRED_MESSAGE = (
    "Authentication required. Set dispatch.auth_token in your config, "
    "export THINGS_UNDO_AUTH_TOKEN, or pass --auth-token."
)


class ThingsClient:
    """
    Issues Things commands through a rate-limited ``UrlExecutor``.

    Args:
        executor: The dispatcher every command goes through.
        auth_token: Things URL scheme authorization token.
    """

    def __init__(
        self,
        executor: UrlExecutor | None = None,
        auth_token: str | None = None,
    ) -> None:
        self._executor = executor or UrlExecutor()
        self._auth_token = (auth_token or "").strip() or None

    @property
    def executor(self) -> UrlExecutor:
        return self._executor

    @property
    def has_auth_token(self) -> bool:
        return self._auth_token is not None

    def require_token(self) -> str:
        """
        Return the auth token.

        Raises:
            AuthTokenError: If no token is configured.
        """
        if self._auth_token is None:
            raise AuthTokenError(AUTH_REQUIRED_MESSAGE)
        return self._auth_token

    # ── URL construction ──────────────────────────────────────────────

    def _update_url(
        self, item_id: str, item_type: ItemType, fields: Mapping[str, Any]
    ) -> str:
        token = self.require_token()
        if item_type is ItemType.PROJECT:
            return build_update_project_url(item_id, token, fields)
        return build_update_url(item_id, token, fields)

    def _complete_url(self, item_id: str, item_type: ItemType) -> str:
        return build_complete_url(
            item_id, self.require_token(), project=item_type is ItemType.PROJECT
        )

    def _cancel_url(self, item_id: str, item_type: ItemType) -> str:
        return build_cancel_url(
            item_id, self.require_token(), project=item_type is ItemType.PROJECT
        )

    # ── Sync commands ─────────────────────────────────────────────────

    def add_todo(self, title: str, **fields: Any) -> DispatchResult:
        """Create a to-do. Things does not report the new id."""
        return self._executor.execute(build_add_todo_url(title, **fields))

    def add_project(self, title: str, **fields: Any) -> DispatchResult:
        """Create a project. Things does not report the new id."""
        return self._executor.execute(build_add_project_url(title, **fields))

    def update_item(
        self,
        item_id: str,
        item_type: ItemType = ItemType.TODO,
        fields: Mapping[str, Any] | None = None,
    ) -> DispatchResult:
        """Write field values onto an existing item."""
        try:
            url = self._update_url(item_id, ItemType(item_type), fields or {})
        except AuthTokenError as exc:
            return DispatchResult(succeeded=False, error_message=exc.args[0])
        return self._executor.execute(url)

    def complete_item(
        self, item_id: str, item_type: ItemType = ItemType.TODO
    ) -> DispatchResult:
        """Mark an item completed."""
        try:
            url = self._complete_url(item_id, ItemType(item_type))
        except AuthTokenError as exc:
            return DispatchResult(succeeded=False, error_message=exc.args[0])
        return self._executor.execute(url)

    def cancel_item(
        self, item_id: str, item_type: ItemType = ItemType.TODO
    ) -> DispatchResult:
        """Mark an item canceled."""
        try:
            url = self._cancel_url(item_id, ItemType(item_type))
        except AuthTokenError as exc:
            return DispatchResult(succeeded=False, error_message=exc.args[0])
        return self._executor.execute(url)

    # ── Async commands ────────────────────────────────────────────────

    async def update_item_async(
        self,
        item_id: str,
        item_type: ItemType = ItemType.TODO,
        fields: Mapping[str, Any] | None = None,
    ) -> DispatchResult:
        """Async version of update_item."""
        try:
            url = self._update_url(item_id, ItemType(item_type), fields or {})
        except AuthTokenError as exc:
            return DispatchResult(succeeded=False, error_message=exc.args[0])
        return await self._executor.execute_async(url)

    async def complete_item_async(
        self, item_id: str, item_type: ItemType = ItemType.TODO
    ) -> DispatchResult:
        """Async version of complete_item."""
        try:
            url = self._complete_url(item_id, ItemType(item_type))
        except AuthTokenError as exc:
            return DispatchResult(succeeded=False, error_message=exc.args[0])
        return await self._executor.execute_async(url)

    async def cancel_item_async(
        self, item_id: str, item_type: ItemType = ItemType.TODO
    ) -> DispatchResult:
        """Async version of cancel_item."""
        try:
            url = self._cancel_url(item_id, ItemType(item_type))
        except AuthTokenError as exc:
            return DispatchResult(succeeded=False, error_message=exc.args[0])
        return await self._executor.execute_async(url)

    # ── Rollback actions ──────────────────────────────────────────────

    def dispatch(self, action: RollbackAction) -> DispatchResult:
        """
        Send the command that carries out one compensating action.

        ``revert-status`` re-sends the status the item had before the
        recorded command; callers reject an ``open`` target beforehand
        since Things has no command for re-opening an item.
        """
        match action.action:
            case RollbackActionType.CANCEL:
                return self.cancel_item(action.things_id, action.item_type)
            case RollbackActionType.RESTORE:
                return self.update_item(action.things_id, action.item_type, action.data)
            case RollbackActionType.REVERT_STATUS:
                if _previous_status(action) is ItemStatus.COMPLETED:
                    return self.complete_item(action.things_id, action.item_type)
                return self.cancel_item(action.things_id, action.item_type)
            case _:
                assert_never(action.action)

    async def dispatch_async(self, action: RollbackAction) -> DispatchResult:
        """Async version of dispatch."""
        match action.action:
            case RollbackActionType.CANCEL:
                return await self.cancel_item_async(action.things_id, action.item_type)
            case RollbackActionType.RESTORE:
                return await self.update_item_async(
                    action.things_id, action.item_type, action.data
                )
            case RollbackActionType.REVERT_STATUS:
                if _previous_status(action) is ItemStatus.COMPLETED:
                    return await self.complete_item_async(
                        action.things_id, action.item_type
                    )
                return await self.cancel_item_async(action.things_id, action.item_type)
            case _:
                assert_never(action.action)


def _previous_status(action: RollbackAction) -> ItemStatus:
    return ItemStatus((action.data or {})["previous_status"])
