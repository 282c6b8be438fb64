"""Document-level access control: access levels and throw-or-allow guards.

Access is resolved per call from the document's permission lists and a host
supplied ``UserContext``. Precedence (first match wins):

1. no permissions record -> NONE
2. user is the document owner -> OWNER
3. user is the *current* user and the context reports admin -> EDITOR
4. editors -> EDITOR, commenters -> COMMENTER, readers -> READER
5. otherwise NONE

The admin bonus in step 3 only applies when evaluating the caller's own
access. Asking about another user id never grants it, even when the caller
is an admin.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Protocol, Union

from docguard.core.errors import ErrorCode, PermissionDenied
from docguard.core.models import AccessLevel, Document, DocumentPermissions, User

logger = logging.getLogger(__name__)

CurrentUser = Union[User, Mapping[str, Any], None]

_READ_LEVELS = frozenset({AccessLevel.OWNER, AccessLevel.EDITOR, AccessLevel.COMMENTER, AccessLevel.READER})
_COMMENT_LEVELS = frozenset({AccessLevel.OWNER, AccessLevel.EDITOR, AccessLevel.COMMENTER})
_EDIT_LEVELS = frozenset({AccessLevel.OWNER, AccessLevel.EDITOR})
_OWNER_LEVELS = frozenset({AccessLevel.OWNER})


class UserContext(Protocol):
    """Host-side view of who is acting. Called on every check, never cached."""

    def get_current_user(self) -> CurrentUser: ...

    def is_admin(self) -> bool: ...


def _anonymous() -> CurrentUser:
    return User()


def _not_admin() -> bool:
    return False


@dataclass
class CallbackUserContext:
    """Adapts two plain callables to the UserContext protocol."""

    current_user: Callable[[], CurrentUser] = _anonymous
    admin: Callable[[], bool] = _not_admin

    def get_current_user(self) -> CurrentUser:
        return self.current_user()

    def is_admin(self) -> bool:
        return bool(self.admin())


def _user_id(user: CurrentUser) -> str:
    if user is None:
        return ""
    if isinstance(user, Mapping):
        return str(user.get("id") or "")
    return str(getattr(user, "id", "") or "")


class PermissionManager:
    """Resolves access levels and gates document actions."""

    def __init__(self, context: Optional[UserContext] = None) -> None:
        self.context: UserContext = context or CallbackUserContext()

    @classmethod
    def from_callables(
        cls,
        get_current_user: Optional[Callable[[], CurrentUser]] = None,
        is_admin: Optional[Callable[[], bool]] = None,
    ) -> "PermissionManager":
        return cls(CallbackUserContext(
            current_user=get_current_user or _anonymous,
            admin=is_admin or _not_admin,
        ))

    # ---- Identity ----

    def get_current_user_id(self) -> str:
        return _user_id(self.context.get_current_user())

    def is_admin(self) -> bool:
        return bool(self.context.is_admin())

    def is_current_user(self, user_id: Optional[str]) -> bool:
        return self.get_current_user_id() == user_id

    # ---- Access resolution ----

    def get_access_level(self, document: Optional[Document], user_id: Optional[str] = None) -> AccessLevel:
        if document is None or document.permissions is None:
            return AccessLevel.NONE

        target = user_id or self.get_current_user_id()
        permissions = document.permissions
        owner = document.resolved_owner

        if owner and target == owner:
            return AccessLevel.OWNER

        if self.is_admin() and target == self.get_current_user_id():
            return AccessLevel.EDITOR

        if target in permissions.editors:
            return AccessLevel.EDITOR
        if target in permissions.commenters:
            return AccessLevel.COMMENTER
        if target in permissions.readers:
            return AccessLevel.READER

        return AccessLevel.NONE

    def is_owner(self, document: Optional[Document]) -> bool:
        if document is None:
            return False
        return self.get_access_level(document) == AccessLevel.OWNER

    def describe_access(self, document: Optional[Document], user_id: Optional[str] = None) -> dict[str, Any]:
        """Access level plus capability flags, without raising."""
        level = self.get_access_level(document, user_id)
        return {
            "access_level": level,
            "can_read": level in _READ_LEVELS,
            "can_comment": level in _COMMENT_LEVELS,
            "can_edit": level in _EDIT_LEVELS,
            "can_delete": level in _OWNER_LEVELS,
            "can_manage": level in _OWNER_LEVELS,
        }

    # ---- Guards ----

    def _require(
        self,
        document: Optional[Document],
        allowed: frozenset[AccessLevel],
        message: str,
        code: ErrorCode,
        document_id: Optional[str] = None,
        include_level: bool = False,
    ) -> bool:
        level = self.get_access_level(document)
        if level in allowed:
            return True
        details: dict[str, Any] = {"document_id": (document.id if document is not None else None) or document_id}
        if include_level:
            details["access_level"] = level.value
        logger.info("Permission denied: %s (document=%s, user=%s)", code.value, details["document_id"],
                    self.get_current_user_id())
        raise PermissionDenied(message, code, details)

    def can_read_document(self, document: Optional[Document], document_id: Optional[str] = None) -> bool:
        return self._require(document, _READ_LEVELS, "No read access to document",
                             ErrorCode.NO_READ_ACCESS, document_id)

    def can_edit_document(self, document: Optional[Document], document_id: Optional[str] = None) -> bool:
        return self._require(document, _EDIT_LEVELS, "No edit access to document",
                             ErrorCode.NO_EDIT_ACCESS, document_id, include_level=True)

    def can_delete_document(self, document: Optional[Document], document_id: Optional[str] = None) -> bool:
        return self._require(document, _OWNER_LEVELS, "Only document owner can delete document",
                             ErrorCode.NO_DELETE_ACCESS, document_id)

    def can_comment_document(self, document: Optional[Document], document_id: Optional[str] = None) -> bool:
        return self._require(document, _COMMENT_LEVELS, "No comment access to document",
                             ErrorCode.NO_COMMENT_ACCESS, document_id)

    def can_manage_permissions(self, document: Optional[Document], document_id: Optional[str] = None) -> bool:
        return self._require(document, _OWNER_LEVELS, "Only document owner can manage permissions",
                             ErrorCode.NO_PERMISSION_MANAGE_ACCESS, document_id)

    # ---- Mutations ----

    def set_user_access(self, document: Document, user_id: str, level: Union[AccessLevel, str]) -> None:
        """Move ``user_id`` into the list for ``level``; owner only.

        The user is removed from every list first, so they end up in at most
        one. NONE and OWNER leave them in none of the lists.
        """
        self.can_manage_permissions(document)

        try:
            access = AccessLevel(level)
        except ValueError:
            raise PermissionDenied(
                f"Unknown access level: {level}",
                ErrorCode.UNKNOWN_ACCESS_LEVEL,
                {"user_id": user_id, "access_level": str(level)},
            ) from None

        if document.permissions is None:
            document.permissions = DocumentPermissions()
        permissions = document.permissions

        permissions.editors = [u for u in permissions.editors if u != user_id]
        permissions.commenters = [u for u in permissions.commenters if u != user_id]
        permissions.readers = [u for u in permissions.readers if u != user_id]

        target = permissions.lists().get(access)
        if target is not None:
            target.append(user_id)

        logger.info("Access for %s on document %s set to %s", user_id, document.id, access.value)

    def remove_user_access(self, document: Document, user_id: str) -> None:
        self.set_user_access(document, user_id, AccessLevel.NONE)
