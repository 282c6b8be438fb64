"""Error types shared across docguard."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional, Union


class ErrorCode(str, Enum):
    EDITOR_ERROR = "EDITOR_ERROR"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    NO_READ_ACCESS = "NO_READ_ACCESS"
    NO_EDIT_ACCESS = "NO_EDIT_ACCESS"
    NO_DELETE_ACCESS = "NO_DELETE_ACCESS"
    NO_COMMENT_ACCESS = "NO_COMMENT_ACCESS"
    NO_PERMISSION_MANAGE_ACCESS = "NO_PERMISSION_MANAGE_ACCESS"
    UNKNOWN_ACCESS_LEVEL = "UNKNOWN_ACCESS_LEVEL"
    BLOCK_PROTECTED = "BLOCK_PROTECTED"
    BLOCK_ADMIN_ONLY = "BLOCK_ADMIN_ONLY"
    UNKNOWN_PROTECTION_LEVEL = "UNKNOWN_PROTECTION_LEVEL"
    NOT_OWNER = "NOT_OWNER"


class EditorError(Exception):
    """Base error carrying a stable machine-readable code and a details mapping."""

    default_code: ErrorCode = ErrorCode.EDITOR_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[Union[ErrorCode, str]] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = dict(details or {})

    def to_dict(self) -> dict[str, Any]:
        code = self.code.value if isinstance(self.code, ErrorCode) else self.code
        return {
            "error": type(self).__name__,
            "message": self.message,
            "code": code,
            "details": dict(self.details),
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, code={self.to_dict()['code']!r})"


class PermissionDenied(EditorError):
    """Raised when the current user may not perform an action on a document or block."""

    default_code = ErrorCode.PERMISSION_DENIED
