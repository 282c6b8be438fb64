"""Block-level protection layered on top of document permissions."""

from __future__ import annotations

import logging
from typing import Optional, Union

from docguard.core.errors import ErrorCode, PermissionDenied
from docguard.core.models import Block, Document, ProtectionLevel
from docguard.security.permissions import PermissionManager

logger = logging.getLogger(__name__)


class BlockProtection:
    """Checks and changes per-block protection.

    An unprotected block (or one protected at level NONE) follows the
    document's edit rule. READ_ONLY blocks are editable by the document owner
    and the block's own owner; ADMIN_ONLY blocks only by admins.
    """

    def __init__(self, permission_manager: PermissionManager) -> None:
        self.permission_manager = permission_manager

    def can_edit_block(self, block: Optional[Block], document: Optional[Document], action: str = "edit") -> bool:
        """Return True or raise PermissionDenied. ``action`` only ends up in error details."""
        if block is None:
            raise PermissionDenied("Block is required")
        if document is None:
            raise PermissionDenied("Document is required")

        pm = self.permission_manager

        if not block.protected:
            return pm.can_edit_document(document)

        level = block.protection_level or ProtectionLevel.READ_ONLY

        if level == ProtectionLevel.NONE:
            return pm.can_edit_document(document)

        if level == ProtectionLevel.READ_ONLY:
            if pm.is_owner(document):
                return True
            if block.owner_id and pm.is_current_user(block.owner_id):
                return True
            logger.info("Block %s is protected; %s denied for %s", block.id, action, pm.get_current_user_id())
            raise PermissionDenied(
                f'Block "{block.id}" is protected and can only be edited by the document owner',
                ErrorCode.BLOCK_PROTECTED,
                {"block_id": block.id, "action": action},
            )

        if level == ProtectionLevel.ADMIN_ONLY:
            if pm.is_admin():
                return True
            logger.info("Block %s is admin-only; %s denied for %s", block.id, action, pm.get_current_user_id())
            raise PermissionDenied(
                f'Block "{block.id}" requires administrator privileges',
                ErrorCode.BLOCK_ADMIN_ONLY,
                {"block_id": block.id, "action": action},
            )

        raise PermissionDenied(
            f"Unknown protection level: {level}",
            ErrorCode.UNKNOWN_PROTECTION_LEVEL,
            {"block_id": block.id, "protection_level": level},
        )

    def can_delete_block(self, block: Optional[Block], document: Optional[Document]) -> bool:
        return self.can_edit_block(block, document, "delete")

    def can_move_block(self, block: Optional[Block], document: Optional[Document]) -> bool:
        return self.can_edit_block(block, document, "move")

    def can_duplicate_block(self, block: Block, document: Optional[Document]) -> bool:
        """Readers may duplicate unprotected blocks; protected ones need edit rights."""
        try:
            self.permission_manager.can_read_document(document)
        except PermissionDenied as exc:
            raise PermissionDenied(
                "Cannot duplicate block: no read access to document",
                ErrorCode.NO_READ_ACCESS,
                {**exc.details, "block_id": block.id},
            ) from exc

        if block.protected:
            return self.can_edit_block(block, document, "duplicate")
        return True

    # ---- Predicates ----

    @staticmethod
    def is_protected(block: Optional[Block]) -> bool:
        return block is not None and block.protected is True

    def get_protection_level(self, block: Optional[Block]) -> Union[ProtectionLevel, str]:
        if not self.is_protected(block):
            return ProtectionLevel.NONE
        level = block.protection_level
        if not level:
            return ProtectionLevel.READ_ONLY
        try:
            return ProtectionLevel(level)
        except ValueError:
            return level

    # ---- Mutations (owner only) ----

    def _require_owner(self, block: Block, document: Optional[Document], message: str) -> None:
        if not self.permission_manager.is_owner(document):
            logger.info("Protection change on block %s denied for %s", block.id,
                        self.permission_manager.get_current_user_id())
            raise PermissionDenied(message, ErrorCode.NOT_OWNER, {"block_id": block.id})

    def set_protection(
        self,
        block: Block,
        document: Optional[Document],
        level: Union[ProtectionLevel, str] = ProtectionLevel.READ_ONLY,
    ) -> None:
        self._require_owner(block, document, "Only document owner can set block protection")
        try:
            protection = ProtectionLevel(level)
        except ValueError:
            raise PermissionDenied(
                f"Unknown protection level: {level}",
                ErrorCode.UNKNOWN_PROTECTION_LEVEL,
                {"block_id": block.id, "protection_level": str(level)},
            ) from None
        block._apply_protection(True, protection)
        logger.info("Block %s protected at level %s", block.id, protection.value)

    def remove_protection(self, block: Block, document: Optional[Document]) -> None:
        self._require_owner(block, document, "Only document owner can remove block protection")
        block._apply_protection(False, ProtectionLevel.NONE)
        logger.info("Block %s protection removed", block.id)

    def create_safe_copy(self, block: Block, document: Optional[Document]) -> Optional[Block]:
        """Shallow copy for the current user: editable as is, readable as read-only, else None."""
        if block is None:
            return None
        try:
            self.can_edit_block(block, document)
            return block.model_copy()
        except PermissionDenied:
            pass
        try:
            self.permission_manager.can_read_document(document)
        except PermissionDenied:
            return None
        return block.model_copy(update={"read_only": True})
