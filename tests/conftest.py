"""Shared fixtures for docguard tests."""

from __future__ import annotations

from typing import Callable

import pytest

from docguard.core.models import Block, Document, DocumentPermissions, ProtectionLevel, User
from docguard.security.permissions import PermissionManager
from docguard.security.protection import BlockProtection


@pytest.fixture
def make_manager() -> Callable[..., PermissionManager]:
    """Build a PermissionManager for a given current user and admin flag."""

    def _make(user_id: str = "user2", admin: bool = False) -> PermissionManager:
        return PermissionManager.from_callables(
            get_current_user=lambda: User(id=user_id, name=f"User {user_id}"),
            is_admin=lambda: admin,
        )

    return _make


@pytest.fixture
def make_protection(make_manager) -> Callable[..., BlockProtection]:
    def _make(user_id: str = "user2", admin: bool = False) -> BlockProtection:
        return BlockProtection(make_manager(user_id, admin))

    return _make


@pytest.fixture
def document() -> Document:
    """Document owned by user1 with one user in each list."""
    return Document(
        id="doc1",
        permissions=DocumentPermissions(
            owner="user1",
            editors=["editor1"],
            commenters=["commenter1"],
            readers=["reader1"],
        ),
    )


@pytest.fixture
def read_only_block() -> Block:
    return Block(id="block1", protected=True, protection_level=ProtectionLevel.READ_ONLY, type="text")


@pytest.fixture
def plain_block() -> Block:
    return Block(id="block2", protected=False, type="text", data={"text": "Content"})
