"""Pydantic models for documents, blocks, permissions and configuration."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class AccessLevel(str, Enum):
    OWNER = "owner"
    EDITOR = "editor"
    COMMENTER = "commenter"
    READER = "reader"
    NONE = "none"


class ProtectionLevel(str, Enum):
    NONE = "none"
    READ_ONLY = "read-only"
    ADMIN_ONLY = "admin-only"


# --- Users ---

class User(BaseModel):
    id: str = ""
    name: str = ""


class Author(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str = ""
    name: str = ""


# --- Document ---

class DocumentPermissions(BaseModel):
    owner: str = ""
    editors: list[str] = Field(default_factory=list)
    commenters: list[str] = Field(default_factory=list)
    readers: list[str] = Field(default_factory=list)

    def lists(self) -> dict[AccessLevel, list[str]]:
        return {
            AccessLevel.EDITOR: self.editors,
            AccessLevel.COMMENTER: self.commenters,
            AccessLevel.READER: self.readers,
        }


class Document(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = ""
    owner_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("owner_id", "ownerId", "owner"),
        serialization_alias="ownerId",
    )
    author: Optional[Author] = None
    permissions: Optional[DocumentPermissions] = None

    @property
    def resolved_owner(self) -> str:
        """Owner id from ownerId, then author.id, then permissions.owner."""
        if self.owner_id:
            return self.owner_id
        if self.author is not None and self.author.id:
            return self.author.id
        if self.permissions is not None:
            return self.permissions.owner
        return ""


# --- Block ---

class Block(BaseModel):
    """A document block as seen by the protection layer.

    ``protected`` and ``protection_level`` are frozen: plain assignment raises
    a ValidationError. BlockProtection is the only writer, through
    ``_apply_protection``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = ""
    protected: bool = Field(default=False, frozen=True)
    protection_level: Optional[str] = Field(default=None, alias="protectionLevel", frozen=True)
    owner_id: Optional[str] = Field(default=None, alias="ownerId")
    read_only: bool = Field(default=False, alias="readOnly")

    @field_validator("protection_level", mode="before")
    @classmethod
    def _level_value(cls, v):
        if isinstance(v, ProtectionLevel):
            return v.value
        return v

    def _apply_protection(self, protected: bool, level: ProtectionLevel) -> None:
        self.__dict__["protected"] = protected
        self.__dict__["protection_level"] = level.value
        self.__pydantic_fields_set__.update({"protected", "protection_level"})


# --- Sanitizer ---

class SanitizeOptions(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    allow_images: bool = True
    allow_links: bool = True
    additional_tags: frozenset[str] = Field(default_factory=frozenset)

    @field_validator("additional_tags", mode="before")
    @classmethod
    def _normalize_tags(cls, v):
        if v is None:
            return frozenset()
        if isinstance(v, str):
            v = v.split(",")
        return frozenset(t.strip().lower() for t in v if t and t.strip())


# --- Config models ---

class SanitizerConfig(BaseModel):
    base_url: str = "http://localhost/"
    allow_images: bool = True
    allow_links: bool = True
    additional_tags: list[str] = Field(default_factory=list)

    def options(self) -> SanitizeOptions:
        return SanitizeOptions(
            allow_images=self.allow_images,
            allow_links=self.allow_links,
            additional_tags=self.additional_tags,
        )


class LoggingConfig(BaseModel):
    level: str = "WARNING"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class AppConfig(BaseModel):
    sanitizer: SanitizerConfig = Field(default_factory=SanitizerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
