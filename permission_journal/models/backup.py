"""
Backup Document Models

The JSON backup is the journal's only interchange format. Keys are
camelCase, optional text is written as "" rather than null, and every
timestamp is ISO-8601 UTC with fractional seconds.

DESIGN DECISION: Empty strings are normalized back to None on import.
Export then import is therefore lossless for ids, timestamps and scalar
fields, and "" and None are treated as the same "no value".
"""

import json
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from permission_journal.models.schema import (
    STORED_IMPACT_MAX,
    STORED_IMPACT_MIN,
    MoneyPermission,
    PermissionCategory,
    PermissionTag,
    to_storage_datetime,
    to_wall_clock,
)


BACKUP_VERSION = "1.0"
SUPPORTED_VERSIONS = {BACKUP_VERSION}


def format_timestamp(value: datetime) -> str:
    """Render as ISO-8601 UTC with fractional seconds and a Z suffix."""
    return to_storage_datetime(value).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def empty_to_none(value: Optional[str]) -> Optional[str]:
    if value is None or value == "":
        return None
    return value


class _BackupRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    @field_validator("*", mode="before")
    @classmethod
    def null_text_to_empty(cls, v, info):
        # Older exports and hand-edited files may carry null for optional text
        field = cls.model_fields.get(info.field_name)
        if v is None and field is not None and field.annotation is str:
            return ""
        return v


class BackupPermission(_BackupRecord):
    id: UUID
    statement: str = Field(..., min_length=1)
    date: datetime
    category: str = ""
    emotional_tags: list[str] = Field(default_factory=list, alias="emotionalTags")
    expected_impact: str = Field(default="", alias="expectedImpact")
    actual_outcome: str = Field(default="", alias="actualOutcome")
    emotional_impact: int = Field(
        default=0,
        ge=STORED_IMPACT_MIN,
        le=STORED_IMPACT_MAX,
        alias="emotionalImpact",
    )
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")

    @field_serializer("date", "created_at", "updated_at")
    def serialize_timestamp(self, value: datetime) -> str:
        return format_timestamp(value)

    @classmethod
    def from_entity(cls, permission: MoneyPermission) -> "BackupPermission":
        return cls(
            id=permission.id,
            statement=permission.statement,
            date=permission.date,
            category=permission.category or "",
            emotional_tags=list(permission.emotional_tags or []),
            expected_impact=permission.expected_impact or "",
            actual_outcome=permission.actual_outcome or "",
            emotional_impact=permission.emotional_impact,
            created_at=permission.created_at,
            updated_at=permission.updated_at,
        )

    def to_entity(self) -> MoneyPermission:
        return MoneyPermission(
            id=self.id,
            statement=self.statement,
            date=to_wall_clock(self.date),
            category=empty_to_none(self.category),
            emotional_tags=list(self.emotional_tags),
            expected_impact=empty_to_none(self.expected_impact),
            actual_outcome=empty_to_none(self.actual_outcome),
            emotional_impact=self.emotional_impact,
            created_at=to_storage_datetime(self.created_at),
            updated_at=to_storage_datetime(self.updated_at),
        )


class BackupCategory(_BackupRecord):
    id: UUID
    name: str = Field(..., min_length=1)
    icon_name: str = Field(default="", alias="iconName")
    color_hex: str = Field(default="", alias="colorHex")
    order: int = 0

    @classmethod
    def from_entity(cls, category: PermissionCategory) -> "BackupCategory":
        return cls(
            id=category.id,
            name=category.name,
            icon_name=category.icon_name or "",
            color_hex=category.color_hex or "",
            order=category.order,
        )

    def to_entity(self) -> PermissionCategory:
        return PermissionCategory(
            id=self.id,
            name=self.name,
            icon_name=empty_to_none(self.icon_name),
            color_hex=empty_to_none(self.color_hex),
            order=self.order,
        )


class BackupTag(_BackupRecord):
    id: UUID
    name: str = Field(..., min_length=1)
    color_hex: str = Field(default="", alias="colorHex")
    icon_name: str = Field(default="", alias="iconName")

    @classmethod
    def from_entity(cls, tag: PermissionTag) -> "BackupTag":
        return cls(
            id=tag.id,
            name=tag.name,
            color_hex=tag.color_hex or "",
            icon_name=tag.icon_name or "",
        )

    def to_entity(self) -> PermissionTag:
        return PermissionTag(
            id=self.id,
            name=self.name,
            color_hex=empty_to_none(self.color_hex),
            icon_name=empty_to_none(self.icon_name),
        )


class BackupDocument(BaseModel):
    """A complete journal backup."""

    model_config = ConfigDict(populate_by_name=True)

    version: str = BACKUP_VERSION
    export_date: datetime = Field(..., alias="exportDate")
    permissions: list[BackupPermission] = Field(default_factory=list)
    categories: list[BackupCategory] = Field(default_factory=list)
    tags: list[BackupTag] = Field(default_factory=list)

    @field_validator("version")
    @classmethod
    def check_version(cls, v: str) -> str:
        if v not in SUPPORTED_VERSIONS:
            raise ValueError(f"Unsupported backup version: {v}")
        return v

    @field_serializer("export_date")
    def serialize_export_date(self, value: datetime) -> str:
        return format_timestamp(value)

    @property
    def counts(self) -> dict[str, int]:
        return {
            "permissions": len(self.permissions),
            "categories": len(self.categories),
            "tags": len(self.tags),
        }

    def to_json(self) -> str:
        """Pretty-printed JSON with sorted keys."""
        return json.dumps(
            self.model_dump(mode="json", by_alias=True),
            indent=2,
            sort_keys=True,
            ensure_ascii=False,
        )

    @classmethod
    def from_json(cls, text: str | bytes) -> "BackupDocument":
        return cls.model_validate_json(text)
