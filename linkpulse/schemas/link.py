"""Link Pydantic schemas."""

import re
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator

from linkpulse.core.timeutils import as_naive_utc

CUSTOM_CODE_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")

# Codes that would shadow application routes
RESERVED_CODES = frozenset({
    "api", "admin", "www", "mail", "ftp", "dashboard", "app",
    "login", "register", "signup", "signin", "logout", "profile",
    "settings", "help", "support", "contact", "about", "terms",
    "privacy", "legal", "docs", "blog", "news", "home", "index",
    "health", "metrics",
})


class LinkBase(BaseModel):
    """Base schema for link data."""

    original_url: HttpUrl = Field(description="The URL to shorten")
    title: str | None = Field(default=None, max_length=255, description="Optional title")
    expires_at: datetime | None = Field(default=None, description="Optional expiration time (UTC)")

    @field_validator("expires_at")
    @classmethod
    def normalize_expires_at(cls, v: datetime | None) -> datetime | None:
        """Store expiry as naive UTC like every other timestamp."""
        return as_naive_utc(v)


class LinkCreate(LinkBase):
    """Schema for creating a new link."""

    custom_code: str | None = Field(
        default=None,
        min_length=3,
        max_length=50,
        description="Optional custom short code (case-sensitive)",
    )
    password: str | None = Field(
        default=None,
        min_length=4,
        max_length=72,
        description="Optional password required to follow the link",
    )

    @field_validator("custom_code")
    @classmethod
    def validate_custom_code(cls, v: str | None) -> str | None:
        """Validate custom code format. The code is kept exactly as given."""
        if v is None:
            return v
        if not CUSTOM_CODE_PATTERN.match(v):
            raise ValueError(
                "Custom code can only contain letters, numbers, hyphens and underscores"
            )
        if v.lower() in RESERVED_CODES:
            raise ValueError(f"Custom code '{v}' is reserved")
        return v


class LinkUpdate(BaseModel):
    """Schema for updating a link."""

    title: str | None = Field(default=None, max_length=255)
    # Not nullable: only fields the client sends are applied
    is_active: bool = True
    expires_at: datetime | None = None

    @field_validator("expires_at")
    @classmethod
    def normalize_expires_at(cls, v: datetime | None) -> datetime | None:
        return as_naive_utc(v)


class LinkResponse(BaseModel):
    """Schema for link response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    short_code: str
    original_url: str
    title: str | None
    is_custom: bool
    is_active: bool
    is_password_protected: bool
    created_at: datetime
    updated_at: datetime
    expires_at: datetime | None


class LinkListResponse(BaseModel):
    """Schema for paginated link list response."""

    items: list[LinkResponse]
    total: int
    page: int
    page_size: int
    pages: int
