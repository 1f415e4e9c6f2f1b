"""Schemas describing the visitor behind a click."""

from pydantic import BaseModel, Field


class Visitor(BaseModel):
    """Request metadata captured when a link is resolved.

    Derived attributes (country, device, ...) are filled in by the click
    storage service, not by the caller.
    """

    ip_address: str | None = Field(default=None, description="Client IP address")
    user_agent: str | None = Field(default=None, description="HTTP User-Agent header")
    referrer: str | None = Field(default=None, description="HTTP Referer header")

    model_config = {"json_schema_extra": {"example": {
        "ip_address": "203.0.113.7",
        "user_agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
        "referrer": "https://news.ycombinator.com/item?id=1",
    }}}
