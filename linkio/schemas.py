from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# Accepted by the upload collaborator; the registry itself stores any type.
SUPPORTED_FILE_TYPES = {
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "video/mp4",
    "video/webm",
    "audio/mp3",
    "audio/mpeg",
    "audio/wav",
    "application/pdf",
}
MAX_FILE_SIZE = 50 * 1024 * 1024


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class LinkCreate(CamelModel):
    original_url: str
    creator: str | None = None


class LinkOut(CamelModel):
    short_code: str
    original_url: str
    creator: str
    created_at: int
    clicks: int

    @field_validator("created_at", mode="before")
    @classmethod
    def _epoch_seconds(cls, v):
        return to_epoch(v)


class RedirectOut(CamelModel):
    original_url: str


class MediaCreate(CamelModel):
    content_ref: str = Field(alias="ipfsHash")
    file_name: str
    file_type: str
    file_size: int
    creator: str | None = None

    @field_validator("file_type")
    @classmethod
    def _supported_type(cls, v: str) -> str:
        if v not in SUPPORTED_FILE_TYPES:
            raise ValueError(f"Unsupported file type: {v}")
        return v

    @field_validator("file_size")
    @classmethod
    def _size_in_range(cls, v: int) -> int:
        if v < 0 or v > MAX_FILE_SIZE:
            raise ValueError("File size must be between 0 and 50MB")
        return v


class MediaOut(CamelModel):
    short_code: str
    content_ref: str = Field(alias="ipfsHash")
    file_name: str
    file_type: str
    file_size: int
    creator: str
    created_at: int
    views: int

    @field_validator("created_at", mode="before")
    @classmethod
    def _epoch_seconds(cls, v):
        return to_epoch(v)


class StatsOut(CamelModel):
    total_links: int
    total_media: int


class PaginatedLinks(BaseModel):
    items: list[LinkOut]
    total: int
    skip: int
    limit: int


class PaginatedMedia(BaseModel):
    items: list[MediaOut]
    total: int
    skip: int
    limit: int


class QROut(BaseModel):
    qr_base64: str


class Token(BaseModel):
    access_token: str
    token_type: str


class MessageOut(BaseModel):
    ok: bool
    detail: str


def to_epoch(value):
    """Render a stored timestamp as integer Unix seconds (SQLite drops tzinfo)."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp())
    return value
