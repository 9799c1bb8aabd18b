import enum
from datetime import datetime, timezone

from sqlalchemy import BigInteger, Column, DateTime, Integer, String, Text

from .database import Base

ANONYMOUS = "anonymous"
MAX_URL_LENGTH = 2048


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Namespace(str, enum.Enum):
    LINK = "links"
    MEDIA = "media"


class Link(Base):
    __tablename__ = "links"

    id = Column(Integer, primary_key=True, index=True)
    short_code = Column(String(16), unique=True, index=True, nullable=False)
    original_url = Column(String(MAX_URL_LENGTH), nullable=False)
    creator = Column(String(128), index=True, nullable=False, default=ANONYMOUS)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    clicks = Column(Integer, nullable=False, default=0)


class Media(Base):
    __tablename__ = "media"

    id = Column(Integer, primary_key=True, index=True)
    short_code = Column(String(16), unique=True, index=True, nullable=False)
    content_ref = Column(Text, nullable=False)
    file_name = Column(String(255), nullable=False)
    file_type = Column(String(127), nullable=False)
    file_size = Column(BigInteger, nullable=False, default=0)
    creator = Column(String(128), index=True, nullable=False, default=ANONYMOUS)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    views = Column(Integer, nullable=False, default=0)


class NamespaceCounter(Base):
    """Records ever created per namespace. Deletes never decrement it."""

    __tablename__ = "registry_counters"

    namespace = Column(String(16), primary_key=True)
    total = Column(Integer, nullable=False, default=0)


MODELS = {
    Namespace.LINK: Link,
    Namespace.MEDIA: Media,
}

# Access counter column per namespace
COUNTERS = {
    Namespace.LINK: "clicks",
    Namespace.MEDIA: "views",
}
