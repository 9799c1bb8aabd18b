import logging
import os

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import codes
from .errors import CodeSpaceExhausted, InvalidInput, NotFound
from .models import (
    ANONYMOUS,
    COUNTERS,
    MAX_URL_LENGTH,
    MODELS,
    Link,
    Media,
    Namespace,
    NamespaceCounter,
    utcnow,
)

logger = logging.getLogger("linkio.registry")

MAX_CODE_ATTEMPTS = int(os.getenv("MAX_CODE_ATTEMPTS", 20))
OWNER_LIST_LIMIT = int(os.getenv("OWNER_LIST_LIMIT", 10))


def _owner(creator: str | None) -> str:
    return creator or ANONYMOUS


def _bump_total(db: Session, namespace: Namespace) -> None:
    result = db.execute(
        update(NamespaceCounter)
        .where(NamespaceCounter.namespace == namespace.value)
        .values(total=NamespaceCounter.total + 1)
    )
    if result.rowcount == 0:
        # unseeded database
        db.add(NamespaceCounter(namespace=namespace.value, total=1))
        db.flush()


def _insert_unique(db: Session, namespace: Namespace, **fields):
    model = MODELS[namespace]
    for attempt in range(1, MAX_CODE_ATTEMPTS + 1):
        code = codes.generate_code()
        if exists(db, namespace, code):
            logger.warning("Code collision in %s: %s (attempt %d)", namespace.value, code, attempt)
            continue
        record = model(short_code=code, created_at=utcnow(), **fields)
        db.add(record)
        try:
            db.flush()
            _bump_total(db, namespace)
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning("Insert race in %s: %s (attempt %d)", namespace.value, code, attempt)
            continue
        except Exception:
            db.rollback()
            raise
        db.refresh(record)
        return record
    raise CodeSpaceExhausted(
        f"No free {namespace.value} code after {MAX_CODE_ATTEMPTS} attempts"
    )


def create_link(db: Session, original_url: str, creator: str | None = None) -> Link:
    if not original_url:
        raise InvalidInput("Original URL is required")
    if len(original_url) > MAX_URL_LENGTH:
        raise InvalidInput(f"Original URL must be at most {MAX_URL_LENGTH} characters")
    return _insert_unique(
        db, Namespace.LINK,
        original_url=original_url,
        creator=_owner(creator),
        clicks=0,
    )


def create_media(
    db: Session,
    content_ref: str,
    file_name: str,
    file_type: str,
    file_size: int,
    creator: str | None = None,
) -> Media:
    if not content_ref:
        raise InvalidInput("Content reference is required")
    if not file_name:
        raise InvalidInput("File name is required")
    return _insert_unique(
        db, Namespace.MEDIA,
        content_ref=content_ref,
        file_name=file_name,
        file_type=file_type,
        file_size=file_size,
        creator=_owner(creator),
        views=0,
    )


def _counting_resolve(db: Session, namespace: Namespace, code: str):
    model = MODELS[namespace]
    counter = getattr(model, COUNTERS[namespace])
    try:
        result = db.execute(
            update(model)
            .where(model.short_code == code)
            .values({counter: counter + 1})
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFound(namespace.value, code)
        record = (
            db.query(model)
            .populate_existing()
            .filter(model.short_code == code)
            .one()
        )
        # keep post-increment values after commit
        db.expunge(record)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return record


def resolve_link(db: Session, code: str) -> str:
    return _counting_resolve(db, Namespace.LINK, code).original_url


def resolve_media(db: Session, code: str) -> Media:
    return _counting_resolve(db, Namespace.MEDIA, code)


def _peek(db: Session, namespace: Namespace, code: str):
    model = MODELS[namespace]
    record = db.query(model).filter(model.short_code == code).first()
    if record is None:
        raise NotFound(namespace.value, code)
    return record


def peek_link(db: Session, code: str) -> Link:
    return _peek(db, Namespace.LINK, code)


def peek_media(db: Session, code: str) -> Media:
    return _peek(db, Namespace.MEDIA, code)


def list_by_owner(
    db: Session, namespace: Namespace, owner_id: str | None, limit: int | None = None
) -> list:
    model = MODELS[namespace]
    return (
        db.query(model)
        .filter(model.creator == _owner(owner_id))
        .order_by(model.created_at.desc(), model.id.desc())
        .limit(OWNER_LIST_LIMIT if limit is None else limit)
        .all()
    )


def exists(db: Session, namespace: Namespace, code: str) -> bool:
    model = MODELS[namespace]
    return db.query(model.id).filter(model.short_code == code).first() is not None


def total_count(db: Session, namespace: Namespace) -> int:
    row = db.get(NamespaceCounter, namespace.value, populate_existing=True)
    return row.total if row else 0


# ---------- admin ----------

def list_all(db: Session, namespace: Namespace, skip: int = 0, limit: int = 100) -> list:
    model = MODELS[namespace]
    return (
        db.query(model)
        .order_by(model.created_at.desc(), model.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def count_records(db: Session, namespace: Namespace) -> int:
    return db.query(MODELS[namespace]).count()


def delete_record(db: Session, namespace: Namespace, code: str) -> bool:
    model = MODELS[namespace]
    record = db.query(model).filter(model.short_code == code).first()
    if not record:
        return False
    db.delete(record)
    db.commit()
    return True
