import os
from pathlib import Path

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

# Explicitly load .env from project root (parent of linkio/)
ENV_PATH = Path(__file__).parent.parent / ".env"
load_dotenv(ENV_PATH)
ENVIRONMENT = os.getenv("ENVIRONMENT", "dev")

# Dev: SQLite (zero config), Prod: PostgreSQL
if ENVIRONMENT == "prod":
    DATABASE_URL = os.getenv("DATABASE_URL")
    if not DATABASE_URL:
        raise RuntimeError("DATABASE_URL must be set in production")
    engine = create_engine(
        DATABASE_URL,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=1800,
    )
else:
    # SQLite for local dev, stored next to the package folder
    DB_PATH = Path(__file__).parent.parent / "linkio_dev.db"
    DATABASE_URL = os.getenv("DATABASE_URL") or f"sqlite:///{DB_PATH}"
    engine = create_engine(
        DATABASE_URL,
        connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {},
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def init_db(bind=None) -> None:
    """Create tables and seed one counter row per namespace."""
    # Imported here so the models register on Base before create_all.
    from . import models

    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    Session = sessionmaker(bind=bind)
    with Session() as db:
        existing = {row.namespace for row in db.query(models.NamespaceCounter).all()}
        for ns in models.Namespace:
            if ns.value not in existing:
                db.add(models.NamespaceCounter(namespace=ns.value, total=0))
        db.commit()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
