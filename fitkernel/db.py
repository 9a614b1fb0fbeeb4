from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from fitkernel.config import settings

BLOB_TABLE_DDL = (
    "CREATE TABLE IF NOT EXISTS store_blobs ("
    "name VARCHAR(64) PRIMARY KEY, "
    "payload TEXT NOT NULL, "
    "updated_at VARCHAR(40) NOT NULL)"
)


def _normalize_url(raw_url: str) -> str:
    if raw_url.startswith("postgres://"):
        return raw_url.replace("postgres://", "postgresql://", 1)
    return raw_url


def make_engine(url: str | None = None) -> Engine:
    engine = create_engine(_normalize_url(url or settings.database_url), pool_pre_ping=True)
    with engine.begin() as conn:
        conn.execute(text(BLOB_TABLE_DDL))
    return engine


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(engine, expire_on_commit=False)
