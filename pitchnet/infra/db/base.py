"""Database engine, session factory and declarative base."""
import os
import ssl
from typing import Any
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from pitchnet.settings import settings


def asyncpg_url_and_args(url: str) -> tuple[str, dict[str, Any]]:
    """Adapt a Postgres URL for asyncpg.

    Managed databases hand out ``postgresql://...?sslmode=require``. asyncpg
    needs the ``+asyncpg`` driver and rejects ``sslmode``, so the query flag is
    moved into ``connect_args["ssl"]``. Certificates are not verified unless
    DATABASE_SSL_VERIFY is true (managed Postgres often uses self-signed certs).
    Non-Postgres URLs pass through unchanged.
    """
    url = (url or "").strip()
    if url.startswith("postgresql://"):
        url = "postgresql+asyncpg://" + url[len("postgresql://"):]
    if not url.startswith("postgresql+asyncpg://"):
        return url, {}

    parsed = urlparse(url)
    query = parse_qs(parsed.query, keep_blank_values=True)
    sslmode = query.pop("sslmode", None)
    url = urlunparse(parsed._replace(query=urlencode(query, doseq=True)))
    if sslmode != ["require"]:
        return url, {}

    if os.environ.get("DATABASE_SSL_VERIFY", "false").strip().lower() in ("true", "1"):
        return url, {"ssl": True}
    ctx = ssl.create_default_context()
    ctx.check_hostname = False
    ctx.verify_mode = ssl.CERT_NONE
    return url, {"ssl": ctx}


_db_url, _connect_args = asyncpg_url_and_args(settings.database_url)
engine = create_async_engine(
    _db_url,
    connect_args=_connect_args,
    echo=settings.database_echo,
    pool_pre_ping=True,
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


# Models are imported in pitchnet/main.py and alembic/env.py, not here:
# base.py -> models/__init__.py -> user.py -> base.py would be circular.
