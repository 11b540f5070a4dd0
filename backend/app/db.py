import uuid
from collections.abc import AsyncGenerator
from datetime import UTC, datetime

from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from backend.app.config import DATA_DIR, DATABASE_URL

_IS_SQLITE = DATABASE_URL.startswith("sqlite")


class Base(DeclarativeBase):
    pass


engine = create_async_engine(
    DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False} if _IS_SQLITE else {},
)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

DEFAULT_CATEGORIES = [
    ("Customer Service Excellence", "Ideas that improve how we serve customers and partners."),
    ("Quality & Safety Innovation", "Ideas that raise quality or reduce safety risk."),
    ("Process Automation", "Ideas that remove manual, repetitive work."),
    ("Construction Technologies", "New tools, methods and materials for delivery teams."),
    ("Climate Resilience Solutions", "Ideas that reduce environmental impact or exposure."),
    ("Value Optimization & Revenue", "Ideas that cut cost or open new revenue."),
    ("Other", "Anything that does not fit the categories above."),
]


def utcnow() -> str:
    """Current UTC time as the ISO 8601 string stored in every timestamp column."""
    return datetime.now(UTC).isoformat()


def new_id() -> str:
    return str(uuid.uuid4())


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions.

    One session per request: every service call made with it shares a single
    transaction that commits when the request succeeds.
    """
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create all tables, apply pragmas and seed default categories."""
    import backend.app.models  # noqa: F401 — ensure models are registered

    async with engine.begin() as conn:
        if _IS_SQLITE:
            DATA_DIR.mkdir(parents=True, exist_ok=True)
            # SQLite performance & safety pragmas
            await conn.execute(text("PRAGMA journal_mode = WAL"))
            await conn.execute(text("PRAGMA synchronous = NORMAL"))
            await conn.execute(text("PRAGMA foreign_keys = ON"))
            await conn.execute(text("PRAGMA busy_timeout = 5000"))

        await conn.run_sync(Base.metadata.create_all)

    await _seed_defaults()


async def _seed_defaults() -> None:
    from backend.app.models.category import Category

    async with async_session() as session:
        existing = await session.execute(select(Category.name))
        known = set(existing.scalars().all())

        for name, description in DEFAULT_CATEGORIES:
            if name not in known:
                session.add(Category(id=new_id(), name=name, description=description))

        await session.commit()
