"""Database session and engine setup using SQLAlchemy's async API."""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ledger.db.base_class import Base

# Models register themselves on ``Base.metadata`` when imported.
import ledger.models.catalog  # noqa: F401
import ledger.models.user  # noqa: F401
import ledger.models.pledge  # noqa: F401
import ledger.models.payment  # noqa: F401


def create_session_factory(database_url: str, echo: bool = False, **engine_kwargs):
    engine = create_async_engine(database_url, echo=echo, **engine_kwargs)
    session_factory = async_sessionmaker(
        bind=engine,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
        class_=AsyncSession,
    )
    return engine, session_factory


async def init_models(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
