from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from tutor.core.settings import settings


def engine_options() -> dict:
    # asyncpg cancels any statement that runs past command_timeout and raises TimeoutError.
    return {
        "pool_pre_ping": True,
        "echo": settings.database_echo,
        "connect_args": {"command_timeout": settings.database_command_timeout_seconds},
    }


# One pool for the whole process; every request borrows a session from it.
engine = create_async_engine(settings.database_url, **engine_options())
SessionLocal = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncSession:
    async with SessionLocal() as session:
        yield session
