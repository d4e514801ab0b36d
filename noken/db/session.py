from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import NullPool

from noken.config import settings

Base = declarative_base()

_is_sqlite = settings.DATABASE_URL.startswith("sqlite")

# Créer le moteur async (SQLite : une connexion par session)
if _is_sqlite:
    engine = create_async_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO, poolclass=NullPool)
else:
    engine = create_async_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO, pool_pre_ping=True)


if _is_sqlite:
    @event.listens_for(engine.sync_engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# Session async
AsyncSessionLocal = sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# Dépendance FastAPI pour obtenir la session
async def get_db():
    async with AsyncSessionLocal() as session:
        yield session


async def init_models(drop: bool = False):
    """Crée (ou recrée) toutes les tables enregistrées dans la metadata."""
    import noken.db.base  # noqa: F401  enregistre tous les modèles

    async with engine.begin() as conn:
        if drop:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
