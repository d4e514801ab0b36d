from logging.config import fileConfig

from sqlalchemy import create_engine, pool
from alembic import context

from noken.config import settings
from noken.db.session import Base

# Enregistre tous les modèles dans la metadata
import noken.db.base  # noqa: F401

target_metadata = Base.metadata

# Chargement config Alembic
config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def sync_database_url() -> str:
    """URL de migration : celle d'alembic.ini si fournie, sinon DATABASE_URL, sans pilote async."""
    url = config.get_main_option("sqlalchemy.url") or settings.DATABASE_URL
    return url.replace("postgresql+asyncpg://", "postgresql://").replace("sqlite+aiosqlite://", "sqlite://")


def run_migrations_offline() -> None:
    context.configure(
        url=sync_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = create_engine(sync_database_url(), poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
