"""
Environnement Alembic: migrations du schéma Local Deals Togo.
L'URL de la base vient toujours de DATABASE_URL, jamais de alembic.ini.
"""

from logging.config import fileConfig

from sqlalchemy.pool import NullPool

from alembic import context

from app.config import settings
from app.database import Base, Database
import app.models  # noqa: F401  (enregistre les tables sur Base.metadata)


config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata
database_url = settings.DATABASE_URL


def run_migrations_offline() -> None:
    """Génère le SQL des migrations sans connexion (alembic upgrade --sql)."""
    context.configure(
        url=database_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    database = Database(database_url, poolclass=NullPool)
    try:
        with database.engine.connect() as connection:
            context.configure(
                connection=connection,
                target_metadata=target_metadata,
                compare_type=True,
                # ALTER TABLE limité sous SQLite
                render_as_batch=connection.dialect.name == "sqlite",
            )
            with context.begin_transaction():
                context.run_migrations()
    finally:
        database.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
