"""Alembic environment for the EduVoice schema.

The URL comes from `-x url=...` when given, otherwise from DATABASE_URL
through the application settings (sync driver variant).
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from eduvoice.config import get_settings
from eduvoice.db import models  # noqa: F401 - registers tables on Base.metadata
from eduvoice.db.base import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def database_url() -> str:
    override = context.get_x_argument(as_dictionary=True).get("url")
    if override:
        return override

    url = get_settings().database_url_sync
    if not url:
        raise RuntimeError("DATABASE_URL must be set to run migrations")
    return url


def configure_options(url: str) -> dict:
    # SQLite cannot ALTER constraints in place
    return {
        "target_metadata": target_metadata,
        "compare_type": True,
        "render_as_batch": url.startswith("sqlite"),
    }


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of executing it."""
    url = database_url()
    context.configure(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **configure_options(url),
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    url = database_url()
    engine = create_engine(url, poolclass=pool.NullPool)

    with engine.connect() as connection:
        context.configure(connection=connection, **configure_options(url))
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
