"""Alembic environment: runs migrations against Settings.DATABASE_URL."""

import os
import sys
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

# make backend/src importable so models and config resolve
src_root = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if src_root not in sys.path:
    sys.path.insert(0, src_root)

from config import get_settings  # noqa: E402
from models import Base  # noqa: E402

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

# DATABASE_URL from the environment wins over alembic.ini
if not config.get_main_option("sqlalchemy.url") or os.environ.get("DATABASE_URL"):
    config.set_main_option("sqlalchemy.url", get_settings().DATABASE_URL)


def run_migrations_offline():
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    connectable = create_engine(
        config.get_main_option("sqlalchemy.url"),
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata, compare_type=True)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
