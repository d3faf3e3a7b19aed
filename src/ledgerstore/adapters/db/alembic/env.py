"""Alembic environment for LEDGERSTORE.

Policy defaults:
  - compare_type=True (catch column type drift)
  - compare_server_default=True (catch server default drift)
  - render_as_batch=True on SQLite (ALTER TABLE emulation)
  - URL precedence: `-x url=...` > config sqlalchemy.url > LEDGERSTORE_DB_URL
"""

import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

# importing the schema registers the default tables on the shared metadata
import ledgerstore.adapters.db.schema  # noqa: F401 # pylint: disable=unused-import
from ledgerstore.adapters.db.metadata import metadata
from ledgerstore.config import DB_URL_ENV

# pylint: disable=no-member

config = context.config

# only when run from the alembic CLI with an .ini file
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = metadata


def get_url() -> str:
    """Resolve DB URL with precedence: `-x url` > config > env."""
    xargs = context.get_x_argument(as_dictionary=True)
    url = xargs.get("url")

    if not url:
        url = config.get_main_option("sqlalchemy.url")

    if not url or "%(" in url:  # treat placeholder as unset # pylint: disable=R2004
        url = os.environ.get(DB_URL_ENV)

    if not url:
        raise RuntimeError(f"Set {DB_URL_ENV} to your database URL.")
    return url


def include_object(obj, name, type_, reflected, compare_to):  # pylint: disable=W0613
    """Leave view tables (created on demand) out of autogenerate."""
    if type_ == "table" and reflected and compare_to is None:  # pylint: disable=R2004
        return False
    return True


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode, emitting SQL to the script output."""
    context.configure(
        url=get_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        compare_server_default=True,
        include_object=include_object,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode against a live connection."""
    connectable = engine_from_config(
        {"sqlalchemy.url": get_url()},  # ignore alembic.ini
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        is_sqlite = connection.dialect.name == "sqlite"  # pylint: disable=R2004
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            compare_server_default=True,
            render_as_batch=is_sqlite,
            include_object=include_object,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
