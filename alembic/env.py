import os
from logging.config import fileConfig

from sqlalchemy import create_engine, pool
from sqlalchemy.engine import URL

from alembic import context
from core.db import Base

config = context.config

# The migrate Lambda configures logging itself
if config.config_file_name is not None and not os.environ.get("AWS_LAMBDA_FUNCTION_NAME"):
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _url() -> URL:
    return URL.create(
        "postgresql+psycopg",
        username=os.environ.get("AURORA_USER", "trips"),
        password=os.environ.get("AURORA_PASSWORD", "localdev"),
        host=os.environ.get("AURORA_HOST", "localhost"),
        port=int(os.environ.get("AURORA_PORT", "5432")),
        database=os.environ.get("AURORA_DATABASE", "trips"),
    )


def run_migrations_offline() -> None:
    context.configure(
        url=_url().render_as_string(hide_password=False),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = create_engine(_url(), poolclass=pool.NullPool)
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
