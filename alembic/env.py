"""
Alembic environment for the ThisDay schema.

Targets ``SQLModel.metadata`` with every table registered by ``app.models``.
SQLite connections migrate in batch mode because SQLite cannot ALTER most
constraints in place.
"""
from logging.config import fileConfig

from alembic import context
from alembic.autogenerate import renderers
from alembic.autogenerate.api import AutogenContext
from sqlalchemy import engine_from_config, pool
from sqlmodel import SQLModel
from sqlmodel.sql.sqltypes import AutoString

import app.models  # noqa: F401  (registers tables on SQLModel.metadata)
from app.core.config import settings

config = context.config

# The app configures logging itself when it runs migrations at startup
if config.config_file_name is not None and config.attributes.get("configure_logger", True):
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = SQLModel.metadata


@renderers.dispatch_for(AutoString)
def _render_auto_string(type_: AutoString, autogen_context: AutogenContext) -> str:
    """Render SQLModel AutoString columns as sa.String so revisions do not import sqlmodel."""
    autogen_context.imports.add("import sqlalchemy as sa")
    length = getattr(type_, "length", None)
    return f"sa.String(length={length})" if length else "sa.String()"


def get_url() -> str:
    """URL passed in by the caller (startup migrations, tests) or the configured database."""
    return config.get_main_option("sqlalchemy.url") or settings.effective_database_url


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of connecting."""
    url = get_url()
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
        render_as_batch=_is_sqlite(url),
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    configuration = config.get_section(config.config_ini_section) or {}
    configuration["sqlalchemy.url"] = get_url()

    connectable = engine_from_config(
        configuration,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=connection.dialect.name == "sqlite",
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
