from logging.config import fileConfig

from sqlalchemy import create_engine, pool

from alembic import context

# DATABASE_URL is already read from the environment and normalized there.
from questline.db.base import Base, DATABASE_URL

# Register every model on Base.metadata for autogenerate
from questline.auth.models import User  # noqa: F401
from questline.journeys.models import Journey, CheckIn, ReflectionGate  # noqa: F401
from questline.achievements.models import Achievement, UserAchievement  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

# SQLite cannot ALTER most constraints in place; batch mode recreates tables.
CONFIGURE_OPTS = {"target_metadata": target_metadata, "render_as_batch": True}


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of connecting."""
    context.configure(
        url=DATABASE_URL,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **CONFIGURE_OPTS,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = create_engine(DATABASE_URL, poolclass=pool.NullPool)
    with connectable.connect() as connection:
        context.configure(connection=connection, **CONFIGURE_OPTS)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
