import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool, create_engine

from app.db.session import Base

# Import all models so Alembic sees them in metadata
from app.models.user import User  # noqa: F401
from app.models.cruise import Cruise  # noqa: F401
from app.models.booking import Booking  # noqa: F401
from app.models.passenger import Passenger  # noqa: F401
from app.models.review import Review  # noqa: F401


# Alembic Config object
config = context.config

# start_api.py sets sqlalchemy.url explicitly; plain `alembic upgrade head` falls back to the app settings
db_url = config.get_main_option("sqlalchemy.url") or os.getenv("DATABASE_URL")
if not db_url:
    from app.core.config import settings
    db_url = settings.DATABASE_URL
if not db_url:
    raise RuntimeError("DATABASE_URL is not set (check .env / app.core.config.settings)")
if db_url.startswith("postgres://"):
    db_url = "postgresql+psycopg2://" + db_url[len("postgres://"):]

config.set_main_option("sqlalchemy.url", db_url)

# Logging config
if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

# Target metadata for autogenerate
target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    url = config.get_main_option("sqlalchemy.url")

    # Do NOT use engine_from_config here: the url was resolved above, not in alembic.ini.
    connectable = create_engine(url, poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
