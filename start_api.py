#!/usr/bin/env python3
"""
Run migrations (same process, same DATABASE_URL), then seed, then uvicorn.
Ensures tables exist before seed and app start.
"""
import os
import sys

from app.core.config import settings

if settings.STORAGE_BACKEND == "sql":
    # 1) Wait for DB
    from wait_for_db import wait_for_db
    wait_for_db(settings.DATABASE_URL)

    # 2) Run migrations using the same settings as the app
    from alembic.config import Config
    from alembic import command

    alembic_cfg = Config(os.path.join(os.path.dirname(os.path.abspath(__file__)), "alembic.ini"))
    alembic_cfg.set_main_option("sqlalchemy.url", settings.DATABASE_URL)
    command.upgrade(alembic_cfg, "head")

    # 3) Seed with its own engine, created after migrations
    if settings.SEED_SAMPLE_DATA:
        from app.core.logging_config import setup_logging
        from app.seed import run_sql

        setup_logging(settings)
        run_sql(settings.DATABASE_URL)

# 4) Start uvicorn (replace current process)
port = os.getenv("PORT", "8000")
os.execv(
    sys.executable,
    [sys.executable, "-m", "uvicorn", "app.main:app", "--host", "0.0.0.0", "--port", port],
)
