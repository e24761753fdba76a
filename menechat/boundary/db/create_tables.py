"""
Database table creation script.

Creates all tables defined in ORM models using SQLAlchemy metadata.

Dependencies: sqlalchemy, menechat.configs
System role: Database schema initialization

Usage:
    python -m menechat.boundary.db.create_tables
"""

import asyncio
import logging

from menechat.boundary.db.sql_store import SqlChatStore
from menechat.configs import get_settings

logger = logging.getLogger(__name__)


async def create_all_tables() -> None:
    """
    Create all database tables from registered ORM models.

    Idempotent: calls CREATE TABLE IF NOT EXISTS for each model, so safe
    to run multiple times. Existing tables remain unchanged.

    Raises:
        SQLAlchemyError: If database connection fails or table creation fails

    Usage:
        python -m menechat.boundary.db.create_tables
        # Or in code:
        await create_all_tables()
    """
    store = SqlChatStore.from_settings(get_settings().database)
    try:
        await store.create_tables()
        logger.info("All tables created successfully.")
    finally:
        await store.close()


async def drop_all_tables() -> None:
    """
    Drop all database tables and their data.

    WARNING: Irreversible data loss. Only use in development environments.

    Raises:
        SQLAlchemyError: If database connection fails or drop fails
    """
    store = SqlChatStore.from_settings(get_settings().database)
    try:
        await store.drop_tables()
        logger.info("All tables dropped successfully.")
    finally:
        await store.close()


if __name__ == "__main__":
    asyncio.run(create_all_tables())
