from typing import AsyncGenerator

from fastapi import Request

from ampache_minion.core.config import Config
from ampache_minion.core.database import get_db_connection


async def get_db() -> AsyncGenerator:
    """FastAPI dependency for database connections."""
    with get_db_connection() as conn:
        yield conn


def get_config(request: Request) -> Config:
    """FastAPI dependency for the configuration the app was created with."""
    return request.app.state.config
