"""Core infrastructure layer - no business logic dependencies.

This module provides foundation-level services:
- Configuration management (TOML)
- Database operations (SQLite)
- Logging setup (Loguru)
"""

from .config import (
    Config,
    load_config,
    get_config_dir,
    get_config_path,
    get_data_dir,
    create_default_config,
    ensure_directories,
)

from .database import (
    get_database_path,
    get_db_connection,
    init_database,
)

from .output import setup_loguru

__all__ = [
    # Config
    "Config",
    "load_config",
    "get_config_dir",
    "get_config_path",
    "get_data_dir",
    "create_default_config",
    "ensure_directories",
    # Database
    "get_database_path",
    "get_db_connection",
    "init_database",
    # Logging
    "setup_loguru",
]
