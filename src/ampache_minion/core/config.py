"""
Configuration management for Ampache Minion
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


@dataclass
class MusicConfig:
    """Configuration for music library settings."""

    library_paths: List[str] = field(
        default_factory=lambda: [str(Path.home() / "Music")]
    )
    supported_formats: List[str] = field(
        default_factory=lambda: [".mp3", ".m4a", ".ogg", ".opus", ".flac", ".wav"]
    )
    scan_recursive: bool = True
    owner: str = "admin"  # User id that scanned files belong to


@dataclass
class AmpacheConfig:
    """Configuration for the Ampache protocol endpoints."""

    session_expiry: int = 6000  # seconds
    clock_skew: int = 600  # max seconds a handshake timestamp may lie in the future
    shuffle_window_seconds: int = 3600  # how long a random ordering stays stable
    public_url: Optional[str] = None  # absolute base URL for generated links
    locale: str = "en"

    def validate(self) -> None:
        """Validate Ampache configuration values.

        Raises:
            ValueError: If configuration values are invalid
        """
        if self.session_expiry <= 0:
            raise ValueError("session_expiry must be positive")
        if self.clock_skew < 0:
            raise ValueError("clock_skew must not be negative")
        if self.shuffle_window_seconds <= 0:
            raise ValueError("shuffle_window_seconds must be positive")


@dataclass
class WebConfig:
    """Configuration for the HTTP server."""

    host: str = "0.0.0.0"
    port: int = 8000
    allowed_origins: List[str] = field(default_factory=lambda: ["*"])


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = (
        None  # Custom log file path (default: ~/.local/share/ampache-minion/ampache-minion.log)
    )
    console_output: bool = True


@dataclass
class Config:
    """Main configuration object."""

    music: MusicConfig = field(default_factory=MusicConfig)
    ampache: AmpacheConfig = field(default_factory=AmpacheConfig)
    web: WebConfig = field(default_factory=WebConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "ampache-minion"
    return Path.home() / ".config" / "ampache-minion"


def _find_project_config() -> Optional[Path]:
    """Find config.toml in project root by looking for pyproject.toml.

    Returns:
        Path to config.toml in project root, or None if not found
    """
    current = Path(__file__).resolve().parent
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            config_path = parent / "config.toml"
            if config_path.exists():
                return config_path
            # Found project root but no config.toml there
            return None
    return None


def get_config_path() -> Path:
    """Get the main configuration file path.

    Checks for config.toml in the following order:
    1. Project root (detected via pyproject.toml) - for development
    2. Current working directory
    3. XDG_CONFIG_HOME/ampache-minion (or ~/.config/ampache-minion)
    """
    project_config = _find_project_config()
    if project_config:
        return project_config

    local_config = Path.cwd() / "config.toml"
    if local_config.exists():
        return local_config

    return get_config_dir() / "config.toml"


def get_data_dir() -> Path:
    """Get the data directory path."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "ampache-minion"
    return Path.home() / ".local" / "share" / "ampache-minion"


def create_default_config() -> str:
    """Create a default configuration TOML content."""
    return """
# Ampache Minion Configuration

[music]
# Paths to scan for music files
library_paths = ["~/Music"]

# Supported audio file formats
supported_formats = [".mp3", ".m4a", ".ogg", ".opus", ".flac", ".wav"]

# Recursively scan subdirectories
scan_recursive = true

# User the scanned library belongs to
owner = "admin"

[ampache]
# Session lifetime after a handshake (seconds)
session_expiry = 6000

# How far in the future a client timestamp may be (seconds)
clock_skew = 600

# How long random listings keep the same order (seconds)
shuffle_window_seconds = 3600

# Absolute base URL used in generated links, e.g. "https://music.example.com"
# public_url = ""

# Language for placeholder names (en, de, fi)
locale = "en"

[web]
host = "0.0.0.0"
port = 8000
allowed_origins = ["*"]

[logging]
# Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL
level = "INFO"

# Also log to stderr
console_output = true
"""


def load_config() -> Config:
    """Load configuration from file or create default.

    Environment variables override TOML values:
    - AMPACHE_MINION_PUBLIC_URL
    - AMPACHE_MINION_LOG_LEVEL
    """
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    config_path = get_config_path()

    if not config_path.exists():
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(create_default_config())
        print(f"Created default configuration at: {config_path}")
        config = Config()
        _apply_env_overrides(config)
        return config

    try:
        with open(config_path, "rb") as f:
            toml_data = tomllib.load(f)

        config = Config()

        if "music" in toml_data:
            music_data = toml_data["music"]
            config.music = MusicConfig(
                library_paths=[
                    str(Path(p).expanduser())
                    for p in music_data.get("library_paths", config.music.library_paths)
                ],
                supported_formats=music_data.get(
                    "supported_formats", config.music.supported_formats
                ),
                scan_recursive=music_data.get(
                    "scan_recursive", config.music.scan_recursive
                ),
                owner=music_data.get("owner", config.music.owner),
            )

        if "ampache" in toml_data:
            ampache_data = toml_data["ampache"]
            config.ampache = AmpacheConfig(
                session_expiry=ampache_data.get(
                    "session_expiry", config.ampache.session_expiry
                ),
                clock_skew=ampache_data.get("clock_skew", config.ampache.clock_skew),
                shuffle_window_seconds=ampache_data.get(
                    "shuffle_window_seconds", config.ampache.shuffle_window_seconds
                ),
                public_url=ampache_data.get("public_url") or None,
                locale=ampache_data.get("locale", config.ampache.locale),
            )
            try:
                config.ampache.validate()
            except ValueError as e:
                print(f"Warning: Invalid ampache configuration: {e}")
                print("Using default ampache configuration.")
                config.ampache = AmpacheConfig()

        if "web" in toml_data:
            web_data = toml_data["web"]
            config.web = WebConfig(
                host=web_data.get("host", config.web.host),
                port=web_data.get("port", config.web.port),
                allowed_origins=web_data.get(
                    "allowed_origins", config.web.allowed_origins
                ),
            )

        if "logging" in toml_data:
            logging_data = toml_data["logging"]
            log_file = logging_data.get("log_file")
            if log_file:
                log_file = str(Path(log_file).expanduser())
            config.logging = LoggingConfig(
                level=logging_data.get("level", config.logging.level).upper(),
                log_file=log_file,
                console_output=logging_data.get(
                    "console_output", config.logging.console_output
                ),
            )

        _apply_env_overrides(config)
        return config

    except Exception as e:
        print(f"Error loading configuration from {config_path}: {e}")
        print("Using default configuration.")
        return Config()


def _apply_env_overrides(config: Config) -> None:
    public_url = os.environ.get("AMPACHE_MINION_PUBLIC_URL")
    log_level = os.environ.get("AMPACHE_MINION_LOG_LEVEL")

    if public_url:
        config.ampache.public_url = public_url
    if log_level:
        config.logging.level = log_level.upper()


def ensure_directories() -> None:
    """Ensure all necessary directories exist."""
    get_config_dir().mkdir(parents=True, exist_ok=True)
    get_data_dir().mkdir(parents=True, exist_ok=True)
