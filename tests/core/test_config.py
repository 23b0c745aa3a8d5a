"""Tests for TOML configuration loading."""

import pytest

from ampache_minion.core.config import AmpacheConfig, load_config


@pytest.fixture
def config_home(tmp_path, monkeypatch):
    home = tmp_path / "config"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home))
    monkeypatch.delenv("AMPACHE_MINION_PUBLIC_URL", raising=False)
    monkeypatch.delenv("AMPACHE_MINION_LOG_LEVEL", raising=False)
    monkeypatch.chdir(tmp_path)
    return home / "ampache-minion"


def write_config(config_home, text):
    config_home.mkdir(parents=True, exist_ok=True)
    (config_home / "config.toml").write_text(text)


def test_default_config_is_created(config_home):
    config = load_config()
    assert (config_home / "config.toml").exists()
    assert config.ampache.session_expiry == 6000
    assert config.music.owner == "admin"


def test_sections_are_read(config_home):
    write_config(
        config_home,
        """
[music]
library_paths = ["/srv/music"]
owner = "alice"

[ampache]
session_expiry = 1200
public_url = "https://music.example.com"
locale = "de"

[web]
port = 9000

[logging]
level = "debug"
""",
    )
    config = load_config()
    assert config.music.library_paths == ["/srv/music"]
    assert config.music.owner == "alice"
    assert config.ampache.session_expiry == 1200
    assert config.ampache.clock_skew == 600
    assert config.ampache.public_url == "https://music.example.com"
    assert config.ampache.locale == "de"
    assert config.web.port == 9000
    assert config.logging.level == "DEBUG"


def test_invalid_ampache_section_falls_back_to_defaults(config_home):
    write_config(config_home, "[ampache]\nsession_expiry = -5\n")
    config = load_config()
    assert config.ampache == AmpacheConfig()


def test_environment_overrides(config_home, monkeypatch):
    write_config(config_home, "[logging]\nlevel = \"INFO\"\n")
    monkeypatch.setenv("AMPACHE_MINION_PUBLIC_URL", "http://proxy.local")
    monkeypatch.setenv("AMPACHE_MINION_LOG_LEVEL", "warning")
    config = load_config()
    assert config.ampache.public_url == "http://proxy.local"
    assert config.logging.level == "WARNING"


def test_validate_rejects_bad_values():
    with pytest.raises(ValueError):
        AmpacheConfig(shuffle_window_seconds=0).validate()
