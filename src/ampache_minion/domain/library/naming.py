"""
Display names for library entities.

Entities may lack a name (untagged files); those get a localized placeholder.
"""

from typing import Optional

from .models import Album, AllTracksPlaylist, Artist, Genre, Playlist, Track

CATALOGS: dict[str, dict[str, str]] = {
    "de": {
        "Unknown artist": "Unbekannter Interpret",
        "Unknown album": "Unbekanntes Album",
        "(Unknown genre)": "(Unbekanntes Genre)",
        "All tracks": "Alle Titel",
    },
    "fi": {
        "Unknown artist": "Tuntematon esittäjä",
        "Unknown album": "Tuntematon albumi",
        "(Unknown genre)": "(Tuntematon tyylilaji)",
        "All tracks": "Kaikki kappaleet",
    },
}


class L10n:
    """Minimal translator backed by a static catalog."""

    def __init__(self, locale: str = "en"):
        self.locale = locale
        self._catalog = CATALOGS.get(locale.split("_")[0].lower(), {})

    def t(self, text: str) -> str:
        return self._catalog.get(text, text)


def artist_name(name: Optional[str], l10n: L10n) -> str:
    return name if name else l10n.t("Unknown artist")


def album_name(name: Optional[str], l10n: L10n) -> str:
    return name if name else l10n.t("Unknown album")


def genre_name(name: Optional[str], l10n: L10n) -> str:
    return name if name else l10n.t("(Unknown genre)")


def display_name(entity, l10n: L10n) -> str:
    """Locale-formatted name of any library entity."""
    if isinstance(entity, Artist):
        return artist_name(entity.name, l10n)
    if isinstance(entity, Album):
        return album_name(entity.name, l10n)
    if isinstance(entity, Genre):
        return genre_name(entity.name, l10n)
    if isinstance(entity, AllTracksPlaylist):
        return l10n.t("All tracks")
    if isinstance(entity, Playlist):
        return entity.name
    if isinstance(entity, Track):
        return entity.title
    raise TypeError(f"Unexpected entity type: {type(entity).__name__}")
