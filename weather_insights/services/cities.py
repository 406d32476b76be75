from __future__ import annotations

CACHE_KEY_PREFIX = "weather:current:"

# Letters (including Latin-1 accented ones), whitespace and hyphens.
CITY_PATTERN = r"^[a-zA-ZÀ-ÿ\s-]+$"
CITY_MIN_LENGTH = 2
CITY_MAX_LENGTH = 50


def normalize_city(city: str) -> str:
    return city.strip()


def build_cache_key(city: str) -> str:
    # Display casing is kept for the provider and the history store; only the
    # cache index is case-folded.
    return f"{CACHE_KEY_PREFIX}{normalize_city(city).lower()}"
