"""Locale utilities: normalization, validation, display names, fallback chains.

Centralizes locale handling used by the catalog store and translation queue.
Catalog files and compiled artifacts keep the locale code exactly as
configured (BCP-47 with hyphens, e.g. "fr-CH"); Babel receives the POSIX form.

Python 3.11+.
"""

from __future__ import annotations

import functools
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING

from babel.core import UnknownLocaleError

if TYPE_CHECKING:
    from babel import Locale

__all__ = [
    "base_language",
    "fallback_chain",
    "get_babel_locale",
    "get_language_name",
    "normalize_locale",
    "validate_locale",
]


def normalize_locale(locale_code: str) -> str:
    """Convert BCP-47 locale code to POSIX format for Babel.

    Example:
        >>> normalize_locale("pt-BR")
        'pt_BR'
    """
    return locale_code.replace("-", "_")


@functools.lru_cache(maxsize=128)
def get_babel_locale(locale_code: str) -> Locale:
    """Get a Babel Locale object with caching.

    Args:
        locale_code: Locale code (BCP-47 or POSIX format accepted)

    Returns:
        Babel Locale object

    Raises:
        babel.core.UnknownLocaleError: If locale is not recognized
        ValueError: If locale format is invalid
    """
    # Lazy import: Babel loads CLDR data at import time; defer until needed
    from babel import Locale  # noqa: PLC0415

    return Locale.parse(normalize_locale(locale_code))


def validate_locale(locale_code: str) -> None:
    """Check that a locale identifier is known to CLDR.

    Raises:
        ValueError: If the locale is empty, malformed or unknown
    """
    if not locale_code:
        msg = "Locale code cannot be empty"
        raise ValueError(msg)
    try:
        get_babel_locale(locale_code)
    except (UnknownLocaleError, ValueError) as e:
        msg = f"Invalid locale identifier: {locale_code}"
        raise ValueError(msg) from e


def get_language_name(locale_code: str, display_locale: str = "en") -> str:
    """Return the human-readable name of a locale.

    Used in machine translation instructions. Unknown locales fall back to
    the code itself.

    Example:
        >>> get_language_name("fr-CH")
        'French (Switzerland)'
    """
    try:
        name = get_babel_locale(locale_code).get_display_name(normalize_locale(display_locale))
    except (UnknownLocaleError, ValueError):
        return locale_code
    return name or locale_code


def base_language(locale_code: str) -> str | None:
    """Return the base language of a regional locale, or None if already base.

    Example:
        >>> base_language("fr-CH")
        'fr'
        >>> base_language("fr") is None
        True
    """
    for sep in ("-", "_"):
        if sep in locale_code:
            return locale_code.split(sep, 1)[0]
    return None


def fallback_chain(
    locale_code: str,
    source_locale: str,
    available: Sequence[str],
    configured: Mapping[str, Sequence[str]] | None = None,
) -> tuple[str, ...]:
    """Compute the fallback locales for a locale, most specific first.

    Configured fallbacks come first; a regional locale then falls back to its
    base language when that locale is available; the source locale is always
    last. The locale itself is never part of the chain.

    Args:
        locale_code: Locale whose fallbacks are requested
        source_locale: The global source locale
        available: Locales that have catalogs
        configured: Optional explicit fallback chains by locale

    Returns:
        Tuple of distinct locale codes

    Example:
        >>> fallback_chain("fr-CH", "en", ["en", "fr", "fr-CH"])
        ('fr', 'en')
    """
    chain: list[str] = []
    candidates = list((configured or {}).get(locale_code, ()))
    base = base_language(locale_code)
    if base is not None and base in available:
        candidates.append(base)
    candidates.append(source_locale)
    for candidate in candidates:
        if candidate != locale_code and candidate not in chain:
            chain.append(candidate)
    return tuple(chain)
