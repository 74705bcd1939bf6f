"""Catalog storage protocol and load/save payloads.

Storage is pluggable: anything with a key, load(), save() and files
satisfies CatalogStorage. Two storages with the same key are the same
physical location; extractors configured with such storages share one
catalog (see SharedCatalogRegistry).

Python 3.11+.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Protocol

from babel.core import UnknownLocaleError

from catalogengine.constants import DEFAULT_NPLURALS, DEFAULT_PLURAL_EXPR
from catalogengine.locale_utils import normalize_locale

from .item import Item

# ruff: noqa: RUF022 - __all__ organized by category for readability
__all__ = [
    # Protocol
    "CatalogStorage",
    # Payloads
    "LoadData",
    "SaveData",
    "PluralRule",
]


@dataclass(frozen=True, slots=True)
class PluralRule:
    """gettext plural rule of a locale.

    Attributes:
        nplurals: Number of plural forms
        expr: C expression selecting the form index from ``n``
    """

    nplurals: int = DEFAULT_NPLURALS
    expr: str = DEFAULT_PLURAL_EXPR

    def __post_init__(self) -> None:
        if self.nplurals < 1:
            msg = f"nplurals must be positive, got {self.nplurals}"
            raise ValueError(msg)

    @property
    def header(self) -> str:
        """Value of the PO ``Plural-Forms`` header."""
        return f"nplurals={self.nplurals}; plural={self.expr};"

    @classmethod
    def for_locale(cls, locale_code: str) -> PluralRule:
        """Plural rule from CLDR data; unknown locales get the default rule.

        Example:
            >>> PluralRule.for_locale("fr")
            PluralRule(nplurals=2, expr='(n > 1)')
        """
        # Lazy import: plural tables pull in CLDR locale data
        from babel.messages.plurals import get_plural  # noqa: PLC0415

        try:
            plural = get_plural(normalize_locale(locale_code))
        except (UnknownLocaleError, ValueError):
            return cls()
        return cls(plural.num_plurals, plural.plural_expr)


@dataclass(slots=True)
class LoadData:
    """Everything a storage read back.

    Attributes:
        items: Items with translations for every locale found
        plural_rules: Plural rules by locale, as stored
    """

    items: list[Item] = field(default_factory=list)
    plural_rules: dict[str, PluralRule] = field(default_factory=dict)


@dataclass(slots=True)
class SaveData:
    """Everything a storage must persist."""

    items: list[Item]
    plural_rules: dict[str, PluralRule]


class CatalogStorage(Protocol):
    """Protocol for persisting a catalog shared by all locales.

    Implementations are synchronous; the catalog store runs them in a worker
    thread. load() must return empty data for a location that does not
    exist yet and raise CatalogLoadError for anything unreadable.

    Example:
        >>> class MemoryStorage:
        ...     key = "memory"
        ...     files = ()
        ...     def __init__(self):
        ...         self.data = LoadData()
        ...     def load(self):
        ...         return self.data
        ...     def save(self, data):
        ...         self.data = LoadData(list(data.items), dict(data.plural_rules))
    """

    @property
    def key(self) -> str:
        """Identity of the storage location; equal keys share a catalog."""
        ...

    @property
    def files(self) -> Iterable[str]:
        """Files controlled by this storage, for change watching."""
        ...

    def load(self) -> LoadData:
        """Read items and plural rules of all locales.

        Raises:
            CatalogLoadError: If an existing catalog cannot be read
        """
        ...

    def save(self, data: SaveData) -> None:
        """Write items and plural rules of all locales.

        Raises:
            CatalogSaveError: If the catalog cannot be written
        """
        ...
