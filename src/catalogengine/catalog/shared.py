"""Catalog state shared between extractors.

Several extractors (for example one for markup files and one for plain
scripts) may point at the same storage location. They then share one
in-memory catalog, one IndexTracker and one set of compiled arrays. The
first extractor to register a location becomes its owner: only the owner
loads and saves; the others read and mutate the shared map.

Granular loading partitions compiled output further: every source file is
mapped to a load ID, and each load ID gets its own IndexTracker and
compiled arrays so a page only downloads the messages it uses.

Python 3.11+. Zero external dependencies.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from catalogengine.compiler.placeholders import CompiledElement
from catalogengine.core.index import IndexTracker
from catalogengine.diagnostics import Diagnostic, DiagnosticCode, SharedCatalogError

from .item import Catalog
from .storage import CatalogStorage, PluralRule

# ruff: noqa: RUF022 - __all__ organized by category for readability
__all__ = [
    # Compiled output
    "CompiledCatalog",
    # Sharing
    "SharedCatalog",
    "SharedCatalogRegistry",
    # Granular loading
    "GranularState",
    "GranularStates",
    "LoadIDFunc",
]

logger = logging.getLogger(__name__)

LoadIDFunc = Callable[[str], str]
"""Map a source file name to its load ID."""


@dataclass(slots=True)
class CompiledCatalog:
    """Compiled array of one locale.

    Attributes:
        items: Compiled element by slot; slots of other extractors stay None
        has_plurals: Some compiled item is a plural, so the plural selector
            must be emitted
    """

    items: list[CompiledElement | None] = field(default_factory=list)
    has_plurals: bool = False

    def set(self, index: int, compiled: CompiledElement) -> None:
        if index >= len(self.items):
            self.items.extend([None] * (index + 1 - len(self.items)))
        self.items[index] = compiled

    def get(self, index: int) -> CompiledElement | None:
        return self.items[index] if index < len(self.items) else None


@dataclass(slots=True, eq=False)
class SharedCatalog:
    """Catalog state for one storage location.

    Attributes:
        storage: Where the catalog is persisted
        owner_key: Key of the extractor that loads and saves
        source_locale: Source locale every participant must agree on
        locales: All locales, source first
        catalog: Items by key
        index: Slots of the shared compiled arrays
        compiled: Shared compiled arrays by locale
        plural_rules: Plural rule by locale
        participants: Keys of all registered extractors, owner first
        lock: Serializes catalog mutation, load and save
        loaded: The owner finished loading
        dirty: A participant changed the catalog since the owner last saved
        last_save: Loop time of the last save, for ignoring our own writes
    """

    storage: CatalogStorage
    owner_key: str
    source_locale: str
    locales: tuple[str, ...]
    catalog: Catalog = field(default_factory=dict)
    index: IndexTracker = field(default_factory=IndexTracker)
    compiled: dict[str, CompiledCatalog] = field(default_factory=dict)
    plural_rules: dict[str, PluralRule] = field(default_factory=dict)
    participants: list[str] = field(default_factory=list)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    loaded: bool = False
    dirty: bool = False
    last_save: float = float("-inf")

    def is_owner(self, key: str) -> bool:
        return key == self.owner_key

    def plural_rule(self, locale: str) -> PluralRule:
        """Stored plural rule, or the CLDR rule of the locale."""
        rule = self.plural_rules.get(locale)
        if rule is None:
            rule = PluralRule.for_locale(locale)
            self.plural_rules[locale] = rule
        return rule

    def compiled_for(self, locale: str) -> CompiledCatalog:
        compiled = self.compiled.get(locale)
        if compiled is None:
            compiled = CompiledCatalog()
            self.compiled[locale] = compiled
        return compiled


class SharedCatalogRegistry:
    """Registry of shared catalogs by storage key.

    Example:
        >>> registry = SharedCatalogRegistry()
        >>> shared = registry.register(storage, "main", "en", ("en", "fr"))
        >>> shared.is_owner("main")
        True
    """

    __slots__ = ("_catalogs",)

    def __init__(self) -> None:
        self._catalogs: dict[str, SharedCatalog] = {}

    def register(
        self,
        storage: CatalogStorage,
        key: str,
        source_locale: str,
        locales: Sequence[str],
    ) -> SharedCatalog:
        """Join the catalog at a storage location, creating it if first.

        Raises:
            SharedCatalogError: If the location is already shared with a
                different source locale
        """
        shared = self._catalogs.get(storage.key)
        if shared is None:
            ordered = (source_locale, *(loc for loc in locales if loc != source_locale))
            shared = SharedCatalog(storage=storage, owner_key=key, source_locale=source_locale, locales=ordered)
            self._catalogs[storage.key] = shared
            logger.debug("Extractor %s owns catalog %s", key, storage.key)
        elif shared.source_locale != source_locale:
            diagnostic = Diagnostic(
                code=DiagnosticCode.SHARED_SOURCE_LOCALE_MISMATCH,
                message=(
                    f"Extractor {key!r} uses source locale {source_locale!r} but shares "
                    f"{storage.key} with {shared.owner_key!r} using {shared.source_locale!r}"
                ),
                hint="Extractors with different source locales need separate catalog directories",
            )
            raise SharedCatalogError(diagnostic)
        if key not in shared.participants:
            shared.participants.append(key)
        return shared

    def get(self, storage_key: str) -> SharedCatalog | None:
        return self._catalogs.get(storage_key)

    def __contains__(self, storage_key: object) -> bool:
        return storage_key in self._catalogs

    def __len__(self) -> int:
        return len(self._catalogs)


@dataclass(slots=True)
class GranularState:
    """Slots and compiled arrays of one load ID."""

    load_id: str
    index: IndexTracker = field(default_factory=IndexTracker)
    compiled: dict[str, CompiledCatalog] = field(default_factory=dict)

    def compiled_for(self, locale: str) -> CompiledCatalog:
        compiled = self.compiled.get(locale)
        if compiled is None:
            compiled = CompiledCatalog()
            self.compiled[locale] = compiled
        return compiled


class GranularStates:
    """Granular states by file and by load ID.

    Files mapping to the same load ID share one state.

    Args:
        generate_load_id: Maps a file name to its load ID
    """

    __slots__ = ("by_file", "by_id", "generate_load_id")

    def __init__(self, generate_load_id: LoadIDFunc) -> None:
        self.generate_load_id = generate_load_id
        self.by_file: dict[str, GranularState] = {}
        self.by_id: dict[str, GranularState] = {}

    def for_file(self, filename: str) -> GranularState:
        """State of a file, created on first use."""
        state = self.by_file.get(filename)
        if state is not None:
            return state
        load_id = self.generate_load_id(filename)
        state = self.by_id.get(load_id)
        if state is None:
            state = GranularState(load_id)
            self.by_id[load_id] = state
            logger.debug("New load ID %s for %s", load_id, filename)
        self.by_file[filename] = state
        return state
