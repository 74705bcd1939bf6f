"""Catalog model, persistence and sharing.

Components:
    Item / Translation / FileRef / RefEntry - Persisted catalog entries
    CatalogStorage - Load/save contract; POFileStorage is the gettext PO backend
    URLRoutes - Route patterns as translatable catalog items
    SharedCatalogRegistry - Catalogs shared by extractors with the same storage

The store joining these with extraction and translation lives in
catalogengine.store.

Python 3.11+.
"""

from .item import Catalog, FileRef, Item, RefEntry, Translation
from .pofile import POFileStorage, decode_references, encode_references
from .shared import (
    CompiledCatalog,
    GranularState,
    GranularStates,
    LoadIDFunc,
    SharedCatalog,
    SharedCatalogRegistry,
)
from .storage import CatalogStorage, LoadData, PluralRule, SaveData
from .urls import (
    URLLocalizer,
    URLManifest,
    URLMatch,
    URLMatcher,
    URLPattern,
    URLRoutes,
    localize_default,
)

__all__ = [
    "Catalog",
    "CatalogStorage",
    "CompiledCatalog",
    "FileRef",
    "GranularState",
    "GranularStates",
    "Item",
    "LoadData",
    "LoadIDFunc",
    "POFileStorage",
    "PluralRule",
    "RefEntry",
    "SaveData",
    "SharedCatalog",
    "SharedCatalogRegistry",
    "Translation",
    "URLLocalizer",
    "URLManifest",
    "URLMatch",
    "URLMatcher",
    "URLPattern",
    "URLRoutes",
    "decode_references",
    "encode_references",
    "localize_default",
]
