"""gettext PO catalog storage built on Babel.

One PO file per locale (``<dir>/<locale>.po``). With separate url storage,
url-pattern items live in ``<dir>/<locale>.url.po`` so that route
translations can be reviewed apart from ordinary text.

Entry mapping:
    msgid / msgid_plural / msgctxt    Item.id and Item.context
    msgstr / msgstr[n]                Translation.text of the file's locale
    # comment                         Translation.comments (translator comments)
    #: file:k                         k-th occurrence of the item in file
    #. file:k: a; b                   placeholder descriptions of that occurrence,
                                      the literal link first for url items
    #, url:<key>                      url adapter owning a route pattern
    #~ ...                            obsolete items (no references left)

Babel wraps long comments over several ``#.`` lines; the ``file:k:`` prefix
marks where each occurrence's description starts, so wrapped lines are
joined back on load.

Python 3.11+.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path

from babel.messages.catalog import Catalog as POCatalog
from babel.messages.catalog import Message as POMessage
from babel.messages.pofile import read_po, write_po

from catalogengine.constants import (
    CATALOG_EXTENSION,
    DEFAULT_LOCALES_DIR,
    REF_SEPARATOR,
    URL_ADAPTER_FLAG_PREFIX,
    URL_CATALOG_SUFFIX,
)
from catalogengine.core.message import message_key
from catalogengine.diagnostics import (
    CatalogLoadError,
    CatalogSaveError,
    Diagnostic,
    DiagnosticCode,
)
from catalogengine.locale_utils import normalize_locale

from .item import FileRef, Item, RefEntry, Translation
from .storage import LoadData, PluralRule, SaveData

__all__ = ["POFileStorage", "decode_references", "encode_references"]

logger = logging.getLogger(__name__)

_HEADER_COMMENT = "# Translations managed by catalogengine.\n#"


def encode_references(references: Iterable[FileRef]) -> tuple[list[tuple[str, int]], list[str]]:
    """Encode references as PO locations and auto comments.

    Every occurrence becomes a ``(file, k)`` location; occurrences with
    descriptions also get a ``file:k: ...`` comment. A file without
    recorded occurrences still gets one location.

    Example:
        >>> encode_references([FileRef("a.html", [RefEntry(["placeholder {0}: name"]), RefEntry()])])
        ([('a.html', 1), ('a.html', 2)], ['a.html:1: placeholder {0}: name'])
    """
    locations: list[tuple[str, int]] = []
    comments: list[str] = []
    for ref in references:
        entries = ref.refs or [RefEntry()]
        for k, entry in enumerate(entries, start=1):
            locations.append((ref.file, k))
            described = entry.describe()
            if described:
                comments.append(f"{ref.file}:{k}: {REF_SEPARATOR.join(described)}")
    return locations, comments


def _join_wrapped(comments: Iterable[str], prefixes: set[str]) -> Iterator[tuple[str, str]]:
    """Yield (location prefix, description) with wrapped continuation lines joined."""
    current: str | None = None
    parts: list[str] = []
    for comment in comments:
        head, sep, rest = comment.partition(": ")
        if sep and head in prefixes:
            if current is not None:
                yield current, " ".join(parts)
            current, parts = head, [rest.strip()]
        elif current is not None:
            parts.append(comment.strip())
    if current is not None:
        yield current, " ".join(parts)


def decode_references(
    locations: Iterable[tuple[str, int | None]],
    comments: Iterable[str],
    is_url: bool = False,
) -> list[FileRef]:
    """Rebuild references from PO locations and auto comments.

    Comments not tied to a location are ignored.
    """
    by_file: dict[str, FileRef] = {}
    slots: dict[str, RefEntry] = {}
    for file, lineno in locations:
        ref = by_file.setdefault(file, FileRef(file))
        entry = RefEntry()
        ref.refs.append(entry)
        k = lineno if lineno else len(ref.refs)
        slots[f"{file}:{k}"] = entry
    for prefix, description in _join_wrapped(comments, set(slots)):
        entry = slots[prefix]
        parts = [part.strip() for part in description.split(REF_SEPARATOR) if part.strip()]
        if is_url and parts:
            entry.link = parts.pop(0)
        entry.placeholders = parts
    return sorted(by_file.values(), key=lambda ref: ref.file)


@dataclass(frozen=True, slots=True)
class POFileStorage:
    """Catalog storage as one gettext PO file per locale.

    Attributes:
        locales: All locales, source locale included
        source_locale: Locale the source texts are written in; read first so
            the persisted order of its file drives index assignment
        directory: Directory holding the PO files
        separate_urls: Store url items in ``<locale>.url.po``
        have_url: Url patterns are configured; without them there is no url file
    """

    locales: tuple[str, ...]
    source_locale: str
    directory: str | Path = DEFAULT_LOCALES_DIR
    separate_urls: bool = True
    have_url: bool = False
    _root: Path = field(init=False, repr=False)
    _creation_dates: dict[str, datetime.datetime] = field(init=False, repr=False, default_factory=dict)

    def __post_init__(self) -> None:
        """Resolve the directory and validate locale codes.

        Raises:
            ValueError: If a locale code is empty or could escape the directory
        """
        if self.source_locale not in self.locales:
            msg = f"Source locale {self.source_locale!r} must be one of the locales {self.locales!r}"
            raise ValueError(msg)
        for locale in self.locales:
            if not locale or ".." in locale or "/" in locale or "\\" in locale:
                msg = f"Locale code not usable as a file name: {locale!r}"
                raise ValueError(msg)
        object.__setattr__(self, "_root", Path(self.directory).resolve())

    @property
    def key(self) -> str:
        return str(self._root)

    @property
    def files(self) -> list[str]:
        paths = [self.catalog_path(locale) for locale in self.locales]
        if self.separate_urls and self.have_url:
            paths.extend(self.catalog_path(locale, url=True) for locale in self.locales)
        return [str(path) for path in paths]

    def catalog_path(self, locale: str, url: bool = False) -> Path:
        suffix = URL_CATALOG_SUFFIX if url else ""
        return self._root / f"{locale}{suffix}{CATALOG_EXTENSION}"

    def _ordered_locales(self) -> list[str]:
        return [self.source_locale, *(loc for loc in self.locales if loc != self.source_locale)]

    def _read(self, path: Path, warn: bool = True) -> POCatalog | None:
        try:
            with path.open("rb") as f:
                return read_po(f)
        except FileNotFoundError:
            if warn:
                logger.warning("Catalog not found at %s", path)
            return None
        except (OSError, ValueError) as e:
            diagnostic = Diagnostic(
                code=DiagnosticCode.CATALOG_LOAD_FAILED,
                message=f"Cannot read catalog: {e}",
                hint="Fix or remove the file; it is rewritten on the next save",
                file=str(path),
            )
            raise CatalogLoadError(diagnostic) from e

    def load(self) -> LoadData:
        """Read all locale files into items.

        Item order follows the source locale file, then items only present
        in other locales in the order met. References and url adapters are
        taken from the first file an item appears in.

        Raises:
            CatalogLoadError: If an existing file cannot be read or parsed
        """
        data = LoadData()
        items: dict[str, Item] = {}
        for locale in self._ordered_locales():
            catalogs = [self._read(self.catalog_path(locale))]
            if self.separate_urls and self.have_url:
                catalogs.append(self._read(self.catalog_path(locale, url=True), warn=False))
            main = catalogs[0]
            if main is None:
                continue
            data.plural_rules[locale] = PluralRule(main.num_plurals, main.plural_expr)
            self._creation_dates[locale] = main.creation_date
            for catalog in catalogs:
                if catalog is None:
                    continue
                for message in catalog:
                    if message.id:
                        self._merge(items, locale, message, obsolete=False)
                for message in catalog.obsolete.values():
                    self._merge(items, locale, message, obsolete=True)
        data.items = list(items.values())
        logger.info("Loaded %d items from %s", len(data.items), self._root)
        return data

    @staticmethod
    def _merge(items: dict[str, Item], locale: str, message: POMessage, obsolete: bool) -> None:
        msgid = list(message.id) if isinstance(message.id, (list, tuple)) else [message.id]
        key = message_key(msgid, message.context)
        item = items.get(key)
        if item is None:
            item = Item(id=msgid, context=message.context)
            if not obsolete:
                item.url_adapters = [
                    flag.removeprefix(URL_ADAPTER_FLAG_PREFIX)
                    for flag in sorted(message.flags)
                    if flag.startswith(URL_ADAPTER_FLAG_PREFIX)
                ]
                item.references = decode_references(message.locations, message.auto_comments, item.is_url)
            items[key] = item
        string = message.string
        text = list(string) if isinstance(string, (list, tuple)) else [string or ""]
        item.translations[locale] = Translation(text=text, comments=list(message.user_comments))

    def _new_catalog(self, locale: str, rule: PluralRule | None) -> POCatalog:
        catalog = POCatalog(
            locale=None,
            header_comment=_HEADER_COMMENT,
            project="catalogengine",
            version="1.0",
            creation_date=self._creation_dates.get(locale),
            revision_date=datetime.datetime.now(datetime.timezone.utc),
            fuzzy=False,
        )
        headers = [("Language", normalize_locale(locale))]
        if rule is not None:
            headers.append(("Plural-Forms", rule.header))
        catalog.mime_headers = headers
        return catalog

    def _write(self, path: Path, catalog: POCatalog) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("wb") as f:
                write_po(f, catalog, width=76)
        except OSError as e:
            diagnostic = Diagnostic(
                code=DiagnosticCode.CATALOG_SAVE_FAILED,
                message=f"Cannot write catalog: {e}",
                file=str(path),
            )
            raise CatalogSaveError(diagnostic) from e

    def save(self, data: SaveData) -> None:
        """Write every locale file.

        Raises:
            CatalogSaveError: If a file cannot be written
        """
        split_urls = self.separate_urls and self.have_url
        for locale in self.locales:
            rule = data.plural_rules.get(locale)
            main = self._new_catalog(locale, rule)
            url = self._new_catalog(locale, rule)
            for item in data.items:
                message = _to_po_message(item, locale)
                target = url if split_urls and item.is_url else main
                if item.obsolete:
                    main.obsolete[item.key] = message
                else:
                    target[message.id] = message
            self._write(self.catalog_path(locale), main)
            if len(url):
                self._write(self.catalog_path(locale, url=True), url)
        logger.debug("Saved %d items to %s", len(data.items), self._root)


def _to_po_message(item: Item, locale: str) -> POMessage:
    translation = item.translations.get(locale) or Translation()
    locations, auto_comments = encode_references(sorted(item.references, key=lambda ref: ref.file))
    msgid: str | tuple[str, str]
    string: str | tuple[str, ...]
    if item.plural:
        msgid = (item.id[0], item.id[1])
        string = tuple(translation.text)
    else:
        msgid = item.id[0]
        string = translation.text[0] if translation.text else ""
    return POMessage(
        msgid,
        string,
        locations=locations,
        flags=[f"{URL_ADAPTER_FLAG_PREFIX}{key}" for key in item.url_adapters],
        auto_comments=auto_comments,
        user_comments=translation.comments,
        context=item.context,
    )
