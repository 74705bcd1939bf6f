"""Persisted catalog item model.

An Item is the stored counterpart of a Message: one per catalog key, holding
translations for every locale and the references that keep it alive.

References are grouped per file. Every occurrence of the message in a file
is one RefEntry carrying the placeholder descriptions of that occurrence
(and, for url items, the literal link), so a translator can see what each
``{n}`` stands for at every place the message is used.

Python 3.11+. Zero external dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from catalogengine.core.message import message_key

__all__ = [
    "Catalog",
    "FileRef",
    "Item",
    "RefEntry",
    "Translation",
]


@dataclass(slots=True)
class RefEntry:
    """One occurrence of a message inside a file.

    Attributes:
        placeholders: Descriptions of the occurrence's placeholders
        link: Literal link for url items, None otherwise
    """

    placeholders: list[str] = field(default_factory=list)
    link: str | None = None

    def describe(self) -> list[str]:
        """Descriptions as stored next to the reference, link first."""
        if self.link is None:
            return list(self.placeholders)
        return [self.link, *self.placeholders]


@dataclass(slots=True)
class FileRef:
    """All occurrences of a message inside one file."""

    file: str
    refs: list[RefEntry] = field(default_factory=list)


@dataclass(slots=True)
class Translation:
    """Translated text of an item for one locale.

    Attributes:
        text: One entry per plural form; empty strings mean untranslated
        comments: Translator comments
    """

    text: list[str] = field(default_factory=list)
    comments: list[str] = field(default_factory=list)

    @property
    def translated(self) -> bool:
        return any(self.text)


@dataclass(slots=True)
class Item:
    """Persisted catalog entry, one per key.

    An item without references and without url adapters is obsolete. It is
    kept until an explicit prune so that translations survive a message
    temporarily disappearing from the sources.

    Attributes:
        id: Source text, or singular and plural source forms
        context: Disambiguation context
        translations: Translation by locale code
        references: Occurrences grouped per file, sorted by file on save
        url_adapters: Keys of the extractors owning this url pattern
    """

    id: list[str]
    context: str | None = None
    translations: dict[str, Translation] = field(default_factory=dict)
    references: list[FileRef] = field(default_factory=list)
    url_adapters: list[str] = field(default_factory=list)

    @classmethod
    def new(cls, msgid: list[str], context: str | None, locales: list[str] | tuple[str, ...]) -> Item:
        """Create an item with an empty translation for every locale."""
        return cls(id=list(msgid), context=context, translations={loc: Translation() for loc in locales})

    @property
    def key(self) -> str:
        return message_key(self.id, self.context)

    @property
    def plural(self) -> bool:
        return len(self.id) > 1

    @property
    def obsolete(self) -> bool:
        return not self.references and not self.url_adapters

    @property
    def is_url(self) -> bool:
        return bool(self.url_adapters)

    def translation(self, locale: str) -> Translation:
        """Translation for a locale, created empty when missing."""
        translation = self.translations.get(locale)
        if translation is None:
            translation = Translation()
            self.translations[locale] = translation
        return translation

    def file_ref(self, file: str) -> FileRef | None:
        for ref in self.references:
            if ref.file == file:
                return ref
        return None

    def sort_references(self) -> None:
        """Order references by file, for deterministic persistence."""
        self.references.sort(key=lambda ref: ref.file)


Catalog = dict[str, Item]
"""Items by catalog key."""
