"""Tests for gettext PO catalog storage.

Python 3.11+.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from catalogengine.catalog.item import FileRef, Item, RefEntry, Translation
from catalogengine.catalog.pofile import POFileStorage, decode_references, encode_references
from catalogengine.catalog.storage import LoadData, PluralRule, SaveData
from catalogengine.diagnostics import CatalogLoadError, DiagnosticCode

RULES = {"en": PluralRule(), "fr": PluralRule(2, "(n > 1)")}


def _storage(directory: Path, **kwargs: object) -> POFileStorage:
    return POFileStorage(("en", "fr"), "en", directory, **kwargs)  # type: ignore[arg-type]


def _hello() -> Item:
    return Item(
        id=["Hello {0}"],
        translations={
            "en": Translation(["Hello {0}"]),
            "fr": Translation(["Bonjour {0}"], comments=["checked by Anna"]),
        },
        references=[
            FileRef("src/b.html", [RefEntry()]),
            FileRef("src/a.html", [RefEntry(["placeholder {0}: name"]), RefEntry(["placeholder {0}: user"])]),
        ],
    )


def _header_line(path: Path, name: str) -> str:
    return next(line for line in path.read_text(encoding="utf-8").splitlines() if line.startswith(f'"{name}:'))


class TestRoundTrip:
    """Save then load through real files."""

    def test_ordinary_item(self, tmp_path: Path) -> None:
        _storage(tmp_path).save(SaveData([_hello()], RULES))

        data = _storage(tmp_path).load()

        [item] = data.items
        assert item.id == ["Hello {0}"]
        assert item.translations["fr"] == Translation(["Bonjour {0}"], comments=["checked by Anna"])
        assert [ref.file for ref in item.references] == ["src/a.html", "src/b.html"]
        assert item.references[0].refs == [RefEntry(["placeholder {0}: name"]), RefEntry(["placeholder {0}: user"])]
        assert item.references[1].refs == [RefEntry()]
        assert data.plural_rules["fr"] == PluralRule(2, "(n > 1)")

    def test_file_layout(self, tmp_path: Path) -> None:
        _storage(tmp_path).save(SaveData([_hello()], RULES))
        text = (tmp_path / "fr.po").read_text(encoding="utf-8")
        assert "#: src/a.html:1 src/a.html:2 src/b.html:1" in text
        assert "#. src/a.html:1: placeholder {0}: name" in text
        assert "# checked by Anna" in text
        assert 'msgstr "Bonjour {0}"' in text
        assert '"Plural-Forms: nplurals=2; plural=(n > 1);\\n"' in text

    def test_plural_item(self, tmp_path: Path) -> None:
        item = Item(
            id=["One item", "{0} items"],
            context="cart",
            translations={"en": Translation(["One item", "{0} items"]), "fr": Translation(["Un article", "{0} articles"])},
            references=[FileRef("cart.html")],
        )
        _storage(tmp_path).save(SaveData([item], RULES))

        [loaded] = _storage(tmp_path).load().items

        assert loaded.id == ["One item", "{0} items"]
        assert loaded.context == "cart"
        assert loaded.key == item.key
        assert loaded.translations["fr"].text == ["Un article", "{0} articles"]

    def test_untranslated_stays_empty(self, tmp_path: Path) -> None:
        item = Item.new(["Bye"], None, ("en", "fr"))
        item.references.append(FileRef("a.html"))
        _storage(tmp_path).save(SaveData([item], RULES))
        [loaded] = _storage(tmp_path).load().items
        assert not loaded.translations["fr"].translated

    def test_obsolete_items_survive(self, tmp_path: Path) -> None:
        kept = _hello()
        gone = Item(id=["Old"], translations={"fr": Translation(["Vieux"])})
        _storage(tmp_path).save(SaveData([kept, gone], RULES))
        assert '#~ msgid "Old"' in (tmp_path / "fr.po").read_text(encoding="utf-8")

        items = {item.key: item for item in _storage(tmp_path).load().items}

        assert items[gone.key].obsolete
        assert items[gone.key].translations["fr"].text == ["Vieux"]
        assert not items[kept.key].obsolete

    def test_order_follows_source_file(self, tmp_path: Path) -> None:
        items = [Item.new([text], None, ("en", "fr")) for text in ("Zeta", "Alpha", "Mid")]
        for item in items:
            item.references.append(FileRef("a.html"))
        _storage(tmp_path).save(SaveData(items, RULES))
        assert [item.id[0] for item in _storage(tmp_path).load().items] == ["Zeta", "Alpha", "Mid"]

    def test_long_descriptions_unwrap(self, tmp_path: Path) -> None:
        descriptions = [
            "placeholder {0}: user.profile.displayName ?? fallbackNameForAnonymousVisitors",
            "placeholder {1}: items.filter(item => item.visible).length",
        ]
        item = Item.new(["Hi {0}, {1} new"], None, ("en", "fr"))
        item.references.append(FileRef("src/routes/dashboard/page.html", [RefEntry(descriptions)]))
        _storage(tmp_path).save(SaveData([item], RULES))

        [loaded] = _storage(tmp_path).load().items

        assert loaded.references[0].refs == [RefEntry(descriptions)]

    def test_creation_date_preserved(self, tmp_path: Path) -> None:
        storage = _storage(tmp_path)
        storage.save(SaveData([_hello()], RULES))
        before = _header_line(tmp_path / "fr.po", "POT-Creation-Date")

        data = storage.load()
        storage.save(SaveData(data.items, data.plural_rules))

        assert _header_line(tmp_path / "fr.po", "POT-Creation-Date") == before

    def test_language_header_is_posix(self, tmp_path: Path) -> None:
        storage = POFileStorage(("en", "fr-CH"), "en", tmp_path)
        storage.save(SaveData([_hello()], {}))
        assert _header_line(tmp_path / "fr-CH.po", "Language") == '"Language: fr_CH\\n"'


class TestURLFiles:
    """Url-pattern items go to a separate file."""

    @staticmethod
    def _url_item() -> Item:
        return Item(
            id=["/items/:id"],
            translations={"en": Translation(["/items/:id"]), "fr": Translation(["/elements/:id"])},
            references=[FileRef("nav.html", [RefEntry(["placeholder {0}: id"], link="/items/42")])],
            url_adapters=["main"],
        )

    def test_split(self, tmp_path: Path) -> None:
        storage = _storage(tmp_path, have_url=True)
        storage.save(SaveData([_hello(), self._url_item()], RULES))

        assert "/items/:id" in (tmp_path / "fr.url.po").read_text(encoding="utf-8")
        assert "/items/:id" not in (tmp_path / "fr.po").read_text(encoding="utf-8")
        assert "#, url:main" in (tmp_path / "fr.url.po").read_text(encoding="utf-8")
        assert str(tmp_path.resolve() / "fr.url.po") in storage.files

    def test_url_item_round_trip(self, tmp_path: Path) -> None:
        _storage(tmp_path, have_url=True).save(SaveData([self._url_item()], RULES))

        [loaded] = _storage(tmp_path, have_url=True).load().items

        assert loaded.url_adapters == ["main"]
        assert loaded.references[0].refs == [RefEntry(["placeholder {0}: id"], link="/items/42")]
        assert loaded.translations["fr"].text == ["/elements/:id"]

    def test_single_file_without_patterns(self, tmp_path: Path) -> None:
        storage = _storage(tmp_path, have_url=False)
        storage.save(SaveData([self._url_item()], RULES))
        assert not (tmp_path / "fr.url.po").exists()
        assert storage.files == [str(tmp_path.resolve() / "en.po"), str(tmp_path.resolve() / "fr.po")]


class TestLoadFailures:
    """Missing catalogs are empty; broken ones raise."""

    def test_missing_directory_is_empty(self, tmp_path: Path) -> None:
        data = _storage(tmp_path / "nowhere").load()
        assert data == LoadData()

    def test_undecodable_file(self, tmp_path: Path) -> None:
        (tmp_path / "en.po").write_bytes(b'msgid "\xff\xfe"\nmsgstr ""\n')
        with pytest.raises(CatalogLoadError) as exc_info:
            _storage(tmp_path).load()
        assert exc_info.value.diagnostic is not None
        assert exc_info.value.diagnostic.code is DiagnosticCode.CATALOG_LOAD_FAILED
        assert exc_info.value.diagnostic.file == str(tmp_path.resolve() / "en.po")


class TestValidation:
    """Constructor checks."""

    def test_source_locale_must_be_listed(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="Source locale"):
            POFileStorage(("fr",), "en", tmp_path)

    @pytest.mark.parametrize("locale", ["", "../x", "a/b"])
    def test_locale_must_be_a_file_name(self, tmp_path: Path, locale: str) -> None:
        with pytest.raises(ValueError, match="file name"):
            POFileStorage(("en", locale), "en", tmp_path)

    def test_key_is_resolved_directory(self, tmp_path: Path) -> None:
        assert _storage(tmp_path).key == _storage(tmp_path / "." / "").key


class TestReferenceEncoding:
    """Locations and auto comments."""

    def test_encode(self) -> None:
        locations, comments = encode_references([FileRef("a.html", [RefEntry(["placeholder {0}: name"]), RefEntry()])])
        assert locations == [("a.html", 1), ("a.html", 2)]
        assert comments == ["a.html:1: placeholder {0}: name"]

    def test_file_without_entries_gets_a_location(self) -> None:
        assert encode_references([FileRef("a.html")]) == ([("a.html", 1)], [])

    def test_decode(self) -> None:
        refs = decode_references([("a.html", 1), ("a.html", 2)], ["a.html:2: placeholder {0}: x"])
        assert refs == [FileRef("a.html", [RefEntry(), RefEntry(["placeholder {0}: x"])])]

    def test_decode_link_first_for_urls(self) -> None:
        refs = decode_references([("nav.html", 1)], ["nav.html:1: /items/42; placeholder {0}: id"], is_url=True)
        assert refs[0].refs == [RefEntry(["placeholder {0}: id"], link="/items/42")]

    def test_unrelated_comments_ignored(self) -> None:
        refs = decode_references([("a.html", None)], ["translator note", "b.html:1: elsewhere"])
        assert refs == [FileRef("a.html", [RefEntry()])]
