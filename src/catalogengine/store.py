"""Catalog store: one extractor's view of a shared catalog.

CatalogStore joins everything one extractor needs at runtime:

    transform(content, filename)   extract a file and rewrite it
    handle_messages(file, msgs)    update references and translations
    compile(locale)                build the compiled array of a locale
    save()                         persist the catalog (owner only)
    handle_catalog_change(path)    hot reload after an external catalog edit

Reference tracking is incremental. Each transform replaces the file's
references wholesale: prune_file() drops them and record_message() adds the
new occurrences. Items left without references become obsolete and stay in
the catalog, translations intact, until prune_obsolete() is called.

Compiled slot indices come from IndexTracker and never move for the life of
the process, so hot reload can patch single slots. Every catalog mutation,
load and save is serialized with the shared catalog's asyncio.Lock; file I/O
runs in a worker thread.

Python 3.11+.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from catalogengine.catalog.item import FileRef, Item, RefEntry
from catalogengine.catalog.pofile import POFileStorage
from catalogengine.catalog.shared import (
    GranularState,
    GranularStates,
    SharedCatalog,
    SharedCatalogRegistry,
)
from catalogengine.catalog.storage import CatalogStorage, SaveData
from catalogengine.catalog.urls import URLManifest, URLRoutes
from catalogengine.compiler.artifact import (
    HMRData,
    compiled_module_path,
    render_catalog_module,
    render_hmr_patch,
)
from catalogengine.compiler.placeholders import CompiledElement, compile_plural, compile_translation
from catalogengine.config import CatalogConfig, ExtractorConfig, TranslatorConfig
from catalogengine.constants import HMR_FULL_RELOAD_THRESHOLD, SELF_WRITE_DEBOUNCE_SECONDS
from catalogengine.core.message import Message, message_key
from catalogengine.diagnostics import CatalogEngineError, Diagnostic, DiagnosticCode
from catalogengine.enums import MessageKind, Mode
from catalogengine.extraction.transformer import TransformResult, transform
from catalogengine.locale_utils import fallback_chain
from catalogengine.translation.queue import TranslationGroups, Translator

__all__ = ["CatalogStore", "FileUpdate", "LocaleStatus"]

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class FileUpdate:
    """Outcome of replacing a file's references.

    Attributes:
        changed: The catalog differs from before and should be saved
        new_items: Items created for this file
        untranslated: Items lacking a translation in some target locale
        keys: Compiled-slot keys of the file's messages, in source order
    """

    changed: bool = False
    new_items: list[Item] = field(default_factory=list)
    untranslated: list[Item] = field(default_factory=list)
    keys: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class LocaleStatus:
    """Translation progress of one locale."""

    total: int
    translated: int
    untranslated: int
    obsolete: int


class CatalogStore:
    """Catalog operations of one extractor.

    Args:
        config: The extractor's configuration
        catalog_config: Locales and persistence shared by all extractors
        registry: Registry in which catalogs are shared by storage location
        storage: Storage; defaults to PO files in the configured directory
        translator: Machine translation provider; None disables backfill
        translator_config: Batching of the provider calls

    Raises:
        SharedCatalogError: If the storage is already shared with a
            different source locale
    """

    def __init__(
        self,
        config: ExtractorConfig,
        catalog_config: CatalogConfig,
        registry: SharedCatalogRegistry,
        storage: CatalogStorage | None = None,
        translator: Translator | None = None,
        translator_config: TranslatorConfig | None = None,
    ) -> None:
        self.config = config
        self.catalog_config = catalog_config
        self.source_locale = catalog_config.source_locale
        self.routes = URLRoutes(config.url_patterns, config.localize_urls, adapter_key=config.key)
        if storage is None:
            storage = POFileStorage(
                locales=catalog_config.locales,
                source_locale=catalog_config.source_locale,
                directory=catalog_config.directory,
                separate_urls=catalog_config.separate_urls,
                have_url=bool(self.routes),
            )
        self.shared: SharedCatalog = registry.register(storage, config.key, self.source_locale, catalog_config.locales)
        self.granular = GranularStates(config.generate_load_id) if config.granular_load else None
        self.translations: TranslationGroups | None = None
        if translator is not None and config.mode is not Mode.BUILD:
            tconf = translator_config or TranslatorConfig()
            self.translations = TranslationGroups(
                translator,
                self.source_locale,
                self.locales,
                self.shared.plural_rule,
                self._on_translated,
                lock=self.shared.lock,
                groups=tconf.locale_groups,
                batch_size=tconf.batch_size,
                parallel=tconf.parallel,
                max_attempts=tconf.max_attempts,
            )
        self._hmr_version = 0

    @property
    def key(self) -> str:
        return self.config.key

    @property
    def locales(self) -> tuple[str, ...]:
        return self.shared.locales

    @property
    def is_owner(self) -> bool:
        return self.shared.is_owner(self.key)

    @property
    def catalog(self) -> dict[str, Item]:
        return self.shared.catalog

    # ------------------------------------------------------------------
    # Loading and saving
    # ------------------------------------------------------------------

    async def load(self) -> None:
        """Load the catalog (owner) and register this extractor's url patterns.

        Raises:
            CatalogLoadError: If an existing catalog cannot be read
            CatalogEngineError: If a participant loads before the owner
        """
        async with self.shared.lock:
            if self.is_owner:
                data = await asyncio.to_thread(self.shared.storage.load)
                self.shared.catalog.clear()
                for item in data.items:
                    self.shared.catalog[item.key] = item
                self.shared.plural_rules.update(data.plural_rules)
                self.shared.index.reload(self.shared.catalog)
                self.shared.loaded = True
            elif not self.shared.loaded:
                diagnostic = Diagnostic(
                    code=DiagnosticCode.CATALOG_NOT_LOADED,
                    message=f"Extractor {self.key!r} loaded before {self.shared.owner_key!r}, the catalog owner",
                    hint="Load the owning extractor first",
                )
                raise CatalogEngineError(diagnostic)
            untranslated = self._init_url_patterns()
            for locale in self.locales:
                self._compile(locale)
        if untranslated and self.translations is not None:
            self.translations.enqueue(untranslated)

    def _init_url_patterns(self) -> list[Item]:
        """Create or refresh the pattern items; return those needing translation."""
        untranslated = []
        for message in self.routes.pattern_messages():
            item = self.catalog.get(message.key)
            if item is None:
                item = Item.new(message.id, message.context, self.locales)
                self.catalog[message.key] = item
            if self.key not in item.url_adapters:
                item.url_adapters.append(self.key)
            text = message.id[0]
            item.translation(self.source_locale).text = [text]
            if not URLRoutes.needs_translation(text):
                for locale in self.locales:
                    if not item.translation(locale).translated:
                        item.translation(locale).text = [text]
            elif any(not item.translation(locale).translated for locale in self.locales):
                untranslated.append(item)
        return untranslated

    async def save(self) -> bool:
        """Persist the catalog; only the owner writes.

        Returns:
            True if the catalog was written

        Raises:
            CatalogSaveError: If the catalog cannot be written
        """
        if not self.is_owner:
            logger.debug("Extractor %s does not own %s; not saving", self.key, self.shared.storage.key)
            return False
        if self.config.mode is Mode.BUILD:
            return False
        async with self.shared.lock:
            await self._persist()
        return True

    async def _persist(self) -> None:
        """Write the catalog, or leave the write to the owner.

        Must be called with the shared lock held. A participant only marks
        the catalog dirty; the owner writes it on its next save. The storage
        gets a snapshot, so the worker thread never sees live items.
        """
        if self.config.mode is Mode.BUILD:
            return
        if not self.is_owner:
            self.shared.dirty = True
            logger.debug("%s: catalog %s changed, left to %s", self.key, self.shared.storage.key, self.shared.owner_key)
            return
        items = []
        for item in self.catalog.values():
            snapshot = copy.deepcopy(item)
            snapshot.sort_references()
            items.append(snapshot)
        data = SaveData(
            items=items,
            plural_rules={locale: self.shared.plural_rule(locale) for locale in self.locales},
        )
        await asyncio.to_thread(self.shared.storage.save, data)
        self.shared.dirty = False
        self.shared.last_save = asyncio.get_running_loop().time()

    # ------------------------------------------------------------------
    # References
    # ------------------------------------------------------------------

    def _slot_key(self, message: Message) -> str:
        """Key of the compiled slot a message renders from."""
        return message.key

    def _item_key(self, message: Message) -> str | None:
        """Key of the item a message is recorded on; url links join their pattern item."""
        if message.kind is MessageKind.URL and message.link is not None:
            return self.routes.pattern_key(message.link)
        return message.key

    def record_message(self, message: Message, file: str) -> tuple[Item, bool]:
        """Record one occurrence of a message in a file.

        Returns:
            The item and whether the item itself changed (created, or its
            source text filled in); reference changes are not reported

        Raises:
            KeyError: If a url message matches no registered pattern
        """
        key = self._item_key(message)
        if key is None:
            msg = f"No url pattern for link {message.link!r} in {file}"
            raise KeyError(msg)
        changed = False
        item = self.catalog.get(key)
        if item is None and message.kind is MessageKind.URL:
            # pattern items normally exist from load()
            self._init_url_patterns()
            item = self.catalog[key]
            changed = True
        elif item is None:
            item = Item.new(message.id, message.context, self.locales)
            self.catalog[key] = item
            changed = True
        ref = item.file_ref(file)
        if ref is None:
            ref = FileRef(file)
            item.references.append(ref)
            item.sort_references()
        link = message.link if message.kind is MessageKind.URL else None
        ref.refs.append(RefEntry(message.describe_placeholders(), link))
        if not item.is_url and item.translation(self.source_locale).text != item.id:
            item.translation(self.source_locale).text = list(item.id)
            changed = True
        return item, changed

    def prune_file(self, file: str) -> bool:
        """Drop every reference from a file.

        Items left without references become obsolete; nothing is deleted.

        Returns:
            True if some reference was removed
        """
        changed = False
        for item in self.catalog.values():
            before = len(item.references)
            item.references = [ref for ref in item.references if ref.file != file]
            if len(item.references) != before:
                changed = True
                if item.obsolete:
                    logger.debug("Item %r is now obsolete", item.id[0])
        return changed

    def update_file(self, file: str, messages: Sequence[Message]) -> FileUpdate:
        """Replace a file's references with the given messages.

        Must be called with the shared lock held.
        """
        previous = {
            key: [(entry.placeholders, entry.link) for entry in ref.refs]
            for key, item in self.catalog.items()
            if (ref := item.file_ref(file)) is not None
        }
        update = FileUpdate()
        self.prune_file(file)
        touched: dict[str, Item] = {}
        for message in messages:
            existed = self._item_key(message) in self.catalog
            item, changed = self.record_message(message, file)
            update.changed = update.changed or changed
            if not existed:
                update.new_items.append(item)
            touched[item.key] = item
            update.keys.append(self._slot_key(message))
        current = {
            key: [(entry.placeholders, entry.link) for entry in ref.refs]
            for key, item in touched.items()
            if (ref := item.file_ref(file)) is not None
        }
        if current != previous:
            update.changed = True
        update.untranslated = [
            item
            for item in touched.values()
            if not item.is_url
            and any(not item.translation(locale).translated for locale in self.locales if locale != self.source_locale)
        ]
        return update

    async def handle_messages(self, file: str, messages: Sequence[Message]) -> FileUpdate:
        """Apply a transformed file's messages to the catalog.

        A changed catalog is recompiled at once. In dev mode it is also
        saved (by the owner; participants mark it dirty), and the owner
        flushes changes participants left behind. In CLI mode saving is left
        to the caller. Untranslated items go to the translation queues.
        """
        async with self.shared.lock:
            update = self.update_file(file, messages)
            if update.changed:
                logger.debug("%s: catalog changed by %s", self.key, file)
                for locale in self.locales:
                    self._compile(locale)
            if self.config.mode is Mode.DEV and (update.changed or (self.is_owner and self.shared.dirty)):
                await self._persist()
        if update.untranslated and self.translations is not None:
            self.translations.enqueue(update.untranslated)
        return update

    # ------------------------------------------------------------------
    # Compiling
    # ------------------------------------------------------------------

    def _handles(self, item: Item) -> list[FileRef]:
        return [ref for ref in item.references if self.config.matches(ref.file)]

    def _source_forms(self, item: Item, locale: str) -> list[str]:
        """Forms to compile: first translated locale of the fallback chain, else the source."""
        chain = fallback_chain(locale, self.source_locale, self.locales, self.catalog_config.fallback)
        for candidate in (locale, *chain):
            translation = item.translations.get(candidate)
            if translation is not None and translation.translated:
                return translation.text
        return item.id

    def _compile_item(self, item: Item, locale: str) -> CompiledElement:
        source_fallback: CompiledElement
        if item.plural:
            source_fallback = [compile_translation(form, form) for form in item.id]
            return compile_plural(self._source_forms(item, locale), source_fallback)
        source_fallback = compile_translation(item.id[0], item.id[0])
        forms = self._source_forms(item, locale)
        return compile_translation(forms[0] if forms else "", source_fallback)

    def _compile(self, locale: str) -> list[CompiledElement | None]:
        shared_compiled = self.shared.compiled_for(locale)
        for item in self.catalog.values():
            refs = self._handles(item)
            if not refs:
                continue
            slots: list[tuple[str, CompiledElement, list[FileRef]]]
            if item.is_url:
                slots = []
                for ref in refs:
                    for entry in ref.refs:
                        if entry.link is None:
                            continue
                        text = self.routes.match_to_compile(entry.link, locale, self.catalog)
                        source = compile_translation(entry.link, entry.link)
                        slots.append((message_key([entry.link]), compile_translation(text, source), [ref]))
            else:
                slots = [(item.key, self._compile_item(item, locale), refs)]
            for key, compiled, slot_refs in slots:
                if item.plural:
                    shared_compiled.has_plurals = True
                shared_compiled.set(self.shared.index.get(key), compiled)
                if self.granular is None:
                    continue
                for ref in slot_refs:
                    state = self.granular.for_file(ref.file)
                    state_compiled = state.compiled_for(locale)
                    state_compiled.has_plurals = state_compiled.has_plurals or item.plural
                    state_compiled.set(state.index.get(key), compiled)
        return list(shared_compiled.items)

    async def compile(self, locale: str) -> list[CompiledElement | None]:
        """Compile the items this extractor handles into the locale's array.

        Slots of items handled by other extractors sharing the catalog stay
        as they are (None until compiled by their extractor). Compiling twice
        without a catalog change gives identical arrays.
        """
        async with self.shared.lock:
            return self._compile(locale)

    def render(self, locale: str, load_id: str | None = None) -> str:
        """ES module source of a compiled array.

        Raises:
            KeyError: If the load ID is unknown
        """
        if load_id is None:
            compiled = self.shared.compiled_for(locale)
        else:
            if self.granular is None or load_id not in self.granular.by_id:
                raise KeyError(load_id)
            compiled = self.granular.by_id[load_id].compiled_for(locale)
        plural_expr = self.shared.plural_rule(locale).expr if compiled.has_plurals else None
        hmr_version = self._hmr_version if self.config.mode is Mode.DEV else None
        return render_catalog_module(compiled.items, locale, plural_expr, hmr_version)

    async def write_compiled(self, directory: str | Path) -> list[Path]:
        """Write the compiled modules of every locale (and load ID).

        Returns:
            Paths written
        """
        outputs: list[tuple[Path, str]] = []
        async with self.shared.lock:
            load_ids: list[str | None] = [None] if self.granular is None else list(self.granular.by_id)
            for load_id in load_ids:
                for locale in self.locales:
                    outputs.append((compiled_module_path(directory, locale, load_id), self.render(locale, load_id)))

        def write() -> None:
            for path, text in outputs:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(text, encoding="utf-8")

        await asyncio.to_thread(write)
        return [path for path, _ in outputs]

    def build_manifest(self) -> URLManifest:
        """URL manifest of this extractor's route patterns."""
        return self.routes.build_manifest(self.catalog, self.locales)

    # ------------------------------------------------------------------
    # Transforming
    # ------------------------------------------------------------------

    def _state(self, filename: str) -> GranularState | None:
        return None if self.granular is None else self.granular.for_file(filename)

    def load_id(self, filename: str) -> str:
        """Load ID the transformed file uses to fetch its runtime."""
        state = self._state(filename)
        return self.key if state is None else state.load_id

    def header(self, filename: str, keys: Sequence[str] = ()) -> str:
        """Header prepended to a transformed file.

        In dev mode it embeds a hot reload patch with the current compiled
        slots of the file's messages, so edits show without a reload.
        """
        rt = self.config.runtime
        lines = [rt.loader_import]
        if self.config.mode is Mode.DEV and keys:
            state = self._state(filename)
            index = self.shared.index if state is None else state.index
            data: dict[str, list[tuple[int, CompiledElement]]] = {}
            for locale in self.locales:
                compiled = self.shared.compiled_for(locale) if state is None else state.compiled_for(locale)
                slots = []
                for key in dict.fromkeys(keys):
                    slot = index.peek(key)
                    element = None if slot is None else compiled.get(slot)
                    if slot is not None and element is not None:
                        slots.append((slot, element))
                data[locale] = slots
            lines.append(render_hmr_patch(HMRData(self._hmr_version, data)))
        lines.append(rt.init_statement(self.load_id(filename)))
        return "\n".join(lines)

    async def transform(self, content: str, filename: str) -> tuple[TransformResult, str | None]:
        """Extract a file, update the catalog and render the rewritten code.

        Files this extractor does not handle are returned untouched.

        Returns:
            The transform result and the rewritten code, None when the file
            has nothing to translate

        Raises:
            MarkupParseError: If the file cannot be read
            URLPatternError: If a link matches no route pattern
        """
        if not self.config.matches(filename):
            return TransformResult([]), None
        state = self._state(filename)
        index = self.shared.index if state is None else state.index
        result = transform(
            content,
            filename,
            index,
            runtime=self.config.runtime,
            url_matcher=self.routes.match if self.routes else None,
            heuristic=self.config.heuristic,
        )
        update = await self.handle_messages(filename, result.messages)
        return result, result.output(self.header(filename, update.keys))

    # ------------------------------------------------------------------
    # Hot reload and maintenance
    # ------------------------------------------------------------------

    async def handle_catalog_change(self, path: str) -> HMRData | None:
        """React to an external edit of a catalog file.

        Events within SELF_WRITE_DEBOUNCE_SECONDS of our own save are
        ignored. Otherwise the catalog is reloaded and recompiled, and the
        changed slots are returned as a patch; new slots, or more changed
        slots than HMR_FULL_RELOAD_THRESHOLD, ask for a full reload instead.

        Returns:
            The patch, or None when the event was ignored
        """
        loop = asyncio.get_running_loop()
        if loop.time() - self.shared.last_save < SELF_WRITE_DEBOUNCE_SECONDS:
            logger.debug("Ignoring change of %s: own write", path)
            return None
        async with self.shared.lock:
            before = {locale: list(self.shared.compiled_for(locale).items) for locale in self.locales}
            data = await asyncio.to_thread(self.shared.storage.load)
            loaded = {item.key: item for item in data.items}
            for key, item in loaded.items():
                current = self.catalog.get(key)
                if current is None:
                    self.catalog[key] = item
                else:
                    current.translations = item.translations
            self.shared.plural_rules.update(data.plural_rules)
            for locale in self.locales:
                self._compile(locale)
            self._hmr_version += 1
            patch: dict[str, list[tuple[int, CompiledElement]]] = {}
            full_reload = False
            changed = 0
            for locale in self.locales:
                old = before[locale]
                slots = []
                for index, element in enumerate(self.shared.compiled_for(locale).items):
                    if element is None:
                        continue
                    if index >= len(old) or old[index] is None:
                        full_reload = True
                    elif old[index] != element:
                        slots.append((index, element))
                changed += len(slots)
                patch[locale] = slots
        # granular arrays have their own slots
        if changed > HMR_FULL_RELOAD_THRESHOLD or (changed and self.granular is not None):
            full_reload = True
        logger.info("%s: catalog %s changed, %d slots updated", self.key, path, changed)
        return HMRData(self._hmr_version, {} if full_reload else patch, full_reload)

    async def _on_translated(self, locales: tuple[str, ...]) -> None:
        async with self.shared.lock:
            if self.config.mode is not Mode.CLI:
                await self._persist()
            for locale in locales:
                self._compile(locale)

    async def prune_obsolete(self) -> int:
        """Delete obsolete items.

        Returns:
            Number of items deleted
        """
        async with self.shared.lock:
            obsolete = [key for key, item in self.catalog.items() if item.obsolete]
            for key in obsolete:
                del self.catalog[key]
        if obsolete:
            logger.info("%s: pruned %d obsolete items", self.key, len(obsolete))
        return len(obsolete)

    def status(self) -> dict[str, LocaleStatus]:
        """Translation progress by locale."""
        report = {}
        for locale in self.locales:
            live = [item for item in self.catalog.values() if not item.obsolete]
            translated = sum(1 for item in live if item.translation(locale).translated)
            report[locale] = LocaleStatus(
                total=len(live),
                translated=translated,
                untranslated=len(live) - translated,
                obsolete=len(self.catalog) - len(live),
            )
        return report
