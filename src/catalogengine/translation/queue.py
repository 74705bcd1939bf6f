"""Batching and retry engine for machine translation.

A TranslationQueue serves one locale group (one or more target locales
translated together). Items are collected into batches of at most
batch_size; the newest pending batch is topped up before a new one is
opened. A single run task drains the batches, up to parallel at a time, and
calls on_complete once everything is drained. Enqueueing while a run is in
flight appends to that run instead of starting another.

Each response is verified per item and locale:
    - the number of forms matches the locale's plural rule (1 for plain messages)
    - every form is structurally equivalent to a source form (same
      placeholders and tags; literal text and the order of siblings are ignored)

Items failing verification are resubmitted, at most max_attempts times per
batch in total. A provider exception abandons the batch for this run; the
items stay untranslated and are picked up again next time they are seen.

Requests are built and verified results stored while holding the queue's
lock; only the provider call runs outside it. Callers sharing items with
other writers pass their own lock. Errors raised by on_complete are logged
and do not end the run.

Python 3.11+.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from catalogengine.catalog.item import Item
from catalogengine.catalog.storage import PluralRule
from catalogengine.compiler.placeholders import compile_translation, structurally_equivalent
from catalogengine.constants import DEFAULT_BATCH_SIZE, DEFAULT_PARALLEL, MAX_TRANSLATION_ATTEMPTS
from catalogengine.diagnostics import CatalogEngineError, Diagnostic, DiagnosticCode

from .instruction import build_instruction

# ruff: noqa: RUF022 - __all__ organized by category for readability
__all__ = [
    # Provider contract
    "TranslationRequest",
    "TranslationSet",
    "Translator",
    # Queue
    "Batch",
    "TranslationGroups",
    "TranslationQueue",
    "verify_forms",
]

logger = logging.getLogger(__name__)

TranslationSet = Mapping[str, Sequence[str]]
"""Translated forms by locale for one item."""


@dataclass(frozen=True, slots=True)
class TranslationRequest:
    """What a provider sees of one item.

    Attributes:
        id: Source text, or singular and plural source forms
        context: Disambiguation context
        references: Files using the item
        comments: Placeholder descriptions and translator comments
        forms: Number of forms expected per target locale
    """

    id: tuple[str, ...]
    context: str | None = None
    references: tuple[str, ...] = ()
    comments: tuple[str, ...] = ()
    forms: Mapping[str, int] = field(default_factory=dict)


class Translator(Protocol):
    """Machine translation provider.

    translate() returns one TranslationSet per request, in request order.
    Missing or malformed entries are retried; raising abandons the batch.
    """

    name: str

    async def translate(
        self,
        requests: Sequence[TranslationRequest],
        instruction: str,
        locales: Sequence[str],
    ) -> Sequence[TranslationSet]:
        """Translate a batch into every locale."""
        ...


@dataclass(slots=True)
class Batch:
    """Items submitted together."""

    id: int
    items: list[Item] = field(default_factory=list)


def verify_forms(item: Item, forms: Sequence[str], nplurals: int) -> bool:
    """Check translated forms of an item against its source forms.

    Example:
        >>> verify_forms(Item(["Hi <0>you</0>"]), ["Salut <0>toi</0>"], 2)
        True
        >>> verify_forms(Item(["Hi <0>you</0>"]), ["Salut toi"], 2)
        False
    """
    expected = nplurals if item.plural else 1
    if len(forms) != expected or not all(isinstance(form, str) and form.strip() for form in forms):
        return False
    sources = [compile_translation(source, source) for source in item.id]
    return all(
        any(structurally_equivalent(compile_translation(form, form), source) for source in sources)
        for form in forms
    )


class TranslationQueue:
    """Translation queue of one locale group.

    Args:
        translator: Provider to call
        source_locale: Locale the source texts are written in
        locales: Target locales of the group
        plural_rule: Plural rule lookup by locale
        on_complete: Awaited with the group's locales after a run drains
        batch_size: Maximum items per provider call
        parallel: Maximum concurrent provider calls
        max_attempts: Maximum submissions of a batch
        lock: Held while reading and writing items; a private lock by default
    """

    def __init__(
        self,
        translator: Translator,
        source_locale: str,
        locales: Sequence[str],
        plural_rule: Callable[[str], PluralRule],
        on_complete: Callable[[tuple[str, ...]], Awaitable[None]] | None = None,
        *,
        lock: asyncio.Lock | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        parallel: int = DEFAULT_PARALLEL,
        max_attempts: int = MAX_TRANSLATION_ATTEMPTS,
    ) -> None:
        if batch_size < 1 or parallel < 1 or max_attempts < 1:
            msg = "batch_size, parallel and max_attempts must be positive"
            raise ValueError(msg)
        self.translator = translator
        self.source_locale = source_locale
        self.locales = tuple(locales)
        self.plural_rule = plural_rule
        self.on_complete = on_complete
        self.batch_size = batch_size
        self.parallel = parallel
        self.max_attempts = max_attempts
        self.lock = lock if lock is not None else asyncio.Lock()
        self.instruction = build_instruction(source_locale, self.locales)
        self.batches: list[Batch] = []
        self._next_batch_id = 0
        self._queued: set[str] = set()
        self._running: asyncio.Task[None] | None = None

    def _name(self, batch_id: int) -> str:
        return f"{self.translator.name}: {'+'.join(self.locales)} [{batch_id}]"

    @property
    def running(self) -> asyncio.Task[None] | None:
        """The in-flight run, if any."""
        return self._running

    def needs_translation(self, item: Item) -> bool:
        """Some locale of the group lacks a translation of the item."""
        return any(not item.translation(locale).translated for locale in self.locales)

    def enqueue(self, items: Sequence[Item]) -> asyncio.Task[None] | None:
        """Queue items and make sure a run is in flight.

        Items already queued, and items translated in every locale of the
        group, are skipped. Must be called from within a running event loop.

        Returns:
            The run task, or None when nothing needed translating
        """
        fresh: list[Item] = []
        for item in items:
            if item.key not in self._queued and self.needs_translation(item):
                self._queued.add(item.key)
                fresh.append(item)
        if fresh:
            last = self.batches[-1] if self.batches else None
            if last is not None and len(last.items) < self.batch_size:
                free = self.batch_size - len(last.items)
                last.items.extend(fresh[:free])
                logger.info("%s: (add) translate %d messages", self._name(last.id), len(fresh[:free]))
                fresh = fresh[free:]
            for start in range(0, len(fresh), self.batch_size):
                batch = Batch(self._next_batch_id, fresh[start : start + self.batch_size])
                self._next_batch_id += 1
                self.batches.append(batch)
                logger.info("%s: (new) translate %d messages", self._name(batch.id), len(batch.items))
        if self.batches and self._running is None:
            self._running = asyncio.get_running_loop().create_task(self._run())
        return self._running

    async def wait(self) -> None:
        """Wait until the in-flight run, including later enqueues, completes."""
        while self._running is not None:
            await asyncio.shield(self._running)

    async def _run(self) -> None:
        try:
            while self.batches:
                while self.batches:
                    taken = self.batches[: self.parallel]
                    del self.batches[: self.parallel]
                    await asyncio.gather(*(self._translate(batch) for batch in taken))
                # batches enqueued during on_complete join this run
                if self.on_complete is not None:
                    try:
                        await self.on_complete(self.locales)
                    except CatalogEngineError as e:
                        logger.error(
                            "%s: %s: completion failed: %s", self.translator.name, "+".join(self.locales), e
                        )
        finally:
            self._running = None

    def _request(self, item: Item) -> TranslationRequest:
        comments: list[str] = []
        for ref in item.references:
            for entry in ref.refs:
                comments.extend(entry.describe())
        for locale in self.locales:
            comments.extend(item.translation(locale).comments)
        return TranslationRequest(
            id=tuple(item.id),
            context=item.context,
            references=tuple(ref.file for ref in item.references),
            comments=tuple(dict.fromkeys(comments)),
            forms={locale: self.plural_rule(locale).nplurals if item.plural else 1 for locale in self.locales},
        )

    def _apply(self, items: list[Item], responses: Sequence[TranslationSet]) -> list[Item]:
        """Store verified translations; return items still lacking one."""
        remaining: list[Item] = []
        for i, item in enumerate(items):
            response = responses[i] if i < len(responses) else None
            complete = True
            for locale in self.locales:
                translation = item.translation(locale)
                if translation.translated:
                    continue
                forms = list(response.get(locale, ())) if isinstance(response, Mapping) else []
                if verify_forms(item, forms, self.plural_rule(locale).nplurals):
                    translation.text = forms
                else:
                    logger.debug(
                        "%s",
                        Diagnostic(
                            code=DiagnosticCode.TRANSLATION_MISMATCH,
                            message=f"{self.translator.name}: rejected {forms!r} for {item.id!r} in {locale}",
                            severity="warning",
                        ).format_error(),
                    )
                    complete = False
            if not complete:
                remaining.append(item)
        return remaining

    async def _translate(self, batch: Batch) -> None:
        pending = list(batch.items)
        name = self._name(batch.id)
        try:
            for attempt in range(1, self.max_attempts + 1):
                async with self.lock:
                    requests = [self._request(item) for item in pending]
                try:
                    responses = await self.translator.translate(requests, self.instruction, self.locales)
                except Exception as e:  # pylint: disable=broad-exception-caught
                    # Provider failures of any kind abandon the batch for this run
                    logger.error(
                        "%s",
                        Diagnostic(
                            code=DiagnosticCode.PROVIDER_FAILED,
                            message=f"{name}: {e}",
                            hint="The messages stay untranslated until they are seen again",
                        ).format_error(),
                    )
                    return
                async with self.lock:
                    pending = self._apply(pending, responses)
                if not pending:
                    logger.info("%s: translated", name)
                    return
                if attempt < self.max_attempts:
                    logger.warning("%s: %d messages not translated, retrying", name, len(pending))
            logger.warning(
                "%s",
                Diagnostic(
                    code=DiagnosticCode.RETRIES_EXHAUSTED,
                    message=f"{name}: giving up on {len(pending)} messages after {self.max_attempts} attempts",
                    severity="warning",
                ).format_error(),
            )
        finally:
            self._queued.difference_update(item.key for item in batch.items)


class TranslationGroups:
    """One TranslationQueue per locale group.

    Locales not named in any group are translated on their own.

    Args:
        translator: Provider shared by all groups
        source_locale: Locale the source texts are written in
        locales: All locales; the source locale is never a target
        plural_rule: Plural rule lookup by locale
        on_complete: Awaited with a group's locales after its run drains
        groups: Locales translated together in one request
        batch_size: Maximum items per provider call
        parallel: Maximum concurrent provider calls per group
        max_attempts: Maximum submissions of a batch
        lock: Held by every group while reading and writing items
    """

    def __init__(
        self,
        translator: Translator,
        source_locale: str,
        locales: Sequence[str],
        plural_rule: Callable[[str], PluralRule],
        on_complete: Callable[[tuple[str, ...]], Awaitable[None]] | None = None,
        *,
        lock: asyncio.Lock | None = None,
        groups: Sequence[Sequence[str]] = (),
        batch_size: int = DEFAULT_BATCH_SIZE,
        parallel: int = DEFAULT_PARALLEL,
        max_attempts: int = MAX_TRANSLATION_ATTEMPTS,
    ) -> None:
        targets = [locale for locale in locales if locale != source_locale]
        grouped: list[tuple[str, ...]] = []
        seen: set[str] = set()
        for group in groups:
            members = tuple(locale for locale in group if locale in targets and locale not in seen)
            if members:
                grouped.append(members)
                seen.update(members)
        grouped.extend((locale,) for locale in targets if locale not in seen)
        lock = lock if lock is not None else asyncio.Lock()
        self.queues = [
            TranslationQueue(
                translator,
                source_locale,
                group,
                plural_rule,
                on_complete,
                lock=lock,
                batch_size=batch_size,
                parallel=parallel,
                max_attempts=max_attempts,
            )
            for group in grouped
        ]

    def enqueue(self, items: Sequence[Item]) -> list[asyncio.Task[None]]:
        """Queue items on every group that lacks a translation for them."""
        tasks = []
        for queue in self.queues:
            task = queue.enqueue(items)
            if task is not None:
                tasks.append(task)
        return tasks

    async def wait(self) -> None:
        """Wait for the runs of all groups."""
        await asyncio.gather(*(queue.wait() for queue in self.queues))
