"""In-memory collaborators for store and translation tests.

MemoryStorage satisfies the CatalogStorage protocol without touching the
filesystem; ScriptedTranslator replays canned responses and records every
call so tests can assert on batching and retries. The gated variants block
until released so tests can interleave saves and translation runs.
"""

from __future__ import annotations

import asyncio
import copy
import threading
from collections.abc import Callable, Sequence

from catalogengine.catalog.storage import LoadData, SaveData
from catalogengine.translation.queue import TranslationRequest, TranslationSet


class MemoryStorage:
    """CatalogStorage keeping a deep copy of the last save."""

    def __init__(self, key: str = "memory", data: LoadData | None = None) -> None:
        self._key = key
        self.data = data or LoadData()
        self.saves = 0

    @property
    def key(self) -> str:
        return self._key

    @property
    def files(self) -> list[str]:
        return []

    def load(self) -> LoadData:
        return copy.deepcopy(self.data)

    def save(self, data: SaveData) -> None:
        self.saves += 1
        self.data = LoadData(copy.deepcopy(list(data.items)), dict(data.plural_rules))


class GatedStorage(MemoryStorage):
    """MemoryStorage whose saves block until the gate opens.

    The gate starts open. Saves run in a worker thread, so the gate and the
    entered flag are threading events. Every saved catalog is kept in order.
    """

    def __init__(self, key: str = "memory") -> None:
        super().__init__(key)
        self.gate = threading.Event()
        self.gate.set()
        self.entered = threading.Event()
        self.history: list[LoadData] = []

    def save(self, data: SaveData) -> None:
        self.entered.set()
        self.gate.wait(5)
        super().save(data)
        self.history.append(self.data)


Responder = Callable[[Sequence[TranslationRequest], Sequence[str]], Sequence[TranslationSet]]


def echo_prefix(prefix: str) -> Responder:
    """Responder translating every form as ``<prefix><locale>: <form>``."""

    def respond(requests: Sequence[TranslationRequest], locales: Sequence[str]) -> list[TranslationSet]:
        return [
            {locale: [f"{prefix}{locale}: {form}" for form in request.id] for locale in locales}
            for request in requests
        ]

    return respond


class ScriptedTranslator:
    """Translator answering through a responder and recording calls."""

    def __init__(self, respond: Responder, name: str = "scripted") -> None:
        self.respond = respond
        self.name = name
        self.calls: list[tuple[list[TranslationRequest], str, tuple[str, ...]]] = []

    async def translate(
        self,
        requests: Sequence[TranslationRequest],
        instruction: str,
        locales: Sequence[str],
    ) -> Sequence[TranslationSet]:
        self.calls.append((list(requests), instruction, tuple(locales)))
        return self.respond(requests, locales)


class FailingTranslator:
    """Translator whose every call raises."""

    name = "failing"

    def __init__(self) -> None:
        self.calls = 0

    async def translate(
        self,
        requests: Sequence[TranslationRequest],
        instruction: str,
        locales: Sequence[str],
    ) -> Sequence[TranslationSet]:
        self.calls += 1
        msg = "provider unavailable"
        raise ConnectionError(msg)


class GatedTranslator(ScriptedTranslator):
    """ScriptedTranslator answering only once released."""

    def __init__(self, respond: Responder, name: str = "gated") -> None:
        super().__init__(respond, name)
        self.release = asyncio.Event()

    async def translate(
        self,
        requests: Sequence[TranslationRequest],
        instruction: str,
        locales: Sequence[str],
    ) -> Sequence[TranslationSet]:
        await self.release.wait()
        return await super().translate(requests, instruction, locales)
