"""Tests for translation batching, verification and retries.

Async behavior is driven with asyncio.run() inside synchronous tests.

Python 3.11+.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

import pytest
from hypothesis import event, given
from hypothesis import strategies as st

from catalogengine.catalog.item import FileRef, Item, RefEntry, Translation
from catalogengine.catalog.storage import PluralRule
from catalogengine.diagnostics import CatalogSaveError
from catalogengine.translation.instruction import build_instruction
from catalogengine.translation.queue import (
    TranslationGroups,
    TranslationQueue,
    TranslationRequest,
    TranslationSet,
    verify_forms,
)
from tests.helpers.fakes import FailingTranslator, ScriptedTranslator, echo_prefix


def _rules(locale: str) -> PluralRule:
    return PluralRule(3, "(n == 0 ? 0 : n == 1 ? 1 : 2)") if locale == "ar" else PluralRule()


def _never(requests: Sequence[TranslationRequest], locales: Sequence[str]) -> list[TranslationSet]:
    return [{} for _ in requests]


class _Completions:
    def __init__(self) -> None:
        self.calls: list[tuple[str, ...]] = []

    async def __call__(self, locales: tuple[str, ...]) -> None:
        self.calls.append(locales)


class TestTranslationQueue:
    """Batches drain, verified translations are stored."""

    def test_translates_and_completes(self) -> None:
        item = Item(["Hi {0}"])
        translator = ScriptedTranslator(echo_prefix(""))
        completions = _Completions()

        async def scenario() -> None:
            queue = TranslationQueue(translator, "en", ["fr"], _rules, completions)
            assert queue.enqueue([item]) is not None
            await queue.wait()
            assert queue.running is None

        asyncio.run(scenario())

        assert item.translation("fr").text == ["fr: Hi {0}"]
        assert completions.calls == [("fr",)]
        [(requests, instruction, locales)] = translator.calls
        assert [request.id for request in requests] == [("Hi {0}",)]
        assert instruction == build_instruction("en", ["fr"])
        assert locales == ("fr",)

    def test_nothing_to_translate(self) -> None:
        item = Item(["Hi"], translations={"fr": Translation(["Salut"])})
        translator = ScriptedTranslator(echo_prefix(""))

        async def scenario() -> None:
            queue = TranslationQueue(translator, "en", ["fr"], _rules)
            assert queue.enqueue([item]) is None

        asyncio.run(scenario())
        assert translator.calls == []

    def test_retry_bound(self) -> None:
        """A batch that never verifies is submitted exactly max_attempts times."""
        item = Item(["Hello"])
        translator = ScriptedTranslator(_never)
        completions = _Completions()

        async def scenario() -> None:
            queue = TranslationQueue(translator, "en", ["fr"], _rules, completions, max_attempts=3)
            queue.enqueue([item])
            await queue.wait()

        asyncio.run(scenario())

        assert len(translator.calls) == 3
        assert not item.translation("fr").translated
        assert completions.calls == [("fr",)]

    def test_only_failures_are_resubmitted(self) -> None:
        good, bad = Item(["Good"]), Item(["Bad {0}"])
        attempts: list[int] = []

        def respond(requests: Sequence[TranslationRequest], locales: Sequence[str]) -> list[TranslationSet]:
            attempts.append(len(requests))
            if len(attempts) == 1:
                # placeholder dropped on the first try
                return [{"fr": [f"ok {request.id[0]}".replace("{0}", "")]} for request in requests]
            return echo_prefix("")(requests, locales)

        async def scenario() -> None:
            queue = TranslationQueue(ScriptedTranslator(respond), "en", ["fr"], _rules)
            queue.enqueue([good, bad])
            await queue.wait()

        asyncio.run(scenario())

        assert attempts == [2, 1]
        assert good.translation("fr").text == ["ok Good"]
        assert bad.translation("fr").text == ["fr: Bad {0}"]

    def test_abandoned_items_can_be_queued_again(self) -> None:
        item = Item(["Hello"])
        translator = ScriptedTranslator(_never)

        async def scenario() -> None:
            queue = TranslationQueue(translator, "en", ["fr"], _rules, max_attempts=1)
            queue.enqueue([item])
            await queue.wait()
            queue.enqueue([item])
            await queue.wait()

        asyncio.run(scenario())
        assert len(translator.calls) == 2

    def test_provider_failure_abandons_batch(self) -> None:
        item = Item(["Hello"])
        translator = FailingTranslator()
        completions = _Completions()

        async def scenario() -> None:
            queue = TranslationQueue(translator, "en", ["fr"], _rules, completions, max_attempts=5)
            queue.enqueue([item])
            await queue.wait()

        asyncio.run(scenario())

        assert translator.calls == 1
        assert not item.translation("fr").translated
        assert completions.calls == [("fr",)]

    def test_exhausted_retries_logged_with_code(self, caplog: pytest.LogCaptureFixture) -> None:
        item = Item(["Hello"])

        async def scenario() -> None:
            queue = TranslationQueue(ScriptedTranslator(_never), "en", ["fr"], _rules, max_attempts=2)
            queue.enqueue([item])
            await queue.wait()

        with caplog.at_level(logging.WARNING, logger="catalogengine.translation.queue"):
            asyncio.run(scenario())

        assert "warning[RETRIES_EXHAUSTED]" in caplog.text
        assert "giving up on 1 messages after 2 attempts" in caplog.text

    def test_provider_failure_logged_with_code(self, caplog: pytest.LogCaptureFixture) -> None:
        async def scenario() -> None:
            queue = TranslationQueue(FailingTranslator(), "en", ["fr"], _rules)
            queue.enqueue([Item(["Hello"])])
            await queue.wait()

        with caplog.at_level(logging.ERROR, logger="catalogengine.translation.queue"):
            asyncio.run(scenario())

        assert "error[PROVIDER_FAILED]" in caplog.text
        assert "provider unavailable" in caplog.text

    def test_completion_error_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        """A failing completion callback does not escape the run task."""
        item = Item(["Hello"])
        calls: list[tuple[str, ...]] = []

        async def on_complete(locales: tuple[str, ...]) -> None:
            calls.append(locales)
            msg = "disk full"
            raise CatalogSaveError(msg)

        async def scenario() -> None:
            queue = TranslationQueue(ScriptedTranslator(echo_prefix("")), "en", ["fr"], _rules, on_complete)
            run = queue.enqueue([item])
            assert run is not None
            await queue.wait()
            assert run.done() and run.exception() is None
            assert queue.running is None

        with caplog.at_level(logging.ERROR, logger="catalogengine.translation.queue"):
            asyncio.run(scenario())

        assert calls == [("fr",)]
        assert item.translation("fr").text == ["fr: Hello"]
        assert "completion failed: disk full" in caplog.text

    def test_items_written_only_under_lock(self) -> None:
        item = Item(["Hello"])
        lock = asyncio.Lock()

        async def scenario() -> None:
            queue = TranslationQueue(ScriptedTranslator(echo_prefix("")), "en", ["fr"], _rules, lock=lock)
            queue.enqueue([item])
            async with lock:
                await asyncio.sleep(0.05)
                assert not item.translation("fr").translated
            await queue.wait()

        asyncio.run(scenario())
        assert item.translation("fr").text == ["fr: Hello"]

    def test_top_up_before_new_batch(self) -> None:
        items = [Item([f"Message {n}"]) for n in range(3)]
        translator = ScriptedTranslator(echo_prefix(""))

        async def scenario() -> None:
            queue = TranslationQueue(translator, "en", ["fr"], _rules, batch_size=2)
            first = queue.enqueue(items[:1])
            second = queue.enqueue(items[1:])
            assert first is second
            assert [len(batch.items) for batch in queue.batches] == [2, 1]
            await queue.wait()

        asyncio.run(scenario())
        assert [len(requests) for requests, _, _ in translator.calls] == [2, 1]

    def test_duplicates_are_skipped(self) -> None:
        item = Item(["Hello"])
        translator = ScriptedTranslator(echo_prefix(""))

        async def scenario() -> None:
            queue = TranslationQueue(translator, "en", ["fr"], _rules)
            queue.enqueue([item, item])
            queue.enqueue([item])
            await queue.wait()

        asyncio.run(scenario())
        assert [len(requests) for requests, _, _ in translator.calls] == [1]

    def test_enqueue_during_run_joins_it(self) -> None:
        first, second = Item(["First"]), Item(["Second"])
        completions = _Completions()
        translated: list[str] = []

        class Gated:
            name = "gated"

            def __init__(self, release: asyncio.Event) -> None:
                self.release = release

            async def translate(
                self,
                requests: Sequence[TranslationRequest],
                instruction: str,
                locales: Sequence[str],
            ) -> Sequence[TranslationSet]:
                await self.release.wait()
                translated.extend(request.id[0] for request in requests)
                return echo_prefix("")(requests, locales)

        async def scenario() -> None:
            release = asyncio.Event()
            queue = TranslationQueue(Gated(release), "en", ["fr"], _rules, completions)
            task = queue.enqueue([first])
            await asyncio.sleep(0)
            assert queue.enqueue([second]) is task
            release.set()
            await queue.wait()

        asyncio.run(scenario())

        assert translated == ["First", "Second"]
        assert completions.calls == [("fr",)]

    def test_parallel_limit(self) -> None:
        items = [Item([f"Message {n}"]) for n in range(5)]
        active = 0
        peak = 0

        class Slow:
            name = "slow"

            async def translate(
                self,
                requests: Sequence[TranslationRequest],
                instruction: str,
                locales: Sequence[str],
            ) -> Sequence[TranslationSet]:
                nonlocal active, peak
                active += 1
                peak = max(peak, active)
                await asyncio.sleep(0)
                await asyncio.sleep(0)
                active -= 1
                return echo_prefix("")(requests, locales)

        async def scenario() -> None:
            queue = TranslationQueue(Slow(), "en", ["fr"], _rules, batch_size=1, parallel=2)
            queue.enqueue(items)
            await queue.wait()

        asyncio.run(scenario())

        assert peak == 2
        assert all(item.translation("fr").translated for item in items)

    def test_group_keeps_partial_progress(self) -> None:
        item = Item(["Hello"])

        def only_fr(requests: Sequence[TranslationRequest], locales: Sequence[str]) -> list[TranslationSet]:
            return [{"fr": ["Bonjour"]} for _ in requests]

        translator = ScriptedTranslator(only_fr)

        async def scenario() -> None:
            queue = TranslationQueue(translator, "en", ["fr", "fr-CH"], _rules, max_attempts=2)
            queue.enqueue([item])
            await queue.wait()

        asyncio.run(scenario())

        assert len(translator.calls) == 2
        assert item.translation("fr").text == ["Bonjour"]
        assert not item.translation("fr-CH").translated

    def test_request_carries_context(self) -> None:
        item = Item(
            ["One file", "{0} files"],
            context="upload",
            translations={"ar": Translation(comments=["keep it short"])},
            references=[
                FileRef("a.html", [RefEntry(["placeholder {0}: count"]), RefEntry(["placeholder {0}: count"])]),
                FileRef("b.html", [RefEntry(["placeholder {0}: n"])]),
            ],
        )
        translator = ScriptedTranslator(_never)

        async def scenario() -> None:
            queue = TranslationQueue(translator, "en", ["ar"], _rules, max_attempts=1)
            queue.enqueue([item])
            await queue.wait()

        asyncio.run(scenario())

        [request] = translator.calls[0][0]
        assert request.id == ("One file", "{0} files")
        assert request.context == "upload"
        assert request.references == ("a.html", "b.html")
        assert request.comments == ("placeholder {0}: count", "placeholder {0}: n", "keep it short")
        assert request.forms == {"ar": 3}


class TestVerifyForms:
    """Form count and structure checks."""

    def test_plain(self) -> None:
        assert verify_forms(Item(["Hi {0}"]), ["Salut {0}"], 2)
        assert not verify_forms(Item(["Hi {0}"]), ["Salut"], 2)
        assert not verify_forms(Item(["Hi"]), ["Salut", "extra"], 2)

    def test_blank_form_rejected(self) -> None:
        assert not verify_forms(Item(["Hi"]), ["  "], 2)

    def test_plural_count_follows_rule(self) -> None:
        item = Item(["One file", "{0} files"])
        assert verify_forms(item, ["Un fichier", "{0} fichiers", "{0} de fichiers"], 3)
        assert not verify_forms(item, ["Un fichier", "{0} fichiers"], 3)

    def test_plural_forms_may_match_any_source_form(self) -> None:
        item = Item(["One file", "{0} files"])
        assert verify_forms(item, ["{0} fichier", "{0} fichiers"], 2)

    def test_extra_tag_rejected(self) -> None:
        assert not verify_forms(Item(["Hi"]), ["<0>Salut</0>"], 2)

    def test_sibling_tags_may_swap(self) -> None:
        item = Item(["<0>Save</0> or <1>cancel</1>"])
        assert verify_forms(item, ["<1>Annuler</1> ou <0>enregistrer</0>"], 2)
        assert not verify_forms(item, ["<0>Enregistrer <1>annuler</1></0>"], 2)

    @given(words=st.lists(st.sampled_from(["Salut", "toi", "ici", "!"]), min_size=1, max_size=5))
    def test_reordered_placeholders_accepted(self, words: list[str]) -> None:
        item = Item(["{0} and {1}"])
        translated = f"{{1}} {' '.join(words)} {{0}}"
        event(f"words={len(words)}")
        assert verify_forms(item, [translated], 2)


class TestTranslationGroups:
    """Locale groups get their own queues."""

    def test_grouping(self) -> None:
        groups = TranslationGroups(
            ScriptedTranslator(_never),
            "en",
            ["en", "fr", "fr-CH", "de"],
            _rules,
            groups=[["fr", "fr-CH", "en"]],
        )
        assert [queue.locales for queue in groups.queues] == [("fr", "fr-CH"), ("de",)]

    def test_locale_in_two_groups_goes_to_first(self) -> None:
        groups = TranslationGroups(
            ScriptedTranslator(_never),
            "en",
            ["en", "fr", "de"],
            _rules,
            groups=[["fr"], ["fr", "de"]],
        )
        assert [queue.locales for queue in groups.queues] == [("fr",), ("de",)]

    def test_enqueue_only_where_needed(self) -> None:
        item = Item(["Hello"], translations={"fr": Translation(["Bonjour"])})
        translator = ScriptedTranslator(echo_prefix(""))

        async def scenario() -> None:
            groups = TranslationGroups(translator, "en", ["en", "fr", "de"], _rules)
            assert len(groups.enqueue([item])) == 1
            await groups.wait()

        asyncio.run(scenario())

        assert [locales for _, _, locales in translator.calls] == [("de",)]
        assert item.translation("de").text == ["de: Hello"]
        assert item.translation("fr").text == ["Bonjour"]
