"""Tests for the JSON text translator adapter and provider instructions.

Python 3.11+.
"""

from __future__ import annotations

import asyncio
import json

import pytest

from catalogengine.diagnostics import DiagnosticCode, TranslationError
from catalogengine.translation.adapters import JSONTextTranslator, parse_reply, serialize_requests
from catalogengine.translation.instruction import build_instruction
from catalogengine.translation.queue import TranslationRequest

REQUESTS = [
    TranslationRequest(id=("Hello",), forms={"fr": 1}),
    TranslationRequest(
        id=("One file", "{0} files"),
        context="upload",
        references=("src/app.html",),
        comments=("placeholder {0}: count",),
        forms={"fr": 2},
    ),
]


class TestSerializeRequests:
    """Batch payload."""

    def test_payload(self) -> None:
        payload = json.loads(serialize_requests(REQUESTS))
        assert payload[1] == {
            "n": 1,
            "id": ["One file", "{0} files"],
            "context": "upload",
            "references": ["src/app.html"],
            "comments": ["placeholder {0}: count"],
            "forms": {"fr": 2},
        }
        assert payload[0]["context"] is None

    def test_non_ascii_kept(self) -> None:
        assert "Grüß" in serialize_requests([TranslationRequest(id=("Grüß",))])


class TestParseReply:
    """Reply parsing is lenient per element, strict on the envelope."""

    def test_in_request_order(self) -> None:
        reply = json.dumps(
            [
                {"n": 1, "translations": {"fr": ["Un fichier", "{0} fichiers"]}},
                {"n": 0, "translations": {"fr": ["Bonjour"]}},
            ]
        )
        assert parse_reply(reply, 2) == [{"fr": ["Bonjour"]}, {"fr": ["Un fichier", "{0} fichiers"]}]

    def test_code_fence_stripped(self) -> None:
        reply = '```json\n[{"n": 0, "translations": {"fr": ["Salut"]}}]\n```'
        assert parse_reply(reply, 1) == [{"fr": ["Salut"]}]

    def test_missing_elements_are_empty(self) -> None:
        assert parse_reply('[{"n": 1, "translations": {"fr": ["x"]}}]', 3) == [{}, {"fr": ["x"]}, {}]

    @pytest.mark.parametrize(
        "element",
        [
            '"text"',
            '{"n": 5, "translations": {"fr": ["x"]}}',
            '{"n": "0", "translations": {"fr": ["x"]}}',
            '{"n": 0, "translations": ["x"]}',
        ],
    )
    def test_bad_elements_ignored(self, element: str) -> None:
        assert parse_reply(f"[{element}]", 1) == [{}]

    def test_duplicate_keeps_first(self) -> None:
        reply = '[{"n": 0, "translations": {"fr": ["a"]}}, {"n": 0, "translations": {"fr": ["b"]}}]'
        assert parse_reply(reply, 1) == [{"fr": ["a"]}]

    def test_forms_coerced_to_strings(self) -> None:
        assert parse_reply('[{"n": 0, "translations": {"fr": [1, "x"], "de": "y"}}]', 1) == [{"fr": ["1", "x"]}]

    def test_invalid_json(self) -> None:
        with pytest.raises(TranslationError) as exc_info:
            parse_reply("Sorry, I cannot help", 1)
        assert exc_info.value.diagnostic is not None
        assert exc_info.value.diagnostic.code is DiagnosticCode.PROVIDER_RESPONSE_INVALID

    def test_not_an_array(self) -> None:
        with pytest.raises(TranslationError, match="JSON array"):
            parse_reply('{"n": 0}', 1)


class TestJSONTextTranslator:
    """End to end over a fake completion."""

    def test_translate(self) -> None:
        prompts: list[tuple[str, str]] = []

        async def complete(prompt: str, instruction: str) -> str:
            prompts.append((prompt, instruction))
            return '[{"n": 0, "translations": {"fr": ["Bonjour"]}}]'

        translator = JSONTextTranslator(complete, name="fake")
        sets = asyncio.run(translator.translate(REQUESTS, "Translate.", ["fr"]))

        assert sets == [{"fr": ["Bonjour"]}, {}]
        [(prompt, instruction)] = prompts
        assert json.loads(prompt)[0]["id"] == ["Hello"]
        assert instruction.startswith("Translate.\n")
        assert "JSON array" in instruction

    def test_unparseable_reply_raises(self) -> None:
        async def complete(prompt: str, instruction: str) -> str:
            return "no"

        with pytest.raises(TranslationError):
            asyncio.run(JSONTextTranslator(complete).translate(REQUESTS, "", ["fr"]))


class TestBuildInstruction:
    """Languages named for the provider."""

    def test_names_and_codes(self) -> None:
        instruction = build_instruction("en", ["fr", "fr-CH"])
        assert "written in English (en)" in instruction
        assert "French (fr), French (Switzerland) (fr-CH)" in instruction
        assert "<0/>" in instruction

    def test_unknown_locale_falls_back_to_code(self) -> None:
        assert "(xx)" in build_instruction("en", ["xx"])
