"""Translator adapters over generic text completion.

Most providers expose "send a prompt, get text back". JSONTextTranslator
turns that into the Translator contract: the batch is serialized as a JSON
array, the provider is asked to answer with a JSON array of translation
sets, and the reply is parsed back. Provider protocols themselves (HTTP,
authentication, models) stay outside this package.

Request element:
    {"n": 0, "id": ["One file", "{0} files"], "context": null,
     "references": ["src/app.html"], "comments": ["placeholder {0}: count"],
     "forms": {"fr": 2}}

Reply element:
    {"n": 0, "translations": {"fr": ["Un fichier", "{0} fichiers"]}}

Python 3.11+. Zero external dependencies.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Awaitable, Callable, Sequence

from catalogengine.diagnostics import Diagnostic, DiagnosticCode, TranslationError

from .queue import TranslationRequest, TranslationSet

__all__ = ["CompletionFunc", "JSONTextTranslator", "parse_reply", "serialize_requests"]

logger = logging.getLogger(__name__)

CompletionFunc = Callable[[str, str], Awaitable[str]]
"""Text completion: (prompt, instruction) -> reply text."""

_FENCE_RE = re.compile(r"^```(?:json)?\s*\n(.*?)\n```\s*$", re.DOTALL)

_REPLY_FORMAT = """\
Answer with a JSON array only, one element per message:
    {"n": <the message's n>, "translations": {"<locale>": ["<form>", ...]}}
Give every requested locale exactly the number of forms listed in "forms"."""


def serialize_requests(requests: Sequence[TranslationRequest]) -> str:
    """Batch as the JSON array sent to the provider."""
    payload = [
        {
            "n": n,
            "id": list(request.id),
            "context": request.context,
            "references": list(request.references),
            "comments": list(request.comments),
            "forms": dict(request.forms),
        }
        for n, request in enumerate(requests)
    ]
    return json.dumps(payload, ensure_ascii=False, indent=1)


def parse_reply(reply: str, count: int) -> list[TranslationSet]:
    """Parse a provider reply into translation sets in request order.

    Elements with an unknown or duplicate ``n`` are ignored; requests without
    an element get an empty set, so they are retried.

    Raises:
        TranslationError: If the reply is not a JSON array
    """
    text = reply.strip()
    fenced = _FENCE_RE.match(text)
    if fenced:
        text = fenced.group(1)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        diagnostic = Diagnostic(
            code=DiagnosticCode.PROVIDER_RESPONSE_INVALID,
            message=f"Translation reply is not valid JSON: {e}",
        )
        raise TranslationError(diagnostic) from e
    if not isinstance(data, list):
        diagnostic = Diagnostic(
            code=DiagnosticCode.PROVIDER_RESPONSE_INVALID,
            message=f"Translation reply must be a JSON array, got {type(data).__name__}",
        )
        raise TranslationError(diagnostic)
    sets: list[TranslationSet] = [{} for _ in range(count)]
    for element in data:
        if not isinstance(element, dict):
            continue
        n = element.get("n")
        translations = element.get("translations")
        if not isinstance(n, int) or not 0 <= n < count or sets[n] or not isinstance(translations, dict):
            logger.debug("Ignoring reply element %r", element)
            continue
        sets[n] = {
            str(locale): [str(form) for form in forms]
            for locale, forms in translations.items()
            if isinstance(forms, list)
        }
    return sets


class JSONTextTranslator:
    """Translator backed by a text completion callable.

    Args:
        complete: Async text completion (prompt, instruction) -> reply
        name: Provider name used in logs

    Example:
        >>> async def complete(prompt: str, instruction: str) -> str:
        ...     return await my_llm_client.generate(prompt, system=instruction)
        >>> translator = JSONTextTranslator(complete, name="my-llm")
    """

    __slots__ = ("complete", "name")

    def __init__(self, complete: CompletionFunc, name: str = "json") -> None:
        self.complete = complete
        self.name = name

    async def translate(
        self,
        requests: Sequence[TranslationRequest],
        instruction: str,
        locales: Sequence[str],
    ) -> list[TranslationSet]:
        """Send a batch and parse the reply.

        Raises:
            TranslationError: If the reply cannot be parsed
        """
        reply = await self.complete(serialize_requests(requests), f"{instruction}\n{_REPLY_FORMAT}")
        logger.debug("%s: %d chars reply for %d messages into %s", self.name, len(reply), len(requests), locales)
        return parse_reply(reply, len(requests))
