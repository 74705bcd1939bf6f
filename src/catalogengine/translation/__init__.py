"""Machine translation backfill.

Components:
    TranslationQueue - Batches, retries and verifies one locale group
    TranslationGroups - One queue per configured locale group
    JSONTextTranslator - Translator over a plain text completion callable

Python 3.11+.
"""

from .adapters import CompletionFunc, JSONTextTranslator, parse_reply, serialize_requests
from .instruction import build_instruction
from .queue import (
    Batch,
    TranslationGroups,
    TranslationQueue,
    TranslationRequest,
    TranslationSet,
    Translator,
    verify_forms,
)

__all__ = [
    "Batch",
    "CompletionFunc",
    "JSONTextTranslator",
    "TranslationGroups",
    "TranslationQueue",
    "TranslationRequest",
    "TranslationSet",
    "Translator",
    "build_instruction",
    "parse_reply",
    "serialize_requests",
    "verify_forms",
]
