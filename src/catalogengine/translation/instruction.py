"""Instructions sent to machine translation providers.

Python 3.11+.
"""

from __future__ import annotations

from collections.abc import Sequence

from catalogengine.locale_utils import get_language_name

__all__ = ["build_instruction"]

_PLACEHOLDER_RULES = """\
The placeholder format is like the following examples:
    - {0}: an arbitrary value inserted at runtime.
    - <0>something</0>: something enclosed in tags, like HTML tags.
    - <0/>: a self-closing tag, like in HTML.
In all of the examples, 0 stands for any integer.
Keep every placeholder of the source text in the translation. Placeholders may
be reordered to fit the target language, but never renamed, added or dropped."""


def build_instruction(source_locale: str, target_locales: Sequence[str]) -> str:
    """Instruction describing one translation request.

    Languages are named in English (``French (Switzerland)``) with the
    locale code alongside, so providers see both.

    Example:
        >>> build_instruction("en", ["fr"]).splitlines()[0]
        'You will be given the messages of a web application written in English (en).'
    """
    source = f"{get_language_name(source_locale)} ({source_locale})"
    targets = ", ".join(f"{get_language_name(loc)} ({loc})" for loc in target_locales)
    return (
        f"You will be given the messages of a web application written in {source}.\n"
        f"Translate each message into: {targets}.\n"
        "Use the context, references and comments of each message to pick the right\n"
        "meaning. Plural messages list their source forms; provide exactly as many\n"
        "forms as the target language uses, in gettext order.\n"
        f"{_PLACEHOLDER_RULES}"
    )
