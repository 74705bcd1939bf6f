"""Compiled runtime artifact rendering.

A compiled catalog is an ES module exporting the ordered CompiledElement
array under ``c`` and, when plural items exist, a plural selector ``p``
derived from the locale's gettext plural expression:

    export let c = ["Hello",["Foo ",[0,"bar"]]]
    export let p = (n) => Number((n != 1))

In dev mode the module also exports ``update({version, data})`` so a hot
reload patch can replace single array slots in place.

The plural expression is C syntax shared by gettext and JavaScript, so the
same text drives the runtime selector and the Python-side plural_selector().

Python 3.11+. Zero external dependencies.
"""

from __future__ import annotations

import gettext
import json
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from catalogengine.constants import CATALOG_VAR_NAME, PLURAL_FUNC_NAME

from .placeholders import CompiledElement

__all__ = [
    "HMRData",
    "compiled_module_path",
    "plural_selector",
    "render_catalog_module",
    "render_hmr_patch",
]

_LOAD_ID_UNSAFE_RE = re.compile(r"[^a-zA-Z0-9_]+")


@dataclass(frozen=True, slots=True)
class HMRData:
    """Version-stamped hot reload patch.

    Attributes:
        version: Monotonic patch version; runtimes ignore stale versions
        data: Changed compiled slots by locale, as (index, compiled) pairs
        full_reload: True when the change cannot be patched in place
    """

    version: int
    data: dict[str, list[tuple[int, CompiledElement]]] = field(default_factory=dict)
    full_reload: bool = False

    def to_json(self) -> dict[str, object]:
        """JSON-ready form consumed by the runtime update hook."""
        return {
            "version": self.version,
            "data": {loc: [list(pair) for pair in slots] for loc, slots in self.data.items()},
        }


def _dump(value: object) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def render_catalog_module(
    compiled: Sequence[CompiledElement | None],
    locale: str,
    plural_expr: str | None = None,
    hmr_version: int | None = None,
) -> str:
    """Render the ES module source for one compiled catalog.

    Args:
        compiled: Compiled elements by index; unassigned slots are None
        locale: Locale the array was compiled for (keys the HMR data)
        plural_expr: gettext plural expression, only when plurals exist
        hmr_version: Current patch version; enables the update hook

    Returns:
        Module source text. Rendering the same input twice yields identical text.
    """
    lines = [
        "/** @type {import('catalogengine').CompiledElement[]} */",
        f"export let {CATALOG_VAR_NAME} = {_dump(list(compiled))}",
    ]
    if plural_expr:
        lines.append(f"export let {PLURAL_FUNC_NAME} = (/** @type {{number}} */ n) => Number({plural_expr})")
    if hmr_version is not None:
        lines.extend(
            [
                "// dev only: in-place hot reload",
                f"let latestVersion = {hmr_version}",
                "export function update({ version, data }) {",
                "    if (latestVersion >= version) {",
                "        return",
                "    }",
                f"    for (const [index, item] of data[{_dump(locale)}] ?? []) {{",
                f"        {CATALOG_VAR_NAME}[index] = item",
                "    }",
                "    latestVersion = version",
                "}",
            ]
        )
    return "\n".join(lines) + "\n"


def render_hmr_patch(hmr: HMRData) -> str:
    """Render a patch as a JavaScript constant embeddable in transformed code."""
    return f"const __i18nHMR = {_dump(hmr.to_json())}"


def compiled_module_path(directory: str | Path, locale: str, load_id: str | None = None) -> Path:
    """Path of the compiled module for a locale and optional load ID.

    Example:
        >>> compiled_module_path("out", "fr").as_posix()
        'out/fr.js'
        >>> compiled_module_path("out", "fr", "src/routes/+page").as_posix()
        'out/src_routes_page.fr.js'
    """
    if load_id is None:
        return Path(directory) / f"{locale}.js"
    return Path(directory) / f"{_LOAD_ID_UNSAFE_RE.sub('_', load_id)}.{locale}.js"


def plural_selector(plural_expr: str) -> Callable[[int], int]:
    """Build a Python plural-form selector from a gettext plural expression.

    Raises:
        ValueError: If the expression is not a valid gettext plural expression

    Example:
        >>> select = plural_selector("(n != 1)")
        >>> select(1), select(5)
        (0, 1)
    """
    return gettext.c2py(plural_expr)
