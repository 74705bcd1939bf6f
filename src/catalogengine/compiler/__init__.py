"""Placeholder compilation and compiled artifact rendering.

Python 3.11+. Zero external dependencies.
"""

from .artifact import (
    HMRData,
    compiled_module_path,
    plural_selector,
    render_catalog_module,
    render_hmr_patch,
)
from .placeholders import (
    CompiledElement,
    compile_plural,
    compile_translation,
    structural_shape,
    structurally_equivalent,
)

__all__ = [
    "CompiledElement",
    "HMRData",
    "compile_plural",
    "compile_translation",
    "compiled_module_path",
    "plural_selector",
    "render_catalog_module",
    "render_hmr_patch",
    "structural_shape",
    "structurally_equivalent",
]
