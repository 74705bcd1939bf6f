"""Names of runtime helpers referenced by transformed source code.

Transformed files call into a small runtime object obtained from the
catalog loader:

    _i18n_.t(index, [args])       translate a plain message
    _i18n_.cx(index)              compiled element, for component rendering
    _i18n_.tx(ctx, [args])        render a nested compound fragment
    <I18nTrans tags=... ctx=.../> component rendering compound messages

Python 3.11+. Zero external dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass

__all__ = ["RuntimeVars"]


@dataclass(frozen=True, slots=True)
class RuntimeVars:
    """Runtime identifiers emitted into transformed code.

    Attributes:
        runtime: Variable holding the runtime object in transformed code
        nest_context: Parameter name passed to nested fragment callbacks
        component: Component rendering compound messages with nested tags
        loader: Expression producing the runtime for a file; ``{load_id}``
            is substituted with the file's load ID
        loader_import: Import statement placed in the header of transformed files
    """

    runtime: str = "_i18n_"
    nest_context: str = "_i18n_ctx_"
    component: str = "I18nTrans"
    loader: str = "_i18n_load_({load_id!r})"
    loader_import: str = 'import { getRuntime as _i18n_load_ } from "./locales/loader.js"'

    @property
    def translate(self) -> str:
        return f"{self.runtime}.t"

    @property
    def context(self) -> str:
        return f"{self.runtime}.cx"

    @property
    def translate_context(self) -> str:
        return f"{self.runtime}.tx"

    def init_statement(self, load_id: str) -> str:
        """Statement binding the runtime variable for one load ID."""
        return f"const {self.runtime} = {self.loader.format(load_id=load_id)}"
