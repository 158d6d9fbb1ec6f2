"""Prompt checkers backed by the PromptL compiler.

``PromptLChecker`` delegates to ``promptl_ai``, the same scanner the
service runs at publish time, and adds two light policy checks on top of
its result: an optional required config section and a warning when the
config names no model.
"""

from __future__ import annotations

import functools
import logging
from abc import ABC, abstractmethod

from promptl_ai import Error, ErrorPosition, Promptl, PromptlError

from latitude_sync.validation.models import CompileDiagnostic, CompileError, Location

logger = logging.getLogger(__name__)


class PromptChecker(ABC):
    """Interface for a static prompt checker."""

    @abstractmethod
    def scan(self, content: str, path: str) -> list[CompileDiagnostic]:
        """Return diagnostics for *content*; raise CompileError on fatal parse errors."""
        ...


@functools.lru_cache(maxsize=1)
def default_promptl() -> Promptl:
    """Shared compiler instance; loading the WASM module is slow."""
    logger.debug("loading PromptL compiler")
    return Promptl()


def _location(pos: ErrorPosition | None) -> Location | None:
    if pos is None:
        return None
    return Location(line=pos.line, column=pos.column)


def _diagnostic(err: Error) -> CompileDiagnostic:
    return CompileDiagnostic(
        code=err.code or "compile-error",
        message=err.message,
        start=_location(err.start),
        frame=err.frame,
    )


class PromptLChecker(PromptChecker):
    """Scan prompts with the PromptL compiler."""

    def __init__(self, promptl: Promptl | None = None, *, require_config: bool = False) -> None:
        self._promptl = promptl
        self.require_config = require_config

    @property
    def promptl(self) -> Promptl:
        if self._promptl is None:
            self._promptl = default_promptl()
        return self._promptl

    def scan(self, content: str, path: str) -> list[CompileDiagnostic]:
        try:
            result = self.promptl.prompts.scan(content, full_path=path)
        except PromptlError as e:
            cause = e.cause
            raise CompileError(
                cause.code or "compile-error",
                cause.message,
                start=_location(cause.start),
                frame=cause.frame,
            ) from e

        diags = [_diagnostic(err) for err in result.errors]
        if diags:
            return diags

        if not result.config:
            if self.require_config:
                diags.append(
                    CompileDiagnostic(
                        code="config-not-found",
                        message="Prompt has no configuration section",
                    )
                )
        elif not result.config.get("model"):
            diags.append(
                CompileDiagnostic(
                    code="config-missing-model",
                    message="Configuration does not declare a model",
                    severity="warning",
                )
            )

        if not result.resolved_prompt.strip():
            diags.append(
                CompileDiagnostic(code="empty-prompt", message="Prompt has no content", severity="warning")
            )
        return diags
