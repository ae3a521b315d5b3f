# src/logging/context.py — v2
"""Contextual logging support — attach translation scope and step to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging, set per normalization call.
_language_code: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "language_code", default=None
)
_project_id: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "project_id", default=None
)
_file_id: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "file_id", default=None
)
_step: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "step", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    language_code: str | None = None
    project_id: int | None = None
    file_id: int | None = None
    step: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        language_code=_language_code.get(),
        project_id=_project_id.get(),
        file_id=_file_id.get(),
        step=_step.get(),
    )


def set_scope_context(
    language_code: str, project_id: int, file_id: int | None = None
) -> None:
    """Set scope-level context (called once per normalization)."""
    _language_code.set(language_code)
    _project_id.set(project_id)
    _file_id.set(file_id)


def set_step_context(step: str | None) -> None:
    """Set the pipeline step currently running."""
    _step.set(step)


def clear_context() -> None:
    """Reset all context variables."""
    _language_code.set(None)
    _project_id.set(None)
    _file_id.set(None)
    _step.set(None)
