"""lintdelta exception hierarchy."""

from __future__ import annotations

from collections.abc import Sequence


class LintDeltaError(Exception):
    """Base exception for all lintdelta errors."""

    def __init__(self, message: str, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class BackendUnavailable(LintDeltaError):
    """The version-control backend could not answer a query."""

    def __init__(
        self,
        message: str,
        command: Sequence[str] | None = None,
        stderr: str = "",
    ) -> None:
        super().__init__(message, stderr.strip() or None)
        self.command = list(command) if command else []
        self.stderr = stderr


class ConfigError(LintDeltaError):
    """Invalid configuration."""


class BaselineError(LintDeltaError):
    """Baseline or scan file could not be read."""
