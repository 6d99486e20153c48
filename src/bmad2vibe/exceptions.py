"""Custom exceptions for bmad2vibe."""

from typing import Any


class Bmad2VibeError(Exception):
    """Base exception for all bmad2vibe errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.details = details or {}


class SourceError(Bmad2VibeError):
    """Raised when a source tree or source item cannot be read."""


class PolicyLoadError(Bmad2VibeError):
    """Raised when a safety policy file cannot be loaded or validated."""


class ArtifactStoreError(Bmad2VibeError):
    """Raised when an artifact cannot be persisted or read back."""
