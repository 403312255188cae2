"""Exceptions raised while resolving a version triple and its base image.

Exception Hierarchy:
    ResolutionError (base)
    ├── NoCandidatesError - the filter chain emptied the candidate set
    ├── NoImageTagError - no registry tag matched the accelerator version
    └── FetchError - a remote fetch failed or returned unusable content

Malformed listing lines are not errors: the parser returns None for them.
"""

from typing import Any, Dict, Optional


class ResolutionError(Exception):
    """Base exception for resolution failures.

    Attributes:
        message: Human-readable error description
        details: Additional context for logs
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


class NoCandidatesError(ResolutionError):
    """No artifact survived the filter chain."""

    def __init__(self, message: str, constraints=None):
        details = {}
        if constraints is not None:
            details = {
                "python": constraints.python or "latest",
                "library": constraints.library or "latest",
                "accelerator": constraints.accelerator or "latest",
            }
        super().__init__(message, details)
        self.constraints = constraints


class NoImageTagError(ResolutionError):
    """No registry tag matched the accelerator version."""

    def __init__(self, message: str, accelerator_version: Optional[str] = None):
        super().__init__(
            message,
            {"accelerator_version": accelerator_version} if accelerator_version else None,
        )
        self.accelerator_version = accelerator_version


class FetchError(ResolutionError):
    """A remote fetch failed or returned content that cannot be used."""

    def __init__(self, message: str, url: Optional[str] = None, status_code: Optional[int] = None):
        details: Dict[str, Any] = {}
        if url:
            details["url"] = url
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, details)
        self.url = url
        self.status_code = status_code
