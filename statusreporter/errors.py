"""Custom exceptions for the commit status reporter."""

from __future__ import annotations


class ReporterError(Exception):
    """Base exception for all reporter errors."""


class ConfigurationError(ReporterError):
    """Raised when a feature configuration cannot be resolved.

    Raised at configuration time, before anything is scheduled; the caller
    must reject the configuration.
    """


class GitHubApiError(ReporterError):
    """Raised when a GitHub API call fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)
