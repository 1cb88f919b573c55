"""Reporting engine — commit resolution, comment rendering and dispatch."""

from statusreporter.reporting.composer import compose_comment, format_duration
from statusreporter.reporting.dispatcher import BuildCommentWriter, StatusDispatcher
from statusreporter.reporting.resolver import CommitResolver

__all__ = [
    "BuildCommentWriter",
    "CommitResolver",
    "StatusDispatcher",
    "compose_comment",
    "format_duration",
]
