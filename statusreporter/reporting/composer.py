"""Markdown comment rendering for build status comments."""

from __future__ import annotations

from datetime import datetime

from statusreporter.models import (
    COMPILATION_ERROR_TYPE,
    FAILED_TESTS_TYPE,
    BuildOutcome,
    BuildStatistics,
    BuildStatus,
    RepositoryVersion,
)

# Index of the last listed compilation block / failed test.
MAX_LISTED_INDEX = 10


def format_duration(seconds: int) -> str:
    """Format a duration in seconds as ``HH:MM:SS`` (hours do not roll over)."""
    second = seconds % 60
    minute = (seconds // 60) % 60
    hour = seconds // 3600
    return f"{hour:02d}:{minute:02d}:{second:02d}"


def format_medium_date(value: datetime) -> str:
    """Medium date style, e.g. ``Oct 9, 2026``."""
    return f"{value:%b} {value.day}, {value.year}"


def compose_comment(
    version: RepositoryVersion,
    build: BuildOutcome,
    completed: bool,
    commit: str,
    results_url: str,
) -> str:
    """Return the Markdown comment describing *build* for *commit*.

    A started build only gets the header line. A completed build also gets
    test statistics and, unless it finished normally, one section per
    failure reason.
    """
    parts: list[str] = []

    if completed:
        parts.append(f"**{build.build_status.text}**")
    else:
        parts.append("Started")

    parts.append(" - TeamCity ")
    if build.build_type_full_name:
        parts.append(build.build_type_full_name)
    parts.append(f" [Build {build.build_number}]({results_url}) for {commit}\n")

    if completed:
        stats = build.statistics
        parts.append(
            f"Tests: {stats.all_test_count}, {stats.failed_test_count} failed "
            f"({stats.new_failed_count} new), {stats.ignored_test_count} ignored. "
            f"Build time: {format_duration(build.duration)}"
        )

        if build.build_status is not BuildStatus.NORMAL:
            for reason in build.failure_reasons:
                parts.append("\n\n")
                parts.append(reason.description)
                if reason.type == COMPILATION_ERROR_TYPE:
                    parts.append(_compilation_errors(stats))
                elif reason.type == FAILED_TESTS_TYPE:
                    parts.append(_failed_tests(stats))

    return "".join(parts)


def _compilation_errors(stats: BuildStatistics) -> str:
    lines: list[str] = []
    for i, block in enumerate(stats.compilation_errors):
        lines.append(f"\n* {block}")
        if i == MAX_LISTED_INDEX:
            remaining = stats.total_compilation_errors - MAX_LISTED_INDEX
            lines.append(f"\n* ... {remaining} more\n")
            break
    return "".join(lines)


def _failed_tests(stats: BuildStatistics) -> str:
    lines: list[str] = []
    for i, test in enumerate(stats.failed_tests):
        lines.append("\n* ")
        if test.new_failure:
            lines.append("(new) ")
        elif test.first_failed is not None:
            lines.append(f"(since {format_medium_date(test.first_failed)}) ")
        lines.append(f"{test.name}\n\n")
        if i == MAX_LISTED_INDEX:
            remaining = stats.failed_test_count - (MAX_LISTED_INDEX + 1)
            lines.append(f"... {remaining} more\n")
            break
    return "".join(lines)
