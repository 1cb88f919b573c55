"""Data models for the commit status reporter.

These are pure data structures: the host build system produces
:class:`RepositoryVersion` and :class:`BuildOutcome` per build, the reporter
only reads them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

# Build problem types reported by the build server.
COMPILATION_ERROR_TYPE = "TC_COMPILATION_ERROR"
FAILED_TESTS_TYPE = "TC_FAILED_TESTS"


class ChangeState(str, Enum):
    """Commit status value sent to GitHub."""

    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"


class ReportEvent(str, Enum):
    """Which build lifecycle phases are reported."""

    ON_START = "start"
    ON_FINISH = "finish"
    ON_START_AND_FINISH = "both"
    NEVER = "never"

    @property
    def reports_start(self) -> bool:
        return self in (ReportEvent.ON_START, ReportEvent.ON_START_AND_FINISH)

    @property
    def reports_finish(self) -> bool:
        return self in (ReportEvent.ON_FINISH, ReportEvent.ON_START_AND_FINISH)


class AuthenticationType(str, Enum):
    """How the GitHub client authenticates."""

    PASSWORD = "password"
    TOKEN = "token"


class BuildStatus(str, Enum):
    """Overall build status as shown by the build server."""

    NORMAL = "SUCCESS"
    WARNING = "WARNING"
    FAILURE = "FAILURE"
    ERROR = "ERROR"

    @property
    def text(self) -> str:
        return self.value


@dataclass(frozen=True)
class RepositoryVersion:
    """A VCS-level reference for a build."""

    version: str  # raw commit hash
    vcs_branch: str | None = None  # e.g. "refs/heads/main", "refs/pull/7/merge"


@dataclass(frozen=True)
class FailedTest:
    """A single failed test run."""

    name: str
    new_failure: bool = False
    first_failed: datetime | None = None  # finish date of the build it first failed in


@dataclass(frozen=True)
class FailureReason:
    """A build problem reported by the build server."""

    type: str
    description: str


@dataclass(frozen=True)
class BuildStatistics:
    """Test and compilation statistics of a build."""

    all_test_count: int = 0
    failed_test_count: int = 0
    new_failed_count: int = 0
    ignored_test_count: int = 0
    failed_tests: list[FailedTest] = field(default_factory=list)
    compilation_errors: list[str] = field(default_factory=list)  # one entry per compiler block
    compilation_errors_count: int | None = None

    @property
    def total_compilation_errors(self) -> int:
        if self.compilation_errors_count is None:
            return len(self.compilation_errors)
        return self.compilation_errors_count


@dataclass(frozen=True)
class BuildOutcome:
    """Read-only view of a running or finished build."""

    build_id: int
    full_name: str  # "Project :: Build Config"
    build_number: str
    build_type_id: str | None = None
    build_type_full_name: str | None = None
    duration: int = 0  # seconds
    successful: bool = True
    status_text: str | None = None
    build_status: BuildStatus = BuildStatus.NORMAL
    statistics: BuildStatistics = field(default_factory=BuildStatistics)
    failure_reasons: list[FailureReason] = field(default_factory=list)
    committers: list[str] = field(default_factory=list)  # since the previous build


@dataclass(frozen=True)
class RemoteTarget:
    """Identity of the GitHub repository reported against."""

    owner: str
    repo: str
    context: str | None = None  # status context label


@dataclass(frozen=True)
class DispatchTask:
    """One scheduled unit of reporting work.

    Everything the task needs is captured at schedule time; the task is
    executed exactly once and then discarded.
    """

    version: RepositoryVersion
    build: BuildOutcome
    message: str
    state: ChangeState
    target: RemoteTarget
    results_url: str
    add_comments: bool = False

    @property
    def completed(self) -> bool:
        return self.state is not ChangeState.PENDING
