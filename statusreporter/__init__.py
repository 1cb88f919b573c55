"""Asynchronous commit status reporting for builds.

Host wiring, once per process::

    setup_logging()
    pool = create_worker_pool()
    await pool.start()
    updater = ChangeStatusUpdater(HttpGitHubApiFactory(), WebLinks(root_url), pool)
"""

from statusreporter.core.logging import setup_logging
from statusreporter.errors import ConfigurationError, GitHubApiError, ReporterError
from statusreporter.models import (
    BuildOutcome,
    BuildStatistics,
    BuildStatus,
    ChangeState,
    DispatchTask,
    FailedTest,
    FailureReason,
    RemoteTarget,
    ReportEvent,
    RepositoryVersion,
)
from statusreporter.scheduler import ReportWorkerPool, create_worker_pool
from statusreporter.settings import FEATURE_TYPE, FeatureDescriptor, resolve_feature
from statusreporter.updater import ChangeStatusUpdater, UpdateHandler, WebLinks

__all__ = [
    "FEATURE_TYPE",
    "BuildOutcome",
    "BuildStatistics",
    "BuildStatus",
    "ChangeState",
    "ChangeStatusUpdater",
    "ConfigurationError",
    "DispatchTask",
    "FailedTest",
    "FailureReason",
    "FeatureDescriptor",
    "GitHubApiError",
    "RemoteTarget",
    "ReportEvent",
    "ReportWorkerPool",
    "ReporterError",
    "RepositoryVersion",
    "UpdateHandler",
    "WebLinks",
    "create_worker_pool",
    "resolve_feature",
    "setup_logging",
]
