"""ChangeStatusUpdater — entry point used by the build lifecycle."""

from __future__ import annotations

from typing import Any

import structlog

from statusreporter.errors import ConfigurationError
from statusreporter.github.api import GitHubApiFactory
from statusreporter.models import BuildOutcome, ChangeState, DispatchTask, RepositoryVersion
from statusreporter.reporting.dispatcher import BuildCommentWriter, StatusDispatcher
from statusreporter.scheduler import ReportWorkerPool
from statusreporter.settings import FEATURE_TYPE, FeatureDescriptor, ResolvedFeature, resolve_feature

_log = structlog.get_logger(__name__)

BUILD_LABEL = "TeamCity Build"


class WebLinks:
    """Builds links into the build server UI."""

    def __init__(self, root_url: str) -> None:
        self._root_url = root_url.rstrip("/")

    def view_results_url(self, build: BuildOutcome) -> str:
        url = f"{self._root_url}/viewLog.html?buildId={build.build_id}"
        if build.build_type_id:
            url += f"&buildTypeId={build.build_type_id}"
        return url


def with_guest_marker(url: str) -> str:
    return url + ("&" if "?" in url else "?") + "guest=1"


class UpdateHandler:
    """Schedules status reports for one configured feature.

    The ``schedule_*`` methods only enqueue work and return; they never raise.
    Callers should check :meth:`should_report_on_start` /
    :meth:`should_report_on_finish` first to skip unconfigured phases.

    They may be called from any thread once the pool is started. Calls from
    outside the pool's event loop are handed over to it.
    """

    def __init__(
        self,
        feature: ResolvedFeature,
        dispatcher: StatusDispatcher,
        pool: ReportWorkerPool,
        web: WebLinks,
        *,
        logger: Any = None,
    ) -> None:
        self._feature = feature
        self._dispatcher = dispatcher
        self._pool = pool
        self._web = web
        self._log = logger or _log

    @property
    def feature(self) -> ResolvedFeature:
        return self._feature

    def should_report_on_start(self) -> bool:
        return self._feature.should_report_on_start

    def should_report_on_finish(self) -> bool:
        return self._feature.should_report_on_finish

    def schedule_change_started(self, version: RepositoryVersion, build: BuildOutcome) -> None:
        self._schedule(
            version, build, f"Started - {BUILD_LABEL} {build.full_name}", ChangeState.PENDING
        )

    def schedule_change_completed(self, version: RepositoryVersion, build: BuildOutcome) -> None:
        state = ChangeState.SUCCESS if build.successful else ChangeState.ERROR
        text = build.status_text or ""
        self._schedule(version, build, f"{text} - {BUILD_LABEL} {build.full_name}", state)

    def results_url(self, build: BuildOutcome) -> str:
        url = self._web.view_results_url(build)
        if self._feature.use_guest_urls:
            return with_guest_marker(url)
        return url

    def _schedule(
        self,
        version: RepositoryVersion,
        build: BuildOutcome,
        message: str,
        state: ChangeState,
    ) -> None:
        self._log.info(
            "status.scheduled",
            hash=version.version,
            branch=version.vcs_branch,
            build_id=build.build_id,
            state=state.value,
        )
        try:
            task = DispatchTask(
                version=version,
                build=build,
                message=message,
                state=state,
                target=self._feature.target,
                results_url=self.results_url(build),
                add_comments=self._feature.add_comments,
            )
            self._pool.submit(self._dispatcher, task)
        except Exception:
            self._log.exception(
                "status.schedule_failed",
                hash=version.version,
                build_id=build.build_id,
                state=state.value,
            )


class ChangeStatusUpdater:
    """Creates :class:`UpdateHandler` instances for configured features.

    One handler is created per feature instance; every report scheduled
    through it shares the feature's GitHub client and repository target.
    """

    def __init__(
        self,
        factory: GitHubApiFactory,
        web: WebLinks,
        pool: ReportWorkerPool,
        *,
        comment_writer: BuildCommentWriter | None = None,
    ) -> None:
        self._factory = factory
        self._web = web
        self._pool = pool
        self._comment_writer = comment_writer

    def get_update_handler(self, feature: FeatureDescriptor) -> UpdateHandler:
        """Resolve *feature* and return its handler.

        Raises :class:`ConfigurationError` if the feature cannot be used.
        """
        if feature.type != FEATURE_TYPE:
            raise ConfigurationError(f"Unexpected feature type {feature.type}")

        resolved = resolve_feature(feature.parameters, self._factory)
        dispatcher = StatusDispatcher(resolved.api, comment_writer=self._comment_writer)
        return UpdateHandler(resolved, dispatcher, self._pool, self._web)
