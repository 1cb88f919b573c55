"""StatusDispatcher — executes one scheduled status report."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import structlog

from statusreporter.core.github import pull_request_url
from statusreporter.github.api import GitHubApi
from statusreporter.models import BuildOutcome, DispatchTask
from statusreporter.reporting.composer import compose_comment
from statusreporter.reporting.resolver import CommitResolver

_log = structlog.get_logger("statusreporter.reporting")


class BuildCommentWriter(ABC):
    """Host hook for setting a build's own comment."""

    @abstractmethod
    async def set_build_comment(self, build: BuildOutcome, user: str, comment: str) -> None:
        ...


class StatusDispatcher:
    """Runs :class:`DispatchTask` instances against one GitHub client.

    Steps:
    1. Resolve the commit (see :class:`CommitResolver`).
    2. Set the commit status.
    3. If comments are enabled, comment on the pull request or the commit.

    Each step is isolated: a failure is logged and the next step still runs.
    :meth:`run` never raises.
    """

    def __init__(
        self,
        api: GitHubApi,
        *,
        comment_writer: BuildCommentWriter | None = None,
        logger: Any = None,
    ) -> None:
        self._api = api
        self._comment_writer = comment_writer
        self._log = logger or _log

    async def run(self, task: DispatchTask) -> None:
        try:
            await self._run(task)
        except Exception:
            self._log.exception(
                "status.task_failed",
                hash=task.version.version,
                build_id=task.build.build_id,
                state=task.state.value,
            )

    async def _run(self, task: DispatchTask) -> None:
        resolver = CommitResolver(self._api, task.target, logger=self._log)
        commit = await resolver.resolve(
            task.version, build_id=task.build.build_id, state=task.state.value
        )
        await self.update_status(task, commit)
        if task.add_comments:
            await self.post_comment(task, commit)

    async def update_status(self, task: DispatchTask, commit: str) -> None:
        """Set the commit status; failures are logged, not raised."""
        target = task.target
        try:
            await self._api.set_change_status(
                target.owner,
                target.repo,
                commit,
                task.state,
                task.results_url,
                task.message,
                target.context,
            )
        except Exception as exc:
            self._log.warning(
                "status.update_failed",
                hash=commit,
                build_id=task.build.build_id,
                state=task.state.value,
                error=str(exc),
                exc_info=True,
            )
            return
        self._log.info(
            "status.updated", hash=commit, build_id=task.build.build_id, state=task.state.value
        )

    async def post_comment(self, task: DispatchTask, commit: str) -> None:
        """Comment on the pull request behind the branch, else on the commit."""
        target = task.target
        branch = task.version.vcs_branch
        try:
            pull_request_id = await self._api.get_pull_request_id(target.repo, branch)
            comment = compose_comment(
                task.version, task.build, task.completed, commit, task.results_url
            )
            if pull_request_id is not None:
                await self._set_build_comment(task, pull_request_id)
                await self._api.post_pull_request_comment(
                    target.owner, target.repo, pull_request_id, comment
                )
                self._log.info(
                    "comment.posted_pr",
                    pull_request=pull_request_id,
                    build_id=task.build.build_id,
                    state=task.state.value,
                )
            else:
                await self._api.post_commit_comment(target.owner, target.repo, commit, comment)
                self._log.info(
                    "comment.posted_commit",
                    hash=commit,
                    build_id=task.build.build_id,
                    state=task.state.value,
                )
        except Exception as exc:
            self._log.warning(
                "comment.failed",
                branch=branch,
                build_id=task.build.build_id,
                state=task.state.value,
                error=str(exc),
                exc_info=True,
            )

    async def _set_build_comment(self, task: DispatchTask, pull_request_id: str) -> None:
        """Point the build's comment at the pull request (best-effort)."""
        if self._comment_writer is None or not task.build.committers:
            return
        try:
            url = pull_request_url(
                self._api.server_url, task.target.owner, task.target.repo, pull_request_id
            )
            await self._comment_writer.set_build_comment(task.build, task.build.committers[0], url)
        except Exception as exc:
            self._log.warning(
                "build_comment.failed",
                pull_request=pull_request_id,
                build_id=task.build.build_id,
                error=str(exc),
                exc_info=True,
            )
