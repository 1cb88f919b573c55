"""Resolve the commit a status should be reported against."""

from __future__ import annotations

from typing import Any

import structlog

from statusreporter.errors import GitHubApiError
from statusreporter.github.api import GitHubApi
from statusreporter.models import RemoteTarget, RepositoryVersion

_log = structlog.get_logger("statusreporter.reporting")


class CommitResolver:
    """Maps a :class:`RepositoryVersion` to the commit GitHub knows about.

    Pull-request merge branches point at a synthetic merge commit; statuses
    reported there are not shown on the pull request, so the pull request's
    head commit is used instead. Resolution is best-effort: any lookup
    failure falls back to the raw version.
    """

    def __init__(self, api: GitHubApi, target: RemoteTarget, *, logger: Any = None) -> None:
        self._api = api
        self._target = target
        self._log = logger or _log

    async def resolve(self, version: RepositoryVersion, **log_context: Any) -> str:
        branch = version.vcs_branch
        if not branch or not self._api.is_pull_request_merge_branch(branch):
            return version.version

        try:
            commit = await self._api.find_pull_request_commit(
                self._target.owner, self._target.repo, branch
            )
            if not commit:
                raise GitHubApiError(f"Failed to find head hash for commit from {branch}")
        except Exception as exc:
            self._log.warning(
                "commit.resolve_failed",
                branch=branch,
                repo=self._target.repo,
                hash=version.version,
                error=str(exc),
                **log_context,
            )
            return version.version

        self._log.info(
            "commit.resolved",
            hash=version.version,
            new_hash=commit,
            branch=branch,
            **log_context,
        )
        return commit
