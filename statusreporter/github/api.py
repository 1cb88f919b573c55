"""GitHub API abstraction used by the reporter."""

from __future__ import annotations

from abc import ABC, abstractmethod

from statusreporter.models import ChangeState


class GitHubApi(ABC):
    """Remote code-hosting operations needed to report commit status.

    Every coroutine raises :class:`~statusreporter.errors.GitHubApiError`
    when the remote call fails.
    """

    @property
    @abstractmethod
    def server_url(self) -> str:
        """API root this client talks to."""
        ...

    @abstractmethod
    def is_pull_request_merge_branch(self, branch: str) -> bool:
        """Return True if *branch* is a pull-request merge reference."""
        ...

    @abstractmethod
    async def find_pull_request_commit(self, owner: str, repo: str, branch: str) -> str | None:
        """Return the head commit of the pull request behind *branch*."""
        ...

    @abstractmethod
    async def set_change_status(
        self,
        owner: str,
        repo: str,
        commit: str,
        state: ChangeState,
        target_url: str,
        description: str,
        context: str | None = None,
    ) -> None:
        """Create a commit status."""
        ...

    @abstractmethod
    async def get_pull_request_id(self, repo: str, branch: str | None) -> str | None:
        """Return the pull request id for *branch*, or None if it is not one."""
        ...

    @abstractmethod
    async def post_pull_request_comment(
        self, owner: str, repo: str, pull_request_id: str, comment: str
    ) -> None:
        ...

    @abstractmethod
    async def post_commit_comment(self, owner: str, repo: str, commit: str, comment: str) -> None:
        ...


class GitHubApiFactory(ABC):
    """Opens authenticated :class:`GitHubApi` handles."""

    @abstractmethod
    def open_for_user(self, server_url: str, username: str, password: str) -> GitHubApi:
        ...

    @abstractmethod
    def open_for_token(self, server_url: str, token: str) -> GitHubApi:
        ...
