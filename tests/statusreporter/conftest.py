"""Shared fixtures for statusreporter tests (no network required)."""

from __future__ import annotations

from typing import Any

import pytest

from statusreporter.core.github import is_pull_request_merge_branch, parse_pull_request_number
from statusreporter.github.api import GitHubApi, GitHubApiFactory
from statusreporter.models import (
    BuildOutcome,
    ChangeState,
    DispatchTask,
    RemoteTarget,
    RepositoryVersion,
)


class FakeGitHubApi(GitHubApi):
    """Records every call; any operation can be scripted to fail.

    Usage:
        api = FakeGitHubApi(pull_request_heads={"7": "deadbeef"})
        api.failures["set_change_status"] = GitHubApiError("boom")
    """

    def __init__(
        self,
        *,
        server_url: str = "https://api.github.com",
        pull_request_heads: dict[str, str] | None = None,
    ) -> None:
        self._server_url = server_url
        self.pull_request_heads = dict(pull_request_heads or {})
        self.failures: dict[str, Exception] = {}
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))
        if name in self.failures:
            raise self.failures[name]

    def called(self, name: str) -> list[tuple[Any, ...]]:
        return [args for call, args in self.calls if call == name]

    @property
    def server_url(self) -> str:
        return self._server_url

    def is_pull_request_merge_branch(self, branch: str) -> bool:
        return is_pull_request_merge_branch(branch)

    async def find_pull_request_commit(self, owner: str, repo: str, branch: str) -> str | None:
        self._record("find_pull_request_commit", owner, repo, branch)
        return self.pull_request_heads.get(parse_pull_request_number(branch) or "")

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
        self._record(
            "set_change_status", owner, repo, commit, state, target_url, description, context
        )

    async def get_pull_request_id(self, repo: str, branch: str | None) -> str | None:
        self._record("get_pull_request_id", repo, branch)
        return parse_pull_request_number(branch)

    async def post_pull_request_comment(
        self, owner: str, repo: str, pull_request_id: str, comment: str
    ) -> None:
        self._record("post_pull_request_comment", owner, repo, pull_request_id, comment)

    async def post_commit_comment(self, owner: str, repo: str, commit: str, comment: str) -> None:
        self._record("post_commit_comment", owner, repo, commit, comment)


class FakeGitHubApiFactory(GitHubApiFactory):
    def __init__(self, api: FakeGitHubApi | None = None) -> None:
        self.api = api or FakeGitHubApi()
        self.opened: list[tuple[str, ...]] = []

    def open_for_user(self, server_url: str, username: str, password: str) -> GitHubApi:
        self.opened.append(("password", server_url, username, password))
        return self.api

    def open_for_token(self, server_url: str, token: str) -> GitHubApi:
        self.opened.append(("token", server_url, token))
        return self.api


@pytest.fixture
def api():
    return FakeGitHubApi(pull_request_heads={"7": "deadbeef"})


@pytest.fixture
def target():
    return RemoteTarget(owner="acme", repo="widgets", context="ci/teamcity")


@pytest.fixture
def make_build():
    def _make(**overrides: Any) -> BuildOutcome:
        fields: dict[str, Any] = {
            "build_id": 42,
            "full_name": "Widgets :: Build",
            "build_number": "42",
            "build_type_id": "Widgets_Build",
            "build_type_full_name": "Widgets :: Build",
        }
        fields.update(overrides)
        return BuildOutcome(**fields)

    return _make


@pytest.fixture
def make_task(make_build, target):
    def _make(
        *,
        version: RepositoryVersion | None = None,
        build: BuildOutcome | None = None,
        state: ChangeState = ChangeState.PENDING,
        message: str = "Started - TeamCity Build Widgets :: Build",
        add_comments: bool = False,
    ) -> DispatchTask:
        return DispatchTask(
            version=version or RepositoryVersion("abcd123", "refs/heads/main"),
            build=build or make_build(),
            message=message,
            state=state,
            target=target,
            results_url="https://ci.example.com/viewLog.html?buildId=42",
            add_comments=add_comments,
        )

    return _make


@pytest.fixture
def make_factory():
    def _make(api: FakeGitHubApi | None = None) -> FakeGitHubApiFactory:
        return FakeGitHubApiFactory(api)

    return _make
