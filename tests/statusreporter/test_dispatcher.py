"""Tests for StatusDispatcher — one report, every failure isolated."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from statusreporter.errors import GitHubApiError
from statusreporter.models import BuildStatus, ChangeState, RepositoryVersion
from statusreporter.reporting.dispatcher import BuildCommentWriter, StatusDispatcher

PR_VERSION = RepositoryVersion("abcd123", "refs/pull/7/merge")


class RecordingCommentWriter(BuildCommentWriter):
    def __init__(self, error: Exception | None = None) -> None:
        self.comments: list[tuple[int, str, str]] = []
        self._error = error

    async def set_build_comment(self, build, user, comment):
        if self._error is not None:
            raise self._error
        self.comments.append((build.build_id, user, comment))


# ── status ────────────────────────────────────────────────────────────────


class TestStatus:
    @pytest.mark.asyncio
    async def test_started_non_pr(self, api, make_task):
        await StatusDispatcher(api).run(make_task())

        assert api.called("set_change_status") == [
            (
                "acme",
                "widgets",
                "abcd123",
                ChangeState.PENDING,
                "https://ci.example.com/viewLog.html?buildId=42",
                "Started - TeamCity Build Widgets :: Build",
                "ci/teamcity",
            )
        ]
        assert api.called("get_pull_request_id") == []

    @pytest.mark.asyncio
    async def test_finished_pr_reports_against_head(self, api, make_task):
        task = make_task(version=PR_VERSION, state=ChangeState.SUCCESS, message="Success")
        await StatusDispatcher(api).run(task)

        (call,) = api.called("set_change_status")
        assert call[2] == "deadbeef"
        assert call[3] is ChangeState.SUCCESS

    @pytest.mark.asyncio
    async def test_resolution_failure_reports_raw_version(self, api, make_task):
        api.failures["find_pull_request_commit"] = GitHubApiError("timeout")
        await StatusDispatcher(api).run(make_task(version=PR_VERSION))

        (call,) = api.called("set_change_status")
        assert call[2] == "abcd123"

    @pytest.mark.asyncio
    async def test_status_failure_is_logged(self, api, make_task):
        api.failures["set_change_status"] = GitHubApiError("422", 422)
        logger = MagicMock()

        await StatusDispatcher(api, logger=logger).run(make_task())

        events = [c.args[0] for c in logger.warning.call_args_list]
        assert events == ["status.update_failed"]
        logger.exception.assert_not_called()


# ── comments ──────────────────────────────────────────────────────────────


class TestComments:
    @pytest.mark.asyncio
    async def test_disabled(self, api, make_task):
        await StatusDispatcher(api).run(make_task(add_comments=False))
        assert api.called("post_commit_comment") == []
        assert api.called("post_pull_request_comment") == []

    @pytest.mark.asyncio
    async def test_pull_request_comment(self, api, make_task, make_build):
        build = make_build(status_text="Tests passed: 12", build_status=BuildStatus.NORMAL)
        task = make_task(
            version=PR_VERSION, build=build, state=ChangeState.SUCCESS, add_comments=True
        )
        await StatusDispatcher(api).run(task)

        assert api.called("post_commit_comment") == []
        ((owner, repo, pr_id, comment),) = api.called("post_pull_request_comment")
        assert (owner, repo, pr_id) == ("acme", "widgets", "7")
        assert comment.startswith("**SUCCESS** - TeamCity Widgets :: Build [Build 42]")
        assert "for deadbeef\n" in comment

    @pytest.mark.asyncio
    async def test_commit_comment_when_no_pull_request(self, api, make_task):
        await StatusDispatcher(api).run(make_task(add_comments=True))

        assert api.called("post_pull_request_comment") == []
        ((owner, repo, commit, comment),) = api.called("post_commit_comment")
        assert (owner, repo, commit) == ("acme", "widgets", "abcd123")
        assert comment.startswith("Started - TeamCity")

    @pytest.mark.asyncio
    async def test_comment_attempted_after_status_failure(self, api, make_task):
        api.failures["set_change_status"] = GitHubApiError("500", 500)
        await StatusDispatcher(api).run(make_task(add_comments=True))

        assert len(api.called("set_change_status")) == 1
        assert len(api.called("post_commit_comment")) == 1

    @pytest.mark.asyncio
    async def test_comment_failure_does_not_raise(self, api, make_task):
        api.failures["post_commit_comment"] = GitHubApiError("403", 403)
        logger = MagicMock()

        await StatusDispatcher(api, logger=logger).run(make_task(add_comments=True))

        assert len(api.called("set_change_status")) == 1
        events = [c.args[0] for c in logger.warning.call_args_list]
        assert events == ["comment.failed"]

    @pytest.mark.asyncio
    async def test_pull_request_lookup_failure_is_isolated(self, api, make_task):
        api.failures["get_pull_request_id"] = RuntimeError("boom")
        await StatusDispatcher(api).run(make_task(version=PR_VERSION, add_comments=True))

        assert len(api.called("set_change_status")) == 1
        assert api.called("post_pull_request_comment") == []


# ── build comment ─────────────────────────────────────────────────────────


class TestBuildComment:
    @pytest.mark.asyncio
    async def test_set_to_pull_request_url(self, api, make_task, make_build):
        writer = RecordingCommentWriter()
        build = make_build(committers=["alice", "bob"])
        task = make_task(version=PR_VERSION, build=build, add_comments=True)

        await StatusDispatcher(api, comment_writer=writer).run(task)

        assert writer.comments == [(42, "alice", "https://github.com/acme/widgets/pull/7")]

    @pytest.mark.asyncio
    async def test_skipped_without_committers(self, api, make_task):
        writer = RecordingCommentWriter()
        await StatusDispatcher(api, comment_writer=writer).run(
            make_task(version=PR_VERSION, add_comments=True)
        )
        assert writer.comments == []
        assert len(api.called("post_pull_request_comment")) == 1

    @pytest.mark.asyncio
    async def test_failure_does_not_block_comment(self, api, make_task, make_build):
        writer = RecordingCommentWriter(error=PermissionError("read-only build"))
        logger = MagicMock()
        task = make_task(
            version=PR_VERSION, build=make_build(committers=["alice"]), add_comments=True
        )

        await StatusDispatcher(api, comment_writer=writer, logger=logger).run(task)

        assert len(api.called("post_pull_request_comment")) == 1
        events = [c.args[0] for c in logger.warning.call_args_list]
        assert events == ["build_comment.failed"]


@pytest.mark.asyncio
async def test_unexpected_error_never_escapes(make_task):
    api = MagicMock()
    api.is_pull_request_merge_branch.side_effect = TypeError("broken client")
    api.set_change_status = AsyncMock()
    logger = MagicMock()

    await StatusDispatcher(api, logger=logger).run(make_task(version=PR_VERSION))

    logger.exception.assert_called_once()
    api.set_change_status.assert_not_called()
