"""Async GitHub REST client for commit statuses and comments."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from statusreporter.core.github import is_pull_request_merge_branch, parse_pull_request_number
from statusreporter.errors import GitHubApiError
from statusreporter.github.api import GitHubApi, GitHubApiFactory
from statusreporter.models import ChangeState

log = structlog.get_logger("statusreporter.github")

_DEFAULT_TIMEOUT = 30.0


class GitHubClient(GitHubApi):
    """Thin async wrapper around the GitHub REST API.

    Calls are made once; a failing call raises :class:`GitHubApiError` and is
    never retried.
    """

    def __init__(
        self,
        server_url: str,
        *,
        token: str | None = None,
        username: str | None = None,
        password: str | None = None,
        timeout: float = _DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._server_url = server_url.strip().rstrip("/")
        headers: dict[str, str] = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        auth: httpx.BasicAuth | None = None
        if token:
            headers["Authorization"] = f"token {token}"
        elif username:
            auth = httpx.BasicAuth(username, password or "")
        self._client = httpx.AsyncClient(
            base_url=self._server_url,
            headers=headers,
            auth=auth,
            timeout=timeout,
            transport=transport,
        )

    # ── lifecycle ──────────────────────────────────────────────────────────

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ── public ─────────────────────────────────────────────────────────────

    @property
    def server_url(self) -> str:
        return self._server_url

    def is_pull_request_merge_branch(self, branch: str) -> bool:
        return is_pull_request_merge_branch(branch)

    async def find_pull_request_commit(self, owner: str, repo: str, branch: str) -> str | None:
        """Return the head SHA of the pull request behind a merge branch."""
        pull_request_id = parse_pull_request_number(branch)
        if pull_request_id is None:
            return None
        data = await self._request("GET", f"/repos/{owner}/{repo}/pulls/{pull_request_id}")
        head = data.get("head") or {}
        return head.get("sha") or None

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
        payload: dict[str, Any] = {
            "state": state.value,
            "target_url": target_url,
            "description": description,
        }
        if context:
            payload["context"] = context
        await self._request("POST", f"/repos/{owner}/{repo}/statuses/{commit}", json=payload)

    async def get_pull_request_id(self, repo: str, branch: str | None) -> str | None:
        """Pull request id encoded in *branch*; no remote call is needed."""
        return parse_pull_request_number(branch)

    async def post_pull_request_comment(
        self, owner: str, repo: str, pull_request_id: str, comment: str
    ) -> None:
        await self._request(
            "POST",
            f"/repos/{owner}/{repo}/issues/{pull_request_id}/comments",
            json={"body": comment},
        )

    async def post_commit_comment(self, owner: str, repo: str, commit: str, comment: str) -> None:
        await self._request(
            "POST",
            f"/repos/{owner}/{repo}/commits/{commit}/comments",
            json={"body": comment},
        )

    # ── internal ───────────────────────────────────────────────────────────

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Send one request and return the parsed JSON body.

        Transport errors and non-2xx responses are raised as
        :class:`GitHubApiError`.
        """
        try:
            resp = await self._client.request(method, path, json=json)
        except httpx.HTTPError as exc:
            raise GitHubApiError(f"{method} {path} failed: {exc}") from exc

        if resp.is_error:
            log.debug("github.error_response", method=method, path=path, status=resp.status_code)
            raise GitHubApiError(
                f"{method} {path} returned {resp.status_code}: {_error_message(resp)}",
                status_code=resp.status_code,
            )

        if not resp.content:
            return {}
        data = resp.json()
        return data if isinstance(data, dict) else {}


class HttpGitHubApiFactory(GitHubApiFactory):
    """Opens :class:`GitHubClient` instances, reusing one per credential set."""

    def __init__(self, *, timeout: float = _DEFAULT_TIMEOUT) -> None:
        self._timeout = timeout
        self._clients: dict[tuple[str, ...], GitHubClient] = {}

    def open_for_user(self, server_url: str, username: str, password: str) -> GitHubApi:
        key = ("password", server_url, username, password)
        if key not in self._clients:
            self._clients[key] = GitHubClient(
                server_url, username=username, password=password, timeout=self._timeout
            )
        return self._clients[key]

    def open_for_token(self, server_url: str, token: str) -> GitHubApi:
        key = ("token", server_url, token)
        if key not in self._clients:
            self._clients[key] = GitHubClient(server_url, token=token, timeout=self._timeout)
        return self._clients[key]

    async def close(self) -> None:
        """Close every client opened by this factory."""
        for client in self._clients.values():
            await client.close()
        self._clients.clear()


def _error_message(resp: httpx.Response) -> str:
    """Best-effort extraction of GitHub's ``message`` field."""
    try:
        data = resp.json()
    except ValueError:
        return resp.text[:200]
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return resp.text[:200]
