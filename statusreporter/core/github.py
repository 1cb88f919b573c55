"""GitHub reference and URL utilities."""

from __future__ import annotations

import re

# "refs/pull/42/merge" — the synthetic merge commit of pull request 42
PULL_REQUEST_MERGE_BRANCH = re.compile(r"^refs/pull/(\d+)/merge$")

# "refs/pull/42/head", "refs/pull/42/merge", "pull/42"
_PULL_REQUEST_REF = re.compile(r"^(?:refs/)?pull/(\d+)(?:/(?:merge|head))?$")

_DEFAULT_API_URL = "https://api.github.com"
_DEFAULT_WEB_URL = "https://github.com"


def is_pull_request_merge_branch(branch: str | None) -> bool:
    """Return True if *branch* is a pull-request merge reference."""
    if not branch:
        return False
    return PULL_REQUEST_MERGE_BRANCH.match(branch.strip()) is not None


def parse_pull_request_number(branch: str | None) -> str | None:
    """Extract the pull request number from a pull-request reference.

    Handles:
      - refs/pull/42/merge
      - refs/pull/42/head
      - pull/42

    Returns None for any other branch name.
    """
    if not branch:
        return None
    match = _PULL_REQUEST_REF.match(branch.strip())
    return match.group(1) if match else None


def web_url_for(api_url: str) -> str:
    """Derive the browsable GitHub URL from an API server URL.

    ``https://api.github.com`` maps to ``https://github.com``; a GitHub
    Enterprise API root such as ``https://ghe.example.com/api/v3`` maps to
    ``https://ghe.example.com``.
    """
    url = api_url.strip().rstrip("/")
    if url == _DEFAULT_API_URL:
        return _DEFAULT_WEB_URL
    if url.endswith("/api/v3"):
        return url[: -len("/api/v3")]
    return url


def pull_request_url(api_url: str, owner: str, repo: str, pull_request_id: str) -> str:
    """Return the browsable URL of a pull request."""
    return f"{web_url_for(api_url)}/{owner}/{repo}/pull/{pull_request_id}"
