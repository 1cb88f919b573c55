"""GitHub client — the remote side of commit status reporting."""

from statusreporter.github.api import GitHubApi, GitHubApiFactory
from statusreporter.github.client import GitHubClient, HttpGitHubApiFactory

__all__ = [
    "GitHubApi",
    "GitHubApiFactory",
    "GitHubClient",
    "HttpGitHubApiFactory",
]
