"""Thin asynchronous GitHub REST client used by the activity publisher.

Only the repository events endpoint is wrapped; formatting of each event
type into a one line chat notification lives here as well.
"""

from __future__ import annotations

from typing import Any

import aiohttp

from ..errors.internal import ParsingError
from .http import fetch_json


class GitHubAPI:
    """Asynchronous client for the GitHub REST API.

    Attributes:
        BASE_URL (str): The base URL for the GitHub REST API.
    """

    BASE_URL = "https://api.github.com"

    def __init__(self, session: aiohttp.ClientSession, token: str = ""):
        if not session:
            raise ValueError("aiohttp session required")
        self._session = session
        self._token = token

    async def repo_events(self, repo: str) -> list[dict[str, Any]]:
        """Return the most recent public events of ``repo`` (newest first).

        Args:
            repo: Repository in ``owner/name`` form.

        Raises:
            NetworkError, RateLimitError, ParsingError: on HTTP or payload problems.
        """
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        data = await fetch_json(
            self._session,
            f"{self.BASE_URL}/repos/{repo}/events",
            f"GitHub events {repo}",
            params={"per_page": 30},
            headers=headers,
        )
        if not isinstance(data, list):
            raise ParsingError(f"GitHub events for {repo} is not a list")
        return [e for e in data if isinstance(e, dict)]


def _first_line(text: str | None) -> str:
    lines = (text or "").strip().splitlines()
    return lines[0] if lines else ""


def format_event(repo: str, event: dict[str, Any]) -> str:
    """Render one GitHub event as a chat line (without the repo label)."""
    kind = event.get("type", "")
    actor = (event.get("actor") or {}).get("login", "someone")
    payload = event.get("payload") or {}

    if kind == "PushEvent":
        branch = str(payload.get("ref", "")).removeprefix("refs/heads/")
        commits = payload.get("commits") or []
        if commits:
            count = len(commits)
            noun = "commit" if count == 1 else "commits"
            message = _first_line(commits[-1].get("message"))
            return f"{actor} pushed {count} {noun} to {branch}: {message}"
        head = str(payload.get("head", ""))[:8]
        return f"{actor} pushed to {branch} ({head})" if head else f"{actor} pushed to {branch}"
    if kind == "PullRequestEvent":
        pr = payload.get("pull_request") or {}
        action = payload.get("action", "updated")
        if action == "closed" and pr.get("merged"):
            action = "merged"
        return (
            f"{actor} {action} pull request #{payload.get('number', pr.get('number', '?'))}: "
            f"{pr.get('title', '')} {pr.get('html_url', '')}"
        ).rstrip()
    if kind == "IssuesEvent":
        issue = payload.get("issue") or {}
        return (
            f"{actor} {payload.get('action', 'updated')} issue #{issue.get('number', '?')}: "
            f"{issue.get('title', '')} {issue.get('html_url', '')}"
        ).rstrip()
    if kind == "IssueCommentEvent":
        issue = payload.get("issue") or {}
        comment = payload.get("comment") or {}
        return (
            f"{actor} commented on #{issue.get('number', '?')}: {issue.get('title', '')} "
            f"{comment.get('html_url', '')}"
        ).rstrip()
    if kind in ("CreateEvent", "DeleteEvent"):
        verb = "created" if kind == "CreateEvent" else "deleted"
        ref = payload.get("ref") or ""
        return f"{actor} {verb} {payload.get('ref_type', 'ref')} {ref}".rstrip()
    if kind == "ReleaseEvent":
        release = payload.get("release") or {}
        return (
            f"{actor} {payload.get('action', 'published')} release "
            f"{release.get('tag_name', '')} {release.get('html_url', '')}"
        ).rstrip()
    return f"{actor} triggered {kind or 'an event'} on {repo}"
