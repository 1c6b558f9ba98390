"""GitHub API helpers for looking up the latest release of a repository."""

from __future__ import annotations

import logging
import os
import re

import requests

from . import versions

__all__ = [
    "GitHubClient",
    "RateLimitedError",
    "read_token",
    "repo_path",
]

logger = logging.getLogger(__name__)

_USER_AGENT = "dev-statusline"
_TAGS_PER_PAGE = 20

_HTTPS_PREFIX = "https://github.com/"
_SSH_PREFIX = "git@github.com:"
_REPO_PATH_RE = re.compile(r"^[^/]+/[^/]+$")


class RateLimitedError(RuntimeError):
    """GitHub refused the request because the quota is exhausted."""


def is_github_url(url: str) -> bool:
    return "github.com" in (url or "")


def repo_path(url: str) -> str | None:
    """Return ``owner/repo`` for an HTTPS or SSH GitHub URL.

    Example:
        >>> repo_path("git@github.com:Alamofire/Alamofire.git")
        'Alamofire/Alamofire'
        >>> repo_path("https://github.com/onevcat/Kingfisher")
        'onevcat/Kingfisher'
    """
    path = (url or "").strip()
    for prefix in (_HTTPS_PREFIX, _SSH_PREFIX):
        if path.startswith(prefix):
            path = path[len(prefix) :]
            break
    else:
        return None
    path = path.rstrip("/")
    if path.endswith(".git"):
        path = path[:-4]
    return path if _REPO_PATH_RE.match(path) else None


def read_token(path: str) -> str | None:
    """Read a personal access token from ``path`` (raises the rate limit)."""
    try:
        with open(os.path.expanduser(path), encoding="utf-8") as f:
            token = "".join(f.read().split())
    except OSError:
        return None
    return token or None


def is_rate_limited(resp: requests.Response) -> bool:
    if resp.status_code not in (403, 429):
        return False
    if resp.headers.get("X-RateLimit-Remaining") == "0":
        return True
    return "rate limit" in (resp.text or "").lower()


class GitHubClient:
    def __init__(
        self,
        base_url: str = "https://api.github.com",
        token: str | None = None,
        timeout: float = 5.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": _USER_AGENT,
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _get(self, path: str, params: dict[str, str] | None = None) -> requests.Response:
        resp = requests.get(
            f"{self.base_url}{path}",
            params=params,
            headers=self._headers(),
            timeout=self.timeout,
        )
        if is_rate_limited(resp):
            raise RateLimitedError(f"GitHub rate limit hit on {path}")
        return resp

    def latest_release(self, repo: str) -> tuple[str | None, bool]:
        """Return (tag without ``v``, repository has no releases).

        Raises:
            RateLimitedError: If GitHub reports the quota as exhausted.
        """
        try:
            resp = self._get(f"/repos/{repo}/releases/latest")
        except requests.RequestException as e:
            logger.debug("Release lookup for %s failed: %s", repo, e)
            return None, False
        if resp.status_code == 404:
            return None, True
        if not resp.ok:
            logger.debug("Release lookup for %s: HTTP %d", repo, resp.status_code)
            return None, False
        try:
            tag = resp.json().get("tag_name")
        except (ValueError, AttributeError):
            return None, False
        if not isinstance(tag, str) or not tag:
            return None, False
        return versions.clean_version(tag), False

    def latest_tag(self, repo: str) -> str | None:
        """Return the highest ``x.y.z`` tag (without ``v``), or None.

        Raises:
            RateLimitedError: If GitHub reports the quota as exhausted.
        """
        try:
            resp = self._get(
                f"/repos/{repo}/tags", params={"per_page": str(_TAGS_PER_PAGE)}
            )
        except requests.RequestException as e:
            logger.debug("Tag lookup for %s failed: %s", repo, e)
            return None
        if not resp.ok:
            logger.debug("Tag lookup for %s: HTTP %d", repo, resp.status_code)
            return None
        try:
            data = resp.json()
        except ValueError:
            return None
        if not isinstance(data, list):
            return None
        names = [t.get("name") for t in data if isinstance(t, dict)]
        return versions.highest_tag([n for n in names if isinstance(n, str)])

    def latest_version(self, repo: str) -> str | None:
        """Latest release tag, falling back to tags for repos without releases."""
        tag, no_releases = self.latest_release(repo)
        if tag:
            return tag
        if no_releases:
            return self.latest_tag(repo)
        return None
