"""
GitHub Module

Fetches public repository metadata from the GitHub REST API and normalizes
repository URLs into owner/name pairs. One request sequence per call: no
retry, no backoff, no caching of the raw response.
"""
import logging
import re
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs, urlparse

import requests
from pydantic import BaseModel, ConfigDict, Field

from zemon.errors import RateLimitedError, RepoNotFoundError, TransportError

logger = logging.getLogger(__name__)

GITHUB_URL_PATTERN = re.compile(
    r"^https?://(?:www\.)?github\.com/"
    r"(?P<owner>[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?)/"
    r"(?P<name>[A-Za-z0-9._-]+?)(?:\.git)?"
    r"(?:/.*)?$"
)


class RepoRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    owner: str
    name: str

    @property
    def html_url(self) -> str:
        return f"https://github.com/{self.owner}/{self.name}"


class RepoMetadata(BaseModel):
    """
    Snapshot of a repository's public metadata as reported by GitHub.
    """
    model_config = ConfigDict(frozen=True)

    owner: str = Field(..., description="Login name of the repository owner")
    name: str = Field(..., description="Name of the repository")
    description: str = Field("", description="Repository description")
    stars: int = Field(0, ge=0, description="Total number of stargazers")
    forks: int = Field(0, ge=0)
    contributors: int = Field(0, ge=0)
    language: Optional[str] = Field(None, description="Primary language, if GitHub detected one")
    topics: List[str] = Field(default_factory=list)
    github_url: str


def validate_url(raw_url: Any) -> Optional[RepoRef]:
    """
    Parse `https://github.com/<owner>/<name>[/...]` into a RepoRef.

    Returns None for anything that does not have that shape.
    """
    if not isinstance(raw_url, str):
        return None
    match = GITHUB_URL_PATTERN.match(raw_url.strip())
    if not match:
        return None
    name = match.group("name")
    if name in (".", ".."):
        return None
    return RepoRef(owner=match.group("owner"), name=name)


class GitHubTranslator:
    """
    Translates raw GitHub REST responses into RepoMetadata instances.
    """

    @staticmethod
    def to_metadata(raw_repo: Dict[str, Any], contributors: int) -> RepoMetadata:
        owner_data = raw_repo.get("owner") or {}
        owner = owner_data.get("login", "")
        name = raw_repo.get("name", "")
        return RepoMetadata(
            owner=owner,
            name=name,
            description=raw_repo.get("description") or "",
            stars=raw_repo.get("stargazers_count", 0),
            forks=raw_repo.get("forks_count", 0),
            contributors=contributors,
            language=raw_repo.get("language"),
            topics=raw_repo.get("topics") or [],
            github_url=raw_repo.get("html_url") or f"https://github.com/{owner}/{name}",
        )


class GitHubClient:
    """
    Client for the GitHub REST API.
    """

    def __init__(
        self,
        api_url: str = "https://api.github.com",
        token: Optional[str] = None,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "Zemon-API",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            self.headers["Authorization"] = f"Bearer {token}"
            logger.info("Using GitHub token for authentication")
        else:
            logger.warning(
                "No GitHub token provided. API rate limits will be restricted. "
                "Set the GITHUB_TOKEN environment variable to increase rate limits."
            )

    def fetch_metadata(self, owner: str, name: str) -> RepoMetadata:
        """
        Fetch the current metadata of owner/name.

        Raises:
            RepoNotFoundError: GitHub has no such repository
            RateLimitedError: the API rate limit is exhausted
            TransportError: network failure or any other unexpected response
        """
        logger.info(f"Fetching GitHub metadata for {owner}/{name}")
        repo_response = self._get(f"/repos/{owner}/{name}")
        raw_repo = self._json(repo_response)

        contributors_response = self._get(
            f"/repos/{owner}/{name}/contributors",
            params={"per_page": 1, "anon": "true"},
        )
        contributors = self._count_contributors(contributors_response)

        return GitHubTranslator.to_metadata(raw_repo, contributors)

    def _get(self, path: str, params: Dict[str, Any] = None) -> requests.Response:
        url = f"{self.api_url}{path}"
        try:
            response = self.session.get(
                url, headers=self.headers, params=params, timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error(f"GitHub request to {url} failed: {e}")
            raise TransportError(f"Could not reach GitHub: {e}") from e

        if response.status_code == 404:
            raise RepoNotFoundError("GitHub repository not found")
        if response.status_code in (403, 429) and self._rate_limited(response):
            reset_at = response.headers.get("X-RateLimit-Reset")
            logger.error(f"GitHub API rate limit exceeded (reset at {reset_at})")
            raise RateLimitedError(reset_at=reset_at)
        # 204 is GitHub's answer for an empty repository's contributor list
        if response.status_code not in (200, 204):
            logger.error(f"GitHub returned {response.status_code} for {url}: {response.text}")
            raise TransportError(f"GitHub returned status {response.status_code}")
        return response

    @staticmethod
    def _rate_limited(response: requests.Response) -> bool:
        if response.status_code == 429:
            return True
        return response.headers.get("X-RateLimit-Remaining") == "0" or "Retry-After" in response.headers

    @staticmethod
    def _json(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise TransportError("GitHub returned an invalid JSON body") from e

    def _count_contributors(self, response: requests.Response) -> int:
        if response.status_code == 204:
            return 0
        last_page = self._get_last_page(response.headers.get("Link", ""))
        if last_page is not None:
            return last_page
        body = self._json(response)
        return len(body) if isinstance(body, list) else 0

    @staticmethod
    def _get_last_page(link_header: str) -> Optional[int]:
        # With per_page=1 the number of the last page is the contributor count
        if 'rel="last"' not in link_header:
            return None
        for part in link_header.split(","):
            if 'rel="last"' in part:
                url_part = part.split(";")[0].strip().strip("<>")
                pages = parse_qs(urlparse(url_part).query).get("page")
                if pages and pages[0].isdigit():
                    return int(pages[0])
        return None
