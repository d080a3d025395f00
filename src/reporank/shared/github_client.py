# src/reporank/shared/github_client.py
"""
GitHub repository source.
Lists an organization's repositories and fetches README contents through the REST API.

Optional environment variables:
    GITHUB_TOKEN: GitHub personal access token for higher rate limits
"""

import base64
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

import requests

from reporank.core.errors import ReadmeNotFoundError, RepositorySourceError
from reporank.tasks.ranking.models import RepoRecord

logger = logging.getLogger(__name__)


class RepositorySource(ABC):
    """Interface of the repository collaborator."""

    @abstractmethod
    def list_repositories(self, org: str) -> List[RepoRecord]:
        """List every repository of an organization."""
        raise NotImplementedError

    @abstractmethod
    def get_readme(self, repo_id: int) -> bytes:
        """Fetch README bytes, raising ReadmeNotFoundError when unavailable."""
        raise NotImplementedError


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"Unparseable timestamp: {value}")
        return None


def record_from_api(data: Dict[str, Any]) -> RepoRecord:
    """Convert a GitHub repository JSON object into a RepoRecord."""
    return RepoRecord(
        id=data["id"],
        name=data.get("name", ""),
        url=data.get("html_url", ""),
        language=data.get("language"),
        description=data.get("description"),
        pushed_at=_parse_timestamp(data.get("pushed_at")),
        open_issues_count=data.get("open_issues_count") or 0,
        fields=dict(data)
    )


class GitHubRepositorySource(RepositorySource):
    """Repository source backed by the GitHub REST API."""

    def __init__(self, token: Optional[str] = None,
                 api_url: str = "https://api.github.com",
                 timeout: int = 30, page_size: int = 100):
        """
        Initialize the GitHub client.

        Args:
            token: Personal access token; anonymous access when None
            api_url: REST API base URL
            timeout: Request timeout in seconds
            page_size: Repositories per listing page (max 100)
        """
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.page_size = page_size
        self.session = requests.Session()

        headers = {
            'User-Agent': 'reporank/1.0',
            'Accept': 'application/vnd.github+json'
        }
        if token:
            headers['Authorization'] = f'Bearer {token}'
            logger.info("Using GitHub token for authentication")
        else:
            logger.warning("No GitHub token found. Rate limited to 60 requests/hour")

        self.session.headers.update(headers)

    def list_repositories(self, org: str) -> List[RepoRecord]:
        """
        List all repositories of an organization, following pagination.

        Args:
            org: Organization login

        Returns:
            RepoRecord per repository

        Raises:
            RepositorySourceError: If any listing page fails
        """
        records: List[RepoRecord] = []
        page = 1

        while True:
            url = f"{self.api_url}/orgs/{org}/repos"
            params = {'per_page': self.page_size, 'page': page, 'type': 'all'}
            try:
                response = self.session.get(url, params=params, timeout=self.timeout)
            except requests.RequestException as e:
                raise RepositorySourceError(f"Failed to list repositories for {org}: {e}") from e

            if response.status_code != 200:
                raise RepositorySourceError(
                    f"Failed to list repositories for {org}: HTTP {response.status_code}"
                )

            batch = response.json()
            records.extend(record_from_api(item) for item in batch)
            logger.debug(f"Fetched page {page} of {org}: {len(batch)} repositories")

            if len(batch) < self.page_size:
                break
            page += 1

        logger.info(f"Found {len(records)} repositories in {org}")
        return records

    def get_readme(self, repo_id: int) -> bytes:
        """
        Fetch the decoded README of a repository.

        Args:
            repo_id: Numeric repository id

        Returns:
            README contents

        Raises:
            ReadmeNotFoundError: If the README is missing or cannot be fetched
        """
        url = f"{self.api_url}/repositories/{repo_id}/readme"
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise ReadmeNotFoundError(f"README request failed for {repo_id}: {e}") from e

        if response.status_code == 404:
            raise ReadmeNotFoundError(f"No README for repository {repo_id}")
        if response.status_code != 200:
            raise ReadmeNotFoundError(
                f"README request failed for {repo_id}: HTTP {response.status_code}"
            )

        data = response.json()
        content = data.get("content")
        if content is None:
            raise ReadmeNotFoundError(f"README for {repo_id} has no content")

        if data.get("encoding", "base64") == "base64":
            return base64.b64decode(content)
        return content.encode("utf-8")
