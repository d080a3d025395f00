"""
Tests for the GitHub repository source with the HTTP session stubbed.
"""

import base64
from datetime import datetime, timezone

import pytest

from reporank.core.errors import ReadmeNotFoundError, RepositorySourceError
from reporank.shared.github_client import GitHubRepositorySource, record_from_api


class FakeResponse:

    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self._body = body

    def json(self):
        return self._body


def repo_json(repo_id, name, **extra):
    data = {
        "id": repo_id,
        "name": name,
        "html_url": f"https://github.com/example/{name}",
        "language": "Python",
        "description": "demo",
        "pushed_at": "2024-05-01T10:00:00Z",
        "open_issues_count": 2,
        "stargazers_count": 9,
    }
    data.update(extra)
    return data


@pytest.fixture
def source():
    return GitHubRepositorySource(token="t0ken", api_url="https://api.example.com/", page_size=2)


class TestRecordFromApi:

    def test_fields(self):
        record = record_from_api(repo_json(5, "alpha"))

        assert record.id == 5
        assert record.url == "https://github.com/example/alpha"
        assert record.pushed_at == datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)
        assert record.open_issues_count == 2
        assert record.get_field("stargazers_count") == 9
        assert record.get_field("StargazersCount") == 9

    def test_missing_pushed_at(self):
        record = record_from_api(repo_json(5, "alpha", pushed_at=None, open_issues_count=None))
        assert record.pushed_at is None
        assert record.open_issues_count == 0


class TestGitHubRepositorySource:

    def test_auth_header(self, source):
        assert source.session.headers["Authorization"] == "Bearer t0ken"
        assert source.api_url == "https://api.example.com"

    def test_list_follows_pages(self, source, monkeypatch):
        pages = {
            1: [repo_json(1, "a"), repo_json(2, "b")],
            2: [repo_json(3, "c")],
        }
        requested = []

        def fake_get(url, params=None, timeout=None):
            requested.append((url, params["page"]))
            return FakeResponse(body=pages[params["page"]])

        monkeypatch.setattr(source.session, "get", fake_get)

        records = source.list_repositories("example")

        assert [r.name for r in records] == ["a", "b", "c"]
        assert requested == [
            ("https://api.example.com/orgs/example/repos", 1),
            ("https://api.example.com/orgs/example/repos", 2),
        ]

    def test_list_failure(self, source, monkeypatch):
        monkeypatch.setattr(source.session, "get",
                            lambda url, params=None, timeout=None: FakeResponse(status_code=404))

        with pytest.raises(RepositorySourceError):
            source.list_repositories("missing-org")

    def test_get_readme_decodes_base64(self, source, monkeypatch):
        encoded = base64.b64encode(b"# Title\nBody text").decode("ascii")
        # GitHub wraps base64 content at 60 characters
        wrapped = "\n".join(encoded[i:i + 8] for i in range(0, len(encoded), 8))
        monkeypatch.setattr(source.session, "get", lambda url, timeout=None: FakeResponse(
            body={"content": wrapped, "encoding": "base64"}
        ))

        assert source.get_readme(1) == b"# Title\nBody text"

    def test_get_readme_not_found(self, source, monkeypatch):
        monkeypatch.setattr(source.session, "get",
                            lambda url, timeout=None: FakeResponse(status_code=404))

        with pytest.raises(ReadmeNotFoundError):
            source.get_readme(1)

    def test_get_readme_server_error(self, source, monkeypatch):
        monkeypatch.setattr(source.session, "get",
                            lambda url, timeout=None: FakeResponse(status_code=502))

        with pytest.raises(ReadmeNotFoundError):
            source.get_readme(1)
