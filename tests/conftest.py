from __future__ import annotations

import itertools
from typing import Any, Dict, List, Optional

import pytest

import app as app_module
from repo_views import Repository

_ids = itertools.count(1)


def repo_payload(name: str, **overrides: Any) -> Dict[str, Any]:
    payload = {
        "id": next(_ids),
        "name": name,
        "description": None,
        "language": None,
        "stargazers_count": 0,
        "forks_count": 0,
        "open_issues_count": 0,
        "created_at": "2023-01-15T10:00:00Z",
        "updated_at": "2024-01-01T00:00:00Z",
        "html_url": f"https://github.com/octocat/{name}",
    }
    payload.update(overrides)
    return payload


def make_repo(name: str, **overrides: Any) -> Repository:
    return Repository.from_api(repo_payload(name, **overrides))


PROFILE_PAYLOAD = {
    "login": "octocat",
    "name": "The Octocat",
    "avatar_url": "https://avatars.githubusercontent.com/u/583231",
    "bio": "GitHub mascot",
    "html_url": "https://github.com/octocat",
    "public_repos": 3,
    "followers": 10,
    "following": 2,
    "created_at": "2011-01-25T18:44:36Z",
}

REPOS_PAYLOAD = [
    repo_payload("hello-world", description="My first repo", language="Python", stargazers_count=5,
                 forks_count=1, updated_at="2024-01-01T00:00:00Z", created_at="2020-03-01T00:00:00Z"),
    repo_payload("spoon-knife", description="Fork me", language="HTML", stargazers_count=12,
                 forks_count=7, updated_at="2024-06-01T00:00:00Z", created_at="2019-05-01T00:00:00Z"),
    repo_payload("linguist", language=None, stargazers_count=0, updated_at="2023-06-01T00:00:00Z"),
]


class FakeResponse:
    def __init__(self, status_code: int, body: Any = None, text: str = "") -> None:
        self.status_code = status_code
        self._body = body
        self.text = text

    def json(self) -> Any:
        if self._body is None:
            raise ValueError("No JSON body")
        return self._body


class FakeGitHub:
    """Routes requests.request calls by URL suffix and records them."""

    def __init__(self, routes: Dict[str, Any]) -> None:
        self.routes = routes
        self.calls: List[Dict[str, Any]] = []

    def __call__(self, method: str, url: str, *, headers=None, params: Optional[dict] = None, timeout=None):
        self.calls.append({"method": method, "url": url, "params": params, "headers": headers, "timeout": timeout})
        for suffix, result in self.routes.items():
            if url.endswith(suffix):
                if isinstance(result, Exception):
                    raise result
                return result
        return FakeResponse(404, {"message": "Not Found"})


@pytest.fixture
def fake_github(monkeypatch):
    def install(routes: Dict[str, Any]) -> FakeGitHub:
        fake = FakeGitHub(routes)
        monkeypatch.setattr(app_module.requests, "request", fake)
        return fake

    return install


@pytest.fixture
def octocat(fake_github) -> FakeGitHub:
    return fake_github(
        {
            "/users/octocat": FakeResponse(200, PROFILE_PAYLOAD),
            "/users/octocat/repos": FakeResponse(200, REPOS_PAYLOAD),
        }
    )


@pytest.fixture
def client():
    app_module.app.config["TESTING"] = True
    with app_module.app.test_client() as c:
        yield c
