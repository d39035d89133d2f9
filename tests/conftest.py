"""Pytest fixtures and configuration."""

import base64
import hashlib
import json
import re
from collections.abc import AsyncGenerator
from typing import Any, Optional
from unittest.mock import patch

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from portfolio_api.api.deps import get_http_transport
from portfolio_api.config import settings
from portfolio_api.main import app

GITHUB_HOST = "api.github.com"
NETLIFY_HOST = "api.netlify.com"
VERCEL_HOST = "api.vercel.com"


def _json(status_code: int, body: Any = None) -> httpx.Response:
    if body is None:
        return httpx.Response(status_code)
    if isinstance(body, str):
        return httpx.Response(status_code, text=body)
    return httpx.Response(status_code, json=body)


def blob_sha(content: str) -> str:
    return hashlib.sha1(content.encode("utf-8")).hexdigest()


class FakeProviders:
    """In-memory GitHub, Netlify and Vercel APIs behind an httpx.MockTransport.

    Every request is recorded in ``requests``. ``fail`` forces a canned
    response for one method and path; ``taken_names`` makes site creation
    report a collision for those names, and ``always_taken`` for every name.
    """

    def __init__(self, login: str = "alice"):
        self.login = login
        self.requests: list[httpx.Request] = []
        self.overrides: dict[tuple[str, str], httpx.Response] = {}

        # GitHub
        self.repos: dict[str, dict[str, Any]] = {}
        self.files: dict[tuple[str, str], dict[str, str]] = {}
        self.pages: set[str] = set()
        self.pages_ready = True
        self.users: set[str] = {login}

        # Netlify / Vercel
        self.sites: dict[str, dict[str, Any]] = {}
        self.projects: dict[str, dict[str, Any]] = {}
        self.linked: set[str] = set()
        self.taken_names: set[str] = set()
        self.always_taken = False

    # Test helpers

    def fail(self, method: str, path: str, status_code: int, body: Any = None) -> None:
        self.overrides[(method, path)] = _json(status_code, body)

    def sent(self, method: str, path: Optional[str] = None) -> list[httpx.Request]:
        return [
            r
            for r in self.requests
            if r.method == method and (path is None or r.url.path == path)
        ]

    @staticmethod
    def body(request: httpx.Request) -> dict[str, Any]:
        return json.loads(request.content) if request.content else {}

    def add_repo(self, owner: str, name: str) -> dict[str, Any]:
        full_name = f"{owner}/{name}"
        repo = {
            "name": name,
            "full_name": full_name,
            "owner": {"login": owner},
            "default_branch": "main",
            "html_url": f"https://github.com/{full_name}",
            "clone_url": f"https://github.com/{full_name}.git",
        }
        self.repos[full_name] = repo
        return repo

    def add_file(self, owner: str, name: str, path: str, content: str) -> str:
        sha = blob_sha(content)
        self.files[(f"{owner}/{name}", path)] = {"sha": sha, "content": content}
        return sha

    # Transport

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        override = self.overrides.get((request.method, request.url.path))
        if override is not None:
            return override

        host = request.url.host
        if host == GITHUB_HOST:
            return self._github(request)
        if host == NETLIFY_HOST:
            return self._netlify(request)
        if host == VERCEL_HOST:
            return self._vercel(request)
        return _json(404, {"message": "Not Found"})

    def _authorized(self, request: httpx.Request) -> bool:
        header = request.headers.get("Authorization", "")
        return bool(header) and not header.endswith(" bad-token")

    def _github(self, request: httpx.Request) -> httpx.Response:
        method, path = request.method, request.url.path

        if path == "/user":
            if not self._authorized(request):
                return _json(401, {"message": "Bad credentials"})
            return _json(200, {"login": self.login})

        if method == "POST" and path == "/user/repos":
            name = self.body(request)["name"]
            if f"{self.login}/{name}" in self.repos:
                return _json(
                    422,
                    {
                        "message": "Repository creation failed.",
                        "errors": [{"message": "name already exists on this account"}],
                    },
                )
            return _json(201, self.add_repo(self.login, name))

        match = re.fullmatch(r"/users/([^/]+)", path)
        if match:
            if match.group(1) in self.users:
                return _json(200, {"login": match.group(1)})
            return _json(404, {"message": "Not Found"})

        match = re.fullmatch(r"/repos/([^/]+/[^/]+)(/.*)?", path)
        if not match:
            return _json(404, {"message": "Not Found"})
        full_name, rest = match.group(1), match.group(2) or ""
        repo = self.repos.get(full_name)
        if repo is None:
            return _json(404, {"message": "Not Found"})

        if rest == "" and method == "GET":
            return _json(200, repo)
        if rest.startswith("/contents/"):
            return self._contents(request, full_name, rest[len("/contents/"):])
        if rest == "/pages":
            return self._pages(request, full_name)
        if rest == "/pages/builds/latest" and full_name in self.pages:
            return _json(
                200,
                {"status": "built", "commit": "c0ffee", "created_at": "2026-01-01T00:00:00Z"},
            )
        return _json(404, {"message": "Not Found"})

    def _contents(self, request: httpx.Request, full_name: str, path: str) -> httpx.Response:
        current = self.files.get((full_name, path))
        if request.method == "GET":
            if current is None:
                return _json(404, {"message": "Not Found"})
            return _json(200, {"path": path, "sha": current["sha"], "type": "file"})

        body = self.body(request)
        if current is not None and body.get("sha") != current["sha"]:
            return _json(409, {"message": f"{path} does not match {body.get('sha')}"})
        if current is None and "sha" in body:
            return _json(422, {"message": "Invalid request. \"sha\" wasn't supplied."})

        content = base64.b64decode(body["content"]).decode("utf-8")
        sha = blob_sha(content)
        self.files[(full_name, path)] = {"sha": sha, "content": content}
        return _json(
            201 if current is None else 200,
            {"content": {"path": path, "sha": sha}, "commit": {"message": body["message"]}},
        )

    def _pages(self, request: httpx.Request, full_name: str) -> httpx.Response:
        if request.method == "POST":
            if full_name in self.pages:
                return _json(409, {"message": "GitHub Pages is already enabled."})
            self.pages.add(full_name)
            return _json(201, {"status": None})

        if full_name in self.pages and self.pages_ready:
            owner, name = full_name.split("/")
            return _json(
                200,
                {"html_url": f"https://{owner.lower()}.github.io/{name}/", "status": "built"},
            )
        return _json(404, {"message": "Not Found"})

    def _is_taken(self, name: str) -> bool:
        return self.always_taken or name in self.taken_names

    def _netlify(self, request: httpx.Request) -> httpx.Response:
        method = request.method
        path = request.url.path.removeprefix("/api/v1")

        if path == "/user":
            if not self._authorized(request):
                return _json(401, {"code": 401, "message": "Access Denied"})
            return _json(200, {"id": "u1", "slug": self.login})

        if method == "POST" and path == "/sites":
            name = self.body(request)["name"]
            if self._is_taken(name):
                return _json(422, {"code": 422, "message": "name has already been taken"})
            site_id = f"site-{len(self.sites) + 1}"
            self.sites[site_id] = {"id": site_id, "name": name, "state": "current"}
            self.taken_names.add(name)
            return _json(201, self.sites[site_id])

        match = re.fullmatch(r"/sites/([^/]+)(/.*)?", path)
        if not match or match.group(1) not in self.sites:
            return _json(404, {"code": 404, "message": "Not Found"})
        site = self.sites[match.group(1)]
        rest = match.group(2) or ""

        if rest == "" and method == "GET":
            return _json(200, site)
        if rest == "" and method == "PATCH":
            site["repo"] = self.body(request)["repo"]
            return _json(200, site)
        if rest == "/builds" and method == "POST":
            return _json(200, {"id": "build-1", "deploy_id": "deploy-1", "done": False})
        if rest == "/deploys" and method == "GET":
            return _json(
                200,
                [
                    {
                        "id": "deploy-1",
                        "state": "ready",
                        "deploy_ssl_url": f"https://deploy-1--{site['name']}.netlify.app",
                        "created_at": "2026-01-01T00:00:00Z",
                    }
                ],
            )
        return _json(404, {"code": 404, "message": "Not Found"})

    def _vercel(self, request: httpx.Request) -> httpx.Response:
        method, path = request.method, request.url.path

        if path == "/v2/user":
            if not self._authorized(request):
                return _json(403, {"error": {"code": "forbidden", "message": "Not authorized"}})
            return _json(200, {"user": {"id": "u1", "username": self.login}})

        if method == "POST" and path == "/v9/projects":
            name = self.body(request)["name"]
            if self._is_taken(name):
                return _json(
                    409, {"error": {"code": "conflict", "message": "Project already exists"}}
                )
            project_id = f"prj_{len(self.projects) + 1}"
            self.projects[project_id] = {"id": project_id, "name": name}
            self.taken_names.add(name)
            return _json(200, self.projects[project_id])

        if method == "POST" and path == "/v13/deployments":
            name = self.body(request)["name"]
            return _json(
                200, {"id": "dpl_1", "url": f"{name}-abc123.vercel.app", "readyState": "QUEUED"}
            )

        if method == "GET" and path == "/v6/deployments":
            return _json(
                200,
                {
                    "deployments": [
                        {
                            "uid": "dpl_1",
                            "url": "site-abc123.vercel.app",
                            "state": "READY",
                            "createdAt": 1767225600000,
                        }
                    ]
                },
            )

        match = re.fullmatch(r"/v9/projects/([^/]+)(/link)?", path)
        if not match or match.group(1) not in self.projects:
            return _json(404, {"error": {"code": "not_found", "message": "Project not found"}})
        project_id = match.group(1)
        if match.group(2) and method == "POST":
            if project_id in self.linked:
                return _json(409, {"error": {"code": "conflict", "message": "Already linked"}})
            self.linked.add(project_id)
            return _json(200, self.projects[project_id])
        return _json(200, self.projects[project_id])


@pytest.fixture(autouse=True)
def fast_pages_polling(monkeypatch: pytest.MonkeyPatch) -> None:
    """Poll GitHub Pages without sleeping."""
    monkeypatch.setattr(settings, "PAGES_POLL_INTERVAL", 0.0)
    monkeypatch.setattr(settings, "PAGES_POLL_ATTEMPTS", 3)


@pytest.fixture
def providers() -> FakeProviders:
    return FakeProviders()


@pytest.fixture
def transport(providers: FakeProviders) -> httpx.MockTransport:
    return httpx.MockTransport(providers.handler)


@pytest_asyncio.fixture
async def client(transport: httpx.MockTransport) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with provider APIs faked and Redis disconnected."""

    async def override_get_http_transport():
        return transport

    with patch("portfolio_api.db.redis.redis_client", None):
        app.dependency_overrides[get_http_transport] = override_get_http_transport

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac

        app.dependency_overrides.clear()
