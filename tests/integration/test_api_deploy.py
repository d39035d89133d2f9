"""Integration tests for the full deploy, render and token endpoints."""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
class TestDeployAPI:
    """End-to-end deployments through /api/v1/deploy."""

    async def test_first_deploy_creates_and_uploads(self, client: AsyncClient, providers):
        """First deploy creates the repository and adds the file."""
        response = await client.post(
            "/api/v1/deploy",
            json={
                "owner": "alice",
                "repoName": "alice-portfolio",
                "githubToken": "good-token",
                "files": {"index.html": "<html></html>"},
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["step"] == "succeeded"
        assert data["repoUrl"] == "https://github.com/alice/alice-portfolio"
        assert data["files"] == [
            {"path": "index.html", "action": "created", "sha": data["files"][0]["sha"], "error": None}
        ]

        put = providers.sent("PUT", "/repos/alice/alice-portfolio/contents/index.html")[0]
        assert providers.body(put)["message"] == "Add index.html"
        assert "sha" not in providers.body(put)

    async def test_redeploy_reuses_repository_and_updates(self, client: AsyncClient, providers):
        """Second deploy hits the 422 reuse path and updates with the captured sha."""
        payload = {
            "owner": "alice",
            "repoName": "alice-portfolio",
            "githubToken": "good-token",
            "files": {"index.html": "<html></html>"},
        }
        first = await client.post("/api/v1/deploy", json=payload)
        assert first.status_code == 200
        first_sha = providers.files[("alice/alice-portfolio", "index.html")]["sha"]

        payload["files"] = {"index.html": "<html>v2</html>"}
        second = await client.post("/api/v1/deploy", json=payload)

        assert second.status_code == 200
        assert second.json()["success"] is True
        assert second.json()["files"][0]["action"] == "updated"

        puts = providers.sent("PUT", "/repos/alice/alice-portfolio/contents/index.html")
        update = providers.body(puts[-1])
        assert update["message"] == "Update index.html"
        assert update["sha"] == first_sha
        stored = providers.files[("alice/alice-portfolio", "index.html")]
        assert stored["content"] == "<html>v2</html>"

    async def test_taken_site_name_fails_after_one_retry(self, client: AsyncClient, providers):
        """A name that stays taken ends the deploy with a collision message."""
        providers.always_taken = True

        response = await client.post(
            "/api/v1/deploy",
            json={
                "owner": "alice",
                "repoName": "alice-portfolio",
                "platform": "netlify",
                "githubToken": "good-token",
                "platformToken": "nf-token",
                "siteName": "taken",
                "files": {"index.html": "<html></html>"},
            },
        )

        assert response.status_code == 500
        data = response.json()
        assert data["success"] is False
        assert data["step"] == "failed"
        assert "taken" in data["errorMessage"]
        assert data["errorMessage"].startswith("Failed to deploy to Netlify")
        assert len(providers.sent("POST", "/api/v1/sites")) == 2

    async def test_deploy_to_vercel(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/deploy",
            json={
                "username": "alice",
                "repoName": "alice-portfolio",
                "platform": "vercel",
                "githubToken": "good-token",
                "platformToken": "vc-token",
                "portfolio": {"personalInfo": {"name": "Alice", "title": "Dev", "email": "a@b.c"}},
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["siteUrl"] == "https://alice-portfolio.vercel.app"
        assert data["target"]["siteId"] == "prj_1"
        assert len(data["files"]) == 4

    async def test_reuses_caller_supplied_site(self, client: AsyncClient, providers):
        providers.sites["site-5"] = {"id": "site-5", "name": "alice-site", "state": "current"}

        response = await client.post(
            "/api/v1/deploy",
            json={
                "owner": "alice",
                "repoName": "alice-portfolio",
                "platform": "netlify",
                "githubToken": "good-token",
                "platformToken": "nf-token",
                "siteId": "site-5",
                "files": {"index.html": "<html></html>"},
            },
        )

        assert response.status_code == 200
        assert response.json()["siteUrl"] == "https://alice-site.netlify.app"
        assert providers.sent("POST", "/api/v1/sites") == []

    async def test_missing_fields(self, client: AsyncClient):
        response = await client.post("/api/v1/deploy", json={"owner": "alice"})

        assert response.status_code == 400
        data = response.json()
        assert data["success"] is False
        assert data["message"].startswith("Missing required fields:")
        assert "repoName" in data["message"]
        assert "githubToken" in data["message"]

    async def test_missing_platform_token(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/deploy",
            json={
                "owner": "alice",
                "repoName": "alice-portfolio",
                "platform": "netlify",
                "githubToken": "good-token",
                "files": {"index.html": "<html></html>"},
            },
        )

        assert response.status_code == 400
        assert "platformToken is required" in response.json()["message"]

    async def test_unsafe_file_path(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/deploy",
            json={
                "owner": "alice",
                "repoName": "alice-portfolio",
                "githubToken": "good-token",
                "files": {"../index.html": "<html></html>"},
            },
        )

        assert response.status_code == 400
        assert response.json()["success"] is False


@pytest.mark.asyncio
class TestPortfolioAPI:
    async def test_generate_portfolio(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/portfolio/generate",
            json={
                "personalInfo": {"name": "Alice", "title": "Dev", "email": "a@b.c"},
                "theme": {"primaryColor": "#112233"},
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert set(data["files"]) == {"index.html", "styles.css", "script.js", "README.md"}
        assert "#112233" in data["files"]["styles.css"]

    async def test_generate_rejects_bad_colour(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/portfolio/generate", json={"theme": {"primaryColor": "red"}}
        )

        assert response.status_code == 400


@pytest.mark.asyncio
class TestTokenValidationAPI:
    @pytest.mark.parametrize("platform", ["github", "netlify", "vercel"])
    async def test_valid_token(self, client: AsyncClient, platform):
        response = await client.post(
            "/api/v1/tokens/validate", json={"platform": platform, "token": "good-token"}
        )

        assert response.status_code == 200
        assert response.json()["valid"] is True
        assert response.json()["login"] == "alice"

    async def test_invalid_token(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/tokens/validate", json={"platform": "github", "token": "bad-token"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["valid"] is False
        assert data["message"] == "Bad credentials"
