"""HTTP API tests: tokens, settings, GitLab, GitHub and Cloudflare endpoints."""

import base64

import pytest
from httpx import ASGITransport, AsyncClient
from nacl.public import PrivateKey, SealedBox

from app.adapters import get_transport
from app.config import settings
from app.main import app
from app.store import LocalRecordStore, MemoryBackend

GITLAB = settings.gitlab_api_url
GITHUB = settings.github_api_url
CLOUDFLARE = settings.cloudflare_api_url


async def save_token(client: AsyncClient, provider: str, value: str = "tok") -> None:
    resp = await client.put(f"/api/tokens/{provider}", json={"value": value})
    assert resp.status_code == 200


# ── Health ──────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["store"] == {"ready": True, "version": 2, "latest_version": 2}


# ── Tokens ──────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_tokens_start_unconfigured(client: AsyncClient):
    resp = await client.get("/api/tokens/")
    assert resp.status_code == 200
    data = resp.json()
    assert data["has_tokens"] is False
    assert {t["provider"]: t["configured"] for t in data["tokens"]} == {
        "gitlab": False, "github": False, "cloudflare": False,
    }


@pytest.mark.asyncio
async def test_save_token_never_echoes_value(client: AsyncClient):
    resp = await client.put("/api/tokens/gitlab", json={"value": "glpat-abc"})
    assert resp.status_code == 200
    assert "glpat-abc" not in resp.text
    data = resp.json()
    assert data["has_tokens"] is True
    assert data["persisted"] is True
    assert {t["provider"]: t["configured"] for t in data["tokens"]}["gitlab"] is True


@pytest.mark.asyncio
async def test_delete_and_clear_tokens(client: AsyncClient):
    await save_token(client, "gitlab")
    await save_token(client, "github")

    resp = await client.delete("/api/tokens/gitlab")
    assert {t["provider"]: t["configured"] for t in resp.json()["tokens"]}["github"] is True

    resp = await client.delete("/api/tokens/")
    assert resp.json()["has_tokens"] is False


@pytest.mark.asyncio
async def test_unknown_provider_is_rejected(client: AsyncClient):
    resp = await client.put("/api/tokens/bitbucket", json={"value": "x"})
    assert resp.status_code == 422


# ── Settings ────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_settings_patch_and_reset(client: AsyncClient):
    resp = await client.get("/api/settings/")
    assert resp.json()["gitlab_base_url"] == GITLAB

    resp = await client.patch("/api/settings/", json={"cloudflare_account_id": "acc-1"})
    assert resp.status_code == 200
    assert resp.json()["cloudflare_account_id"] == "acc-1"
    assert resp.json()["persisted"] is True

    resp = await client.delete("/api/settings/")
    assert resp.json()["cloudflare_account_id"] == ""


# ── Cloudflare R2 ───────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_r2_missing_fields_return_400(client: AsyncClient, upstream):
    resp = await client.post("/api/cloudflare/r2", json={"accountId": "acc-1", "token": "cf"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Bucket name is required."}

    resp = await client.post("/api/cloudflare/r2", json={"bucketName": "assets", "token": "cf"})
    assert resp.json() == {"error": "Cloudflare account ID is required."}

    resp = await client.post("/api/cloudflare/r2", json={"bucketName": "assets", "accountId": "acc-1", "token": "  "})
    assert resp.json() == {"error": "Cloudflare API token is required."}
    assert upstream.requests == []


@pytest.mark.asyncio
async def test_r2_creates_bucket_and_sets_dev_domain(client: AsyncClient, upstream):
    upstream.add("POST", f"{CLOUDFLARE}/accounts/acc-1/r2/buckets", json={
        "success": True, "errors": [],
        "result": {"name": "assets", "location": "WNAM", "creation_date": "2026-10-01T00:00:00Z"},
    })
    upstream.add("PUT", f"{CLOUDFLARE}/accounts/acc-1/r2/buckets/assets/domains/managed", json={
        "success": True, "errors": [],
        "result": {"bucketId": "b-1", "domain": "pub-123.r2.dev", "enabled": True},
    })

    resp = await client.post("/api/cloudflare/r2", json={
        "bucketName": " assets ", "accountId": "acc-1", "token": "cf-token", "enableDevDomain": True,
    })

    assert resp.status_code == 200
    assert resp.json() == {
        "bucket": {"name": "assets", "location": "WNAM", "createdAt": "2026-10-01T00:00:00Z"},
        "devDomain": {"bucketId": "b-1", "domain": "pub-123.r2.dev", "enabled": True},
    }
    create, domain = upstream.requests
    assert create.headers["Authorization"] == "Bearer cf-token"
    assert upstream.body(create) == {"name": "assets"}
    assert upstream.body(domain) == {"enabled": True}


@pytest.mark.asyncio
async def test_r2_upstream_failure_returns_500(client: AsyncClient, upstream):
    upstream.add("POST", f"{CLOUDFLARE}/accounts/acc-1/r2/buckets", status=403, json={
        "success": False, "errors": [{"code": 10000, "message": "Authentication error"}],
    })

    resp = await client.post("/api/cloudflare/r2", json={
        "bucketName": "assets", "accountId": "acc-1", "token": "cf-token",
    })

    assert resp.status_code == 500
    assert resp.json() == {"error": "Authentication error"}


# ── Cloudflare DNS ──────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_zones_require_account_id(client: AsyncClient):
    await save_token(client, "cloudflare")
    resp = await client.get("/api/cloudflare/zones")
    assert resp.status_code == 400
    assert "account ID missing" in resp.json()["error"]


@pytest.mark.asyncio
async def test_upstream_error_maps_to_502(client: AsyncClient, upstream):
    await save_token(client, "cloudflare")
    await client.patch("/api/settings/", json={"cloudflare_account_id": "acc-1"})
    upstream.add("GET", f"{CLOUDFLARE}/zones", status=403, json={
        "success": False, "errors": [{"message": "Forbidden"}],
    })

    resp = await client.get("/api/cloudflare/zones")
    assert resp.status_code == 502
    assert resp.json() == {"error": "Forbidden", "upstream_status": 403}


@pytest.mark.asyncio
async def test_create_dns_record_rejects_unknown_type(client: AsyncClient, upstream):
    await save_token(client, "cloudflare")
    resp = await client.post(
        "/api/cloudflare/zones/z1/records",
        json={"type": "bogus", "name": "www", "content": "1.2.3.4"},
    )
    assert resp.status_code == 400
    assert upstream.requests == []


# ── GitLab ──────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_gitlab_requires_token(client: AsyncClient, upstream):
    resp = await client.post("/api/gitlab/projects", json={"project_id": "42"})
    assert resp.status_code == 400
    assert resp.json()["error"].startswith("GitLab token missing.")
    assert upstream.requests == []


@pytest.mark.asyncio
async def test_load_project_caches_it(client: AsyncClient, upstream):
    await save_token(client, "gitlab", "glpat-abc")
    upstream.add("GET", f"{GITLAB}/projects/42", json={
        "id": 42, "name": "demo", "name_with_namespace": "g / demo", "web_url": "https://gitlab.com/g/demo",
    })
    upstream.add("GET", f"{GITLAB}/projects/42/repository/branches", json=[{"name": "main", "default": True}])
    upstream.add("GET", f"{GITLAB}/projects/42/pipelines", json=[])

    resp = await client.post("/api/gitlab/projects", json={"project_id": "42"})
    assert resp.status_code == 201
    assert [p["id"] for p in resp.json()["projects"]] == ["42"]
    assert upstream.requests[0].headers["PRIVATE-TOKEN"] == "glpat-abc"

    resp = await client.get("/api/gitlab/projects")
    assert resp.json()["projects"][0]["branches"][0]["status"] == "idle"

    resp = await client.delete("/api/gitlab/projects/42")
    assert resp.status_code == 200
    assert resp.json() == {"projects": [], "persisted": True}
    resp = await client.delete("/api/gitlab/projects/42")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_trigger_pipeline_for_uncached_project_is_404(client: AsyncClient):
    await save_token(client, "gitlab")
    resp = await client.post("/api/gitlab/projects/99/pipelines", json={"ref": "main"})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_sync_variables_updates_or_creates(client: AsyncClient, upstream):
    await save_token(client, "gitlab")
    upstream.add("PUT", f"{GITLAB}/projects/7/variables/A", json={"key": "A"})
    upstream.add("PUT", f"{GITLAB}/projects/7/variables/B", status=404, json={"message": "404 Variable Not Found"})
    upstream.add("POST", f"{GITLAB}/projects/7/variables", status=201, json={"key": "B"})

    resp = await client.post("/api/gitlab/variables", json={"project_id": "7", "env_text": "A=1\nB=2\nC="})

    assert resp.status_code == 200
    data = resp.json()
    assert [(r["key"], r["status"]) for r in data["results"]] == [
        ("A", "success"), ("B", "success"), ("C", "skipped"),
    ]
    assert data["message"] == "Variables synced successfully."
    assert "value" not in data["results"][0]


@pytest.mark.asyncio
async def test_sync_variables_requires_entries(client: AsyncClient):
    await save_token(client, "gitlab")
    resp = await client.post("/api/gitlab/variables", json={"project_id": "7", "env_text": "\n# none\n"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Provide at least one environment variable in KEY=VALUE format."


# ── GitHub ──────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_sync_secrets_rejects_bad_repository(client: AsyncClient):
    await save_token(client, "github")
    resp = await client.post("/api/github/secrets", json={"repository": "just-a-name", "env_text": "A=1"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Repository must be in the format owner/repo."


@pytest.mark.asyncio
async def test_sync_secrets_seals_each_value(client: AsyncClient, upstream):
    await save_token(client, "github", "ghp_x")
    private_key = PrivateKey.generate()
    upstream.add("GET", f"{GITHUB}/repos/octo/hello/actions/secrets/public-key", json={
        "key_id": "kid-1", "key": base64.b64encode(bytes(private_key.public_key)).decode(),
    })
    upstream.add("PUT", f"{GITHUB}/repos/octo/hello/actions/secrets/API_TOKEN", status=201)
    upstream.add("PUT", f"{GITHUB}/repos/octo/hello/actions/secrets/DB_URL", status=204)

    resp = await client.post("/api/github/secrets", json={
        "repository": "octo/hello", "env_text": "API_TOKEN=SECRET123\nDB_URL=postgres://u:p@h/db?x=1",
    })

    assert resp.status_code == 200
    assert resp.json()["succeeded"] == 2
    opened = {
        request.url.path.rsplit("/", 1)[-1]: SealedBox(private_key).decrypt(
            base64.b64decode(upstream.body(request)["encrypted_value"])
        ).decode()
        for request in upstream.calls("PUT")
    }
    assert opened == {"API_TOKEN": "SECRET123", "DB_URL": "postgres://u:p@h/db?x=1"}
    # one public-key fetch per secret
    assert len(upstream.calls("GET")) == 2


@pytest.mark.asyncio
async def test_sync_secrets_reports_invalid_public_key(client: AsyncClient, upstream):
    await save_token(client, "github")
    upstream.add("GET", f"{GITHUB}/repos/octo/hello/actions/secrets/public-key", json={
        "key_id": "kid-1", "key": base64.b64encode(b"short").decode(),
    })

    resp = await client.post("/api/github/secrets", json={"repository": "octo/hello", "env_text": "A=1"})

    data = resp.json()
    assert data["failed"] == 1
    assert data["results"][0]["status"] == "error"
    assert upstream.calls("PUT") == []


@pytest.mark.asyncio
async def test_sync_secrets_continues_after_malformed_key_response(client: AsyncClient, upstream):
    await save_token(client, "github")
    upstream.add("GET", f"{GITHUB}/repos/octo/hello/actions/secrets/public-key", json={"unexpected": True})

    resp = await client.post("/api/github/secrets", json={"repository": "octo/hello", "env_text": "A=1\nB=2"})

    assert resp.status_code == 200
    data = resp.json()
    assert data["failed"] == 2
    assert [(r["key"], r["status"]) for r in data["results"]] == [("A", "error"), ("B", "error")]
    assert all("GitHubPublicKey" in r["error"] for r in data["results"])
    # each entry tried its own key fetch
    assert len(upstream.calls("GET")) == 2
    assert upstream.calls("PUT") == []


@pytest.mark.asyncio
async def test_sync_secrets_continues_after_non_json_key_response(client: AsyncClient, upstream):
    await save_token(client, "github")
    upstream.add("GET", f"{GITHUB}/repos/octo/hello/actions/secrets/public-key", text="<html>oops</html>")

    resp = await client.post("/api/github/secrets", json={"repository": "octo/hello", "env_text": "A=1\nB=2"})

    assert resp.status_code == 200
    assert resp.json()["failed"] == 2


@pytest.mark.asyncio
async def test_gitlab_requests_use_saved_base_url(client: AsyncClient, upstream):
    await save_token(client, "gitlab")
    await client.patch("/api/settings/", json={"gitlab_base_url": "https://git.example.com/api/v4"})
    upstream.add("GET", "https://git.example.com/api/v4/projects", json=[])

    resp = await client.get("/api/gitlab/projects/search", params={"q": "demo"})

    assert resp.status_code == 200
    assert upstream.requests[0].url.host == "git.example.com"


# ── Degraded persistence ────────────────────────────────────────────


@pytest.mark.asyncio
async def test_unopened_store_degrades_instead_of_failing(upstream):
    app.state.store = LocalRecordStore(MemoryBackend())  # never opened
    app.dependency_overrides[get_transport] = lambda: upstream.transport
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            resp = await client.get("/api/tokens/")
            assert resp.status_code == 200
            assert resp.json()["has_tokens"] is False

            resp = await client.put("/api/tokens/gitlab", json={"value": "glpat-abc"})
            assert resp.status_code == 200
            assert resp.json()["persisted"] is False

            resp = await client.patch("/api/settings/", json={"cloudflare_account_id": "acc-1"})
            assert resp.json() == {**resp.json(), "cloudflare_account_id": "acc-1", "persisted": False}

            resp = await client.get("/api/gitlab/projects")
            assert resp.json() == {"projects": [], "persisted": False}

            resp = await client.delete("/api/gitlab/projects/42")
            assert resp.status_code == 200
            assert resp.json() == {"projects": [], "persisted": False}

            resp = await client.delete("/api/gitlab/projects")
            assert resp.json() == {"projects": [], "persisted": False}

            resp = await client.get("/health")
            assert resp.json()["store"]["ready"] is False
    finally:
        app.dependency_overrides.clear()
