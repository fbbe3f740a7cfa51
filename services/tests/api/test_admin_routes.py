"""Tests for the admin HTTP surface: auth, routing and error rendering."""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from tollgate.api.app import create_application
from tollgate.cli.bootstrap import seed
from tollgate.config import settings
from tollgate.db.models import Role, User
from tollgate.permissions.builtin import USERS_PERMISSIONS
from tollgate.search import QueryDispatcher
from tollgate.search.sql import SQLSearchStrategy

TOKEN = "test-admin-token"
AUTH = {"Authorization": f"Bearer {TOKEN}"}
PREFIX = "/users-permissions"


def _make_app(session_factory, catalog):
    """Create an app wired to the in-memory database."""
    app = create_application()

    from tollgate.db.session import get_db
    from tollgate.permissions import get_catalog
    from tollgate.search import get_search_dispatcher

    async def override_db() -> AsyncGenerator:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    dispatcher = QueryDispatcher("sql", SQLSearchStrategy(session_factory))

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_catalog] = lambda: catalog
    app.dependency_overrides[get_search_dispatcher] = lambda: dispatcher
    return app


@pytest_asyncio.fixture
async def client(session_factory, catalog, monkeypatch) -> AsyncGenerator[AsyncClient]:
    monkeypatch.setattr(settings, "admin_token", TOKEN)

    async with session_factory() as session:
        await seed(session)
        session.add_all(
            [
                User(username="alice", email="alice@example.com"),
                User(username="bob", email="bob@corp.io"),
            ]
        )
        await session.commit()

    app = _make_app(session_factory, catalog)
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test", headers=AUTH
    ) as client:
        yield client


async def _role_id(client: AsyncClient, role_type: str) -> int:
    response = await client.get(f"{PREFIX}/roles")
    return next(r["id"] for r in response.json()["roles"] if r["type"] == role_type)


class TestAuth:
    async def test_missing_token(self, client):
        response = await client.get(f"{PREFIX}/roles", headers={"Authorization": ""})
        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    async def test_wrong_token(self, client):
        response = await client.get(
            f"{PREFIX}/policies", headers={"Authorization": "Bearer nope"}
        )
        assert response.status_code == 401

    async def test_disabled_without_configured_token(self, client, monkeypatch):
        monkeypatch.setattr(settings, "admin_token", "")
        response = await client.get(f"{PREFIX}/roles")
        assert response.status_code == 503

    async def test_health_is_public(self, client):
        response = await client.get("/health", headers={"Authorization": ""})
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}
        assert "X-Request-ID" in response.headers


class TestRoles:
    async def test_list(self, client):
        response = await client.get(f"{PREFIX}/roles")
        assert response.status_code == 200
        roles = response.json()["roles"]
        assert [r["type"] for r in roles] == ["public", "authenticated"]
        assert all(r["nb_users"] == 0 for r in roles)

    async def test_create_show_update_delete(self, client):
        response = await client.post(
            f"{PREFIX}/roles",
            json={
                "name": "Editors",
                "description": "Edit content",
                "permissions": {
                    USERS_PERMISSIONS: {
                        "controllers": {"user": {"find": {"enabled": True, "policy": ""}}}
                    }
                },
            },
        )
        assert response.status_code == 200
        assert response.json() == {"ok": True}

        role_id = await _role_id(client, "editors")
        shown = (await client.get(f"{PREFIX}/roles/{role_id}", params={"lang": "fr"})).json()
        role = shown["role"]
        assert role["name"] == "Editors"
        plugin = role["permissions"][USERS_PERMISSIONS]
        assert plugin["controllers"]["user"]["find"] == {"enabled": True, "policy": ""}
        assert plugin["information"]["description"].startswith("Protégez")

        response = await client.put(f"{PREFIX}/roles/{role_id}", json={"name": "Writers"})
        assert response.status_code == 200
        shown = (await client.get(f"{PREFIX}/roles/{role_id}")).json()
        assert shown["role"]["name"] == "Writers"

        response = await client.delete(f"{PREFIX}/roles/{role_id}")
        assert response.status_code == 200

        response = await client.get(f"{PREFIX}/roles/{role_id}")
        assert response.status_code == 404
        assert response.json() == {
            "error": {"code": "not_found", "message": "Role does not exist"}
        }

    async def test_delete_public_role_is_forbidden(self, client, session_factory):
        public_id = await _role_id(client, "public")

        response = await client.delete(f"{PREFIX}/roles/{public_id}")

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "forbidden"
        async with session_factory() as session:
            assert await session.get(Role, public_id) is not None

    @pytest.mark.parametrize("template", ["0{}", "%20{}", "{}%20"])
    async def test_delete_public_role_by_alias_is_forbidden(
        self, client, session_factory, template
    ):
        public_id = await _role_id(client, "public")

        response = await client.delete(f"{PREFIX}/roles/" + template.format(public_id))

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "forbidden"
        async with session_factory() as session:
            assert await session.get(Role, public_id) is not None

    async def test_delete_non_numeric_id(self, client):
        response = await client.delete(f"{PREFIX}/roles/abc")
        assert response.status_code == 400
        assert response.json() == {"error": {"code": "invalid_input", "message": "Bad request"}}

    async def test_delete_moves_users_to_public(self, client, session_factory):
        await client.post(f"{PREFIX}/roles", json={"name": "Editors"})
        editors_id = await _role_id(client, "editors")
        async with session_factory() as session:
            session.add(User(username="carol", email="carol@example.com", role_id=editors_id))
            await session.commit()

        response = await client.delete(f"{PREFIX}/roles/{editors_id}")
        assert response.status_code == 200

        roles = (await client.get(f"{PREFIX}/roles")).json()["roles"]
        counts = {r["type"]: r["nb_users"] for r in roles}
        assert counts == {"public": 1, "authenticated": 0}

    async def test_create_empty_body(self, client):
        response = await client.post(f"{PREFIX}/roles")
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "invalid_input"

    async def test_create_with_unknown_action(self, client):
        response = await client.post(
            f"{PREFIX}/roles",
            json={
                "name": "Broken",
                "permissions": {
                    USERS_PERMISSIONS: {"controllers": {"user": {"fly": {"enabled": True}}}}
                },
            },
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "invalid_input"

    async def test_duplicate_role_is_generic_failure(self, client):
        response = await client.post(f"{PREFIX}/roles", json={"name": "Public"})
        assert response.status_code == 400
        assert response.json() == {
            "error": {"code": "operation_failed", "message": "An error occurred"}
        }

    async def test_update_missing_role(self, client):
        response = await client.put(f"{PREFIX}/roles/999", json={"name": "Ghost"})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "operation_failed"


class TestCatalogRoutes:
    async def test_permissions(self, client):
        body = (await client.get(f"{PREFIX}/permissions")).json()
        assert "register" in body["permissions"][USERS_PERMISSIONS]["auth"]

    async def test_policies_exclude_permissions_gate(self, client):
        body = (await client.get(f"{PREFIX}/policies")).json()
        assert body == {"policies": ["isAuthenticated", "rateLimit"]}

    async def test_routes(self, client):
        body = (await client.get(f"{PREFIX}/routes")).json()
        handlers = {r["handler"] for r in body["routes"][USERS_PERMISSIONS]}
        assert "role.deleteRole" in handlers


class TestSearch:
    async def test_search(self, client):
        response = await client.get(f"{PREFIX}/search/ali")
        assert response.status_code == 200
        assert [u["username"] for u in response.json()] == ["alice"]

    async def test_search_by_email(self, client):
        response = await client.get(f"{PREFIX}/search/corp.io")
        assert [u["email"] for u in response.json()] == ["bob@corp.io"]

    async def test_blank_term(self, client):
        response = await client.get(f"{PREFIX}/search/%20")
        assert response.status_code == 400


class TestSettings:
    async def test_email_templates_round_trip(self, client):
        templates = (await client.get(f"{PREFIX}/email-templates")).json()
        assert set(templates) == {"reset_password", "email_confirmation"}

        templates["reset_password"]["options"]["message"] = "<p><%= URL %>?code=<%= TOKEN %></p>"
        response = await client.put(
            f"{PREFIX}/email-templates", json={"email-templates": templates}
        )
        assert response.status_code == 200

        stored = (await client.get(f"{PREFIX}/email-templates")).json()
        assert stored["reset_password"]["options"]["message"].endswith("<%= TOKEN %></p>")

    async def test_invalid_template_rejected(self, client):
        before = (await client.get(f"{PREFIX}/email-templates")).json()
        bad = {
            "reset_password": {"options": {"message": "<%= URL %>"}},
            "email_confirmation": {"options": {"message": "${process.env.SECRET}"}},
        }
        response = await client.put(f"{PREFIX}/email-templates", json={"email-templates": bad})
        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Invalid template"
        assert (await client.get(f"{PREFIX}/email-templates")).json() == before

    async def test_advanced(self, client):
        body = (await client.get(f"{PREFIX}/advanced")).json()
        assert body["settings"]["default_role"] == "authenticated"
        assert {r["type"] for r in body["roles"]} == {"public", "authenticated"}

        new = dict(body["settings"], allow_register=False)
        assert (await client.put(f"{PREFIX}/advanced", json=new)).status_code == 200
        body = (await client.get(f"{PREFIX}/advanced")).json()
        assert body["settings"]["allow_register"] is False

    async def test_providers(self, client):
        providers = (await client.get(f"{PREFIX}/providers")).json()
        assert "redirectUri" not in providers["email"]
        assert providers["github"]["redirectUri"] == (
            "http://localhost:1337/api/connect/github/callback"
        )

        providers["github"]["enabled"] = True
        response = await client.put(f"{PREFIX}/providers", json={"providers": providers})
        assert response.status_code == 200
        assert (await client.get(f"{PREFIX}/providers")).json()["github"]["enabled"] is True

    async def test_providers_list_is_rejected(self, client):
        response = await client.put(f"{PREFIX}/providers", json={"providers": ["github"]})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "invalid_input"

        response = await client.get(f"{PREFIX}/providers")
        assert response.status_code == 200
        assert "github" in response.json()

    @pytest.mark.parametrize("path", ["/email-templates", "/advanced", "/providers"])
    async def test_empty_update(self, client, path):
        response = await client.put(f"{PREFIX}{path}", json={})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "invalid_input"
