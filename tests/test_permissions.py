from app.api.usuarios.services.service_permissions import PermissionResolver
from app.core.cache import TTLCache
from app.core.sections import SECTIONS, PermissionAction, SectionKey, action_for_method


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_action_for_method():
    assert action_for_method("GET") == PermissionAction.VIEW
    assert action_for_method("head") == PermissionAction.VIEW
    assert action_for_method("POST") == PermissionAction.CREATE
    assert action_for_method("PATCH") == PermissionAction.EDIT
    assert action_for_method("DELETE") == PermissionAction.DELETE
    assert action_for_method("OPTIONS") is None


def test_resolver_user_without_group_has_no_permissions(db, caches, make_user):
    user = make_user(group=None)
    resolver = PermissionResolver(db, caches.permissions)

    assert resolver.get_user_permissions(user.id) == {}
    for section in SECTIONS:
        assert not resolver.has_permission(user.id, section.key, PermissionAction.VIEW)


def test_resolver_atendimento_group(db, caches, make_user):
    user = make_user("Atendimento")
    resolver = PermissionResolver(db, caches.permissions)

    permissions = resolver.get_user_permissions(user.id)
    assert set(permissions) == {s.key.value for s in SECTIONS}
    assert permissions["clientes"] == {"view": True, "create": False, "edit": False, "delete": False}
    assert permissions["atendimento"]["edit"] is True
    assert permissions["configuracoes"]["view"] is False
    assert resolver.is_admin(user.id) is False


def test_resolver_admin_has_everything(db, caches, admin):
    resolver = PermissionResolver(db, caches.permissions)

    for section in SECTIONS:
        for action in PermissionAction:
            assert resolver.has_permission(admin.id, section.key, action)
    assert resolver.is_admin(admin.id) is True


def test_resolver_cache_expires_and_invalidates(db, make_user, group_by_name):
    clock = FakeClock()
    cache = TTLCache(300, clock=clock)
    resolver = PermissionResolver(db, cache)
    user = make_user("Atendimento")

    assert resolver.has_permission(user.id, SectionKey.ATENDIMENTO, PermissionAction.VIEW)

    user.group_id = None
    db.commit()

    # ainda em cache
    assert resolver.has_permission(user.id, SectionKey.ATENDIMENTO, PermissionAction.VIEW)

    clock.now = 301
    assert not resolver.has_permission(user.id, SectionKey.ATENDIMENTO, PermissionAction.VIEW)

    user.group_id = group_by_name("Atendimento").id
    db.commit()
    resolver.invalidate(user.id)
    assert resolver.has_permission(user.id, SectionKey.ATENDIMENTO, PermissionAction.VIEW)


def test_resolver_returns_copies(db, caches, make_user):
    user = make_user("Atendimento")
    resolver = PermissionResolver(db, caches.permissions)

    permissions = resolver.get_user_permissions(user.id)
    permissions["clientes"]["delete"] = True

    assert not resolver.has_permission(user.id, SectionKey.CLIENTES, PermissionAction.DELETE)


# ───────────────────────────
# Guardas das rotas
# ───────────────────────────

def test_request_without_token_is_unauthorized(client):
    resp = client.get("/api/clients")
    assert resp.status_code == 401, resp.text
    assert resp.json()["code"] == "UNAUTHORIZED"


def test_request_with_invalid_token_is_unauthorized(client):
    resp = client.get("/api/clients", headers={"Authorization": "Bearer nao-e-um-jwt"})
    assert resp.status_code == 401, resp.text


def test_unknown_identity_is_user_not_found(client):
    from conftest import token_for

    resp = client.get("/api/clients", headers={"Authorization": f"Bearer {token_for('desconhecido')}"})
    assert resp.status_code == 404, resp.text
    assert resp.json()["code"] == "USER_NOT_FOUND"


def test_inactive_user_is_blocked(client, make_user, auth_headers):
    user = make_user("Atendimento", status="inactive")
    resp = client.get("/api/clients", headers=auth_headers(user))
    assert resp.status_code == 403, resp.text
    assert resp.json()["code"] == "USER_INACTIVE"


def test_user_without_group_is_denied_everywhere(client, make_user, auth_headers):
    headers = auth_headers(make_user(group=None))

    for path in ("/api/clients", "/api/whatsapp/instances", "/api/whatsapp/quick-messages", "/api/users"):
        resp = client.get(path, headers=headers)
        assert resp.status_code == 403, (path, resp.text)
        assert resp.json()["code"] == "FORBIDDEN"


def test_atendimento_scenario(client, make_user, auth_headers, db):
    headers = auth_headers(make_user("Atendimento"))

    resp = client.get("/api/clients", headers=headers)
    assert resp.status_code == 200, resp.text

    resp = client.post("/api/clients", json={"name": "ACME"}, headers=headers)
    assert resp.status_code == 403, resp.text
    body = resp.json()
    assert body["code"] == "FORBIDDEN"
    assert body["details"]["section"] == "clientes"
    assert body["details"]["action"] == "create"

    resp = client.delete(f"/api/clients/{'0' * 8}-0000-0000-0000-{'0' * 12}", headers=headers)
    assert resp.status_code == 403, resp.text

    resp = client.get("/api/whatsapp/instances", headers=headers)
    assert resp.status_code == 200, resp.text

    resp = client.get("/api/users", headers=headers)
    assert resp.status_code == 403, resp.text


def test_admin_can_manage_clients(client, admin_headers):
    resp = client.post("/api/clients", json={"name": "ACME", "phone": "(11) 98888-7777"}, headers=admin_headers)
    assert resp.status_code == 201, resp.text
    created = resp.json()
    assert created["phone"] == "5511988887777"

    resp = client.delete(f"/api/clients/{created['id']}", headers=admin_headers)
    assert resp.status_code == 204, resp.text

    resp = client.get(f"/api/clients/{created['id']}", headers=admin_headers)
    assert resp.status_code == 404, resp.text
    assert resp.json()["code"] == "CLIENT_NOT_FOUND"


def test_duplicate_client_document_is_conflict(client, admin_headers):
    first = client.post("/api/clients", json={"name": "ACME", "document": "12.345.678/0001-90"}, headers=admin_headers)
    assert first.status_code == 201, first.text
    other = client.post("/api/clients", json={"name": "Beta"}, headers=admin_headers).json()

    resp = client.post("/api/clients", json={"name": "ACME 2", "document": " 12.345.678/0001-90 "}, headers=admin_headers)
    assert resp.status_code == 409, resp.text
    assert resp.json()["code"] == "DOCUMENT_EXISTS"

    resp = client.put(f"/api/clients/{other['id']}", json={"document": "12.345.678/0001-90"}, headers=admin_headers)
    assert resp.status_code == 409, resp.text
    assert resp.json()["code"] == "DOCUMENT_EXISTS"

    resp = client.put(f"/api/clients/{first.json()['id']}", json={"document": "12.345.678/0001-90"}, headers=admin_headers)
    assert resp.status_code == 200, resp.text
