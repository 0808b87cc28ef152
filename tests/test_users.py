from conftest import token_for


def test_me_returns_permissions_and_admin_flag(client, make_user, auth_headers):
    user = make_user("Atendimento")

    resp = client.get("/api/users/me", headers=auth_headers(user))
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["user"]["id"] == user.id
    assert body["group"]["name"] == "Atendimento"
    assert body["is_admin"] is False
    assert body["permissions"]["atendimento"]["create"] is True
    assert body["permissions"]["configuracoes"]["view"] is False


def test_me_for_admin(client, admin_headers):
    body = client.get("/api/users/me", headers=admin_headers).json()
    assert body["is_admin"] is True
    assert all(all(flags.values()) for flags in body["permissions"].values())


def test_list_users_pagination_and_filters(client, admin_headers, make_user):
    for i in range(3):
        make_user("Atendimento", email=f"atendente{i}@avaliatec.test")
    make_user(group=None, email="semgrupo@avaliatec.test", status="inactive")

    resp = client.get("/api/users", params={"limit": 2}, headers=admin_headers)
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert len(body["users"]) == 2
    assert body["pagination"] == {"page": 1, "limit": 2, "total": 5, "totalPages": 3}

    resp = client.get("/api/users", params={"search": "ATENDENTE"}, headers=admin_headers)
    assert resp.json()["pagination"]["total"] == 3

    resp = client.get("/api/users", params={"status": "inactive"}, headers=admin_headers)
    assert [u["email"] for u in resp.json()["users"]] == ["semgrupo@avaliatec.test"]

    resp = client.get("/api/users", params={"status": "banido"}, headers=admin_headers)
    assert resp.status_code == 400, resp.text
    assert resp.json()["code"] == "INVALID_STATUS"

    resp = client.get("/api/users", params={"limit": 500}, headers=admin_headers)
    assert resp.status_code == 400, resp.text
    assert resp.json()["code"] == "VALIDATION_ERROR"


def test_update_user_group_and_status(client, admin_headers, make_user, group_by_name):
    user = make_user("Atendimento")
    admin_group = group_by_name("Administrador")

    resp = client.put(f"/api/users/{user.id}", json={"group_id": admin_group.id}, headers=admin_headers)
    assert resp.status_code == 200, resp.text
    assert resp.json()["group"]["name"] == "Administrador"

    resp = client.put(f"/api/users/{user.id}", json={"status": "inactive"}, headers=admin_headers)
    assert resp.status_code == 200, resp.text
    assert resp.json()["status"] == "inactive"

    resp = client.put(f"/api/users/{user.id}", json={"status": "banido"}, headers=admin_headers)
    assert resp.status_code == 400, resp.text
    assert resp.json()["code"] == "INVALID_STATUS"

    resp = client.put(
        f"/api/users/{user.id}",
        json={"group_id": "6f1c9a8e-1111-4a4a-9b9b-000000000000"},
        headers=admin_headers,
    )
    assert resp.status_code == 404, resp.text
    assert resp.json()["code"] == "GROUP_NOT_FOUND"


def test_update_unknown_user(client, admin_headers):
    resp = client.put(
        "/api/users/6f1c9a8e-1111-4a4a-9b9b-000000000000", json={"status": "active"}, headers=admin_headers
    )
    assert resp.status_code == 404, resp.text
    assert resp.json()["code"] == "USER_NOT_FOUND"


def test_last_admin_cannot_be_deactivated(client, admin, admin_headers, make_user):
    resp = client.put(f"/api/users/{admin.id}", json={"status": "inactive"}, headers=admin_headers)
    assert resp.status_code == 409, resp.text
    assert resp.json()["code"] == "LAST_ADMIN"

    second = make_user("Administrador")
    resp = client.put(f"/api/users/{second.id}", json={"status": "inactive"}, headers=admin_headers)
    assert resp.status_code == 200, resp.text

    # second inativo: admin volta a ser o único ativo
    resp = client.put(f"/api/users/{admin.id}", json={"status": "inactive"}, headers=admin_headers)
    assert resp.status_code == 409, resp.text


def test_last_admin_cannot_leave_admin_group(client, admin, admin_headers, group_by_name):
    resp = client.put(
        f"/api/users/{admin.id}", json={"group_id": group_by_name("Atendimento").id}, headers=admin_headers
    )
    assert resp.status_code == 409, resp.text
    assert resp.json()["code"] == "LAST_ADMIN"


def test_deactivated_user_loses_access_immediately(client, admin_headers, make_user, auth_headers):
    user = make_user("Atendimento")
    headers = auth_headers(user)
    assert client.get("/api/clients", headers=headers).status_code == 200

    client.put(f"/api/users/{user.id}", json={"status": "inactive"}, headers=admin_headers)

    resp = client.get("/api/clients", headers=headers)
    assert resp.status_code == 403, resp.text
    assert resp.json()["code"] == "USER_INACTIVE"


def test_sync_creates_user_in_default_group(client):
    token = token_for("auth-novo", "novo@avaliatec.test", user_metadata={"full_name": "Novo Usuário"})
    headers = {"Authorization": f"Bearer {token}"}

    resp = client.post("/api/auth/sync", headers=headers)
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["full_name"] == "Novo Usuário"
    assert body["group"]["name"] == "Atendimento"
    assert body["status"] == "active"
    assert body["last_access"] is not None

    resp = client.post("/api/auth/sync", json={"full_name": "Nome Alterado"}, headers=headers)
    assert resp.status_code == 200, resp.text
    assert resp.json()["id"] == body["id"]
    assert resp.json()["full_name"] == "Nome Alterado"
