from sqlalchemy.exc import OperationalError

from app.api.whatsapp.models.model_instance import WhatsAppInstanceModel
from app.api.whatsapp.repositories.repo_instance import InstanceRepository
from conftest import evolution_error

INSTANCES = "/api/whatsapp/instances"


def _broken_create(self, instance):
    raise OperationalError("INSERT", {}, Exception("disco cheio"))


def test_create_instance(client, admin, admin_headers, evolution, db):
    resp = client.post(INSTANCES, json={"displayName": "  Loja Centro "}, headers=admin_headers)
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["display_name"] == "Loja Centro"
    assert body["status"] == "disconnected"
    assert body["created_by"] == admin.id
    assert body["instance_name"].startswith("instance_")
    assert "instance_token" not in body

    create_call = evolution.called("create_instance")[0]
    assert create_call[1] == body["instance_name"]

    db.expire_all()
    assert db.get(WhatsAppInstanceModel, body["id"]).instance_token == "tok-123"


def test_create_instance_requires_display_name(client, admin_headers, evolution):
    resp = client.post(INSTANCES, json={"displayName": "   "}, headers=admin_headers)
    assert resp.status_code == 400, resp.text
    assert resp.json()["code"] == "INVALID_INPUT"
    assert evolution.calls == []


def test_create_instance_gateway_errors(client, admin_headers, evolution, db):
    evolution.errors["create_instance"] = evolution_error(409, "nome em uso")
    resp = client.post(INSTANCES, json={"displayName": "Loja"}, headers=admin_headers)
    assert resp.status_code == 400, resp.text
    assert resp.json()["code"] == "EVOLUTION_API_ERROR"

    evolution.errors["create_instance"] = evolution_error(502, "bad gateway")
    resp = client.post(INSTANCES, json={"displayName": "Loja"}, headers=admin_headers)
    assert resp.status_code == 500, resp.text
    assert resp.json()["code"] == "EVOLUTION_API_ERROR"

    evolution.errors["create_instance"] = RuntimeError("inesperado")
    resp = client.post(INSTANCES, json={"displayName": "Loja"}, headers=admin_headers)
    assert resp.status_code == 503, resp.text
    assert resp.json()["code"] == "SERVICE_UNAVAILABLE"

    assert evolution.called("delete_instance") == []
    assert db.query(WhatsAppInstanceModel).count() == 0


def test_local_insert_failure_compensates_gateway_instance(client, admin_headers, evolution, db, monkeypatch):
    monkeypatch.setattr(InstanceRepository, "create", _broken_create)

    resp = client.post(INSTANCES, json={"displayName": "Loja"}, headers=admin_headers)
    assert resp.status_code == 500, resp.text
    assert resp.json()["code"] == "CREATE_ERROR"
    assert resp.json().get("details") is None

    created_name = evolution.called("create_instance")[0][1]
    assert evolution.called("delete_instance") == [("delete_instance", created_name)]


def test_failed_compensation_reports_orphan(client, admin_headers, evolution, monkeypatch):
    monkeypatch.setattr(InstanceRepository, "create", _broken_create)
    evolution.errors["delete_instance"] = evolution_error(500, "timeout")

    resp = client.post(INSTANCES, json={"displayName": "Loja"}, headers=admin_headers)
    assert resp.status_code == 500, resp.text
    assert resp.json()["details"]["orphanedResources"] == ["evolution_instance"]
    assert len(evolution.called("delete_instance")) == 3


def test_get_instance(client, admin_headers, make_instance):
    instance = make_instance()

    resp = client.get(f"{INSTANCES}/{instance.id}", headers=admin_headers)
    assert resp.status_code == 200, resp.text
    assert resp.json()["instance_name"] == instance.instance_name

    resp = client.get(f"{INSTANCES}/nao-e-uuid", headers=admin_headers)
    assert resp.status_code == 400, resp.text
    assert resp.json()["code"] == "INVALID_ID"

    resp = client.get(f"{INSTANCES}/6f1c9a8e-1111-4a4a-9b9b-000000000000", headers=admin_headers)
    assert resp.status_code == 404, resp.text
    assert resp.json()["code"] == "NOT_FOUND"


def test_connect_returns_qr_code(client, admin_headers, make_instance, evolution):
    instance = make_instance(status="disconnected")

    resp = client.post(f"{INSTANCES}/{instance.id}/connect", headers=admin_headers)
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["status"] == "qr_code"
    assert body["qr_code"] == "data:image/png;base64,QR"
    assert body["instance"]["qr_code_updated_at"] is not None


def test_connect_when_gateway_already_open(client, admin_headers, make_instance, evolution):
    evolution.connection_state = "open"
    instance = make_instance(status="disconnected")

    resp = client.post(f"{INSTANCES}/{instance.id}/connect", headers=admin_headers)
    assert resp.status_code == 200, resp.text
    assert resp.json()["status"] == "connected"
    assert resp.json()["qr_code"] is None
    assert evolution.called("connect_instance") == []


def test_connect_errors(client, admin_headers, make_instance, evolution, db):
    connected = make_instance(status="connected")
    resp = client.post(f"{INSTANCES}/{connected.id}/connect", headers=admin_headers)
    assert resp.status_code == 400, resp.text
    assert resp.json()["code"] == "ALREADY_CONNECTED"

    instance = make_instance(status="connecting")
    evolution.errors["connect_instance"] = evolution_error(500)
    resp = client.post(f"{INSTANCES}/{instance.id}/connect", headers=admin_headers)
    assert resp.status_code == 500, resp.text
    assert resp.json()["code"] == "EVOLUTION_API_ERROR"
    db.expire_all()
    assert db.get(WhatsAppInstanceModel, instance.id).status == "disconnected"


def test_disconnect(client, admin_headers, make_instance, evolution, db):
    instance = make_instance(status="connected")

    resp = client.post(f"{INSTANCES}/{instance.id}/disconnect", headers=admin_headers)
    assert resp.status_code == 200, resp.text
    assert resp.json()["status"] == "disconnected"
    assert resp.json()["phone_number"] is None

    resp = client.post(f"{INSTANCES}/{instance.id}/disconnect", headers=admin_headers)
    assert resp.status_code == 400, resp.text
    assert resp.json()["code"] == "ALREADY_DISCONNECTED"


def test_disconnect_instance_missing_on_gateway(client, admin_headers, make_instance, evolution):
    instance = make_instance(status="connected")
    evolution.errors["logout_instance"] = evolution_error(404, "not found")

    resp = client.post(f"{INSTANCES}/{instance.id}/disconnect", headers=admin_headers)
    assert resp.status_code == 200, resp.text
    assert resp.json()["status"] == "disconnected"


def test_delete_instance_even_if_gateway_fails(client, admin_headers, make_instance, evolution, db):
    instance_id = make_instance().id
    evolution.errors["delete_instance"] = evolution_error(500)

    resp = client.delete(f"{INSTANCES}/{instance_id}", headers=admin_headers)
    assert resp.status_code == 204, resp.text
    db.expire_all()
    assert db.get(WhatsAppInstanceModel, instance_id) is None


def test_atendimento_group_can_use_instances(client, make_user, auth_headers):
    headers = auth_headers(make_user("Atendimento"))

    resp = client.post(INSTANCES, json={"displayName": "Loja"}, headers=headers)
    assert resp.status_code == 201, resp.text

    resp = client.delete(f"{INSTANCES}/{resp.json()['id']}", headers=headers)
    assert resp.status_code == 403, resp.text
