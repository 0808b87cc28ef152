from app.api.whatsapp.models.model_quick_message import WhatsAppQuickMessageModel
from app.api.whatsapp.services.service_quick_message import DEFAULT_QUICK_MESSAGES, QuickMessageService

QUICK = "/api/whatsapp/quick-messages"


def test_quick_message_crud(client, admin, admin_headers):
    resp = client.post(
        QUICK,
        json={"shortcut": "/Boas_Vindas", "message_text": "Seja bem-vindo!", "description": "Entrada"},
        headers=admin_headers,
    )
    assert resp.status_code == 201, resp.text
    created = resp.json()
    assert created["shortcut"] == "/boas_vindas"
    assert created["created_by"] == admin.id

    resp = client.put(f"{QUICK}/{created['id']}", json={"message_text": "Bem-vindo de volta!"}, headers=admin_headers)
    assert resp.status_code == 200, resp.text
    assert resp.json()["message_text"] == "Bem-vindo de volta!"
    assert resp.json()["shortcut"] == "/boas_vindas"

    resp = client.get(QUICK, headers=admin_headers)
    assert [q["shortcut"] for q in resp.json()] == ["/boas_vindas"]

    resp = client.delete(f"{QUICK}/{created['id']}", headers=admin_headers)
    assert resp.status_code == 204, resp.text

    resp = client.get(f"{QUICK}/{created['id']}", headers=admin_headers)
    assert resp.status_code == 404, resp.text
    assert resp.json()["code"] == "NOT_FOUND"


def test_quick_message_validation(client, admin_headers):
    resp = client.post(QUICK, json={"shortcut": "/ola"}, headers=admin_headers)
    assert resp.status_code == 400, resp.text
    assert resp.json()["code"] == "MISSING_FIELDS"

    for shortcut in ("ola", "/", "/com espaco", "/" + "a" * 20):
        resp = client.post(QUICK, json={"shortcut": shortcut, "message_text": "Oi"}, headers=admin_headers)
        assert resp.status_code == 400, (shortcut, resp.text)
        assert resp.json()["code"] == "INVALID_SHORTCUT_FORMAT"

    resp = client.post(QUICK, json={"shortcut": "/vazio", "message_text": "<script>x</script>"}, headers=admin_headers)
    assert resp.status_code == 400, resp.text
    assert resp.json()["code"] == "EMPTY_MESSAGE"

    resp = client.post(QUICK, json={"shortcut": "/longo", "message_text": "a" * 4097}, headers=admin_headers)
    assert resp.status_code == 400, resp.text
    assert resp.json()["code"] == "MESSAGE_TOO_LONG"

    resp = client.get(f"{QUICK}/123", headers=admin_headers)
    assert resp.status_code == 400, resp.text
    assert resp.json()["code"] == "INVALID_ID_FORMAT"


def test_shortcut_must_be_unique_case_insensitive(client, admin_headers):
    first = client.post(QUICK, json={"shortcut": "/ola", "message_text": "Olá"}, headers=admin_headers).json()
    second = client.post(QUICK, json={"shortcut": "/tchau", "message_text": "Tchau"}, headers=admin_headers).json()

    resp = client.post(QUICK, json={"shortcut": "/OLA", "message_text": "Outro"}, headers=admin_headers)
    assert resp.status_code == 409, resp.text
    assert resp.json()["code"] == "SHORTCUT_EXISTS"

    resp = client.put(f"{QUICK}/{second['id']}", json={"shortcut": "/ola"}, headers=admin_headers)
    assert resp.status_code == 409, resp.text

    resp = client.put(f"{QUICK}/{first['id']}", json={"shortcut": "/ola"}, headers=admin_headers)
    assert resp.status_code == 200, resp.text

    resp = client.put(f"{QUICK}/{first['id']}", json={}, headers=admin_headers)
    assert resp.status_code == 400, resp.text
    assert resp.json()["code"] == "NO_UPDATE_FIELDS"


def test_seed_defaults_is_idempotent(db):
    service = QuickMessageService(db)

    assert service.seed_defaults() == len(DEFAULT_QUICK_MESSAGES)
    assert service.seed_defaults() == 0
    shortcuts = {q.shortcut for q in db.query(WhatsAppQuickMessageModel).all()}
    assert shortcuts == {s for s, _, _ in DEFAULT_QUICK_MESSAGES}
