from conftest import evolution_error

SETTINGS = "/api/whatsapp/settings"


def test_get_creates_default_settings(client, admin_headers, make_instance):
    instance = make_instance()

    resp = client.get(f"{SETTINGS}/{instance.id}", headers=admin_headers)
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["instance_id"] == instance.id
    assert body["ignore_groups"] is True
    assert body["auto_reply_enabled"] is False
    assert body["availability_schedule"]["monday"] == {"enabled": True, "start": "08:00", "end": "18:00"}
    assert body["availability_schedule"]["sunday"]["enabled"] is False


def test_update_syncs_gateway_and_merges_schedule(client, admin_headers, make_instance, evolution):
    instance = make_instance()

    resp = client.put(
        f"{SETTINGS}/{instance.id}",
        json={
            "reject_calls": True,
            "reject_call_message": "Não atendemos ligações",
            "auto_reply_enabled": True,
            "auto_reply_message": "Retornaremos em breve",
            "availability_schedule": {"saturday": {"enabled": True, "start": "09:00", "end": "13:00"}},
        },
        headers=admin_headers,
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["reject_calls"] is True
    assert body["auto_reply_message"] == "Retornaremos em breve"
    assert body["availability_schedule"]["saturday"] == {"enabled": True, "start": "09:00", "end": "13:00"}
    assert body["availability_schedule"]["monday"]["enabled"] is True

    assert evolution.called("set_settings") == [
        ("set_settings", instance.instance_name, {"rejectCall": True, "msgCall": "Não atendemos ligações"})
    ]

    resp = client.get(f"{SETTINGS}/{instance.id}", headers=admin_headers)
    assert resp.json()["auto_reply_enabled"] is True


def test_update_without_gateway_fields_skips_sync(client, admin_headers, make_instance, evolution):
    instance = make_instance()

    resp = client.put(f"{SETTINGS}/{instance.id}", json={"auto_reply_enabled": True}, headers=admin_headers)
    assert resp.status_code == 200, resp.text
    assert evolution.called("set_settings") == []


def test_invalid_schedule_is_rejected(client, admin_headers, make_instance):
    instance = make_instance()

    for schedule in (
        {"feriado": {"enabled": True, "start": "08:00", "end": "12:00"}},
        {"monday": {"enabled": "sim", "start": "08:00", "end": "12:00"}},
        {"monday": {"enabled": True, "start": "8h", "end": "12:00"}},
        {"monday": {"enabled": True, "start": "08:00", "end": "24:00"}},
    ):
        resp = client.put(f"{SETTINGS}/{instance.id}", json={"availability_schedule": schedule}, headers=admin_headers)
        assert resp.status_code == 400, (schedule, resp.text)
        assert resp.json()["code"] == "INVALID_INPUT"


def test_gateway_sync_failure_keeps_local_settings(client, admin_headers, make_instance, evolution):
    instance = make_instance()
    evolution.errors["set_settings"] = evolution_error(500)

    resp = client.put(f"{SETTINGS}/{instance.id}", json={"always_online": True}, headers=admin_headers)
    assert resp.status_code == 502, resp.text
    assert resp.json()["code"] == "EVOLUTION_API_ERROR"

    resp = client.get(f"{SETTINGS}/{instance.id}", headers=admin_headers)
    assert resp.json()["always_online"] is False


def test_only_creator_or_admin_can_access(client, admin_headers, make_user, auth_headers, make_instance):
    owner = make_user("Atendimento")
    other = make_user("Atendimento")
    instance = make_instance(created_by=owner.id)

    assert client.get(f"{SETTINGS}/{instance.id}", headers=auth_headers(owner)).status_code == 200
    assert client.get(f"{SETTINGS}/{instance.id}", headers=admin_headers).status_code == 200

    resp = client.get(f"{SETTINGS}/{instance.id}", headers=auth_headers(other))
    assert resp.status_code == 403, resp.text
    assert resp.json()["code"] == "ACCESS_DENIED"


def test_unknown_instance(client, admin_headers):
    resp = client.get(f"{SETTINGS}/6f1c9a8e-1111-4a4a-9b9b-000000000000", headers=admin_headers)
    assert resp.status_code == 404, resp.text
    assert resp.json()["code"] == "INSTANCE_NOT_FOUND"
