from datetime import timedelta

from app.api.usuarios.models.model_invite import InviteModel
from app.api.usuarios.models.model_user import UserModel
from app.utils.database_utils import utcnow
from conftest import token_for


def _create(client, headers, group_id, email="convidado@avaliatec.test"):
    return client.post("/api/invites", json={"email": email, "group_id": group_id}, headers=headers)


def _invite(db, invite_id) -> InviteModel:
    db.expire_all()
    return db.query(InviteModel).filter(InviteModel.id == invite_id).one()


def test_create_invite_sends_email(client, admin_headers, group_by_name, mailer, db):
    group = group_by_name("Atendimento")

    resp = _create(client, admin_headers, group.id, email="  Convidado@AvaliaTec.test ")
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["email_sent"] is True
    assert body["invite"]["email"] == "Convidado@AvaliaTec.test"
    assert body["invite"]["status"] == "pending"
    assert body["invite"]["group_name"] == "Atendimento"

    invite = _invite(db, body["invite"]["id"])
    assert len(invite.token) == 64
    assert timedelta(days=6, hours=23) < invite.expires_at - utcnow() <= timedelta(days=7)
    assert mailer.sent[0]["link"].endswith(f"/auth/invite?token={invite.token}")


def test_create_invite_validation(client, admin_headers, group_by_name):
    group = group_by_name("Atendimento")

    resp = _create(client, admin_headers, group.id, email="sem-arroba")
    assert resp.status_code == 400, resp.text
    assert resp.json()["code"] == "INVALID_EMAIL"

    resp = _create(client, admin_headers, "6f1c9a8e-1111-4a4a-9b9b-000000000000")
    assert resp.status_code == 404, resp.text
    assert resp.json()["code"] == "GROUP_NOT_FOUND"

    assert _create(client, admin_headers, group.id).status_code == 201
    resp = _create(client, admin_headers, group.id)
    assert resp.status_code == 409, resp.text
    assert resp.json()["code"] == "INVITE_EXISTS"


def test_invite_kept_when_email_fails(client, admin_headers, group_by_name, mailer):
    mailer.fail = True

    resp = _create(client, admin_headers, group_by_name("Atendimento").id)
    assert resp.status_code == 201, resp.text
    assert resp.json()["email_sent"] is False

    pending = client.get("/api/invites", headers=admin_headers).json()
    assert [i["email"] for i in pending] == ["convidado@avaliatec.test"]


def test_validate_token(client, admin_headers, group_by_name, db):
    body = _create(client, admin_headers, group_by_name("Atendimento").id).json()
    token = _invite(db, body["invite"]["id"]).token

    resp = client.post("/api/invites/validate", json={"token": token})
    assert resp.status_code == 200, resp.text
    assert resp.json()["valid"] is True
    assert resp.json()["data"]["group_name"] == "Atendimento"

    resp = client.post("/api/invites/validate", json={"token": "inexistente"})
    assert resp.json() == {"valid": False, "data": None}


def test_expired_invite_is_rejected_before_status_update(client, admin_headers, group_by_name, db):
    body = _create(client, admin_headers, group_by_name("Atendimento").id).json()
    invite = _invite(db, body["invite"]["id"])
    invite.expires_at = utcnow() - timedelta(minutes=1)
    db.commit()
    assert invite.status == "pending"

    resp = client.post("/api/invites/validate", json={"token": invite.token})
    assert resp.json()["valid"] is False
    assert _invite(db, invite.id).status == "expired"


def test_accept_invite_sets_group_and_cannot_be_reused(client, admin_headers, group_by_name, make_user, auth_headers, db):
    admin_group = group_by_name("Administrador")
    user = make_user(group=None, email="convidado@avaliatec.test")
    body = _create(client, admin_headers, admin_group.id).json()
    token = _invite(db, body["invite"]["id"]).token

    resp = client.post("/api/invites/accept", json={"token": token}, headers=auth_headers(user))
    assert resp.status_code == 200, resp.text
    assert resp.json()["status"] == "accepted"

    db.expire_all()
    assert db.get(UserModel, user.id).group_id == admin_group.id

    resp = client.post("/api/invites/accept", json={"token": token}, headers=auth_headers(user))
    assert resp.status_code == 400, resp.text
    assert resp.json()["code"] == "INVALID_TOKEN"


def test_accept_invite_email_mismatch(client, admin_headers, group_by_name, make_user, auth_headers, db):
    body = _create(client, admin_headers, group_by_name("Atendimento").id).json()
    token = _invite(db, body["invite"]["id"]).token
    other = make_user(group=None, email="outra@avaliatec.test")

    resp = client.post("/api/invites/accept", json={"token": token}, headers=auth_headers(other))
    assert resp.status_code == 403, resp.text
    assert resp.json()["code"] == "EMAIL_MISMATCH"


def test_accept_invite_email_must_match_letter_case(client, admin_headers, group_by_name, make_user, auth_headers, db):
    body = _create(client, admin_headers, group_by_name("Atendimento").id, email="Convidado@Avaliatec.test").json()
    invite = _invite(db, body["invite"]["id"])
    assert invite.email == "Convidado@Avaliatec.test"
    user = make_user(group=None, email="convidado@avaliatec.test")

    resp = client.post("/api/invites/accept", json={"token": invite.token}, headers=auth_headers(user))
    assert resp.status_code == 403, resp.text
    assert resp.json()["code"] == "EMAIL_MISMATCH"
    assert _invite(db, invite.id).status == "pending"


def test_accept_invite_before_first_sync_creates_user(client, admin_headers, group_by_name, db):
    group = group_by_name("Administrador")
    body = _create(client, admin_headers, group.id).json()
    token = _invite(db, body["invite"]["id"]).token
    headers = {"Authorization": f"Bearer {token_for('auth-convidado', 'convidado@avaliatec.test')}"}

    resp = client.post("/api/invites/accept", json={"token": token}, headers=headers)
    assert resp.status_code == 200, resp.text

    db.expire_all()
    user = db.query(UserModel).filter(UserModel.auth_user_id == "auth-convidado").one()
    assert user.group_id == group.id


def test_cancel_and_resend(client, admin_headers, group_by_name, mailer, db):
    body = _create(client, admin_headers, group_by_name("Atendimento").id).json()
    invite_id = body["invite"]["id"]
    token = _invite(db, invite_id).token

    resp = client.post(f"/api/invites/{invite_id}/resend", headers=admin_headers)
    assert resp.status_code == 200, resp.text
    assert len(mailer.sent) == 2
    assert _invite(db, invite_id).token == token

    mailer.fail = True
    resp = client.post(f"/api/invites/{invite_id}/resend", headers=admin_headers)
    assert resp.status_code == 502, resp.text
    assert resp.json()["code"] == "EMAIL_ERROR"

    resp = client.delete(f"/api/invites/{invite_id}", headers=admin_headers)
    assert resp.status_code == 204, resp.text

    resp = client.delete(f"/api/invites/{invite_id}", headers=admin_headers)
    assert resp.status_code == 404, resp.text
    assert resp.json()["code"] == "INVITE_NOT_FOUND"


def test_resend_expired_invite(client, admin_headers, group_by_name, db):
    body = _create(client, admin_headers, group_by_name("Atendimento").id).json()
    invite = _invite(db, body["invite"]["id"])
    invite.expires_at = utcnow() - timedelta(days=1)
    db.commit()

    resp = client.post(f"/api/invites/{invite.id}/resend", headers=admin_headers)
    assert resp.status_code == 400, resp.text
    assert resp.json()["code"] == "INVITE_EXPIRED"

    resp = client.delete(f"/api/invites/{invite.id}", headers=admin_headers)
    assert resp.status_code == 400, resp.text
    assert resp.json()["code"] == "INVITE_NOT_PENDING"
