import os

# Precisa vir antes de qualquer import de `app` (settings são lidos no import)
os.environ.setdefault("RUNNING_IN_DOCKER", "1")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import uuid
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.usuarios.models.model_group import GroupModel
from app.api.usuarios.models.model_user import UserModel
from app.api.usuarios.services.dependencies import get_invite_mailer
from app.api.usuarios.services.service_group import GroupService
from app.api.usuarios.services.service_permissions import PermissionResolver
from app.api.whatsapp.models.model_contact import WhatsAppContactModel
from app.api.whatsapp.models.model_instance import WhatsAppInstanceModel
from app.api.whatsapp.services.service_webhook import get_webhook_secret
from app.core.cache import Caches
from app.core.rate_limiter import MessageRateLimiter
from app.core.security import create_access_token
from app.database.db_connection import Base, get_db
from app.database.init_db import importar_models
from app.integrations.evolution.client import EvolutionApiError, get_evolution_client
from app.main import app


class FakeMailer:
    def __init__(self):
        self.sent: List[Dict[str, Any]] = []
        self.fail = False

    def send_invite(self, to_email, group_name, invite_link, expires_at):
        from app.api.usuarios.services.mailer import EmailDeliveryError

        if self.fail:
            raise EmailDeliveryError("SMTP fora do ar")
        self.sent.append({"to": to_email, "group": group_name, "link": invite_link})


class FakeEvolution:
    """Substitui a Evolution API: registra chamadas e permite injetar erros por método."""

    webhook_url = "http://testserver/api/webhooks/evolution"

    def __init__(self):
        self.calls: List[tuple] = []
        self.errors: Dict[str, Exception] = {}
        self.connection_state = "close"

    async def _call(self, name, *args, result=None):
        self.calls.append((name,) + args)
        if name in self.errors:
            raise self.errors[name]
        return result

    async def create_instance(self, instance_name, **kwargs):
        return await self._call("create_instance", instance_name, result={"hash": {"apikey": "tok-123"}})

    async def delete_instance(self, instance_name):
        return await self._call("delete_instance", instance_name)

    async def connect_instance(self, instance_name):
        return await self._call("connect_instance", instance_name, result={"base64": "data:image/png;base64,QR"})

    async def get_connection_state(self, instance_name):
        return await self._call(
            "get_connection_state", instance_name, result={"instance": {"state": self.connection_state}}
        )

    async def logout_instance(self, instance_name):
        return await self._call("logout_instance", instance_name)

    async def send_text_message(self, instance_name, number, text):
        return await self._call("send_text_message", instance_name, number, text, result={"key": {"id": "EXT-1"}})

    async def send_audio_message(self, instance_name, number, audio):
        return await self._call("send_audio_message", instance_name, number, audio, result={"key": {"id": "EXT-2"}})

    async def set_settings(self, instance_name, settings):
        return await self._call("set_settings", instance_name, settings)

    def called(self, name) -> List[tuple]:
        return [c for c in self.calls if c[0] == name]


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    importar_models()
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def caches():
    return Caches()


@pytest.fixture
def db(session_factory, caches):
    session = session_factory()
    GroupService(session, PermissionResolver(session, caches.permissions)).seed_default_groups()
    yield session
    session.close()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def evolution():
    return FakeEvolution()


@pytest.fixture
def client(db, session_factory, caches, mailer, evolution):
    def override_get_db():
        session = session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.state.caches = caches
    app.state.rate_limiter = MessageRateLimiter()
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_invite_mailer] = lambda: mailer
    app.dependency_overrides[get_evolution_client] = lambda: evolution
    app.dependency_overrides[get_webhook_secret] = lambda: None

    yield TestClient(app)

    app.dependency_overrides.clear()


# ───────────────────────────
# Helpers de dados
# ───────────────────────────

@pytest.fixture
def group_by_name(db):
    def _get(name: str) -> GroupModel:
        return db.query(GroupModel).filter(GroupModel.name == name).one()

    return _get


@pytest.fixture
def make_user(db, group_by_name):
    def _make(
        group: Optional[str] = None,
        email: Optional[str] = None,
        status: str = "active",
    ) -> UserModel:
        suffix = uuid.uuid4().hex[:8]
        user = UserModel(
            auth_user_id=f"auth-{suffix}",
            email=email or f"user-{suffix}@avaliatec.test",
            full_name=f"Usuário {suffix}",
            group_id=group_by_name(group).id if group else None,
            status=status,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


def token_for(auth_user_id: str, email: Optional[str] = None, **claims) -> str:
    data = {"sub": auth_user_id, **claims}
    if email:
        data["email"] = email
    return create_access_token(data)


@pytest.fixture
def auth_headers():
    def _headers(user: UserModel) -> Dict[str, str]:
        return {"Authorization": f"Bearer {token_for(user.auth_user_id, user.email)}"}

    return _headers


@pytest.fixture
def admin(make_user):
    return make_user("Administrador")


@pytest.fixture
def admin_headers(admin, auth_headers):
    return auth_headers(admin)


@pytest.fixture
def make_instance(db):
    def _make(status: str = "connected", created_by: Optional[str] = None, name: Optional[str] = None):
        instance = WhatsAppInstanceModel(
            instance_name=name or f"instance_{uuid.uuid4().hex[:10]}",
            instance_token="tok",
            display_name="Atendimento",
            status=status,
            created_by=created_by,
        )
        db.add(instance)
        db.commit()
        db.refresh(instance)
        return instance

    return _make


@pytest.fixture
def make_contact(db):
    def _make(instance, phone: str = "5511999998888", name: Optional[str] = "Maria", client_id=None):
        contact = WhatsAppContactModel(
            instance_id=instance.id,
            remote_jid=f"{phone}@s.whatsapp.net",
            phone_number=phone,
            name=name,
            client_id=client_id,
        )
        db.add(contact)
        db.commit()
        db.refresh(contact)
        return contact

    return _make


def evolution_error(status_code: int, message: str = "erro") -> EvolutionApiError:
    return EvolutionApiError(message, status_code, {"message": message})
