import logging

from .db_connection import engine, Base, SessionLocal

logger = logging.getLogger(__name__)


def importar_models():
    # ─── Models Usuários ───────────────────────────────────────────
    from app.api.usuarios.models.model_group import GroupModel
    from app.api.usuarios.models.model_group_permission import GroupPermissionModel
    from app.api.usuarios.models.model_user import UserModel
    from app.api.usuarios.models.model_invite import InviteModel
    # ─── Models Clientes ───────────────────────────────────────────
    from app.api.clientes.models.model_cliente import ClienteModel
    # ─── Models WhatsApp ───────────────────────────────────────────
    from app.api.whatsapp.models.model_instance import WhatsAppInstanceModel
    from app.api.whatsapp.models.model_contact import WhatsAppContactModel
    from app.api.whatsapp.models.model_message import WhatsAppMessageModel
    from app.api.whatsapp.models.model_instance_settings import WhatsAppInstanceSettingsModel
    from app.api.whatsapp.models.model_quick_message import WhatsAppQuickMessageModel
    from app.api.whatsapp.models.model_webhook_failure import WebhookFailureModel
    from app.api.whatsapp.models.model_auto_reply_log import WhatsAppAutoReplyLogModel
    logger.info("📦 Models importados com sucesso.")


def criar_tabelas(bind=None):
    importar_models()
    Base.metadata.create_all(bind=bind or engine, checkfirst=True)
    logger.info("📋 Tabelas criadas/verificadas.")


def criar_grupos_padrao(db, caches):
    from app.api.usuarios.services.service_group import GroupService
    from app.api.usuarios.services.service_permissions import PermissionResolver

    GroupService(db, PermissionResolver(db, caches.permissions)).seed_default_groups()


def criar_mensagens_rapidas_padrao(db):
    from app.api.whatsapp.services.service_quick_message import QuickMessageService

    QuickMessageService(db).seed_defaults()


def inicializar_banco(caches, session_factory=SessionLocal, bind=None):
    """Cria as tabelas e aplica os seeds idempotentes (grupos e mensagens rápidas)."""
    logger.info("🚀 Iniciando processo de inicialização do banco de dados...")

    logger.info("📋 Passo 1/2: Criando/verificando todas as tabelas...")
    criar_tabelas(bind=bind)

    logger.info("🔐 Passo 2/2: Criando/verificando grupos e mensagens rápidas padrão...")
    db = session_factory()
    try:
        criar_grupos_padrao(db, caches)
        criar_mensagens_rapidas_padrao(db)
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

    logger.info("✅ Banco inicializado com sucesso.")
