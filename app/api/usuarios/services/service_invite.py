"""
Ciclo de vida dos convites.

pending → accepted | expired (detectado na validação) | cancelado (removido por admin)
"""
import secrets
from datetime import timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.api.usuarios.models.model_invite import InviteModel, InviteStatus
from app.api.usuarios.models.model_user import UserModel
from app.api.usuarios.repositories.repo_group import GroupRepository
from app.api.usuarios.repositories.repo_invite import InviteRepository
from app.api.usuarios.repositories.repo_user import UserRepository
from app.api.usuarios.services.mailer import EmailDeliveryError, InviteMailer
from app.api.usuarios.services.service_permissions import PermissionResolver
from app.config.settings import APP_URL, INVITE_EXPIRY_DAYS
from app.core.exceptions import ApiError, bad_request, conflict, forbidden, not_found
from app.utils.database_utils import require_uuid, utcnow
from app.utils.logger import logger


def generate_invite_token() -> str:
    return secrets.token_hex(32)


def build_invite_link(token: str) -> str:
    return f"{APP_URL}/auth/invite?token={token}"


class InviteService:
    def __init__(self, db: Session, resolver: PermissionResolver, mailer: InviteMailer):
        self.db = db
        self.repo = InviteRepository(db)
        self.group_repo = GroupRepository(db)
        self.user_repo = UserRepository(db)
        self.resolver = resolver
        self.mailer = mailer

    def list_pending(self) -> List[InviteModel]:
        return self.repo.list_pending()

    def create_invite(self, email: str, group_id: str, invited_by: Optional[str]) -> Dict[str, Any]:
        email = email.strip()

        if self.repo.get_pending_by_email(email):
            raise conflict("INVITE_EXISTS", f"Já existe um convite pendente para o email {email}")

        group = self.group_repo.get(group_id) if group_id else None
        if not group:
            raise not_found("GROUP_NOT_FOUND", "Grupo de usuário não encontrado")

        invite = self.repo.create(InviteModel(
            email=email,
            group_id=group.id,
            token=generate_invite_token(),
            expires_at=utcnow() + timedelta(days=INVITE_EXPIRY_DAYS),
            status=InviteStatus.PENDING.value,
            invited_by=invited_by,
        ))
        logger.info("[CONVITES] Convite criado para %s (grupo=%s) por %s", email, group.name, invited_by)

        # O convite permanece mesmo se o email falhar; o admin pode reenviar.
        email_sent = True
        try:
            self.mailer.send_invite(email, group.name, build_invite_link(invite.token), invite.expires_at)
        except EmailDeliveryError as e:
            email_sent = False
            logger.error("[CONVITES] Falha ao enviar email de convite para %s: %s", email, e)

        return {"invite": invite, "email_sent": email_sent}

    def validate_invite_token(self, token: Optional[str]) -> Optional[InviteModel]:
        """Retorna o convite válido ou None (inexistente, usado, cancelado ou expirado)."""
        if not token:
            return None

        invite = self.repo.get_by_token(token)
        if not invite or invite.status != InviteStatus.PENDING.value:
            return None

        if utcnow() > invite.expires_at:
            # Marcação preguiçosa: o status só muda quando alguém valida o token
            self.repo.update(invite, {"status": InviteStatus.EXPIRED.value})
            logger.info("[CONVITES] Convite %s expirado", invite.id)
            return None

        return invite

    def accept_invite(self, token: Optional[str], user: UserModel) -> InviteModel:
        invite = self.validate_invite_token(token)
        if not invite:
            raise bad_request("INVALID_TOKEN", "Token de convite inválido ou expirado")

        if user.email != invite.email:
            raise forbidden(
                "EMAIL_MISMATCH",
                "O email do usuário não corresponde ao convite",
                details={"inviteEmail": invite.email, "userEmail": user.email},
            )

        try:
            user.group_id = invite.group_id
            invite.status = InviteStatus.ACCEPTED.value
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.resolver.invalidate(user.id)
        logger.info("[CONVITES] Convite %s aceito por %s", invite.id, user.email)
        self.db.refresh(invite)
        return invite

    def resend_invite(self, invite_id: str) -> InviteModel:
        invite = self._get_pending(invite_id)

        if utcnow() > invite.expires_at:
            self.repo.update(invite, {"status": InviteStatus.EXPIRED.value})
            raise bad_request("INVITE_EXPIRED", "Convite expirado. Crie um novo convite.")

        group_name = invite.group.name if invite.group else ""
        try:
            self.mailer.send_invite(invite.email, group_name, build_invite_link(invite.token), invite.expires_at)
        except EmailDeliveryError as e:
            logger.error("[CONVITES] Falha ao reenviar convite %s: %s", invite.id, e)
            raise ApiError(502, "EMAIL_ERROR", "Erro ao reenviar email de convite")

        return invite

    def cancel_invite(self, invite_id: str) -> None:
        invite = self._get_pending(invite_id)
        self.repo.delete(invite)
        logger.info("[CONVITES] Convite %s cancelado", invite_id)

    def _get_pending(self, invite_id: str) -> InviteModel:
        require_uuid(invite_id, "ID de convite inválido")
        invite = self.repo.get(invite_id)
        if not invite:
            raise not_found("INVITE_NOT_FOUND", "Convite não encontrado")
        if invite.status != InviteStatus.PENDING.value:
            raise bad_request("INVITE_NOT_PENDING", "Apenas convites pendentes podem ser alterados")
        return invite
