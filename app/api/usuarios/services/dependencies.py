from fastapi import Depends
from sqlalchemy.orm import Session

from app.api.usuarios.services.mailer import InviteMailer
from app.api.usuarios.services.service_group import GroupService
from app.api.usuarios.services.service_invite import InviteService
from app.api.usuarios.services.service_permissions import PermissionResolver
from app.api.usuarios.services.service_user import UserService
from app.core.cache import Caches, get_caches
from app.database.db_connection import get_db


def get_permission_resolver(
    db: Session = Depends(get_db),
    caches: Caches = Depends(get_caches),
) -> PermissionResolver:
    return PermissionResolver(db, caches.permissions)


def get_invite_mailer() -> InviteMailer:
    return InviteMailer()


def get_group_service(
    db: Session = Depends(get_db),
    resolver: PermissionResolver = Depends(get_permission_resolver),
) -> GroupService:
    return GroupService(db, resolver)


def get_user_service(
    db: Session = Depends(get_db),
    resolver: PermissionResolver = Depends(get_permission_resolver),
) -> UserService:
    return UserService(db, resolver)


def get_invite_service(
    db: Session = Depends(get_db),
    resolver: PermissionResolver = Depends(get_permission_resolver),
    mailer: InviteMailer = Depends(get_invite_mailer),
) -> InviteService:
    return InviteService(db, resolver, mailer)
