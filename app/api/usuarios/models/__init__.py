from app.api.usuarios.models.model_group import GroupModel
from app.api.usuarios.models.model_group_permission import GroupPermissionModel
from app.api.usuarios.models.model_user import UserModel, UserStatus
from app.api.usuarios.models.model_invite import InviteModel, InviteStatus

__all__ = [
    "GroupModel",
    "GroupPermissionModel",
    "UserModel",
    "UserStatus",
    "InviteModel",
    "InviteStatus",
]
