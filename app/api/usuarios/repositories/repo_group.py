from typing import Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.api.usuarios.models.model_group import GroupModel
from app.api.usuarios.models.model_group_permission import GroupPermissionModel
from app.api.usuarios.models.model_user import UserModel, UserStatus


class GroupRepository:
    def __init__(self, db: Session):
        self.db = db

    # ───────────── Grupos ─────────────
    def get(self, group_id: str) -> Optional[GroupModel]:
        return self.db.query(GroupModel).filter(GroupModel.id == group_id).first()

    def get_by_name(self, name: str, exclude_id: Optional[str] = None) -> Optional[GroupModel]:
        q = self.db.query(GroupModel).filter(GroupModel.name == name)
        if exclude_id:
            q = q.filter(GroupModel.id != exclude_id)
        return q.first()

    def get_default(self) -> Optional[GroupModel]:
        return self.db.query(GroupModel).filter(GroupModel.is_default.is_(True)).first()

    def list_with_user_count(self) -> List[Tuple[GroupModel, int]]:
        user_count = func.count(UserModel.id)
        rows = (
            self.db.query(GroupModel, user_count)
            .outerjoin(UserModel, UserModel.group_id == GroupModel.id)
            .group_by(GroupModel.id)
            .order_by(GroupModel.name.asc())
            .all()
        )
        return [(group, int(count or 0)) for group, count in rows]

    def count_users(self, group_id: str) -> int:
        return (
            self.db.query(func.count(UserModel.id))
            .filter(UserModel.group_id == group_id)
            .scalar()
            or 0
        )

    def count_active_users(self, group_id: str) -> int:
        return (
            self.db.query(func.count(UserModel.id))
            .filter(UserModel.group_id == group_id, UserModel.status == UserStatus.ACTIVE.value)
            .scalar()
            or 0
        )

    def create(self, group: GroupModel) -> GroupModel:
        self.db.add(group)
        self.db.commit()
        self.db.refresh(group)
        return group

    def update(self, group: GroupModel, data: dict) -> GroupModel:
        for key, value in data.items():
            setattr(group, key, value)
        self.db.commit()
        self.db.refresh(group)
        return group

    def delete(self, group: GroupModel) -> None:
        self.db.delete(group)
        self.db.commit()

    # ───────────── Permissões ─────────────
    def list_permissions(self, group_id: str) -> List[GroupPermissionModel]:
        return (
            self.db.query(GroupPermissionModel)
            .filter(GroupPermissionModel.group_id == group_id)
            .all()
        )

    def replace_permissions(self, group_id: str, rows: List[Dict]) -> List[GroupPermissionModel]:
        """
        Substitui todas as permissões do grupo numa única transação.

        Se o insert falhar, o delete é desfeito junto (rollback) e as
        permissões anteriores permanecem.
        """
        try:
            self.db.query(GroupPermissionModel).filter(
                GroupPermissionModel.group_id == group_id
            ).delete(synchronize_session=False)
            # O delete precisa chegar ao banco antes dos inserts (constraint única group+section)
            self.db.flush()

            new_rows = [GroupPermissionModel(group_id=group_id, **row) for row in rows]
            self.db.add_all(new_rows)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        return self.list_permissions(group_id)
