from typing import List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.api.usuarios.models.model_group import GroupModel
from app.api.usuarios.models.model_user import UserModel, UserStatus


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str) -> Optional[UserModel]:
        return self.db.query(UserModel).filter(UserModel.id == user_id).first()

    def get_by_auth_id(self, auth_user_id: str) -> Optional[UserModel]:
        return (
            self.db.query(UserModel)
            .filter(UserModel.auth_user_id == auth_user_id)
            .first()
        )

    def get_by_email(self, email: str) -> Optional[UserModel]:
        return (
            self.db.query(UserModel)
            .filter(func.lower(UserModel.email) == email.strip().lower())
            .first()
        )

    def search(
        self,
        search: Optional[str] = None,
        group_id: Optional[str] = None,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = 50,
    ) -> Tuple[List[UserModel], int]:
        q = self.db.query(UserModel)
        if search:
            pattern = f"%{search.strip()}%"
            q = q.filter(or_(UserModel.full_name.ilike(pattern), UserModel.email.ilike(pattern)))
        if group_id:
            q = q.filter(UserModel.group_id == group_id)
        if status:
            q = q.filter(UserModel.status == status)

        total = q.order_by(None).count()
        items = (
            q.order_by(UserModel.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return items, total

    def count_active_admins(self, admin_group_name: str) -> int:
        return (
            self.db.query(func.count(UserModel.id))
            .join(GroupModel, GroupModel.id == UserModel.group_id)
            .filter(
                GroupModel.name == admin_group_name,
                UserModel.status == UserStatus.ACTIVE.value,
            )
            .scalar()
            or 0
        )

    def create(self, user: UserModel) -> UserModel:
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def update(self, user: UserModel, data: dict) -> UserModel:
        for key, value in data.items():
            setattr(user, key, value)
        self.db.commit()
        self.db.refresh(user)
        return user
