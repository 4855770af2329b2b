from sqlalchemy.orm import Session

from ..models.user import User
from ..schemas.auth import UserProfileUpdate


class UserService:
    """Profile store for the caller's own demographic details."""

    def __init__(self, db: Session):
        self.db = db

    def get_profile(self, user: User) -> User:
        return user

    def update_profile(self, user: User, data: UserProfileUpdate) -> User:
        # email and role are not editable here
        for name, value in data.model_dump(exclude_unset=True).items():
            setattr(user, name, value)

        self.db.commit()
        self.db.refresh(user)
        return user
