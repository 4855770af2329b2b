from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...api.deps import get_current_user
from ...models.user import User
from ...schemas.auth import ChangePassword, UserProfileUpdate, UserResponse
from ...schemas.common import success_response
from ...services.auth_service import AuthService
from ...services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/profile")
def get_user_profile(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    user = UserService(db).get_profile(current_user)
    return success_response(data={"user": UserResponse.model_validate(user).model_dump(mode="json")})


@router.put("/profile")
def update_user_profile(
    payload: UserProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    user = UserService(db).update_profile(current_user, payload)
    return success_response(
        data={"user": UserResponse.model_validate(user).model_dump(mode="json")},
        message="Profile updated successfully",
    )


@router.put("/change-password")
def change_password(
    payload: ChangePassword,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    AuthService(db).change_password(current_user, payload)
    return success_response(message="Password changed successfully")
