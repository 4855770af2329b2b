from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...api.deps import get_current_user, rate_limit_check
from ...services.auth_service import AuthService
from ...schemas.auth import (
    UserLogin, UserRegister, TokenResponse, UserResponse, RefreshTokenRequest
)
from ...models.user import User

router = APIRouter(prefix="/auth", tags=["Authentication"])

@router.post("/register", response_model=UserResponse, status_code=201)
async def register(
    user_data: UserRegister,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_check)
):
    """Register a new patient or doctor."""
    auth_service = AuthService(db)
    user = auth_service.register_user(user_data)
    return UserResponse.model_validate(user)

@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: UserLogin,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_check)
):
    """Authenticate user and return access tokens."""
    auth_service = AuthService(db)
    return auth_service.authenticate_user(login_data)

@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(
    refresh_data: RefreshTokenRequest,
    db: Session = Depends(get_db)
):
    """Refresh access token using refresh token."""
    auth_service = AuthService(db)
    return auth_service.refresh_access_token(refresh_data.refresh_token)

@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """Get current user information."""
    return UserResponse.model_validate(current_user)
