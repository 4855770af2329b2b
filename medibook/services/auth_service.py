from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from datetime import datetime
import logging

from ..models.user import User
from ..core.security import (
    verify_password, get_password_hash, create_token_pair,
    verify_token, UserRole
)
from ..schemas.auth import (
    UserLogin, UserRegister, TokenResponse, UserResponse, ChangePassword
)

logger = logging.getLogger(__name__)

class AuthService:
    def __init__(self, db: Session):
        self.db = db

    def register_user(self, user_data: UserRegister) -> User:
        """Register a new patient or doctor."""
        existing_user = self.db.query(User).filter(
            User.email == user_data.email
        ).first()

        if existing_user:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email already registered"
            )

        new_user = User(
            email=user_data.email,
            password_hash=get_password_hash(user_data.password),
            name=user_data.name,
            phone=user_data.phone,
            role=UserRole(user_data.role),
            is_active=True
        )

        self.db.add(new_user)
        self.db.commit()
        self.db.refresh(new_user)

        logger.info(f"Registered {new_user.role.value} {new_user.id}")
        return new_user

    def create_admin(self, email: str, password: str, name: str = "Administrator") -> User:
        """Create an admin account; admins cannot self-register."""
        user = self.db.query(User).filter(User.email == email).first()
        if user:
            user.role = UserRole.ADMIN
            user.password_hash = get_password_hash(password)
        else:
            user = User(
                email=email,
                password_hash=get_password_hash(password),
                name=name,
                role=UserRole.ADMIN,
                is_active=True
            )
            self.db.add(user)

        self.db.commit()
        self.db.refresh(user)
        return user

    def authenticate_user(self, login_data: UserLogin) -> TokenResponse:
        """Authenticate user and return tokens."""
        user = self.db.query(User).filter(
            User.email == login_data.email
        ).first()

        if not user or not verify_password(login_data.password, user.password_hash):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password"
            )

        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Account is deactivated"
            )

        user.last_login = datetime.utcnow()
        self.db.commit()

        return self._token_response(user)

    def refresh_access_token(self, refresh_token: str) -> TokenResponse:
        """Issue a new token pair from a valid refresh token."""
        token_payload = verify_token(refresh_token)
        if not token_payload or token_payload.token_type != "refresh":
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid refresh token"
            )

        user = self.db.query(User).filter(
            User.id == token_payload.sub
        ).first()

        if not user or not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="User not found or inactive"
            )

        return self._token_response(user)

    def change_password(self, user: User, password_data: ChangePassword) -> None:
        if not verify_password(password_data.current_password, user.password_hash):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Current password is incorrect"
            )

        user.password_hash = get_password_hash(password_data.new_password)
        self.db.commit()

    def _token_response(self, user: User) -> TokenResponse:
        tokens = create_token_pair(user.id, user.email, user.role)
        return TokenResponse(
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            token_type=tokens.token_type,
            expires_in=tokens.expires_in,
            user=UserResponse.model_validate(user)
        )
