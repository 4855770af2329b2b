from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import List

from ..core.config import settings
from ..core.database import get_db, get_redis
from ..core.security import (
    security, verify_token, AuthenticationError,
    AuthorizationError, UserRole, TokenPayload
)
from ..models.user import User

async def get_current_user_token(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> TokenPayload:
    """Extract and verify JWT token from Authorization header."""
    token_payload = verify_token(credentials.credentials)
    if not token_payload:
        raise AuthenticationError("Invalid or expired token")

    # Check if token is access token
    if token_payload.token_type != "access":
        raise AuthenticationError("Invalid token type")

    return token_payload

async def get_current_user(
    token_payload: TokenPayload = Depends(get_current_user_token),
    db: Session = Depends(get_db)
) -> User:
    """Get current authenticated user from database."""
    if not token_payload.sub:
        raise AuthenticationError("Invalid token payload")

    user = db.query(User).filter(User.id == token_payload.sub).first()
    if not user:
        raise AuthenticationError("User not found")

    if not user.is_active:
        raise AuthenticationError("User account is deactivated")

    return user

# Role-based access control dependencies
def require_role(allowed_roles: List[UserRole]):
    """Create a dependency that requires specific user roles."""
    async def role_checker(
        current_user: User = Depends(get_current_user)
    ) -> User:
        if current_user.role not in allowed_roles:
            raise AuthorizationError(
                f"Access denied. Required roles: {[role.value for role in allowed_roles]}"
            )
        return current_user

    return role_checker

async def get_admin_user(
    current_user: User = Depends(require_role([UserRole.ADMIN]))
) -> User:
    """Require admin role."""
    return current_user

async def get_doctor_user(
    current_user: User = Depends(require_role([UserRole.DOCTOR]))
) -> User:
    """Require doctor role."""
    return current_user

async def get_patient_user(
    current_user: User = Depends(require_role([UserRole.PATIENT]))
) -> User:
    """Require patient role."""
    return current_user

# Rate limiting dependency
async def rate_limit_check(
    request: Request,
    redis_client = Depends(get_redis)
) -> None:
    """Fixed-window rate limiting for authentication endpoints."""
    client_ip = request.client.host if request.client else "unknown"
    key = f"rate_limit:{request.url.path}:{client_ip}"

    current_requests = redis_client.get(key)
    if current_requests is None:
        redis_client.setex(key, settings.RATE_LIMIT_WINDOW_SECONDS, 1)
    else:
        if int(current_requests) >= settings.RATE_LIMIT_REQUESTS:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests. Please try again later."
            )
        redis_client.incr(key)
