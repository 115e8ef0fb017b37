"""
Authentication dependencies and profile router
"""
from typing import Any, Optional
import jwt
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from mealservice.core.database import get_db
from mealservice.core.security import verify_token
from mealservice.models.user import User, UserRead
from mealservice.policy import UserRole

router = APIRouter(prefix="/api/auth", tags=["authentication"])

bearer_scheme = HTTPBearer(auto_error=False)

def _user_from_token(token: str, db: Session) -> Optional[User]:
    try:
        payload = verify_token(token)
    except jwt.PyJWTError:
        return None

    user_id = payload.get("sub")
    if user_id is None:
        return None

    user = db.query(User).filter(User.id == user_id).first()
    if user is None or not user.is_active:
        return None
    return user

async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> Optional[User]:
    """Authenticated user when a valid token is sent, else None"""
    if credentials is None:
        return None
    return _user_from_token(credentials.credentials, db)

async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> User:
    """Get current authenticated user"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if credentials is None:
        raise credentials_exception

    user = _user_from_token(credentials.credentials, db)
    if user is None:
        raise credentials_exception

    return user

async def get_current_admin(
    current_user: User = Depends(get_current_user)
) -> User:
    """Get current user, requiring the admin role"""
    if current_user.role != UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return current_user

@router.get("/me", response_model=UserRead)
async def read_users_me(
    current_user: User = Depends(get_current_user)
) -> Any:
    """Get current user profile"""
    return current_user
