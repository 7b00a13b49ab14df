import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..database import get_db
from ..models import User
from ..security_utils import create_jwt_token, verify_password_bcrypt

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


class LoginRequest(BaseModel):
    username: str  # username or email
    password: str


class UserResponse(BaseModel):
    id: int
    username: str
    email: str
    role: str
    providerId: Optional[int] = None
    providerSlug: Optional[str] = None


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


def user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        role=user.role,
        providerId=user.provider.id if user.provider else None,
        providerSlug=user.provider.slug if user.provider else None,
    )


@router.post("/login", response_model=LoginResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    """Exchange username/email and password for an access token"""
    identifier = data.username.strip()
    user = (
        db.query(User)
        .filter((User.username == identifier) | (User.email == identifier.lower()))
        .first()
    )

    if not user or not verify_password_bcrypt(data.password, user.password_hash):
        logger.warning(f"🔒 Failed login attempt for {identifier}")
        raise HTTPException(status_code=401, detail="Invalid username or password")

    token = create_jwt_token({"sub": str(user.id), "role": user.role})
    logger.info(f"✅ User {user.username} logged in")
    return LoginResponse(access_token=token, user=user_response(user))


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    return user_response(current_user)
