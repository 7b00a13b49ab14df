import logging
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session, joinedload

from .database import get_db
from .models import User
from .security_utils import verify_jwt_token

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Get current user from the Bearer access token"""

    if not credentials:
        logger.warning("⚠️ No credentials provided")
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please provide a valid Bearer token in the Authorization header.",
        )

    token = credentials.credentials
    if len(token.split(".")) != 3:
        logger.warning(f"⚠️ Malformed token received, token length: {len(token)}")
        raise HTTPException(
            status_code=401, detail="Invalid token format. Expected a valid JWT token."
        )

    payload = verify_jwt_token(token)
    if not payload or not payload.get("sub"):
        raise HTTPException(
            status_code=401,
            detail="Token is invalid or has expired. Please sign in again.",
            headers={"X-Token-Expired": "true"},
        )

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        logger.error(f"❌ Token carries a non-numeric subject: {payload.get('sub')}")
        raise HTTPException(status_code=401, detail="Invalid token claims") from None

    user = db.query(User).options(joinedload(User.provider)).filter(User.id == user_id).first()
    if not user:
        logger.warning(f"⚠️ Token subject {user_id} no longer exists")
        raise HTTPException(status_code=401, detail="Authentication failed")

    logger.debug(f"✅ User authenticated: {user.email}")
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Dependency for admin-only routes"""
    if user.role != "admin":
        logger.warning(f"⚠️ User {user.email} attempted to access an admin route")
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


def is_admin(user: User) -> bool:
    return user.role == "admin"


def ensure_provider_access(user: User, provider_id: Optional[int]) -> int:
    """
    Single capability check for provider-scoped data.

    Admins may act on any provider and must name one; provider users may only act
    on their own provider, which is also the default when none is named.
    Returns the provider id the caller is allowed to act on.
    """
    if is_admin(user):
        if provider_id is None:
            raise HTTPException(status_code=400, detail="providerId is required for admin users")
        return provider_id

    own = user.provider
    if own is None:
        logger.warning(f"⚠️ User {user.email} has no provider profile")
        raise HTTPException(status_code=403, detail="No provider profile for this account")

    if provider_id is not None and provider_id != own.id:
        logger.warning(
            f"🚫 User {user.email} tried to access provider {provider_id} (owns {own.id})"
        )
        raise HTTPException(status_code=403, detail="Not allowed to manage this provider")

    return own.id
