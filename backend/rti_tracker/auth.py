"""Authentication and role permissions."""
from datetime import timedelta
from typing import Optional
import logging
import time
from uuid import UUID, uuid4

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from .config import settings
from .database import get_db
from .models import Role, User
from .revocation import TokenRevocationStore, get_revocation_store

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
bearer_scheme = HTTPBearer()


def _unauthorized(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # A malformed stored hash reads as a failed login.
        logger.exception("Stored password hash could not be identified")
        return False


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Signed access token; ``jti`` makes each token individually revocable."""
    issued_at = int(time.time())
    lifetime = expires_delta if expires_delta is not None else timedelta(
        minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES
    )
    claims = {
        **data,
        "iat": issued_at,
        "exp": issued_at + int(lifetime.total_seconds()),
        "type": "access",
        "jti": uuid4().hex,
    }
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    """Verify signature and expiry (with clock-skew leeway) and return the claims."""
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require_exp": True, "leeway": int(settings.JWT_LEEWAY_SECONDS)},
        )
    except ExpiredSignatureError:
        raise _unauthorized("Token expired")
    except JWTError:
        raise _unauthorized()


def _token_subject(payload: dict) -> UUID:
    try:
        return UUID(str(payload["sub"]))
    except (KeyError, ValueError):
        raise _unauthorized()


def get_token_payload(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    revocations: TokenRevocationStore = Depends(get_revocation_store),
) -> dict:
    """Decoded, unrevoked access-token payload."""
    payload = decode_token(credentials.credentials)
    if payload.get("type") != "access":
        raise _unauthorized("Invalid token type")
    jti = payload.get("jti")
    if not jti or revocations.is_revoked(jti):
        raise _unauthorized("Token has been revoked")
    return payload


def get_current_user(
    payload: dict = Depends(get_token_payload),
    db: Session = Depends(get_db),
) -> User:
    """Active user named by the token subject."""
    user_id = _token_subject(payload)
    user = db.query(User).filter(User.id == user_id, User.active == True).first()  # noqa: E712
    if user is None:
        raise _unauthorized("User not found or inactive")
    return user


# Permission checks
class PermissionChecker:
    """Check user permissions based on role."""

    def __init__(self, required_permission: str):
        self.required_permission = required_permission

    def __call__(self, current_user: User = Depends(get_current_user)):
        """Check if user has required permission."""
        if not check_permission(current_user, self.required_permission):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Unauthorized",
            )
        return current_user


# Role permissions matrix
ROLE_PERMISSIONS = {
    Role.CITIZEN.value: {
        "canFileRequests": True,
        "canViewRequests": True,
        "canForwardRequests": False,
        "canRespondToRequests": False,
        "canAssignRequests": False,
        "canReviewRequests": False,
        "canManageDepartments": False,
        "canManageAssistants": False,
        "canManageSpios": False,
    },
    Role.PIO.value: {
        "canFileRequests": False,
        "canViewRequests": True,
        "canForwardRequests": True,
        "canRespondToRequests": True,
        "canAssignRequests": False,
        "canReviewRequests": False,
        "canManageDepartments": False,
        "canManageAssistants": False,
        "canManageSpios": False,
    },
    Role.SPIO_ADMIN.value: {
        "canFileRequests": False,
        "canViewRequests": True,
        "canForwardRequests": True,
        "canRespondToRequests": False,
        "canAssignRequests": True,
        "canReviewRequests": False,
        "canManageDepartments": True,
        "canManageAssistants": True,
        "canManageSpios": False,
    },
    Role.SPIO_ASSISTANT.value: {
        "canFileRequests": False,
        "canViewRequests": True,
        "canForwardRequests": False,
        "canRespondToRequests": False,
        "canAssignRequests": False,
        "canReviewRequests": True,
        "canManageDepartments": False,
        "canManageAssistants": False,
        "canManageSpios": False,
    },
    Role.STATE_ADMIN.value: {
        "canFileRequests": False,
        "canViewRequests": True,
        "canForwardRequests": False,
        "canRespondToRequests": False,
        "canAssignRequests": False,
        "canReviewRequests": False,
        "canManageDepartments": False,
        "canManageAssistants": False,
        "canManageSpios": True,
    },
}


def check_permission(user: User, permission: str) -> bool:
    """Check if user has specific permission."""
    permissions = ROLE_PERMISSIONS.get(user.role, {})
    return permissions.get(permission, False)
