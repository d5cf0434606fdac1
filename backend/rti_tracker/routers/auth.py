"""Session endpoints: registration, login, refresh, logout, profile."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..auth import create_access_token, get_current_user, get_token_payload
from ..config import settings
from ..database import get_db
from ..models import User
from ..revocation import TokenRevocationStore, get_revocation_store
from ..schemas import LoginRequest, MessageResponse, RegisterRequest, TokenResponse, UserResponse
from ..services.login_throttle import LoginThrottle, client_ip, get_login_throttle
from ..use_cases.accounts import audit_admin_event, authenticate_use_case, register_citizen_use_case

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


def _record_session_event(db: Session, *, action: str, user: User, request: Request) -> None:
    # Login/logout already succeeded; a lost audit row is logged, not surfaced.
    try:
        audit_admin_event(
            db=db,
            action=action,
            actor=user,
            entity_type="user",
            entity_id=str(user.id),
            details={"ip": client_ip(request)},
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to write %s audit event for user %s", action, user.id)


def _token_response(user: User) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token({"sub": str(user.id), "role": user.role}),
        expires_in=int(settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES) * 60,
        user=UserResponse.model_validate(user),
    )


def _no_store(response: Response) -> None:
    response.headers["Cache-Control"] = "no-store"
    response.headers["Pragma"] = "no-cache"


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    """Citizen self-registration."""
    return register_citizen_use_case(
        db=db,
        name=payload.name,
        email=payload.email,
        phone=payload.phone,
        password=payload.password,
        address=payload.address,
    )


@router.post("/login", response_model=TokenResponse)
def login(
    payload: LoginRequest,
    request: Request,
    response: Response,
    throttle: LoginThrottle = Depends(get_login_throttle),
    db: Session = Depends(get_db),
):
    """Exchange email and password for a bearer token."""
    _no_store(response)

    retry_after = throttle.hit(client_ip(request))
    if retry_after is not None:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many login attempts. Try again later.",
            headers={"Retry-After": str(retry_after)},
        )

    user = authenticate_use_case(db=db, email=payload.email, password=payload.password)
    _record_session_event(db, action="user_login", user=user, request=request)
    return _token_response(user)


@router.post("/refresh", response_model=TokenResponse)
def refresh(
    response: Response,
    payload: dict = Depends(get_token_payload),
    current_user: User = Depends(get_current_user),
    revocations: TokenRevocationStore = Depends(get_revocation_store),
):
    """Swap a live token for a fresh one; the presented token is revoked."""
    _no_store(response)
    try:
        revocations.revoke(payload["jti"], expires_at=int(payload["exp"]))
    except RedisError:
        logger.exception("Failed to rotate token for user %s", current_user.id)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Token refresh temporarily unavailable",
        )
    return _token_response(current_user)


@router.post("/logout", response_model=MessageResponse)
def logout(
    request: Request,
    payload: dict = Depends(get_token_payload),
    current_user: User = Depends(get_current_user),
    revocations: TokenRevocationStore = Depends(get_revocation_store),
    db: Session = Depends(get_db),
):
    """Revoke the presented token until it would have expired anyway."""
    try:
        revocations.revoke(payload["jti"], expires_at=int(payload["exp"]))
    except RedisError:
        logger.exception("Failed to revoke token for user %s", current_user.id)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Logout temporarily unavailable",
        )
    _record_session_event(db, action="user_logout", user=current_user, request=request)
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=UserResponse)
def get_me(current_user: User = Depends(get_current_user)):
    return current_user
