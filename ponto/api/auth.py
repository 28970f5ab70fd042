import logging
import uuid

from fastapi import APIRouter, Cookie, Depends, HTTPException, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ponto.api.users import to_response
from ponto.core.exceptions import InvalidTokenError
from ponto.core.middleware import get_current_user
from ponto.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)
from ponto.db.models import User
from ponto.db.session import get_db
from ponto.schemas.auth import ChangeCredentialsRequest, LoginRequest, TokenResponse
from ponto.schemas.user import UserResponse

logger = logging.getLogger(__name__)

router = APIRouter()

_REFRESH_TOKEN_COOKIE = "refresh_token"


def _set_refresh_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=_REFRESH_TOKEN_COOKIE,
        value=token,
        httponly=True,
        samesite="lax",
        secure=False,
        max_age=86400,
    )


@router.post("/login", response_model=TokenResponse, summary="Email/password login")
async def login(
    body: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> TokenResponse:
    result = await db.execute(select(User).where(User.email == body.email.lower()))
    user = result.scalar_one_or_none()

    if user is None or not verify_password(body.password, user.password_hash):
        logger.info("Failed login for %s", body.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Email ou senha inválidos",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Conta de usuário desativada",
        )

    data = {"sub": str(user.id)}
    _set_refresh_cookie(response, create_refresh_token(data))
    return TokenResponse(access_token=create_access_token(data))


@router.post(
    "/refresh",
    response_model=TokenResponse,
    summary="Refresh access token using HttpOnly cookie",
)
async def refresh_tokens(
    response: Response,
    db: AsyncSession = Depends(get_db),
    refresh_token: str | None = Cookie(default=None, alias=_REFRESH_TOKEN_COOKIE),
) -> TokenResponse:
    invalid = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Sessão expirada",
    )
    if not refresh_token:
        raise invalid

    try:
        payload = decode_token(refresh_token, "refresh")
    except InvalidTokenError:
        raise invalid

    try:
        user_id = uuid.UUID(payload.get("sub") or "")
    except ValueError:
        raise invalid

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None or not user.is_active:
        raise invalid

    data = {"sub": str(user.id)}
    _set_refresh_cookie(response, create_refresh_token(data))
    return TokenResponse(access_token=create_access_token(data))


@router.post(
    "/change-credentials",
    response_model=UserResponse,
    summary="Change own email and password",
)
async def change_credentials(
    body: ChangeCredentialsRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> UserResponse:
    email = body.email.lower()
    existing = await db.execute(select(User).where(User.email == email))
    other = existing.scalar_one_or_none()
    if other is not None and other.id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Este email já está em uso",
        )

    current_user.email = email
    current_user.password_hash = hash_password(body.password)
    await db.commit()
    await db.refresh(current_user)
    return to_response(current_user)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT, summary="Logout")
async def logout(response: Response) -> None:
    response.delete_cookie(_REFRESH_TOKEN_COOKIE)
