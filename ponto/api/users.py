import math
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ponto.core.middleware import get_current_user, require_role
from ponto.core.security import hash_password
from ponto.db.models import User
from ponto.db.session import get_db
from ponto.reports.domain import display_name_for
from ponto.schemas.user import UserCreate, UserResponse, UserUpdate

router = APIRouter()


def to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        role=user.role,
        first_name=user.first_name,
        last_name=user.last_name,
        display_name=display_name_for(user.first_name, user.last_name, user.email),
        is_active=user.is_active,
    )


async def _email_taken(db: AsyncSession, email: str, exclude: uuid.UUID | None = None) -> bool:
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    return user is not None and user.id != exclude


@router.post(
    "/",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new user (admin only)",
)
async def create_user(
    body: UserCreate,
    db: AsyncSession = Depends(get_db),
    _current_user: User = Depends(require_role("admin")),
) -> UserResponse:
    email = body.email.lower()
    if await _email_taken(db, email):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Este email já está em uso",
        )

    user = User(
        email=email,
        password_hash=hash_password(body.password),
        role=body.role,
        first_name=body.first_name,
        last_name=body.last_name,
        is_active=True,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return to_response(user)


@router.get(
    "/",
    summary="List users with pagination and optional name search",
)
async def list_users(
    search: str | None = Query(default=None, description="Filter by name or email (partial, case-insensitive)"),
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=20, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
    _current_user: User = Depends(require_role("admin")),
) -> dict:
    q = select(User)
    if search:
        q = q.where(
            User.first_name.ilike(f"%{search}%")
            | User.last_name.ilike(f"%{search}%")
            | User.email.ilike(f"%{search}%")
        )
    q = q.order_by(User.first_name, User.last_name, User.email)

    result = await db.execute(q)
    all_users = result.scalars().all()
    total = len(all_users)
    offset = (page - 1) * per_page
    page_users = all_users[offset : offset + per_page]

    return {
        "total": total,
        "page": page,
        "per_page": per_page,
        "pages": math.ceil(total / per_page) if total > 0 else 1,
        "items": [to_response(u) for u in page_users],
    }


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current authenticated user profile",
)
async def get_me(
    current_user: User = Depends(get_current_user),
) -> UserResponse:
    return to_response(current_user)


@router.patch(
    "/{user_id}",
    response_model=UserResponse,
    summary="Update user profile, role, password or active status (admin only)",
)
async def update_user(
    user_id: uuid.UUID,
    body: UserUpdate,
    db: AsyncSession = Depends(get_db),
    _current_user: User = Depends(require_role("admin")),
) -> UserResponse:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Usuário não encontrado",
        )

    if body.email is not None:
        email = body.email.lower()
        if await _email_taken(db, email, exclude=user.id):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Este email já está em uso",
            )
        user.email = email

    # Empty password means "keep the current one"
    if body.password is not None and body.password.strip():
        if len(body.password) < 6:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="A senha deve ter pelo menos 6 caracteres",
            )
        user.password_hash = hash_password(body.password)

    if body.role is not None:
        user.role = body.role

    if body.is_active is not None:
        if user_id == _current_user.id and not body.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Você não pode desativar a própria conta",
            )
        user.is_active = body.is_active

    if body.first_name is not None:
        user.first_name = body.first_name

    if body.last_name is not None:
        user.last_name = body.last_name

    await db.commit()
    await db.refresh(user)
    return to_response(user)


@router.delete(
    "/{user_id}",
    summary="Deactivate a user (admin only)",
)
async def deactivate_user(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _current_user: User = Depends(require_role("admin")),
) -> dict:
    if user_id == _current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Você não pode desativar a própria conta",
        )
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Usuário não encontrado",
        )
    user.is_active = False
    await db.commit()
    return {"message": "Usuário desativado com sucesso"}
