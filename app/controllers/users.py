"""User controller: registration, profile and role selection."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import select

from app.controllers.dependencies import CurrentUserDep, SessionDep
from app.models.user import User as UserModel
from app.utils import hash_password
from app.views import (
    RoleSelectionRequest,
    UserRegistrationRequest,
    UserRegistrationResponse,
    UserResponse,
)

router = APIRouter(prefix="/users", tags=["users"])


@router.post(
    "/", response_model=UserRegistrationResponse, status_code=status.HTTP_201_CREATED
)
async def register_user(
    payload: UserRegistrationRequest,
    session: SessionDep,
) -> UserRegistrationResponse:
    result = await session.execute(
        select(UserModel).where(UserModel.email == payload.email)
    )
    if result.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email address already registered",
        )

    db_user = UserModel(
        email=payload.email,
        first_name=payload.firstName,
        last_name=payload.lastName,
        password_hash=hash_password(payload.password),
        role=payload.role,
    )

    session.add(db_user)
    await session.commit()
    await session.refresh(db_user)

    return UserRegistrationResponse.model_validate(db_user)


@router.get("/me", response_model=UserResponse)
async def get_current_user_profile(
    current_user: CurrentUserDep,
) -> UserResponse:
    return UserResponse.model_validate(current_user)


@router.put("/me/role", response_model=UserResponse)
async def select_role(
    payload: RoleSelectionRequest,
    current_user: CurrentUserDep,
    session: SessionDep,
) -> UserResponse:
    """Record whether the caller is a teacher or a student."""

    user = await session.get(UserModel, current_user.id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="User not found"
        )
    user.role = payload.role
    await session.commit()
    await session.refresh(user)
    return UserResponse.model_validate(user)
