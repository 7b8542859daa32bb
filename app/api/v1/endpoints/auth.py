import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    AlreadyExistsError,
    AuthenticationError,
    ErrorCode,
    InvalidCredentialsError,
)
from app.core.security import create_access_token, decode_access_token
from app.database import get_db
from app.schemas.user import Token, UserCreate, UserResponse
from app.services import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["auth"])

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


async def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UserResponse:
    credentials_exception = AuthenticationError(
        "Could not validate credentials", code=ErrorCode.AUTH_TOKEN_INVALID
    )

    payload = decode_access_token(token)
    if payload is None:
        raise credentials_exception

    try:
        user_id = UUID(payload.sub)
    except ValueError:
        raise credentials_exception

    user = await user_service.get_user_by_id(db, user_id)
    if user is None or not user.is_active:
        raise credentials_exception

    return UserResponse.model_validate(user)


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UserResponse:
    existing_user = await user_service.get_user_by_email(db, user_data.email)
    if existing_user:
        raise AlreadyExistsError("Email already registered", field="email")

    if user_data.phone:
        existing_phone = await user_service.get_user_by_phone(db, user_data.phone)
        if existing_phone:
            raise AlreadyExistsError("Phone number already registered", field="phone")

    user = await user_service.create_user(db, user_data)
    logger.info("Registered user %s", user.id)
    return UserResponse.model_validate(user)


@router.post("/login", response_model=Token)
async def login(
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Token:
    user = await user_service.authenticate_user(db, form_data.username, form_data.password)
    if user is None:
        raise InvalidCredentialsError()

    access_token = create_access_token(str(user.id))
    return Token(access_token=access_token)


@router.get("/me", response_model=UserResponse)
async def get_me(
    current_user: Annotated[UserResponse, Depends(get_current_user)],
) -> UserResponse:
    return current_user
