from fastapi import APIRouter, Depends, HTTPException, status, Request
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from wayfarer.core.security import (
    PasswordValidator,
    authenticate_user,
    blacklist_token,
    create_access_token,
    create_refresh_token,
    get_current_user,
    get_current_user_from_refresh_token,
    get_password_hash,
    oauth2_scheme,
    performance_timer,
)
from wayfarer.core.settings import get_settings
from wayfarer.db.session import get_db_session
from wayfarer.db.models import User
from wayfarer.db import crud
from wayfarer.api.rate_limit import limiter, UPDATE_LIMIT
from wayfarer.api.schemas import Token, UserRead, RegisterRequest, RefreshTokenRequest

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _token_pair(user: User) -> dict:
    return {
        "access_token": create_access_token({"sub": str(user.id), "username": user.username}),
        "refresh_token": create_refresh_token({"sub": str(user.id)}),
        "token_type": "bearer",
        "expires_in": get_settings().ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    }


@router.post("/register",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {"description": "User registered successfully"},
        400: {"description": "Weak password or user already exists"},
        500: {"description": "Registration failed"}
    },
    summary="User registration",
    description="Register a new user account"
)
@limiter.limit(UPDATE_LIMIT)
async def register(
    request: Request,
    user_data: RegisterRequest,
    session: AsyncSession = Depends(get_db_session),
):
    async with performance_timer("user_registration"):
        validation = PasswordValidator.validate_password(user_data.password)
        if not validation["is_valid"]:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="; ".join(validation["errors"])
            )

        if await crud.get_user_by_username(session, user_data.username):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Username already registered"
            )
        if await crud.get_user_by_email(session, user_data.email.lower()):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email already registered"
            )

        try:
            user = await crud.create_user(
                session,
                username=user_data.username,
                email=user_data.email.lower(),
                password_hash=get_password_hash(user_data.password),
            )
        except HTTPException:
            raise
        except Exception as e:
            logger.error(
                "user_registration_error",
                username=user_data.username,
                error=str(e),
                error_type=type(e).__name__
            )
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Registration failed"
            )

        logger.info(
            "user_registration_success",
            username=user.username,
            user_id=str(user.id),
            ip_address=request.client.host if request.client else None
        )
        return UserRead.model_validate(user)


@router.post("/login",
    response_model=Token,
    responses={
        200: {"description": "Successfully authenticated"},
        401: {"description": "Invalid credentials"},
        429: {"description": "Too many attempts"}
    },
    summary="User login",
    description="Authenticate with username or email and return access and refresh tokens"
)
@limiter.limit(UPDATE_LIMIT)
async def login(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    session: AsyncSession = Depends(get_db_session),
):
    async with performance_timer("user_login"):
        user = await authenticate_user(form_data.username, form_data.password, session)
        if not user:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Incorrect username or password",
                headers={"WWW-Authenticate": "Bearer"},
            )

        logger.info(
            "user_login_success",
            username=user.username,
            user_id=str(user.id),
            ip_address=request.client.host if request.client else None
        )
        return _token_pair(user)


@router.post("/refresh",
    response_model=Token,
    responses={
        200: {"description": "Token refreshed successfully"},
        401: {"description": "Invalid refresh token"}
    },
    summary="Refresh access token",
    description="Exchange a refresh token for a new access token"
)
@limiter.limit(UPDATE_LIMIT)
async def refresh_token(
    request: Request,
    refresh_data: RefreshTokenRequest,
    session: AsyncSession = Depends(get_db_session),
):
    user = await get_current_user_from_refresh_token(refresh_data.refresh_token, session)
    logger.info("token_refreshed", user_id=str(user.id))
    return {
        "access_token": create_access_token({"sub": str(user.id), "username": user.username}),
        "token_type": "bearer",
        "expires_in": get_settings().ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    }


@router.post("/logout",
    responses={
        200: {"description": "Successfully logged out"},
        401: {"description": "Invalid token"}
    },
    summary="User logout",
    description="Blacklist the presented access token"
)
async def logout(
    request: Request,
    token: str = Depends(oauth2_scheme),
    current_user: User = Depends(get_current_user),
):
    blacklist_token(token)
    logger.info(
        "user_logout",
        user_id=str(current_user.id),
        ip_address=request.client.host if request.client else None
    )
    return {"message": "Successfully logged out"}


@router.get("/me",
    response_model=UserRead,
    responses={
        200: {"description": "Current user information"},
        401: {"description": "Invalid token"}
    },
    summary="Get current user"
)
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    return UserRead.model_validate(current_user)
