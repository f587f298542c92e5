import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from contextlib import asynccontextmanager
from uuid import UUID

from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select
from wayfarer.core.settings import get_settings
from wayfarer.db.session import get_db_session
from wayfarer.db.models import User

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
SPECIAL_CHARACTERS = "!@#$%^&*()_+-=[]{}|;:,.<>?"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

# In-memory token blacklist, cleared on restart
token_blacklist = set()


@asynccontextmanager
async def performance_timer(operation: str):
    """Context manager for timing operations"""
    start = time.time()
    try:
        yield
    finally:
        duration = time.time() - start
        logger.info(f"{operation} completed in {duration:.2f}s")


class PasswordValidator:
    """Password strength checks driven by settings"""

    @staticmethod
    def validate_password(password: str) -> Dict[str, Any]:
        settings = get_settings()
        errors = []
        warnings = []

        if len(password) < settings.PASSWORD_MIN_LENGTH:
            errors.append(f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters")

        if settings.PASSWORD_REQUIRE_UPPERCASE and not any(c.isupper() for c in password):
            errors.append("Password must contain at least one uppercase letter")

        if settings.PASSWORD_REQUIRE_NUMBER and not any(c.isdigit() for c in password):
            errors.append("Password must contain at least one number")

        if len(password) < 8:
            warnings.append("Consider using a longer password for better security")

        if not any(c in SPECIAL_CHARACTERS for c in password):
            warnings.append("Consider adding special characters for better security")

        return {
            "is_valid": len(errors) == 0,
            "errors": errors,
            "warnings": warnings,
        }


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return pwd_context.verify(plain, hashed)
    except Exception as e:
        logger.error(f"Password verification error: {e}")
        return False


def get_password_hash(password: str) -> str:
    try:
        return pwd_context.hash(password)
    except Exception as e:
        logger.error(f"Password hashing error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Password processing failed"
        )


def _encode_token(data: dict, token_type: str, secret: str, minutes: int) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    to_encode.update({"exp": expire, "type": token_type})
    return jwt.encode(to_encode, secret, algorithm=ALGORITHM)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    settings = get_settings()
    minutes = int(expires_delta.total_seconds() // 60) if expires_delta else settings.ACCESS_TOKEN_EXPIRE_MINUTES
    try:
        return _encode_token(data, "access", settings.JWT_SECRET, minutes)
    except Exception as e:
        logger.error(f"Access token creation error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Token creation failed"
        )


def create_refresh_token(data: dict) -> str:
    settings = get_settings()
    try:
        return _encode_token(
            data, "refresh", settings.JWT_REFRESH_SECRET, settings.REFRESH_TOKEN_EXPIRE_MINUTES
        )
    except Exception as e:
        logger.error(f"Refresh token creation error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Refresh token creation failed"
        )


def blacklist_token(token: str) -> None:
    if get_settings().ENABLE_TOKEN_BLACKLIST:
        token_blacklist.add(token)
        logger.info("Token added to blacklist")


def is_token_blacklisted(token: str) -> bool:
    return token in token_blacklist


def decode_token(token: str, token_type: str) -> UUID:
    """Return the user id carried by a token of the given type; raises JWTError or ValueError"""
    settings = get_settings()
    secret = settings.JWT_SECRET if token_type == "access" else settings.JWT_REFRESH_SECRET
    payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
    if payload.get("type") != token_type or not payload.get("sub"):
        raise ValueError("Invalid token payload")
    return UUID(payload["sub"])


async def authenticate_user(
    username_or_email: str,
    password: str,
    session: AsyncSession
) -> Optional[User]:
    async with performance_timer("user_authentication"):
        try:
            username_or_email = username_or_email.strip().lower()
            result = await session.execute(
                select(User).where(
                    (User.username == username_or_email) | (User.email == username_or_email)
                )
            )
            user = result.scalar_one_or_none()

            if not user:
                logger.warning(f"Authentication failed: user not found - {username_or_email}")
                return None

            if not verify_password(password, user.password_hash):
                logger.warning(f"Authentication failed: invalid password for user - {username_or_email}")
                return None

            logger.info(f"User authenticated successfully: {user.username}")
            return user

        except Exception as e:
            logger.error(f"Authentication error for {username_or_email}: {e}")
            return None


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    session: AsyncSession = Depends(get_db_session),
) -> User:
    """Resolve the bearer token to an active user"""
    credentials_exc = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if is_token_blacklisted(token):
        logger.warning("Attempted to use blacklisted token")
        raise credentials_exc

    try:
        user_id = decode_token(token, "access")
    except (JWTError, ValueError) as e:
        logger.warning(f"JWT decode error: {e}")
        raise credentials_exc

    try:
        user = await session.get(User, user_id)
    except Exception as e:
        logger.error(f"Database error during user lookup: {e}")
        raise credentials_exc

    if not user or not user.is_active:
        logger.warning(f"No active user for token: {user_id}")
        raise credentials_exc
    return user


async def get_current_user_from_refresh_token(token: str, session: AsyncSession) -> User:
    try:
        user_id = decode_token(token, "refresh")
    except (JWTError, ValueError) as e:
        logger.warning(f"Refresh token decode error: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token"
        )

    user = await session.get(User, user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )
    return user
