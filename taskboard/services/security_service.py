from datetime import datetime, timedelta
from typing import Optional, Dict, Any, Tuple
from jose import jwt, JWTError
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from taskboard.models.user import User
from taskboard.core import get_settings
from taskboard.core.exceptions import ValidationError, AuthenticationError
from taskboard.logs import debug_logger

# Get application settings
settings = get_settings()

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class SecurityService:
    """Password hashing and JWT access tokens"""

    @staticmethod
    def create_password_hash(password: str) -> str:
        """Create a hashed password"""
        return pwd_context.hash(password)

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash"""
        return pwd_context.verify(plain_password, hashed_password)

    @staticmethod
    async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
        query = select(User).where(User.email == email.strip().lower())
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def get_user_by_id(db: AsyncSession, user_id: int) -> Optional[User]:
        query = select(User).where(User.id == user_id)
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
        """Signed token carrying the user id and email"""
        if expires_delta is None:
            expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

        to_encode = {
            "sub": str(user.id),
            "email": user.email,
            "type": "access",
            "exp": datetime.utcnow() + expires_delta,
        }
        return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    @staticmethod
    def verify_token(token: str, token_type: str = "access") -> Optional[Dict[str, Any]]:
        """Verify a JWT token and return its payload if valid"""
        try:
            payload = jwt.decode(
                token,
                settings.SECRET_KEY,
                algorithms=[settings.ALGORITHM]
            )
        except JWTError:
            return None

        if payload.get("type") != token_type:
            return None

        exp = payload.get("exp")
        if exp is None or datetime.utcfromtimestamp(exp) < datetime.utcnow():
            return None

        return payload

    @staticmethod
    async def get_current_user(db: AsyncSession, token: Optional[str]) -> Optional[User]:
        """Get the current user from a JWT token"""
        if not token:
            return None

        payload = SecurityService.verify_token(token)
        if not payload:
            return None

        user_id = payload.get("sub")
        if user_id is None or not str(user_id).isdigit():
            return None

        return await SecurityService.get_user_by_id(db, int(user_id))


class AuthService:
    """Registration and login"""

    @staticmethod
    async def register(db: AsyncSession, email: str, password: str, name: str) -> Tuple[User, str]:
        """Create the account and return it with a fresh access token"""
        email = email.strip().lower()
        existing_user = await SecurityService.get_user_by_email(db, email)
        if existing_user:
            raise ValidationError("User already exists with this email")

        user = User(
            email=email,
            name=name.strip(),
            hashed_password=SecurityService.create_password_hash(password),
            avatar="",
        )
        db.add(user)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise ValidationError("User already exists with this email")
        await db.refresh(user)

        debug_logger.info(f"User {user.id} registered")
        return user, SecurityService.create_access_token(user)

    @staticmethod
    async def login(db: AsyncSession, email: str, password: str) -> Tuple[User, str]:
        user = await SecurityService.get_user_by_email(db, email)
        if not user or not SecurityService.verify_password(password, user.hashed_password):
            raise AuthenticationError("Invalid credentials")

        return user, SecurityService.create_access_token(user)
