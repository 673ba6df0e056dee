from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.db.database import get_async_session
from taskboard.schemas.auth import UserCreate, UserLogin, TokenResponse, UserProfile
from taskboard.services.security_service import AuthService
from taskboard.services.email_service import EmailService
from taskboard.api.dependencies.auth import get_current_user
from taskboard.models.user import User
from taskboard.logs import debug_logger

# Create router
router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserCreate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_async_session)
):
    """
    Register a new user and sign them in
    """
    user, token = await AuthService.register(
        db,
        email=user_data.email,
        password=user_data.password,
        name=user_data.name,
    )

    # Welcome mail goes out after the response
    background_tasks.add_task(EmailService.send_welcome_email, user.email, user.name)
    debug_logger.debug(f"Scheduled welcome email for user {user.id}")

    return {"access_token": token, "token_type": "bearer", "user": user}


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: UserLogin,
    db: AsyncSession = Depends(get_async_session)
):
    """
    Login with email and password
    """
    user, token = await AuthService.login(db, credentials.email, credentials.password)
    return {"access_token": token, "token_type": "bearer", "user": user}


@router.get("/me", response_model=UserProfile)
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """
    Get current user information
    """
    return current_user
