"""
Authentication API endpoints for login and the current user.
"""

from fastapi import APIRouter, Depends, status
from property_portal.config import get_settings
from property_portal.models.user import User
from property_portal.services.auth import AuthService
from property_portal.schemas.auth import LoginRequest, LoginResponse
from property_portal.schemas.user import UserResponse
from property_portal.utils.dependencies import get_auth_service, get_current_active_user


router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/login",
    response_model=LoginResponse,
    status_code=status.HTTP_200_OK,
    summary="User login",
    description="Authenticate user with email and password, returns a JWT access token"
)
async def login(
    login_data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> LoginResponse:
    """
    Authenticate user and return an access token.

    Raises:
        InvalidCredentialsError: If credentials are invalid or the account is inactive
    """
    user, access_token = await auth_service.login(
        email=login_data.email,
        password=login_data.password
    )

    return LoginResponse(
        user=UserResponse.model_validate(user),
        access_token=access_token,
        token_type="bearer",
        expires_in=get_settings().access_token_expire_minutes * 60
    )


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Current user",
    description="Return the user behind the bearer token"
)
async def get_me(current_user: User = Depends(get_current_active_user)) -> UserResponse:
    return UserResponse.model_validate(current_user)
