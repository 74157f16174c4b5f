"""
Tests for JWT helpers and AuthService.
"""

import uuid
from datetime import timedelta

import pytest

from property_portal.models.user import User, UserRole
from property_portal.services.auth import AuthService
from property_portal.utils.auth import (
    ExpiredSignatureError,
    JWTError,
    create_access_token,
    extract_token_from_header,
    verify_token,
)
from property_portal.utils.exceptions import (
    InactiveUserError,
    InvalidCredentialsError,
    InvalidTokenError,
    NotFoundError,
    TokenExpiredError,
    ValidationError,
)


class TestTokens:

    def test_round_trip_claims(self):
        user_id = uuid.uuid4()
        token = create_access_token(user_id, "owner@example.com", UserRole.OWNER)

        payload = verify_token(token)

        assert payload.user_id == str(user_id)
        assert payload.email == "owner@example.com"
        assert payload.role == "owner"

    def test_expired_token(self):
        token = create_access_token(
            uuid.uuid4(), "owner@example.com", UserRole.OWNER, expires_delta=timedelta(seconds=-5)
        )
        with pytest.raises(ExpiredSignatureError):
            verify_token(token)

    def test_tampered_token(self):
        token = create_access_token(uuid.uuid4(), "owner@example.com", UserRole.ADMIN)
        with pytest.raises(JWTError):
            verify_token(token[:-2] + ("AA" if not token.endswith("AA") else "BB"))

    def test_extract_token_from_header(self):
        assert extract_token_from_header("Bearer abc.def") == "abc.def"
        with pytest.raises(ValueError):
            extract_token_from_header("Basic abc")
        with pytest.raises(ValueError):
            extract_token_from_header(None)


class TestAuthService:

    @pytest.mark.asyncio
    async def test_login(self, auth_service: AuthService, test_owner: User):
        user, token = await auth_service.login("owner@example.com", "testpassword123")

        assert user.id == test_owner.id
        assert verify_token(token).user_id == str(test_owner.id)

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, auth_service: AuthService, test_owner: User):
        with pytest.raises(InvalidCredentialsError):
            await auth_service.login("owner@example.com", "wrongpassword")

    @pytest.mark.asyncio
    async def test_login_inactive_user(self, auth_service: AuthService, test_inactive_user: User):
        with pytest.raises(InvalidCredentialsError):
            await auth_service.authenticate_user("inactive@example.com", "testpassword123")

    @pytest.mark.asyncio
    async def test_blank_credentials(self, auth_service: AuthService):
        with pytest.raises(ValidationError):
            await auth_service.authenticate_user("  ", "testpassword123")
        with pytest.raises(ValidationError):
            await auth_service.authenticate_user("owner@example.com", "")

    @pytest.mark.asyncio
    async def test_get_current_user(self, auth_service: AuthService, test_owner: User):
        token = create_access_token(test_owner.id, test_owner.email, test_owner.role)

        user = await auth_service.get_current_user(token)

        assert user.id == test_owner.id

    @pytest.mark.asyncio
    async def test_get_current_user_expired(self, auth_service: AuthService, test_owner: User):
        token = create_access_token(
            test_owner.id, test_owner.email, test_owner.role, expires_delta=timedelta(minutes=-1)
        )
        with pytest.raises(TokenExpiredError):
            await auth_service.get_current_user(token)

    @pytest.mark.asyncio
    async def test_get_current_user_garbage(self, auth_service: AuthService):
        with pytest.raises(InvalidTokenError):
            await auth_service.get_current_user("not-a-token")

    @pytest.mark.asyncio
    async def test_get_current_user_unknown_user(self, auth_service: AuthService):
        token = create_access_token(uuid.uuid4(), "ghost@example.com", UserRole.OWNER)
        with pytest.raises(InvalidTokenError):
            await auth_service.get_current_user(token)

    @pytest.mark.asyncio
    async def test_get_current_user_inactive(self, auth_service: AuthService, test_inactive_user: User):
        token = create_access_token(test_inactive_user.id, test_inactive_user.email, test_inactive_user.role)
        with pytest.raises(InactiveUserError):
            await auth_service.get_current_user(token)

    @pytest.mark.asyncio
    async def test_get_user_by_id_not_found(self, auth_service: AuthService):
        with pytest.raises(NotFoundError):
            await auth_service.get_user_by_id(uuid.uuid4())


class TestUserPermissions:

    @pytest.mark.asyncio
    async def test_admin_manages_everything(self, test_admin: User):
        assert test_admin.is_admin
        assert test_admin.can_manage_property(uuid.uuid4())

    @pytest.mark.asyncio
    async def test_owner_manages_own(self, test_owner: User):
        assert not test_owner.is_admin
        assert test_owner.can_manage_property(test_owner.id)
        assert not test_owner.can_manage_property(uuid.uuid4())
