"""
Test configuration and fixtures for the property portal API.
Provides database fixtures, test data factories, and common test utilities.
"""

import os
import tempfile

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="property_portal_uploads_"))
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

import io
import uuid
from decimal import Decimal
from typing import AsyncGenerator, Dict, List, Optional

import pytest
from fastapi import UploadFile
from httpx import ASGITransport, AsyncClient
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from starlette.datastructures import Headers

from property_portal.config import get_settings
from property_portal.database import Base, get_db
from property_portal.main import app
from property_portal.models.user import User, UserRole
from property_portal.models.property import Property, PropertyType, ListingType, PropertyStatus
from property_portal.models.category import PropertyCategory
from property_portal.models.amenity import Amenity
from property_portal.repositories.user import UserRepository
from property_portal.repositories.property import PropertyRepository
from property_portal.repositories.image import ImageRepository
from property_portal.repositories.document import DocumentRepository
from property_portal.services.auth import AuthService
from property_portal.services.property import PropertyService
from property_portal.services.media import PropertyMediaService
from property_portal.services.stats import PropertyStatsService
from property_portal.services.catalog import CatalogService
from property_portal.utils.auth import create_access_token
from property_portal.utils.dependencies import get_file_storage
from property_portal.utils.file_storage import FileStorage
from property_portal.utils.slug import generate_slug, generate_unique_id


TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

DEFAULT_PASSWORD = "testpassword123"


@pytest.fixture
async def db_engine():
    """Fresh schema per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False} if "sqlite" in TEST_DATABASE_URL else {}
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    session_factory = async_sessionmaker(bind=db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.rollback()
            await session.close()


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def file_storage(tmp_path, settings) -> FileStorage:
    """Storage rooted in a per-test directory."""
    return FileStorage(base_dir=tmp_path / "uploads", config=settings)


@pytest.fixture
async def async_client(db_session: AsyncSession, file_storage: FileStorage) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client sharing the test session and storage."""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_file_storage] = lambda: file_storage

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# Repository fixtures
@pytest.fixture
def user_repository(db_session: AsyncSession) -> UserRepository:
    return UserRepository(db_session)


@pytest.fixture
def property_repository(db_session: AsyncSession) -> PropertyRepository:
    return PropertyRepository(db_session)


@pytest.fixture
def image_repository(db_session: AsyncSession) -> ImageRepository:
    return ImageRepository(db_session)


@pytest.fixture
def document_repository(db_session: AsyncSession) -> DocumentRepository:
    return DocumentRepository(db_session)


# Service fixtures
@pytest.fixture
def auth_service(db_session: AsyncSession) -> AuthService:
    return AuthService(db_session)


@pytest.fixture
def property_service(db_session: AsyncSession, file_storage: FileStorage) -> PropertyService:
    return PropertyService(db_session, file_storage)


@pytest.fixture
def media_service(db_session: AsyncSession, file_storage: FileStorage) -> PropertyMediaService:
    return PropertyMediaService(db_session, file_storage)


@pytest.fixture
def stats_service(db_session: AsyncSession) -> PropertyStatsService:
    return PropertyStatsService(db_session)


@pytest.fixture
def catalog_service(db_session: AsyncSession) -> CatalogService:
    return CatalogService(db_session)


# Test data factories
class UserFactory:
    """Factory for creating test users."""

    @staticmethod
    def create_user_data(
        email: Optional[str] = None,
        password: str = DEFAULT_PASSWORD,
        name: str = "Test User",
        phone: Optional[str] = "+15550000000",
        role: UserRole = UserRole.OWNER,
        is_active: bool = True
    ) -> dict:
        return {
            "email": email or f"user{uuid.uuid4().hex[:8]}@example.com",
            "password": password,
            "name": name,
            "phone": phone,
            "role": role,
            "is_active": is_active
        }

    @staticmethod
    async def create_user(user_repo: UserRepository, **kwargs) -> User:
        """Create and commit a test user."""
        user = await user_repo.create_user(UserFactory.create_user_data(**kwargs))
        await user_repo.db.commit()
        return user


class PropertyFactory:
    """
    Factory for property rows written straight through the repository,
    bypassing the service so tests can set any status or flag.
    """

    @staticmethod
    def create_property_data(
        owner_id: uuid.UUID,
        title: str = "Test Property",
        description: Optional[str] = "A bright test property",
        property_type: PropertyType = PropertyType.APARTMENT,
        listing_type: ListingType = ListingType.RENT,
        price: Decimal = Decimal("1000.00"),
        status: PropertyStatus = PropertyStatus.PUBLISHED,
        **overrides
    ) -> dict:
        data = {
            "owner_id": owner_id,
            "unique_id": generate_unique_id(),
            "slug": generate_slug(title),
            "title": title,
            "description": description,
            "property_type": property_type,
            "listing_type": listing_type,
            "price": price,
            "status": status,
            "bedroom": 2,
            "bathroom": 1,
        }
        data.update(overrides)
        return data

    @staticmethod
    async def create_property(
        property_repo: PropertyRepository,
        owner_id: uuid.UUID,
        city: Optional[str] = None,
        locality: Optional[str] = None,
        amenity_ids: Optional[List[uuid.UUID]] = None,
        **kwargs
    ) -> Property:
        """Create and commit a property, optionally with a location and amenity links."""
        property_obj = await property_repo.create(
            PropertyFactory.create_property_data(owner_id, **kwargs)
        )
        if city is not None or locality is not None:
            await property_repo.upsert_location(property_obj.id, {"city": city, "locality": locality})
        if amenity_ids:
            await property_repo.replace_amenities(property_obj.id, amenity_ids)
        await property_repo.db.commit()
        return property_obj


class FileFactory:
    """Builds in-memory uploads."""

    @staticmethod
    def image_bytes(size=(200, 200), image_format: str = "JPEG", color: str = "blue") -> bytes:
        buffer = io.BytesIO()
        Image.new("RGB", size, color=color).save(buffer, format=image_format)
        return buffer.getvalue()

    @staticmethod
    def pdf_bytes() -> bytes:
        return b"%PDF-1.4\n1 0 obj<<>>endobj\ntrailer<<>>\n%%EOF\n"

    @staticmethod
    def upload(content: bytes, filename: str, content_type: str) -> UploadFile:
        return UploadFile(
            file=io.BytesIO(content),
            filename=filename,
            headers=Headers({"content-type": content_type})
        )

    @staticmethod
    def image_upload(filename: str = "photo.jpg", **kwargs) -> UploadFile:
        return FileFactory.upload(FileFactory.image_bytes(**kwargs), filename, "image/jpeg")

    @staticmethod
    def document_upload(filename: str = "deed.pdf") -> UploadFile:
        return FileFactory.upload(FileFactory.pdf_bytes(), filename, "application/pdf")


async def create_category(db_session: AsyncSession, name: str = "Residential") -> PropertyCategory:
    category = PropertyCategory(name=name, slug=name.lower())
    db_session.add(category)
    await db_session.commit()
    return category


async def create_amenity(db_session: AsyncSession, name: str = "Gym", is_active: bool = True) -> Amenity:
    amenity = Amenity(name=name, is_active=is_active)
    db_session.add(amenity)
    await db_session.commit()
    return amenity


def auth_headers(user: User) -> Dict[str, str]:
    token = create_access_token(user_id=user.id, email=user.email, role=user.role)
    return {"Authorization": f"Bearer {token}"}


# Common test fixtures
@pytest.fixture
async def test_owner(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository,
        email="owner@example.com",
        name="Test Owner"
    )


@pytest.fixture
async def other_owner(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository,
        email="other@example.com",
        name="Other Owner"
    )


@pytest.fixture
async def test_admin(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository,
        email="admin@example.com",
        name="Test Admin",
        role=UserRole.ADMIN
    )


@pytest.fixture
async def test_inactive_user(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository,
        email="inactive@example.com",
        name="Inactive User",
        is_active=False
    )


@pytest.fixture
async def test_category(db_session: AsyncSession) -> PropertyCategory:
    return await create_category(db_session)


@pytest.fixture
async def gym(db_session: AsyncSession) -> Amenity:
    return await create_amenity(db_session, "Gym")


@pytest.fixture
async def pool(db_session: AsyncSession) -> Amenity:
    return await create_amenity(db_session, "Swimming Pool")


@pytest.fixture
async def test_property(property_repository: PropertyRepository, test_owner: User) -> Property:
    return await PropertyFactory.create_property(
        property_repository,
        owner_id=test_owner.id,
        title="Test Property",
        price=Decimal("1500.00"),
        city="New York",
        locality="Chelsea"
    )
