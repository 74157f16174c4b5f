"""
API tests through the ASGI app: routing, auth, multipart payloads and the
error envelope.
"""

import json
import uuid
from decimal import Decimal

import pytest
from httpx import AsyncClient

from property_portal.models.property import PropertyStatus
from property_portal.models.user import User
from property_portal.repositories.property import PropertyRepository
from tests.conftest import FileFactory, PropertyFactory, auth_headers

API = "/api/v1"


def property_payload(**overrides) -> dict:
    payload = {
        "title": "Garden Villa",
        "property_type": "villa",
        "listing_type": "sale",
        "price": 450000,
        "bedroom": 4,
        "location": {"city": "Austin", "locality": "Zilker"},
        "features": [{"name": "Garden", "value": "600 sqft"}],
    }
    payload.update(overrides)
    return payload


async def create_via_api(client: AsyncClient, headers: dict, images: int = 0, **overrides) -> dict:
    files = [
        ("images", (f"photo{index}.jpg", FileFactory.image_bytes(), "image/jpeg"))
        for index in range(images)
    ]
    response = await client.post(
        f"{API}/properties",
        data={"payload": json.dumps(property_payload(**overrides))},
        files=files or None,
        headers=headers
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestHealth:

    @pytest.mark.asyncio
    async def test_root(self, async_client: AsyncClient):
        response = await async_client.get("/")
        assert response.status_code == 200
        assert response.json()["api_prefix"] == API

    @pytest.mark.asyncio
    async def test_health_reports_cleanup_backlog(self, async_client: AsyncClient, file_storage):
        file_storage.cleanup_queue.enqueue([str(file_storage.base_dir / "stale.jpg")])

        response = await async_client.get("/health")

        assert response.status_code == 200
        assert response.json()["database"] == "connected"
        assert response.json()["pending_file_cleanup"] == 1

    @pytest.mark.asyncio
    async def test_request_id_header(self, async_client: AsyncClient):
        response = await async_client.get("/")
        assert len(response.headers["X-Request-ID"]) == 8

    @pytest.mark.asyncio
    async def test_unknown_route_uses_error_envelope(self, async_client: AsyncClient):
        response = await async_client.get(f"{API}/nowhere")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "HTTP_404"


class TestAuthEndpoints:

    @pytest.mark.asyncio
    async def test_login_and_me(self, async_client: AsyncClient, test_owner: User):
        response = await async_client.post(
            f"{API}/auth/login", json={"email": "Owner@Example.com", "password": "testpassword123"}
        )
        assert response.status_code == 200
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["user"]["email"] == "owner@example.com"

        me = await async_client.get(
            f"{API}/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"}
        )
        assert me.status_code == 200
        assert me.json()["role"] == "owner"

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, async_client: AsyncClient, test_owner: User):
        response = await async_client.post(
            f"{API}/auth/login", json={"email": "owner@example.com", "password": "wrongpassword"}
        )
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"

    @pytest.mark.asyncio
    async def test_me_requires_token(self, async_client: AsyncClient):
        response = await async_client.get(f"{API}/auth/me")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_me_rejects_bad_token(self, async_client: AsyncClient):
        response = await async_client.get(f"{API}/auth/me", headers={"Authorization": "Bearer junk"})
        assert response.status_code == 401


class TestPropertyEndpoints:

    @pytest.mark.asyncio
    async def test_create_get_and_list(self, async_client: AsyncClient, test_owner: User, gym):
        headers = auth_headers(test_owner)
        created = await create_via_api(async_client, headers, images=2, amenity_ids=[str(gym.id)])

        assert created["status"] == "draft"
        assert Decimal(created["price"]) == Decimal("450000")
        assert created["owner"]["email"] == "owner@example.com"
        assert [img["display_order"] for img in created["images"]] == [1, 2]
        assert created["amenities"][0]["name"] == "Gym"

        first = await async_client.get(f"{API}/properties/{created['id']}")
        second = await async_client.get(f"{API}/properties/{created['id']}")
        assert first.json()["views_count"] == 0
        assert second.json()["views_count"] == 1
        assert second.json()["features"][0]["name"] == "Garden"

        listing = await async_client.get(f"{API}/properties", params={"city": "aust"})
        body = listing.json()
        assert body["pagination"]["total"] == 1
        assert body["properties"][0]["location"]["city"] == "Austin"
        assert body["properties"][0]["owner"]["name"] == "Test Owner"

    @pytest.mark.asyncio
    async def test_create_requires_auth(self, async_client: AsyncClient):
        response = await async_client.post(
            f"{API}/properties", data={"payload": json.dumps(property_payload())}
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_create_invalid_payload(self, async_client: AsyncClient, test_owner: User):
        response = await async_client.post(
            f"{API}/properties",
            data={"payload": json.dumps(property_payload(price=-5, status="verified"))},
            headers=auth_headers(test_owner)
        )
        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert {detail["field"] for detail in error["details"]} == {"price", "status"}

    @pytest.mark.asyncio
    async def test_create_unknown_amenity(self, async_client: AsyncClient, test_owner: User):
        response = await async_client.post(
            f"{API}/properties",
            data={"payload": json.dumps(property_payload(amenity_ids=[str(uuid.uuid4())]))},
            headers=auth_headers(test_owner)
        )
        assert response.status_code == 422
        assert response.json()["error"]["details"][0]["field"] == "amenity_ids"

    @pytest.mark.asyncio
    async def test_get_missing_property(self, async_client: AsyncClient):
        response = await async_client.get(f"{API}/properties/{uuid.uuid4()}")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_invalid_sort(self, async_client: AsyncClient):
        response = await async_client.get(f"{API}/properties", params={"sort_by": "secret"})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_update_property(self, async_client: AsyncClient, test_owner: User, other_owner: User):
        owner_headers = auth_headers(test_owner)
        other_headers = auth_headers(other_owner)
        created = await create_via_api(async_client, owner_headers)

        response = await async_client.put(
            f"{API}/properties/{created['id']}",
            data={"payload": json.dumps({"price": 470000, "features": []})},
            files=[("images", ("new.jpg", FileFactory.image_bytes(), "image/jpeg"))],
            headers=owner_headers
        )
        assert response.status_code == 200
        body = response.json()
        assert Decimal(body["price"]) == Decimal("470000")
        assert body["features"] == []
        assert body["title"] == "Garden Villa"
        assert len(body["images"]) == 1

        forbidden = await async_client.put(
            f"{API}/properties/{created['id']}",
            data={"payload": json.dumps({"title": "Taken"})},
            headers=other_headers
        )
        assert forbidden.status_code == 403

    @pytest.mark.asyncio
    async def test_update_rejects_null_title(self, async_client: AsyncClient, test_owner: User):
        headers = auth_headers(test_owner)
        created = await create_via_api(async_client, headers)

        response = await async_client.put(
            f"{API}/properties/{created['id']}",
            data={"payload": json.dumps({"title": None})},
            headers=headers
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_update_rejects_null_status(self, async_client: AsyncClient, test_owner: User):
        headers = auth_headers(test_owner)
        created = await create_via_api(async_client, headers)

        response = await async_client.put(
            f"{API}/properties/{created['id']}",
            data={"payload": json.dumps({"status": None})},
            headers=headers
        )
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

        fetched = await async_client.get(f"{API}/properties/{created['id']}")
        assert fetched.json()["status"] == created["status"]

    @pytest.mark.asyncio
    async def test_delete_property(self, async_client: AsyncClient, test_owner: User, file_storage):
        headers = auth_headers(test_owner)
        created = await create_via_api(async_client, headers, images=1)

        response = await async_client.delete(f"{API}/properties/{created['id']}", headers=headers)
        assert response.status_code == 200
        assert response.json()["message"] == "Property deleted successfully"

        missing = await async_client.get(f"{API}/properties/{created['id']}")
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_search_and_featured(
        self, async_client: AsyncClient, property_repository: PropertyRepository, test_owner: User
    ):
        await PropertyFactory.create_property(
            property_repository, test_owner.id, title="Lake House", is_featured=True, city="Austin"
        )
        await PropertyFactory.create_property(
            property_repository, test_owner.id, title="Lake Draft", status=PropertyStatus.DRAFT
        )

        search = await async_client.get(f"{API}/properties/search", params={"query": "lake"})
        assert [p["title"] for p in search.json()["properties"]] == ["Lake House"]

        featured = await async_client.get(f"{API}/properties/featured", params={"city": "austin"})
        assert [p["title"] for p in featured.json()["properties"]] == ["Lake House"]

    @pytest.mark.asyncio
    async def test_search_by_repeated_amenities(
        self, async_client: AsyncClient, property_repository: PropertyRepository, test_owner: User, gym, pool
    ):
        await PropertyFactory.create_property(property_repository, test_owner.id, title="Gym Flat", amenity_ids=[gym.id])
        await PropertyFactory.create_property(property_repository, test_owner.id, title="Pool Flat", amenity_ids=[pool.id])
        await PropertyFactory.create_property(property_repository, test_owner.id, title="Bare Flat")

        response = await async_client.get(
            f"{API}/properties/search", params=[("amenities", str(gym.id)), ("amenities", str(pool.id))]
        )

        assert response.json()["pagination"]["total"] == 2

    @pytest.mark.asyncio
    async def test_owner_listing_access(
        self,
        async_client: AsyncClient,
        property_repository: PropertyRepository,
        test_owner: User,
        other_owner: User,
        test_admin: User
    ):
        owner_id = test_owner.id
        await PropertyFactory.create_property(property_repository, owner_id, title="Owned")

        own = await async_client.get(f"{API}/properties/owner/{owner_id}", headers=auth_headers(test_owner))
        assert own.status_code == 200
        assert [p["title"] for p in own.json()["properties"]] == ["Owned"]
        assert "owner" not in own.json()["properties"][0]

        as_admin = await async_client.get(f"{API}/properties/owner/{owner_id}", headers=auth_headers(test_admin))
        assert as_admin.status_code == 200

        as_other = await async_client.get(f"{API}/properties/owner/{owner_id}", headers=auth_headers(other_owner))
        assert as_other.status_code == 403


class TestModerationEndpoints:

    @pytest.mark.asyncio
    async def test_verify_reject_and_status(
        self, async_client: AsyncClient, test_property, test_admin: User, test_owner: User
    ):
        property_id = test_property.id
        admin_headers = auth_headers(test_admin)
        owner_headers = auth_headers(test_owner)

        denied = await async_client.post(f"{API}/properties/{property_id}/verify", headers=owner_headers)
        assert denied.status_code == 403

        verified = await async_client.post(f"{API}/properties/{property_id}/verify", headers=admin_headers)
        assert verified.status_code == 200
        assert verified.json()["is_verified"] is True
        assert verified.json()["verifier"]["email"] == "admin@example.com"

        rejected = await async_client.post(
            f"{API}/properties/{property_id}/reject", json={"reason": "Blurry photos"}, headers=admin_headers
        )
        assert rejected.json()["status"] == "rejected"
        assert rejected.json()["rejection_reason"] == "Blurry photos"

        blank = await async_client.post(
            f"{API}/properties/{property_id}/reject", json={"reason": "   "}, headers=admin_headers
        )
        assert blank.status_code == 422

        sold = await async_client.patch(
            f"{API}/properties/{property_id}/status", json={"status": "sold"}, headers=admin_headers
        )
        assert sold.json()["status"] == "sold"

    @pytest.mark.asyncio
    async def test_stats_admin_only(self, async_client: AsyncClient, test_property, test_admin: User, test_owner: User):
        denied = await async_client.get(f"{API}/properties/stats", headers=auth_headers(test_owner))
        assert denied.status_code == 403

        response = await async_client.get(f"{API}/properties/stats", headers=auth_headers(test_admin))
        assert response.status_code == 200
        body = response.json()
        assert body["totals"]["total"] == 1
        assert body["recent_properties"][0]["owner"]["name"] == "Test Owner"


class TestMediaEndpoints:

    @pytest.mark.asyncio
    async def test_images(self, async_client: AsyncClient, test_property, test_owner: User):
        property_id = test_property.id
        headers = auth_headers(test_owner)

        upload = await async_client.post(
            f"{API}/properties/{property_id}/images",
            files=[
                ("images", ("a.jpg", FileFactory.image_bytes(), "image/jpeg")),
                ("images", ("b.png", FileFactory.image_bytes(image_format="PNG"), "image/png")),
            ],
            headers=headers
        )
        assert upload.status_code == 201
        assert [img["display_order"] for img in upload.json()] == [1, 2]

        listed = await async_client.get(f"{API}/properties/{property_id}/images")
        assert len(listed.json()) == 2

        image_id = upload.json()[0]["id"]
        deleted = await async_client.delete(f"{API}/properties/images/{image_id}", headers=headers)
        assert deleted.status_code == 200

        remaining = await async_client.get(f"{API}/properties/{property_id}/images")
        assert [img["original_name"] for img in remaining.json()] == ["b.png"]

    @pytest.mark.asyncio
    async def test_rejects_unsupported_image(self, async_client: AsyncClient, test_property, test_owner: User):
        response = await async_client.post(
            f"{API}/properties/{test_property.id}/images",
            files=[("images", ("a.gif", b"GIF89a", "image/gif"))],
            headers=auth_headers(test_owner)
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "BAD_REQUEST"

    @pytest.mark.asyncio
    async def test_documents(self, async_client: AsyncClient, test_property, test_owner: User):
        property_id = test_property.id
        headers = auth_headers(test_owner)

        upload = await async_client.post(
            f"{API}/properties/{property_id}/documents",
            files={"file": ("deed.pdf", FileFactory.pdf_bytes(), "application/pdf")},
            data={"document_name": "Sale deed", "doc_type": "ownership"},
            headers=headers
        )
        assert upload.status_code == 201
        assert upload.json()["document_name"] == "Sale deed"
        assert upload.json()["doc_type"] == "ownership"

        bad_type = await async_client.post(
            f"{API}/properties/{property_id}/documents",
            files={"file": ("deed.pdf", FileFactory.pdf_bytes(), "application/pdf")},
            data={"doc_type": "passport"},
            headers=headers
        )
        assert bad_type.status_code == 422

        listed = await async_client.get(f"{API}/properties/{property_id}/documents")
        assert [d["document_name"] for d in listed.json()] == ["Sale deed"]

        deleted = await async_client.delete(
            f"{API}/properties/documents/{upload.json()['id']}", headers=headers
        )
        assert deleted.status_code == 200


class TestCatalogEndpoints:

    @pytest.mark.asyncio
    async def test_categories_and_amenities(self, async_client: AsyncClient, test_admin: User, test_owner: User):
        admin_headers = auth_headers(test_admin)

        denied = await async_client.post(
            f"{API}/categories", json={"name": "Commercial"}, headers=auth_headers(test_owner)
        )
        assert denied.status_code == 403

        category = await async_client.post(f"{API}/categories", json={"name": "Commercial"}, headers=admin_headers)
        assert category.status_code == 201
        assert category.json()["slug"] == "commercial"

        amenity = await async_client.post(
            f"{API}/amenities", json={"name": "Power Backup", "icon": "bolt"}, headers=admin_headers
        )
        assert amenity.status_code == 201

        assert [c["name"] for c in (await async_client.get(f"{API}/categories")).json()] == ["Commercial"]
        assert [a["name"] for a in (await async_client.get(f"{API}/amenities")).json()] == ["Power Backup"]
