"""
PlantDex Backend — Plant API Tests
===================================

What:  /api/plants and /health through the full ASGI stack (middleware,
       exception handlers, sessions) with a memory store and fake identifier.

What we test:
    ✅ Every plant endpoint requires a session (401 before 400/403/404)
    ✅ Create (manual and identified), list, get, delete
    ✅ Cross-user access → 403 without leaking the record; missing → 404
    ✅ Identification failure without fallback → 500, nothing stored
    ✅ An unusable Plant.id body still takes the fallback path
    ✅ Error body shape and X-Request-ID header
"""

import asyncio

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from conftest import sign_up
from plantdex.exceptions import IdentificationError, IdentificationTimeoutError, StorageError
from plantdex.main import create_app
from plantdex.services.identification import PlantIdClient


async def create(client, **payload):
    response = await client.post("/api/plants", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


class TestAuthenticationRequired:

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "method, path",
        [
            ("GET", "/api/plants"),
            ("GET", "/api/plants/1"),
            ("GET", "/api/plants/not-a-number"),
            ("POST", "/api/plants"),
            ("DELETE", "/api/plants/1"),
        ],
    )
    async def test_anonymous_requests_rejected(self, client, store, method, path):
        response = await client.request(method, path, json={"name": 5})

        assert response.status_code == 401
        body = response.json()
        assert body["error"] == "unauthenticated"
        assert body["request_id"]
        assert await store.list_plants(1) == []

    @pytest.mark.asyncio
    async def test_anonymous_create_does_not_call_identifier(self, client, identifier, data_uri):
        response = await client.post("/api/plants", json={"imageUrl": data_uri})
        assert response.status_code == 401
        assert identifier.calls == []


class TestCreatePlant:

    @pytest.mark.asyncio
    async def test_manual_entry(self, auth_client):
        body = await create(auth_client, imageUrl="https://x/img.jpg", name="", scientificName="")

        assert body["name"] == "Unknown Plant"
        assert body["scientificName"] == "Plantus Unknownus"
        assert body["habitat"] == "Various habitats"
        assert body["careTips"] == "Water regularly, provide adequate sunlight"
        assert body["imageUrl"] == "https://x/img.jpg"
        assert isinstance(body["id"], int)
        assert "userId" in body
        assert "createdAt" in body

    @pytest.mark.asyncio
    async def test_identified_entry(self, auth_client, identifier, data_uri):
        body = await create(auth_client, imageUrl=data_uri, name="ignored")

        assert body["name"] == "Swiss cheese plant"
        assert body["scientificName"] == "Monstera deliciosa"
        assert body["imageUrl"] == data_uri
        assert len(identifier.calls) == 1

    @pytest.mark.asyncio
    async def test_identification_failure_with_fallback(self, auth_client, identifier, data_uri):
        identifier.error = IdentificationError(upstream_message="No plant matches found")

        body = await create(auth_client, imageUrl=data_uri, name="Aloe", scientificName="Aloe vera")
        assert body["name"] == "Aloe"
        assert body["habitat"] == "Various habitats"

    @pytest.mark.asyncio
    async def test_identification_failure_without_fallback(self, auth_client, identifier, store, data_uri):
        identifier.error = IdentificationError(upstream_message="No plant matches found")

        response = await auth_client.post("/api/plants", json={"imageUrl": data_uri})

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "identification_failed"
        assert "No plant matches found" in body["message"]
        assert (await auth_client.get("/api/plants")).json() == []

    @pytest.mark.asyncio
    async def test_identification_timeout(self, auth_client, identifier, data_uri):
        identifier.error = IdentificationTimeoutError(timeout=30)

        response = await auth_client.post("/api/plants", json={"imageUrl": data_uri})

        assert response.status_code == 500
        assert response.json()["error"] == "identification_timeout"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [{"name": 12}, {"careTips": {"a": 1}}, [1, 2]])
    async def test_invalid_payload(self, auth_client, identifier, payload):
        response = await auth_client.post("/api/plants", json=payload)

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["details"]["errors"]
        assert identifier.calls == []

    @pytest.mark.asyncio
    async def test_malformed_json(self, auth_client):
        response = await auth_client.post(
            "/api/plants",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_malformed_embedded_image(self, auth_client, identifier):
        response = await auth_client.post(
            "/api/plants", json={"imageUrl": "data:image/png;base64,", "name": "A", "scientificName": "B"}
        )
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "imageUrl"
        assert identifier.calls == []

    @pytest.mark.asyncio
    async def test_storage_failure_is_generic(self, auth_client, store):
        async def broken_create(user_id, fields):
            raise StorageError(context={"operation": "create_plant", "error_type": "OperationalError"})

        store.create_plant = broken_create
        response = await auth_client.post("/api/plants", json={"name": "Ivy"})

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "server_error"
        assert "OperationalError" not in response.text

    @pytest.mark.asyncio
    async def test_concurrent_creates(self, auth_client):
        responses = await asyncio.gather(
            *(auth_client.post("/api/plants", json={"name": f"P{i}"}) for i in range(8))
        )
        ids = [r.json()["id"] for r in responses]

        assert all(r.status_code == 201 for r in responses)
        assert len(set(ids)) == 8
        listed = (await auth_client.get("/api/plants")).json()
        assert sorted(p["id"] for p in listed) == sorted(ids)


class TestReadAndDelete:

    @pytest.mark.asyncio
    async def test_list_only_own_plants(self, auth_client, other_client):
        await create(auth_client, name="Ivy")
        await create(other_client, name="Oak")
        await create(auth_client, name="Fern")

        mine = (await auth_client.get("/api/plants")).json()
        theirs = (await other_client.get("/api/plants")).json()

        assert [p["name"] for p in mine] == ["Ivy", "Fern"]
        assert [p["name"] for p in theirs] == ["Oak"]

    @pytest.mark.asyncio
    async def test_get_own_plant(self, auth_client):
        created = await create(auth_client, name="Ivy")

        response = await auth_client.get(f"/api/plants/{created['id']}")

        assert response.status_code == 200
        assert response.json() == created
        assert response.headers["Cache-Control"].startswith("private")

    @pytest.mark.asyncio
    async def test_foreign_plant_is_forbidden(self, auth_client, other_client):
        created = await create(auth_client, name="Secret Orchid")

        for method in ("GET", "DELETE"):
            response = await other_client.request(method, f"/api/plants/{created['id']}")
            assert response.status_code == 403
            assert response.json()["error"] == "forbidden"
            assert "Secret Orchid" not in response.text
            assert "alice" not in response.text

        # Still there for its owner
        assert (await auth_client.get(f"/api/plants/{created['id']}")).status_code == 200

    @pytest.mark.asyncio
    async def test_missing_plant(self, auth_client):
        for method in ("GET", "DELETE"):
            response = await auth_client.request(method, "/api/plants/9999")
            assert response.status_code == 404
            assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_delete_own_plant(self, auth_client):
        created = await create(auth_client, name="Ivy")

        response = await auth_client.delete(f"/api/plants/{created['id']}")

        assert response.status_code == 204
        assert response.content == b""
        assert (await auth_client.get(f"/api/plants/{created['id']}")).status_code == 404
        assert (await auth_client.get("/api/plants")).json() == []

    @pytest.mark.asyncio
    async def test_non_integer_id(self, auth_client):
        response = await auth_client.get("/api/plants/abc")
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"


class TestHealthAndHeaders:

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["store"] == "memory:connected"
        assert body["identification"] == "configured"

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, client):
        response = await client.get("/health", headers={"X-Request-ID": "abc12345"})
        assert response.headers["X-Request-ID"] == "abc12345"

    @pytest.mark.asyncio
    async def test_request_id_generated(self, client):
        response = await client.get("/api/plants")
        assert len(response.headers["X-Request-ID"]) == 8
        assert response.json()["request_id"] == response.headers["X-Request-ID"]


class TestMalformedUpstream:

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "upstream_body",
        [
            {"suggestions": [{"plant_name": "Rose", "plant_details": {"wiki_description": "plain string"}}]},
            {"suggestions": [{"plant_name": 123, "plant_details": {}}]},
            {"suggestions": {"top": 1}},
            {"suggestions": ["Rose"]},
        ],
    )
    async def test_unusable_plant_id_body_still_falls_back(self, store, data_uri, upstream_body):
        """A garbled Plant.id answer is recovered by the caller's own names."""
        plant_id = PlantIdClient(
            api_key="test-key",
            api_url="https://plant-id.test/v2/identify",
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json=upstream_body)),
        )
        app = create_app(store=store, identifier=plant_id)

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            await sign_up(client, "alice")
            response = await client.post(
                "/api/plants",
                json={"imageUrl": data_uri, "name": "Rose", "scientificName": "Rosa"},
            )
            without_names = await client.post("/api/plants", json={"imageUrl": data_uri})
        await plant_id.aclose()

        assert response.status_code == 201, response.text
        body = response.json()
        assert body["name"] == "Rose"
        assert body["scientificName"] == "Rosa"
        assert body["habitat"] == "Various habitats"

        assert without_names.status_code == 500
        assert without_names.json()["error"] == "identification_failed"
        assert len(await store.list_plants(body["userId"])) == 1
