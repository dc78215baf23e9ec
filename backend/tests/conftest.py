"""
PlantDex Backend — Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every app under test is built with create_app(store, identifier), so
       each test gets its own MemoryRecordStore and a FakeIdentifier; no
       database server and no Plant.id account are needed.

Fixture Hierarchy:
    ├── store:           fresh MemoryRecordStore
    ├── identifier:      FakeIdentifier (succeeds unless told otherwise)
    ├── app:             FastAPI app wired to the two above
    ├── client:          anonymous httpx AsyncClient over ASGITransport
    ├── auth_client:     client signed in as "alice"
    ├── other_client:    client signed in as "bob"
    └── data_uri:        small valid embedded JPEG
"""

import base64
import os
from typing import List, Optional

# Settings are read at import time; configure before any plantdex import
os.environ["STORE_BACKEND"] = "memory"
os.environ["PLANT_ID_API_KEY"] = "test-key-not-real"
os.environ["SESSION_SECRET_KEY"] = "test-session-secret"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from plantdex.exceptions import IdentificationError
from plantdex.main import create_app
from plantdex.services.identification import IdentificationClient, IdentificationResult
from plantdex.services.images import EmbeddedImage
from plantdex.stores.memory import MemoryRecordStore

# Minimal JPEG: Start of Image + JFIF marker + End of Image
JPEG_BYTES = (
    b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00"
    b"\xff\xd9"
)

MONSTERA = IdentificationResult(
    name="Swiss cheese plant",
    scientific_name="Monstera deliciosa",
    habitat="Native to regions where Liliopsida plants typically grow",
    care_tips="Keep the soil moist. Likes bright indirect light.",
)


class FakeIdentifier(IdentificationClient):
    """
    Stand-in identification client.

    Returns `result`, or raises `error` when one is set, and records every
    image it was asked about.
    """

    def __init__(
        self,
        result: IdentificationResult = MONSTERA,
        error: Optional[IdentificationError] = None,
    ):
        self.result = result
        self.error = error
        self.calls: List[EmbeddedImage] = []
        self.closed = False

    async def identify(self, image: EmbeddedImage) -> IdentificationResult:
        self.calls.append(image)
        if self.error is not None:
            raise self.error
        return self.result

    async def aclose(self) -> None:
        self.closed = True


async def sign_up(client: AsyncClient, username: str, password: str = "s3cret-pass") -> dict:
    response = await client.post(
        "/api/register", json={"username": username, "password": password}
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def data_uri() -> str:
    return "data:image/jpeg;base64," + base64.b64encode(JPEG_BYTES).decode("ascii")


@pytest.fixture
def store() -> MemoryRecordStore:
    return MemoryRecordStore()


@pytest.fixture
def identifier() -> FakeIdentifier:
    return FakeIdentifier()


@pytest.fixture
def app(store, identifier):
    return create_app(store=store, identifier=identifier)


@pytest_asyncio.fixture
async def client(app):
    """Anonymous client; cookies persist across its requests."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def auth_client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        await sign_up(client, "alice")
        yield client


@pytest_asyncio.fixture
async def other_client(app):
    """A second signed-in user on the same app and store."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        await sign_up(client, "bob")
        yield client
