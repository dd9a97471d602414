"""
Shared fixtures for the Clerk webhook ingest tests.

Persistence runs through Beanie on top of mongomock_motor, so the unique
clerk_id index and duplicate-key handling behave like a real MongoDB without
a server. Signed deliveries are produced with the svix library.
"""

import base64
import json
from datetime import datetime, timezone

import httpx
import pytest
from beanie import init_beanie
from mongomock_motor import AsyncMongoMockClient
from svix.webhooks import Webhook

from clerk_ingest.models.user import USER_DOCUMENTS
from clerk_ingest.repositories.clerk_users import ClerkUserRepository
from clerk_ingest.server import create_app
from clerk_ingest.services.config import Settings

MULTI_TENANT_SECRET = "whsec_" + base64.b64encode(b"multi_tenant_signing_key_123").decode()
COMGAS_SECRET = "whsec_" + base64.b64encode(b"comgas_signing_key_456").decode()
SVIX_TIMESTAMP = "1700000000"


# =============================================================================
# Configuration
# =============================================================================

@pytest.fixture
def settings():
    """Settings with both tenant secrets configured and no replay window."""
    return Settings(
        CLERK_WEBHOOK_SECRET=MULTI_TENANT_SECRET,
        CLERK_WEBHOOK_SECRET_COMGAS=COMGAS_SECRET,
        WEBHOOK_TOLERANCE_SECONDS=0,
        MONGO_URI="mongodb://unused:27017",
        DB_NAME="clerk_ingest_test",
    )


# =============================================================================
# Signing helpers
# =============================================================================

def _sign(secret: str, svix_id: str, svix_timestamp: str, body: bytes) -> str:
    signed_at = datetime.fromtimestamp(int(svix_timestamp), tz=timezone.utc)
    return Webhook(secret).sign(svix_id, signed_at, body.decode("utf-8"))


@pytest.fixture
def sign():
    """Return the "v1,<base64>" signature Svix would send for a body."""
    return _sign


@pytest.fixture
def signed_request():
    """
    Factory building (body, headers) for a delivery.

    The secret follows the application_id unless one is passed explicitly,
    mirroring how Clerk signs per application.
    """

    def _build(event: dict, application_id: str = "app", svix_id: str = "msg_1", secret: str = None):
        body = json.dumps(event).encode("utf-8")
        if secret is None:
            secret = COMGAS_SECRET if application_id == "comgas" else MULTI_TENANT_SECRET
        headers = {
            "application_id": application_id,
            "svix-id": svix_id,
            "svix-timestamp": SVIX_TIMESTAMP,
            "svix-signature": _sign(secret, svix_id, SVIX_TIMESTAMP, body),
        }
        return body, headers

    return _build


# =============================================================================
# Database
# =============================================================================

@pytest.fixture
async def mongo_database():
    """Fresh in-memory database with the user documents initialized."""
    client = AsyncMongoMockClient()
    database = client["clerk_ingest_test"]
    await init_beanie(database=database, document_models=USER_DOCUMENTS)
    yield database


@pytest.fixture
def repository(mongo_database):
    return ClerkUserRepository()


# =============================================================================
# Application
# =============================================================================

@pytest.fixture
def app(settings, repository):
    return create_app(settings=settings, repository=repository)


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


# =============================================================================
# Sample payloads
# =============================================================================

@pytest.fixture
def sample_user_data():
    """A user object shaped like Clerk's user.created data."""
    return {
        "id": "user_2abc",
        "object": "user",
        "external_id": None,
        "first_name": "Ada",
        "last_name": "Lovelace",
        "username": "ada",
        "image_url": "https://img.clerk.com/ada.png",
        "profile_image_url": "https://img.clerk.com/ada-profile.png",
        "has_image": True,
        "banned": False,
        "locked": False,
        "two_factor_enabled": False,
        "totp_enabled": False,
        "backup_code_enabled": False,
        "password_enabled": True,
        "primary_email_address_id": "idn_email_1",
        "primary_phone_number_id": None,
        "public_metadata": {"role": "admin", "nested": {"plan": "pro"}},
        "private_metadata": {},
        "unsafe_metadata": {"userType": "buyer"},
        "email_addresses": [
            {
                "id": "idn_email_1",
                "object": "email_address",
                "email_address": "ada@example.com",
                "verification": {"status": "verified", "strategy": "email_code"},
                "linked_to": [],
                "created_at": 1700000000000,
                "updated_at": 1700000001000,
            }
        ],
        "phone_numbers": [],
        "web3_wallets": [],
        "created_at": 1700000000000,
        "updated_at": 1700000001000,
        "last_sign_in_at": None,
    }
