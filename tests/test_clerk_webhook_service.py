"""
Tests for ClerkWebhookService.

Tests cover:
- Routing of user.created / user.updated / user.deleted
- Unknown and recognised-but-unrouted events being acknowledged
- Rejections never reaching the repository
- Cancellation before persistence
"""

import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

from clerk_ingest.models.clerk import ClerkWebhookEvents, Tenant, UserRecord
from clerk_ingest.repositories.clerk_users import ClerkUserRepository
from clerk_ingest.services.clerk_webhook import ClerkWebhookService
from clerk_ingest.utils.errors import RequestCancelledError


@pytest.fixture
def mock_repository():
    repository = MagicMock(spec=ClerkUserRepository)
    repository.insert_user = AsyncMock(return_value=True)
    repository.update_user = AsyncMock(return_value=True)
    repository.delete_user_by_clerk_id = AsyncMock(return_value=True)
    return repository


@pytest.fixture
def service(settings, mock_repository):
    return ClerkWebhookService(settings, mock_repository)


def _assert_no_store_call(repository):
    repository.insert_user.assert_not_awaited()
    repository.update_user.assert_not_awaited()
    repository.delete_user_by_clerk_id.assert_not_awaited()


# =============================================================================
# User Event Routing
# =============================================================================

class TestUserEvents:

    async def test_user_created_inserts_record(self, service, mock_repository, signed_request):
        body, headers = signed_request({"type": "user.created", "data": {"id": "user_A", "first_name": "Ada"}})

        assert await service.process_webhook(body, headers) is True

        mock_repository.insert_user.assert_awaited_once()
        tenant, record = mock_repository.insert_user.await_args.args
        assert tenant == Tenant.MULTI_TENANT
        assert isinstance(record, UserRecord)
        assert record.clerk_id == "user_A"
        assert record.first_name == "Ada"

    async def test_user_updated_updates_record_for_comgas(self, service, mock_repository, signed_request):
        body, headers = signed_request(
            {"type": "user.updated", "data": {"id": "user_B", "first_name": "Y"}},
            application_id="comgas",
        )

        assert await service.process_webhook(body, headers) is True

        tenant, record = mock_repository.update_user.await_args.args
        assert tenant == Tenant.COMGAS
        assert record.clerk_id == "user_B"
        mock_repository.insert_user.assert_not_awaited()

    async def test_user_deleted_deletes_by_clerk_id(self, service, mock_repository, signed_request):
        body, headers = signed_request({"type": "user.deleted", "data": {"id": "user_C", "deleted": True}})

        assert await service.process_webhook(body, headers) is True

        mock_repository.delete_user_by_clerk_id.assert_awaited_once_with(Tenant.MULTI_TENANT, "user_C")

    async def test_repository_failure_is_reported(self, service, mock_repository, signed_request):
        mock_repository.insert_user.return_value = False
        body, headers = signed_request({"type": "user.created", "data": {"id": "user_A"}})

        assert await service.process_webhook(body, headers) is False

    async def test_user_without_id_is_rejected(self, service, mock_repository, signed_request):
        body, headers = signed_request({"type": "user.created", "data": {"first_name": "Ada"}})

        assert await service.process_webhook(body, headers) is False
        _assert_no_store_call(mock_repository)

    async def test_deleted_without_id_is_rejected(self, service, mock_repository, signed_request):
        body, headers = signed_request({"type": "user.deleted", "data": {"deleted": True}})

        assert await service.process_webhook(body, headers) is False
        _assert_no_store_call(mock_repository)


# =============================================================================
# Unrouted Events
# =============================================================================

class TestUnroutedEvents:

    @pytest.mark.parametrize("event_type", [
        ClerkWebhookEvents.SESSION_CREATED,
        ClerkWebhookEvents.EMAIL_CREATED,
        ClerkWebhookEvents.ORGANIZATION_CREATED,
        ClerkWebhookEvents.ORGANIZATION_INVITATION_ACCEPTED,
        "something.new",
    ])
    async def test_acknowledged_without_store_call(self, service, mock_repository, signed_request, event_type, caplog):
        caplog.set_level(logging.WARNING, logger="uvicorn.error")
        body, headers = signed_request({"type": event_type, "data": {"id": "x"}})

        assert await service.process_webhook(body, headers) is True

        _assert_no_store_call(mock_repository)
        assert any(event_type in record.getMessage() for record in caplog.records if record.levelno == logging.WARNING)


# =============================================================================
# Rejections
# =============================================================================

class TestRejections:

    async def test_missing_signature(self, service, mock_repository, signed_request):
        body, headers = signed_request({"type": "user.created", "data": {"id": "user_A"}})
        del headers["svix-signature"]

        assert await service.process_webhook(body, headers) is False
        _assert_no_store_call(mock_repository)

    async def test_wrong_signature(self, service, mock_repository, signed_request):
        body, headers = signed_request({"type": "user.created", "data": {"id": "user_A"}})
        headers["svix-signature"] = "v1,d3Jvbmc="

        assert await service.process_webhook(body, headers) is False
        _assert_no_store_call(mock_repository)

    async def test_missing_tenant(self, service, mock_repository, signed_request):
        body, headers = signed_request({"type": "user.created", "data": {"id": "user_A"}})
        del headers["application_id"]

        assert await service.process_webhook(body, headers) is False
        _assert_no_store_call(mock_repository)

    async def test_misconfigured_secret_logged_as_error(self, settings, mock_repository, signed_request, caplog):
        caplog.set_level(logging.WARNING, logger="uvicorn.error")
        settings.CLERK_WEBHOOK_SECRET_COMGAS = ""
        service = ClerkWebhookService(settings, mock_repository)
        body, headers = signed_request({"type": "user.created", "data": {"id": "user_A"}}, application_id="comgas")

        assert await service.process_webhook(body, headers) is False

        _assert_no_store_call(mock_repository)
        assert any(record.levelno == logging.ERROR for record in caplog.records)

    async def test_signed_but_missing_data(self, service, mock_repository, signed_request):
        body, headers = signed_request({"type": "user.created"})

        assert await service.process_webhook(body, headers) is False
        _assert_no_store_call(mock_repository)


# =============================================================================
# Cancellation
# =============================================================================

class TestCancellation:

    async def test_disconnect_before_persistence_raises(self, service, mock_repository, signed_request):
        body, headers = signed_request({"type": "user.created", "data": {"id": "user_A"}})

        with pytest.raises(RequestCancelledError):
            await service.process_webhook(body, headers, is_disconnected=AsyncMock(return_value=True))

        _assert_no_store_call(mock_repository)

    async def test_connected_client_proceeds(self, service, mock_repository, signed_request):
        body, headers = signed_request({"type": "user.created", "data": {"id": "user_A"}})

        assert await service.process_webhook(body, headers, is_disconnected=AsyncMock(return_value=False)) is True
        mock_repository.insert_user.assert_awaited_once()
