import logging
from typing import Awaitable, Callable, Mapping, Optional

from clerk_ingest.models.clerk import ClerkWebhookEvents, EventEnvelope, Tenant
from clerk_ingest.repositories.clerk_users import ClerkUserRepository
from clerk_ingest.services.config import Settings
from clerk_ingest.services.decoder import decode_deletion, decode_envelope, decode_user
from clerk_ingest.services.intake import IntakeGuard
from clerk_ingest.utils.errors import DecodeError, RequestCancelledError, WebhookError

logger = logging.getLogger("uvicorn.error")


class ClerkWebhookService:
    """
    Verified Clerk deliveries -> user collection mutations.

    Every rejection inside the pipeline ends as a `False` result plus a log
    line; only a client disconnect (RequestCancelledError) leaves through an
    exception.
    """

    def __init__(self, settings: Settings, repository: ClerkUserRepository):
        self.intake_guard = IntakeGuard(settings)
        self.repository = repository
        self.handlers = {
            ClerkWebhookEvents.USER_CREATED: self.handle_user_created,
            ClerkWebhookEvents.USER_UPDATED: self.handle_user_updated,
            ClerkWebhookEvents.USER_DELETED: self.handle_user_deleted,
        }

    async def process_webhook(
        self,
        payload: bytes,
        headers: Mapping[str, str],
        is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None,
    ) -> bool:
        try:
            admitted = self.intake_guard.admit(payload, headers)
            envelope = decode_envelope(admitted.payload)
        except WebhookError as e:
            logger.log(e.log_level, f"❌ Webhook rejected ({type(e).__name__}): {e}")
            return False

        if is_disconnected is not None and await is_disconnected():
            raise RequestCancelledError(f"Client disconnected before {envelope.type} was persisted")

        return await self.dispatch(envelope, admitted.tenant)

    async def dispatch(self, envelope: EventEnvelope, tenant: Tenant) -> bool:
        log_extra = {"tenant": tenant.value, "event_type": envelope.type}

        handler = self.handlers.get(envelope.type)
        if handler is None:
            # Acknowledge so Clerk does not keep retrying events we do not store
            logger.warning(f"ℹ️ Ignored webhook event type: {envelope.type} (tenant={tenant.value})", extra=log_extra)
            return True

        logger.info(f"Processing webhook event {envelope.type} (tenant={tenant.value})", extra=log_extra)

        try:
            return await handler(envelope, tenant)
        except DecodeError as e:
            logger.warning(f"⚠️ Could not decode {envelope.type} (tenant={tenant.value}): {e}", extra=log_extra)
            return False

    # ---------- User events ----------
    async def handle_user_created(self, envelope: EventEnvelope, tenant: Tenant) -> bool:
        record = decode_user(envelope)
        logger.info(
            f"Persisting user {record.clerk_id} (tenant={tenant.value})",
            extra={"tenant": tenant.value, "event_type": envelope.type, "clerk_id": record.clerk_id},
        )
        return await self.repository.insert_user(tenant, record)

    async def handle_user_updated(self, envelope: EventEnvelope, tenant: Tenant) -> bool:
        record = decode_user(envelope)
        logger.info(
            f"Updating user {record.clerk_id} (tenant={tenant.value})",
            extra={"tenant": tenant.value, "event_type": envelope.type, "clerk_id": record.clerk_id},
        )
        return await self.repository.update_user(tenant, record)

    async def handle_user_deleted(self, envelope: EventEnvelope, tenant: Tenant) -> bool:
        deleted = decode_deletion(envelope)
        logger.info(
            f"Deleting user {deleted.id} (tenant={tenant.value})",
            extra={"tenant": tenant.value, "event_type": envelope.type, "clerk_id": deleted.id},
        )
        return await self.repository.delete_user_by_clerk_id(tenant, deleted.id)
