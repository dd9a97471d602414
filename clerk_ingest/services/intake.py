"""
Admission of incoming Clerk webhooks.

Nothing in a delivery is interpreted before the tenant has been resolved from
the `application_id` header and the Svix signature has been checked against
that tenant's signing secret.
"""

import hmac
import time
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Mapping

from svix.webhooks import Webhook

from clerk_ingest.models.clerk import Tenant
from clerk_ingest.services.config import Settings
from clerk_ingest.utils.errors import (
    InvalidSignatureError,
    MisconfiguredSecretError,
    MissingSignatureHeadersError,
    MissingTenantError,
)

logger = logging.getLogger("uvicorn.error")

APPLICATION_ID_HEADER = "application_id"
SVIX_HEADERS = ("svix-id", "svix-timestamp", "svix-signature")

# Any other non-empty application_id belongs to the multi-tenant application
TENANT_BY_APPLICATION_ID = {
    "comgas": Tenant.COMGAS,
}
DEFAULT_TENANT = Tenant.MULTI_TENANT


@dataclass(frozen=True)
class AdmittedWebhook:
    tenant: Tenant
    payload: bytes


def resolve_tenant(application_id: str) -> Tenant:
    return TENANT_BY_APPLICATION_ID.get(application_id, DEFAULT_TENANT)


def verify_svix_signature(
    secret: str,
    payload: bytes,
    svix_id: str,
    svix_timestamp: str,
    svix_signature: str,
    tolerance_seconds: int = 0,
) -> None:
    """
    Check a delivery against the Svix signing scheme.

    The expected value is HMAC-SHA256 over "{svix_id}.{svix_timestamp}.{body}"
    keyed with the base64-decoded part of the "whsec_" secret. The header may
    carry several space separated "v1,<signature>" entries; one match is
    enough. The timestamp window is only enforced when tolerance_seconds > 0.

    Raises:
        MisconfiguredSecretError: the secret is empty or not valid base64
        InvalidSignatureError: no v1 signature matches, or the timestamp is unusable
    """
    try:
        webhook = Webhook(secret)
    except (ValueError, RuntimeError) as e:
        raise MisconfiguredSecretError(f"Webhook secret could not be loaded: {e}")

    try:
        timestamp = int(svix_timestamp)
        signed_at = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        raise InvalidSignatureError("svix-timestamp is not a valid unix timestamp")

    if tolerance_seconds > 0 and abs(int(time.time()) - timestamp) > tolerance_seconds:
        raise InvalidSignatureError("svix-timestamp is outside the tolerance window")

    try:
        body = payload.decode("utf-8")
    except UnicodeDecodeError:
        raise InvalidSignatureError("Webhook payload is not valid UTF-8")

    expected = webhook.sign(svix_id, signed_at, body).split(",", 1)[1]

    for token in svix_signature.split(" "):
        version, _, signature = token.partition(",")
        if version != "v1":
            continue
        if hmac.compare_digest(signature.encode(), expected.encode()):
            return

    raise InvalidSignatureError()


class IntakeGuard:
    def __init__(self, settings: Settings):
        self.settings = settings

    def admit(self, payload: bytes, headers: Mapping[str, str]) -> AdmittedWebhook:
        headers = {key.lower(): value for key, value in headers.items()}

        application_id = headers.get(APPLICATION_ID_HEADER)
        if not application_id:
            raise MissingTenantError()

        tenant = resolve_tenant(application_id)

        secret = self.settings.webhook_secret_for(tenant)
        if not secret:
            raise MisconfiguredSecretError(f"Webhook secret for application '{application_id}' is not configured")

        svix_id, svix_timestamp, svix_signature = (headers.get(name) for name in SVIX_HEADERS)
        if not svix_id or not svix_timestamp or not svix_signature:
            raise MissingSignatureHeadersError()

        verify_svix_signature(
            secret,
            payload,
            svix_id,
            svix_timestamp,
            svix_signature,
            tolerance_seconds=self.settings.WEBHOOK_TOLERANCE_SECONDS,
        )

        logger.info(
            f"✅ Webhook verified for application '{application_id}' (tenant={tenant.value})",
            extra={"tenant": tenant.value},
        )
        return AdmittedWebhook(tenant=tenant, payload=payload)
