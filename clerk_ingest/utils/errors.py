import logging


class WebhookError(Exception):
    """Base class for failures that reject a webhook delivery with a 400."""

    log_level = logging.WARNING
    default_message = "Webhook rejected"

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message)


# ---------- Admission ----------
class AdmissionError(WebhookError):
    default_message = "Webhook admission failed"


class MissingTenantError(AdmissionError):
    default_message = "application_id header is missing"


class MisconfiguredSecretError(AdmissionError):
    # Operator concern, not the sender's
    log_level = logging.ERROR
    default_message = "Webhook secret is not configured for this application"


class MissingSignatureHeadersError(AdmissionError):
    default_message = "Required Svix headers are missing"


class InvalidSignatureError(AdmissionError):
    default_message = "Invalid webhook signature"


# ---------- Decode ----------
class DecodeError(WebhookError):
    default_message = "Webhook payload could not be decoded"


class EmptyPayloadError(DecodeError):
    default_message = "Webhook payload is empty"


class MalformedPayloadError(DecodeError):
    default_message = "Webhook payload is malformed"


class MissingDataError(DecodeError):
    default_message = "Webhook event has no data"


class MissingClerkIdError(DecodeError):
    default_message = "Could not extract the Clerk user id from the payload"


# ---------- Cancellation ----------
class RequestCancelledError(Exception):
    """The client went away before the delivery reached the store."""
