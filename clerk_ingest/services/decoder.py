"""
Decoding of verified Clerk webhook payloads.

Clerk names the user identifier `id`, while the users collection keeps it in
`clerk_id` and reserves `_id` for the ObjectId that MongoDB assigns. The wire
payload is therefore validated into `WireUser` and converted into
`UserRecord` by `to_user_record`, instead of decoding straight into the
stored shape.
"""

import json
from typing import Any, Dict

from pydantic import ValidationError

from clerk_ingest.models.clerk import DeletedUserPayload, EventEnvelope, UserRecord, WireUser
from clerk_ingest.utils.errors import (
    EmptyPayloadError,
    MalformedPayloadError,
    MissingClerkIdError,
    MissingDataError,
)


def decode_envelope(payload: bytes) -> EventEnvelope:
    if not payload or not payload.strip():
        raise EmptyPayloadError()

    try:
        raw = json.loads(payload)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedPayloadError(f"Webhook payload is not valid JSON: {e}")

    if not isinstance(raw, dict):
        raise MalformedPayloadError("Webhook payload must be a JSON object")

    try:
        envelope = EventEnvelope.model_validate(raw)
    except ValidationError as e:
        raise MalformedPayloadError(f"Invalid webhook envelope: {e.error_count()} validation error(s)")

    if envelope.data is None:
        raise MissingDataError()

    return envelope


def _data_object(envelope: EventEnvelope) -> Dict[str, Any]:
    if not isinstance(envelope.data, dict):
        raise MalformedPayloadError(f"data of {envelope.type} must be a JSON object")
    return envelope.data


def to_user_record(wire: WireUser) -> UserRecord:
    """Move the wire `id` into `clerk_id`, keeping track of which fields were sent."""
    if not wire.id:
        raise MissingClerkIdError()

    fields = wire.model_dump(exclude={"id"}, exclude_unset=True)
    return UserRecord(clerk_id=wire.id, **fields)


def decode_user(envelope: EventEnvelope) -> UserRecord:
    data = _data_object(envelope)

    try:
        wire = WireUser.model_validate(data)
    except ValidationError as e:
        raise MalformedPayloadError(f"Invalid user data in {envelope.type}: {e.error_count()} validation error(s)")

    return to_user_record(wire)


def decode_deletion(envelope: EventEnvelope) -> DeletedUserPayload:
    data = _data_object(envelope)

    try:
        deleted = DeletedUserPayload.model_validate(data)
    except ValidationError as e:
        raise MalformedPayloadError(f"Invalid deleted user data: {e.error_count()} validation error(s)")

    if not deleted.id:
        raise MissingClerkIdError()

    return deleted
