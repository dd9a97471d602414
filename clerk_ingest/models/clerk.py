from enum import Enum
from pydantic import BaseModel
from typing import Any, Dict, List, Optional


class Tenant(str, Enum):
    MULTI_TENANT = "multi_tenant"
    COMGAS = "comgas"


class ClerkWebhookEvents:
    USER_CREATED = "user.created"
    USER_UPDATED = "user.updated"
    USER_DELETED = "user.deleted"
    SESSION_CREATED = "session.created"
    SESSION_ENDED = "session.ended"
    SESSION_REVOKED = "session.revoked"
    EMAIL_CREATED = "email.created"
    ORGANIZATION_CREATED = "organization.created"
    ORGANIZATION_UPDATED = "organization.updated"
    ORGANIZATION_DELETED = "organization.deleted"
    ORGANIZATION_MEMBERSHIP_CREATED = "organizationMembership.created"
    ORGANIZATION_MEMBERSHIP_UPDATED = "organizationMembership.updated"
    ORGANIZATION_MEMBERSHIP_DELETED = "organizationMembership.deleted"
    ORGANIZATION_INVITATION_CREATED = "organizationInvitation.created"
    ORGANIZATION_INVITATION_ACCEPTED = "organizationInvitation.accepted"
    ORGANIZATION_INVITATION_REVOKED = "organizationInvitation.revoked"


# ---------- Envelope ----------
class EventEnvelope(BaseModel):
    type: str
    data: Optional[Any] = None
    object: Optional[str] = None
    timestamp: Optional[int] = None
    instance_id: Optional[str] = None


# ---------- Nested records ----------
class VerificationRecord(BaseModel):
    status: Optional[str] = None
    strategy: Optional[str] = None


class EmailRecord(BaseModel):
    id: Optional[str] = None
    email_address: Optional[str] = None
    verification: Optional[VerificationRecord] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None


class PhoneRecord(BaseModel):
    id: Optional[str] = None
    phone_number: Optional[str] = None
    verification: Optional[VerificationRecord] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None


# ---------- User ----------
class ClerkUserFields(BaseModel):
    """Attributes shared by the wire payload and the stored document."""

    external_id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    username: Optional[str] = None
    image_url: Optional[str] = None
    profile_image_url: Optional[str] = None
    primary_email_address_id: Optional[str] = None
    primary_phone_number_id: Optional[str] = None
    banned: Optional[bool] = None
    locked: Optional[bool] = None
    has_image: Optional[bool] = None
    two_factor_enabled: Optional[bool] = None
    totp_enabled: Optional[bool] = None
    backup_code_enabled: Optional[bool] = None
    password_enabled: Optional[bool] = None
    public_metadata: Optional[Dict[str, Any]] = None
    private_metadata: Optional[Dict[str, Any]] = None
    unsafe_metadata: Optional[Dict[str, Any]] = None
    email_addresses: Optional[List[EmailRecord]] = None
    phone_numbers: Optional[List[PhoneRecord]] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None
    last_sign_in_at: Optional[int] = None


class WireUser(ClerkUserFields):
    """`data` of a user.* event as Clerk sends it; `id` is the Clerk user id."""

    id: Optional[str] = None


class UserRecord(ClerkUserFields):
    """A user as stored: the Clerk id lives in `clerk_id`, `_id` belongs to Mongo."""

    clerk_id: str


class StoredUser(UserRecord):
    internal_id: Optional[str] = None


class DeletedUserPayload(BaseModel):
    id: Optional[str] = None
    deleted: Optional[bool] = None
