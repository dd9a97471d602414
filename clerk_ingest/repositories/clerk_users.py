import logging
from typing import Dict, List, Optional, Type

from beanie import Document, UpdateResponse
from pymongo.errors import DuplicateKeyError

from clerk_ingest.models.clerk import StoredUser, Tenant, UserRecord
from clerk_ingest.models.user import ClerkUser, ComgasClerkUser

logger = logging.getLogger("uvicorn.error")

DOCUMENT_BY_TENANT: Dict[Tenant, Type[Document]] = {
    Tenant.MULTI_TENANT: ClerkUser,
    Tenant.COMGAS: ComgasClerkUser,
}

# Fields a user.updated event may overwrite. banned, locked, created_at and the
# two-factor flags are owned elsewhere and stay as first written.
UPDATE_WHITELIST = frozenset({
    "first_name",
    "last_name",
    "image_url",
    "email_addresses",
    "phone_numbers",
    "username",
    "updated_at",
    "last_sign_in_at",
    "external_id",
    "primary_email_address_id",
    "public_metadata",
    "private_metadata",
    "unsafe_metadata",
})


class ClerkUserRepository:
    """Per-tenant user collections. Write methods report success as a bool and never raise."""

    def document_for(self, tenant: Tenant) -> Type[Document]:
        return DOCUMENT_BY_TENANT.get(tenant, ClerkUser)

    def collection_name(self, tenant: Tenant) -> str:
        return self.document_for(tenant).Settings.name

    async def insert_user(self, tenant: Tenant, record: UserRecord) -> bool:
        document_cls = self.document_for(tenant)
        collection = self.collection_name(tenant)
        log_extra = {"tenant": tenant.value, "clerk_id": record.clerk_id}

        try:
            document = document_cls(**record.model_dump())
            await document.insert()
            logger.info(
                f"🆕 User {record.clerk_id} persisted in collection {collection}",
                extra=log_extra,
            )
            return True
        except DuplicateKeyError:
            # The user already exists, which is the state user.created asks for
            logger.warning(
                f"🔁 Duplicate insert for user {record.clerk_id} in collection {collection}; user already exists",
                extra=log_extra,
            )
            return True
        except Exception as e:
            logger.error(
                f"❌ Failed to persist user {record.clerk_id} in collection {collection}: {repr(e)}",
                extra=log_extra,
                exc_info=True,
            )
            return False

    async def update_user(self, tenant: Tenant, record: UserRecord) -> bool:
        document_cls = self.document_for(tenant)
        collection = self.collection_name(tenant)
        log_extra = {"tenant": tenant.value, "clerk_id": record.clerk_id}

        changes = record.model_dump(include=set(UPDATE_WHITELIST), exclude_unset=True)
        if not changes:
            logger.info(
                f"User {record.clerk_id} update carries no updatable fields; nothing to write",
                extra=log_extra,
            )
            return True

        try:
            result = await document_cls.find_one({"clerk_id": record.clerk_id}).update(
                {"$set": changes},
                response_type=UpdateResponse.UPDATE_RESULT,
            )
        except Exception as e:
            logger.error(
                f"❌ Failed to update user {record.clerk_id} in collection {collection}: {repr(e)}",
                extra=log_extra,
                exc_info=True,
            )
            return False

        if result is None or result.matched_count == 0:
            logger.warning(
                f"⚠️ No user found to update with clerk_id={record.clerk_id} in collection {collection}",
                extra=log_extra,
            )
        elif result.modified_count > 0:
            logger.info(
                f"🔁 User {record.clerk_id} updated in collection {collection}",
                extra=log_extra,
            )
        else:
            logger.info(
                f"User {record.clerk_id} already up to date in collection {collection}",
                extra=log_extra,
            )
        return True

    async def delete_user_by_clerk_id(self, tenant: Tenant, clerk_id: str) -> bool:
        document_cls = self.document_for(tenant)
        collection = self.collection_name(tenant)
        log_extra = {"tenant": tenant.value, "clerk_id": clerk_id}

        try:
            result = await document_cls.find_one({"clerk_id": clerk_id}).delete()
        except Exception as e:
            logger.error(
                f"❌ Failed to delete user {clerk_id} from collection {collection}: {repr(e)}",
                extra=log_extra,
                exc_info=True,
            )
            return False

        if result is not None and result.deleted_count > 0:
            logger.info(
                f"🗑️ User {clerk_id} deleted from collection {collection}",
                extra=log_extra,
            )
        else:
            logger.warning(
                f"⚠️ No user found to delete with clerk_id={clerk_id} in collection {collection}",
                extra=log_extra,
            )
        return True

    # ---------- Queries ----------
    async def get_user_by_clerk_id(self, tenant: Tenant, clerk_id: str) -> Optional[StoredUser]:
        document = await self.document_for(tenant).find_one({"clerk_id": clerk_id})
        return self._to_stored_user(document) if document else None

    async def list_users(self, tenant: Tenant, limit: int = 50) -> List[StoredUser]:
        documents = await self.document_for(tenant).find_all(limit=limit).to_list()
        return [self._to_stored_user(document) for document in documents]

    @staticmethod
    def _to_stored_user(document: Document) -> StoredUser:
        fields = document.model_dump(include=set(UserRecord.model_fields))
        return StoredUser(internal_id=str(document.id), **fields)
