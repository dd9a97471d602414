from beanie import Document
from pymongo import ASCENDING, IndexModel

from clerk_ingest.models.clerk import UserRecord

# A unique clerk_id per collection is what makes a replayed user.created harmless
CLERK_ID_INDEX = IndexModel([("clerk_id", ASCENDING)], unique=True, name="clerk_id_unique")


# ---------- MultiTenant users ----------
class ClerkUser(UserRecord, Document):

    class Settings:
        name = "users"
        indexes = [CLERK_ID_INDEX]


# ---------- Comgas users ----------
class ComgasClerkUser(UserRecord, Document):

    class Settings:
        name = "users_comgas"
        indexes = [CLERK_ID_INDEX]


USER_DOCUMENTS = [ClerkUser, ComgasClerkUser]
