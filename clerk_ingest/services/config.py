from typing import List
from pydantic_settings import BaseSettings
from pydantic import field_validator

from clerk_ingest.models.clerk import Tenant

# Tenants without an entry sign with CLERK_WEBHOOK_SECRET
SECRET_FIELD_BY_TENANT = {
    Tenant.COMGAS: "CLERK_WEBHOOK_SECRET_COMGAS",
}


class Settings(BaseSettings):
    PORT: int = 8000
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ALLOWED_ORIGINS: str = ""

    # Svix signing secrets ("whsec_..."), one per tenant
    CLERK_WEBHOOK_SECRET: str = ""
    CLERK_WEBHOOK_SECRET_COMGAS: str = ""
    # 0 disables the svix-timestamp replay window
    WEBHOOK_TOLERANCE_SECONDS: int = 0

    MONGO_URI: str = "mongodb://localhost:27017"
    DB_NAME: str = "user_account"

    @field_validator("ALLOWED_ORIGINS")
    def parse_allowed_origins(cls, v: str) -> List[str]:
        return [origin.strip() for origin in v.split(",") if origin.strip()] if v else []

    def webhook_secret_for(self, tenant: Tenant) -> str:
        field = SECRET_FIELD_BY_TENANT.get(tenant, "CLERK_WEBHOOK_SECRET")
        return getattr(self, field)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
